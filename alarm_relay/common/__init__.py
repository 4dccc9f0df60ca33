"""
Common Utilities

Shared modules used across all services:
- config.py - Application settings
- exceptions.py - Custom exception classes
- logging_setup.py - Structured logging setup
"""

from .config import Settings, get_settings
from .exceptions import (
    AlarmRelayError,
    ValidationError,
    NotArmedError,
    RemoteNotifyError,
    NotFoundError,
    StorageError,
)
from .logging_setup import (
    setup_logging,
    get_service_logger,
    log_transition,
    log_remote_failure,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Exceptions
    "AlarmRelayError",
    "ValidationError",
    "NotArmedError",
    "RemoteNotifyError",
    "NotFoundError",
    "StorageError",
    # Logging
    "setup_logging",
    "get_service_logger",
    "log_transition",
    "log_remote_failure",
]
