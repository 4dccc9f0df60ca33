"""
Structured Logging Setup

One logger per relay service, namespaced alarm_relay.<service>.
JSON lines by default; ALARM_RELAY_LOG_FORMAT=text switches to plain text.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, TextIO

# Attributes every LogRecord carries; anything else came in via extra={...}
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "service", "taskName"}


class JsonFormatter(logging.Formatter):
    """Renders a record as one JSON object per line"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": getattr(record, "service", "unknown"),
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS
        }
        if context:
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ServiceLoggerAdapter(logging.LoggerAdapter):
    """Stamps the service name on every record, keeping caller extras"""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        kwargs["extra"] = {**kwargs.get("extra", {}), "service": self.extra["service"]}
        return msg, kwargs


def setup_logging(
    service_name: str,
    log_level: str = "INFO",
    json_format: bool = True,
    stream: TextIO | None = None,
) -> logging.Logger:
    """
    Configure the alarm_relay.<service_name> logger.

    Replaces any handler from an earlier call, so calling it again
    reconfigures rather than duplicates output.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(stream or sys.stdout)
    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))

    logger = logging.getLogger(f"alarm_relay.{service_name}")
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False
    return logger


@lru_cache(maxsize=None)
def get_service_logger(service_name: str) -> ServiceLoggerAdapter:
    """Logger adapter for a service, configured once from the environment"""
    logger = setup_logging(
        service_name,
        log_level=os.environ.get("ALARM_RELAY_LOG_LEVEL", "INFO"),
        json_format=os.environ.get("ALARM_RELAY_LOG_FORMAT", "json").lower() == "json",
    )
    return ServiceLoggerAdapter(logger, {"service": service_name})


def log_transition(
    logger: logging.LoggerAdapter,
    operation: str,
    state: dict[str, Any],
    changed: bool,
) -> None:
    """Log the outcome of a state machine operation"""
    if changed:
        logger.info(
            f"{operation}: armed={state['armed']}, alarmTriggered={state['alarmTriggered']}",
            extra={"operation": operation, "changed": True, **state},
        )
    else:
        logger.debug(
            f"{operation}: no change",
            extra={"operation": operation, "changed": False, **state},
        )


def log_remote_failure(
    logger: logging.LoggerAdapter,
    command: str,
    error: Exception,
    blocking: bool = True,
) -> None:
    """Arm/disarm failures are errors; a failed stop is only a warning"""
    log_method = logger.error if blocking else logger.warning
    log_method(
        f"Remote {command} notification failed: {error}",
        extra={"command": command, "blocking": blocking},
    )
