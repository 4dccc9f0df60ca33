"""
Custom Exception Classes for the Alarm Relay

Hierarchical exception structure. Every error is converted to an HTTP
response at the API boundary (see alarm_relay.main); none are fatal.
"""


class AlarmRelayError(Exception):
    """Base exception for all alarm relay errors"""

    def __init__(self, message: str, recoverable: bool = True):
        self.message = message
        self.recoverable = recoverable
        super().__init__(message)


class ValidationError(AlarmRelayError):
    """Request body is missing required fields"""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing required fields: {', '.join(missing)}")


class NotArmedError(AlarmRelayError):
    """Alarm trigger attempted while the system is disarmed"""

    def __init__(self, message: str = "System not armed. Cannot trigger alarm."):
        super().__init__(message)


class RemoteNotifyError(AlarmRelayError):
    """Remote device controller did not confirm a command"""

    def __init__(
        self,
        command: str,
        reason: str,
        url: str | None = None,
        status_code: int | None = None,
    ):
        self.command = command
        self.reason = reason
        self.url = url
        self.status_code = status_code
        super().__init__(f"Remote device failed to {command}: {reason}")


class NotFoundError(AlarmRelayError):
    """Requested telemetry does not exist"""

    def __init__(self, message: str):
        super().__init__(message)


class StorageError(AlarmRelayError):
    """Telemetry file could not be read or written"""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(f"Storage Error: {message}", recoverable=False)
