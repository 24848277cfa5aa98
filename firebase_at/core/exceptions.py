"""Exceptions raised by the transport and configuration layers.

FirebaseClient catches transport errors at its boundary and degrades to its
default ("", False, 0) return values, so callers of the client never see them.
"""

from typing import List, Optional


class FirebaseATError(Exception):
    """Root of every firebase-at exception."""


class SerialPortError(FirebaseATError):
    """The serial line to the modem failed to open, read or write.

    Attributes:
        port: Device path the failure happened on
        os_error: The pyserial or OS exception behind it, when there is one
    """

    def __init__(self, message: str, port: str, os_error: Optional[Exception] = None):
        super().__init__(message)
        self.port = port
        self.os_error = os_error

    def __str__(self) -> str:
        context = f"port: {self.port}"
        if self.os_error:
            context += f", cause: {self.os_error}"
        return f"{super().__str__()} ({context})"


class SerialPortBusyError(SerialPortError):
    """Another process holds the port."""


class ConnectionTimeoutError(SerialPortError):
    """The OS timed out opening the device."""


class ConfigurationError(FirebaseATError):
    """Merged configuration is invalid or an override could not be converted.

    Attributes:
        source: config.yaml path or "env"
        errors: One message per failed check
    """

    def __init__(self, message: str, source: Optional[str] = None,
                 errors: Optional[List[str]] = None):
        super().__init__(message)
        self.source = source
        self.errors = errors or []

    def __str__(self) -> str:
        text = super().__str__()
        if self.source:
            text += f" (source: {self.source})"
        if self.errors:
            text += "\nErrors:" + "".join(f"\n  - {error}" for error in self.errors)
        return text
