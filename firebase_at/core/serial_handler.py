"""Serial port transport for the AT-command WiFi modem.

This module wraps pyserial with the two operations the AT layer needs:
writing text and draining whatever bytes have arrived so far. Reads never
block; the executor and collector do their own deadline-bounded polling.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple, Type, TYPE_CHECKING
import codecs
import threading
import time

import serial
from serial.tools import list_ports

from firebase_at.core.exceptions import (
    SerialPortError,
    SerialPortBusyError,
    ConnectionTimeoutError,
)

if TYPE_CHECKING:
    from firebase_at.logging.communication_logger import CommunicationLogger


# pyserial reports every open failure as SerialException; the OS message
# is the only way to tell them apart.
_OPEN_FAILURES: Tuple[Tuple[Tuple[str, ...], Type[SerialPortError], str], ...] = (
    (('permission denied', 'access denied'), SerialPortError, "Permission denied accessing port {port}"),
    (('busy', 'in use'), SerialPortBusyError, "Port {port} is already in use"),
    (('timeout',), ConnectionTimeoutError, "Timeout opening port {port}"),
)


def _open_error(port: str, cause: serial.SerialException) -> SerialPortError:
    text = str(cause).lower()
    for markers, error_class, message in _OPEN_FAILURES:
        if any(marker in text for marker in markers):
            return error_class(message.format(port=port), port, cause)
    return SerialPortError(f"Failed to open port {port}: {cause}", port, cause)


@dataclass
class PortInfo:
    """One entry from serial port discovery.

    Attributes:
        device: Path to pass as ``port`` (e.g., '/dev/ttyUSB0', 'COM3')
        description: USB bridge name if the OS knows it
        hwid: VID:PID and serial number string
    """
    device: str
    description: str
    hwid: str


class SerialHandler:
    """Owns the serial line to the modem.

    Exposes ``write(text)`` and ``read_available()``, the transport interface
    used by ATExecutor and ResponseCollector. pyserial exceptions are wrapped
    in SerialPortError.

    Example:
        >>> with SerialHandler('/dev/ttyUSB0', baud_rate=115200) as handler:
        ...     handler.discard_input()
        ...     handler.write('AT\\r\\n')
        ...     handler.read_available()
        'AT\\r\\n\\r\\nOK\\r\\n'
    """

    def __init__(self,
                 port: str,
                 baud_rate: int = 115200,
                 write_timeout: float = 1.0,
                 logger: Optional['CommunicationLogger'] = None,
                 **kwargs):
        """Initialize handler; the port is not opened until open().

        Args:
            port: Serial device path
            baud_rate: Line speed (ESP-AT ships at 115200)
            write_timeout: Seconds a write may block before failing
            logger: Optional CommunicationLogger for port events
            **kwargs: Passed through to serial.Serial (parity, rtscts, ...)
        """
        self.port = port
        self.baud_rate = baud_rate
        self.write_timeout = write_timeout
        self.logger = logger
        self.kwargs = kwargs
        self._serial: Optional[serial.Serial] = None
        self._lock = threading.Lock()
        self._decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')
        self._opened_at: Optional[float] = None

    def open(self) -> None:
        """Open the port in non-blocking read mode. No-op if already open.

        Raises:
            SerialPortError: Port missing, permission denied or other failure
            SerialPortBusyError: Another process holds the port
            ConnectionTimeoutError: The OS timed out opening the device
        """
        with self._lock:
            if self._is_open():
                return

            try:
                self._serial = serial.Serial(
                    port=self.port,
                    baudrate=self.baud_rate,
                    timeout=0,
                    write_timeout=self.write_timeout,
                    **self.kwargs
                )
            except serial.SerialException as e:
                if self.logger:
                    self.logger.log_error(
                        source="SerialHandler",
                        error=f"Failed to open port: {e}",
                        details={"port": self.port, "error_type": type(e).__name__}
                    )
                raise _open_error(self.port, e)

            self._decoder.reset()
            self._opened_at = time.time()
            if self.logger:
                self.logger.log_port_event(
                    event="Port opened",
                    port=self.port,
                    details={"baud_rate": self.baud_rate, **self.kwargs}
                )

    def close(self) -> None:
        """Close the port; errors are logged, never raised."""
        with self._lock:
            if not self._is_open():
                return

            details = None
            if self._opened_at is not None:
                details = {"session_duration_seconds": round(time.time() - self._opened_at, 3)}
            self._opened_at = None

            try:
                self._serial.close()
            except serial.SerialException as e:
                if self.logger:
                    self.logger.log_error(
                        source="SerialHandler",
                        error=f"Error closing port: {e}",
                        details={"port": self.port}
                    )
                return

            if self.logger:
                self.logger.log_port_event(event="Port closed", port=self.port, details=details)

    def write(self, data: str) -> int:
        """Send ``data`` as UTF-8 and wait for it to leave the buffer.

        Nothing is appended: AT commands carry their own CRLF and request
        payloads must go out byte-for-byte.

        Returns:
            Bytes written

        Raises:
            SerialPortError: Port closed, write timed out or failed
        """
        with self._port("write to") as port:
            written = port.write(data.encode('utf-8'))
            port.flush()
            return written

    def read_available(self) -> str:
        """Return the text received since the last call, without waiting.

        A multi-byte character split across two reads is held back until
        its last byte arrives.

        Raises:
            SerialPortError: Port closed or read failed
        """
        with self._port("read from") as port:
            waiting = port.in_waiting
            if not waiting:
                return ''
            return self._decoder.decode(port.read(waiting))

    def discard_input(self) -> None:
        """Drop unread input such as the firmware's boot banner.

        Raises:
            SerialPortError: Port closed or reset failed
        """
        with self._port("discard input on") as port:
            port.reset_input_buffer()
            self._decoder.reset()

    def is_connected(self) -> bool:
        with self._lock:
            return self._is_open()

    def _is_open(self) -> bool:
        return self._serial is not None and self._serial.is_open

    @contextmanager
    def _port(self, action: str) -> Iterator[serial.Serial]:
        # Holds the lock for the whole operation; wraps pyserial failures.
        with self._lock:
            if not self._is_open():
                raise SerialPortError(f"Cannot {action} closed port", self.port)
            try:
                yield self._serial
            except serial.SerialException as e:
                raise SerialPortError(f"Failed to {action} port {self.port}: {e}", self.port, e)

    @staticmethod
    def discover_ports() -> List[PortInfo]:
        """List serial ports the OS reports, USB bridges included."""
        return [
            PortInfo(
                device=found.device,
                description=found.description or "Unknown",
                hwid=found.hwid or "Unknown"
            )
            for found in list_ports.comports()
        ]

    def __enter__(self) -> 'SerialHandler':
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    def __repr__(self) -> str:
        state = "open" if self.is_connected() else "closed"
        return f"SerialHandler(port='{self.port}', baud={self.baud_rate}, status={state})"
