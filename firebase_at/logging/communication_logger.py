"""Communication logger for the modem link.

CommunicationLogger records what crosses the serial line and how each
Firebase request moves through its states. Entries go to stderr (if enabled)
and to an in-memory ring buffer that tests and the CLI can inspect.
"""

from datetime import datetime
from collections import deque
from threading import Lock
from typing import Optional, List, Dict, Any, Union, TYPE_CHECKING
import sys

from firebase_at.logging.log_models import LogEntry
from firebase_at.config.config_models import LogLevel

if TYPE_CHECKING:
    from firebase_at.core.exchange import ATExchange

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _level_name(level: Union[LogLevel, str]) -> str:
    return level.value if isinstance(level, LogLevel) else level


class CommunicationLogger:
    """Records serial traffic and request progress.

    Each ``log_*`` helper builds one LogEntry; the auth token is never among
    the values they receive.

    Example:
        >>> logger = CommunicationLogger(log_level=LogLevel.DEBUG)
        >>> logger.log_command(port="COM3", command="AT+CIPCLOSE")
        >>> logger.get_entries()[-1].command
        'AT+CIPCLOSE'
    """

    def __init__(self,
                 log_level: Union[LogLevel, str] = LogLevel.INFO,
                 enable_console: bool = True,
                 buffer_size: int = 1000):
        """
        Args:
            log_level: Minimum level to record
            enable_console: Echo entries to stderr
            buffer_size: Entries kept in memory
        """
        self.log_level = _level_name(log_level)
        self.enable_console = enable_console
        self._lock = Lock()
        self._buffer: deque = deque(maxlen=buffer_size)

    def log(self, entry: LogEntry) -> None:
        """Record an entry if its level passes the filter."""
        if not self._passes(entry.level):
            return

        with self._lock:
            self._buffer.append(entry)
            if self.enable_console:
                print(entry.to_string(), file=sys.stderr)

    def _passes(self, level: str) -> bool:
        rank = {name: i for i, name in enumerate(_LEVELS)}
        return rank.get(level, 0) >= rank.get(self.log_level, 0)

    def _emit(self, level: str, source: str, message: str, **extra: Any) -> None:
        self.log(LogEntry(timestamp=datetime.now(), level=level, source=source,
                          message=message, **extra))

    def log_command(self, port: str, command: str) -> None:
        self._emit("DEBUG", "ATExecutor", "Sending command", port=port, command=command)

    def log_exchange(self, port: str, exchange: 'ATExchange') -> None:
        """Log an AT exchange; anything but a match is a warning carrying the buffer."""
        ok = exchange.is_successful()
        self._emit(
            "DEBUG" if ok else "WARNING", "ATExecutor", "Exchange finished",
            port=port,
            command=exchange.command,
            expected_token=exchange.expected_token,
            outcome=exchange.outcome.value,
            execution_time=exchange.execution_time,
            details=None if ok else {"received": exchange.buffer}
        )

    def log_payload(self, port: str, size: int) -> None:
        self._emit("DEBUG", "ATExecutor", f"Sending {size} byte payload", port=port)

    def log_collected(self, length: int, terminator: str, terminated: bool) -> None:
        self._emit("DEBUG", "ResponseCollector", f"Collected {length} chars",
                   details={"terminator": terminator, "terminated": terminated})

    def log_request(self, method: str, host: str, path: str) -> None:
        self._emit("INFO", "FirebaseClient", f"{method} /{path}.json", details={"host": host})

    def log_state(self, state: str, reason: Optional[str] = None) -> None:
        """Log a request state transition; FAILED is a warning."""
        self._emit("WARNING" if state == "FAILED" else "DEBUG", "FirebaseClient",
                   f"State -> {state}", details={"reason": reason} if reason else None)

    def log_port_event(self,
                       event: str,
                       port: str,
                       details: Optional[Dict[str, Any]] = None,
                       level: str = "INFO") -> None:
        self._emit(level, "SerialHandler", event, port=port, details=details)

    def log_error(self,
                  source: str,
                  error: str,
                  details: Optional[Dict[str, Any]] = None) -> None:
        self._emit("ERROR", source, "Error occurred", error=error, details=details)

    def set_level(self, level: Union[LogLevel, str]) -> None:
        self.log_level = _level_name(level)

    def get_entries(self, limit: Optional[int] = None) -> List[LogEntry]:
        """Return buffered entries, oldest first (the last ``limit`` if given)."""
        with self._lock:
            entries = list(self._buffer)
        return entries[-limit:] if limit else entries

    def clear_buffer(self) -> None:
        with self._lock:
            self._buffer.clear()
