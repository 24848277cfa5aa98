"""AT command execution layer.

This module sends one AT command at a time and waits, up to a timeout, for
the token the firmware answers with. There is no retry: a timed-out exchange
is reported as failed and the caller decides what to tear down.
"""

from collections import deque
from typing import List, Optional, TYPE_CHECKING
import time

from firebase_at.core.exchange import ATExchange, ExchangeOutcome
from firebase_at.core.response_collector import ResponseCollector, Transport

if TYPE_CHECKING:
    from firebase_at.logging.communication_logger import CommunicationLogger

COMMAND_TERMINATOR = "\r\n"


class ATExecutor:
    """Runs AT exchanges over a single transport.

    Example:
        >>> handler = SerialHandler('/dev/ttyUSB0')
        >>> handler.open()
        >>> executor = ATExecutor(handler)
        >>> executor.execute('AT+CIPSTART="SSL","example.firebaseio.com",443', 'OK', 5000)
        True
        >>> handler.close()
    """

    def __init__(self,
                 transport: Transport,
                 poll_interval: float = 0.01,
                 logger: Optional['CommunicationLogger'] = None,
                 port_name: str = "modem",
                 history_size: int = 100):
        """Initialize executor.

        Args:
            transport: Object exposing write() and read_available()
            poll_interval: Pause between polls in seconds (default 0.01)
            logger: Optional CommunicationLogger
            port_name: Label used in log entries
            history_size: Newest exchanges kept for diagnostics (default 100)
        """
        self.transport = transport
        self.logger = logger
        self.port_name = port_name
        self.collector = ResponseCollector(transport, poll_interval=poll_interval, logger=logger)
        self._history: deque = deque(maxlen=history_size)

    def execute(self, command: str, expected_token: str, timeout_ms: int) -> bool:
        """Send ``command`` and wait for ``expected_token``.

        Args:
            command: AT command without CRLF (e.g., 'AT+CIPCLOSE')
            expected_token: Substring that signals success (e.g., 'OK')
            timeout_ms: Maximum wait in milliseconds

        Returns:
            True if the token arrived in time, False otherwise
        """
        return self.execute_exchange(command, expected_token, timeout_ms).is_successful()

    def execute_exchange(self, command: str, expected_token: str, timeout_ms: int) -> ATExchange:
        """Send ``command`` and return the full exchange record.

        Raises:
            SerialPortError: Transport write or read failed
        """
        if self.logger:
            self.logger.log_command(port=self.port_name, command=command)

        start_time = time.monotonic()
        self.transport.write(command + COMMAND_TERMINATOR)
        buffer, matched = self.collector.wait_for(expected_token, timeout_ms)

        exchange = ATExchange(
            command=command,
            expected_token=expected_token,
            timeout_ms=timeout_ms,
            outcome=ExchangeOutcome.MATCHED if matched else ExchangeOutcome.TIMED_OUT,
            buffer=buffer,
            execution_time=time.monotonic() - start_time
        )
        self._history.append(exchange)

        if self.logger:
            self.logger.log_exchange(port=self.port_name, exchange=exchange)

        return exchange

    def send_payload(self, data: str) -> int:
        """Write raw bytes after a length announce; nothing is appended.

        Returns:
            Number of bytes written
        """
        if self.logger:
            self.logger.log_payload(port=self.port_name, size=len(data.encode('utf-8')))
        return self.transport.write(data)

    def collect(self, terminator: str = '', timeout_ms: int = 3000) -> str:
        """Gather a response; see ResponseCollector.collect."""
        return self.collector.collect(terminator, timeout_ms)

    def get_history(self) -> List[ATExchange]:
        """The most recent exchanges, oldest first."""
        return list(self._history)

    def clear_history(self) -> None:
        self._history.clear()

    def __repr__(self) -> str:
        return (f"ATExecutor(port={self.port_name}, "
                f"poll_interval={self.collector.poll_interval}s, "
                f"history={len(self._history)} exchanges)")
