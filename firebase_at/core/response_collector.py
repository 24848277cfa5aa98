"""Deadline-bounded polling of the modem's incoming text.

The collector is the only place that waits on the transport. Each poll
drains what has arrived, checks for a token, and sleeps a short interval so
other work on the host keeps running while the modem answers.
"""

from typing import Optional, Protocol, Tuple, TYPE_CHECKING
import time

if TYPE_CHECKING:
    from firebase_at.logging.communication_logger import CommunicationLogger


class Transport(Protocol):
    """Interface the AT layer needs from the serial line."""

    def write(self, data: str) -> int:
        ...

    def read_available(self) -> str:
        ...


class ResponseCollector:
    """Accumulates transport input until a token or a deadline.

    Example:
        >>> collector = ResponseCollector(handler)
        >>> raw = collector.collect("", timeout_ms=3000)
        >>> "200 OK" in raw
        True
    """

    def __init__(self,
                 transport: Transport,
                 poll_interval: float = 0.01,
                 logger: Optional['CommunicationLogger'] = None):
        """Initialize collector.

        Args:
            transport: Object exposing read_available()
            poll_interval: Pause between polls in seconds (default 0.01)
            logger: Optional CommunicationLogger
        """
        self.transport = transport
        self.poll_interval = poll_interval
        self.logger = logger

    def wait_for(self, token: str, timeout_ms: int) -> Tuple[str, bool]:
        """Poll until ``token`` is in the accumulated text or time runs out.

        An empty token never matches, which turns the call into a pure
        time box. A timeout of zero checks the input exactly once.

        Args:
            token: Substring to wait for
            timeout_ms: Maximum wait in milliseconds

        Returns:
            (accumulated text, whether the token was seen)
        """
        buffer = ''
        deadline = time.monotonic() + max(timeout_ms, 0) / 1000.0

        while True:
            buffer += self.transport.read_available()
            if token and token in buffer:
                return buffer, True
            if time.monotonic() >= deadline:
                return buffer, False
            time.sleep(self.poll_interval)

    def collect(self, terminator: str = '', timeout_ms: int = 3000) -> str:
        """Gather a response, returning whatever arrived.

        Args:
            terminator: Stop early once this is seen ('' = wait full timeout)
            timeout_ms: Maximum wait in milliseconds

        Returns:
            Accumulated text, possibly partial or empty
        """
        buffer, matched = self.wait_for(terminator, timeout_ms)

        if self.logger:
            self.logger.log_collected(
                length=len(buffer),
                terminator=terminator,
                terminated=matched
            )

        return buffer
