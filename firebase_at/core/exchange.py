"""AT exchange data model.

This module defines the immutable ATExchange record and ExchangeOutcome enum,
the structured result of one command/expected-token round trip.
"""

from dataclasses import dataclass, field
from enum import Enum
import time


class ExchangeOutcome(Enum):
    """Outcome of a single AT exchange.

    - MATCHED: Expected token appeared in the accumulated input
    - TIMED_OUT: Timeout elapsed without the token appearing
    """
    MATCHED = "matched"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class ATExchange:
    """Immutable record of one AT exchange.

    Attributes:
        command: AT command sent, without CRLF (e.g., 'AT+CIPCLOSE')
        expected_token: Token waited for (e.g., 'OK')
        timeout_ms: Timeout the exchange was allowed, in milliseconds
        outcome: Matched or timed out
        buffer: Everything received while waiting, echo included
        execution_time: Seconds from command write to outcome
        timestamp: Unix timestamp when the record was created
    """

    command: str
    expected_token: str
    timeout_ms: int
    outcome: ExchangeOutcome
    buffer: str
    execution_time: float
    timestamp: float = field(default_factory=time.time)

    def is_successful(self) -> bool:
        """Check if the expected token was seen.

        Example:
            >>> exchange = ATExchange(
            ...     command="AT",
            ...     expected_token="OK",
            ...     timeout_ms=1000,
            ...     outcome=ExchangeOutcome.MATCHED,
            ...     buffer="AT\\r\\n\\r\\nOK\\r\\n",
            ...     execution_time=0.02
            ... )
            >>> exchange.is_successful()
            True
        """
        return self.outcome == ExchangeOutcome.MATCHED

    def __str__(self) -> str:
        if self.is_successful():
            return (f"[{self.outcome.value}] {self.command} -> '{self.expected_token}' "
                    f"({self.execution_time:.3f}s)")
        return (f"[{self.outcome.value}] {self.command} (waited {self.timeout_ms}ms "
                f"for '{self.expected_token}', got {len(self.buffer)} chars)")
