"""WiFi association check through the modem.

Joining an access point is left to whoever provisions the modem; this
module only asks the firmware whether it is currently associated.
"""

from typing import Optional, TYPE_CHECKING

from firebase_at.core.at_executor import ATExecutor
from firebase_at.core.exceptions import SerialPortError

if TYPE_CHECKING:
    from firebase_at.logging.communication_logger import CommunicationLogger

# ESP-AT answers "+CWJAP:<ssid>,..." when joined and "No AP" otherwise,
# and ends both with OK.
QUERY_COMMAND = "AT+CWJAP?"
ASSOCIATED_TOKEN = "+CWJAP:"
FINAL_TOKEN = "OK"


class WifiLinkMonitor:
    """Callable link gate backed by an ``AT+CWJAP?`` query.

    Example:
        >>> link = WifiLinkMonitor(executor)
        >>> client = FirebaseClient(config, executor, is_wifi_connected=link)
    """

    def __init__(self,
                 executor: ATExecutor,
                 timeout_ms: int = 1000,
                 logger: Optional['CommunicationLogger'] = None):
        self.executor = executor
        self.timeout_ms = timeout_ms
        self.logger = logger

    def is_wifi_connected(self) -> bool:
        """Return True if the modem reports an associated access point.

        The whole reply is consumed up to its closing OK so nothing is
        left on the line for the next command to mistake as its own.
        """
        try:
            exchange = self.executor.execute_exchange(QUERY_COMMAND, FINAL_TOKEN, self.timeout_ms)
        except SerialPortError as e:
            if self.logger:
                self.logger.log_error(source="WifiLinkMonitor", error=str(e))
            return False
        return exchange.is_successful() and ASSOCIATED_TOKEN in exchange.buffer

    def __call__(self) -> bool:
        return self.is_wifi_connected()
