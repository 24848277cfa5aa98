"""Core AT transport components.

Serial transport, AT command executor, response collector and the
WiFi link check.
"""

from firebase_at.core.exchange import ATExchange, ExchangeOutcome
from firebase_at.core.exceptions import (
    FirebaseATError,
    SerialPortError,
    SerialPortBusyError,
    ConnectionTimeoutError,
    ConfigurationError,
)
from firebase_at.core.serial_handler import SerialHandler, PortInfo
from firebase_at.core.response_collector import ResponseCollector, Transport
from firebase_at.core.at_executor import ATExecutor
from firebase_at.core.wifi_link import WifiLinkMonitor

__all__ = [
    'ATExchange',
    'ExchangeOutcome',
    'SerialHandler',
    'PortInfo',
    'ResponseCollector',
    'Transport',
    'ATExecutor',
    'WifiLinkMonitor',
    'FirebaseATError',
    'SerialPortError',
    'SerialPortBusyError',
    'ConnectionTimeoutError',
    'ConfigurationError',
]
