"""firebase-at - Firebase Realtime Database relay over an AT-command WiFi modem.

This package provides:
- Serial transport and single-flight AT command execution
- HTTP-over-AT request framing for the Realtime Database REST API
- Minimal scalar value extraction from raw HTTP responses
- A client that reads, writes and deletes device values
"""

from firebase_at.core import (
    ATExchange,
    ExchangeOutcome,
    SerialHandler,
    PortInfo,
    ResponseCollector,
    ATExecutor,
    WifiLinkMonitor,
    FirebaseATError,
    SerialPortError,
    ConfigurationError,
)
from firebase_at.http import HttpMethod, JsonPayload, build_request, normalize_path, extract_host
from firebase_at.parsers import ValueExtractor, ScalarValueExtractor
from firebase_at.client import FirebaseClient, RequestResult, RequestState, FailureReason

__version__ = "0.1.0"

__all__ = [
    # Core
    "ATExchange",
    "ExchangeOutcome",
    "SerialHandler",
    "PortInfo",
    "ResponseCollector",
    "ATExecutor",
    "WifiLinkMonitor",
    # HTTP
    "HttpMethod",
    "JsonPayload",
    "build_request",
    "normalize_path",
    "extract_host",
    # Parsers
    "ValueExtractor",
    "ScalarValueExtractor",
    # Client
    "FirebaseClient",
    "RequestResult",
    "RequestState",
    "FailureReason",
    # Exceptions
    "FirebaseATError",
    "SerialPortError",
    "ConfigurationError",
]
