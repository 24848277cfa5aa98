"""Firebase Realtime Database client over an AT-command WiFi modem.

Every request runs the same state machine:

    IDLE -> CONNECTING -> REQUEST_SENT -> AWAITING_RESPONSE -> PARSED | FAILED -> CLOSED

The modem has a single connection slot, so once the open command has been
issued the close command is issued exactly once on every path, including
transport errors. Requests that are short-circuited (missing configuration,
no WiFi) go IDLE -> FAILED without touching the modem.

No operation raises for runtime failures. Reads return '', False or 0 and
writes return False; request_*() and read_result() expose the reason.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple, Union, TYPE_CHECKING
import time

from firebase_at.config.config_models import FirebaseConfig, TimingConfig
from firebase_at.core.at_executor import ATExecutor
from firebase_at.core.exceptions import SerialPortError
from firebase_at.http.json_payload import JsonPayload, single_value_payload, sensor_payload
from firebase_at.http.request_builder import HttpMethod, build_request, extract_host, normalize_path
from firebase_at.parsers.modem_framing import strip_modem_framing
from firebase_at.parsers.value_extractor import (
    ValueExtractor,
    ScalarValueExtractor,
    is_success_response,
    to_bool,
    to_int,
    to_percentage,
)

if TYPE_CHECKING:
    from firebase_at.logging.communication_logger import CommunicationLogger

OPEN_OK_TOKEN = "OK"
CLOSE_OK_TOKEN = "OK"

Number = Union[int, float]


class RequestState(Enum):
    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    REQUEST_SENT = "REQUEST_SENT"
    AWAITING_RESPONSE = "AWAITING_RESPONSE"
    PARSED = "PARSED"
    FAILED = "FAILED"
    CLOSED = "CLOSED"


class FailureReason(Enum):
    """Why a request produced its default value."""
    CONFIG_MISSING = "config_missing"
    LINK_DOWN = "link_down"
    CONNECT_FAILED = "connect_failed"
    SEND_REJECTED = "send_rejected"
    TRANSPORT_ERROR = "transport_error"
    BAD_STATUS = "bad_status"
    NO_VALUE = "no_value"
    BAD_WRITE_METHOD = "bad_write_method"


# Failures that leave the connection half-open get the longer close timeout.
ABORT_REASONS = frozenset({
    FailureReason.CONNECT_FAILED,
    FailureReason.SEND_REJECTED,
    FailureReason.TRANSPORT_ERROR,
})

WRITE_METHODS = (HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH)


@dataclass(frozen=True)
class RequestResult:
    """Outcome of one request.

    Attributes:
        method: HTTP method name
        path: Normalized database path
        states: Every state the request passed through, in order
        reason: None on success, otherwise why it failed
        raw_response: Text collected from the modem ('' if none)
        value: Extracted value for reads ('' otherwise)
    """
    method: str
    path: str
    states: Tuple[RequestState, ...]
    reason: Optional[FailureReason] = None
    raw_response: str = ""
    value: str = ""

    @property
    def ok(self) -> bool:
        return self.reason is None

    @property
    def final_state(self) -> RequestState:
        return self.states[-1]


class FirebaseClient:
    """Reads, writes and deletes device values in a Realtime Database.

    Example:
        >>> executor = ATExecutor(SerialHandler('/dev/ttyUSB0'))
        >>> client = FirebaseClient(
        ...     FirebaseConfig(database_url="https://demo.firebaseio.com/",
        ...                    auth_token="s3cr3t", base_path="home"),
        ...     executor,
        ...     is_wifi_connected=WifiLinkMonitor(executor),
        ... )
        >>> client.write_number("counter", 7)
        True
        >>> client.read_value("relay")
        'on'
    """

    def __init__(self,
                 config: FirebaseConfig,
                 executor: ATExecutor,
                 is_wifi_connected: Callable[[], bool],
                 timing: Optional[TimingConfig] = None,
                 extractor: Optional[ValueExtractor] = None,
                 logger: Optional['CommunicationLogger'] = None):
        """Initialize client.

        Args:
            config: Database URL, auth token and base path
            executor: ATExecutor bound to the modem transport
            is_wifi_connected: Link gate checked before every request
            timing: Per-step timeouts (default: TimingConfig())
            extractor: Value extractor for reads (default: ScalarValueExtractor)
            logger: Optional CommunicationLogger
        """
        self.config = config
        self.executor = executor
        self.is_wifi_connected = is_wifi_connected
        self.timing = timing or TimingConfig()
        self.extractor = extractor or ScalarValueExtractor()
        self.logger = logger

    # Reads

    def read_result(self, device_name: str) -> RequestResult:
        """GET ``<base>/<device>/value`` and extract its scalar."""
        return self.request(HttpMethod.GET, self._device_path(device_name, "value"))

    def read_value(self, device_name: str) -> str:
        """Return the device value as text, '' when absent or on failure."""
        return self.read_result(device_name).value

    def read_boolean(self, device_name: str) -> bool:
        """True only when the value reads as '1', 'true' or 'TRUE'."""
        return to_bool(self.read_value(device_name))

    def is_on(self, device_name: str) -> bool:
        return self.read_boolean(device_name)

    def is_off(self, device_name: str) -> bool:
        return not self.read_boolean(device_name)

    def read_dimmer(self, device_name: str) -> int:
        """Return the digits of the value as a non-negative integer (0 if empty)."""
        value = self.read_value(device_name)
        if value == "":
            return 0
        return to_int(value)

    def read_percentage(self, device_name: str) -> int:
        """Dimmer value scaled from [0, 1024] to [0, 100]."""
        return to_percentage(self.read_dimmer(device_name))

    # Writes

    def write_number(self, device_name: str, value: Number) -> bool:
        """Write ``{"<device>":{"value":<number>}}`` under the base path."""
        return self._write_payload(lambda: single_value_payload(device_name, value))

    def write_string(self, device_name: str, value: str) -> bool:
        return self._write_payload(lambda: single_value_payload(device_name, str(value)))

    def write_boolean(self, device_name: str, value: bool) -> bool:
        """Booleans are stored as 1 and 0 so read_boolean() recognises them."""
        return self._write_payload(lambda: single_value_payload(device_name, 1 if value else 0))

    def send_multi_sensor(self, temperature: Number, humidity: Number, light: Number) -> bool:
        """Write temperature (C), humidity (%) and light (lux) in one request."""
        return self._write_payload(lambda: sensor_payload([
            ("temperature", temperature, "C"),
            ("humidity", humidity, "%"),
            ("light", light, "lux"),
        ]))

    def send_json(self, json_text: str) -> bool:
        """Write caller-supplied JSON text under the base path as-is."""
        return self.request_write(json_text).ok

    def request_write(self, body: str) -> RequestResult:
        path = normalize_path(self.config.base_path.rstrip("/"))
        method = self._write_method()
        if method is None:
            if self.logger:
                self.logger.log_error(source="FirebaseClient",
                                      error=f"Unsupported write method: {self.config.write_method!r}")
            states = [RequestState.IDLE]
            self._enter(states, RequestState.FAILED, FailureReason.BAD_WRITE_METHOD)
            return RequestResult(method=str(self.config.write_method), path=path, states=tuple(states),
                                 reason=FailureReason.BAD_WRITE_METHOD)
        return self.request(method, path, body)

    # Delete

    def delete(self, device_name: str) -> bool:
        """DELETE ``<base>/<device>``."""
        return self.request_delete(device_name).ok

    def request_delete(self, device_name: str) -> RequestResult:
        return self.request(HttpMethod.DELETE, self._device_path(device_name))

    # Request state machine

    def request(self,
                method: HttpMethod,
                path: str,
                body: Optional[str] = None) -> RequestResult:
        """Run one HTTP-over-AT request.

        Args:
            method: HTTP method
            path: Database path (leading slashes allowed)
            body: JSON text for writes

        Returns:
            RequestResult with the state trail and, for GET, the value
        """
        path = normalize_path(path)
        states: List[RequestState] = [RequestState.IDLE]

        def finish(reason: Optional[FailureReason], raw: str = "", value: str = "") -> RequestResult:
            return RequestResult(
                method=method.value,
                path=path,
                states=tuple(states),
                reason=reason,
                raw_response=raw,
                value=value
            )

        if not self.config.is_configured():
            self._enter(states, RequestState.FAILED, FailureReason.CONFIG_MISSING)
            return finish(FailureReason.CONFIG_MISSING)

        if not self._link_up():
            self._enter(states, RequestState.FAILED, FailureReason.LINK_DOWN)
            return finish(FailureReason.LINK_DOWN)

        commands, request_text = build_request(
            method, path, self.config.database_url, self.config.auth_token, body
        )
        if self.logger:
            self.logger.log_request(method.value, extract_host(self.config.database_url), path)

        # Anything that escapes the try block leaves this in place.
        reason: Optional[FailureReason] = FailureReason.TRANSPORT_ERROR
        raw = ""
        value = ""

        self._enter(states, RequestState.CONNECTING)
        try:
            if not self.executor.execute(commands.open, OPEN_OK_TOKEN,
                                         self.timing.connect_timeout_ms):
                reason = FailureReason.CONNECT_FAILED
            elif not self.executor.execute(commands.announce, self.timing.send_ack_token,
                                           self.timing.send_timeout_ms):
                reason = FailureReason.SEND_REJECTED
            else:
                self.executor.send_payload(request_text)
                self._enter(states, RequestState.REQUEST_SENT)
                _pause(self.timing.post_send_pause_ms)

                self._enter(states, RequestState.AWAITING_RESPONSE)
                raw = self.executor.collect(self.timing.response_terminator,
                                            self.timing.response_timeout_ms)
                reason, value = self._interpret(method, raw)
        except SerialPortError as e:
            reason = FailureReason.TRANSPORT_ERROR
            if self.logger:
                self.logger.log_error(source="FirebaseClient", error=str(e))
        finally:
            if reason is None:
                self._enter(states, RequestState.PARSED)
            else:
                self._enter(states, RequestState.FAILED, reason)
            if reason in ABORT_REASONS:
                self._close(commands.close, self.timing.abort_close_timeout_ms)
            else:
                self._close(commands.close, self.timing.close_timeout_ms)
            self._enter(states, RequestState.CLOSED)

        return finish(reason, raw, value)

    def _interpret(self, method: HttpMethod, raw: str) -> Tuple[Optional[FailureReason], str]:
        response = strip_modem_framing(raw)
        if not is_success_response(response):
            return FailureReason.BAD_STATUS, ""
        if method != HttpMethod.GET:
            return None, ""
        value = self.extractor.extract_value(response)
        if value == "":
            return FailureReason.NO_VALUE, ""
        return None, value

    def _close(self, command: str, timeout_ms: int) -> None:
        try:
            self.executor.execute(command, CLOSE_OK_TOKEN, timeout_ms)
        except SerialPortError as e:
            if self.logger:
                self.logger.log_error(source="FirebaseClient", error=f"Close failed: {e}")

    def _link_up(self) -> bool:
        try:
            return bool(self.is_wifi_connected())
        except SerialPortError as e:
            if self.logger:
                self.logger.log_error(source="FirebaseClient", error=f"Link check failed: {e}")
            return False

    def _write_payload(self, build: Callable[[], JsonPayload]) -> bool:
        try:
            body = build().to_json()
        except (TypeError, ValueError) as e:
            if self.logger:
                self.logger.log_error(source="FirebaseClient", error=f"Invalid payload: {e}")
            return False
        return self.request_write(body).ok

    def _write_method(self) -> Optional[HttpMethod]:
        name = str(self.config.write_method or "").upper()
        return next((m for m in WRITE_METHODS if m.value == name), None)

    def _device_path(self, device_name: str, *suffix: str) -> str:
        return normalize_path("/".join((self.config.base_path.rstrip("/"), device_name) + suffix))

    def _enter(self,
               states: List[RequestState],
               state: RequestState,
               reason: Optional[FailureReason] = None) -> None:
        states.append(state)
        if self.logger:
            self.logger.log_state(state.value, reason.value if reason else None)


def _pause(milliseconds: int) -> None:
    if milliseconds > 0:
        time.sleep(milliseconds / 1000.0)
