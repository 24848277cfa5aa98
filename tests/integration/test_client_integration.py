"""Integration tests for FirebaseClient over a scripted ESP-AT modem.

Runs the full stack (client, executor, collector, request builder, framing
stripper, extractor) against FakeModem and checks what went over the wire.
"""

from collections import deque

import pytest

from firebase_at.client import FailureReason, RequestState
from firebase_at.config.config_models import FirebaseConfig, LogLevel
from firebase_at.core.exceptions import SerialPortError
from firebase_at.http.request_builder import HttpMethod
from firebase_at.logging import CommunicationLogger


class TestEndToEnd:
    """Full request flows against FakeModem."""

    def test_read_on_value(self, make_modem, make_client):
        """Test a quoted "on" reads back as text but not as a boolean."""
        client = make_client(make_modem('"on"'))

        assert client.read_value("relay") == "on"
        assert client.read_boolean("relay") is False

    def test_wire_sequence(self, make_modem, make_client):
        """Test the exact command sequence for one read."""
        modem = make_modem("512")
        client = make_client(modem)

        assert client.read_dimmer("dimmer") == 512

        request = (
            "GET /home/dimmer/value.json?auth=s3cr3t HTTP/1.1\r\n"
            "Host: demo-rtdb.firebaseio.com\r\n"
            "Connection: close\r\n"
            "\r\n"
        )
        assert modem.commands == [
            "AT+CWJAP?",
            'AT+CIPSTART="SSL","demo-rtdb.firebaseio.com",443',
            f"AT+CIPSEND={len(request)}",
            "AT+CIPCLOSE",
        ]
        assert modem.payloads == [request]

    def test_without_echo(self, make_modem, make_client):
        """Test firmware with echo disabled (ATE0) works the same."""
        client = make_client(make_modem("1", echo=False))

        assert client.read_boolean("lamp") is True

    def test_write_and_delete(self, make_modem, make_client):
        """Test writes and deletes succeed on 200 and close each time."""
        modem = make_modem('{"name":"-Nx1"}')
        client = make_client(modem)

        assert client.write_number("counter", 7) is True
        assert client.send_multi_sensor(25, 60, 500) is True
        assert client.delete("counter") is True

        assert modem.opens == 3
        assert modem.closes == 3
        assert modem.payloads[0].endswith('\r\n\r\n{"counter":{"value":7}}')
        assert modem.payloads[2].startswith("DELETE /home/counter.json?auth=s3cr3t ")

    def test_sequential_requests_independent(self, make_modem, make_client):
        """Test leftover modem output does not leak into the next request."""
        modem = make_modem('"first"')
        client = make_client(modem)

        assert client.read_value("a") == "first"
        modem.http_reply = 'HTTP/1.1 200 OK\r\nConnection: close\r\n\r\n"second"'
        assert client.read_value("b") == "second"

    def test_logger_never_sees_token(self, make_modem, make_client):
        """Test the auth token stays out of every log entry."""
        logger = CommunicationLogger(log_level=LogLevel.INFO, enable_console=False)
        client = make_client(make_modem("1"), logger=logger)

        client.read_value("relay")

        entries = logger.get_entries()
        assert entries
        assert all("s3cr3t" not in entry.to_json() for entry in entries)

    def test_debug_logging_of_failure(self, make_modem, make_client):
        """Test a failed open is logged as a timed out exchange and a FAILED state."""
        modem = make_modem()
        modem.replies["AT+CIPSTART"] = "ERROR\r\nCLOSED\r\n"
        logger = CommunicationLogger(log_level=LogLevel.DEBUG, enable_console=False)

        make_client(modem, logger=logger).read_value("relay")

        warnings = [e for e in logger.get_entries() if e.level == "WARNING"]
        assert warnings[0].outcome == "timed_out"
        assert warnings[-1].details == {"reason": "connect_failed"}


def _connect_error(modem):
    modem.replies["AT+CIPSTART"] = "ERROR\r\nCLOSED\r\n"


def _dns_fail(modem):
    modem.replies["AT+CIPSTART"] = "DNS Fail\r\nERROR\r\n"


def _send_rejected(modem):
    modem.replies["AT+CIPSEND"] = "link is not valid\r\n\r\nERROR\r\n"


def _open_raises(modem):
    modem.raise_on["AT+CIPSTART"] = SerialPortError("write failed", "/dev/ttyFAKE")


def _announce_raises(modem):
    modem.raise_on["AT+CIPSEND"] = SerialPortError("write failed", "/dev/ttyFAKE")


def _payload_raises(modem):
    modem.raise_on[modem.PAYLOAD] = SerialPortError("write timeout", "/dev/ttyFAKE")


def _close_raises(modem):
    modem.raise_on["AT+CIPCLOSE"] = SerialPortError("device disconnected", "/dev/ttyFAKE")


def _silent_server(modem):
    modem.http_reply = ""


def _not_found(modem):
    modem.http_reply = "HTTP/1.1 404 Not Found\r\nConnection: close\r\n\r\nnull"


def _unauthorized(modem):
    modem.http_reply = 'HTTP/1.1 401 Unauthorized\r\n\r\n{"error":"Permission denied"}'


def _unterminated(modem):
    modem.http_reply = 'HTTP/1.1 200 OK\r\nConnection: close\r\n\r\n"trunc'


def _null_value(modem):
    modem.http_reply = "HTTP/1.1 200 OK\r\n\r\nnull"


OPENING_FAILURES = [
    (_connect_error, FailureReason.CONNECT_FAILED),
    (_dns_fail, FailureReason.CONNECT_FAILED),
    (_send_rejected, FailureReason.SEND_REJECTED),
    (_open_raises, FailureReason.TRANSPORT_ERROR),
    (_announce_raises, FailureReason.TRANSPORT_ERROR),
    (_payload_raises, FailureReason.TRANSPORT_ERROR),
    (_silent_server, FailureReason.BAD_STATUS),
    (_not_found, FailureReason.BAD_STATUS),
    (_unauthorized, FailureReason.BAD_STATUS),
    (_unterminated, FailureReason.NO_VALUE),
    (_null_value, FailureReason.NO_VALUE),
]


class TestCloseOnEveryPath:
    """Exactly one close per open, across every failure branch."""

    @pytest.mark.parametrize("inject,reason", OPENING_FAILURES)
    def test_read_failures(self, make_modem, make_client, inject, reason):
        """Test each failure closes once and reads as ''."""
        modem = make_modem('"on"')
        inject(modem)
        client = make_client(modem)

        result = client.read_result("relay")

        assert result.reason == reason
        assert result.value == ""
        assert result.final_state == RequestState.CLOSED
        assert RequestState.FAILED in result.states
        assert modem.opens == 1
        assert modem.closes == 1

    @pytest.mark.parametrize("inject,reason", OPENING_FAILURES[:9])
    def test_write_failures(self, make_modem, make_client, inject, reason):
        """Test write failures close once and return False."""
        modem = make_modem("{}")
        inject(modem)
        client = make_client(modem)

        assert client.write_number("counter", 1) is False
        assert modem.opens == modem.closes == 1

    def test_close_raising_still_counts_once(self, make_modem, make_client):
        """Test a close that raises is attempted once and swallowed."""
        modem = make_modem('"on"')
        _close_raises(modem)

        assert make_client(modem).read_value("relay") == "on"
        assert modem.opens == modem.closes == 1

    def test_success_closes_once(self, make_modem, make_client):
        """Test the success path closes once too."""
        modem = make_modem('"on"')
        client = make_client(modem)

        for _ in range(3):
            client.read_value("relay")

        assert modem.opens == modem.closes == 3

    @pytest.mark.parametrize("config", [
        FirebaseConfig(database_url="", auth_token="s3cr3t"),
        FirebaseConfig(database_url="https://demo-rtdb.firebaseio.com/", auth_token=""),
    ])
    def test_missing_config_sends_nothing(self, make_modem, make_client, config):
        """Test missing configuration issues no command at all."""
        modem = make_modem('"on"')
        client = make_client(modem, config=config)

        assert client.read_value("relay") == ""
        assert client.write_number("counter", 1) is False
        assert client.read_dimmer("dimmer") == 0
        assert modem.writes == []

    def test_link_down_opens_nothing(self, make_modem, make_client):
        """Test no WiFi association issues only the link check."""
        modem = make_modem('"on"')
        modem.replies["AT+CWJAP?"] = "No AP\r\n\r\nOK\r\n"
        client = make_client(modem)

        result = client.request(HttpMethod.GET, "home/relay/value")

        assert result.reason == FailureReason.LINK_DOWN
        assert result.states == (RequestState.IDLE, RequestState.FAILED)
        assert modem.commands == ["AT+CWJAP?"]
        assert modem.opens == modem.closes == 0


class ChunkedModem:
    """Transport handing out each scripted reply one chunk per read."""

    def __init__(self, replies):
        self.replies = replies
        self.commands = []
        self._pending = deque()

    def write(self, data):
        if data.startswith("AT") and data.endswith("\r\n"):
            command = data[:-2]
            self.commands.append(command)
            chunks = next((c for prefix, c in self.replies.items() if command.startswith(prefix)),
                          ["ERROR\r\n"])
            self._pending.extend(chunks)
        return len(data)

    def read_available(self):
        return self._pending.popleft() if self._pending else ""


class TestSplitReplies:
    """Replies that reach the host over several reads."""

    def test_link_check_reply_does_not_leak_into_open(self, make_client):
        """Test a late CIPSTART error is not masked by the link check's trailing OK."""
        modem = ChunkedModem({
            "AT+CWJAP?": ['+CWJAP:"home-ap",-52\r\n', "\r\nOK\r\n"],
            "AT+CIPSTART": ["", "ERROR\r\n"],
            "AT+CIPCLOSE": ["CLOSED\r\n", "\r\nOK\r\n"],
        })
        client = make_client(modem)

        result = client.read_result("relay")

        assert result.reason == FailureReason.CONNECT_FAILED
        assert [c.split("=")[0] for c in modem.commands] == ["AT+CWJAP?", "AT+CIPSTART", "AT+CIPCLOSE"]
        open_exchange = client.executor.get_history()[1]
        assert not open_exchange.is_successful()
        assert "ERROR" in open_exchange.buffer
