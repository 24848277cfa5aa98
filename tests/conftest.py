"""Shared fixtures: a scripted ESP-AT modem and fast timing."""

from typing import Dict, List, Optional

import pytest

from firebase_at.config.config_models import FirebaseConfig, TimingConfig


HTTP_OK_HEADERS = (
    "HTTP/1.1 200 OK\r\n"
    "Server: nginx\r\n"
    "Content-Type: application/json; charset=utf-8\r\n"
    "Connection: close\r\n"
)


def http_response(body: str, status: str = "200 OK") -> str:
    """Build a Realtime Database style HTTP response around ``body``."""
    headers = HTTP_OK_HEADERS.replace("200 OK", status)
    return f"{headers}Content-Length: {len(body)}\r\n\r\n{body}"


class FakeModem:
    """In-memory transport that answers AT commands like ESP-AT firmware.

    Replies are looked up by command prefix and queued for the next
    read_available() call. Anything written without a CRLF terminator is
    treated as a request payload and answered with ``http_reply``.

    Attributes:
        writes: Every string passed to write(), in order
        commands: AT commands (without CRLF), in order
        payloads: Raw payload writes, in order
        replies: Prefix -> reply text; edit to script failures
        raise_on: Prefix -> exception raised when that command is written
    """

    DEFAULT_REPLIES = {
        "AT+CWJAP?": '+CWJAP:"home-ap","aa:bb:cc:dd:ee:ff",6,-52\r\n\r\nOK\r\n',
        "AT+CIPSTART": "CONNECT\r\n\r\nOK\r\n",
        "AT+CIPSEND": "\r\nOK\r\n> ",
        "AT+CIPCLOSE": "CLOSED\r\n\r\nOK\r\n",
    }
    PAYLOAD = "<payload>"

    def __init__(self, http_reply: str = "", echo: bool = True):
        self.http_reply = http_reply
        self.echo = echo
        self.replies: Dict[str, str] = dict(self.DEFAULT_REPLIES)
        self.raise_on: Dict[str, Exception] = {}
        self.writes: List[str] = []
        self.commands: List[str] = []
        self.payloads: List[str] = []
        self._pending = ""

    def write(self, data: str) -> int:
        self.writes.append(data)

        if data.startswith("AT") and data.endswith("\r\n"):
            command = data[:-2]
            self.commands.append(command)
            self._raise_for(command)
            if self.echo:
                self._pending += data
            self._pending += self._reply_for(command)
        else:
            self.payloads.append(data)
            self._raise_for(self.PAYLOAD)
            size = len(data.encode("utf-8"))
            self._pending += f"\r\nRecv {size} bytes\r\n\r\nSEND OK\r\n"
            if self.http_reply:
                self._pending += f"\r\n+IPD,{len(self.http_reply)}:{self.http_reply}CLOSED\r\n"

        return len(data.encode("utf-8"))

    def read_available(self) -> str:
        data, self._pending = self._pending, ""
        return data

    def count(self, prefix: str) -> int:
        return sum(1 for command in self.commands if command.startswith(prefix))

    @property
    def opens(self) -> int:
        return self.count("AT+CIPSTART")

    @property
    def closes(self) -> int:
        return self.count("AT+CIPCLOSE")

    def _reply_for(self, command: str) -> str:
        for prefix, reply in self.replies.items():
            if command.startswith(prefix):
                return reply
        return "ERROR\r\n"

    def _raise_for(self, command: str) -> None:
        for prefix, error in self.raise_on.items():
            if command.startswith(prefix):
                raise error


@pytest.fixture
def make_modem():
    """Factory for a FakeModem answering requests with ``body``."""
    def _make(body: str = "null", status: str = "200 OK", echo: bool = True) -> FakeModem:
        return FakeModem(http_reply=http_response(body, status), echo=echo)
    return _make


@pytest.fixture
def firebase_config():
    return FirebaseConfig(
        database_url="https://demo-rtdb.firebaseio.com/",
        auth_token="s3cr3t",
        base_path="home"
    )


@pytest.fixture
def fast_timing():
    """Timeouts short enough that failing exchanges finish quickly."""
    return TimingConfig(
        connect_timeout_ms=50,
        send_timeout_ms=50,
        post_send_pause_ms=0,
        response_timeout_ms=20,
        close_timeout_ms=20,
        abort_close_timeout_ms=30,
        link_check_timeout_ms=20
    )


@pytest.fixture
def make_client(firebase_config, fast_timing):
    """Factory building a FirebaseClient around a FakeModem."""
    from firebase_at.client import FirebaseClient
    from firebase_at.core.at_executor import ATExecutor
    from firebase_at.core.wifi_link import WifiLinkMonitor

    def _make(modem: FakeModem,
              config: Optional[FirebaseConfig] = None,
              link=None,
              logger=None):
        executor = ATExecutor(modem, poll_interval=0.001, logger=logger)
        if link is None:
            link = WifiLinkMonitor(executor, timeout_ms=fast_timing.link_check_timeout_ms)
        return FirebaseClient(
            config or firebase_config,
            executor,
            is_wifi_connected=link,
            timing=fast_timing,
            logger=logger
        )

    return _make
