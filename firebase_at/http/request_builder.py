"""HTTP-over-AT request construction.

Builds the three AT commands that frame one request on the modem (open,
length announce, close) together with the HTTP/1.1 request text addressed
to the Realtime Database REST API: ``/<path>.json?auth=<token>``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

SSL_PORT = 443
CONNECTION_MODE = "SSL"
CRLF = "\r\n"


class HttpMethod(Enum):
    """HTTP methods understood by the Realtime Database REST API."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


@dataclass(frozen=True)
class ATCommandSequence:
    """AT commands that frame one request.

    Attributes:
        open: Opens the secure connection
        announce: Announces the request byte length
        close: Tears the connection down
    """
    open: str
    announce: str
    close: str


@dataclass(frozen=True)
class HttpRequest:
    """One HTTP request, built fresh per call.

    Attributes:
        method: HTTP method
        path: Database path, already normalized
        host: Database host, already stripped of scheme
        auth_token: Value of the ``auth`` query parameter
        body: JSON text for writes, None otherwise
    """
    method: HttpMethod
    path: str
    host: str
    auth_token: str
    body: Optional[str] = None

    @property
    def target(self) -> str:
        return f"/{self.path}.json?auth={self.auth_token}"

    def to_text(self) -> str:
        """Render the request exactly as it goes on the wire."""
        lines = [
            f"{self.method.value} {self.target} HTTP/1.1",
            f"Host: {self.host}",
        ]
        if self.body is not None:
            lines.append("Content-Type: application/json")
            lines.append(f"Content-Length: {len(self.body.encode('utf-8'))}")
        lines.append("Connection: close")

        text = CRLF.join(lines) + CRLF + CRLF
        if self.body is not None:
            text += self.body
        return text


def normalize_path(path: str) -> str:
    """Strip leading slashes so the path can follow a single '/'.

    Example:
        >>> normalize_path("/devices/relay/value")
        'devices/relay/value'
    """
    return path.lstrip("/")


def extract_host(url: str) -> str:
    """Reduce a database URL to its host name.

    Removes a leading ``https://`` or ``http://`` and one trailing slash.

    Example:
        >>> extract_host("https://demo-default-rtdb.firebaseio.com/")
        'demo-default-rtdb.firebaseio.com'
    """
    host = url
    for scheme in ("https://", "http://"):
        if host.startswith(scheme):
            host = host[len(scheme):]
            break
    if host.endswith("/"):
        host = host[:-1]
    return host


def build_request(method: Union[HttpMethod, str],
                  path: str,
                  host: str,
                  auth_token: str,
                  body: Optional[str] = None) -> Tuple[ATCommandSequence, str]:
    """Build the AT framing and HTTP text for one request.

    Args:
        method: HTTP method (enum member or name, case-insensitive)
        path: Database path, leading slashes allowed
        host: Database host or URL
        auth_token: Database secret or ID token
        body: JSON text for writes

    Returns:
        (ATCommandSequence, request text)

    Raises:
        ValueError: Unknown method name

    Example:
        >>> commands, text = build_request("GET", "/relay/value", "x.firebaseio.com", "s3cr3t")
        >>> commands.open
        'AT+CIPSTART="SSL","x.firebaseio.com",443'
        >>> text.splitlines()[0]
        'GET /relay/value.json?auth=s3cr3t HTTP/1.1'
    """
    if isinstance(method, str):
        method = HttpMethod(method.upper())

    request = HttpRequest(
        method=method,
        path=normalize_path(path),
        host=extract_host(host),
        auth_token=auth_token,
        body=body
    )
    text = request.to_text()

    commands = ATCommandSequence(
        open=f'AT+CIPSTART="{CONNECTION_MODE}","{request.host}",{SSL_PORT}',
        announce=f"AT+CIPSEND={len(text.encode('utf-8'))}",
        close="AT+CIPCLOSE"
    )
    return commands, text
