"""Removal of ESP-AT framing around a received HTTP response.

After a request is sent the firmware interleaves its own lines with the
server's bytes:

    \\r\\nRecv 92 bytes\\r\\n\\r\\nSEND OK\\r\\n\\r\\n+IPD,311:HTTP/1.1 200 OK ... CLOSED\\r\\n

The "Recv/SEND OK" preamble contains a blank line of its own, so it has to
go before the body is located.
"""

import logging
import re

logger = logging.getLogger(__name__)

# "+IPD,<len>:" or, in multi-connection mode, "+IPD,<link>,<len>:"
IPD_MARKER = re.compile(r'(?:\r\n)?\+IPD,\d+(?:,\d+)*:')
HTTP_STATUS_START = "HTTP/"
CLOSED_TRAILER = "CLOSED\r\n"


def strip_modem_framing(raw: str) -> str:
    """Return only the HTTP response carried in ``raw``.

    Text without an HTTP status line is returned with just the +IPD markers
    removed, so callers still see whatever the modem sent.
    """
    text = IPD_MARKER.sub('', raw)

    start = text.find(HTTP_STATUS_START)
    if start < 0:
        logger.debug("No HTTP status line in %d chars from modem", len(raw))
        return text
    text = text[start:]

    if text.endswith(CLOSED_TRAILER):
        text = text[:-len(CLOSED_TRAILER)]
        if text.endswith("\r\n"):
            text = text[:-2]
    return text
