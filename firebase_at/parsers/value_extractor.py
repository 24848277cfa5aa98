"""Scalar value extraction from raw HTTP responses.

The Realtime Database answers a read of ``<device>/value`` with a single JSON
scalar, so no JSON tree is built here. ScalarValueExtractor scans the body
positionally; anything that needs a full parser can implement ValueExtractor
and be handed to the client instead.

Contract
--------
extract_value() returns '' for "no value", never raises, and logs the reason
at DEBUG level:

1. No ``200 OK`` status token            -> ''
2. No blank-line separator               -> ''
3. Body contains ``null`` anywhere       -> ''
4. Body starts with a quote              -> text up to the next quote
   ('' if there is none)
5. Otherwise                             -> first run of digits, '.' and '-'
"""

from abc import ABC, abstractmethod
from typing import Optional
import logging
import math

logger = logging.getLogger(__name__)

SUCCESS_STATUS_TOKEN = "200 OK"
HEADER_SEPARATOR = "\r\n\r\n"
NULL_TOKEN = "null"
NUMERIC_CHARS = frozenset("0123456789.-")
TRUE_LITERALS = ("1", "true", "TRUE")

DIMMER_MAX = 1024
PERCENT_MAX = 100


class ValueExtractor(ABC):
    """Interface for pulling one value out of a raw HTTP response."""

    @abstractmethod
    def extract_value(self, raw_response: str) -> str:
        """Return the value as text, or '' when there is none."""
        pass


class ScalarValueExtractor(ValueExtractor):
    """Positional scanner for single-scalar response bodies."""

    def extract_value(self, raw_response: str) -> str:
        body = response_body(raw_response)
        if body is None:
            return ""

        if NULL_TOKEN in body:
            logger.debug("Body contains null, treating as absent")
            return ""

        if body.startswith('"'):
            end_quote = body.find('"', 1)
            if end_quote < 0:
                logger.debug("Unterminated string value")
                return ""
            return body[1:end_quote]

        digits = []
        for char in body:
            if char in NUMERIC_CHARS:
                digits.append(char)
            elif digits:
                break
        return "".join(digits)


def response_body(raw_response: str) -> Optional[str]:
    """Return the body of a successful response, or None.

    Args:
        raw_response: Text collected from the modem

    Returns:
        Everything after the first blank line, or None if the status token
        or the separator is missing
    """
    if SUCCESS_STATUS_TOKEN not in raw_response:
        logger.debug("No success status in %d chars of response", len(raw_response))
        return None

    separator = raw_response.find(HEADER_SEPARATOR)
    if separator < 0:
        logger.debug("No header/body separator in response")
        return None

    return raw_response[separator + len(HEADER_SEPARATOR):]


def is_success_response(raw_response: str) -> bool:
    """True if the response carries the success status token."""
    return SUCCESS_STATUS_TOKEN in raw_response


def to_bool(value: str) -> bool:
    """Map '1', 'true' and 'TRUE' to True; everything else is False.

    'false' is not special-cased: it is False only because it is not one of
    the true literals, the same as '' or 'on'.
    """
    return value in TRUE_LITERALS


def to_int(value: str) -> int:
    """Accumulate the digit characters of ``value`` in base 10.

    Every other character, including '-', is ignored.

    Example:
        >>> to_int("5.12")
        512
    """
    result = 0
    for char in value:
        if "0" <= char <= "9":
            result = result * 10 + (ord(char) - ord("0"))
    return result


def to_percentage(value: int) -> int:
    """Scale a dimmer reading in [0, 1024] to [0, 100], rounding half up."""
    return int(math.floor(value * PERCENT_MAX / DIMMER_MAX + 0.5))
