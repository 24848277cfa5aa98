"""Response parsing layer."""

from firebase_at.parsers.modem_framing import strip_modem_framing
from firebase_at.parsers.value_extractor import (
    ValueExtractor,
    ScalarValueExtractor,
    response_body,
    is_success_response,
    to_bool,
    to_int,
    to_percentage,
)

__all__ = [
    'strip_modem_framing',
    'ValueExtractor',
    'ScalarValueExtractor',
    'response_body',
    'is_success_response',
    'to_bool',
    'to_int',
    'to_percentage',
]
