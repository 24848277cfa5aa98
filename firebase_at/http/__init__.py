"""HTTP-over-AT request construction and JSON write bodies."""

from firebase_at.http.request_builder import (
    HttpMethod,
    HttpRequest,
    ATCommandSequence,
    build_request,
    normalize_path,
    extract_host,
)
from firebase_at.http.json_payload import JsonPayload, single_value_payload, sensor_payload

__all__ = [
    'HttpMethod',
    'HttpRequest',
    'ATCommandSequence',
    'build_request',
    'normalize_path',
    'extract_host',
    'JsonPayload',
    'single_value_payload',
    'sensor_payload',
]
