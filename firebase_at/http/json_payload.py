"""Ordered JSON object builder for write bodies.

Keys serialize in insertion order with compact separators, so the same
calls always produce the same bytes on the wire.
"""

from typing import Any, List, Tuple, Union
import json

Number = Union[int, float]


class JsonPayload:
    """Typed, ordered key/value builder.

    Example:
        >>> payload = JsonPayload().add_object(
        ...     "temperature",
        ...     JsonPayload().add_string("tipe", "sensor").add_number("value", 25)
        ... )
        >>> payload.to_json()
        '{"temperature":{"tipe":"sensor","value":25}}'
    """

    def __init__(self):
        self._fields: List[Tuple[str, Any]] = []

    def add_number(self, key: str, value: Number) -> 'JsonPayload':
        """Add a number; integral floats are written without a fraction."""
        if isinstance(value, bool):
            raise TypeError(f"Expected a number for '{key}', got bool")
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return self._set(key, value)

    def add_string(self, key: str, value: str) -> 'JsonPayload':
        return self._set(key, str(value))

    def add_boolean(self, key: str, value: bool) -> 'JsonPayload':
        return self._set(key, bool(value))

    def add_object(self, key: str, value: 'JsonPayload') -> 'JsonPayload':
        return self._set(key, value)

    def _set(self, key: str, value: Any) -> 'JsonPayload':
        # Re-adding a key replaces the value but keeps its original position.
        for index, (existing, _) in enumerate(self._fields):
            if existing == key:
                self._fields[index] = (key, value)
                return self
        self._fields.append((key, value))
        return self

    def keys(self) -> List[str]:
        return [key for key, _ in self._fields]

    def to_dict(self) -> dict:
        return {
            key: value.to_dict() if isinstance(value, JsonPayload) else value
            for key, value in self._fields
        }

    def to_json(self) -> str:
        """Serialize compactly, preserving key order.

        Raises:
            ValueError: A number is NaN or infinite
        """
        return json.dumps(self.to_dict(), separators=(',', ':'), allow_nan=False)

    def __len__(self) -> int:
        return len(self._fields)

    def __str__(self) -> str:
        return self.to_json()


def single_value_payload(device_name: str, value: Union[Number, str]) -> JsonPayload:
    """Build ``{"<device_name>":{"value":<value>}}``."""
    inner = JsonPayload()
    if isinstance(value, str):
        inner.add_string("value", value)
    else:
        inner.add_number("value", value)
    return JsonPayload().add_object(device_name, inner)


def sensor_payload(readings: List[Tuple[str, Number, str]]) -> JsonPayload:
    """Build the multi-sensor body.

    Each reading is (name, value, unit) and becomes
    ``"<name>":{"tipe":"sensor","value":<value>,"satuan":"<unit>"}``.
    """
    payload = JsonPayload()
    for name, value, unit in readings:
        payload.add_object(
            name,
            JsonPayload()
            .add_string("tipe", "sensor")
            .add_number("value", value)
            .add_string("satuan", unit)
        )
    return payload
