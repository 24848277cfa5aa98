"""Log record shared by the console and in-memory communication logs."""

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Dict, Optional
import json

# (field, label, format) for the optional trailers of a log line, in order.
_TRAILERS = (
    ('command', 'CMD', '{}'),
    ('expected_token', 'WAIT', '{}'),
    ('outcome', 'OUTCOME', '{}'),
    ('execution_time', 'TIME', '{:.3f}s'),
    ('error', 'ERROR', '{}'),
)


@dataclass(frozen=True)
class LogEntry:
    """One communication event: an exchange, a state change, a port event.

    ``details`` holds structured extras (received text, transition names);
    the remaining optional fields are set only by exchange and error entries.

    Example:
        >>> LogEntry(timestamp=datetime(2026, 1, 12, 10, 30, 15, 234000), level="INFO",
        ...          source="ATExecutor", message="Exchange finished",
        ...          command="AT+CIPCLOSE", expected_token="OK",
        ...          outcome="matched", execution_time=0.042).to_string()
        '2026-01-12 10:30:15.234 | INFO    | ATExecutor      | Exchange finished | CMD: AT+CIPCLOSE | WAIT: OK | OUTCOME: matched | TIME: 0.042s'
    """

    timestamp: datetime
    level: str
    source: str
    message: str
    details: Optional[Dict[str, Any]] = None

    port: Optional[str] = None
    command: Optional[str] = None
    expected_token: Optional[str] = None
    outcome: Optional[str] = None
    execution_time: Optional[float] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data['timestamp'] = self.timestamp.isoformat()
        return data

    def to_string(self) -> str:
        stamp = self.timestamp.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        parts = [stamp, f"{self.level:7}", f"{self.source:15}", self.message]
        for name, label, template in _TRAILERS:
            value = getattr(self, name)
            # TIME keeps a 0.0 duration; text trailers skip empty strings.
            if value is None or value == '':
                continue
            parts.append(f"{label}: {template.format(value)}")
        return " | ".join(parts)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LogEntry':
        """Rebuild an entry; ``timestamp`` may be a datetime or ISO text."""
        values = {f.name: data.get(f.name) for f in fields(cls)}
        if isinstance(values['timestamp'], str):
            values['timestamp'] = datetime.fromisoformat(values['timestamp'])
        return cls(**values)

    @classmethod
    def from_json(cls, json_str: str) -> 'LogEntry':
        return cls.from_dict(json.loads(json_str))
