"""Frozen configuration sections; every default lets the client run unconfigured."""

from dataclasses import dataclass, field, asdict, replace
from enum import Enum
from typing import Optional, Dict, Any


class LogLevel(Enum):
    """Minimum level for the communication log."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass(frozen=True)
class FirebaseConfig:
    """Realtime Database addressing.

    An empty database_url or auth_token leaves the client unconfigured, and
    every operation returns its default without touching the modem.
    """
    database_url: str = ""
    auth_token: str = ""
    base_path: str = ""
    write_method: str = "POST"

    def is_configured(self) -> bool:
        return bool(self.database_url) and bool(self.auth_token)


@dataclass(frozen=True)
class ModemConfig:
    """Serial link to the modem."""
    port: Optional[str] = None
    baud_rate: int = 115200
    write_timeout: float = 1.0
    poll_interval_ms: int = 10


@dataclass(frozen=True)
class TimingConfig:
    """Per-step timeouts for one HTTP-over-AT request, in milliseconds."""
    connect_timeout_ms: int = 5000
    send_timeout_ms: int = 2000
    send_ack_token: str = "OK"
    post_send_pause_ms: int = 100
    response_timeout_ms: int = 3000
    response_terminator: str = ""
    close_timeout_ms: int = 500
    abort_close_timeout_ms: int = 1000
    link_check_timeout_ms: int = 1000


@dataclass(frozen=True)
class LoggingConfig:
    """Communication log filtering and stderr echo."""
    level: LogLevel = LogLevel.INFO
    console_output: bool = True


@dataclass(frozen=True)
class Config:
    firebase: FirebaseConfig = field(default_factory=FirebaseConfig)
    modem: ModemConfig = field(default_factory=ModemConfig)
    timing: TimingConfig = field(default_factory=TimingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Nested plain dictionary, enum members replaced by their values."""
        return {
            section: {key: value.value if isinstance(value, Enum) else value
                      for key, value in values.items()}
            for section, values in asdict(self).items()
        }

    def mask_sensitive(self) -> 'Config':
        """Return copy with the auth token masked to its last 4 characters."""
        token = self.firebase.auth_token
        if len(token) > 4:
            token = '*' * (len(token) - 4) + token[-4:]
        return replace(self, firebase=replace(self.firebase, auth_token=token))
