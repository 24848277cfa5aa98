"""Default configuration values for zero-config operation.

This module provides sensible defaults for all configuration sections,
allowing the tool to start without a config.yaml file. The Firebase section
is empty by default, so nothing is sent until a URL and token are supplied.
"""

from firebase_at.config.config_models import (
    Config,
    FirebaseConfig,
    ModemConfig,
    TimingConfig,
    LoggingConfig,
    LogLevel
)


def get_default_config() -> Config:
    """Get default configuration.

    Default Values:
        - Firebase: unconfigured, writes use POST
        - Modem: 115200 baud, 10ms poll interval
        - Timing: 5s connect, 2s length announce, 3s response window,
          500ms close (1s when aborting)
        - Logging: INFO level, console output enabled
    """
    return Config(
        firebase=FirebaseConfig(
            database_url="",
            auth_token="",
            base_path="",
            write_method="POST"
        ),
        modem=ModemConfig(
            port=None,  # Must be given on the command line or in config.yaml
            baud_rate=115200,  # ESP-AT factory default
            write_timeout=1.0,
            poll_interval_ms=10
        ),
        timing=TimingConfig(
            connect_timeout_ms=5000,  # TLS handshake on the modem is slow
            send_timeout_ms=2000,
            send_ack_token="OK",
            post_send_pause_ms=100,
            response_timeout_ms=3000,
            response_terminator="",  # Pure time box
            close_timeout_ms=500,
            abort_close_timeout_ms=1000,
            link_check_timeout_ms=1000
        ),
        logging=LoggingConfig(
            level=LogLevel.INFO,
            console_output=True
        )
    )
