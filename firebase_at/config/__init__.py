"""Configuration package.

Provides configuration models with defaults, YAML file loading,
environment variable overrides and schema validation.
"""

from firebase_at.config.config_loader import ConfigLoader
from firebase_at.config.config_models import (
    Config,
    FirebaseConfig,
    ModemConfig,
    TimingConfig,
    LoggingConfig,
    LogLevel
)
from firebase_at.config.defaults import get_default_config

__all__ = [
    'ConfigLoader',
    'Config',
    'FirebaseConfig',
    'ModemConfig',
    'TimingConfig',
    'LoggingConfig',
    'LogLevel',
    'get_default_config',
]
