"""Layered configuration loading for firebase-at.

Configuration is built in layers, each overriding the previous one:

1. Defaults from defaults.py
2. config.yaml (explicit path, ./config.yaml or ~/.firebase-at/config.yaml)
3. Environment variables named FIREBASE_AT_<SECTION>_<KEY>
4. JSON Schema validation

The resulting Config is handed to FirebaseClient explicitly; nothing is
stored in module or class state.
"""

from pathlib import Path
from typing import Optional, Dict, Any, List, Mapping
from copy import deepcopy
from dataclasses import fields, replace
import logging
import os

import yaml

from firebase_at.config.config_models import Config, LogLevel
from firebase_at.config.defaults import get_default_config
from firebase_at.config.config_schema import ConfigSchema
from firebase_at.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "FIREBASE_AT_"


class ConfigLoader:
    """Builds a validated Config from defaults, file and environment.

    Example:
        >>> loader = ConfigLoader(Path("config.yaml"))
        >>> config = loader.load()
        >>> config.firebase.base_path
        'devices'
        >>> loader.show_config()["firebase"]["base_path"]
        {'value': 'devices', 'source': 'file'}
    """

    def __init__(self,
                 config_path: Optional[Path] = None,
                 environ: Optional[Mapping[str, str]] = None):
        """Initialize loader.

        Args:
            config_path: Explicit config.yaml path. If None, standard locations are searched.
            environ: Environment mapping (default: os.environ)
        """
        self.config_path = Path(config_path) if config_path else None
        self.environ = environ if environ is not None else os.environ
        self._config: Optional[Config] = None
        self._config_source: Dict[str, str] = {}

    def load(self, skip_validation: bool = False) -> Config:
        """Load and validate configuration.

        Returns:
            Config: Validated configuration.

        Raises:
            ConfigurationError: Merged configuration failed validation or an
                environment value could not be converted.
        """
        self._config_source = {}

        config_dict = get_default_config().to_dict()
        self._mark_source(config_dict, "default")

        path = self.config_path or self._search_config_paths()
        if path and path.exists():
            try:
                file_config = self._load_from_file(path)
                config_dict = self._merge_configs(config_dict, file_config)
                self._mark_source(file_config, "file")
                self.config_path = path
            except (OSError, yaml.YAMLError) as e:
                logger.warning("Failed to load config from %s: %s; using defaults", path, e)

        env_overrides = self._apply_env_overrides(config_dict)
        if env_overrides:
            config_dict = self._merge_configs(config_dict, env_overrides)
            self._mark_source(env_overrides, "env")

        if not skip_validation:
            is_valid, errors = ConfigSchema.validate_config(config_dict)
            if not is_valid:
                raise ConfigurationError(
                    "Configuration validation failed",
                    source=str(self.config_path) if self.config_path else None,
                    errors=errors
                )

        self._config = self._dict_to_config(config_dict)
        return self._config

    def get_config(self) -> Config:
        """Return the last loaded configuration.

        Raises:
            RuntimeError: If load() has not been called.
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    def validate(self) -> List[str]:
        """Validate the loaded configuration; empty list when valid."""
        if self._config is None:
            return ["Configuration not loaded"]
        _, errors = ConfigSchema.validate_config(self._config.to_dict())
        return errors

    def show_config(self, mask_sensitive: bool = True) -> Dict[str, Any]:
        """Return every value with the layer it came from.

        Example:
            {
                "firebase": {
                    "auth_token": {"value": "********abcd", "source": "env"}
                },
                "timing": {
                    "connect_timeout_ms": {"value": 5000, "source": "default"}
                }
            }
        """
        config = self.get_config()
        if mask_sensitive:
            config = config.mask_sensitive()

        result: Dict[str, Any] = {}
        for section, section_values in config.to_dict().items():
            result[section] = {
                key: {
                    "value": value,
                    "source": self._config_source.get(f"{section}.{key}", "unknown")
                }
                for key, value in section_values.items()
            }
        return result

    @staticmethod
    def write_default_config(path: Path, overwrite: bool = False) -> Path:
        """Write the default configuration as YAML.

        Raises:
            FileExistsError: File exists and overwrite is False
        """
        path = Path(path)
        if path.exists() and not overwrite:
            raise FileExistsError(f"Config file already exists: {path}")
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(get_default_config().to_dict(), f, sort_keys=False)
        return path

    @staticmethod
    def _search_config_paths() -> Optional[Path]:
        """Search ./config.yaml, then ~/.firebase-at/config.yaml."""
        search_paths = [
            Path("./config.yaml"),
            Path.home() / ".firebase-at" / "config.yaml"
        ]
        for path in search_paths:
            if path.exists() and path.is_file():
                return path
        return None

    @staticmethod
    def _load_from_file(path: Path) -> Dict[str, Any]:
        with open(path, 'r', encoding='utf-8') as f:
            config_dict = yaml.safe_load(f)
        return config_dict or {}

    def _apply_env_overrides(self, current: Dict[str, Any]) -> Dict[str, Any]:
        """Collect FIREBASE_AT_<SECTION>_<KEY> overrides.

        Values are converted to the type of the value they replace, so an
        auth token of "1234" stays a string while a timeout becomes an int.

        Examples:
            FIREBASE_AT_FIREBASE_AUTH_TOKEN=s3cr3t
            FIREBASE_AT_TIMING_RESPONSE_TIMEOUT_MS=5000
            FIREBASE_AT_LOGGING_CONSOLE_OUTPUT=false
        """
        overrides: Dict[str, Any] = {}

        for env_name, env_value in self.environ.items():
            if not env_name.startswith(ENV_PREFIX):
                continue

            parts = env_name[len(ENV_PREFIX):].lower().split('_', 1)
            if len(parts) != 2:
                continue
            section, key = parts

            existing = current.get(section, {}).get(key)
            overrides.setdefault(section, {})[key] = self._parse_env_value(
                env_name, env_value, existing
            )

        return overrides

    @staticmethod
    def _parse_env_value(name: str, value: str, existing: Any) -> Any:
        """Convert an environment string to the type of ``existing``."""
        if isinstance(existing, bool):
            lowered = value.lower()
            if lowered in ('true', '1', 'yes', 'on'):
                return True
            if lowered in ('false', '0', 'no', 'off'):
                return False
            raise ConfigurationError(f"{name}: expected a boolean, got '{value}'", source="env")

        try:
            if isinstance(existing, int):
                return int(value)
            if isinstance(existing, float):
                return float(value)
        except ValueError:
            raise ConfigurationError(
                f"{name}: expected {type(existing).__name__}, got '{value}'", source="env"
            )

        return value

    @staticmethod
    def _merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Merge section by section; override wins."""
        merged = deepcopy(base)

        for section, section_values in override.items():
            if isinstance(section_values, dict):
                merged.setdefault(section, {})
                if isinstance(merged[section], dict):
                    merged[section].update(section_values)
                    continue
            merged[section] = section_values

        return merged

    def _mark_source(self, config: Dict[str, Any], source: str) -> None:
        for section, section_values in config.items():
            if isinstance(section_values, dict):
                for key in section_values:
                    self._config_source[f"{section}.{key}"] = source

    @staticmethod
    def _dict_to_config(config_dict: Dict[str, Any]) -> Config:
        """Build Config from a validated dictionary; missing keys keep defaults."""
        defaults = get_default_config()
        sections = {}

        for section in fields(Config):
            default_section = getattr(defaults, section.name)
            values = config_dict.get(section.name) or {}
            sections[section.name] = replace(default_section, **{
                f.name: values[f.name] for f in fields(default_section) if f.name in values
            })

        level = sections['logging'].level
        if not isinstance(level, LogLevel):
            sections['logging'] = replace(sections['logging'], level=LogLevel(str(level).upper()))

        return Config(**sections)
