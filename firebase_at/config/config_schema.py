"""JSON Schema (Draft 7) for config.yaml plus the checks a schema cannot express.

Error messages name the section and field so a user can find the offending
line in config.yaml without reading jsonschema output.
"""

from typing import Any, Callable, Dict, List, Tuple
import copy

from jsonschema import Draft7Validator
from jsonschema.exceptions import ValidationError

from firebase_at.http.request_builder import extract_host

MAX_TIMEOUT_MS = 120000


def _section(description: str, **properties: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "object",
        "description": description,
        "properties": properties,
        "additionalProperties": False,
    }


def _text(description: str, **constraints: Any) -> Dict[str, Any]:
    return {"type": "string", "description": description, **constraints}


def _milliseconds(description: str) -> Dict[str, Any]:
    return {"type": "integer", "minimum": 0, "maximum": MAX_TIMEOUT_MS, "description": description}


_MESSAGES: Dict[str, Callable[[ValidationError], str]] = {
    "type": lambda e: (f"Expected type {e.validator_value}, "
                       f"got {type(e.instance).__name__} (value: {e.instance})"),
    "enum": lambda e: f"Expected one of {e.validator_value}, got {e.instance}",
    "minimum": lambda e: f"Value must be >= {e.validator_value}, got {e.instance}",
    "maximum": lambda e: f"Value must be <= {e.validator_value}, got {e.instance}",
    "minLength": lambda e: f"Must not be empty, got {e.instance!r}",
}


class ConfigSchema:
    """Validates configuration dictionaries.

    Example:
        >>> is_valid, errors = ConfigSchema.validate_config(config_dict)
        >>> for error in errors:
        ...     print(error)
    """

    # 74880 is the ESP8266 boot ROM rate.
    VALID_BAUD_RATES = [9600, 19200, 38400, 57600, 74880, 115200, 230400, 460800, 921600]
    WRITE_METHODS = ["POST", "PUT", "PATCH"]
    LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

    @staticmethod
    def get_schema() -> Dict[str, Any]:
        return {
            "$schema": "http://json-schema.org/draft-07/schema#",
            "title": "firebase-at Configuration",
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "firebase": _section(
                    "Realtime Database addressing",
                    database_url=_text("Database URL or host (empty = unconfigured)"),
                    auth_token=_text("Sent as the auth query parameter"),
                    base_path=_text("Path prefix for every device"),
                    write_method=_text("HTTP method for writes", enum=ConfigSchema.WRITE_METHODS),
                ),
                "modem": _section(
                    "Serial link to the modem",
                    port={"type": ["string", "null"], "description": "Serial device path"},
                    baud_rate={"type": "integer", "enum": ConfigSchema.VALID_BAUD_RATES},
                    write_timeout={"type": "number", "minimum": 0.1, "maximum": 60},
                    poll_interval_ms={"type": "integer", "minimum": 1, "maximum": 1000},
                ),
                "timing": _section(
                    "Per-step request timeouts",
                    connect_timeout_ms=_milliseconds("Wait for OK after AT+CIPSTART"),
                    send_timeout_ms=_milliseconds("Wait for the ack after AT+CIPSEND"),
                    send_ack_token=_text("Ack token after AT+CIPSEND", minLength=1),
                    post_send_pause_ms=_milliseconds("Pause after writing the request"),
                    response_timeout_ms=_milliseconds("Response collection window"),
                    response_terminator=_text("Stop collecting early on this text"),
                    close_timeout_ms=_milliseconds("Wait for OK after AT+CIPCLOSE"),
                    abort_close_timeout_ms=_milliseconds("Close wait after a failed open or send"),
                    link_check_timeout_ms=_milliseconds("Wait for +CWJAP: after AT+CWJAP?"),
                ),
                "logging": _section(
                    "Communication logging",
                    level=_text("Minimum level", enum=ConfigSchema.LOG_LEVELS),
                    console_output={"type": "boolean"},
                ),
            },
        }

    @staticmethod
    def validate_config(config: Dict[str, Any], strict: bool = True) -> Tuple[bool, List[str]]:
        """Validate a configuration dictionary.

        Args:
            config: Merged configuration
            strict: Reject keys the schema does not know

        Returns:
            (is_valid, error messages)
        """
        schema = ConfigSchema.get_schema()
        if not strict:
            schema = ConfigSchema._make_permissive(schema)

        errors = [ConfigSchema._format_error(e) for e in Draft7Validator(schema).iter_errors(config)]
        errors.extend(ConfigSchema._custom_validation(config))
        return not errors, errors

    @staticmethod
    def _make_permissive(schema: Dict[str, Any]) -> Dict[str, Any]:
        relaxed = copy.deepcopy(schema)
        pending = [relaxed]
        while pending:
            node = pending.pop()
            node.pop("additionalProperties", None)
            pending.extend(value for value in node.values() if isinstance(value, dict))
        return relaxed

    @staticmethod
    def _format_error(error: ValidationError) -> str:
        path = [str(part) for part in error.path]
        section = path[0] if path else "root"

        if error.validator == "additionalProperties":
            unknown = sorted(set(error.instance) - set(error.schema.get("properties", {})))
            return f"Section '{section}': Unknown fields {unknown} not allowed"

        field = ".".join(path[1:]) or ("section" if path else "configuration")
        describe = _MESSAGES.get(error.validator, lambda e: e.message)
        return f"Section '{section}', field '{field}': {describe(error)}"

    @staticmethod
    def _custom_validation(config: Dict[str, Any]) -> List[str]:
        firebase = config.get("firebase")
        if not isinstance(firebase, dict):
            return []

        url = firebase.get("database_url")
        if isinstance(url, str) and url and not ConfigSchema.validate_database_url(url):
            return [
                f"Section 'firebase', field 'database_url': '{url}' must be a bare host, "
                f"optionally with http(s):// and a trailing slash. "
                f"Example: database_url: 'https://demo-default-rtdb.firebaseio.com/'"
            ]
        return []

    @staticmethod
    def validate_database_url(url: str) -> bool:
        """True if the URL reduces to a host with no path or whitespace.

        Example:
            >>> ConfigSchema.validate_database_url("https://demo.firebaseio.com/")
            True
            >>> ConfigSchema.validate_database_url("https://demo.firebaseio.com/users")
            False
        """
        host = extract_host(url)
        return bool(host) and "/" not in host and not any(c.isspace() for c in host)
