"""Configuration Registry - Defines all scalar configuration keys.

Each key carries its expected type, default and validation rules. The
``[[servers]]`` list is not a scalar key; it is validated by
``arkwatch.monitor.registry.ServerRegistry``.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional


@dataclass(frozen=True)
class ConfigKey:
    """Defines a single configuration key with validation.

    Attributes:
        value_type: Expected Python type (str, int, float, bool)
        default: Default value if not specified in config files
        min_value: Minimum value for numeric types (optional)
        max_value: Maximum value for numeric types (optional)
        validator: Custom validation function (optional)
        secret: Never log the value
    """
    value_type: type
    default: Any
    min_value: Optional[Any] = None
    max_value: Optional[Any] = None
    validator: Optional[Callable[[Any], bool]] = None
    secret: bool = False


REGISTRY: dict[str, ConfigKey] = {
    # ===== TELEGRAM =====
    "telegram.bot_token": ConfigKey(
        value_type=str,
        default="",
        secret=True,
    ),

    # ===== DATABASE =====
    "database.path": ConfigKey(
        value_type=str,
        default="data/arkwatch.db",
        validator=lambda v: bool(v.strip()),
    ),

    # ===== LOGGING =====
    "logging.level": ConfigKey(
        value_type=str,
        default="INFO",
        validator=lambda v: v in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
    ),
    "logging.json": ConfigKey(
        value_type=bool,
        default=False,
    ),

    # ===== POLLING =====
    "poll.interval_ms": ConfigKey(
        value_type=int,
        default=60000,
        min_value=1000,
        max_value=3600000,
    ),
    "probe.timeout_seconds": ConfigKey(
        value_type=float,
        default=3.0,
        min_value=0.5,
        max_value=30.0,
    ),

    # ===== RATE LIMITING (status command only) =====
    "rate_limit.enabled": ConfigKey(
        value_type=bool,
        default=False,
    ),
    "rate_limit.max_messages_per_window": ConfigKey(
        value_type=int,
        default=5,
        min_value=1,
        max_value=1000,
    ),
    "rate_limit.ban_windows": ConfigKey(
        value_type=int,
        default=5,
        min_value=1,
        max_value=1440,
    ),
    "rate_limit.window_seconds": ConfigKey(
        value_type=int,
        default=60,
        min_value=1,
        max_value=86400,
    ),
}


def get_config_key(key: str) -> ConfigKey:
    """Get configuration key definition from registry.

    Raises:
        KeyError: If key not found in registry
    """
    if key not in REGISTRY:
        raise KeyError(f"Configuration key '{key}' not found in registry")
    return REGISTRY[key]


def validate_config_value(key: str, value: Any) -> tuple[bool, Optional[str]]:
    """Validate a configuration value against its registered definition.

    Args:
        key: Configuration key path
        value: Value to validate

    Returns:
        Tuple of (is_valid, error_message)
        error_message is None if valid
    """
    try:
        config_key = get_config_key(key)
    except KeyError as e:
        return False, str(e)

    # TOML integers are accepted where floats are expected
    if config_key.value_type is float and isinstance(value, int) and not isinstance(value, bool):
        value = float(value)

    # bool is a subclass of int
    if isinstance(value, bool) and config_key.value_type is not bool:
        return False, f"Expected type {config_key.value_type.__name__}, got bool"

    if not isinstance(value, config_key.value_type):
        return False, f"Expected type {config_key.value_type.__name__}, got {type(value).__name__}"

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if config_key.min_value is not None and value < config_key.min_value:
            return False, f"Value {value} below minimum {config_key.min_value}"
        if config_key.max_value is not None and value > config_key.max_value:
            return False, f"Value {value} above maximum {config_key.max_value}"

    if config_key.validator is not None:
        try:
            if not config_key.validator(value):
                return False, f"Custom validation failed for value: {value}"
        except Exception as e:
            return False, f"Validator error: {str(e)}"

    return True, None


def get_default_values() -> dict[str, Any]:
    """Get default values for all configuration keys."""
    return {key: config_key.default for key, config_key in REGISTRY.items()}


def get_secret_keys() -> set[str]:
    return {key for key, config_key in REGISTRY.items() if config_key.secret}
