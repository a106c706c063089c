"""Static configuration: key registry and TOML/env loader."""

from .manager import ConfigManager, load_config
from .registry import REGISTRY, ConfigKey, get_config_key, validate_config_value

__all__ = [
    "REGISTRY",
    "ConfigKey",
    "ConfigManager",
    "get_config_key",
    "load_config",
    "validate_config_value",
]
