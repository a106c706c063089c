"""Configuration Manager.

Loads the process configuration once at startup:
1. Code defaults from the key registry
2. TOML file (default: config/default.toml), including the ``[[servers]]`` list
3. Environment variable overrides with the ``ARKWATCH_`` prefix (``.env`` supported)

Any malformed value raises ``ValueError``. Configuration is read-only after
load; there is no reload path.
"""

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

import structlog
from dotenv import load_dotenv

from ..monitor.registry import ServerRegistry
from .registry import (
    REGISTRY,
    get_config_key,
    get_default_values,
    get_secret_keys,
    validate_config_value,
)

logger = structlog.get_logger(__name__)

ENV_PREFIX = "ARKWATCH_"


def _redact_sensitive_value(key: str, value: Any) -> Any:
    """Redact secret configuration values for logging."""
    if key in get_secret_keys():
        return "[REDACTED]" if value else ""
    return value


class ConfigManager:
    """Loads and validates static configuration.

    Attributes:
        config: Validated scalar configuration keyed by dotted path
        servers: Registry of probe targets
    """

    def __init__(self, config_file: Optional[Path] = None, env_file: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_file: Path to TOML config file (default: config/default.toml)
            env_file: Path to .env file (default: .env in working directory)
        """
        self.config: dict[str, Any] = {}
        self.servers = ServerRegistry([])

        # An explicitly requested config file must exist; the default may be absent
        self.config_file_required = config_file is not None
        self.config_file = Path(config_file) if config_file is not None else Path("config/default.toml")
        self.env_file = Path(env_file) if env_file is not None else Path(".env")

    def load(self) -> dict[str, Any]:
        """Load configuration from defaults, TOML and environment variables.

        Precedence: code defaults < TOML file < environment variables

        Returns:
            Dictionary of scalar configuration key-value pairs

        Raises:
            ValueError: If an explicitly given config file is missing, the TOML
                is unreadable, or any value fails validation
        """
        logger.info("loading_config", config_file=str(self.config_file))

        if self.env_file.exists():
            load_dotenv(self.env_file)
            logger.info("env_file_loaded", env_file=str(self.env_file))

        config = get_default_values()
        raw_servers: Any = []

        if self.config_file.exists():
            try:
                with open(self.config_file, "rb") as f:
                    toml_data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ValueError(f"Invalid TOML in {self.config_file}: {e}") from e

            raw_servers = toml_data.pop("servers", [])
            flattened = self._flatten_toml(toml_data)

            unknown = sorted(set(flattened) - set(REGISTRY))
            if unknown:
                logger.warning("unknown_config_keys_ignored", keys=unknown)

            for key in REGISTRY:
                if key in flattened:
                    config[key] = flattened[key]

            logger.info("toml_config_loaded", keys_count=len(flattened))
        elif self.config_file_required:
            logger.error("config_file_not_found", config_file=str(self.config_file))
            raise ValueError(f"Config file not found: {self.config_file}")
        else:
            logger.warning(
                "config_file_not_found",
                config_file=str(self.config_file),
                using_defaults=True,
            )

        # Example: ARKWATCH_POLL_INTERVAL_MS overrides poll.interval_ms
        for key in REGISTRY:
            env_key = ENV_PREFIX + key.replace(".", "_").upper()
            env_value = os.getenv(env_key)
            if env_value is not None:
                try:
                    config[key] = self._parse_env_value(env_value, get_config_key(key).value_type)
                except ValueError as e:
                    logger.error("env_parse_error", key=key, env_key=env_key, error=str(e))
                    raise ValueError(f"Failed to parse env var {env_key}: {e}") from e
                logger.info("env_override_applied", key=key, env_key=env_key)

        for key, value in config.items():
            is_valid, error_msg = validate_config_value(key, value)
            if not is_valid:
                logger.error("config_validation_failed", key=key, error=error_msg)
                raise ValueError(f"Config validation failed for '{key}': {error_msg}")
            if get_config_key(key).value_type is float:
                config[key] = float(value)

        self.servers = ServerRegistry.from_config(raw_servers)
        if not len(self.servers):
            logger.warning("no_servers_configured")

        self.config = config
        logger.info(
            "config_loaded",
            keys_count=len(config),
            servers=self.servers.names(),
            values={key: _redact_sensitive_value(key, value) for key, value in config.items()},
        )
        return config

    def get(self, key: str) -> Any:
        """Get configuration value.

        Raises:
            KeyError: If key not found in the registry
        """
        config_key_def = get_config_key(key)
        return self.config.get(key, config_key_def.default)

    def _flatten_toml(self, data: dict) -> dict[str, Any]:
        """Flatten nested TOML structure to dotted keys.

        Example: {"rate_limit": {"enabled": true}} -> {"rate_limit.enabled": True}
        """
        result = {}

        def _flatten(d: dict, prefix: str = ""):
            for key, value in d.items():
                full_key = f"{prefix}.{key}" if prefix else key
                if isinstance(value, dict):
                    _flatten(value, full_key)
                else:
                    result[full_key] = value

        _flatten(data)
        return result

    def _parse_env_value(self, value: str, target_type: type) -> Any:
        """Parse environment variable string to target type.

        Raises:
            ValueError: If parsing fails
        """
        if target_type == bool:
            lowered = value.strip().lower()
            if lowered in ("true", "1", "yes", "on"):
                return True
            if lowered in ("false", "0", "no", "off", ""):
                return False
            raise ValueError(f"Not a boolean: {value!r}")
        elif target_type == int:
            return int(value)
        elif target_type == float:
            return float(value)
        elif target_type == str:
            return value
        else:
            raise ValueError(f"Unsupported type for env parsing: {target_type}")


def load_config(config_file: Optional[Path] = None, env_file: Optional[Path] = None) -> ConfigManager:
    """Create a ConfigManager and load it.

    Raises:
        ValueError: If configuration is malformed
    """
    manager = ConfigManager(config_file, env_file)
    manager.load()
    return manager
