"""
Configuration management for the music quiz.

Loads and validates configuration from YAML files with environment
variable interpolation support.
"""

import copy
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from musicquiz.utils.errors import ConfigurationError

# Schema applied by load_config(); quiz timing and candidate bounds must
# be present and well-typed before a session is built from them.
CONFIG_SCHEMA: Dict[str, Dict[str, Any]] = {
    "quiz.reveal_delay_ms": {"type": int, "required": True},
    "quiz.max_candidates": {"type": int, "required": True},
    "quiz.min_candidates": {"type": int, "required": True},
    "scores.backend": {"type": str, "required": True},
    "logging.level": {"type": str},
}


class ConfigManager:
    """
    Manages application configuration loaded from YAML files.

    Features:
    - YAML configuration loading
    - Environment variable interpolation (${VAR_NAME})
    - Nested key access with dot notation
    - Default value support
    - Configuration validation
    """

    _env_pattern = re.compile(r'\$\{([^}]+)\}')

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration manager.

        Args:
            config_dict: Optional pre-loaded configuration dictionary
        """
        self._config: Dict[str, Any] = config_dict or {}

    @classmethod
    def from_file(cls, file_path: Path) -> "ConfigManager":
        """
        Create ConfigManager from a YAML file.

        Raises:
            ConfigurationError: If file cannot be loaded or parsed
        """
        if not file_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {file_path}",
                config_key=str(file_path)
            )

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                config_dict = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Failed to parse YAML configuration: {e}",
                config_key=str(file_path)
            )

        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                "Configuration root must be a mapping",
                config_key=str(file_path)
            )

        manager = cls(config_dict)
        manager._config = manager._interpolate(manager._config)
        return manager

    def _interpolate(self, value: Any) -> Any:
        """Recursively replace ${ENV_VAR} in strings, lists and mappings."""
        if isinstance(value, dict):
            return {k: self._interpolate(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self._interpolate(item) for item in value]
        if isinstance(value, str):
            return self._env_pattern.sub(self._replace_env, value)
        return value

    @staticmethod
    def _replace_env(match: re.Match) -> str:
        value = os.environ.get(match.group(1))
        if value is None:
            return match.group(0)  # Keep original if not found
        return value

    def get(
        self,
        key: str,
        default: Any = None,
        required: bool = False
    ) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key (supports dot notation: "quiz.reveal_delay_ms")
            default: Default value if key not found
            required: If True, raise error when key not found

        Raises:
            ConfigurationError: If required key is not found
        """
        value: Any = self._config

        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                if required:
                    raise ConfigurationError(
                        f"Required configuration key not found: {key}",
                        config_key=key
                    )
                return default

        return value

    def get_section(self, key: str) -> Dict[str, Any]:
        """Get an entire configuration section (empty dict if absent)."""
        value = self.get(key, default={})
        if not isinstance(value, dict):
            return {}
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value using dot notation."""
        keys = key.split('.')
        current = self._config

        for k in keys[:-1]:
            current = current.setdefault(k, {})

        current[keys[-1]] = value

    def merge(self, overrides: Dict[str, Any]) -> None:
        """Deep-merge *overrides* on top of the current configuration."""
        _deep_merge(self._config, overrides)

    def to_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary."""
        return copy.deepcopy(self._config)

    def validate(self, schema: Dict[str, Any]) -> None:
        """
        Validate configuration against a schema.

        Schema format:
            {
                "quiz.reveal_delay_ms": {"type": int, "required": True},
                "quiz.seed": {"type": int},
            }

        Raises:
            ConfigurationError: If validation fails
        """
        for key, rules in schema.items():
            value = self.get(key)
            expected_type = rules.get("type")

            if value is None:
                if rules.get("required", False):
                    raise ConfigurationError(
                        f"Required configuration missing: {key}",
                        config_key=key
                    )
                continue

            # bool is an int subclass; a YAML "true" must not pass as a delay
            if expected_type is int and isinstance(value, bool):
                wrong_type = True
            else:
                wrong_type = bool(expected_type) and not isinstance(value, expected_type)

            if wrong_type:
                raise ConfigurationError(
                    f"Invalid type for {key}: expected {expected_type.__name__}, "
                    f"got {type(value).__name__}",
                    config_key=key
                )


def _deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from file layered over the defaults.

    Args:
        config_path: Optional path to config file.
                    If None, tries "config/config.yaml" then "config.yaml"

    Returns:
        Dict[str, Any]: Validated configuration dictionary

    Raises:
        ConfigurationError: If an explicit path is missing or the result
            fails schema validation
    """
    if config_path is not None and not Path(config_path).exists():
        raise ConfigurationError(
            f"Configuration file not found: {config_path}",
            config_key=config_path
        )

    if config_path is None:
        default_paths = [
            Path("config/config.yaml"),
            Path("config.yaml"),
            Path(__file__).parent.parent.parent / "config" / "config.yaml",
        ]

        for path in default_paths:
            if path.exists():
                config_path = str(path)
                break

    manager = ConfigManager(get_default_config())
    if config_path:
        manager.merge(ConfigManager.from_file(Path(config_path)).to_dict())

    manager.validate(CONFIG_SCHEMA)
    return manager.to_dict()


def get_default_config() -> Dict[str, Any]:
    """Return default configuration values."""
    return {
        "quiz": {
            "reveal_delay_ms": 2000,
            "max_candidates": 4,
            "min_candidates": 2,
            "seed": None,
        },
        "catalog": {
            "path": None,
        },
        "scores": {
            "backend": "memory",
            "path": "scores.yaml",
        },
        "logging": {
            "level": "INFO",
            "format": "text",
            "file": None,
        },
    }
