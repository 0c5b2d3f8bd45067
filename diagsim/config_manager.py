"""
Simple configuration management for diagsim.

Settings live in a JSON file addressed with dot notation
(e.g. "engine.max_algebraic_iterations"). Missing files fall back to
built-in defaults so the simulator always has a usable configuration.
"""

import copy
import json
import os
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

UNCONVERGED_POLICIES = ("ignore", "warn")
EXPORT_LANGUAGES = ("python", "c")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _default_config_path() -> str:
    package_dir = os.path.dirname(os.path.abspath(__file__))
    return os.path.join(os.path.dirname(package_dir), "config", "default_config.json")


class ConfigManager:
    """Simple configuration manager for diagsim settings."""

    def __init__(self, config_file: Optional[str] = None):
        self.config_file = config_file or _default_config_path()
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file, layered over the defaults."""
        self._config = self._get_default_config()
        if not os.path.exists(self.config_file):
            logger.warning(f"Configuration file {self.config_file} not found, using defaults")
            return
        try:
            with open(self.config_file, 'r') as f:
                loaded = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error loading configuration: {e}")
            return
        if not isinstance(loaded, dict):
            logger.error(f"Configuration file {self.config_file} must hold a JSON object")
            return
        _merge(self._config, loaded)
        logger.debug(f"Configuration loaded from {self.config_file}")

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "simulation": {
                "default_time": 10.0,
                "default_timestep": 0.01,
            },
            "engine": {
                "max_algebraic_iterations": 50,
                "unconverged_policy": "ignore",
            },
            "codegen": {
                "default_language": "python",
            },
            "logging": {
                "level": "INFO",
            },
        }

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key_path: Path to the configuration key (e.g., "simulation.default_time")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self._config
        for key in key_path.split('.'):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def set(self, key_path: str, value: Any) -> bool:
        """
        Set configuration value using dot notation.

        Args:
            key_path: Path to the configuration key
            value: Value to set

        Returns:
            True if successful, False if an intermediate key is not a section
        """
        keys = key_path.split('.')
        config_ref = self._config

        # Navigate to the parent of the target key
        for key in keys[:-1]:
            if key not in config_ref:
                config_ref[key] = {}
            config_ref = config_ref[key]
            if not isinstance(config_ref, dict):
                logger.error(f"Error setting config key {key_path}: '{key}' is not a section")
                return False

        config_ref[keys[-1]] = value
        return True

    def save(self) -> bool:
        """Save current configuration to file."""
        try:
            directory = os.path.dirname(self.config_file)
            if directory:
                os.makedirs(directory, exist_ok=True)

            with open(self.config_file, 'w') as f:
                json.dump(self._config, f, indent=2)

            logger.info(f"Configuration saved to {self.config_file}")
            return True

        except OSError as e:
            logger.error(f"Error saving configuration: {e}")
            return False

    def validate_config(self) -> tuple[bool, list[str]]:
        """Validate current configuration."""
        errors = []

        sim_time = self.get("simulation.default_time")
        if not isinstance(sim_time, (int, float)) or sim_time <= 0:
            errors.append("Simulation default_time must be positive")

        sim_dt = self.get("simulation.default_timestep")
        if not isinstance(sim_dt, (int, float)) or sim_dt <= 0:
            errors.append("Simulation default_timestep must be positive")

        max_iter = self.get("engine.max_algebraic_iterations")
        if not isinstance(max_iter, int) or isinstance(max_iter, bool) or max_iter < 1:
            errors.append("engine.max_algebraic_iterations must be a positive integer")

        policy = self.get("engine.unconverged_policy")
        if policy not in UNCONVERGED_POLICIES:
            errors.append(f"Invalid unconverged_policy '{policy}', must be one of {list(UNCONVERGED_POLICIES)}")

        language = self.get("codegen.default_language")
        if language not in EXPORT_LANGUAGES:
            errors.append(f"Invalid codegen language '{language}', must be one of {list(EXPORT_LANGUAGES)}")

        level = self.get("logging.level")
        if level not in LOG_LEVELS:
            errors.append(f"Invalid logging level '{level}', must be one of {list(LOG_LEVELS)}")

        return len(errors) == 0, errors

    def get_all(self) -> Dict[str, Any]:
        """Get all configuration as dictionary."""
        return copy.deepcopy(self._config)

    def reset_to_defaults(self) -> None:
        """Reset configuration to defaults."""
        self._config = self._get_default_config()
        logger.info("Configuration reset to defaults")


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value


# Global configuration instance for easy access
_global_config: Optional[ConfigManager] = None


def get_config() -> ConfigManager:
    """Get global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = ConfigManager()
    return _global_config


def reload_config(config_file: Optional[str] = None) -> ConfigManager:
    """Reload configuration from file."""
    global _global_config
    _global_config = ConfigManager(config_file)
    return _global_config
