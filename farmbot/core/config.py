"""Configuration loader with YAML files and environment variable overrides."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger("farmbot.config")

ENV_PREFIX = "FARMBOT"


class Config:
    """Configuration loader with environment variable override support."""

    def __init__(self, config_dir: Optional[str] = None):
        """Initialize config loader.

        Args:
            config_dir: Path to config directory. Defaults to $FARMBOT_CONFIG_DIR
                or 'config' relative to project root.
        """
        if config_dir is None:
            config_dir = os.environ.get(f"{ENV_PREFIX}_CONFIG_DIR")
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        self.config_dir = Path(config_dir)
        self._cache: Dict[str, Any] = {}

    def load_profile(self) -> Dict[str, Any]:
        """Load runtime profile (analyzer, click mode, loop options)."""
        return self._load_config("profile.yml")

    def load_keys(self) -> Dict[str, Any]:
        """Load key bindings configuration."""
        return self._load_config("keys.yml")

    def load_farming(self) -> Dict[str, Any]:
        """Load the farming slot bars and behaviour toggles."""
        return self._load_config("farming.yml")

    def _load_config(self, config_path: str) -> Dict[str, Any]:
        """Load a YAML config file with environment variable overrides."""
        full_path = self.config_dir / config_path

        cache_key = str(full_path)
        if cache_key in self._cache:
            return self._cache[cache_key].copy()

        config: Dict[str, Any] = {}
        if full_path.exists():
            try:
                with open(full_path, "r", encoding="utf-8") as f:
                    loaded = yaml.safe_load(f) or {}
                if isinstance(loaded, dict):
                    config = loaded
                else:
                    logger.warning("config | %s is not a mapping, ignored", full_path)
            except (OSError, yaml.YAMLError) as exc:
                # Unreadable files fall back to defaults
                logger.warning("config | failed to load %s: %s", full_path, exc)

        config = self._apply_env_overrides(config, config_path)
        self._cache[cache_key] = config.copy()
        return config

    def _apply_env_overrides(self, config: Dict[str, Any], config_path: str) -> Dict[str, Any]:
        """Apply FARMBOT_<FILE>_<KEY_PATH> overrides, typed by the existing value."""
        config_name = Path(config_path).stem.upper()
        env_prefix = f"{ENV_PREFIX}_{config_name}_"

        def apply_overrides(obj: Any, path: str = "") -> Any:
            if not isinstance(obj, dict):
                return obj
            result = {}
            for key, value in obj.items():
                new_path = f"{path}.{key}" if path else str(key)
                env_key = f"{env_prefix}{new_path.replace('.', '_').upper()}"
                env_value = os.environ.get(env_key)

                if env_value is None:
                    result[key] = apply_overrides(value, new_path)
                elif isinstance(value, bool):
                    result[key] = env_value.lower() in ("true", "1", "yes", "on")
                elif isinstance(value, int):
                    try:
                        result[key] = int(env_value)
                    except ValueError:
                        result[key] = value
                elif isinstance(value, float):
                    try:
                        result[key] = float(env_value)
                    except ValueError:
                        result[key] = value
                else:
                    result[key] = env_value
            return result

        return apply_overrides(config)

    def clear_cache(self) -> None:
        """Clear the configuration cache."""
        self._cache.clear()


# Global config instance
_config_instance: Optional[Config] = None


def get_config() -> Config:
    """Get the global config instance."""
    global _config_instance
    if _config_instance is None:
        _config_instance = Config()
    return _config_instance


def load_profile() -> Dict[str, Any]:
    """Convenience function to load profile config."""
    return get_config().load_profile()


def load_keys() -> Dict[str, Any]:
    """Convenience function to load key bindings."""
    return get_config().load_keys()


def load_farming() -> Dict[str, Any]:
    """Convenience function to load the farming config."""
    return get_config().load_farming()
