"""
Configuration loader for fretlab.

Loads settings from a YAML file and provides defaults.
Supports environment variable overrides.

Search order used by load_config():
    1. Explicit path if provided
    2. FRETLAB_CONFIG environment variable
    3. fretlab.yaml in the current working directory
    4. Built-in defaults

Example fretlab.yaml:
    engine:
      max_fret: 17
    preview:
      debounce_seconds: 0.25
    logging:
      level: DEBUG
"""

import copy
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULT_CONFIG = {
    'engine': {
        'max_fret': 15,
    },
    'library': {
        # None means "use the voicings.yaml shipped inside the package"
        'voicings_path': None,
    },
    'preview': {
        'debounce_seconds': 0.15,
    },
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    },
}

ENV_PREFIX = 'FRETLAB_'
ENV_CONFIG_PATH = 'FRETLAB_CONFIG'


def deep_merge(base: Dict, override: Dict) -> Dict:
    """Deep merge two dictionaries, override takes precedence."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


@dataclass
class EngineConfig:
    """Configuration container with convenient accessors."""

    _config: Dict = field(default_factory=dict)
    _config_path: Optional[Path] = None

    def __post_init__(self):
        if not self._config:
            self._config = copy.deepcopy(DEFAULT_CONFIG)

    def get(self, *keys: str, default: Any = None) -> Any:
        """Get a nested config value using multiple keys.

        Examples:
            config.get('engine', 'max_fret')
            config.get('preview', 'debounce_seconds')
        """
        value = self._config
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def __getitem__(self, key: str) -> Any:
        return self._config.get(key, {})

    @property
    def max_fret(self) -> int:
        return int(self.get('engine', 'max_fret', default=15))

    @property
    def voicings_path(self) -> Optional[Path]:
        path = self.get('library', 'voicings_path')
        return Path(path) if path else None

    @property
    def debounce_seconds(self) -> float:
        return float(self.get('preview', 'debounce_seconds', default=0.15))

    @property
    def log_level(self) -> str:
        return str(self.get('logging', 'level', default='INFO')).upper()

    @property
    def source(self) -> Optional[Path]:
        """Path of the YAML file this config was read from, if any."""
        return self._config_path

    def to_dict(self) -> Dict:
        return copy.deepcopy(self._config)


# Global config instance
_config: Optional[EngineConfig] = None


def _apply_env_overrides(config_data: Dict) -> None:
    """
    Apply FRETLAB_<SECTION>_<KEY>=value overrides in place.

    Example: FRETLAB_ENGINE_MAX_FRET=17
    """
    for env_key, env_value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX) or env_key == ENV_CONFIG_PATH:
            continue
        parts = env_key[len(ENV_PREFIX):].lower().split('_', 1)
        if len(parts) != 2:
            continue
        section, key = parts
        if section not in config_data or key not in config_data[section]:
            continue

        current = config_data[section][key]
        try:
            if isinstance(current, bool):
                config_data[section][key] = env_value.lower() in ('true', '1', 'yes')
            elif current is None:
                config_data[section][key] = env_value
            else:
                config_data[section][key] = type(current)(env_value)
        except (ValueError, TypeError):
            logger.warning("Ignoring %s=%r: cannot convert to %s",
                           env_key, env_value, type(current).__name__)


def load_config(config_path: Optional[str] = None) -> EngineConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Optional explicit path to config file

    Returns:
        EngineConfig instance (also stored as the global config)
    """
    global _config

    if config_path:
        cfg_path = Path(config_path)
    elif os.environ.get(ENV_CONFIG_PATH):
        cfg_path = Path(os.environ[ENV_CONFIG_PATH])
    else:
        cfg_path = Path.cwd() / 'fretlab.yaml'

    config_data = copy.deepcopy(DEFAULT_CONFIG)
    loaded_from = None

    if cfg_path.exists():
        try:
            with open(cfg_path, 'r', encoding='utf-8') as f:
                user_config = yaml.safe_load(f) or {}
            if not isinstance(user_config, dict):
                raise ValueError("top level of the config file must be a mapping")
            config_data = deep_merge(DEFAULT_CONFIG, user_config)
            loaded_from = cfg_path
        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.warning("Could not load config from %s: %s. Using defaults.", cfg_path, e)
    elif config_path:
        logger.warning("Config file %s does not exist. Using defaults.", cfg_path)

    _apply_env_overrides(config_data)

    _config = EngineConfig(_config=config_data, _config_path=loaded_from)
    return _config


def get_config() -> EngineConfig:
    """Get the current config instance, loading if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(config_path: Optional[str] = None) -> EngineConfig:
    """Force reload the configuration."""
    global _config
    _config = None
    return load_config(config_path)


def configure_logging(config: Optional[EngineConfig] = None, verbose: bool = False) -> None:
    """Set up root logging from the config ('--verbose' forces DEBUG)."""
    config = config or get_config()
    level = logging.DEBUG if verbose else getattr(logging, config.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format=config.get('logging', 'format', default=DEFAULT_CONFIG['logging']['format']),
    )
