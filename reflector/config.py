"""Configuration management for Reflector."""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

CONFIG_ENV = "REFLECTOR_CONFIG"
MANUAL_ONLY_ENV = "REFLECTOR_MANUAL_ONLY"

_TRUTHY = ('1', 'true', 'yes', 'on')


@dataclass
class ReflectorConfig:
    """Configuration settings for reflection."""

    # Disables automatic probing; every reflected type needs a manual descriptor
    manual_only: bool = False

    # Largest number of initializers the prober tries before giving up
    max_probe_arity: int = 256

    # Logging level used by the command line
    log_level: str = "WARNING"


def _config_locations(config_path: Optional[Path]) -> List[Path]:
    locations = [config_path]
    if os.environ.get(CONFIG_ENV):
        locations.append(Path(os.environ[CONFIG_ENV]))
    locations.append(Path.cwd() / "reflector.json")
    locations.append(Path.home() / ".config" / "reflector" / "config.json")
    return [path for path in locations if path is not None]


def load_config(config_path: Optional[Path] = None) -> ReflectorConfig:
    """Load configuration from file or use defaults.

    The first existing file among the explicit path, ``$REFLECTOR_CONFIG``,
    ``./reflector.json`` and ``~/.config/reflector/config.json`` is used.
    ``$REFLECTOR_MANUAL_ONLY`` overrides the file's ``manual_only`` setting.
    """
    config = ReflectorConfig()

    for path in _config_locations(config_path):
        if not path.exists():
            continue
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not load config from {path}: {e}")
            continue

        if 'manual_only' in data:
            config.manual_only = bool(data['manual_only'])
        if 'max_probe_arity' in data:
            config.max_probe_arity = int(data['max_probe_arity'])
        if 'log_level' in data:
            config.log_level = str(data['log_level']).upper()

        logger.info(f"Loaded config from: {path}")
        break

    manual_only = os.environ.get(MANUAL_ONLY_ENV)
    if manual_only is not None:
        config.manual_only = manual_only.strip().lower() in _TRUTHY

    return config
