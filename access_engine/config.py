"""
Access Engine configuration

Settings live in ~/.config/access-engine/config.json. Every field is
optional; missing or broken files fall back to defaults so a bad config
never stops the engine from starting.

Environment overrides (applied after the file):
    ACCESS_ENGINE_SEARCH_TIMEOUT  seconds, float
    ACCESS_ENGINE_SPEECH          "0" disables the speech pipeline
    ACCESS_ENGINE_VOICE           "0" disables audio output
    ACCESS_ENGINE_LOG_LEVEL       DEBUG, INFO, WARNING, ...
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Optional

from .constants import DEFAULT_SPRITES, SEARCH_TIMEOUT, SPEECH_DEDUPE_WINDOW, TICK_INTERVAL

logger = logging.getLogger(__name__)

CONFIG_FILE = Path.home() / ".config" / "access-engine" / "config.json"
DEFAULT_LOG_FILE = Path.home() / ".cache" / "access-engine" / "access-engine.log"

_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass
class AccessConfig:
    search_timeout: float = SEARCH_TIMEOUT
    speech_enabled: bool = True
    voice_enabled: bool = True
    dedupe_window: float = SPEECH_DEDUPE_WINDOW
    tick_interval: float = TICK_INTERVAL
    sprites: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_SPRITES))
    log_level: str = "INFO"
    log_file: str = str(DEFAULT_LOG_FILE)


def _coerce(value, default):
    """`value` as the type of `default`, or None if it doesn't fit."""
    # bool is an int subclass, so check it first
    if isinstance(default, bool):
        return value if isinstance(value, bool) else None
    if isinstance(default, float):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        return None
    if isinstance(default, str):
        return value if isinstance(value, str) else None
    return None


def _from_dict(data: dict) -> AccessConfig:
    config = AccessConfig()
    known = {f.name for f in fields(AccessConfig)}
    for key, value in data.items():
        if key not in known:
            logger.warning(f"Ignoring unknown config key: {key}")
            continue
        if key == "sprites":
            if not isinstance(value, dict):
                logger.warning("Ignoring config 'sprites': expected an object")
                continue
            # File entries add to the defaults
            config.sprites.update({str(k): str(v) for k, v in value.items()})
            continue

        default = getattr(config, key)
        coerced = _coerce(value, default)
        if coerced is None:
            logger.warning(
                f"Ignoring config {key}={value!r}: expected {type(default).__name__}"
            )
            continue
        setattr(config, key, coerced)

    if not isinstance(logging.getLevelName(config.log_level.upper()), int):
        logger.warning(f"Ignoring config log_level={config.log_level!r}: unknown level")
        config.log_level = AccessConfig.log_level
    return config


def _apply_env(config: AccessConfig) -> None:
    timeout = os.environ.get("ACCESS_ENGINE_SEARCH_TIMEOUT")
    if timeout:
        try:
            config.search_timeout = float(timeout)
        except ValueError:
            logger.warning(f"Ignoring ACCESS_ENGINE_SEARCH_TIMEOUT={timeout!r}: not a number")

    speech = os.environ.get("ACCESS_ENGINE_SPEECH")
    if speech:
        config.speech_enabled = speech.lower() not in _FALSE_VALUES

    voice = os.environ.get("ACCESS_ENGINE_VOICE")
    if voice:
        config.voice_enabled = voice.lower() not in _FALSE_VALUES

    level = os.environ.get("ACCESS_ENGINE_LOG_LEVEL")
    if level:
        if isinstance(logging.getLevelName(level.upper()), int):
            config.log_level = level.upper()
        else:
            logger.warning(f"Ignoring ACCESS_ENGINE_LOG_LEVEL={level!r}: unknown level")


def load_config(path: Optional[Path] = None) -> AccessConfig:
    """Load config from disk, then apply environment overrides. Never raises."""
    path = Path(path) if path is not None else CONFIG_FILE

    if not path.exists():
        logger.info(f"No config at {path}, using defaults")
        config = AccessConfig()
    else:
        try:
            data = json.loads(path.read_text())
        except OSError as e:
            logger.error(f"Could not read config {path}: {e}")
            data = {}
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON in config {path}: {e}")
            data = {}

        if not isinstance(data, dict):
            logger.warning(f"Config {path} is not a JSON object, using defaults")
            data = {}
        config = _from_dict(data)

    _apply_env(config)
    return config


def save_config(config: AccessConfig, path: Optional[Path] = None) -> bool:
    """Write config to disk. Returns False if it could not be written."""
    path = Path(path) if path is not None else CONFIG_FILE
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(asdict(config), indent=2))
    except OSError as e:
        logger.error(f"Could not save config {path}: {e}")
        return False
    return True
