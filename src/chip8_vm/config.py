"""
Runner Configuration
====================

Configuration for the command-line runner. Values can come from:
- Default values (defined here)
- A TOML file
- Environment variables
- Command-line flags (applied by the CLI on top of the above)

Example file (chip8.toml):

    debug = false
    render_screen = true
    initial_color = "0x00FF00"
    play_sound = true
    tick_interval = 0.001
    scale = 10

Unknown keys are ignored so one file can be shared with other tools.
"""

import os
import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional, Union

from .emulator import EmulatorConfig
from .emulator.display import DEFAULT_COLOR
from .errors import ConfigError


def _parse_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
    raise ConfigError(f"should be one of: true/false, got {value!r}", key)


def _parse_color(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"should be a 24-bit color, got {value!r}", key)
    if isinstance(value, str):
        try:
            value = int(value.strip().replace("#", "0x"), 0)
        except ValueError:
            raise ConfigError(f"should be a 24-bit color, got {value!r}", key)
    if not isinstance(value, int) or value < 0:
        raise ConfigError(f"should be a 24-bit color, got {value!r}", key)
    # 32-bit ARGB values are accepted; the alpha byte is dropped
    return value & 0xFFFFFF


def _parse_float(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"should be a number, got {value!r}", key)
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"should be a number, got {value!r}", key)
    if result < 0:
        raise ConfigError(f"must not be negative, got {value!r}", key)
    return result


def _parse_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"should be an integer, got {value!r}", key)
    try:
        result = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"should be an integer, got {value!r}", key)
    if result < 1:
        raise ConfigError(f"must be at least 1, got {value!r}", key)
    return result


_PARSERS = {
    "debug": _parse_bool,
    "render_screen": _parse_bool,
    "play_sound": _parse_bool,
    "initial_color": _parse_color,
    "tick_interval": _parse_float,
    "scale": _parse_int,
}


@dataclass
class Chip8Config:
    """
    Options for a chip8run session.

    Attributes:
        debug: Log every executed instruction
        render_screen: Open a window and present frames
        initial_color: Display tint (0xRRGGBB)
        play_sound: Beep while the sound timer runs
        tick_interval: Seconds slept after each tick (execution throttle)
        scale: Window pixels per display cell
    """
    debug: bool = False
    render_screen: bool = True
    initial_color: int = DEFAULT_COLOR
    play_sound: bool = True
    tick_interval: float = 0.001
    scale: int = 10

    # ═══════════════════════════════════════════════════════════════════════════
    # FACTORY METHODS
    # ═══════════════════════════════════════════════════════════════════════════

    @classmethod
    def from_mapping(cls, values: dict, base: Optional["Chip8Config"] = None) -> "Chip8Config":
        """
        Build a config from a plain mapping, validating each known key.

        Raises:
            ConfigError: a known key has a value of the wrong type
        """
        config = base or cls()
        updates = {}
        for key, value in values.items():
            parser = _PARSERS.get(key)
            if parser is not None:
                updates[key] = parser(key, value)
        return replace(config, **updates)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Chip8Config":
        """
        Load a TOML configuration file.

        Raises:
            ConfigError: file missing, not valid TOML, or bad values
        """
        path = Path(path)
        try:
            with path.open("rb") as f:
                values = tomllib.load(f)
        except FileNotFoundError:
            raise ConfigError(f"Config file not found: {path}")
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {path}: {e}")
        return cls.from_mapping(values)

    @classmethod
    def from_env(cls, base: Optional["Chip8Config"] = None) -> "Chip8Config":
        """
        Apply environment variable overrides.

        Environment variables (all optional):
            CHIP8_DEBUG, CHIP8_RENDER_SCREEN, CHIP8_PLAY_SOUND,
            CHIP8_INITIAL_COLOR, CHIP8_TICK_INTERVAL, CHIP8_SCALE
        """
        values = {}
        for f in fields(cls):
            env_value = os.environ.get(f"CHIP8_{f.name.upper()}")
            if env_value is not None:
                values[f.name] = env_value
        return cls.from_mapping(values, base)

    # ═══════════════════════════════════════════════════════════════════════════
    # HELPER METHODS
    # ═══════════════════════════════════════════════════════════════════════════

    def to_emulator_config(self) -> EmulatorConfig:
        """Options the execution engine consumes."""
        return EmulatorConfig(
            debug=self.debug,
            render_screen=self.render_screen,
            initial_color=self.initial_color,
            play_sound=self.play_sound,
        )
