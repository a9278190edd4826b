"""
chip8-vm - A CHIP-8 Virtual Machine
===================================

This package interprets programs written for CHIP-8, the 1970s virtual
machine with 4 KB of memory, sixteen 8-bit registers, a 64x32 monochrome
display and a 16-key hex keypad.

Main Components
---------------
- **emulator**: the execution core (CPU, memory, display, keypad, timers)
- **disassembler**: instruction listing for ROM images (chip8disasm)
- **config**: TOML/environment configuration for the command-line runner
- **host**: pygame window, keyboard and beeper (optional extra)

Quick Start
-----------
Run a program headless:
    >>> from chip8_vm import Emulator, EmulatorConfig
    >>> emu = Emulator(EmulatorConfig(render_screen=False))
    >>> emu.load_rom("maze.ch8")
    >>> emu.run(max_ticks=5000)

Or use the command-line tools:
    $ chip8run pong.ch8
    $ chip8disasm pong.ch8 --count 20
"""

__version__ = "1.0.0"

from chip8_vm.emulator import Emulator, EmulatorConfig, HaltEvent, HaltReason
from chip8_vm.errors import (
    Chip8Error,
    ExecutionError,
    OutOfBoundsAccess,
    UnrecognizedOpcode,
    StackOverflow,
    StackUnderflow,
    EmulatorHalted,
    RomLoadError,
    ConfigError,
)

__all__ = [
    "__version__",
    "Emulator",
    "EmulatorConfig",
    "HaltEvent",
    "HaltReason",
    "Chip8Error",
    "ExecutionError",
    "OutOfBoundsAccess",
    "UnrecognizedOpcode",
    "StackOverflow",
    "StackUnderflow",
    "EmulatorHalted",
    "RomLoadError",
    "ConfigError",
]
