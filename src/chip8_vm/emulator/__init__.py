"""
CHIP-8 Virtual Machine
======================

An interpreter for the 35-instruction CHIP-8 virtual machine:

- **CPU**: V0-VF, I, PC, 16-entry call stack, full instruction set
- **Memory**: 4 KB with built-in hex font at $000 and programs at $200
- **Display**: 64x32 XOR-blit framebuffer with collision detection
- **Keypad**: 16 keys with the blocking wait-for-key state machine
- **Timers**: 60 Hz delay and sound timers, decoupled from execution speed

The engine never touches a window, a file handle or an audio device: key
states, frames and tones flow through small collaborator protocols
(KeyInput, Renderer, AudioOutput) that hosts implement.

Quick Start
-----------

    >>> from chip8_vm.emulator import Emulator, EmulatorConfig
    >>> emu = Emulator(EmulatorConfig(render_screen=False))
    >>> emu.load_rom("maze.ch8")
    >>> event = emu.run(max_ticks=10_000)
    >>> print(emu.display.render_text())

Module Structure
----------------

- `emulator.py`: Emulator class (tick loop, halting, snapshots)
- `cpu.py`: decoder, register file, call stack, instruction dispatch
- `memory.py`: 4 KB memory and font
- `display.py`: framebuffer
- `keypad.py`: key states and wait-for-key state machine
- `timers.py`: delay/sound timers
- `audio.py`: fire-and-forget tone output
"""

# Core components
from .cpu import CHIP8CPU, CPUState, CallStack, Instruction, decode

# Main entry point
from .emulator import (
    Emulator,
    EmulatorConfig,
    HaltEvent,
    HaltReason,
    KeyInput,
    Renderer,
)

# Memory subsystem
from .memory import (
    Memory,
    FONT_SPRITES,
    BYTES_PER_GLYPH,
    PROGRAM_START,
    MEMORY_SIZE,
)

# I/O
from .display import Display, DisplayState, COLORS, SCREEN_WIDTH, SCREEN_HEIGHT
from .keypad import Keypad, KeypadState, DEFAULT_KEY_MAP, NUM_KEYS
from .timers import Timers, TIMER_HZ
from .audio import AudioOutput, BackgroundAudio, NullAudio

__all__ = [
    # Main API
    "Emulator",
    "EmulatorConfig",
    "HaltEvent",
    "HaltReason",
    "KeyInput",
    "Renderer",

    # CPU
    "CHIP8CPU",
    "CPUState",
    "CallStack",
    "Instruction",
    "decode",

    # Memory
    "Memory",
    "FONT_SPRITES",
    "BYTES_PER_GLYPH",
    "PROGRAM_START",
    "MEMORY_SIZE",

    # Display
    "Display",
    "DisplayState",
    "COLORS",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",

    # Keypad
    "Keypad",
    "KeypadState",
    "DEFAULT_KEY_MAP",
    "NUM_KEYS",

    # Timers and audio
    "Timers",
    "TIMER_HZ",
    "AudioOutput",
    "BackgroundAudio",
    "NullAudio",
]
