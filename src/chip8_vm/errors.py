"""
CHIP-8 VM Error Hierarchy
=========================

This module defines the exception hierarchy for the whole package.
All exceptions inherit from Chip8Error, allowing callers to catch all
VM-related errors with a single except clause if desired.

Exception Hierarchy
-------------------
Chip8Error (base)
├── ExecutionError (raised while executing an instruction)
│   ├── OutOfBoundsAccess - memory read/write outside the allowed range
│   ├── UnrecognizedOpcode - no decode table entry matches the word
│   ├── StackOverflow - call with 16 return addresses already stacked
│   └── StackUnderflow - return with an empty call stack
├── EmulatorHalted - tick() called after the engine stopped
├── RomLoadError - ROM file missing, empty or too large
└── ConfigError - invalid configuration value

Execution errors never escape Emulator.tick(): the engine converts them
into a HaltEvent and stops. Load and configuration errors propagate to
the caller.
"""

from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class Chip8Error(Exception):
    """
    Base exception for all CHIP-8 VM errors.

        try:
            emu.load_rom("pong.ch8")
        except Chip8Error as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Execution Exceptions
# =============================================================================

class ExecutionError(Chip8Error):
    """
    Base exception for faults raised by a single instruction.

    Attributes:
        message: The error description
        pc: Address of the faulting instruction, filled in by the CPU
            once the instruction has been fetched (None before that)
    """

    def __init__(self, message: str, pc: Optional[int] = None):
        self.message = message
        self.pc = pc
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.pc is not None:
            return f"${self.pc:03X}: {self.message}"
        return self.message

    def at(self, pc: int) -> "ExecutionError":
        """Attach the instruction address and refresh the message."""
        self.pc = pc
        self.args = (self._format_message(),)
        return self


class OutOfBoundsAccess(ExecutionError):
    """
    Memory access outside the range a program may touch.

    Attributes:
        address: The offending address
        access: "read" or "write"
    """

    def __init__(self, address: int, access: str = "read", reason: str = ""):
        self.address = address
        self.access = access
        detail = f" ({reason})" if reason else ""
        super().__init__(f"{access} at ${address:04X} out of bounds{detail}")


class UnrecognizedOpcode(ExecutionError):
    """No entry of the instruction table matches the fetched word."""

    def __init__(self, opcode: int):
        self.opcode = opcode
        super().__init__(f"unrecognized opcode ${opcode:04X}")


class StackOverflow(ExecutionError):
    """CALL executed with the call stack already at full depth."""

    def __init__(self, depth: int):
        self.depth = depth
        super().__init__(f"call stack overflow (depth {depth})")


class StackUnderflow(ExecutionError):
    """RET executed with an empty call stack."""

    def __init__(self):
        super().__init__("call stack underflow (return with empty stack)")


# =============================================================================
# Lifecycle Exceptions
# =============================================================================

class EmulatorHalted(Chip8Error):
    """The engine has stopped; the driver must not call tick() again."""
    pass


class RomLoadError(Chip8Error):
    """A ROM image could not be loaded into memory."""
    pass


class ConfigError(Chip8Error):
    """
    Invalid configuration value.

    Attributes:
        key: Configuration key that failed validation (optional)
    """

    def __init__(self, message: str, key: Optional[str] = None):
        self.key = key
        if key:
            message = f"{key}: {message}"
        super().__init__(message)
