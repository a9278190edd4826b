"""
CHIP-8 VM - Execution Engine
============================

This module provides the `Emulator` class that owns every subsystem
(memory, CPU, display, keypad, timers) and drives them one tick at a time.

Each tick:
1. Refresh the key states from the key input collaborator.
2. If an Fx0A wait is pending, try to resolve it. If no key is down, no
   instruction runs and nothing is rendered this tick.
3. Otherwise execute exactly one instruction, then hand the framebuffer
   to the renderer if it changed.
4. Independently, once 1/60 s has elapsed since the last timer update,
   decrement both timers; if the sound timer was nonzero, fire the tone.

Faults raised by an instruction never escape tick(): they are recorded as
a HaltEvent and the engine stops. A jump to its own address is the normal
way for a program to finish.

Example usage:
    >>> from chip8_vm.emulator import Emulator, EmulatorConfig
    >>> emu = Emulator(EmulatorConfig(render_screen=False))
    >>> emu.load_program(bytes([0x60, 0x12, 0x12, 0x02]))
    >>> event = emu.run()
    >>> event.reason
    <HaltReason.FINISHED: 1>
    >>> emu.registers['v0']
    18
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Union

from ..disassembler.chip8 import format_instruction
from ..errors import (
    EmulatorHalted,
    ExecutionError,
    OutOfBoundsAccess,
    RomLoadError,
    StackOverflow,
    StackUnderflow,
    UnrecognizedOpcode,
)
from .audio import AudioOutput, NullAudio
from .cpu import CHIP8CPU, NUM_REGISTERS, STACK_DEPTH, Instruction
from .display import DEFAULT_COLOR, SCREEN_SIZE, Display
from .keypad import NUM_KEYS, Keypad
from .memory import MAX_PROGRAM_SIZE, MEMORY_SIZE, Memory
from .timers import Timers

logger = logging.getLogger(__name__)
trace_logger = logging.getLogger("chip8_vm.emulator.trace")


# =============================================================================
# Configuration and Collaborators
# =============================================================================

@dataclass(frozen=True)
class EmulatorConfig:
    """
    Options consumed by the execution engine.

    Attributes:
        debug: Log every executed instruction with the register state
        render_screen: Hand changed frames to the renderer
        initial_color: Display tint as 0xRRGGBB
        play_sound: Invoke the audio collaborator while the sound timer runs
    """
    debug: bool = False
    render_screen: bool = True
    initial_color: int = DEFAULT_COLOR
    play_sound: bool = True


class KeyInput(Protocol):
    """
    Supplies the 16 logical key states, or None if nothing changed.

    A shorter sequence leaves the missing keys released; entries past the
    sixteenth are ignored.
    """
    def poll_keys(self) -> Optional[Sequence[bool]]:
        ...


class Renderer(Protocol):
    """Presents a 64x32 frame (one byte per cell, row-major) in a tint."""
    def render(self, frame: bytes, color: int) -> None:
        ...


class NullKeyInput:
    def poll_keys(self) -> Optional[Sequence[bool]]:
        return None


class NullRenderer:
    def render(self, frame: bytes, color: int) -> None:
        pass


# =============================================================================
# Halt Reporting
# =============================================================================

class HaltReason(Enum):
    """Why the engine stopped (or why run() returned)."""
    FINISHED = auto()             # Program jumped to itself
    USER_STOP = auto()            # Driver called stop() / continue flag cleared
    MAX_TICKS = auto()            # run() tick budget exhausted (still runnable)
    OUT_OF_BOUNDS = auto()        # OutOfBoundsAccess
    UNRECOGNIZED_OPCODE = auto()  # UnrecognizedOpcode
    STACK_OVERFLOW = auto()       # StackOverflow
    STACK_UNDERFLOW = auto()      # StackUnderflow
    ERROR = auto()                # Any other ExecutionError

    @property
    def is_error(self) -> bool:
        return self not in (HaltReason.FINISHED, HaltReason.USER_STOP, HaltReason.MAX_TICKS)

    @classmethod
    def for_error(cls, error: ExecutionError) -> "HaltReason":
        match error:
            case OutOfBoundsAccess():
                return cls.OUT_OF_BOUNDS
            case UnrecognizedOpcode():
                return cls.UNRECOGNIZED_OPCODE
            case StackOverflow():
                return cls.STACK_OVERFLOW
            case StackUnderflow():
                return cls.STACK_UNDERFLOW
            case _:
                return cls.ERROR


@dataclass
class HaltEvent:
    """
    Information about why execution stopped.

    Attributes:
        reason: Why execution stopped
        address: PC of the faulting or final instruction (if applicable)
        message: Human-readable description
        error: The execution error, for error halts
    """
    reason: HaltReason
    address: Optional[int] = None
    message: str = ""
    error: Optional[ExecutionError] = None

    def __str__(self) -> str:
        if self.message:
            return self.message
        match self.reason:
            case HaltReason.FINISHED:
                return "Program finished"
            case HaltReason.USER_STOP:
                return "Stopped by driver"
            case HaltReason.MAX_TICKS:
                return "Maximum ticks reached"
            case _:
                return str(self.error) if self.error else "Execution error"


# =============================================================================
# Emulator
# =============================================================================

class Emulator:
    """
    CHIP-8 execution engine.

    Attributes:
        config: The EmulatorConfig used to initialize this instance
        memory: 4 KB memory
        cpu: Register file, call stack and instruction dispatch
        display: 64x32 framebuffer
        keypad: Key states and Fx0A wait state
        timers: Delay and sound timers

    Example:
        >>> emu = Emulator()
        >>> emu.load_rom("pong.ch8")
        >>> while emu.is_running:
        ...     emu.tick()
        >>> print(emu.halt_event)
    """

    def __init__(
        self,
        config: Optional[EmulatorConfig] = None,
        key_input: Optional[KeyInput] = None,
        renderer: Optional[Renderer] = None,
        audio: Optional[AudioOutput] = None,
        random_byte: Optional[Callable[[], int]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Args:
            config: Engine options (defaults to EmulatorConfig())
            key_input: Key state source, polled once per tick
            renderer: Frame sink, called when the framebuffer changed
            audio: Tone trigger; wrap blocking outputs in BackgroundAudio
            random_byte: Byte source for Cxkk
            clock: Monotonic seconds, drives the 60 Hz timers
        """
        self.config = config or EmulatorConfig()
        self.key_input: KeyInput = key_input or NullKeyInput()
        self.renderer: Renderer = renderer or NullRenderer()
        self.audio: AudioOutput = audio or NullAudio()

        self.memory = Memory()
        self.display = Display(self.config.initial_color)
        self.keypad = Keypad()
        self.timers = Timers(clock)
        self.cpu = CHIP8CPU(self.memory, self.display, self.keypad, self.timers, random_byte)

        if self.config.debug:
            self.cpu.on_instruction = self._trace_hook

        self._halt_event: Optional[HaltEvent] = None
        self._ticks = 0
        self._instructions = 0
        self._tones = 0

    # =========================================================================
    # Program Loading
    # =========================================================================

    def load_rom(self, path: Union[str, Path]) -> None:
        """
        Load a ROM file (raw big-endian instruction words) at $200.

        Raises:
            RomLoadError: file missing, empty or larger than program memory
        """
        path = Path(path)
        if not path.is_file():
            raise RomLoadError(f"ROM file not found: {path}")
        data = path.read_bytes()
        if not data:
            raise RomLoadError(f"ROM file is empty: {path}")
        self.load_program(data)
        logger.info(f"Loaded {path.name} ({len(data)} bytes)")

    def load_program(self, data: bytes) -> None:
        """Load program bytes at $200 (PC is left at $200)."""
        if len(data) > MAX_PROGRAM_SIZE:
            raise RomLoadError(f"program is {len(data)} bytes, maximum is {MAX_PROGRAM_SIZE}")
        self.memory.load_program(bytes(data))

    def reset(self) -> None:
        """
        Return to power-on state: memory cleared and font reloaded,
        registers zeroed, PC at $200, counters cleared. Programs must be
        loaded again afterwards.
        """
        self.memory.reset()
        self.cpu.reset()
        self.display.reset(self.config.initial_color)
        self.keypad.reset()
        self.timers.reset()
        self._halt_event = None
        self._ticks = 0
        self._instructions = 0
        self._tones = 0

    # =========================================================================
    # Execution Control
    # =========================================================================

    @property
    def is_running(self) -> bool:
        """False once the engine halted; the driver must stop ticking."""
        return self._halt_event is None

    @property
    def halt_event(self) -> Optional[HaltEvent]:
        return self._halt_event

    def _halt(self, event: HaltEvent) -> None:
        self._halt_event = event
        if event.reason.is_error:
            logger.error(f"Halted: {event}")
        else:
            logger.info(f"Halted: {event}")

    def stop(self) -> HaltEvent:
        """Stop execution at the driver's request."""
        if self._halt_event is None:
            self._halt(HaltEvent(HaltReason.USER_STOP, address=self.cpu.pc))
        return self._halt_event

    def tick(self) -> None:
        """
        Advance the machine by one tick.

        Raises:
            EmulatorHalted: the engine already stopped
        """
        if self._halt_event is not None:
            raise EmulatorHalted(f"Emulator halted: {self._halt_event}")

        self._ticks += 1

        keys = self.key_input.poll_keys()
        if keys is not None:
            self.keypad.update(list(keys)[:NUM_KEYS])

        blocked = False
        if self.keypad.is_awaiting:
            resolved = self.keypad.resolve_wait()
            if resolved is None:
                blocked = True
            else:
                register, key = resolved
                self.cpu.set_register(register, key)

        if not blocked:
            address = self.cpu.pc
            try:
                self.cpu.step()
            except ExecutionError as e:
                self._halt(HaltEvent(HaltReason.for_error(e), address=address, error=e))
                return
            self._instructions += 1

            if self.cpu.finished:
                self._halt(HaltEvent(
                    HaltReason.FINISHED,
                    address=address,
                    message=f"Program finished (jump to self at ${address:03X})",
                ))
                return

            self._render()

        if self.timers.update() and self.config.play_sound:
            self._tones += 1
            self.audio.play_tone()

    def _render(self) -> None:
        if self.config.render_screen and self.display.dirty:
            self.renderer.render(self.display.frame_buffer, self.display.color)
            self.display.mark_rendered()

    def run(
        self,
        max_ticks: Optional[int] = None,
        should_continue: Optional[Callable[[], bool]] = None,
        tick_interval: float = 0.0,
    ) -> HaltEvent:
        """
        Drive tick() until the engine halts.

        Args:
            max_ticks: Give up after this many ticks (None = unlimited)
            should_continue: External continue flag checked before each
                tick; returning False stops the engine
            tick_interval: Seconds to sleep after each tick (throttle)

        Returns:
            HaltEvent describing why execution stopped. A MAX_TICKS event
            leaves the engine runnable.
        """
        ticks = 0
        while self._halt_event is None:
            if should_continue is not None and not should_continue():
                return self.stop()
            if max_ticks is not None and ticks >= max_ticks:
                return HaltEvent(
                    HaltReason.MAX_TICKS,
                    address=self.cpu.pc,
                    message=f"Reached max ticks ({max_ticks})",
                )
            self.tick()
            ticks += 1
            if tick_interval > 0:
                time.sleep(tick_interval)
        return self._halt_event

    # =========================================================================
    # Keyboard Input
    # =========================================================================

    def press_key(self, key: int) -> None:
        """Press a logical key (0x0-0xF) until release_key()."""
        self.keypad.press(key)

    def release_key(self, key: int) -> None:
        self.keypad.release(key)

    # =========================================================================
    # Debug Trace
    # =========================================================================

    def _trace_hook(self, pc: int, instruction: Instruction) -> None:
        mnemonic, operands = format_instruction(instruction)
        regs = " ".join(f"{value:02X}" for value in self.cpu.state.v)
        trace_logger.debug(
            f"${pc:03X}: {instruction.opcode:04X}  {mnemonic:<4} {operands:<14} "
            f"V=[{regs}] I={self.cpu.i:03X} SP={self.cpu.stack.depth} "
            f"DT={self.timers.delay:02X} ST={self.timers.sound:02X}"
        )

    # =========================================================================
    # State Inspection
    # =========================================================================

    @property
    def registers(self) -> Dict[str, int]:
        """
        Current register values.

        Returns:
            Dictionary with keys v0..vf, i, pc, sp, dt, st
        """
        result = {f"v{n:x}": value for n, value in enumerate(self.cpu.state.v)}
        result.update({
            'i': self.cpu.i,
            'pc': self.cpu.pc,
            'sp': self.cpu.stack.depth,
            'dt': self.timers.delay,
            'st': self.timers.sound,
        })
        return result

    @property
    def ticks(self) -> int:
        return self._ticks

    @property
    def instructions_executed(self) -> int:
        return self._instructions

    @property
    def frames_rendered(self) -> int:
        return self.display.times_rendered

    @property
    def tones_played(self) -> int:
        return self._tones

    def read_byte(self, address: int) -> int:
        return self.memory.read(address)

    def write_byte(self, address: int, value: int) -> None:
        self.memory.write(address, value)

    def read_bytes(self, address: int, count: int) -> bytes:
        return self.memory.dump(address, count)

    # =========================================================================
    # Snapshot Support
    # =========================================================================

    SNAPSHOT_MAGIC = b'C8S\x01'

    def save_snapshot(self, path: Union[str, Path]) -> None:
        """
        Save machine state (registers, stack, timers, keypad wait state,
        framebuffer and memory) to a file.
        """
        data = bytearray(self.SNAPSHOT_MAGIC)
        data.extend(bytes(self.cpu.get_snapshot_data()))
        data.extend(bytes(self.timers.get_snapshot_data()))
        data.extend(bytes(self.keypad.get_snapshot_data()))
        data.extend(bytes(self.display.get_snapshot_data()))
        data.extend(bytes(self.memory.get_snapshot_data()))
        Path(path).write_bytes(bytes(data))

    def load_snapshot(self, path: Union[str, Path]) -> None:
        """
        Restore machine state saved by save_snapshot(). The engine is
        runnable again afterwards.

        Raises:
            FileNotFoundError: snapshot file missing
            ValueError: not a snapshot file, truncated, or inconsistent;
                the machine state is left unchanged
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Snapshot file not found: {path}")

        raw = path.read_bytes()
        if raw[:4] != self.SNAPSHOT_MAGIC:
            raise ValueError("Invalid snapshot format (bad header)")
        data = list(raw)
        self._check_snapshot(data)

        offset = 4
        offset += self.cpu.apply_snapshot_data(data, offset)
        offset += self.timers.apply_snapshot_data(data, offset)
        offset += self.keypad.apply_snapshot_data(data, offset)
        offset += self.display.apply_snapshot_data(data, offset)
        offset += self.memory.apply_snapshot_data(data, offset)
        self._halt_event = None

    def _check_snapshot(self, data: List[int]) -> None:
        """
        Validate the whole snapshot layout before any subsystem is touched.

        Layout after the magic: CPU (16 registers, I, PC, depth, 2 bytes
        per stack entry), timers (2), keypad (2), display (3 + 256),
        memory (4096).
        """
        cpu_fixed = NUM_REGISTERS + 5
        if len(data) < 4 + cpu_fixed:
            raise ValueError("Invalid snapshot format (truncated)")
        depth = data[4 + cpu_fixed - 1]
        if depth > STACK_DEPTH:
            raise ValueError(f"Invalid snapshot format (stack depth {depth})")

        keypad_at = 4 + cpu_fixed + 2 * depth + 2
        expected = keypad_at + 2 + 3 + SCREEN_SIZE // 8 + MEMORY_SIZE
        if len(data) != expected:
            raise ValueError(
                f"Invalid snapshot format (expected {expected} bytes, got {len(data)})"
            )
        if data[keypad_at] and data[keypad_at + 1] >= NUM_REGISTERS:
            raise ValueError("Invalid snapshot format (wait register)")

    def __repr__(self) -> str:
        return (
            f"Emulator(pc=${self.cpu.pc:03X}, "
            f"instructions={self._instructions}, "
            f"running={self.is_running})"
        )
