"""
CHIP-8 CPU
==========

Registers:
- V0-VF: sixteen 8-bit general registers. VF doubles as the flag output
  of add, subtract, shift and draw, and is overwritten by them.
- I: 16-bit index register (memory pointer)
- PC: 16-bit program counter
- Call stack: up to 16 return addresses

Every instruction is one big-endian 16-bit word. The word at PC is fetched
and PC advances by 2 before dispatch, so jumps and calls simply overwrite
the advanced value and skips add another 2.

The word is split into four nibbles (op, x, y, n) plus nnn (low 12 bits)
and kk (low 8 bits), and dispatched on (op, x, y, n) with wildcards for
the fields an instruction does not use.
"""

import random
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional

from ..errors import ExecutionError, StackOverflow, StackUnderflow, UnrecognizedOpcode
from .display import Display
from .keypad import Keypad
from .memory import BYTES_PER_GLYPH, FONT_START, PROGRAM_START, Memory
from .timers import Timers

NUM_REGISTERS = 16
FLAG_REGISTER = 0xF
STACK_DEPTH = 16


# =============================================================================
# Decoding
# =============================================================================

@dataclass(frozen=True)
class Instruction:
    """
    A decoded instruction word.

    Attributes:
        opcode: The full 16-bit word
        op: Nibble 3 (instruction group)
        x: Nibble 2 (usually a register index)
        y: Nibble 1 (usually a register index)
        n: Nibble 0
        nnn: Low 12 bits (address)
        kk: Low 8 bits (immediate byte)
    """
    opcode: int
    op: int
    x: int
    y: int
    n: int
    nnn: int
    kk: int


def decode(word: int) -> Instruction:
    """Split a 16-bit instruction word into its fields."""
    word &= 0xFFFF
    return Instruction(
        opcode=word,
        op=(word >> 12) & 0xF,
        x=(word >> 8) & 0xF,
        y=(word >> 4) & 0xF,
        n=word & 0xF,
        nnn=word & 0xFFF,
        kk=word & 0xFF,
    )


# =============================================================================
# Call Stack
# =============================================================================

class CallStack:
    """
    Bounded LIFO of 16-bit return addresses.

    Pushing beyond STACK_DEPTH raises StackOverflow and popping an empty
    stack raises StackUnderflow; neither wraps silently.
    """

    def __init__(self, depth: int = STACK_DEPTH):
        self._depth = depth
        self._entries: List[int] = []

    def push(self, address: int) -> None:
        if len(self._entries) >= self._depth:
            raise StackOverflow(len(self._entries))
        self._entries.append(address & 0xFFFF)

    def pop(self) -> int:
        if not self._entries:
            raise StackUnderflow()
        return self._entries.pop()

    def peek(self) -> Optional[int]:
        return self._entries[-1] if self._entries else None

    def clear(self) -> None:
        self._entries.clear()

    @property
    def depth(self) -> int:
        return len(self._entries)

    @property
    def max_depth(self) -> int:
        return self._depth

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)


# =============================================================================
# CPU State
# =============================================================================

@dataclass
class CPUState:
    """
    Register file.

    - v: 16 registers, 8-bit unsigned
    - i: index register, 16-bit
    - pc: program counter, 16-bit
    """
    v: List[int] = field(default_factory=lambda: [0] * NUM_REGISTERS)
    i: int = 0
    pc: int = PROGRAM_START


def _default_random_byte() -> Callable[[], int]:
    rng = random.Random()
    return lambda: rng.randrange(256)


class CHIP8CPU:
    """
    CHIP-8 interpreter core.

    The CPU owns the register file and call stack and operates on the
    memory, display, keypad and timers it is given. step() executes one
    instruction and raises an ExecutionError subclass on a fault; the
    caller decides how to halt.

    Instrumentation hook:
        on_instruction(pc, instruction) is called after decode and before
        dispatch, with pc the address of the instruction.

    Example:
        >>> cpu = CHIP8CPU(Memory(), Display(), Keypad(), Timers())
        >>> cpu.memory.load_program(bytes([0x60, 0x12]))
        >>> _ = cpu.step()
        >>> cpu.get_register(0)
        18
    """

    def __init__(
        self,
        memory: Memory,
        display: Display,
        keypad: Keypad,
        timers: Timers,
        random_byte: Optional[Callable[[], int]] = None,
    ):
        """
        Args:
            memory: Memory store
            display: Framebuffer drawn by 00E0 and Dxyn
            keypad: Key states and wait-for-key state
            timers: Delay and sound timers
            random_byte: Source of uniform bytes for Cxkk (injectable for
                deterministic runs)
        """
        self.memory = memory
        self.display = display
        self.keypad = keypad
        self.timers = timers
        self.random_byte = random_byte or _default_random_byte()

        self.state = CPUState()
        self.stack = CallStack()

        # Set by a jump to its own address
        self.finished = False

        self.on_instruction: Optional[Callable[[int, Instruction], None]] = None

    # ========================================
    # Register Access
    # ========================================

    def get_register(self, index: int) -> int:
        return self.state.v[index & 0xF]

    def set_register(self, index: int, value: int) -> None:
        self.state.v[index & 0xF] = value & 0xFF

    @property
    def v(self) -> List[int]:
        """Copy of V0-VF."""
        return list(self.state.v)

    @property
    def i(self) -> int:
        """Index register (16-bit)."""
        return self.state.i

    @i.setter
    def i(self, value: int) -> None:
        self.state.i = value & 0xFFFF

    @property
    def pc(self) -> int:
        """Program counter (16-bit)."""
        return self.state.pc

    @pc.setter
    def pc(self, value: int) -> None:
        self.state.pc = value & 0xFFFF

    @property
    def flag(self) -> int:
        return self.state.v[FLAG_REGISTER]

    def reset(self) -> None:
        """Zero registers, empty the stack and point PC at the program."""
        self.state = CPUState()
        self.stack.clear()
        self.finished = False

    # ========================================
    # Execution
    # ========================================

    def fetch(self) -> int:
        """Read the word at PC and advance PC by 2."""
        word = self.memory.read_word(self.pc)
        self.pc = self.pc + 2
        return word

    def step(self) -> Instruction:
        """
        Execute exactly one instruction.

        Returns:
            The decoded instruction that was executed

        Raises:
            ExecutionError: the instruction faulted; the error's pc is set
                to the instruction address
        """
        address = self.pc
        try:
            instruction = decode(self.fetch())
            if self.on_instruction:
                self.on_instruction(address, instruction)
            self._execute_instruction(instruction, address)
        except ExecutionError as e:
            raise e.at(address)
        return instruction

    def _skip_if(self, condition: bool) -> None:
        if condition:
            self.pc = self.pc + 2

    def _execute_instruction(self, ins: Instruction, address: int) -> None:
        """
        Dispatch one decoded instruction.

        Args:
            ins: Decoded instruction
            address: Address the instruction was fetched from
        """
        v = self.state.v
        x, y, kk, nnn = ins.x, ins.y, ins.kk, ins.nnn

        match (ins.op, x, y, ins.n):
            # ============================================
            # System and flow control
            # ============================================
            case (0x0, 0x0, 0x0, 0x0):  # SYS 0 (no-op)
                pass
            case (0x0, 0x0, 0xE, 0x0):  # CLS
                self.display.clear()
            case (0x0, 0x0, 0xE, 0xE):  # RET
                self.pc = self.stack.pop()
            case (0x1, _, _, _):  # JP nnn
                if nnn == address:
                    self.finished = True
                self.pc = nnn
            case (0x2, _, _, _):  # CALL nnn
                self.stack.push(self.pc)
                self.pc = nnn
            case (0x3, _, _, _):  # SE Vx, kk
                self._skip_if(v[x] == kk)
            case (0x4, _, _, _):  # SNE Vx, kk
                self._skip_if(v[x] != kk)
            case (0x5, _, _, 0x0):  # SE Vx, Vy
                self._skip_if(v[x] == v[y])
            case (0x6, _, _, _):  # LD Vx, kk
                v[x] = kk
            case (0x7, _, _, _):  # ADD Vx, kk (no flag)
                v[x] = (v[x] + kk) & 0xFF

            # ============================================
            # Register-register ALU (8xyN)
            # ============================================
            case (0x8, _, _, 0x0):  # LD Vx, Vy
                v[x] = v[y]
            case (0x8, _, _, 0x1):  # OR
                v[x] = v[x] | v[y]
            case (0x8, _, _, 0x2):  # AND
                v[x] = v[x] & v[y]
            case (0x8, _, _, 0x3):  # XOR
                v[x] = v[x] ^ v[y]
            case (0x8, _, _, 0x4):  # ADD Vx, Vy (VF = carry)
                total = v[x] + v[y]
                v[FLAG_REGISTER] = 1 if total > 0xFF else 0
                v[x] = total & 0xFF
            case (0x8, _, _, 0x5):  # SUB Vx, Vy (VF = NOT borrow)
                vx, vy = v[x], v[y]
                v[FLAG_REGISTER] = 1 if vx > vy else 0
                v[x] = (vx - vy) & 0xFF
            case (0x8, _, _, 0x6):  # SHR Vx (VF = bit 0)
                vx = v[x]
                v[FLAG_REGISTER] = vx & 0x01
                v[x] = vx >> 1
            case (0x8, _, _, 0x7):  # SUBN Vx, Vy (VF = NOT borrow)
                vx, vy = v[x], v[y]
                v[FLAG_REGISTER] = 1 if vy > vx else 0
                v[x] = (vy - vx) & 0xFF
            case (0x8, _, _, 0xE):  # SHL Vx (VF = bit 7)
                vx = v[x]
                v[FLAG_REGISTER] = (vx >> 7) & 0x01
                v[x] = (vx << 1) & 0xFF

            case (0x9, _, _, 0x0):  # SNE Vx, Vy
                self._skip_if(v[x] != v[y])
            case (0xA, _, _, _):  # LD I, nnn
                self.i = nnn
            case (0xB, _, _, _):  # JP V0, nnn
                self.pc = v[0] + nnn
            case (0xC, _, _, _):  # RND Vx, kk
                v[x] = (self.random_byte() & 0xFF) & kk
            case (0xD, _, _, _):  # DRW Vx, Vy, n
                self._draw(v[x], v[y], ins.n)

            # ============================================
            # Keypad
            # ============================================
            case (0xE, _, 0x9, 0xE):  # SKP Vx
                self._skip_if(self.keypad.is_pressed(v[x] & 0xF))
            case (0xE, _, 0xA, 0x1):  # SKNP Vx
                self._skip_if(not self.keypad.is_pressed(v[x] & 0xF))

            # ============================================
            # Timers, index and memory transfer (FxNN)
            # ============================================
            case (0xF, _, 0x0, 0x7):  # LD Vx, DT
                v[x] = self.timers.delay
            case (0xF, _, 0x0, 0xA):  # LD Vx, K
                self.keypad.begin_wait(x)
            case (0xF, _, 0x1, 0x5):  # LD DT, Vx
                self.timers.delay = v[x]
            case (0xF, _, 0x1, 0x8):  # LD ST, Vx
                self.timers.sound = v[x]
            case (0xF, _, 0x1, 0xE):  # ADD I, Vx
                self.i = self.i + v[x]
            case (0xF, _, 0x2, 0x9):  # LD F, Vx
                self.i = FONT_START + v[x] * BYTES_PER_GLYPH
            case (0xF, _, 0x3, 0x3):  # LD B, Vx
                vx = v[x]
                self.memory.write(self.i, vx // 100)
                self.memory.write(self.i + 1, (vx // 10) % 10)
                self.memory.write(self.i + 2, vx % 10)
            case (0xF, _, 0x5, 0x5):  # LD [I], V0..Vx
                for r in range(x + 1):
                    self.memory.write(self.i + r, v[r])
            case (0xF, _, 0x6, 0x5):  # LD V0..Vx, [I]
                values = [self.memory.read(self.i + r) for r in range(x + 1)]
                v[:x + 1] = values

            case _:
                raise UnrecognizedOpcode(ins.opcode)

    def _draw(self, vx: int, vy: int, height: int) -> None:
        """Dxyn: XOR-blit n rows from memory[I..] at (vx, vy)."""
        self.state.v[FLAG_REGISTER] = 0
        rows = bytes(self.memory.read(self.i + r) for r in range(height))
        if self.display.draw_sprite(vx, vy, rows):
            self.state.v[FLAG_REGISTER] = 1

    # ========================================
    # Snapshot Support
    # ========================================

    def get_snapshot_data(self) -> List[int]:
        """
        Get CPU state as byte list for snapshot.

        Layout: [V0..VF, Ihi, Ilo, PChi, PClo, depth, (hi, lo) * depth]
        """
        result = list(self.state.v)
        result.extend([
            (self.i >> 8) & 0xFF,
            self.i & 0xFF,
            (self.pc >> 8) & 0xFF,
            self.pc & 0xFF,
            self.stack.depth,
        ])
        for address in self.stack:
            result.extend([(address >> 8) & 0xFF, address & 0xFF])
        return result

    def apply_snapshot_data(self, data: List[int], offset: int = 0) -> int:
        """
        Restore CPU state from snapshot data. Returns bytes consumed.

        Raises:
            ValueError: data truncated or stack depth out of range; the
                CPU is left unchanged
        """
        pos = offset
        header = data[pos:pos + NUM_REGISTERS + 5]
        if len(header) != NUM_REGISTERS + 5:
            raise ValueError("Snapshot truncated in CPU section")
        depth = header[NUM_REGISTERS + 4]
        if depth > self.stack.max_depth:
            raise ValueError(f"Snapshot stack depth {depth} exceeds {self.stack.max_depth}")
        entries = data[pos + NUM_REGISTERS + 5:pos + NUM_REGISTERS + 5 + 2 * depth]
        if len(entries) != 2 * depth:
            raise ValueError("Snapshot truncated in CPU section")

        self.state.v = list(header[:NUM_REGISTERS])
        self.i = (header[NUM_REGISTERS] << 8) | header[NUM_REGISTERS + 1]
        self.pc = (header[NUM_REGISTERS + 2] << 8) | header[NUM_REGISTERS + 3]
        self.stack.clear()
        for n in range(depth):
            self.stack.push((entries[2 * n] << 8) | entries[2 * n + 1])
        self.finished = False
        return NUM_REGISTERS + 5 + 2 * depth
