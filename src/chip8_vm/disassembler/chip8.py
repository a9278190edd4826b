"""
CHIP-8 Disassembler
===================

Turns 16-bit instruction words into mnemonic form. Used by the
per-instruction debug trace and by the chip8disasm command.

Mnemonics follow Cowgod's CHIP-8 technical reference (LD, SE, DRW, ...).
Words that match no instruction are shown as data: DW $HHHH.

Example:
    >>> disasm = CHIP8Disassembler()
    >>> print(disasm.disassemble_one(0x6012, 0x200))
    $200: 6012  LD V0, $12
"""

from dataclasses import dataclass
from typing import List, Optional

from ..emulator.cpu import Instruction, decode
from ..emulator.memory import PROGRAM_START


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class DisassembledInstruction:
    """
    A single disassembled instruction.

    Attributes:
        address: Memory address of the instruction
        opcode: The 16-bit instruction word
        mnemonic: Instruction mnemonic (e.g. "LD", "DRW"), "DW" for data
        operand_str: Formatted operands (may be empty)
    """
    address: int
    opcode: int
    mnemonic: str
    operand_str: str = ""

    @property
    def is_data(self) -> bool:
        return self.mnemonic == "DW"

    @property
    def text(self) -> str:
        """Mnemonic and operands without address or raw bytes."""
        if self.operand_str:
            return f"{self.mnemonic} {self.operand_str}"
        return self.mnemonic

    def __str__(self) -> str:
        return f"${self.address:03X}: {self.opcode:04X}  {self.text}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "address": f"${self.address:03X}",
            "address_int": self.address,
            "opcode": f"${self.opcode:04X}",
            "mnemonic": self.mnemonic,
            "operand": self.operand_str,
        }


def format_instruction(ins: Instruction) -> tuple[str, str]:
    """Return (mnemonic, operands) for a decoded instruction."""
    x, y, n, kk, nnn = ins.x, ins.y, ins.n, ins.kk, ins.nnn
    match (ins.op, x, y, n):
        case (0x0, 0x0, 0x0, 0x0):
            return "SYS", "$000"
        case (0x0, 0x0, 0xE, 0x0):
            return "CLS", ""
        case (0x0, 0x0, 0xE, 0xE):
            return "RET", ""
        case (0x1, _, _, _):
            return "JP", f"${nnn:03X}"
        case (0x2, _, _, _):
            return "CALL", f"${nnn:03X}"
        case (0x3, _, _, _):
            return "SE", f"V{x:X}, ${kk:02X}"
        case (0x4, _, _, _):
            return "SNE", f"V{x:X}, ${kk:02X}"
        case (0x5, _, _, 0x0):
            return "SE", f"V{x:X}, V{y:X}"
        case (0x6, _, _, _):
            return "LD", f"V{x:X}, ${kk:02X}"
        case (0x7, _, _, _):
            return "ADD", f"V{x:X}, ${kk:02X}"
        case (0x8, _, _, 0x0):
            return "LD", f"V{x:X}, V{y:X}"
        case (0x8, _, _, 0x1):
            return "OR", f"V{x:X}, V{y:X}"
        case (0x8, _, _, 0x2):
            return "AND", f"V{x:X}, V{y:X}"
        case (0x8, _, _, 0x3):
            return "XOR", f"V{x:X}, V{y:X}"
        case (0x8, _, _, 0x4):
            return "ADD", f"V{x:X}, V{y:X}"
        case (0x8, _, _, 0x5):
            return "SUB", f"V{x:X}, V{y:X}"
        case (0x8, _, _, 0x6):
            return "SHR", f"V{x:X}"
        case (0x8, _, _, 0x7):
            return "SUBN", f"V{x:X}, V{y:X}"
        case (0x8, _, _, 0xE):
            return "SHL", f"V{x:X}"
        case (0x9, _, _, 0x0):
            return "SNE", f"V{x:X}, V{y:X}"
        case (0xA, _, _, _):
            return "LD", f"I, ${nnn:03X}"
        case (0xB, _, _, _):
            return "JP", f"V0, ${nnn:03X}"
        case (0xC, _, _, _):
            return "RND", f"V{x:X}, ${kk:02X}"
        case (0xD, _, _, _):
            return "DRW", f"V{x:X}, V{y:X}, {n}"
        case (0xE, _, 0x9, 0xE):
            return "SKP", f"V{x:X}"
        case (0xE, _, 0xA, 0x1):
            return "SKNP", f"V{x:X}"
        case (0xF, _, 0x0, 0x7):
            return "LD", f"V{x:X}, DT"
        case (0xF, _, 0x0, 0xA):
            return "LD", f"V{x:X}, K"
        case (0xF, _, 0x1, 0x5):
            return "LD", f"DT, V{x:X}"
        case (0xF, _, 0x1, 0x8):
            return "LD", f"ST, V{x:X}"
        case (0xF, _, 0x1, 0xE):
            return "ADD", f"I, V{x:X}"
        case (0xF, _, 0x2, 0x9):
            return "LD", f"F, V{x:X}"
        case (0xF, _, 0x3, 0x3):
            return "LD", f"B, V{x:X}"
        case (0xF, _, 0x5, 0x5):
            return "LD", f"[I], V{x:X}"
        case (0xF, _, 0x6, 0x5):
            return "LD", f"V{x:X}, [I]"
        case _:
            return "DW", f"${ins.opcode:04X}"


# =============================================================================
# CHIP-8 Disassembler
# =============================================================================

class CHIP8Disassembler:
    """
    Linear-sweep disassembler for CHIP-8 programs.

    Every instruction is exactly two bytes, so a program image is simply
    walked two bytes at a time. A trailing odd byte is reported as data.
    """

    def disassemble_one(self, word: int, address: int) -> DisassembledInstruction:
        """
        Disassemble a single instruction word.

        Args:
            word: 16-bit instruction word
            address: Address the word lives at (for display)
        """
        mnemonic, operands = format_instruction(decode(word))
        return DisassembledInstruction(address, word & 0xFFFF, mnemonic, operands)

    def disassemble(
        self,
        data: bytes,
        start_address: int = PROGRAM_START,
        count: Optional[int] = None,
    ) -> List[DisassembledInstruction]:
        """
        Disassemble a byte buffer.

        Args:
            data: Program bytes
            start_address: Address of data[0]
            count: Maximum number of instructions (None = all)

        Returns:
            List of DisassembledInstruction objects
        """
        result = []
        for offset in range(0, len(data), 2):
            if count is not None and len(result) >= count:
                break
            address = start_address + offset
            if offset + 1 >= len(data):
                # Odd trailing byte
                result.append(
                    DisassembledInstruction(address, data[offset], "DB", f"${data[offset]:02X}")
                )
                break
            word = (data[offset] << 8) | data[offset + 1]
            result.append(self.disassemble_one(word, address))
        return result

    def disassemble_to_text(
        self,
        data: bytes,
        start_address: int = PROGRAM_START,
        count: Optional[int] = None,
    ) -> str:
        """Disassemble and return a multi-line listing."""
        return "\n".join(str(instr) for instr in self.disassemble(data, start_address, count))
