"""
CHIP-8 Disassembler Module
==========================

Usage:
    from chip8_vm.disassembler import CHIP8Disassembler

    disasm = CHIP8Disassembler()
    for instr in disasm.disassemble(rom_bytes, start_address=0x200):
        print(instr)
"""

from .chip8 import CHIP8Disassembler, DisassembledInstruction, format_instruction

__all__ = [
    "CHIP8Disassembler",
    "DisassembledInstruction",
    "format_instruction",
]
