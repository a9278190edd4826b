"""
Disassembler Tests
==================

Tests for CHIP-8 instruction formatting and the linear-sweep
disassembler.
"""

import pytest

from chip8_vm.disassembler import CHIP8Disassembler, DisassembledInstruction


@pytest.fixture
def disasm():
    return CHIP8Disassembler()


class TestMnemonics:
    @pytest.mark.parametrize("word, text", [
        (0x0000, "SYS $000"),
        (0x00E0, "CLS"),
        (0x00EE, "RET"),
        (0x1234, "JP $234"),
        (0x2456, "CALL $456"),
        (0x3A12, "SE VA, $12"),
        (0x4B34, "SNE VB, $34"),
        (0x5120, "SE V1, V2"),
        (0x6012, "LD V0, $12"),
        (0x7F01, "ADD VF, $01"),
        (0x8120, "LD V1, V2"),
        (0x8121, "OR V1, V2"),
        (0x8122, "AND V1, V2"),
        (0x8123, "XOR V1, V2"),
        (0x8124, "ADD V1, V2"),
        (0x8125, "SUB V1, V2"),
        (0x8106, "SHR V1"),
        (0x8127, "SUBN V1, V2"),
        (0x810E, "SHL V1"),
        (0x9120, "SNE V1, V2"),
        (0xA300, "LD I, $300"),
        (0xB300, "JP V0, $300"),
        (0xC10F, "RND V1, $0F"),
        (0xD125, "DRW V1, V2, 5"),
        (0xE19E, "SKP V1"),
        (0xE1A1, "SKNP V1"),
        (0xF107, "LD V1, DT"),
        (0xF10A, "LD V1, K"),
        (0xF115, "LD DT, V1"),
        (0xF118, "LD ST, V1"),
        (0xF11E, "ADD I, V1"),
        (0xF129, "LD F, V1"),
        (0xF133, "LD B, V1"),
        (0xF155, "LD [I], V1"),
        (0xF165, "LD V1, [I]"),
    ])
    def test_instruction_text(self, disasm, word, text):
        assert disasm.disassemble_one(word, 0x200).text == text

    @pytest.mark.parametrize("word", [0x5121, 0x8128, 0xE100, 0xF1FF, 0x0123])
    def test_unknown_words_are_data(self, disasm, word):
        instr = disasm.disassemble_one(word, 0x200)
        assert instr.is_data
        assert instr.text == f"DW ${word:04X}"


class TestListing:
    def test_str_format(self, disasm):
        assert str(disasm.disassemble_one(0x6012, 0x200)) == "$200: 6012  LD V0, $12"

    def test_addresses_advance_by_two(self, disasm):
        listing = disasm.disassemble(bytes([0x60, 0x12, 0x00, 0xE0, 0x12, 0x04]))
        assert [i.address for i in listing] == [0x200, 0x202, 0x204]
        assert [i.mnemonic for i in listing] == ["LD", "CLS", "JP"]

    def test_start_address(self, disasm):
        listing = disasm.disassemble(bytes([0x00, 0xE0]), start_address=0x300)
        assert listing[0].address == 0x300

    def test_count(self, disasm):
        assert len(disasm.disassemble(bytes(10), count=2)) == 2

    def test_odd_trailing_byte(self, disasm):
        listing = disasm.disassemble(bytes([0x00, 0xE0, 0xAB]))
        assert listing[-1].mnemonic == "DB"
        assert listing[-1].operand_str == "$AB"
        assert listing[-1].address == 0x202

    def test_to_text(self, disasm):
        text = disasm.disassemble_to_text(bytes([0x00, 0xE0, 0x00, 0xEE]))
        assert text == "$200: 00E0  CLS\n$202: 00EE  RET"

    def test_to_dict(self):
        instr = DisassembledInstruction(0x200, 0x00E0, "CLS")
        assert instr.to_dict() == {
            "address": "$200",
            "address_int": 0x200,
            "opcode": "$00E0",
            "mnemonic": "CLS",
            "operand": "",
        }
