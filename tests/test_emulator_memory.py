"""
Memory Subsystem Tests
======================

Tests for the 4 KB memory, the font table and the access policy.
"""

import pytest

from chip8_vm.emulator.memory import (
    BYTES_PER_GLYPH,
    FONT_SIZE,
    FONT_SPRITES,
    MAX_PROGRAM_SIZE,
    MEMORY_SIZE,
    PROGRAM_START,
    Memory,
)
from chip8_vm.errors import OutOfBoundsAccess, RomLoadError


@pytest.fixture
def memory():
    return Memory()


class TestLayout:
    def test_size(self, memory):
        assert len(memory) == MEMORY_SIZE == 4096

    def test_font_loaded_at_zero(self, memory):
        assert memory.dump(0, FONT_SIZE) == FONT_SPRITES
        assert len(FONT_SPRITES) == 80

    def test_glyph_a(self, memory):
        start = 0xA * BYTES_PER_GLYPH
        assert memory.dump(start, 5) == bytes([0xF0, 0x90, 0xF0, 0x90, 0x90])

    def test_program_area_starts_empty(self, memory):
        assert memory.read(PROGRAM_START) == 0


class TestAccess:
    def test_write_and_read(self, memory):
        memory.write(0x300, 0x42)
        assert memory.read(0x300) == 0x42

    def test_write_masks_to_byte(self, memory):
        memory.write(0x300, 0x1FF)
        assert memory.read(0x300) == 0xFF

    def test_big_endian_word(self, memory):
        memory.write(0x300, 0x12)
        memory.write(0x301, 0x34)
        assert memory.read_word(0x300) == 0x1234

    def test_last_byte_accessible(self, memory):
        memory.write(0xFFF, 0x01)
        assert memory.read(0xFFF) == 0x01

    @pytest.mark.parametrize("address", [0x1000, 0xFFFF, -1])
    def test_read_beyond_store(self, memory, address):
        with pytest.raises(OutOfBoundsAccess) as exc_info:
            memory.read(address)
        assert exc_info.value.address == address
        assert exc_info.value.access == "read"

    def test_write_beyond_store(self, memory):
        with pytest.raises(OutOfBoundsAccess):
            memory.write(0x1000, 0)

    def test_font_is_read_only(self, memory):
        with pytest.raises(OutOfBoundsAccess) as exc_info:
            memory.write(0x000, 0xFF)
        assert exc_info.value.access == "write"
        assert memory.read(0x000) == FONT_SPRITES[0]

    @pytest.mark.parametrize("address", [0x050, 0x100, 0x1FF])
    def test_reserved_area_not_readable(self, memory, address):
        with pytest.raises(OutOfBoundsAccess):
            memory.read(address)

    def test_word_straddling_end(self, memory):
        with pytest.raises(OutOfBoundsAccess):
            memory.read_word(0xFFF)

    def test_dump_ignores_access_policy(self, memory):
        assert memory.dump(0x100, 4) == bytes(4)

    def test_dump_checks_store_bounds(self, memory):
        with pytest.raises(OutOfBoundsAccess):
            memory.dump(0xFFE, 4)


class TestProgramLoading:
    def test_load_at_0x200(self, memory):
        memory.load_program(bytes([0x60, 0x12]))
        assert memory.read_word(0x200) == 0x6012

    def test_largest_program_fits(self, memory):
        memory.load_program(bytes([0xAA]) * MAX_PROGRAM_SIZE)
        assert memory.read(0xFFF) == 0xAA

    def test_oversized_program(self, memory):
        with pytest.raises(RomLoadError):
            memory.load_program(bytes(MAX_PROGRAM_SIZE + 1))

    def test_reset_clears_program_and_keeps_font(self, memory):
        memory.load_program(bytes([0x60, 0x12]))
        memory.reset()
        assert memory.read_word(0x200) == 0
        assert memory.dump(0, FONT_SIZE) == FONT_SPRITES


class TestSnapshot:
    def test_round_trip(self, memory):
        memory.write(0x345, 0x99)
        other = Memory()
        assert other.apply_snapshot_data(memory.get_snapshot_data()) == MEMORY_SIZE
        assert other.read(0x345) == 0x99

    def test_truncated_leaves_contents(self, memory):
        memory.write(0x345, 0x99)
        with pytest.raises(ValueError):
            memory.apply_snapshot_data([0] * 10)
        assert len(memory) == MEMORY_SIZE
        assert memory.read(0x345) == 0x99
