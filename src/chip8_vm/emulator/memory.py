"""
Memory Subsystem for the CHIP-8 VM
==================================

Memory Map:
    $000-$04F  Font glyphs (16 characters x 5 bytes, read-only to programs)
    $050-$1FF  Reserved interpreter area (no program access)
    $200-$FFF  Program and working data

Programs are loaded verbatim at $200. Each font glyph is a 4x5 bitmap,
one byte per scanline with the glyph in the high nibble.
"""

from typing import List

from ..errors import OutOfBoundsAccess, RomLoadError


MEMORY_SIZE = 4096
PROGRAM_START = 0x200

# Font layout
FONT_START = 0x000
BYTES_PER_GLYPH = 5
NUM_FONT_GLYPHS = 16
FONT_SIZE = BYTES_PER_GLYPH * NUM_FONT_GLYPHS

MAX_PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_START

FONT_SPRITES = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0xA0, 0xA0, 0xE0, 0x20, 0x20,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x80, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])


class Memory:
    """
    Flat 4 KB byte store with the CHIP-8 access policy.

    Reads are allowed from the font area and from $200 upwards. Writes are
    allowed from $200 upwards only. Anything else raises OutOfBoundsAccess,
    which the engine turns into a halt.

    Example:
        >>> mem = Memory()
        >>> mem.load_program(bytes([0x60, 0x12]))
        >>> hex(mem.read_word(0x200))
        '0x6012'
    """

    def __init__(self):
        self._data = bytearray(MEMORY_SIZE)
        self._load_font()

    def _load_font(self) -> None:
        self._data[FONT_START:FONT_START + FONT_SIZE] = FONT_SPRITES

    def __len__(self) -> int:
        return len(self._data)

    def reset(self) -> None:
        """Clear all memory and reload the font glyphs."""
        self._data = bytearray(MEMORY_SIZE)
        self._load_font()

    def _check_range(self, address: int, access: str) -> None:
        if not 0 <= address < len(self._data):
            raise OutOfBoundsAccess(address, access)

    def read(self, address: int) -> int:
        """
        Read a byte.

        Raises:
            OutOfBoundsAccess: address is beyond the backing store or
                inside the reserved interpreter area
        """
        self._check_range(address, "read")
        if FONT_START + FONT_SIZE <= address < PROGRAM_START:
            raise OutOfBoundsAccess(address, "read", "reserved interpreter area")
        return self._data[address]

    def write(self, address: int, value: int) -> None:
        """
        Write a byte (masked to 8 bits).

        Raises:
            OutOfBoundsAccess: address is beyond the backing store or
                below the program area
        """
        self._check_range(address, "write")
        if address < PROGRAM_START:
            raise OutOfBoundsAccess(address, "write", "interpreter area is read-only")
        self._data[address] = value & 0xFF

    def read_word(self, address: int) -> int:
        """Read a 16-bit big-endian word: high byte at address."""
        hi = self.read(address)
        lo = self.read(address + 1)
        return (hi << 8) | lo

    def load_program(self, data: bytes) -> None:
        """
        Copy a program image into memory at PROGRAM_START.

        Raises:
            RomLoadError: program does not fit between $200 and $FFF
        """
        if len(data) > MAX_PROGRAM_SIZE:
            raise RomLoadError(
                f"program is {len(data)} bytes, maximum is {MAX_PROGRAM_SIZE}"
            )
        self._data[PROGRAM_START:PROGRAM_START + len(data)] = data

    def dump(self, address: int, count: int) -> bytes:
        """Raw read for tooling; only checks the backing store bounds."""
        self._check_range(address, "read")
        if count > 0:
            self._check_range(address + count - 1, "read")
        return bytes(self._data[address:address + count])

    # =========================================================================
    # Snapshot Support
    # =========================================================================

    def get_snapshot_data(self) -> List[int]:
        """Get memory contents for snapshot."""
        return list(self._data)

    def apply_snapshot_data(self, data: List[int], offset: int = 0) -> int:
        """Restore memory contents from snapshot. Returns bytes consumed."""
        contents = bytearray(data[offset:offset + MEMORY_SIZE])
        if len(contents) != MEMORY_SIZE:
            raise ValueError("Snapshot truncated in memory section")
        self._data = contents
        return MEMORY_SIZE
