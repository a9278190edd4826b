"""
Monochrome Framebuffer for the CHIP-8 VM
========================================

The display is 64 x 32 cells, one bit each. Sprites are drawn by XOR:
each set bit of a sprite row toggles the cell under it, and toggling a
lit cell off is a collision. Coordinates wrap, so sprites tile around
the screen edges.

Rendering is pull-based. The host asks whether the framebuffer is dirty,
reads the cells, and calls mark_rendered() once it has presented them.
"""

import io
from dataclasses import dataclass
from typing import List

SCREEN_WIDTH = 64
SCREEN_HEIGHT = 32
SCREEN_SIZE = SCREEN_WIDTH * SCREEN_HEIGHT

SPRITE_WIDTH = 8

# Display tints, cycled by the host
COLORS = [
    0xFFFFFF,  # white
    0xFF0000,  # red
    0xFF8000,  # orange
    0xFFFF00,  # yellow
    0x80FF00,  # light green
    0x00FF00,  # green
    0x00FF80,  # dark green
    0x00FFFF,  # teal
    0x0080FF,  # blue
    0x0000FF,  # dark blue
    0x7F00FF,  # purple
    0xFF00FF,  # pink
    0xFF007F,  # magenta
    0x808080,  # gray
]

DEFAULT_COLOR = COLORS[0]


@dataclass
class DisplayState:
    """Display bookkeeping for snapshotting."""
    color: int = DEFAULT_COLOR
    dirty: bool = False
    times_rendered: int = 0


class Display:
    """
    64 x 32 one-bit framebuffer with XOR sprite drawing.

    Example:
        >>> display = Display()
        >>> display.draw_sprite(0, 0, bytes([0xF0]))
        False
        >>> display.get_pixel(3, 0)
        1
        >>> display.draw_sprite(0, 0, bytes([0xF0]))  # erase again
        True
    """

    def __init__(self, color: int = DEFAULT_COLOR):
        self._cells = bytearray(SCREEN_SIZE)
        self._state = DisplayState(color=color & 0xFFFFFF)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def width(self) -> int:
        return SCREEN_WIDTH

    @property
    def height(self) -> int:
        return SCREEN_HEIGHT

    @property
    def dirty(self) -> bool:
        """True when a cell changed since the last render."""
        return self._state.dirty

    @property
    def times_rendered(self) -> int:
        return self._state.times_rendered

    @property
    def color(self) -> int:
        """Current tint as 0xRRGGBB."""
        return self._state.color

    @color.setter
    def color(self, value: int) -> None:
        self._state.color = value & 0xFFFFFF
        self._state.dirty = True

    @property
    def frame_buffer(self) -> bytes:
        """Read-only copy of the cells, row-major, one byte (0/1) per cell."""
        return bytes(self._cells)

    # =========================================================================
    # Drawing
    # =========================================================================

    def get_pixel(self, x: int, y: int) -> int:
        return self._cells[(y % SCREEN_HEIGHT) * SCREEN_WIDTH + (x % SCREEN_WIDTH)]

    def reset(self, color: int = DEFAULT_COLOR) -> None:
        """Power-on state: all cells off, tint restored, counters zeroed."""
        self._cells = bytearray(SCREEN_SIZE)
        self._state = DisplayState(color=color & 0xFFFFFF)

    def clear(self) -> None:
        """Turn every cell off. Marks dirty only if something was lit."""
        if any(self._cells):
            self._cells = bytearray(SCREEN_SIZE)
            self._state.dirty = True

    def draw_sprite(self, x: int, y: int, rows: bytes) -> bool:
        """
        XOR-blit a sprite, one byte per row, MSB leftmost.

        Args:
            x: Column of the sprite's left edge (wraps modulo 64)
            y: Row of the sprite's top edge (wraps modulo 32)
            rows: Sprite bytes

        Returns:
            True if any lit cell was turned off (collision)
        """
        collision = False
        for r, row_bits in enumerate(rows):
            if not row_bits:
                continue
            base = ((y + r) % SCREEN_HEIGHT) * SCREEN_WIDTH
            for c in range(SPRITE_WIDTH):
                if row_bits & (0x80 >> c):
                    pos = base + (x + c) % SCREEN_WIDTH
                    if self._cells[pos]:
                        collision = True
                    self._cells[pos] ^= 1
                    self._state.dirty = True
        return collision

    # =========================================================================
    # Rendering
    # =========================================================================

    def mark_rendered(self) -> None:
        """Called after the host presented the frame."""
        self._state.dirty = False
        self._state.times_rendered += 1

    def cycle_color(self) -> int:
        """Switch to the next tint in COLORS (wrapping) and return it."""
        try:
            index = (COLORS.index(self._state.color) + 1) % len(COLORS)
        except ValueError:
            index = 0
        self.color = COLORS[index]
        return self._state.color

    def render_text(self, on: str = "#", off: str = ".") -> str:
        """Render the framebuffer as text, one line per row."""
        lines = []
        for y in range(SCREEN_HEIGHT):
            row = self._cells[y * SCREEN_WIDTH:(y + 1) * SCREEN_WIDTH]
            lines.append("".join(on if cell else off for cell in row))
        return "\n".join(lines)

    def render_image(self, scale: int = 8) -> bytes:
        """
        Render the framebuffer as a PNG image in the current tint.

        Args:
            scale: Size in image pixels of one cell

        Returns:
            PNG image bytes
        """
        from PIL import Image

        ink = (
            (self._state.color >> 16) & 0xFF,
            (self._state.color >> 8) & 0xFF,
            self._state.color & 0xFF,
        )
        img = Image.new('RGB', (SCREEN_WIDTH, SCREEN_HEIGHT), color=(0, 0, 0))
        pixels = img.load()
        for y in range(SCREEN_HEIGHT):
            for x in range(SCREEN_WIDTH):
                if self._cells[y * SCREEN_WIDTH + x]:
                    pixels[x, y] = ink

        if scale > 1:
            img = img.resize(
                (SCREEN_WIDTH * scale, SCREEN_HEIGHT * scale),
                Image.NEAREST
            )

        buffer = io.BytesIO()
        img.save(buffer, format='PNG')
        return buffer.getvalue()

    # =========================================================================
    # Snapshot Support
    # =========================================================================

    def get_snapshot_data(self) -> List[int]:
        """
        Get display state for snapshot.

        Layout: [R, G, B, cells packed 8 per byte (256 bytes)]
        """
        color = self._state.color
        result = [(color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF]
        for i in range(0, SCREEN_SIZE, 8):
            packed = 0
            for bit in range(8):
                packed = (packed << 1) | self._cells[i + bit]
            result.append(packed)
        return result

    def apply_snapshot_data(self, data: List[int], offset: int = 0) -> int:
        """Restore display state from snapshot. Returns bytes consumed."""
        self._state.color = (data[offset] << 16) | (data[offset + 1] << 8) | data[offset + 2]
        pos = offset + 3
        for i in range(0, SCREEN_SIZE, 8):
            packed = data[pos]
            for bit in range(8):
                self._cells[i + bit] = (packed >> (7 - bit)) & 1
            pos += 1
        self._state.dirty = True
        return pos - offset
