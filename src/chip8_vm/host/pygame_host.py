"""
pygame Desktop Host
===================

Window, keyboard and beeper for the command-line runner. PygameHost
implements the three engine collaborators:

- KeyInput.poll_keys(): pumps the pygame event queue and reads the
  keyboard through DEFAULT_KEY_MAP
- Renderer.render(): paints the 64x32 frame scaled up in the given tint
- AudioOutput.play_tone(): starts a short 440 Hz square wave

Extra host keys: P cycles the display color, Escape or closing the window
sets quit_requested.

Requires the optional dependency: pip install chip8-vm[host]
"""

import logging
from array import array
from typing import Callable, Dict, List, Optional

import pygame

from ..emulator.display import SCREEN_HEIGHT, SCREEN_WIDTH
from ..emulator.keypad import DEFAULT_KEY_MAP, NUM_KEYS

logger = logging.getLogger(__name__)

TONE_HZ = 440
TONE_MS = 1000 // 60
BACKGROUND = (0, 0, 0)


def build_square_wave(frequency: int = TONE_HZ) -> array:
    """One period of a square wave in the mixer's sample format."""
    sample_rate, sample_format, _ = pygame.mixer.get_init()
    period = max(2, int(round(sample_rate / frequency)))
    amplitude = 2 ** (abs(sample_format) - 1) - 1
    samples = array("h", [0] * period)
    for t in range(period):
        samples[t] = amplitude if t < period / 2 else -amplitude
    return samples


class PygameHost:
    """
    pygame-backed key input, renderer and audio output.

    Attributes:
        scale: Window pixels per display cell
        quit_requested: Set when the user closed the window or hit Escape
        on_cycle_color: Called when P is pressed
    """

    def __init__(
        self,
        scale: int = 10,
        title: str = "CHIP-8",
        key_map: Optional[Dict[str, int]] = None,
        on_cycle_color: Optional[Callable[[], None]] = None,
    ):
        self.scale = scale
        self.quit_requested = False
        self.on_cycle_color = on_cycle_color

        pygame.mixer.pre_init(44100, -16, 1, 512)
        pygame.init()
        pygame.display.set_caption(title)
        self._screen = pygame.display.set_mode(
            (SCREEN_WIDTH * scale, SCREEN_HEIGHT * scale)
        )

        self._key_codes: Dict[int, int] = {}
        for name, key in (key_map or DEFAULT_KEY_MAP).items():
            self._key_codes[pygame.key.key_code(name.lower())] = key

        self._beep: Optional[pygame.mixer.Sound] = None
        if pygame.mixer.get_init():
            self._beep = pygame.mixer.Sound(buffer=build_square_wave())
        else:
            logger.warning("Audio mixer unavailable, running without sound")

    # =========================================================================
    # KeyInput
    # =========================================================================

    def poll_keys(self) -> List[bool]:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.quit_requested = True
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.quit_requested = True
                elif event.key == pygame.K_p and self.on_cycle_color:
                    self.on_cycle_color()

        pressed = pygame.key.get_pressed()
        states = [False] * NUM_KEYS
        for code, key in self._key_codes.items():
            if pressed[code]:
                states[key] = True
        return states

    # =========================================================================
    # Renderer
    # =========================================================================

    def render(self, frame: bytes, color: int) -> None:
        ink = ((color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF)
        self._screen.fill(BACKGROUND)
        for y in range(SCREEN_HEIGHT):
            row = y * SCREEN_WIDTH
            for x in range(SCREEN_WIDTH):
                if frame[row + x]:
                    self._screen.fill(
                        ink,
                        (x * self.scale, y * self.scale, self.scale, self.scale),
                    )
        pygame.display.flip()

    # =========================================================================
    # AudioOutput
    # =========================================================================

    def play_tone(self) -> None:
        if self._beep is not None:
            self._beep.play(loops=-1, maxtime=TONE_MS)

    def close(self) -> None:
        pygame.quit()
