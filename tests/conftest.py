"""
Shared fixtures for the CHIP-8 VM tests.

Time and randomness are injected so every run is deterministic.
"""

import pytest

from chip8_vm.emulator import Emulator, EmulatorConfig


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingRenderer:
    """Renderer that keeps every frame it is handed."""

    def __init__(self):
        self.frames: list[tuple[bytes, int]] = []

    def render(self, frame: bytes, color: int) -> None:
        self.frames.append((frame, color))


class RecordingAudio:
    """Audio output that counts tones."""

    def __init__(self):
        self.tones = 0

    def play_tone(self) -> None:
        self.tones += 1


class ScriptedKeys:
    """Key input returning a fixed state until changed by the test."""

    def __init__(self):
        self.states: list[bool] | None = None

    def hold(self, *keys: int) -> None:
        self.states = [k in keys for k in range(16)]

    def poll_keys(self):
        return self.states


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def audio():
    return RecordingAudio()


@pytest.fixture
def keys():
    return ScriptedKeys()


@pytest.fixture
def make_emulator(clock, renderer, audio, keys):
    """Factory for an Emulator wired to the recording collaborators."""

    def factory(program: bytes = b"", random_value: int = 0, **config) -> Emulator:
        emu = Emulator(
            EmulatorConfig(**config),
            key_input=keys,
            renderer=renderer,
            audio=audio,
            random_byte=lambda: random_value,
            clock=clock,
        )
        if program:
            emu.load_program(program)
        return emu

    return factory
