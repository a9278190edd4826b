"""
Tone Output
===========

The engine signals the audio collaborator once per timer period in which
the sound timer is nonzero. Host audio calls may block until the tone has
finished playing, so BackgroundAudio moves them off the tick loop onto a
single worker thread. A trigger that arrives while a tone is still playing
is dropped: the buzzer is either on or off.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class AudioOutput(Protocol):
    """Audio collaborator: plays one short tone."""
    def play_tone(self) -> None:
        ...


class NullAudio:
    """Audio output that does nothing (headless runs, muted play)."""

    def play_tone(self) -> None:
        pass


class BackgroundAudio:
    """
    Fire-and-forget wrapper around a possibly blocking AudioOutput.

    Example:
        >>> audio = BackgroundAudio(host)
        >>> audio.play_tone()   # returns immediately
        >>> audio.close()
    """

    def __init__(self, output: AudioOutput):
        self._output = output
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="chip8-audio")
        self._pending: Optional[Future] = None
        self._closed = False
        self.tones_started = 0
        self.tones_dropped = 0

    @property
    def busy(self) -> bool:
        """True while a tone is still playing on the worker."""
        return self._pending is not None and not self._pending.done()

    def play_tone(self) -> None:
        """Start a tone in the background unless one is already playing."""
        if self._closed:
            return
        if self.busy:
            self.tones_dropped += 1
            return
        self._pending = self._executor.submit(self._play)
        self.tones_started += 1

    def _play(self) -> None:
        try:
            self._output.play_tone()
        except Exception:
            logger.exception("Audio output failed")

    def close(self, wait: bool = False) -> None:
        """Stop accepting tones and shut the worker down."""
        self._closed = True
        self._executor.shutdown(wait=wait)
