"""Speaker playback powered by ``sounddevice``."""

from __future__ import annotations

import time

import numpy as np


class SounddevicePlayer:
    """Non-blocking mono playback with a pollable ``is_playing`` flag."""

    def __init__(self, *, device: str | int | None = None) -> None:
        try:
            import sounddevice as sd
        except ImportError as exc:  # pragma: no cover - import guard
            raise RuntimeError(
                "Audio output backend unavailable. Install extras with: pip install 'speech-runtime[voice]'"
            ) from exc
        self._sd = sd
        self._device = device
        self._buffer = np.zeros(0, dtype=np.float32)
        self._sample_rate = 1
        self._started_at = 0.0

    @property
    def is_playing(self) -> bool:
        return self._elapsed_samples() < self._buffer.size

    def play(self, samples: np.ndarray, sample_rate: int) -> None:
        self._buffer = np.asarray(samples, dtype=np.float32).reshape(-1)
        self._sample_rate = sample_rate
        self._started_at = time.monotonic()
        self._sd.play(self._buffer, samplerate=sample_rate, device=self._device)

    def stop(self) -> None:
        self._sd.stop()
        self._buffer = np.zeros(0, dtype=np.float32)

    def current_window(self, size: int) -> np.ndarray:
        """Samples around the playback head, zero-padded to ``size``."""
        start = min(self._elapsed_samples(), self._buffer.size)
        window = self._buffer[start : start + size]
        if window.size < size:
            window = np.pad(window, (0, size - window.size))
        return window

    def _elapsed_samples(self) -> int:
        return int((time.monotonic() - self._started_at) * self._sample_rate)
