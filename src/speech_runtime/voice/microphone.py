"""Microphone capture powered by ``sounddevice``."""

from __future__ import annotations

import logging

import numpy as np

from .interfaces import MicrophoneSource


class SounddeviceMicrophone(MicrophoneSource):
    """Record fixed-length mono clips from an input device."""

    def __init__(
        self,
        *,
        device: str | int | None = None,
        sample_rate: int = 16_000,
        logger: logging.Logger | None = None,
    ) -> None:
        try:
            import sounddevice as sd
        except ImportError as exc:  # pragma: no cover - import guard
            raise RuntimeError(
                "Microphone backend unavailable. Install extras with: pip install 'speech-runtime[voice]'"
            ) from exc
        self._sd = sd
        self._device = device
        self._sample_rate = sample_rate
        self._logger = logger or logging.getLogger("speech_runtime.voice.microphone")

    def record(self, seconds: float) -> tuple[np.ndarray, int]:
        frames = max(1, int(seconds * self._sample_rate))
        self._logger.info("microphone_recording", extra={"device": self._device, "seconds": seconds})
        recording = self._sd.rec(frames, samplerate=self._sample_rate, channels=1, dtype="float32", device=self._device)
        self._sd.wait()
        return np.asarray(recording, dtype=np.float32).reshape(-1), self._sample_rate
