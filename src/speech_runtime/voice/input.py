"""Microphone capture and speech-to-text orchestration."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .interfaces import MicrophoneSource, SpeechRecognizer


@dataclass(slots=True)
class VoiceCaptureConfig:
    """Capture length and the signal gate applied before recognition."""

    seconds: float = 10.0
    sensitivity_threshold: float = 0.0


@dataclass(slots=True)
class VoiceInputEvent:
    """Recognized utterance from microphone audio."""

    transcript: str
    seconds: float
    signal_level: float


class VoiceInputService:
    """Converts captured microphone audio into transcripts."""

    def __init__(self, recognizer: SpeechRecognizer, config: VoiceCaptureConfig | None = None) -> None:
        self._recognizer = recognizer
        self._config = config or VoiceCaptureConfig()

    @property
    def config(self) -> VoiceCaptureConfig:
        """Current capture config."""
        return self._config

    def update_config(self, *, seconds: float | None = None, sensitivity_threshold: float | None = None) -> None:
        """Update capture length and sensitivity at runtime."""
        if seconds is not None:
            self._config.seconds = max(0.1, seconds)
        if sensitivity_threshold is not None:
            self._config.sensitivity_threshold = max(0.0, min(1.0, sensitivity_threshold))

    async def capture_once(self, microphone: MicrophoneSource) -> VoiceInputEvent | None:
        """Record one utterance and transcribe it when it is loud enough."""
        samples, sample_rate = microphone.record(self._config.seconds)
        return await self.process_audio(samples, sample_rate)

    async def process_audio(self, samples: np.ndarray, sample_rate: int) -> VoiceInputEvent | None:
        """Transcribe one buffer if it passes the sensitivity check."""
        level = self.estimate_signal_level(samples)
        if samples.size == 0 or level < self._config.sensitivity_threshold:
            return None

        transcript = (await self._recognizer.transcribe(samples, sample_rate)).strip()
        if not transcript:
            return None

        return VoiceInputEvent(transcript=transcript, seconds=samples.size / sample_rate, signal_level=level)

    @staticmethod
    def estimate_signal_level(samples: np.ndarray) -> float:
        """Root-mean-square amplitude of float samples in ``[-1, 1]``."""
        if samples.size == 0:
            return 0.0
        return float(np.sqrt(np.mean(np.square(samples.astype(np.float64)))))
