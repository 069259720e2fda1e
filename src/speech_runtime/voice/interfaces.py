"""Contracts for phonemization, synthesis, recognition and audio devices."""

from __future__ import annotations

from typing import Protocol

import numpy as np


class Phonemizer(Protocol):
    """Converts text into a phoneme symbol stream for the selected voice."""

    def set_voice_by_name(self, name: str) -> int:
        """Select a voice; returns 0 on success or a native error code."""

    def text_to_phonemes(self, text: str) -> str:
        """Return IPA phonemes for ``text``."""


class SpeechSynthesizer(Protocol):
    """Converts one text chunk into a mono waveform."""

    @property
    def sample_rate(self) -> int:
        """Sample rate of the produced waveform."""

    def select_voice(self) -> None:
        """Make this synthesizer's voice the active phonemizer voice."""

    def synthesize_chunk(self, text: str) -> np.ndarray:
        """Return float32 PCM samples for the given text chunk."""


class SpeechRecognizer(Protocol):
    """Converts buffered audio into text."""

    async def transcribe(self, samples: np.ndarray, sample_rate: int) -> str:
        """Return recognized text from raw audio samples."""


class AudioOutputDevice(Protocol):
    """Interface for a speaker/audio sink."""

    @property
    def is_playing(self) -> bool:
        """Whether a previously submitted buffer is still playing."""

    def play(self, samples: np.ndarray, sample_rate: int) -> None:
        """Start playing a mono buffer without blocking."""


class MicrophoneSource(Protocol):
    """Represents a microphone-backed audio source."""

    def record(self, seconds: float) -> tuple[np.ndarray, int]:
        """Record ``seconds`` of audio; returns samples and their sample rate."""
