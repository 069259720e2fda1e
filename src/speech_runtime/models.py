from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import numpy as np


class SegmentKind(str, Enum):
    DELAY_PUNCT = "delay_punct"
    CONTENT = "content"


@dataclass(frozen=True, slots=True)
class TextSegment:
    kind: SegmentKind
    payload: str


@dataclass(frozen=True, slots=True)
class VoiceProfile:
    """Immutable per-voice tokenization and inference parameters."""

    phoneme_id_map: dict[str, int]
    sample_rate: int
    noise_scale: float = 0.667
    length_scale: float = 1.0
    noise_w: float = 0.8
    espeak_voice: str = "en-us"
    pad_id: int = 0
    name: str = "voice"

    @property
    def scales(self) -> np.ndarray:
        return np.array([self.noise_scale, self.length_scale, self.noise_w], dtype=np.float32)


@dataclass(slots=True)
class PauseEvent:
    character: str
    seconds: float


@dataclass(slots=True)
class SynthesisRunReport:
    """Outcome counters for one scheduler run."""

    generation: int
    chunks_played: int = 0
    chunks_skipped: int = 0
    pauses: list[PauseEvent] = field(default_factory=list)
    cancelled: bool = False
