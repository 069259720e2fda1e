"""Audio file loading."""

from __future__ import annotations

from pathlib import Path

import numpy as np


def load_audio(path: str | Path) -> tuple[np.ndarray, int]:
    """Read an audio file as mono float32 samples plus its sample rate."""
    try:
        import soundfile as sf
    except ImportError as exc:  # pragma: no cover - import guard
        raise RuntimeError(
            "Audio file backend unavailable. Install extras with: pip install 'speech-runtime[voice]'"
        ) from exc

    audio, sample_rate = sf.read(str(path), dtype="float32")
    if audio.ndim > 1:
        audio = audio.mean(axis=1)
    return audio.astype(np.float32), int(sample_rate)
