"""Piper voice profiles and phoneme tokenization."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import numpy as np

from speech_runtime.errors import InitializationError
from speech_runtime.models import VoiceProfile

PAD_SYMBOL = "_"

_logger = logging.getLogger("speech_runtime.tts.tokenizer")


def voice_config_path(model_path: str | Path) -> Path:
    """Piper ships the voice config next to the model as ``<model>.onnx.json``."""
    model_path = Path(model_path)
    return model_path.with_name(model_path.name + ".json")


def load_voice_profile(config_path: str | Path) -> VoiceProfile:
    """Load a Piper voice config into an immutable ``VoiceProfile``."""
    path = Path(config_path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise InitializationError(f"Unable to read voice config {path}: {exc}") from exc

    raw_map = payload.get("phoneme_id_map")
    if not raw_map:
        raise InitializationError(f"Voice config {path} has no phoneme_id_map")

    id_map: dict[str, int] = {}
    for symbol, ids in raw_map.items():
        id_map[symbol] = int(ids[0]) if isinstance(ids, list) else int(ids)

    inference = payload.get("inference", {})
    return VoiceProfile(
        phoneme_id_map=id_map,
        sample_rate=int(payload.get("audio", {}).get("sample_rate", 22_050)),
        noise_scale=float(inference.get("noise_scale", 0.667)),
        length_scale=float(inference.get("length_scale", 1.0)),
        noise_w=float(inference.get("noise_w", 0.8)),
        espeak_voice=payload.get("espeak", {}).get("voice", "en-us"),
        pad_id=id_map.get(PAD_SYMBOL, 0),
        name=path.name.removesuffix(".onnx.json"),
    )


class PhonemeTokenizer:
    """Maps phoneme characters one-to-one onto voice token ids."""

    def __init__(self, profile: VoiceProfile) -> None:
        self._profile = profile

    @property
    def profile(self) -> VoiceProfile:
        return self._profile

    def split(self, phonemes: str) -> list[str]:
        return list(phonemes.strip())

    def tokenize(self, symbols: list[str]) -> np.ndarray:
        """Return one int32 id per symbol; unknown symbols use the pad id."""
        id_map = self._profile.phoneme_id_map
        unknown = {symbol for symbol in symbols if symbol not in id_map}
        if unknown:
            _logger.debug("unknown_phonemes", extra={"voice": self._profile.name, "symbols": sorted(unknown)})
        return np.array([id_map.get(symbol, self._profile.pad_id) for symbol in symbols], dtype=np.int32)
