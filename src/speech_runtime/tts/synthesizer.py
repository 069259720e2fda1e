"""Text chunk to waveform synthesis with a Piper voice."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from speech_runtime.errors import ChunkSynthesisError, EmptyWaveformError, InitializationError, PhonemizationError
from speech_runtime.inference import ModelLoader
from speech_runtime.models import VoiceProfile
from speech_runtime.voice.interfaces import Phonemizer

from .tokenizer import PhonemeTokenizer, load_voice_profile, voice_config_path
from .vocoder import PiperVocoder


class PiperSynthesizer:
    """Phonemize, tokenize and run the vocoder for one chunk of text."""

    def __init__(
        self,
        *,
        profile: VoiceProfile,
        phonemizer: Phonemizer,
        vocoder: PiperVocoder,
        logger: logging.Logger | None = None,
    ) -> None:
        self._tokenizer = PhonemeTokenizer(profile)
        self._phonemizer = phonemizer
        self._vocoder = vocoder
        self._logger = logger or logging.getLogger("speech_runtime.tts.synthesizer")
        self.last_input_length: int | None = None

    @classmethod
    def from_model(
        cls,
        model_path: str | Path,
        *,
        phonemizer: Phonemizer,
        loader: ModelLoader,
        config_path: str | Path | None = None,
    ) -> PiperSynthesizer:
        profile = load_voice_profile(config_path or voice_config_path(model_path))
        return cls(profile=profile, phonemizer=phonemizer, vocoder=PiperVocoder(loader(model_path)))

    @property
    def profile(self) -> VoiceProfile:
        return self._tokenizer.profile

    @property
    def sample_rate(self) -> int:
        return self.profile.sample_rate

    def select_voice(self) -> None:
        code = self._phonemizer.set_voice_by_name(self.profile.espeak_voice)
        if code != 0:
            raise InitializationError(f"Set voice to {self.profile.espeak_voice!r} failed. Error code: {code}")

    def tokenize(self, text: str) -> np.ndarray:
        phonemes = self._phonemizer.text_to_phonemes(text)
        return self._tokenizer.tokenize(self._tokenizer.split(phonemes))

    def synthesize_chunk(self, text: str) -> np.ndarray:
        token_ids = self.tokenize(text)
        if token_ids.size == 0:
            raise PhonemizationError(f"Phonemize produced no tokens for chunk {text!r}")
        inputs = self._vocoder.build_inputs(token_ids, self.profile.scales)
        self.last_input_length = int(inputs["input_lengths"][0])

        try:
            waveform = self._vocoder.run(inputs)
        except Exception as exc:  # noqa: BLE001 - backend failures only cost this chunk.
            raise ChunkSynthesisError(f"Vocoder failed for chunk {text!r}: {exc}") from exc
        if waveform.size == 0:
            raise EmptyWaveformError(f"Generated audio data is empty for chunk {text!r}")

        self._logger.debug(
            "chunk_synthesized",
            extra={
                "text": text,
                "tokens": int(token_ids.size),
                "seconds": round(waveform.size / self.sample_rate, 3),
            },
        )
        return waveform

    def close(self) -> None:
        self._vocoder.close()
