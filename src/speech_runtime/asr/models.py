"""Whisper encoder/decoder model bundle and the decoder key/value cache."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from speech_runtime.inference import InferenceModel, ModelLoader

END_OF_TEXT = 50257
START_OF_TRANSCRIPT = 50258
TRANSLATE = 50358
TRANSCRIBE = 50359
NO_TIMESTAMPS = 50363
START_TIME = 50364

NUM_DECODER_LAYERS = 4
VOCAB_LOGITS = 51865

ENCODER_INPUT = "input_features"
INPUT_IDS = "input_ids"
ENCODER_HIDDEN_STATES = "encoder_hidden_states"
LOGITS = "logits"

_CACHE_PARTS = (("decoder", "key"), ("decoder", "value"), ("encoder", "key"), ("encoder", "value"))


def present_name(layer: int, source: str, kind: str) -> str:
    return f"present.{layer}.{source}.{kind}"


def past_name(layer: int, source: str, kind: str) -> str:
    return f"past_key_values.{layer}.{source}.{kind}"


@dataclass(frozen=True, slots=True)
class DecoderCache:
    """Attention keys/values for every decoder layer.

    Self-attention entries track the growing prompt and are replaced on every
    step; cross-attention entries depend only on the encoded audio and are kept
    from the first prompt pass.
    """

    self_keys: tuple[np.ndarray, ...]
    self_values: tuple[np.ndarray, ...]
    cross_keys: tuple[np.ndarray, ...]
    cross_values: tuple[np.ndarray, ...]

    @classmethod
    def from_outputs(cls, outputs: dict[str, np.ndarray], layers: int = NUM_DECODER_LAYERS) -> DecoderCache:
        return cls(
            self_keys=tuple(outputs[present_name(i, "decoder", "key")] for i in range(layers)),
            self_values=tuple(outputs[present_name(i, "decoder", "value")] for i in range(layers)),
            cross_keys=tuple(outputs[present_name(i, "encoder", "key")] for i in range(layers)),
            cross_values=tuple(outputs[present_name(i, "encoder", "value")] for i in range(layers)),
        )

    @property
    def layers(self) -> int:
        return len(self.self_keys)

    def advance(self, outputs: dict[str, np.ndarray]) -> DecoderCache:
        """New cache with fresh self-attention tensors and the same cross-attention tensors."""
        return DecoderCache(
            self_keys=tuple(outputs[present_name(i, "decoder", "key")] for i in range(self.layers)),
            self_values=tuple(outputs[present_name(i, "decoder", "value")] for i in range(self.layers)),
            cross_keys=self.cross_keys,
            cross_values=self.cross_values,
        )

    def as_inputs(self) -> dict[str, np.ndarray]:
        inputs: dict[str, np.ndarray] = {}
        for i in range(self.layers):
            inputs[past_name(i, "decoder", "key")] = self.self_keys[i]
            inputs[past_name(i, "decoder", "value")] = self.self_values[i]
            inputs[past_name(i, "encoder", "key")] = self.cross_keys[i]
            inputs[past_name(i, "encoder", "value")] = self.cross_values[i]
        return inputs


def present_output_names(layers: int = NUM_DECODER_LAYERS) -> list[str]:
    return [LOGITS] + [present_name(i, source, kind) for i in range(layers) for source, kind in _CACHE_PARTS]


class ArgmaxSelector:
    """Greedy token selection over the vocabulary axis of ``(1, 1, V)`` logits."""

    def select(self, logits: np.ndarray) -> int:
        logits = np.asarray(logits)
        return int(logits.reshape(-1, logits.shape[-1])[-1].argmax())

    async def select_async(self, logits: np.ndarray) -> int:
        """Read the selected index back off the event loop."""
        return await asyncio.to_thread(self.select, logits)


@dataclass(frozen=True, slots=True)
class WhisperModelPaths:
    encoder: Path
    decoder1: Path
    decoder2: Path


class WhisperModels:
    """The networks one recognition session holds; released together."""

    def __init__(
        self,
        *,
        encoder: InferenceModel,
        decoder1: InferenceModel,
        decoder2: InferenceModel,
        argmax: ArgmaxSelector | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.encoder = encoder
        self.decoder1 = decoder1
        self.decoder2 = decoder2
        self.argmax = argmax or ArgmaxSelector()
        self._logger = logger or logging.getLogger("speech_runtime.asr.models")
        self._closed = False

    @classmethod
    def load(cls, paths: WhisperModelPaths, loader: ModelLoader) -> WhisperModels:
        """Load all three networks; any already loaded are closed if a later one fails."""
        loaded: list[InferenceModel] = []
        try:
            for path in (paths.decoder1, paths.decoder2, paths.encoder):
                loaded.append(loader(path))
        except BaseException:
            for model in loaded:
                model.close()
            raise
        decoder1, decoder2, encoder = loaded
        return cls(encoder=encoder, decoder1=decoder1, decoder2=decoder2)

    @property
    def closed(self) -> bool:
        return self._closed

    def encode(self, features: np.ndarray) -> np.ndarray:
        outputs = self.encoder.run({ENCODER_INPUT: features.astype(np.float32)})
        return next(iter(outputs.values()))

    def prompt_pass(self, tokens: np.ndarray, encoded_audio: np.ndarray) -> dict[str, np.ndarray]:
        return self.decoder1.run(
            {INPUT_IDS: tokens, ENCODER_HIDDEN_STATES: encoded_audio},
            output_names=present_output_names(),
        )

    def decode_step(self, last_token: np.ndarray, encoded_audio: np.ndarray, cache: DecoderCache) -> np.ndarray:
        inputs = {INPUT_IDS: last_token, ENCODER_HIDDEN_STATES: encoded_audio, **cache.as_inputs()}
        return self.decoder2.run(inputs, output_names=[LOGITS])[LOGITS]

    def close(self) -> None:
        if self._closed:
            return
        for model in (self.decoder1, self.decoder2, self.encoder):
            model.close()
        self._closed = True
        self._logger.debug("whisper_models_released")
