"""Piper vocoder invocation."""

from __future__ import annotations

import numpy as np

from speech_runtime.inference import InferenceModel

INPUT_IDS = "input"
INPUT_LENGTHS = "input_lengths"
INPUT_SCALES = "scales"


class PiperVocoder:
    """Runs the neural vocoder on one phoneme token sequence."""

    def __init__(self, model: InferenceModel) -> None:
        self._model = model

    def build_inputs(self, token_ids: np.ndarray, scales: np.ndarray) -> dict[str, np.ndarray]:
        tokens = np.asarray(token_ids, dtype=np.int32).reshape(1, -1)
        return {
            INPUT_IDS: tokens,
            INPUT_LENGTHS: np.array([tokens.shape[1]], dtype=np.int32),
            INPUT_SCALES: np.asarray(scales, dtype=np.float32).reshape(3),
        }

    def run(self, inputs: dict[str, np.ndarray]) -> np.ndarray:
        """Return the waveform as a flat float32 array (possibly empty)."""
        outputs = self._model.run(inputs)
        if not outputs:
            return np.zeros(0, dtype=np.float32)
        waveform = next(iter(outputs.values()))
        if waveform is None:
            return np.zeros(0, dtype=np.float32)
        return np.asarray(waveform, dtype=np.float32).reshape(-1)

    def close(self) -> None:
        self._model.close()
