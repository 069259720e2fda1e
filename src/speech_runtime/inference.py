"""ONNX Runtime model boundary shared by the vocoder and the Whisper models."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Protocol

import numpy as np

from .errors import InitializationError

_ORT_TYPES: dict[str, type[np.generic]] = {
    "tensor(int64)": np.int64,
    "tensor(int32)": np.int32,
    "tensor(float)": np.float32,
    "tensor(float16)": np.float16,
}


class InferenceModel(Protocol):
    """A loaded network that maps named input tensors to named outputs."""

    def run(
        self,
        inputs: Mapping[str, np.ndarray],
        output_names: Sequence[str] | None = None,
    ) -> dict[str, np.ndarray]:
        """Run one synchronous inference pass."""

    def close(self) -> None:
        """Release the backend session and any buffers it holds."""


def select_providers(preference: str = "auto") -> list[str]:
    """Pick ONNX Runtime execution providers in priority order."""
    import onnxruntime as ort

    available = ort.get_available_providers()
    preference = preference.lower()
    if preference == "cpu":
        return ["CPUExecutionProvider"]
    if preference == "cuda":
        if "CUDAExecutionProvider" not in available:
            raise InitializationError(f"CUDA execution provider requested but unavailable. Available: {available}")
        return ["CUDAExecutionProvider", "CPUExecutionProvider"]

    providers = [name for name in ("CUDAExecutionProvider", "CoreMLExecutionProvider") if name in available]
    providers.append("CPUExecutionProvider")
    return providers


class OnnxModel:
    """``InferenceModel`` backed by an ``onnxruntime.InferenceSession``.

    Inputs the graph does not declare are dropped, and numeric inputs are cast to
    the dtype the graph expects, so callers can build tensors in one canonical type.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        providers: Sequence[str] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        try:
            import onnxruntime as ort
        except ImportError as exc:  # pragma: no cover - import guard
            raise InitializationError("onnxruntime is not installed. Install with: pip install onnxruntime") from exc

        self._path = Path(path)
        self._logger = logger or logging.getLogger("speech_runtime.inference")
        if not self._path.exists():
            raise InitializationError(f"Model file not found: {self._path}")

        try:
            self._session = ort.InferenceSession(str(self._path), providers=list(providers or ["CPUExecutionProvider"]))
        except Exception as exc:  # noqa: BLE001 - ORT raises several unrelated types on load.
            raise InitializationError(f"Failed to load ONNX model {self._path}: {exc}") from exc

        self._input_types = {item.name: item.type for item in self._session.get_inputs()}
        self._output_names = [item.name for item in self._session.get_outputs()]
        self._logger.info(
            "onnx_model_loaded",
            extra={"path": str(self._path), "providers": self._session.get_providers()},
        )

    @property
    def input_names(self) -> list[str]:
        return list(self._input_types)

    @property
    def output_names(self) -> list[str]:
        return list(self._output_names)

    def run(
        self,
        inputs: Mapping[str, np.ndarray],
        output_names: Sequence[str] | None = None,
    ) -> dict[str, np.ndarray]:
        if self._session is None:
            raise RuntimeError(f"Model {self._path.name} has been closed")

        feed: dict[str, np.ndarray] = {}
        for name, value in inputs.items():
            declared = self._input_types.get(name)
            if declared is None:
                continue
            dtype = _ORT_TYPES.get(declared)
            feed[name] = value.astype(dtype, copy=False) if dtype is not None else value

        names = list(output_names) if output_names else self._output_names
        values = self._session.run(names, feed)
        return dict(zip(names, values))

    def close(self) -> None:
        self._session = None


class ModelLoader(Protocol):
    def __call__(self, path: str | Path) -> InferenceModel:
        """Load the model stored at ``path``."""


def onnx_loader(provider_preference: str = "auto") -> ModelLoader:
    """Return a loader that opens ONNX files with the preferred providers."""
    providers = select_providers(provider_preference)

    def _load(path: str | Path) -> InferenceModel:
        return OnnxModel(path, providers=providers)

    return _load
