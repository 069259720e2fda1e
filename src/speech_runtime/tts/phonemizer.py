"""espeak-ng grapheme-to-phoneme adapter built on the ``phonemizer`` package.

espeak keeps a single process-wide voice, so one backend is created per voice
name on first use and calls are serialized. Callers select the voice at the
start of each synthesis run.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable
from typing import Any

from speech_runtime.errors import InitializationError, PhonemizationError

VOICE_OK = 0
VOICE_NOT_FOUND = 2

BackendFactory = Callable[[str], Any]


def espeak_backend_factory(data_path: str | None = None) -> BackendFactory:
    """Return a factory creating ``EspeakBackend`` instances for a voice name."""
    try:
        from phonemizer.backend import EspeakBackend
    except ImportError as exc:  # pragma: no cover - import guard
        raise InitializationError("Phonemizer backend unavailable. Install with: pip install phonemizer") from exc

    if data_path:
        os.environ["ESPEAK_DATA_PATH"] = data_path
    if not EspeakBackend.is_available():
        raise InitializationError("espeak-ng not found. System dependency: apt-get install espeak-ng")

    def _create(voice: str) -> Any:
        return EspeakBackend(
            voice,
            preserve_punctuation=True,
            with_stress=True,
            language_switch="remove-flags",
        )

    return _create


class EspeakPhonemizer:
    """Voice selection plus text-to-IPA conversion with one backend per voice."""

    def __init__(
        self,
        *,
        data_path: str | None = None,
        backend_factory: BackendFactory | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._logger = logger or logging.getLogger("speech_runtime.tts.phonemizer")
        self._factory = backend_factory or espeak_backend_factory(data_path)
        self._backends: dict[str, Any] = {}
        self._lock = threading.Lock()
        self._voice: str | None = None
        self._logger.info("espeak_initialized", extra={"data_path": data_path})

    @property
    def voice(self) -> str | None:
        return self._voice

    def set_voice_by_name(self, name: str) -> int:
        """Select the espeak voice; returns 0 on success, a nonzero code otherwise."""
        with self._lock:
            if name not in self._backends:
                try:
                    self._backends[name] = self._factory(name)
                except RuntimeError as exc:
                    self._logger.error("espeak_voice_failed", extra={"voice": name, "error": str(exc)})
                    return VOICE_NOT_FOUND
            self._voice = name
        self._logger.debug("espeak_voice_set", extra={"voice": name})
        return VOICE_OK

    def text_to_phonemes(self, text: str) -> str:
        """Convert ``text`` into an IPA phoneme string with the selected voice.

        A backend failure or an empty result is a ``PhonemizationError``.
        """
        with self._lock:
            backend = self._backends.get(self._voice) if self._voice else None
            if backend is None:
                raise PhonemizationError(f"Phonemize failed for {text!r}: no voice selected")
            try:
                lines = backend.phonemize([text], strip=True)
            except RuntimeError as exc:
                raise PhonemizationError(f"Phonemize failed for {text!r}: {exc}") from exc

        phonemes = " ".join(line.strip() for line in lines if line and line.strip())
        if not phonemes:
            raise PhonemizationError(f"Phonemize failed for {text!r}: empty phoneme string")
        self._logger.debug("phonemized", extra={"text": text, "phonemes": phonemes})
        return phonemes
