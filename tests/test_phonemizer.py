from __future__ import annotations

import pytest

from speech_runtime.errors import PhonemizationError
from speech_runtime.tts.phonemizer import VOICE_NOT_FOUND, VOICE_OK, EspeakPhonemizer


class StubBackend:
    """Upper-cases its input as 'phonemes'; returns nothing for listed words."""

    def __init__(self, voice: str, silent: set[str] | None = None, fail: bool = False) -> None:
        self.voice = voice
        self.silent = silent or set()
        self.fail = fail
        self.calls: list[list[str]] = []

    def phonemize(self, text: list[str], strip: bool = False) -> list[str]:
        self.calls.append(list(text))
        if self.fail:
            raise RuntimeError("espeak crashed")
        return ["" if line in self.silent else f"{self.voice}:{line.upper()}" for line in text]


class StubFactory:
    def __init__(self, known: set[str], **backend_kwargs) -> None:
        self.known = known
        self.backend_kwargs = backend_kwargs
        self.created: list[str] = []

    def __call__(self, voice: str) -> StubBackend:
        if voice not in self.known:
            raise RuntimeError(f"language {voice!r} is not supported by the espeak backend")
        self.created.append(voice)
        return StubBackend(voice, **self.backend_kwargs)


def test_text_is_converted_with_selected_voice() -> None:
    phonemizer = EspeakPhonemizer(backend_factory=StubFactory({"en-us", "de"}))

    assert phonemizer.set_voice_by_name("de") == VOICE_OK
    assert phonemizer.text_to_phonemes("hallo") == "de:HALLO"


def test_backends_are_created_once_per_voice() -> None:
    factory = StubFactory({"en-us", "de"})
    phonemizer = EspeakPhonemizer(backend_factory=factory)

    phonemizer.set_voice_by_name("en-us")
    phonemizer.set_voice_by_name("de")
    phonemizer.set_voice_by_name("en-us")

    assert factory.created == ["en-us", "de"]
    assert phonemizer.voice == "en-us"


def test_unknown_voice_returns_nonzero_code_and_keeps_current() -> None:
    phonemizer = EspeakPhonemizer(backend_factory=StubFactory({"en-us"}))
    phonemizer.set_voice_by_name("en-us")

    assert phonemizer.set_voice_by_name("klingon") == VOICE_NOT_FOUND
    assert phonemizer.voice == "en-us"


def test_empty_phoneme_string_is_phonemization_error() -> None:
    phonemizer = EspeakPhonemizer(backend_factory=StubFactory({"en-us"}, silent={"bad"}))
    phonemizer.set_voice_by_name("en-us")

    with pytest.raises(PhonemizationError):
        phonemizer.text_to_phonemes("bad")


def test_backend_failure_is_phonemization_error() -> None:
    phonemizer = EspeakPhonemizer(backend_factory=StubFactory({"en-us"}, fail=True))
    phonemizer.set_voice_by_name("en-us")

    with pytest.raises(PhonemizationError):
        phonemizer.text_to_phonemes("hello")


def test_phonemize_without_voice_is_phonemization_error() -> None:
    phonemizer = EspeakPhonemizer(backend_factory=StubFactory({"en-us"}))

    with pytest.raises(PhonemizationError):
        phonemizer.text_to_phonemes("hello")
