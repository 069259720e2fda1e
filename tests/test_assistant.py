from __future__ import annotations

import asyncio

import numpy as np
import pytest

from speech_runtime.assistant import SpeechAssistant, VoiceChannel
from speech_runtime.errors import InitializationError
from speech_runtime.languages import Language
from speech_runtime.tts.scheduler import ChunkScheduler


class StubSynthesizer:
    sample_rate = 16_000

    def __init__(self, name: str) -> None:
        self.name = name
        self.selected = 0
        self.chunks: list[str] = []
        self.closed = False

    def select_voice(self) -> None:
        self.selected += 1

    def synthesize_chunk(self, text: str) -> np.ndarray:
        self.chunks.append(text)
        return np.ones(4, dtype=np.float32)

    def close(self) -> None:
        self.closed = True


class StubPlayer:
    is_playing = False

    def play(self, samples: np.ndarray, sample_rate: int) -> None:
        return None


class StubRecognizer:
    def __init__(self) -> None:
        self.languages: list[Language | None] = []

    async def run_whisper(self, samples, sample_rate, *, language=None) -> str:
        self.languages.append(language)
        return "bonjour"


async def _no_sleep(seconds: float) -> None:
    return None


def _channel(name: str) -> VoiceChannel:
    synthesizer = StubSynthesizer(name)
    return VoiceChannel(synthesizer=synthesizer, scheduler=ChunkScheduler(synthesizer, StubPlayer(), sleep=_no_sleep))


def test_speak_routes_to_language_voice() -> None:
    english, german = _channel("en"), _channel("de")
    assistant = SpeechAssistant(voices=[english, german])

    report = asyncio.run(assistant.speak_and_wait("Guten Tag.", Language.GERMAN))

    assert report.chunks_played == 1
    assert german.synthesizer.chunks == ["Guten Tag"]
    assert german.synthesizer.selected == 1
    assert english.synthesizer.chunks == []
    assert assistant.active_channel is german


def test_missing_voice_falls_back_to_first_loaded() -> None:
    english = _channel("en")
    assistant = SpeechAssistant(voices=[english, None])

    assert assistant.channel_for(Language.GERMAN) is english
    assert assistant.channel_for(Language.FRENCH) is english


def test_no_loaded_voice_is_initialization_error() -> None:
    assistant = SpeechAssistant(voices=[None, None])

    with pytest.raises(InitializationError):
        assistant.channel_for(Language.ENGLISH)


def test_transcribe_requires_recognizer() -> None:
    assistant = SpeechAssistant(voices=[])

    with pytest.raises(InitializationError):
        asyncio.run(assistant.transcribe(np.zeros(10, dtype=np.float32), 16_000))


def test_transcribe_uses_session_language() -> None:
    recognizer = StubRecognizer()
    assistant = SpeechAssistant(voices=[], recognizer=recognizer, language=Language.FRENCH)

    text = asyncio.run(assistant.transcribe(np.zeros(10, dtype=np.float32), 16_000))

    assert text == "bonjour"
    assert recognizer.languages == [Language.FRENCH]


def test_close_releases_voices() -> None:
    english = _channel("en")
    assistant = SpeechAssistant(voices=[english, None])

    assistant.close()

    assert english.synthesizer.closed


def test_voice_selection_failure_keeps_speaking_with_current_voice() -> None:
    class RejectingSynthesizer(StubSynthesizer):
        def select_voice(self) -> None:
            raise InitializationError("Set voice to 'de' failed. Error code: 2")

    synthesizer = RejectingSynthesizer("de")
    scheduler = ChunkScheduler(synthesizer, StubPlayer(), sleep=_no_sleep)
    assistant = SpeechAssistant(voices=[VoiceChannel(synthesizer=synthesizer, scheduler=scheduler)])

    report = asyncio.run(assistant.speak_and_wait("Hallo"))

    assert report.chunks_played == 1
    assert synthesizer.chunks == ["Hallo"]
