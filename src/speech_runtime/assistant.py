from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import numpy as np

from .asr import WhisperRecognizer
from .errors import InitializationError
from .languages import Language
from .models import SynthesisRunReport
from .tts import ChunkScheduler
from .voice.interfaces import SpeechSynthesizer
from .voice.output import VoiceOutputConfig, VoiceOutputService


@dataclass(slots=True)
class VoiceChannel:
    """One loaded voice and the scheduler that speaks with it."""

    synthesizer: SpeechSynthesizer
    scheduler: ChunkScheduler


class SpeechAssistant:
    """Routes speak and transcribe requests to the voice and language selected at call time."""

    def __init__(
        self,
        *,
        voices: list[VoiceChannel | None],
        recognizer: WhisperRecognizer | None = None,
        language: Language = Language.ENGLISH,
        output_config: VoiceOutputConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.voices = voices
        self.recognizer = recognizer
        self.language = language
        self._output_config = output_config or VoiceOutputConfig()
        self._logger = logger or logging.getLogger("speech_runtime.assistant")
        self._active: VoiceChannel | None = None

    @property
    def active_channel(self) -> VoiceChannel | None:
        return self._active

    def channel_for(self, language: Language) -> VoiceChannel:
        index = language.voice_index
        channel = self.voices[index] if index < len(self.voices) else None
        if channel is None:
            channel = next((voice for voice in self.voices if voice is not None), None)
            if channel is None:
                raise InitializationError("No voice is loaded; synthesis is disabled")
            self._logger.warning("voice_fallback", extra={"language": language.value, "requested_index": index})
        return channel

    def speak(self, text: str, language: Language | None = None) -> asyncio.Task[SynthesisRunReport] | None:
        """Start speaking ``text``; any speech still playing on another voice is cancelled."""
        language = language or self.language
        channel = self.channel_for(language)
        for other in self.voices:
            if other is not None and other is not channel:
                other.scheduler.cancel()

        try:
            channel.synthesizer.select_voice()
        except InitializationError as exc:
            self._logger.error("voice_select_failed", extra={"language": language.value, "error": str(exc)})
        self._active = channel
        return VoiceOutputService(channel.scheduler, self._output_config).speak(text)

    async def speak_and_wait(self, text: str, language: Language | None = None) -> SynthesisRunReport | None:
        task = self.speak(text, language)
        if task is None:
            return None
        return await self._active.scheduler.wait()

    async def transcribe(self, samples: np.ndarray, sample_rate: int, language: Language | None = None) -> str:
        if self.recognizer is None:
            raise InitializationError("Speech recognition models are not configured")
        return await self.recognizer.run_whisper(samples, sample_rate, language=language or self.language)

    def close(self) -> None:
        for channel in self.voices:
            if channel is None:
                continue
            channel.scheduler.cancel()
            close = getattr(channel.synthesizer, "close", None)
            if callable(close):
                close()
