"""Text-to-speech orchestration for spoken responses."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Protocol


class SpeechScheduler(Protocol):
    """Anything that can start speaking a request, replacing the one in flight."""

    def synthesize_and_play(self, text: str) -> asyncio.Task[Any]:
        """Start speaking ``text`` and return the running task."""


@dataclass(slots=True)
class VoiceOutputConfig:
    """Configurable controls for response speech."""

    enabled: bool = True
    max_chars: int = 500


class VoiceOutputService:
    """Normalizes response text and hands it to a chunk scheduler."""

    def __init__(self, scheduler: SpeechScheduler, config: VoiceOutputConfig | None = None) -> None:
        self._scheduler = scheduler
        self._config = config or VoiceOutputConfig()

    @property
    def config(self) -> VoiceOutputConfig:
        return self._config

    def speak(self, text: str) -> asyncio.Task[Any] | None:
        """Start speaking when output is enabled and the text is not blank."""
        if not self._config.enabled:
            return None

        normalized = " ".join(text.split())
        if not normalized:
            return None

        limited = normalized[: self._config.max_chars]
        return self._scheduler.synthesize_and_play(limited)
