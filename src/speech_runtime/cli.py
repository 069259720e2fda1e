"""CLI-side handler wrappers and utility commands."""

from __future__ import annotations

import asyncio
import time
from pathlib import Path

from rich.live import Live

from speech_runtime.assistant import SpeechAssistant
from speech_runtime.audio.io import load_audio
from speech_runtime.audio.spectrum import SpectrumAnalyzer
from speech_runtime.languages import Language
from speech_runtime.models import SynthesisRunReport

_LEVEL_GLYPHS = " ▁▂▃▄▅▆▇█"


def render_levels(levels, ceiling: float = 1.0) -> str:
    """Render band levels as a one-line bar graph."""
    top = len(_LEVEL_GLYPHS) - 1
    glyphs = []
    for level in levels:
        ratio = min(max(float(level) / ceiling, 0.0), 1.0) if ceiling > 0 else 0.0
        glyphs.append(_LEVEL_GLYPHS[round(ratio * top)])
    return "".join(glyphs)


class CliSpeechHandler:
    """Simple sync-friendly facade over the async speech assistant."""

    def __init__(self, assistant: SpeechAssistant, *, frame_seconds: float = 1 / 30) -> None:
        self._assistant = assistant
        self._frame_seconds = frame_seconds

    def speak(self, text: str, language: Language | None = None) -> SynthesisRunReport | None:
        return asyncio.run(self._assistant.speak_and_wait(text, language))

    def speak_with_spectrum(
        self,
        text: str,
        language: Language | None = None,
        *,
        bands: int = 64,
    ) -> SynthesisRunReport | None:
        """Speak while drawing the live band levels of the playing audio."""
        return asyncio.run(self._speak_with_spectrum(text, language, SpectrumAnalyzer(bands=bands)))

    def transcribe(self, samples, sample_rate: int, language: Language | None = None) -> str:
        return asyncio.run(self._assistant.transcribe(samples, sample_rate, language))

    def transcribe_file(self, path: str | Path, language: Language | None = None) -> str:
        samples, sample_rate = load_audio(path)
        return self.transcribe(samples, sample_rate, language)

    async def _speak_with_spectrum(
        self,
        text: str,
        language: Language | None,
        analyzer: SpectrumAnalyzer,
    ) -> SynthesisRunReport | None:
        task = self._assistant.speak(text, language)
        channel = self._assistant.active_channel
        if task is None or channel is None:
            return None

        player = channel.scheduler.player
        window_reader = getattr(player, "current_window", None)
        last = time.monotonic()
        with Live(render_levels(analyzer.levels), refresh_per_second=30, transient=True) as live:
            while not task.done():
                await asyncio.sleep(self._frame_seconds)
                now = time.monotonic()
                if window_reader is not None and player.is_playing:
                    analyzer.update_from_audio(window_reader(analyzer.frequency_bins * 2), now - last)
                    live.update(render_levels(analyzer.levels, ceiling=max(float(analyzer.levels.max()), 1e-3)))
                last = now
        return await channel.scheduler.wait()
