"""Chunked text-to-speech scheduling.

A run walks the punctuation-split segments of one request: delay punctuation
pauses the pipeline, content chunks are synthesized and played one at a time.
Each request bumps a generation counter; a newer request cancels the running
task, and any step that resumes under a stale generation stops immediately.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from enum import Enum

import numpy as np

from speech_runtime.errors import ChunkSynthesisError
from speech_runtime.models import PauseEvent, SegmentKind, SynthesisRunReport
from speech_runtime.telemetry import NullTelemetry, Telemetry
from speech_runtime.voice.interfaces import AudioOutputDevice, SpeechSynthesizer

from .segments import PunctuationDelays, clean_content, split_segments

WARMUP_TEXT = "hello"

AudioHook = Callable[[np.ndarray, int], None]


class SchedulerState(str, Enum):
    """Lifecycle states of a synthesis run."""

    IDLE = "idle"
    PAUSING = "pausing"
    SYNTHESIZING = "synthesizing"
    WAITING_FOR_PLAYBACK = "waiting_for_playback"
    DONE = "done"


class ChunkScheduler:
    """Sequences synthesis, playback and punctuation pauses for one voice."""

    def __init__(
        self,
        synthesizer: SpeechSynthesizer,
        player: AudioOutputDevice,
        *,
        delays: PunctuationDelays | None = None,
        poll_interval_seconds: float = 0.02,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        on_audio: AudioHook | None = None,
        telemetry: Telemetry | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._synthesizer = synthesizer
        self._player = player
        self._delays = delays or PunctuationDelays()
        self._poll_interval_seconds = poll_interval_seconds
        self._sleep = sleep
        self._clock = clock
        self._on_audio = on_audio
        self._telemetry = telemetry or NullTelemetry()
        self._logger = logger or logging.getLogger("speech_runtime.tts.scheduler")

        self._generation = 0
        self._task: asyncio.Task[SynthesisRunReport] | None = None
        self._state = SchedulerState.IDLE
        self._pause_until: float | None = None
        self._playing_chunks = False

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pause_until(self) -> float | None:
        """Monotonic deadline of the current pause, if pausing."""
        return self._pause_until

    @property
    def is_playing_chunks(self) -> bool:
        return self._playing_chunks

    @property
    def player(self) -> AudioOutputDevice:
        return self._player

    def warm_up(self) -> bool:
        """Run one throwaway synthesis so the backend compiles its kernels."""
        self._logger.info("tts_warmup_started")
        try:
            self._synthesizer.synthesize_chunk(WARMUP_TEXT)
        except Exception:  # noqa: BLE001 - warm-up failures never disable synthesis.
            self._logger.warning("tts_warmup_failed", exc_info=True)
            return False
        self._logger.info("tts_warmup_finished")
        return True

    def synthesize_and_play(self, text: str) -> asyncio.Task[SynthesisRunReport]:
        """Start speaking ``text``, cancelling any run that is still in flight.

        Must be called from a running event loop.
        """
        self.cancel()
        self._generation += 1
        generation = self._generation
        self._playing_chunks = True
        self._task = asyncio.create_task(self._run(generation, text), name=f"tts-run-{generation}")
        return self._task

    def cancel(self) -> None:
        """Abort the running request, if any; the next step of a stale run is dropped."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            self._logger.info("tts_run_cancelled", extra={"generation": self._generation})
        self._task = None
        self._playing_chunks = False
        self._pause_until = None
        if self._state != SchedulerState.IDLE:
            self._state = SchedulerState.DONE

    async def wait(self) -> SynthesisRunReport | None:
        """Wait for the current run to finish and return its report."""
        task = self._task
        if task is None:
            return None
        try:
            return await task
        except asyncio.CancelledError:
            if task.cancelled():
                return None
            raise

    async def _run(self, generation: int, text: str) -> SynthesisRunReport:
        report = SynthesisRunReport(generation=generation)
        try:
            for segment in split_segments(text):
                if not self._is_current(generation):
                    report.cancelled = True
                    return report

                if segment.kind == SegmentKind.DELAY_PUNCT:
                    await self._pause(segment.payload, report)
                    continue

                chunk = clean_content(segment.payload)
                if not chunk:
                    continue
                if await self._speak_chunk(generation, chunk):
                    report.chunks_played += 1
                else:
                    report.chunks_skipped += 1
        except asyncio.CancelledError:
            report.cancelled = True
            raise
        except Exception:
            self._logger.exception("tts_run_failed", extra={"generation": generation})
            raise
        finally:
            if self._is_current(generation):
                self._state = SchedulerState.DONE
                self._playing_chunks = False
                self._pause_until = None
            self._telemetry.emit(
                "tts_run_finished",
                {
                    "generation": generation,
                    "chunks_played": report.chunks_played,
                    "chunks_skipped": report.chunks_skipped,
                    "cancelled": report.cancelled,
                },
            )

        self._logger.info("tts_run_finished", extra={"generation": generation, "chunks": report.chunks_played})
        return report

    async def _pause(self, character: str, report: SynthesisRunReport) -> None:
        delay = self._delays.for_character(character)
        if delay <= 0:
            return
        self._state = SchedulerState.PAUSING
        self._pause_until = self._clock() + delay
        self._logger.debug("tts_pause", extra={"character": character, "seconds": delay})
        report.pauses.append(PauseEvent(character=character, seconds=delay))
        await self._sleep(delay)
        self._pause_until = None

    async def _speak_chunk(self, generation: int, chunk: str) -> bool:
        self._state = SchedulerState.SYNTHESIZING
        self._logger.debug("tts_chunk_started", extra={"chunk": chunk})
        try:
            samples = self._synthesizer.synthesize_chunk(chunk)
        except ChunkSynthesisError as exc:
            self._logger.error("tts_chunk_skipped", extra={"chunk": chunk, "reason": str(exc)})
            return False
        except Exception:  # noqa: BLE001 - a failed chunk never aborts the remaining segments.
            self._logger.exception("tts_chunk_failed", extra={"chunk": chunk})
            return False

        if not self._is_current(generation):
            return False

        sample_rate = self._synthesizer.sample_rate
        self._player.play(samples, sample_rate)
        if self._on_audio is not None:
            self._on_audio(samples, sample_rate)

        self._state = SchedulerState.WAITING_FOR_PLAYBACK
        while self._player.is_playing:
            await self._sleep(self._poll_interval_seconds)
            if not self._is_current(generation):
                break
        return True

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation
