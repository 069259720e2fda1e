"""Autoregressive Whisper decoding with key/value cache reuse.

Every step runs two decoder passes: ``decoder1`` over the whole prompt, which
yields the attention caches, then ``decoder2`` on the single most recent token
with those caches, which yields the next-token logits. Token bookkeeping runs one
step behind: the token fed to ``decoder2`` at step *t* was selected at step
*t - 1*, and it is appended to the prompt only once step *t* completes.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from speech_runtime.audio.features import prepare_whisper_input
from speech_runtime.errors import SessionError
from speech_runtime.languages import Language
from speech_runtime.telemetry import NullTelemetry, Telemetry

from .models import END_OF_TEXT, NO_TIMESTAMPS, START_OF_TRANSCRIPT, TRANSCRIBE, DecoderCache, WhisperModels
from .vocabulary import WhisperVocabulary

PROMPT_LENGTH = 3
DEFAULT_MAX_TOKENS = 100

TextSink = Callable[[str], None]


class RecognitionState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    ENCODING = "encoding"
    PROMPT_PASS = "prompt_pass"
    DECODE_STEP = "decode_step"
    DONE = "done"


class StopReason(str, Enum):
    END_OF_TEXT = "end_of_text"
    CAPACITY = "capacity"
    CANCELLED = "cancelled"
    ERROR = "error"


@dataclass(slots=True)
class RecognitionSession:
    """State owned by one ``run_whisper`` call; released when the call ends."""

    session_id: int
    language_token: int
    models: WhisperModels | None = None
    capacity: int = DEFAULT_MAX_TOKENS
    output_tokens: np.ndarray = field(init=False)
    token_count: int = 0
    last_token: int = NO_TIMESTAMPS
    encoded_audio: np.ndarray | None = None
    cache: DecoderCache | None = None
    transcribe: bool = False
    text: str = ""
    steps: int = 0
    state: RecognitionState = RecognitionState.IDLE
    stop_reason: StopReason | None = None
    error: SessionError | None = None

    def __post_init__(self) -> None:
        self.output_tokens = np.zeros(self.capacity, dtype=np.int32)
        self.output_tokens[:PROMPT_LENGTH] = (START_OF_TRANSCRIPT, self.language_token, TRANSCRIBE)
        self.token_count = PROMPT_LENGTH

    @property
    def can_continue(self) -> bool:
        return self.transcribe and self.token_count < self.capacity - 1

    @property
    def appended_tokens(self) -> list[int]:
        """Tokens written after the prompt, in order."""
        return self.output_tokens[PROMPT_LENGTH : self.token_count].tolist()

    def token_view(self) -> np.ndarray:
        return self.output_tokens[: self.token_count].reshape(1, -1)

    def last_token_view(self) -> np.ndarray:
        return np.array([[self.last_token]], dtype=np.int32)

    def record_step(self, selected: int) -> None:
        self.output_tokens[self.token_count] = self.last_token
        self.last_token = selected
        self.token_count += 1
        self.steps += 1

    def request_stop(self, reason: StopReason) -> None:
        if self.stop_reason is None:
            self.stop_reason = reason
        self.transcribe = False

    def release(self) -> None:
        if self.models is not None:
            self.models.close()
        self.encoded_audio = None
        self.cache = None
        self.transcribe = False
        self.state = RecognitionState.DONE


class WhisperRecognizer:
    """Runs at most one recognition session at a time.

    Starting a new run asks the active session to stop, waits for it to release
    its models and tensors, and only then loads the next session's models.
    """

    def __init__(
        self,
        *,
        vocabulary: WhisperVocabulary,
        model_factory: Callable[[], WhisperModels],
        max_tokens: int = DEFAULT_MAX_TOKENS,
        n_mels: int = 80,
        language: Language = Language.ENGLISH,
        on_text: TextSink | None = None,
        telemetry: Telemetry | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._vocabulary = vocabulary
        self._model_factory = model_factory
        self._max_tokens = max_tokens
        self._n_mels = n_mels
        self.language = language
        self.on_text = on_text
        self._telemetry = telemetry or NullTelemetry()
        self._logger = logger or logging.getLogger("speech_runtime.asr.recognizer")

        self._start_lock = asyncio.Lock()
        self._session: RecognitionSession | None = None
        self._task: asyncio.Task[str] | None = None
        self._session_counter = 0

    @property
    def session(self) -> RecognitionSession | None:
        """The most recent session, active or finished."""
        return self._session

    async def transcribe(self, samples: np.ndarray, sample_rate: int) -> str:
        return await self.run_whisper(samples, sample_rate)

    async def run_whisper(
        self,
        samples: np.ndarray,
        sample_rate: int,
        *,
        language: Language | None = None,
    ) -> str:
        """Transcribe ``samples`` and return the decoded text.

        Failures inside the session are logged and recorded on
        ``session.error``; the text decoded before the failure is returned.
        """
        async with self._start_lock:
            await self.stop()
            self._session_counter += 1
            language = language or self.language
            session = RecognitionSession(
                session_id=self._session_counter,
                language_token=language.whisper_token,
                capacity=self._max_tokens,
            )
            self._session = session
            task = asyncio.create_task(
                self._run(session, samples, sample_rate),
                name=f"asr-session-{session.session_id}",
            )
            self._task = task
        return await task

    async def stop(self) -> None:
        """Stop the active session after its current step and wait for its release."""
        task = self._task
        session = self._session
        if task is None or task.done():
            return
        if session is not None:
            session.request_stop(StopReason.CANCELLED)
        self._logger.info("asr_session_replaced", extra={"session_id": session.session_id if session else None})
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise

    async def _run(self, session: RecognitionSession, samples: np.ndarray, sample_rate: int) -> str:
        self._logger.info("asr_session_started", extra={"session_id": session.session_id})
        try:
            session.state = RecognitionState.LOADING
            session.models = self._model_factory()

            session.state = RecognitionState.ENCODING
            features = prepare_whisper_input(samples, sample_rate, self._n_mels)
            session.encoded_audio = session.models.encode(features)
            session.transcribe = session.stop_reason is None

            while session.can_continue:
                await self._step(session)
                await asyncio.sleep(0)

            if session.stop_reason is None:
                session.request_stop(StopReason.CAPACITY)
        except asyncio.CancelledError:
            session.request_stop(StopReason.CANCELLED)
            raise
        except Exception as exc:  # noqa: BLE001 - any failed step aborts the whole session.
            session.request_stop(StopReason.ERROR)
            error = SessionError(f"Recognition session {session.session_id} failed in {session.state.value}: {exc}")
            error.__cause__ = exc
            session.error = error
            self._logger.exception(
                "asr_session_failed",
                extra={"session_id": session.session_id, "state": session.state.value},
            )
        finally:
            session.release()
            self._telemetry.emit(
                "asr_session_finished",
                {
                    "session_id": session.session_id,
                    "steps": session.steps,
                    "tokens": session.token_count,
                    "stop_reason": session.stop_reason.value if session.stop_reason else None,
                },
            )

        self._logger.info(
            "asr_session_finished",
            extra={"session_id": session.session_id, "stop_reason": session.stop_reason.value, "text": session.text},
        )
        return session.text

    async def _step(self, session: RecognitionSession) -> None:
        models = session.models

        session.state = RecognitionState.PROMPT_PASS
        outputs = models.prompt_pass(session.token_view(), session.encoded_audio)
        session.cache = DecoderCache.from_outputs(outputs) if session.cache is None else session.cache.advance(outputs)

        session.state = RecognitionState.DECODE_STEP
        logits = models.decode_step(session.last_token_view(), session.encoded_audio, session.cache)
        selected = await models.argmax.select_async(logits)

        session.record_step(selected)
        if selected == END_OF_TEXT:
            session.request_stop(StopReason.END_OF_TEXT)
        elif selected < len(self._vocabulary):
            session.text += self._vocabulary.decode(selected)

        if self.on_text is not None:
            self.on_text(session.text)
        self._logger.debug(
            "asr_step",
            extra={"session_id": session.session_id, "token": selected, "count": session.token_count},
        )
