import asyncio

import numpy as np

from speech_runtime.voice.input import VoiceCaptureConfig, VoiceInputService


class StubRecognizer:
    def __init__(self, transcript: str) -> None:
        self.transcript = transcript
        self.calls = 0

    async def transcribe(self, samples: np.ndarray, sample_rate: int) -> str:
        self.calls += 1
        return self.transcript


class StubMicrophone:
    def __init__(self, samples: np.ndarray) -> None:
        self.samples = samples
        self.requested: list[float] = []

    def record(self, seconds: float) -> tuple[np.ndarray, int]:
        self.requested.append(seconds)
        return self.samples, 16_000


def test_capture_once_transcribes_loud_audio() -> None:
    recognizer = StubRecognizer("  hello there ")
    microphone = StubMicrophone(np.full(8_000, 0.5, dtype=np.float32))
    service = VoiceInputService(recognizer=recognizer, config=VoiceCaptureConfig(seconds=3.0))

    event = asyncio.run(service.capture_once(microphone))

    assert microphone.requested == [3.0]
    assert event is not None
    assert event.transcript == "hello there"
    assert event.seconds == 0.5
    assert event.signal_level == 0.5


def test_quiet_audio_is_gated_before_recognition() -> None:
    recognizer = StubRecognizer("ignored")
    service = VoiceInputService(
        recognizer=recognizer,
        config=VoiceCaptureConfig(sensitivity_threshold=0.1),
    )

    event = asyncio.run(service.process_audio(np.full(1_000, 0.01, dtype=np.float32), 16_000))

    assert event is None
    assert recognizer.calls == 0


def test_blank_transcript_yields_no_event() -> None:
    service = VoiceInputService(recognizer=StubRecognizer("   "))

    assert asyncio.run(service.process_audio(np.ones(100, dtype=np.float32), 16_000)) is None


def test_update_config_clamps_values() -> None:
    service = VoiceInputService(recognizer=StubRecognizer("x"))

    service.update_config(seconds=0.0, sensitivity_threshold=4.0)

    assert service.config.seconds == 0.1
    assert service.config.sensitivity_threshold == 1.0
