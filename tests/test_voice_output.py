import asyncio

from speech_runtime.voice.output import VoiceOutputConfig, VoiceOutputService


class StubScheduler:
    def __init__(self) -> None:
        self.requests: list[str] = []

    def synthesize_and_play(self, text: str):
        self.requests.append(text)
        return asyncio.get_running_loop().create_future()


def test_text_is_normalized_and_limited() -> None:
    async def _run():
        scheduler = StubScheduler()
        service = VoiceOutputService(scheduler, VoiceOutputConfig(max_chars=11))
        task = service.speak("  Hello,\n   world  and more ")
        task.cancel()
        return scheduler.requests

    assert asyncio.run(_run()) == ["Hello, worl"]


def test_disabled_or_blank_output_is_skipped() -> None:
    scheduler = StubScheduler()

    assert VoiceOutputService(scheduler, VoiceOutputConfig(enabled=False)).speak("hi") is None
    assert VoiceOutputService(scheduler).speak("   ") is None
    assert scheduler.requests == []
