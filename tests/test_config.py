import pytest
from pydantic import ValidationError

from speech_runtime.config import Settings


def test_settings_read_prefixed_environment(monkeypatch) -> None:
    monkeypatch.setenv("SPEECH_RUNTIME_VOICE_MODELS", '["en.onnx", "de.onnx"]')
    monkeypatch.setenv("SPEECH_RUNTIME_PERIOD_DELAY", "0.25")
    monkeypatch.setenv("SPEECH_RUNTIME_WHISPER_MAX_TOKENS", "64")

    settings = Settings(_env_file=None)

    assert settings.voice_models == ["en.onnx", "de.onnx"]
    assert settings.period_delay == 0.25
    assert settings.whisper_max_tokens == 64
    assert settings.comma_delay == 0.1


def test_delays_are_bounded(monkeypatch) -> None:
    monkeypatch.setenv("SPEECH_RUNTIME_COMMA_DELAY", "3")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)
