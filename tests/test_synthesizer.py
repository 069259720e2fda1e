from __future__ import annotations

import asyncio
import json

import numpy as np
import pytest

from speech_runtime.errors import ChunkSynthesisError, EmptyWaveformError, InitializationError, PhonemizationError
from speech_runtime.models import VoiceProfile
from speech_runtime.tts.scheduler import ChunkScheduler
from speech_runtime.tts.synthesizer import PiperSynthesizer
from speech_runtime.tts.tokenizer import PhonemeTokenizer, load_voice_profile, voice_config_path
from speech_runtime.tts.vocoder import PiperVocoder

PROFILE = VoiceProfile(
    phoneme_id_map={"_": 0, "h": 20, "ə": 59, "l": 24, "o": 27, " ": 3},
    sample_rate=22_050,
    espeak_voice="en-us",
)


class StubPhonemizer:
    def __init__(self, phonemes: str = "həlo", voice_code: int = 0) -> None:
        self.phonemes = phonemes
        self.voice_code = voice_code
        self.voices: list[str] = []

    def set_voice_by_name(self, name: str) -> int:
        self.voices.append(name)
        return self.voice_code

    def text_to_phonemes(self, text: str) -> str:
        return self.phonemes


class StubVocoderModel:
    def __init__(self, samples_per_token: int = 256, empty: bool = False) -> None:
        self.samples_per_token = samples_per_token
        self.empty = empty
        self.inputs: list[dict[str, np.ndarray]] = []
        self.closed = False

    def run(self, inputs, output_names=None):
        self.inputs.append(dict(inputs))
        if self.empty:
            return {"output": np.zeros((1, 1, 0), dtype=np.float32)}
        length = int(inputs["input_lengths"][0])
        return {"output": np.ones((1, 1, length * self.samples_per_token), dtype=np.float32)}

    def close(self) -> None:
        self.closed = True


def _synthesizer(model: StubVocoderModel, phonemizer: StubPhonemizer | None = None) -> PiperSynthesizer:
    return PiperSynthesizer(profile=PROFILE, phonemizer=phonemizer or StubPhonemizer(), vocoder=PiperVocoder(model))


def test_input_length_matches_token_count() -> None:
    model = StubVocoderModel()
    synthesizer = _synthesizer(model)

    waveform = synthesizer.synthesize_chunk("hello")

    inputs = model.inputs[0]
    assert inputs["input"].tolist() == [[20, 59, 24, 27]]
    assert inputs["input_lengths"].tolist() == [4]
    assert synthesizer.last_input_length == inputs["input"].shape[1]
    assert inputs["scales"].dtype == np.float32
    assert inputs["scales"].tolist() == pytest.approx([0.667, 1.0, 0.8])
    assert waveform.shape == (4 * 256,)


def test_unknown_phonemes_use_pad_id() -> None:
    tokens = PhonemeTokenizer(PROFILE).tokenize(list("hxo"))

    assert tokens.tolist() == [20, 0, 27]
    assert tokens.dtype == np.int32


def test_empty_waveform_is_chunk_failure() -> None:
    synthesizer = _synthesizer(StubVocoderModel(empty=True))

    with pytest.raises(EmptyWaveformError):
        synthesizer.synthesize_chunk("hello")


def test_select_voice_raises_on_native_error() -> None:
    phonemizer = StubPhonemizer(voice_code=2)
    synthesizer = _synthesizer(StubVocoderModel(), phonemizer)

    with pytest.raises(InitializationError):
        synthesizer.select_voice()
    assert phonemizer.voices == ["en-us"]


def test_close_releases_vocoder() -> None:
    model = StubVocoderModel()
    _synthesizer(model).close()

    assert model.closed


def test_voice_profile_loads_from_piper_config(tmp_path) -> None:
    model_path = tmp_path / "de_DE-thorsten-medium.onnx"
    config = {
        "audio": {"sample_rate": 16000},
        "espeak": {"voice": "de"},
        "inference": {"noise_scale": 0.5, "length_scale": 1.2, "noise_w": 0.6},
        "phoneme_id_map": {"_": [0], "^": [1], "a": [14]},
    }
    voice_config_path(model_path).write_text(json.dumps(config), encoding="utf-8")

    profile = load_voice_profile(voice_config_path(model_path))

    assert voice_config_path(model_path).name == "de_DE-thorsten-medium.onnx.json"
    assert profile.sample_rate == 16000
    assert profile.espeak_voice == "de"
    assert profile.phoneme_id_map == {"_": 0, "^": 1, "a": 14}
    assert profile.scales.tolist() == pytest.approx([0.5, 1.2, 0.6])
    assert profile.name == "de_DE-thorsten-medium"


def test_from_model_wires_loader_and_config(tmp_path) -> None:
    model_path = tmp_path / "voice.onnx"
    voice_config_path(model_path).write_text(json.dumps({"phoneme_id_map": {"_": [0], "h": [20]}}), encoding="utf-8")
    loaded: list[str] = []
    model = StubVocoderModel()

    def loader(path):
        loaded.append(str(path))
        return model

    synthesizer = PiperSynthesizer.from_model(model_path, phonemizer=StubPhonemizer("h"), loader=loader)

    assert loaded == [str(model_path)]
    assert synthesizer.sample_rate == 22_050
    assert synthesizer.synthesize_chunk("h").size == 256


def test_missing_phoneme_map_is_initialization_error(tmp_path) -> None:
    path = tmp_path / "voice.onnx.json"
    path.write_text(json.dumps({"audio": {"sample_rate": 22050}}), encoding="utf-8")

    with pytest.raises(InitializationError):
        load_voice_profile(path)


class ChunkPhonemizer(StubPhonemizer):
    """Returns no phonemes for the chunk ``bad``."""

    def text_to_phonemes(self, text: str) -> str:
        return "" if text == "bad" else "h"


class ZeroLengthRejectingModel(StubVocoderModel):
    def run(self, inputs, output_names=None):
        if inputs["input"].shape[1] == 0:
            raise RuntimeError("Got invalid dimensions for input: input")
        return super().run(inputs, output_names)


def test_empty_phonemes_never_reach_the_vocoder() -> None:
    model = StubVocoderModel()
    synthesizer = _synthesizer(model, ChunkPhonemizer())

    with pytest.raises(PhonemizationError):
        synthesizer.synthesize_chunk("bad")
    assert model.inputs == []


def test_vocoder_failure_is_chunk_failure() -> None:
    class FailingModel(StubVocoderModel):
        def run(self, inputs, output_names=None):
            raise RuntimeError("ORT session failed")

    with pytest.raises(ChunkSynthesisError):
        _synthesizer(FailingModel()).synthesize_chunk("hello")


def test_scheduler_skips_unphonemizable_chunk_and_speaks_the_rest() -> None:
    model = ZeroLengthRejectingModel()
    synthesizer = _synthesizer(model, ChunkPhonemizer())
    player = _ImmediatePlayer()

    async def _run():
        scheduler = ChunkScheduler(synthesizer, player, sleep=_no_sleep)
        scheduler.synthesize_and_play("first, bad, last")
        return await scheduler.wait()

    report = asyncio.run(_run())

    assert [inputs["input"].shape for inputs in model.inputs] == [(1, 1), (1, 1)]
    assert report.chunks_played == 2
    assert report.chunks_skipped == 1
    assert len(player.played) == 2


class _ImmediatePlayer:
    is_playing = False

    def __init__(self) -> None:
        self.played: list[int] = []

    def play(self, samples: np.ndarray, sample_rate: int) -> None:
        self.played.append(int(samples.size))


async def _no_sleep(seconds: float) -> None:
    return None
