"""CLI startup entrypoint for the speech runtime."""

from __future__ import annotations

import asyncio
import logging

import typer
from rich import print

from speech_runtime.asr import WhisperModelPaths, WhisperModels, WhisperRecognizer, WhisperVocabulary
from speech_runtime.assistant import SpeechAssistant, VoiceChannel
from speech_runtime.cli import CliSpeechHandler
from speech_runtime.config import settings
from speech_runtime.errors import InitializationError
from speech_runtime.inference import ModelLoader, onnx_loader
from speech_runtime.languages import Language
from speech_runtime.telemetry import build_telemetry, configure_logging
from speech_runtime.tts import ChunkScheduler, PiperSynthesizer, PunctuationDelays
from speech_runtime.voice.output import VoiceOutputConfig

app = typer.Typer(help="On-device speech synthesis and recognition")

logger = logging.getLogger("speech_runtime.main")


def _build_voices(loader: ModelLoader) -> list[VoiceChannel | None]:
    if not settings.voice_models:
        return []

    from speech_runtime.audio.playback import SounddevicePlayer
    from speech_runtime.tts.phonemizer import EspeakPhonemizer

    phonemizer = EspeakPhonemizer(data_path=settings.espeak_data_path)
    player = SounddevicePlayer()
    delays = PunctuationDelays(
        comma=settings.comma_delay,
        period=settings.period_delay,
        question_exclamation=settings.question_exclamation_delay,
    )
    telemetry = build_telemetry(settings.telemetry_enabled)

    voices: list[VoiceChannel | None] = []
    for model_path in settings.voice_models:
        try:
            synthesizer = PiperSynthesizer.from_model(model_path, phonemizer=phonemizer, loader=loader)
            synthesizer.select_voice()
        except InitializationError as exc:
            logger.error("voice_load_failed", extra={"model": model_path, "error": str(exc)})
            voices.append(None)
            continue

        scheduler = ChunkScheduler(
            synthesizer,
            player,
            delays=delays,
            poll_interval_seconds=settings.playback_poll_seconds,
            telemetry=telemetry,
        )
        scheduler.warm_up()
        voices.append(VoiceChannel(synthesizer=synthesizer, scheduler=scheduler))
    return voices


def _build_recognizer(loader: ModelLoader) -> WhisperRecognizer | None:
    paths = (
        settings.whisper_encoder_path,
        settings.whisper_decoder1_path,
        settings.whisper_decoder2_path,
        settings.whisper_vocab_path,
    )
    if not all(paths):
        return None

    model_paths = WhisperModelPaths(
        encoder=settings.whisper_encoder_path,
        decoder1=settings.whisper_decoder1_path,
        decoder2=settings.whisper_decoder2_path,
    )
    return WhisperRecognizer(
        vocabulary=WhisperVocabulary.load(settings.whisper_vocab_path),
        model_factory=lambda: WhisperModels.load(model_paths, loader),
        max_tokens=settings.whisper_max_tokens,
        n_mels=settings.whisper_n_mels,
        language=Language.parse(settings.language),
        telemetry=build_telemetry(settings.telemetry_enabled),
    )


def _build_assistant(*, with_voices: bool = True, with_recognizer: bool = True) -> SpeechAssistant:
    configure_logging(settings.log_level)
    loader = onnx_loader(settings.execution_provider)
    return SpeechAssistant(
        voices=_build_voices(loader) if with_voices else [],
        recognizer=_build_recognizer(loader) if with_recognizer else None,
        language=Language.parse(settings.language),
        output_config=VoiceOutputConfig(enabled=settings.voice_enabled),
    )


def _handler_or_exit(**kwargs) -> tuple[SpeechAssistant, CliSpeechHandler]:
    try:
        assistant = _build_assistant(**kwargs)
    except (InitializationError, RuntimeError) as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)
    return assistant, CliSpeechHandler(assistant)


@app.command()
def start() -> None:
    """Show runtime backend configuration."""
    print(
        {
            "app_name": settings.app_name,
            "execution_provider": settings.execution_provider,
            "voice_models": settings.voice_models,
            "whisper_encoder_path": settings.whisper_encoder_path,
            "whisper_decoder1_path": settings.whisper_decoder1_path,
            "whisper_decoder2_path": settings.whisper_decoder2_path,
            "whisper_vocab_path": settings.whisper_vocab_path,
            "language": settings.language,
        }
    )


@app.command()
def speak(
    text: str,
    language: str = typer.Option(None, help="english, german or french"),
    visualize: bool = typer.Option(False, help="Draw the live spectrum while speaking"),
) -> None:
    """Synthesize and play text chunk by chunk."""
    assistant, handler = _handler_or_exit(with_recognizer=False)
    if not any(assistant.voices):
        print({"error": "No voice loaded. Set SPEECH_RUNTIME_VOICE_MODELS to a list of Piper .onnx files."})
        raise typer.Exit(code=1)

    lang = Language.parse(language) if language else None
    if visualize:
        report = handler.speak_with_spectrum(text, lang, bands=settings.visualization_bands)
    else:
        report = handler.speak(text, lang)
    assistant.close()
    print({"spoken": text, "report": report})


@app.command()
def transcribe(
    audio_file: str,
    language: str = typer.Option(None, help="english, german or french"),
) -> None:
    """Transcribe an audio file with the Whisper models."""
    assistant, handler = _handler_or_exit(with_voices=False)
    if assistant.recognizer is None:
        print({"error": "Whisper models are not configured. Set SPEECH_RUNTIME_WHISPER_* paths."})
        raise typer.Exit(code=1)

    text = handler.transcribe_file(audio_file, Language.parse(language) if language else None)
    session = assistant.recognizer.session
    print(
        {
            "transcript": text,
            "stop_reason": session.stop_reason.value if session and session.stop_reason else None,
            "error": str(session.error) if session and session.error else None,
        }
    )


@app.command()
def listen(
    seconds: float = typer.Option(None, help="Recording length in seconds"),
    language: str = typer.Option(None, help="english, german or french"),
) -> None:
    """Record from the microphone and transcribe the clip."""
    assistant, handler = _handler_or_exit(with_voices=False)
    if assistant.recognizer is None:
        print({"error": "Whisper models are not configured. Set SPEECH_RUNTIME_WHISPER_* paths."})
        raise typer.Exit(code=1)

    try:
        from speech_runtime.voice.microphone import SounddeviceMicrophone

        microphone = SounddeviceMicrophone(
            device=settings.microphone_device,
            sample_rate=settings.recording_sample_rate,
        )
    except RuntimeError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)

    samples, sample_rate = microphone.record(seconds or settings.recording_seconds)
    text = handler.transcribe(samples, sample_rate, Language.parse(language) if language else None)
    print({"transcript": text})


@app.command("voice-chat")
def voice_chat(
    language: str = typer.Option(None, help="english, german or french"),
    seconds: float = typer.Option(5.0, help="Per-utterance capture limit in seconds"),
) -> None:
    """Record, transcribe and speak each utterance back until 'stop listening' is heard."""
    from speech_runtime.voice import VoiceCaptureConfig, VoiceInputService

    try:
        from speech_runtime.voice.microphone import SounddeviceMicrophone

        microphone = SounddeviceMicrophone(
            device=settings.microphone_device,
            sample_rate=settings.recording_sample_rate,
        )
    except RuntimeError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)

    assistant, _ = _handler_or_exit()
    if assistant.recognizer is None or not any(assistant.voices):
        print({"error": "voice-chat needs both Whisper models and at least one Piper voice configured."})
        raise typer.Exit(code=1)

    lang = Language.parse(language) if language else assistant.language
    input_service = VoiceInputService(
        recognizer=assistant.recognizer,
        config=VoiceCaptureConfig(seconds=seconds, sensitivity_threshold=settings.input_sensitivity),
    )
    assistant.recognizer.language = lang

    async def _loop() -> None:
        while True:
            await asyncio.to_thread(input, "Press Enter to capture voice (Ctrl+C to quit) ...")
            event = await input_service.capture_once(microphone)
            if event is None:
                continue
            if "stop listening" in event.transcript.lower():
                await assistant.speak_and_wait("Okay, stopping voice chat.", lang)
                print({"voice_chat": "stopped"})
                return
            print({"heard": event.transcript, "seconds": round(event.seconds, 2)})
            await assistant.speak_and_wait(event.transcript, lang)

    print({"voice_chat": "started", "language": lang.value, "hint": "Say 'stop listening' to exit."})
    try:
        asyncio.run(_loop())
    finally:
        assistant.close()


if __name__ == "__main__":
    app()
