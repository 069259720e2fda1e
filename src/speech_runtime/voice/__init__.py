"""Voice input and output module boundaries."""

from .input import VoiceCaptureConfig, VoiceInputEvent, VoiceInputService
from .interfaces import AudioOutputDevice, MicrophoneSource, Phonemizer, SpeechRecognizer, SpeechSynthesizer
from .output import VoiceOutputConfig, VoiceOutputService

__all__ = [
    "AudioOutputDevice",
    "MicrophoneSource",
    "Phonemizer",
    "SpeechRecognizer",
    "SpeechSynthesizer",
    "VoiceCaptureConfig",
    "VoiceInputEvent",
    "VoiceInputService",
    "VoiceOutputConfig",
    "VoiceOutputService",
]
