"""Whisper speech recognition: vocabulary, models and the decode loop."""

from .models import END_OF_TEXT, ArgmaxSelector, DecoderCache, WhisperModelPaths, WhisperModels
from .recognizer import RecognitionSession, RecognitionState, StopReason, WhisperRecognizer
from .vocabulary import BYTE_TABLE, WhisperVocabulary

__all__ = [
    "ArgmaxSelector",
    "BYTE_TABLE",
    "DecoderCache",
    "END_OF_TEXT",
    "RecognitionSession",
    "RecognitionState",
    "StopReason",
    "WhisperModelPaths",
    "WhisperModels",
    "WhisperRecognizer",
    "WhisperVocabulary",
]
