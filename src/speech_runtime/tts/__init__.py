"""Piper text-to-speech: phonemization, vocoder invocation and chunk scheduling."""

from .scheduler import ChunkScheduler, SchedulerState
from .segments import PunctuationDelays, clean_content, split_segments
from .synthesizer import PiperSynthesizer
from .tokenizer import PhonemeTokenizer, load_voice_profile

__all__ = [
    "ChunkScheduler",
    "PhonemeTokenizer",
    "PiperSynthesizer",
    "PunctuationDelays",
    "SchedulerState",
    "clean_content",
    "load_voice_profile",
    "split_segments",
]
