"""Punctuation-aware splitting of synthesis requests into timed segments."""

from __future__ import annotations

import re
from dataclasses import dataclass

from speech_runtime.models import SegmentKind, TextSegment

DELAY_PUNCTUATION = ",.?!;:"

_DELAY_SPLIT = re.compile(r"([,.?!;:])")
_NON_DELAY_PUNCTUATION = re.compile(r"[^\w\s,.?!;:]")


@dataclass(slots=True)
class PunctuationDelays:
    """Pause lengths in seconds per class of delay-bearing punctuation."""

    comma: float = 0.1
    period: float = 0.5
    question_exclamation: float = 0.6

    def for_character(self, character: str) -> float:
        if character in (",", ";", ":"):
            return self.comma
        if character == ".":
            return self.period
        if character in ("?", "!"):
            return self.question_exclamation
        return 0.0


def split_raw(text: str) -> list[str]:
    """Capturing split on delay punctuation; ``"".join`` of the result is ``text``."""
    return _DELAY_SPLIT.split(text)


def split_segments(text: str) -> list[TextSegment]:
    """Split ``text`` into ordered pause and content segments, dropping blank pieces."""
    segments: list[TextSegment] = []
    for part in split_raw(text):
        if not part.strip():
            continue
        kind = SegmentKind.DELAY_PUNCT if _DELAY_SPLIT.fullmatch(part) else SegmentKind.CONTENT
        segments.append(TextSegment(kind=kind, payload=part))
    return segments


def clean_content(payload: str) -> str:
    """Replace characters other than word characters, whitespace and delay punctuation with spaces."""
    return _NON_DELAY_PUNCTUATION.sub(" ", payload).strip()
