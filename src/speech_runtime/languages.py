"""Supported conversation languages and their model bindings."""

from __future__ import annotations

from enum import Enum


class Language(str, Enum):
    """Languages offered for synthesis and recognition."""

    ENGLISH = "english"
    GERMAN = "german"
    FRENCH = "french"

    @property
    def voice_index(self) -> int:
        """Slot of the Piper voice used for this language."""
        return _VOICE_INDEX[self]

    @property
    def whisper_token(self) -> int:
        """Whisper language token placed second in the decoder prompt."""
        return _WHISPER_TOKENS[self]

    @classmethod
    def parse(cls, value: str | None) -> Language:
        """Resolve a user-facing name or ISO code, defaulting to English."""
        if not value:
            return cls.ENGLISH
        normalized = value.strip().lower()
        for language in cls:
            if normalized in (language.value, language.name.lower(), _ISO_CODES[language]):
                return language
        return cls.ENGLISH


_VOICE_INDEX = {
    Language.ENGLISH: 0,
    Language.GERMAN: 1,
    Language.FRENCH: 2,
}

_WHISPER_TOKENS = {
    Language.ENGLISH: 50259,
    Language.GERMAN: 50261,
    Language.FRENCH: 50265,
}

_ISO_CODES = {
    Language.ENGLISH: "en",
    Language.GERMAN: "de",
    Language.FRENCH: "fr",
}
