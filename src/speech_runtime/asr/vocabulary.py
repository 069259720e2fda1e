"""Whisper vocabulary loading and token detokenization.

Whisper's byte-level BPE stores bytes that are not printable on their own as
code points shifted past 256. The remap table lists those bytes in ascending
order so that ``table[codepoint - 256]`` recovers the original byte.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from speech_runtime.errors import InitializationError

# Byte ranges Whisper's byte-to-unicode mapping keeps as their own code point.
PRINTABLE_ASCII = range(0x21, 0x7E + 1)
PRINTABLE_LATIN1_LOWER = range(0xA1, 0xAC + 1)
PRINTABLE_LATIN1_UPPER = range(0xAE, 0xFF + 1)

_SHIFT = 256


def is_shifted_byte(value: int) -> bool:
    """True for byte values stored in the vocabulary as shifted code points."""
    return not (value in PRINTABLE_ASCII or value in PRINTABLE_LATIN1_LOWER or value in PRINTABLE_LATIN1_UPPER)


def build_byte_table() -> tuple[int, ...]:
    """256-entry table; leading positions hold the shifted bytes, the rest are 0."""
    table = [0] * 256
    position = 0
    for value in range(256):
        if is_shifted_byte(value):
            table[position] = value
            position += 1
    return tuple(table)


BYTE_TABLE = build_byte_table()


def shift_characters_down(token: str, table: tuple[int, ...] = BYTE_TABLE) -> str:
    characters = []
    for character in token:
        codepoint = ord(character)
        if codepoint <= _SHIFT:
            characters.append(character)
        else:
            characters.append(chr(table[min(max(codepoint - _SHIFT, 0), 255)]))
    return "".join(characters)


def token_to_text(token: str, table: tuple[int, ...] = BYTE_TABLE) -> str:
    raw = shift_characters_down(token, table).encode("latin-1", errors="replace")
    return raw.decode("utf-8", errors="replace")


class WhisperVocabulary:
    """Index-to-token mapping with byte-aware decoding."""

    def __init__(self, tokens: list[str]) -> None:
        self._tokens = tokens

    @classmethod
    def from_mapping(cls, mapping: dict[str, int]) -> WhisperVocabulary:
        """Invert a ``token -> index`` mapping whose indices are dense ``[0, count)``."""
        count = len(mapping)
        tokens: list[str | None] = [None] * count
        for token, index in mapping.items():
            if not 0 <= index < count or tokens[index] is not None:
                raise InitializationError(f"Vocabulary index {index} for {token!r} is not dense in [0, {count})")
            tokens[index] = token
        return cls([token for token in tokens if token is not None])

    @classmethod
    def load(cls, path: str | Path, logger: logging.Logger | None = None) -> WhisperVocabulary:
        logger = logger or logging.getLogger("speech_runtime.asr.vocabulary")
        try:
            mapping = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise InitializationError(f"Error parsing tokens json {path}: {exc}") from exc
        vocabulary = cls.from_mapping({str(token): int(index) for token, index in mapping.items()})
        logger.info("vocabulary_loaded", extra={"path": str(path), "size": len(vocabulary)})
        return vocabulary

    def __len__(self) -> int:
        return len(self._tokens)

    def token(self, index: int) -> str:
        return self._tokens[index]

    def decode(self, index: int) -> str:
        """Text fragment for one token id."""
        return token_to_text(self._tokens[index])

    def decode_many(self, indices: list[int]) -> str:
        return "".join(self.decode(index) for index in indices if 0 <= index < len(self._tokens))
