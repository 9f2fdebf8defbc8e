"""Syllable codec: 2-byte syllable codes and user pinyin encoding."""

from __future__ import annotations

from ._constants import SEPARATOR
from ._errors import InvalidPinyinError, InvalidSyllableError
from ._segment import parse_user_pinyin
from ._syllables import (
    FINAL_TEXT,
    INITIAL_TEXT,
    PARTIAL_SYLLABLES,
    VALID_SYLLABLES,
    Final,
    FuzzyFlag,
    Initial,
    Syllable,
    spelling_readings,
)

_INITIAL_VALUES = frozenset(int(i) for i in Initial)
_FINAL_VALUES = frozenset(int(f) for f in Final)


def initial_to_string(initial: Initial) -> str:
    return INITIAL_TEXT[initial]


def final_to_string(final: Final) -> str:
    return FINAL_TEXT[final]


def is_known_syllable(syllable: Syllable) -> bool:
    return syllable in VALID_SYLLABLES or syllable in PARTIAL_SYLLABLES


def to_code(syllable: Syllable) -> bytes:
    """Encode a syllable as (initial byte, final byte)."""
    if not is_known_syllable(syllable):
        raise InvalidSyllableError(f"not a known syllable: {syllable!r}")
    return bytes((syllable.initial, syllable.final))


def from_code(code: bytes) -> Syllable:
    """Decode one 2-byte syllable code.

    Raises:
        InvalidSyllableError: If the code is not 2 bytes or names no
            syllable of the table.
    """
    if len(code) != 2:
        raise InvalidSyllableError(f"syllable code must be 2 bytes, got {len(code)}")
    initial, final = code[0], code[1]
    if initial not in _INITIAL_VALUES or final not in _FINAL_VALUES:
        raise InvalidSyllableError(f"syllable code out of range: {code.hex()}")
    syllable = Syllable(Initial(initial), Final(final))
    if not is_known_syllable(syllable):
        raise InvalidSyllableError(f"no syllable for code {code.hex()}")
    return syllable


def encode_one_user_pinyin(pinyin: str) -> bytes:
    """Encode user-typed pinyin along the builder's preferred path.

    Follows the first edge out of every node, skips separators and takes
    the first (exact) reading of each segment.

    Raises:
        InvalidPinyinError: If a segment on that path has no reading.
    """
    if not pinyin:
        return b""
    graph = parse_user_pinyin(pinyin, FuzzyFlag.NONE)
    result = bytearray()
    pos = graph.start
    while pos != graph.end:
        nexts = graph.nexts(pos)
        if not nexts:
            raise InvalidPinyinError(f"no segmentation covers {pinyin!r}")
        nxt = nexts[0]
        if not graph.is_separator(pos, nxt):
            readings = graph.syllables(pos, nxt)
            if not readings:
                raise InvalidPinyinError(
                    f"{graph.segment(pos, nxt)!r} in {pinyin!r} is not pinyin"
                )
            syllable = readings[0][0]
            result += bytes((syllable.initial, syllable.final))
        pos = nxt
    return bytes(result)


def encode_full_pinyin(pinyin: str) -> bytes:
    """Encode apostrophe separated complete pinyin such as ``ni'hao``.

    Raises:
        InvalidPinyinError: If a part is not exactly one valid syllable.
    """
    result = bytearray()
    for part in pinyin.split(SEPARATOR):
        exact = [syl for syl, fuzzy in spelling_readings(part) if not fuzzy]
        if not exact:
            raise InvalidPinyinError(f"{part!r} is not a full pinyin syllable")
        result += bytes((exact[0].initial, exact[0].final))
    return bytes(result)


def decode_full_pinyin(code: bytes) -> str:
    """Decode a syllable code sequence, joining syllables with ``'``."""
    if len(code) % 2:
        raise InvalidSyllableError(
            f"syllable code sequence has odd length {len(code)}"
        )
    return SEPARATOR.join(
        from_code(code[i:i + 2]).to_string() for i in range(0, len(code), 2)
    )
