"""In-memory pinyin to word table with msgpack persistence."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterator
from pathlib import Path as FilePath
from typing import TYPE_CHECKING, Any

import msgpack
from msgpack.exceptions import UnpackException

from ._encoder import encode_one_user_pinyin
from ._errors import ImeFormatError, ImeVersionError
from ._syllables import Final
from ._types import WordMatch

if TYPE_CHECKING:
    from ._segment import Path, SegmentGraph

logger = logging.getLogger(__name__)

_EXPECTED_VERSION = "1.0"


class TableDictionary:
    """Words keyed by their syllable codes.

    Entries are bucketed by initials so a span typed with bare initials
    (``"nh"``) still finds ``ni'hao``.
    """

    __slots__ = ("_words", "_by_initials")

    def __init__(self) -> None:
        self._words: dict[bytes, list[tuple[str, int]]] = {}
        self._by_initials: dict[bytes, list[bytes]] = {}

    def __len__(self) -> int:
        return sum(len(words) for words in self._words.values())

    def __iter__(self) -> Iterator[tuple[bytes, str, int]]:
        for code, words in self._words.items():
            for word, index in words:
                yield code, word, index

    def add_word(self, pinyin: str, word: str, index: int | None = None) -> int:
        """Add ``word`` under user pinyin such as ``"ni'hao"``; returns its index.

        Raises:
            InvalidPinyinError: If ``pinyin`` does not encode.
        """
        code = encode_one_user_pinyin(pinyin)
        if not code:
            raise ValueError("pinyin must not be empty")
        return self._add_code(code, word, len(self) if index is None else index)

    def _add_code(self, code: bytes, word: str, index: int) -> int:
        words = self._words.get(code)
        if words is None:
            words = self._words[code] = []
            self._by_initials.setdefault(code[::2], []).append(code)
        for existing, existing_index in words:
            if existing == word:
                return existing_index
        words.append((word, index))
        return index

    def lookup(self, graph: SegmentGraph, path: Path) -> list[WordMatch]:
        """Words spelled by the span ``path``, each with its fuzzy distance.

        Separator edges inside the span are skipped. Every combination of
        edge readings is tried; a word reached by several keeps the lowest
        distance.
        """
        options = []
        for start, end in zip(path, path[1:]):
            if graph.is_separator(start, end):
                continue
            readings = graph.syllables(start, end)
            if not readings:
                return []
            options.append(readings)
        if not options:
            return []

        best: dict[tuple[str, int], tuple[int, bytes]] = {}
        for combo in itertools.product(*options):
            distance = sum(1 for _, fuzzy in combo if fuzzy)
            initials = bytes(syl.initial for syl, _ in combo)
            for code in self._by_initials.get(initials, ()):
                if not _finals_match(combo, code):
                    continue
                for word, index in self._words[code]:
                    key = (word, index)
                    found = best.get(key)
                    if found is None or distance < found[0]:
                        best[key] = (distance, code)
        return [
            WordMatch(word, index, code, distance)
            for (word, index), (distance, code) in best.items()
        ]

    # -- Persistence --

    def save(self, path: FilePath | str) -> None:
        entries = [[code, word, index] for code, word, index in self]
        blob = msgpack.packb(
            {"version": _EXPECTED_VERSION, "entries": entries},
            use_bin_type=True,
        )
        with open(path, "wb") as f:
            f.write(blob)
        logger.debug("saved %d dictionary entries to %s", len(entries), path)

    @classmethod
    def load(cls, path: FilePath | str) -> TableDictionary:
        """Read a dictionary written by ``save``.

        Raises:
            ImeVersionError: If the file was written by another format version.
            ImeFormatError: If the file is not a valid dictionary.
        """
        with open(path, "rb") as f:
            raw = f.read()
        try:
            data: Any = msgpack.unpackb(raw, raw=False)
        except (ValueError, TypeError, UnpackException) as exc:
            raise ImeFormatError(f"malformed dictionary {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ImeFormatError(f"dictionary {path} is not a map")
        version = data.get("version")
        if version != _EXPECTED_VERSION:
            raise ImeVersionError(
                f"Expected dictionary version {_EXPECTED_VERSION!r}, got {version!r}"
            )
        entries = data.get("entries")
        if not isinstance(entries, list):
            raise ImeFormatError(f"dictionary {path} has no entry list")

        dictionary = cls()
        for entry in entries:
            if (
                not isinstance(entry, list)
                or len(entry) != 3
                or not isinstance(entry[0], bytes)
                or not entry[0]
                or len(entry[0]) % 2
                or not isinstance(entry[1], str)
                or not isinstance(entry[2], int)
            ):
                raise ImeFormatError(f"bad dictionary entry {entry!r}")
            dictionary._add_code(entry[0], entry[1], entry[2])
        logger.debug("loaded %d dictionary entries from %s", len(dictionary), path)
        return dictionary


def _finals_match(combo, code: bytes) -> bool:
    for (syl, _), final in zip(combo, code[1::2]):
        if syl.final is not Final.INVALID and syl.final != final:
            return False
    return True
