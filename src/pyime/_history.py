"""History bigram model: recent and long-term frequency pools.

The recent pool keeps the last ``max_recent`` sentences verbatim. Once it is
full, the oldest sentence is replayed into the final pool and removed from
the recent counts. Final pool counts weigh ``DECAY`` as much as recent ones,
so old history never disappears but fresh input dominates.
"""

from __future__ import annotations

import logging
import math
import struct
from collections import deque
from collections.abc import Iterable
from typing import BinaryIO

import msgpack
from msgpack.exceptions import UnpackException

from ._constants import (
    BIGRAM_SEPARATOR,
    BIGRAM_WEIGHT,
    DECAY,
    DEFAULT_MAX_RECENT,
    DEFAULT_UNKNOWN_SCORE,
    UNIGRAM_WEIGHT,
)
from ._errors import ImeFormatError
from ._types import SentenceResult

logger = logging.getLogger(__name__)

_U32 = struct.Struct(">I")


def _bigram_key(first: str, second: str) -> str:
    return first + BIGRAM_SEPARATOR + second


class _FrequencyTable:
    """Unigram and bigram counts; a count never stays at zero."""

    __slots__ = ("unigram", "bigram", "size")

    def __init__(self) -> None:
        self.unigram: dict[str, int] = {}
        self.bigram: dict[str, int] = {}
        self.size = 0

    def clear(self) -> None:
        self.unigram.clear()
        self.bigram.clear()
        self.size = 0

    def unigram_freq(self, word: str) -> int:
        return self.unigram.get(word, 0)

    def bigram_freq(self, first: str, second: str) -> int:
        return self.bigram.get(_bigram_key(first, second), 0)

    def increment(self, sentence: list[str]) -> None:
        for i, word in enumerate(sentence):
            self.unigram[word] = self.unigram.get(word, 0) + 1
            if i + 1 < len(sentence):
                key = _bigram_key(word, sentence[i + 1])
                self.bigram[key] = self.bigram.get(key, 0) + 1
        self.size += 1

    def decrement(self, sentence: list[str]) -> None:
        for i, word in enumerate(sentence):
            _decrease(self.unigram, word)
            if i + 1 < len(sentence):
                _decrease(self.bigram, _bigram_key(word, sentence[i + 1]))
        self.size -= 1


def _decrease(counts: dict[str, int], key: str) -> None:
    value = counts.get(key)
    if value is None:
        return
    if value <= 1:
        del counts[key]
    else:
        counts[key] = value - 1


class _FinalPool(_FrequencyTable):
    """Unbounded long-term counts, persisted as one msgpack blob."""

    __slots__ = ()

    def add(self, sentence: list[str]) -> None:
        self.increment(sentence)

    def save(self, out: BinaryIO) -> None:
        blob = msgpack.packb(
            {"size": self.size, "unigram": self.unigram, "bigram": self.bigram},
            use_bin_type=True,
        )
        _write(out, _U32.pack(len(blob)))
        _write(out, blob)

    def load(self, stream: BinaryIO) -> None:
        (length,) = _U32.unpack(_read_exact(stream, _U32.size))
        blob = _read_exact(stream, length)
        try:
            data = msgpack.unpackb(blob, raw=False)
        except (ValueError, TypeError, UnpackException) as exc:
            raise ImeFormatError(f"malformed final pool section: {exc}") from exc
        if not isinstance(data, dict):
            raise ImeFormatError("final pool section is not a map")
        self.clear()
        self.size = _count(data.get("size"), "size")
        for name, target in (("unigram", self.unigram), ("bigram", self.bigram)):
            table = data.get(name)
            if not isinstance(table, dict):
                raise ImeFormatError(f"final pool {name} table missing")
            for key, value in table.items():
                if not isinstance(key, str):
                    raise ImeFormatError(f"final pool {name} key {key!r} is not text")
                value = _count(value, name)
                if value:
                    target[key] = value


class _RecentPool(_FrequencyTable):
    """At most ``max_size`` sentences, newest first, spilling into ``final``."""

    __slots__ = ("max_size", "final", "sentences")

    def __init__(self, max_size: int, final: _FinalPool) -> None:
        super().__init__()
        self.max_size = max_size
        self.final = final
        self.sentences: deque[list[str]] = deque()

    def clear(self) -> None:
        super().clear()
        self.sentences.clear()

    def add(self, sentence: list[str]) -> None:
        if not sentence:
            return
        while len(self.sentences) >= self.max_size:
            oldest = self.sentences.pop()
            self.final.add(oldest)
            self.decrement(oldest)
            logger.debug("evicted %d-word sentence into final pool", len(oldest))
        self.increment(sentence)
        self.sentences.appendleft(sentence)

    def save(self, out: BinaryIO) -> None:
        _write(out, _U32.pack(len(self.sentences)))
        for sentence in reversed(self.sentences):
            _write(out, _U32.pack(len(sentence)))
            for word in sentence:
                data = word.encode("utf-8")
                _write(out, _U32.pack(len(data)))
                _write(out, data)
        self.final.save(out)

    def load(self, stream: BinaryIO) -> None:
        self.clear()
        (count,) = _U32.unpack(_read_exact(stream, _U32.size))
        sentences: list[list[str]] = []
        for _ in range(count):
            (size,) = _U32.unpack(_read_exact(stream, _U32.size))
            sentence: list[str] = []
            for _ in range(size):
                (length,) = _U32.unpack(_read_exact(stream, _U32.size))
                data = _read_exact(stream, length)
                try:
                    sentence.append(data.decode("utf-8"))
                except UnicodeDecodeError as exc:
                    raise ImeFormatError(f"history word is not UTF-8: {exc}") from exc
            sentences.append(sentence)
        # Final counts first; replaying may evict into them
        self.final.load(stream)
        for sentence in sentences:
            self.add(sentence)


def _count(value: object, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ImeFormatError(f"invalid {name} count {value!r}")
    return value


def _read_exact(stream: BinaryIO, n: int) -> bytes:
    try:
        data = stream.read(n)
    except OSError as exc:
        raise ImeFormatError(f"history read failed: {exc}") from exc
    if data is None or len(data) != n:
        got = 0 if data is None else len(data)
        raise ImeFormatError(f"truncated history data: wanted {n} bytes, got {got}")
    return data


def _write(out: BinaryIO, data: bytes) -> None:
    try:
        out.write(data)
    except OSError as exc:
        raise ImeFormatError(f"history write failed: {exc}") from exc


class HistoryBigram:
    """Self-adapting bigram model learned from committed sentences.

    Not thread safe: serialize ``add``/``clear``/``load`` against reads.
    """

    __slots__ = ("_final", "_recent", "_unknown")

    def __init__(
        self,
        *,
        max_recent: int = DEFAULT_MAX_RECENT,
        unknown: float = DEFAULT_UNKNOWN_SCORE,
    ) -> None:
        if max_recent < 1:
            raise ValueError("max_recent must be >= 1")
        self._final = _FinalPool()
        self._recent = _RecentPool(max_recent, self._final)
        self._unknown = unknown

    @property
    def unknown(self) -> float:
        return self._unknown

    def set_unknown(self, value: float) -> None:
        """Score returned for transitions never seen in any pool."""
        self._unknown = value

    def add(self, sentence: Iterable[str] | SentenceResult) -> None:
        """Learn a committed sentence; empty sentences are ignored."""
        if isinstance(sentence, SentenceResult):
            words = list(sentence.words)
        else:
            words = [str(w) for w in sentence]
        self._recent.add(words)

    def unigram_freq(self, word: str) -> float:
        return (
            self._recent.unigram_freq(word)
            + self._final.unigram_freq(word) * DECAY
        )

    def bigram_freq(self, first: str, second: str) -> float:
        return (
            self._recent.bigram_freq(first, second)
            + self._final.bigram_freq(first, second) * DECAY
        )

    def size(self) -> float:
        """Decay-weighted number of sentences learned."""
        return self._recent.size + self._final.size * DECAY

    def is_unknown(self, word: str) -> bool:
        return not word or self.unigram_freq(word) == 0

    def score(self, prev: str, cur: str) -> float:
        """log10 probability of ``cur`` following ``prev``; never raises.

        Interpolates the bigram estimate with the unigram estimate using
        fixed weights and +0.5 smoothing. This is an approximation, not a
        properly normalised back-off model.
        """
        uf0 = int(self.unigram_freq(prev))
        bf = int(self.bigram_freq(prev, cur))
        uf1 = int(self.unigram_freq(cur))

        pr = BIGRAM_WEIGHT * bf / (uf0 + 0.5)
        pr += UNIGRAM_WEIGHT * uf1 / (self.size() + 0.5)

        if pr >= 1.0:
            return 0.0
        if pr == 0:
            return self._unknown
        return math.log10(pr)

    def load(self, stream: BinaryIO) -> None:
        """Replace the history with the one stored in ``stream``.

        Raises:
            ImeFormatError: On any short read or malformed section. The
                current history is left untouched.
        """
        final = _FinalPool()
        recent = _RecentPool(self._recent.max_size, final)
        recent.load(stream)
        self._final = final
        self._recent = recent
        logger.debug(
            "loaded history: %d recent sentences, %d final sentences",
            len(recent.sentences), final.size,
        )

    def save(self, out: BinaryIO) -> None:
        self._recent.save(out)
        logger.debug("saved history: %d recent sentences", len(self._recent.sentences))

    def clear(self) -> None:
        self._recent.clear()
        self._final.clear()
