"""Segmentation graph: a DAG of syllable cuts over raw pinyin input."""

from __future__ import annotations

import heapq
import logging
from collections.abc import Callable, Iterator

import ahocorasick

from ._constants import MAX_PINYIN_LENGTH, SEPARATOR
from ._errors import SegmentGraphError
from ._syllables import (
    INITIAL_BY_TEXT,
    INNER_SEGMENTS,
    SPELLINGS,
    FuzzyFlag,
    Syllable,
    is_valid_user_pinyin,
    string_to_syllables,
)

logger = logging.getLogger(__name__)

Reading = tuple[Syllable, bool]
Path = tuple[int, ...]


class SegmentGraph:
    """Cut positions ``0..size`` joined by edges labelled with readings.

    Edges keep insertion order; the first edge out of a node is the one the
    builder preferred.
    """

    __slots__ = ("_data", "_nexts", "_readings")

    def __init__(self, data: str = "") -> None:
        self._data = data
        self._nexts: list[list[int]] = [[] for _ in range(len(data) + 1)]
        self._readings: dict[tuple[int, int], tuple[Reading, ...]] = {}

    @property
    def data(self) -> str:
        return self._data

    @property
    def size(self) -> int:
        return len(self._data)

    @property
    def start(self) -> int:
        return 0

    @property
    def end(self) -> int:
        return len(self._data)

    def add_next(
        self, start: int, end: int, readings: tuple[Reading, ...] = ()
    ) -> None:
        """Add the edge ``start -> end``; an existing edge is left untouched."""
        if not 0 <= start < end <= self.size:
            raise SegmentGraphError(
                f"invalid edge {start}->{end} for input of size {self.size}"
            )
        if end in self._nexts[start]:
            return
        self._nexts[start].append(end)
        self._readings[(start, end)] = readings

    def nexts(self, pos: int) -> tuple[int, ...]:
        return tuple(self._nexts[pos])

    def prevs(self, pos: int) -> tuple[int, ...]:
        return tuple(p for p in range(pos) if pos in self._nexts[p])

    def edges(self) -> Iterator[tuple[int, int]]:
        for start, ends in enumerate(self._nexts):
            for end in ends:
                yield start, end

    def segment(self, start: int, end: int) -> str:
        return self._data[start:end]

    def syllables(self, start: int, end: int) -> tuple[Reading, ...]:
        return self._readings.get((start, end), ())

    def is_separator(self, start: int, end: int) -> bool:
        return self._data[start] == SEPARATOR

    # -- Traversal --

    def dfs(self, callback: Callable[[SegmentGraph, Path], bool]) -> None:
        """Visit every start-to-end path depth first.

        ``callback(graph, path)`` returning False skips the remaining
        siblings of the branch that produced ``path``; the parent branch
        carries on.
        """
        self._dfs([0], callback)

    def _dfs(
        self, path: list[int], callback: Callable[[SegmentGraph, Path], bool]
    ) -> bool:
        head = path[-1]
        if head == self.size:
            return bool(callback(self, tuple(path)))
        for nxt in self._nexts[head]:
            path.append(nxt)
            keep_going = self._dfs(path, callback)
            path.pop()
            if not keep_going:
                break
        return True

    def paths(self) -> list[Path]:
        result: list[Path] = []

        def collect(graph: SegmentGraph, path: Path) -> bool:
            result.append(path)
            return True

        self.dfs(collect)
        return result

    def path_count(self) -> int:
        """Number of distinct start-to-end paths."""
        counts = [0] * (self.size + 1)
        counts[self.size] = 1
        for pos in range(self.size - 1, -1, -1):
            counts[pos] = sum(counts[e] for e in self._nexts[pos])
        return counts[0]

    def check_graph(self) -> bool:
        """True if all edges are well ordered and the end is reachable."""
        for start, end in self.edges():
            if not start < end <= self.size:
                return False
        reached = [False] * (self.size + 1)
        reached[0] = True
        for pos in range(self.size + 1):
            if reached[pos]:
                for end in self._nexts[pos]:
                    reached[end] = True
        return reached[self.size]

    # -- Incremental editing --

    def merge(
        self,
        other: SegmentGraph,
        discard: Callable[[set[int]], None] | None = None,
    ) -> None:
        """Become ``other``, keeping the nodes before the first divergence.

        ``discard`` receives the old positions after the divergence point;
        anything ending there may no longer be reachable the same way.
        """
        if other is self:
            return
        since = self._divergence(other)
        old_size = self.size
        self._nexts = [
            self._nexts[p] if p < since else list(other._nexts[p])
            for p in range(other.size + 1)
        ]
        readings = {k: v for k, v in self._readings.items() if k[0] < since}
        readings.update(
            (k, v) for k, v in other._readings.items() if k[0] >= since
        )
        self._readings = readings
        self._data = other._data
        stale = set(range(since + 1, old_size + 1))
        logger.debug(
            "merged segment graph %r: diverged at %d, %d stale positions",
            self._data, since, len(stale),
        )
        if discard is not None and stale:
            discard(stale)

    def _divergence(self, other: SegmentGraph) -> int:
        prefix = 0
        limit = min(self.size, other.size)
        while prefix < limit and self._data[prefix] == other._data[prefix]:
            prefix += 1
        for pos in range(prefix + 1):
            mine = self._nexts[pos]
            if mine != other._nexts[pos] or any(e > prefix for e in mine):
                return pos
            for end in mine:
                if self._readings[(pos, end)] != other._readings[(pos, end)]:
                    return pos
        return prefix + 1

    def __repr__(self) -> str:
        return f"SegmentGraph({self._data!r}, edges={list(self.edges())})"


def _build_automaton() -> ahocorasick.Automaton:
    automaton = ahocorasick.Automaton()
    for key in set(SPELLINGS) | set(INITIAL_BY_TEXT):
        automaton.add_word(key, len(key))
    automaton.make_automaton()
    return automaton


_AUTOMATON = _build_automaton()


class _Matcher:
    """Longest-prefix matcher over one input string."""

    __slots__ = ("_text", "_flags", "_lengths")

    def __init__(self, text: str, flags: FuzzyFlag) -> None:
        self._text = text
        self._flags = flags
        # Every spelling or initial occurring in text, indexed by start
        self._lengths: list[list[int]] = [[] for _ in range(len(text) + 1)]
        for end_inclusive, length in _AUTOMATON.iter(text):
            start = end_inclusive + 1 - length
            if length <= MAX_PINYIN_LENGTH:
                self._lengths[start].append(length)
        for lengths in self._lengths:
            lengths.sort(reverse=True)

    def longest_match(self, pos: int) -> tuple[int, bool]:
        """Return (length, is_complete_pinyin) of the longest match at pos."""
        text = self._text
        for length in self._lengths[pos]:
            piece = text[pos:pos + length]
            if is_valid_user_pinyin(piece, self._flags):
                return length, piece not in ("m", "n", "r")
            if length <= 2 and piece in INITIAL_BY_TEXT:
                return length, False
        return 1, False


def parse_user_pinyin(
    text: str, flags: FuzzyFlag = FuzzyFlag.NONE
) -> SegmentGraph:
    """Build the segmentation graph of raw user input."""
    graph = SegmentGraph(text)
    size = len(text)
    matcher = _Matcher(text, flags)

    def add(start: int, end: int) -> None:
        if text[start] == SEPARATOR:
            graph.add_next(start, end)
        else:
            graph.add_next(
                start, end, string_to_syllables(text[start:end], flags)
            )

    queue = [0]
    visited: set[int] = set()
    while queue:
        top = heapq.heappop(queue)
        if top >= size or top in visited:
            continue
        visited.add(top)

        if text[top] == SEPARATOR:
            nxt = top
            while nxt < size and text[nxt] == SEPARATOR:
                nxt += 1
            add(top, nxt)
            heapq.heappush(queue, nxt)
            continue

        length, complete = matcher.longest_match(top)
        end = top + length
        sizes: list[int] = []
        if (
            complete
            and length > 1
            and end < size
            and text[end] != SEPARATOR
            and text[end - 1] in "aegnor"
            and is_valid_user_pinyin(text[top:end - 1], flags)
        ):
            # The last letter may start the next syllable: "xian|gong"
            next_len, next_complete = matcher.longest_match(end)
            alt_len, alt_complete = matcher.longest_match(end - 1)
            match = (length + next_len, next_complete)
            alt = (length - 1 + alt_len, alt_complete)
            if match >= alt:
                sizes.append(length)
            if match <= alt:
                sizes.append(length - 1)
        else:
            sizes.append(length)

        for n in sizes:
            add(top, top + n)
            heapq.heappush(queue, top + n)

        if complete and flags & FuzzyFlag.INNER:
            for n in sizes:
                inner = INNER_SEGMENTS.get(text[top:top + n]) if n >= 4 else None
                if inner is not None:
                    mid = top + len(inner[0])
                    add(top, mid)
                    add(mid, top + n)

    return graph
