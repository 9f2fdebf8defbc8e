"""Lattice decoder: word nodes over a segment graph, Viterbi with model state."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Hashable
from typing import TYPE_CHECKING

from ._constants import (
    DEFAULT_MAX_SYLLABLES,
    PINYIN_DISTANCE_PENALTY_FACTOR,
    UNKNOWN_INDEX,
)
from ._errors import SegmentGraphError
from ._types import LatticeNode, SentenceResult, WordMatch

if TYPE_CHECKING:
    from ._segment import Path, SegmentGraph
    from ._types import Dictionary, LanguageModel

logger = logging.getLogger(__name__)


class Lattice:
    """Word nodes of one decoding session, indexed by end position."""

    __slots__ = ("_nodes", "_complete_until", "_nbest", "_state", "_counter",
                 "_only_path")

    def __init__(self) -> None:
        self.clear()

    def clear(self) -> None:
        self._nodes: dict[int, list[LatticeNode]] = {}
        self._complete_until = 0
        self._nbest = 0
        self._state: Hashable = None
        self._counter = itertools.count()
        self._only_path: bool | None = None

    def nodes(self, pos: int) -> tuple[LatticeNode, ...]:
        """Nodes ending at ``pos``."""
        return tuple(self._nodes.get(pos, ()))

    def __len__(self) -> int:
        return sum(len(nodes) for nodes in self._nodes.values())

    def discard(self, positions: set[int]) -> None:
        """Drop every node ending at or after the smallest stale position."""
        if not positions:
            return
        since = min(positions)
        for pos in [p for p in self._nodes if p >= since]:
            del self._nodes[pos]
        self._complete_until = min(self._complete_until, since)

    def sentences(self, end: int, nbest: int = 1) -> list[SentenceResult]:
        """The ``nbest`` cheapest distinct sentences ending at ``end``."""
        finals = sorted(self._nodes.get(end, ()), key=_rank)
        results: list[SentenceResult] = []
        seen: set[tuple[str, ...]] = set()
        for node in finals:
            chain: list[LatticeNode] = []
            cursor: LatticeNode | None = node
            while cursor is not None and cursor.prev is not None:
                chain.append(cursor)
                cursor = cursor.prev
            result = SentenceResult(nodes=tuple(reversed(chain)), score=node.score)
            if result.words in seen:
                continue
            seen.add(result.words)
            results.append(result)
            if len(results) >= nbest:
                break
        return results

    # -- Decoder hooks --

    def _prepare(self, nbest: int, state: Hashable) -> None:
        if self._nbest != nbest or self._state != state or 0 not in self._nodes:
            self.clear()
            self._nbest = nbest
            self._state = state
            bos = LatticeNode(
                word="", index=UNKNOWN_INDEX, path=(0,), state=state, cost=0.0,
            )
            self._add(bos)

    def _add(self, node: LatticeNode) -> None:
        node.seq = next(self._counter)
        self._nodes.setdefault(node.end, []).append(node)

    def _hypotheses(self, pos: int, nbest: int) -> list[LatticeNode]:
        """Cheapest ``nbest`` nodes per model state ending at ``pos``."""
        by_state: dict[Hashable, list[LatticeNode]] = {}
        for node in self._nodes.get(pos, ()):
            by_state.setdefault(node.state, []).append(node)
        result: list[LatticeNode] = []
        for group in by_state.values():
            group.sort(key=_rank)
            result.extend(group[:nbest])
        return result


def _rank(node: LatticeNode) -> tuple[float, int]:
    return node.score, node.seq


class Decoder:
    """Builds and searches lattices from a dictionary and a language model."""

    __slots__ = ("_dictionary", "_model", "_max_syllables")

    def __init__(
        self,
        dictionary: Dictionary,
        model: LanguageModel,
        *,
        max_syllables: int = DEFAULT_MAX_SYLLABLES,
    ) -> None:
        if max_syllables < 1:
            raise ValueError("max_syllables must be >= 1")
        self._dictionary = dictionary
        self._model = model
        self._max_syllables = max_syllables

    @property
    def model(self) -> LanguageModel:
        return self._model

    @property
    def dictionary(self) -> Dictionary:
        return self._dictionary

    def decode(
        self,
        lattice: Lattice,
        graph: SegmentGraph,
        nbest: int = 1,
        state: Hashable = None,
    ) -> list[SentenceResult]:
        """Extend ``lattice`` over ``graph`` and return the best sentences.

        Nodes already present and still valid (see ``Lattice.discard``) are
        reused, so decoding after ``graph.merge`` only builds the new tail.

        Raises:
            SegmentGraphError: If the graph has no start-to-end path.
        """
        if nbest < 1:
            raise ValueError("nbest must be >= 1")
        if not graph.check_graph():
            raise SegmentGraphError(f"graph for {graph.data!r} is not connected")
        if state is None:
            state = self._model.begin_state()
        lattice._prepare(nbest, state)

        only_path = graph.path_count() == 1
        if lattice._only_path is not None and lattice._only_path != only_path:
            # Kept nodes were pruned under the other rule
            lattice.discard({1})
        lattice._only_path = only_path
        complete_until = lattice._complete_until
        before = len(lattice)
        for pos in range(graph.size):
            hyps = lattice._hypotheses(pos, nbest)
            if not hyps:
                continue
            for end in graph.nexts(pos):
                if graph.is_separator(pos, end) and end >= complete_until:
                    for prev in hyps:
                        lattice._add(LatticeNode(
                            word="", index=UNKNOWN_INDEX, path=(pos, end),
                            state=prev.state, cost=0.0, score=prev.score,
                            prev=prev,
                        ))
            for path in self._spans(graph, pos):
                if path[-1] >= complete_until:
                    self._extend(lattice, graph, path, hyps, only_path)
        lattice._complete_until = graph.size + 1
        logger.debug(
            "decoded %r: %d new lattice nodes, %d total",
            graph.data, len(lattice) - before, len(lattice),
        )
        return lattice.sentences(graph.end, nbest)

    def create_node(
        self,
        graph: SegmentGraph,
        word: str,
        index: int,
        path: Path,
        state: Hashable,
        cost: float,
        encoded_pinyin: bytes = b"",
        only_path: bool = False,
    ) -> LatticeNode | None:
        """Create a lattice node, or None for a worthless hypothesis.

        Unknown single-syllable words are dropped unless they start the
        input or lie on the only path through it. A single-edge span left
        without any node still gets a raw-text node from the decoder, so a
        pruned word is replaced by its pinyin rather than cutting the span.
        """
        if (
            self._model.is_unknown(index, word)
            and len(encoded_pinyin) == 2
            and path[0] != graph.start
            and not only_path
        ):
            return None
        return LatticeNode(
            word=word, index=index, path=tuple(path), state=state, cost=cost,
            encoded_pinyin=encoded_pinyin,
        )

    def _spans(self, graph: SegmentGraph, start: int) -> list[Path]:
        """Paths of 1..max_syllables syllable edges starting at ``start``."""
        spans: list[Path] = []

        def walk(path: Path, count: int) -> None:
            head = path[-1]
            for nxt in graph.nexts(head):
                if graph.is_separator(head, nxt):
                    if count:
                        walk(path + (nxt,), count)
                    continue
                extended = path + (nxt,)
                spans.append(extended)
                if count + 1 < self._max_syllables:
                    walk(extended, count + 1)

        walk((start,), 0)
        return spans

    def _extend(
        self,
        lattice: Lattice,
        graph: SegmentGraph,
        path: Path,
        hyps: list[LatticeNode],
        only_path: bool,
    ) -> None:
        default_pinyin = _default_pinyin(graph, path)
        created = 0
        for item in self._dictionary.lookup(graph, path):
            match = item if isinstance(item, WordMatch) else WordMatch(*item)
            encoded = match.encoded_pinyin or default_pinyin
            penalty = match.distance * PINYIN_DISTANCE_PENALTY_FACTOR
            for prev in hyps:
                created += self._link(
                    lattice, graph, prev, match.word, match.index, path,
                    encoded, penalty, only_path,
                )
        if created or len(path) != 2:
            return
        # Nothing survived on this edge; keep the raw text so it stays passable
        text = graph.segment(path[0], path[1])
        for prev in hyps:
            self._link(
                lattice, graph, prev, text, UNKNOWN_INDEX, path,
                default_pinyin, 0.0, True,
            )

    def _link(
        self,
        lattice: Lattice,
        graph: SegmentGraph,
        prev: LatticeNode,
        word: str,
        index: int,
        path: Path,
        encoded: bytes,
        penalty: float,
        only_path: bool,
    ) -> int:
        model = self._model
        cost = model.cost(prev.state, index, word) + penalty
        node = self.create_node(
            graph, word, index, path,
            model.next_state(prev.state, index, word),
            cost, encoded, only_path,
        )
        if node is None:
            return 0
        node.prev = prev
        node.score = prev.score + cost
        lattice._add(node)
        return 1


def _default_pinyin(graph: SegmentGraph, path: Path) -> bytes:
    code = bytearray()
    for start, end in zip(path, path[1:]):
        readings = graph.syllables(start, end)
        if readings:
            syllable = readings[0][0]
            code += bytes((syllable.initial, syllable.final))
    return bytes(code)
