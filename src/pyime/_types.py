"""Data structures and collaborator protocols for pyime."""

from __future__ import annotations

from collections.abc import Hashable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, NamedTuple, Protocol

if TYPE_CHECKING:
    from ._segment import Path, SegmentGraph


class WordMatch(NamedTuple):
    word: str
    index: int
    encoded_pinyin: bytes = b""  # 2 bytes per syllable, empty if unknown
    distance: int = 0            # fuzzy readings used to reach the word


@dataclass(slots=True, eq=False)
class LatticeNode:
    word: str
    index: int
    path: tuple[int, ...]   # cut positions spanned, first is the start
    state: Hashable         # model state after this word
    cost: float             # this word only, lower is better
    encoded_pinyin: bytes = b""
    score: float = 0.0      # accumulated cost from the start node
    prev: LatticeNode | None = None
    seq: int = 0            # creation order, breaks score ties

    @property
    def start(self) -> int:
        return self.path[0]

    @property
    def end(self) -> int:
        return self.path[-1]


@dataclass(slots=True, frozen=True)
class SentenceResult:
    nodes: tuple[LatticeNode, ...]
    score: float
    words: tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "words", tuple(n.word for n in self.nodes if n.word)
        )

    def to_string(self) -> str:
        return "".join(self.words)

    def __str__(self) -> str:
        return self.to_string()


class Dictionary(Protocol):
    def lookup(
        self, graph: SegmentGraph, path: Path
    ) -> Iterable[WordMatch | tuple[str, int]]:
        ...


class LanguageModel(Protocol):
    def begin_state(self) -> Hashable:
        ...

    def cost(self, state: Hashable, index: int, word: str) -> float:
        ...

    def is_unknown(self, index: int, word: str) -> bool:
        ...

    def next_state(self, state: Hashable, index: int, word: str) -> Hashable:
        ...
