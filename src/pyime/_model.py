"""Language model that mixes a base model with the user's history."""

from __future__ import annotations

import math
from collections.abc import Hashable, Iterable
from typing import TYPE_CHECKING

from ._constants import DEFAULT_HISTORY_WEIGHT
from ._history import HistoryBigram

if TYPE_CHECKING:
    from ._types import LanguageModel, SentenceResult


class UserLanguageModel:
    """Interpolates ``base`` costs with ``HistoryBigram`` probabilities.

    Costs are negative log10 probabilities. The state is a pair of the base
    model state and the previous word, which the history model conditions on.
    """

    __slots__ = ("_base", "_history", "_weight")

    def __init__(
        self,
        base: LanguageModel,
        history: HistoryBigram | None = None,
        *,
        history_weight: float = DEFAULT_HISTORY_WEIGHT,
    ) -> None:
        if not 0.0 <= history_weight < 1.0:
            raise ValueError("history_weight must be in [0, 1)")
        self._base = base
        self._history = history if history is not None else HistoryBigram()
        self._weight = history_weight

    @property
    def base(self) -> LanguageModel:
        return self._base

    @property
    def history(self) -> HistoryBigram:
        return self._history

    @property
    def history_weight(self) -> float:
        return self._weight

    def begin_state(self) -> tuple[Hashable, str]:
        return self._base.begin_state(), ""

    def cost(self, state: tuple[Hashable, str], index: int, word: str) -> float:
        base_state, prev = state
        base_cost = self._base.cost(base_state, index, word)
        if not self._weight:
            return base_cost
        prob = (1.0 - self._weight) * 10.0 ** (-base_cost)
        prob += self._weight * 10.0 ** self._history.score(prev, word)
        return -math.log10(prob)

    def is_unknown(self, index: int, word: str) -> bool:
        return self._base.is_unknown(index, word) and self._history.is_unknown(word)

    def next_state(
        self, state: tuple[Hashable, str], index: int, word: str
    ) -> tuple[Hashable, str]:
        base_state, _ = state
        return self._base.next_state(base_state, index, word), word

    def learn(self, sentence: Iterable[str] | SentenceResult) -> None:
        """Record a committed sentence in the history."""
        self._history.add(sentence)
