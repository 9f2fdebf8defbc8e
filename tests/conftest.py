"""Shared fixtures for pyime tests."""

import pytest

import pyime

UNKNOWN_COST = 8.0

WORDS = [
    ("ni'hao", "你好", 1.0),
    ("ni", "你", 2.0),
    ("ni", "泥", 3.0),
    ("hao", "好", 2.0),
    ("hao", "号", 3.0),
    ("xi'an", "西安", 1.5),
    ("xian", "先", 2.0),
    ("xi", "西", 2.5),
    ("an", "安", 2.5),
    ("wan'an", "晚安", 1.0),
    ("wan", "晚", 2.0),
    ("wa", "挖", 3.0),
    ("nan", "难", 3.0),
]


class UnigramModel:
    """Context-free costs from a table; unlisted words cost UNKNOWN_COST."""

    def __init__(self, costs):
        self.costs = dict(costs)

    def begin_state(self):
        return None

    def cost(self, state, index, word):
        return self.costs.get(word, UNKNOWN_COST)

    def is_unknown(self, index, word):
        return word not in self.costs

    def next_state(self, state, index, word):
        return None


@pytest.fixture
def dictionary():
    table = pyime.TableDictionary()
    for pinyin, word, _ in WORDS:
        table.add_word(pinyin, word)
    return table


@pytest.fixture
def model():
    return UnigramModel((word, cost) for _, word, cost in WORDS)


@pytest.fixture
def decoder(dictionary, model):
    return pyime.Decoder(dictionary, model)
