"""Benchmark suite for the pyime decoding pipeline.

Run:  pytest tests/test_benchmarks.py --benchmark-enable
Skip: pytest tests/ -m "not benchmark"
"""

from __future__ import annotations

import io

import pytest

from pyime import (
    Decoder,
    FuzzyFlag,
    HistoryBigram,
    Lattice,
    UserLanguageModel,
    parse_user_pinyin,
)
from pyime._syllables import string_to_syllables

pytestmark = pytest.mark.benchmark

# ---------------------------------------------------------------------------
# Sample inputs
# ---------------------------------------------------------------------------

SAMPLE_INPUTS = {
    "short": "nihao",
    "separated": "xi'an'wanan",
    "ambiguous": "xiangongwanan",
    "long": "nihaoxianwanan" * 4,
}

ALL_FUZZY = FuzzyFlag((1 << 15) - 1)

# ---------------------------------------------------------------------------
# 1. Segmentation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("key", list(SAMPLE_INPUTS.keys()))
def test_bench_parse(benchmark, key):
    text = SAMPLE_INPUTS[key]
    benchmark.extra_info["length"] = len(text)
    benchmark(parse_user_pinyin, text)


def test_bench_parse_all_fuzzy(benchmark):
    text = SAMPLE_INPUTS["long"]
    benchmark.extra_info["flags"] = int(ALL_FUZZY)
    benchmark(parse_user_pinyin, text, ALL_FUZZY)


def test_bench_readings_uncached(benchmark):
    def readings():
        string_to_syllables.cache_clear()
        return string_to_syllables("zhuang", ALL_FUZZY)

    benchmark.pedantic(readings, rounds=1000, iterations=1)


# ---------------------------------------------------------------------------
# 2. Decoding
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("key", list(SAMPLE_INPUTS.keys()))
def test_bench_decode(benchmark, decoder, key):
    graph = parse_user_pinyin(SAMPLE_INPUTS[key])
    benchmark.extra_info["paths"] = graph.path_count()
    benchmark(lambda: decoder.decode(Lattice(), graph, 5))


def test_bench_incremental_keystroke(benchmark, decoder):
    """Typing one more letter re-decodes only the tail."""
    text = SAMPLE_INPUTS["long"]

    def keystroke():
        lattice = Lattice()
        graph = parse_user_pinyin(text[:-1])
        decoder.decode(lattice, graph)
        graph.merge(parse_user_pinyin(text), lattice.discard)
        return decoder.decode(lattice, graph)

    benchmark(keystroke)


def test_bench_decode_with_history(benchmark, dictionary, model):
    history = HistoryBigram()
    for _ in range(100):
        history.add(["你", "好"])
        history.add(["晚安"])
    decoder = Decoder(dictionary, UserLanguageModel(model, history))
    graph = parse_user_pinyin(SAMPLE_INPUTS["long"])
    benchmark(lambda: decoder.decode(Lattice(), graph, 5))


# ---------------------------------------------------------------------------
# 3. History model
# ---------------------------------------------------------------------------


def _filled_history(n=2000):
    history = HistoryBigram(max_recent=1000)
    for i in range(n):
        history.add([f"w{i % 300}", f"w{(i * 7) % 300}", f"w{(i * 13) % 300}"])
    return history


def test_bench_history_score(benchmark):
    history = _filled_history()
    benchmark.pedantic(
        history.score, args=("w1", "w7"), rounds=1000, iterations=100,
    )


def test_bench_history_add(benchmark):
    history = _filled_history()
    benchmark(history.add, ["w1", "w2", "w3"])


def test_bench_history_save_load(benchmark):
    history = _filled_history()
    buf = io.BytesIO()
    history.save(buf)
    data = buf.getvalue()
    benchmark.extra_info["bytes"] = len(data)

    def load():
        HistoryBigram(max_recent=1000).load(io.BytesIO(data))

    benchmark(load)
