"""Tests for lattice construction, pruning and best-path search."""

import pytest

from pyime import (
    Decoder,
    FuzzyFlag,
    Lattice,
    SegmentGraph,
    SegmentGraphError,
    TableDictionary,
    parse_user_pinyin,
)

from conftest import UnigramModel


def _decode(decoder, text, nbest=1, flags=FuzzyFlag.NONE):
    return decoder.decode(Lattice(), parse_user_pinyin(text, flags), nbest)


def test_best_sentence(decoder):
    [best] = _decode(decoder, "nihao")
    assert best.to_string() == "你好"
    assert best.words == ("你好",)
    assert best.score == pytest.approx(1.0)


def test_nbest_sentences(decoder):
    results = _decode(decoder, "nihao", nbest=3)
    assert len(results) == 3
    assert results[0].words == ("你好",)
    assert results[1].words == ("你", "好")
    assert results[1].score == pytest.approx(4.0)
    scores = [r.score for r in results]
    assert scores == sorted(scores)


def test_nbest_sentences_are_distinct(decoder):
    results = _decode(decoder, "nihao", nbest=10)
    words = [r.words for r in results]
    assert len(words) == len(set(words))
    assert len(results) == 5


def test_separator_inside_word(decoder):
    [best] = _decode(decoder, "xi'an")
    assert best.words == ("西安",)
    assert [node.path for node in best.nodes] == [(0, 2, 3, 5)]


def test_separator_between_words(decoder):
    [best] = _decode(decoder, "ni'hao")
    assert best.words == ("你好",)
    results = _decode(decoder, "ni'hao", nbest=2)
    assert results[1].words == ("你", "好")


def test_ambiguous_segmentation(decoder):
    [best] = _decode(decoder, "wanan")
    assert best.words == ("晚安",)


def test_inner_segmentation_finds_two_syllable_word(decoder):
    [best] = _decode(decoder, "xian")
    assert best.words == ("先",)
    [best] = _decode(decoder, "xian", flags=FuzzyFlag.INNER)
    assert best.words == ("西安",)


def test_initials_match_words(decoder):
    [best] = _decode(decoder, "nh")
    assert best.words == ("你好",)


def test_fuzzy_match_is_penalized(dictionary, model):
    dictionary.add_word("lan", "蓝")
    model.costs["蓝"] = 1.0
    decoder = Decoder(dictionary, model)
    [best] = _decode(decoder, "nan", flags=FuzzyFlag.L_N)
    assert best.words == ("难",)
    results = _decode(decoder, "nan", nbest=2, flags=FuzzyFlag.L_N)
    assert results[1].words == ("蓝",)
    assert results[1].score == pytest.approx(4.0)


def test_edge_without_words_keeps_raw_text(model):
    table = TableDictionary()
    table.add_word("ni", "你")
    decoder = Decoder(table, model)
    [best] = _decode(decoder, "nihao")
    assert best.to_string() == "你hao"


def test_unrecognized_input_keeps_raw_text(decoder):
    [best] = _decode(decoder, "ni1hao")
    assert best.to_string() == "你1好"


def test_encoded_pinyin_on_nodes(decoder):
    [best] = _decode(decoder, "nihao")
    [node] = best.nodes
    assert node.encoded_pinyin == bytes((8, 15, 12, 7))
    assert node.start == 0
    assert node.end == 5


def test_create_node_prunes_unknown_single_syllable(decoder):
    graph = parse_user_pinyin("wanan")
    code = bytes((1, 9))
    assert decoder.create_node(graph, "暗", 0, (3, 5), None, 8.0, code) is None
    assert decoder.create_node(graph, "暗", 0, (0, 3), None, 8.0, code) is not None
    assert decoder.create_node(
        graph, "暗", 0, (3, 5), None, 8.0, code, only_path=True
    ) is not None
    assert decoder.create_node(
        graph, "安", 0, (3, 5), None, 2.5, code
    ) is not None
    assert decoder.create_node(
        graph, "暗暗", 0, (3, 5), None, 8.0, code + code
    ) is not None


def test_disconnected_graph_rejected(decoder):
    graph = SegmentGraph("ab")
    graph.add_next(0, 1)
    with pytest.raises(SegmentGraphError):
        decoder.decode(Lattice(), graph)


def test_invalid_arguments(dictionary, model):
    with pytest.raises(ValueError):
        Decoder(dictionary, model, max_syllables=0)
    with pytest.raises(ValueError):
        Decoder(dictionary, model).decode(Lattice(), parse_user_pinyin("ni"), 0)


def test_max_syllables_limits_word_length(dictionary, model):
    decoder = Decoder(dictionary, model, max_syllables=1)
    [best] = _decode(decoder, "nihao")
    assert best.words == ("你", "好")


def test_empty_input(decoder):
    [result] = _decode(decoder, "")
    assert result.words == ()
    assert result.to_string() == ""


def test_state_aware_search(dictionary):
    """Words after a state-changing word are costed in that state."""

    class PairModel(UnigramModel):
        def cost(self, state, index, word):
            if state == "泥" and word == "号":
                return 0.1
            return super().cost(state, index, word)

        def next_state(self, state, index, word):
            return word

    model = PairModel({"你": 2.0, "泥": 3.0, "好": 2.0, "号": 3.0})
    decoder = Decoder(dictionary, model)
    [best] = _decode(decoder, "ni'hao")
    assert best.words == ("泥", "号")
    assert best.score == pytest.approx(3.1)


@pytest.mark.parametrize(
    "before, after",
    [("ni", "nihao"), ("nihao", "ni"), ("nihao", "nihuo"), ("xian", "xiang"),
     ("wan", "wanan")],
)
def test_incremental_decode_matches_full_decode(decoder, before, after):
    lattice = Lattice()
    graph = parse_user_pinyin(before)
    decoder.decode(lattice, graph, 3)
    graph.merge(parse_user_pinyin(after), lattice.discard)
    incremental = decoder.decode(lattice, graph, 3)
    full = _decode(decoder, after, nbest=3)
    assert [r.words for r in incremental] == [r.words for r in full]
    assert [r.score for r in incremental] == pytest.approx([r.score for r in full])


def test_lattice_reset_on_new_state(decoder):
    lattice = Lattice()
    graph = parse_user_pinyin("nihao")
    decoder.decode(lattice, graph)
    size = len(lattice)
    decoder.decode(lattice, graph, 2)
    assert len(lattice) >= size
    lattice.clear()
    assert len(lattice) == 0


@pytest.mark.parametrize(
    "before, after",
    [("nihao", "nihaowanan"), ("nihaowanan", "nihao")],
)
def test_incremental_decode_reapplies_pruning(dictionary, model, before, after):
    del model.costs["号"]
    decoder = Decoder(dictionary, model)
    lattice = Lattice()
    graph = parse_user_pinyin(before)
    decoder.decode(lattice, graph, 10)
    graph.merge(parse_user_pinyin(after), lattice.discard)
    incremental = decoder.decode(lattice, graph, 10)
    full = _decode(decoder, after, nbest=10)
    assert [r.words for r in incremental] == [r.words for r in full]
    assert [r.score for r in incremental] == pytest.approx([r.score for r in full])
    single = after == "nihao"
    assert any("号" in r.words for r in incremental) is single
