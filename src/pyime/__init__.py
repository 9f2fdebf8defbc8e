"""pyime: pinyin input method decoding core.

Raw pinyin becomes a segmentation graph of syllable cuts, the graph becomes
a lattice of dictionary words scored by a language model, and the cheapest
paths through the lattice become candidate sentences.
"""

from __future__ import annotations

import logging

from ._dictionary import TableDictionary
from ._encoder import (
    decode_full_pinyin,
    encode_full_pinyin,
    encode_one_user_pinyin,
    final_to_string,
    from_code,
    initial_to_string,
    is_known_syllable,
    to_code,
)
from ._errors import (
    ImeError,
    ImeFormatError,
    ImeVersionError,
    InvalidPinyinError,
    InvalidSyllableError,
    SegmentGraphError,
)
from ._history import HistoryBigram
from ._lattice import Decoder, Lattice
from ._model import UserLanguageModel
from ._segment import SegmentGraph, parse_user_pinyin
from ._syllables import (
    Final,
    FuzzyFlag,
    Initial,
    Syllable,
    is_valid_user_pinyin,
    string_to_syllables,
)
from ._types import (
    Dictionary,
    LanguageModel,
    LatticeNode,
    SentenceResult,
    WordMatch,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Decoder",
    "Dictionary",
    "Final",
    "FuzzyFlag",
    "HistoryBigram",
    "ImeError",
    "ImeFormatError",
    "ImeVersionError",
    "Initial",
    "InvalidPinyinError",
    "InvalidSyllableError",
    "LanguageModel",
    "Lattice",
    "LatticeNode",
    "SegmentGraph",
    "SegmentGraphError",
    "SentenceResult",
    "Syllable",
    "TableDictionary",
    "UserLanguageModel",
    "WordMatch",
    "decode_full_pinyin",
    "encode_full_pinyin",
    "encode_one_user_pinyin",
    "final_to_string",
    "from_code",
    "initial_to_string",
    "is_known_syllable",
    "is_valid_user_pinyin",
    "parse_user_pinyin",
    "string_to_syllables",
    "to_code",
]

logging.getLogger(__name__).addHandler(logging.NullHandler())
