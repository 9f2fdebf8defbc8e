"""Tuning constants shared by the decoder and the history model."""

# History bigram model
DECAY: float = 0.05
DEFAULT_UNKNOWN_SCORE: float = -5.0
DEFAULT_MAX_RECENT: int = 8192
BIGRAM_WEIGHT: float = 0.68
UNIGRAM_WEIGHT: float = 0.32
BIGRAM_SEPARATOR: str = "|"

# User language model
DEFAULT_HISTORY_WEIGHT: float = 0.2

# Decoder
PINYIN_DISTANCE_PENALTY_FACTOR: float = 3.0
DEFAULT_MAX_SYLLABLES: int = 8
UNKNOWN_INDEX: int = -1

# Segmentation
MAX_PINYIN_LENGTH: int = 6
SEPARATOR: str = "'"
