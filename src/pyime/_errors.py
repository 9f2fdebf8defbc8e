"""pyime error types."""


class ImeError(Exception):
    """Base error for all pyime failures."""


class SegmentGraphError(ImeError):
    """Malformed segmentation graph (bad edge or disconnected)."""


class InvalidSyllableError(ImeError):
    """Code or text outside the syllable table."""


class InvalidPinyinError(ImeError):
    """User pinyin has no full-coverage encoding."""


class ImeFormatError(ImeError):
    """Persisted data is truncated or malformed."""


class ImeVersionError(ImeError):
    """Persisted data version mismatch."""
