"""Syllable table: initials, finals, valid syllables, spellings and fuzzy rules."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from functools import lru_cache


class Initial(enum.IntEnum):
    ZERO = 1
    B = 2
    P = 3
    M = 4
    F = 5
    D = 6
    T = 7
    N = 8
    L = 9
    G = 10
    K = 11
    H = 12
    J = 13
    Q = 14
    X = 15
    ZH = 16
    CH = 17
    SH = 18
    R = 19
    Z = 20
    C = 21
    S = 22
    Y = 23
    W = 24


class Final(enum.IntEnum):
    INVALID = 0  # initial-only (partial) syllable
    ZERO = 1     # empty final of "m" and "n"
    A = 2
    O = 3
    E = 4
    AI = 5
    EI = 6
    AO = 7
    OU = 8
    AN = 9
    EN = 10
    ANG = 11
    ENG = 12
    ONG = 13
    ER = 14
    I = 15
    IA = 16
    IE = 17
    IAO = 18
    IU = 19
    IAN = 20
    IN = 21
    IANG = 22
    ING = 23
    IONG = 24
    U = 25
    UA = 26
    UO = 27
    UAI = 28
    UI = 29
    UAN = 30
    UN = 31
    UANG = 32
    V = 33
    VE = 34
    UE = 35
    NG = 36


class FuzzyFlag(enum.IntFlag):
    NONE = 0
    NG_GN = 1 << 0
    V_U = 1 << 1
    AN_ANG = 1 << 2
    EN_ENG = 1 << 3
    IAN_IANG = 1 << 4
    IN_ING = 1 << 5
    U_OU = 1 << 6
    UAN_UANG = 1 << 7
    C_CH = 1 << 8
    F_H = 1 << 9
    L_N = 1 << 10
    S_SH = 1 << 11
    Z_ZH = 1 << 12
    VE_UE = 1 << 13
    INNER = 1 << 14


INITIAL_TEXT: dict[Initial, str] = {
    i: ("" if i is Initial.ZERO else i.name.lower()) for i in Initial
}
FINAL_TEXT: dict[Final, str] = {
    f: ("" if f in (Final.INVALID, Final.ZERO) else f.name.lower())
    for f in Final
}
INITIAL_BY_TEXT: dict[str, Initial] = {
    text: i for i, text in INITIAL_TEXT.items() if text
}


@dataclass(slots=True, frozen=True)
class Syllable:
    initial: Initial
    final: Final

    def to_string(self) -> str:
        return INITIAL_TEXT[self.initial] + FINAL_TEXT[self.final]

    @property
    def is_partial(self) -> bool:
        """True for an initial typed without its final, e.g. ``zh``."""
        return self.final is Final.INVALID

    def __str__(self) -> str:
        return self.to_string()


# Standard Hanyu Pinyin, grouped by initial.
_TABLE: dict[Initial, str] = {
    Initial.ZERO: "a o e ai ei ao ou an en ang eng er ng",
    Initial.B: "a o ai ei ao an en ang eng i ie iao ian in ing u",
    Initial.P: "a o ai ei ao ou an en ang eng i ie iao ian in ing u",
    Initial.M: "a o e ai ei ao ou an en ang eng i ie iao iu ian in ing u",
    Initial.F: "a o ei ou an en ang eng u",
    Initial.D: "a e ai ei ao ou an en ang eng ong i ia ie iao iu ian ing "
               "u uo ui uan un",
    Initial.T: "a e ai ei ao ou an ang eng ong i ie iao ian ing u uo ui uan un",
    Initial.N: "a e ai ei ao ou an en ang eng ong i ie iao iu ian in iang "
               "ing u uo uan v ve",
    Initial.L: "a o e ai ei ao ou an ang eng ong i ia ie iao iu ian in iang "
               "ing u uo uan un v ve",
    Initial.G: "a e ai ei ao ou an en ang eng ong u ua uo uai ui uan un uang",
    Initial.K: "a e ai ei ao ou an en ang eng ong u ua uo uai ui uan un uang",
    Initial.H: "a e ai ei ao ou an en ang eng ong u ua uo uai ui uan un uang",
    Initial.J: "i ia ie iao iu ian in iang ing iong u ue uan un",
    Initial.Q: "i ia ie iao iu ian in iang ing iong u ue uan un",
    Initial.X: "i ia ie iao iu ian in iang ing iong u ue uan un",
    Initial.ZH: "a e ai ei ao ou an en ang eng ong i u ua uo uai ui uan un "
                "uang",
    Initial.CH: "a e ai ao ou an en ang eng ong i u ua uo uai ui uan un uang",
    Initial.SH: "a e ai ei ao ou an en ang eng i u ua uo uai ui uan un uang",
    Initial.R: "e ao ou an en ang eng ong i u ua uo ui uan un",
    Initial.Z: "a e ai ei ao ou an en ang eng ong i u uo ui uan un",
    Initial.C: "a e ai ao ou an en ang eng ong i u uo ui uan un",
    Initial.S: "a e ai ao ou an en ang eng ong i u uo ui uan un",
    Initial.Y: "a o e ao ou an in ang ing ong i u ue uan un",
    Initial.W: "a o ai ei an en ang eng u",
}

_FINAL_BY_TEXT: dict[str, Final] = {
    text: f for f, text in FINAL_TEXT.items() if text
}

VALID_SYLLABLES: frozenset[Syllable] = frozenset(
    [
        Syllable(initial, _FINAL_BY_TEXT[text])
        for initial, finals in _TABLE.items()
        for text in finals.split()
    ]
    + [Syllable(Initial.M, Final.ZERO), Syllable(Initial.N, Final.ZERO)]
)

PARTIAL_SYLLABLES: frozenset[Syllable] = frozenset(
    Syllable(i, Final.INVALID) for i in Initial if i is not Initial.ZERO
)

_INITIAL_FUZZY: dict[FuzzyFlag, tuple[Initial, Initial]] = {
    FuzzyFlag.C_CH: (Initial.C, Initial.CH),
    FuzzyFlag.S_SH: (Initial.S, Initial.SH),
    FuzzyFlag.Z_ZH: (Initial.Z, Initial.ZH),
    FuzzyFlag.F_H: (Initial.F, Initial.H),
    FuzzyFlag.L_N: (Initial.L, Initial.N),
}

_FINAL_FUZZY: dict[FuzzyFlag, tuple[Final, Final]] = {
    FuzzyFlag.AN_ANG: (Final.AN, Final.ANG),
    FuzzyFlag.EN_ENG: (Final.EN, Final.ENG),
    FuzzyFlag.IAN_IANG: (Final.IAN, Final.IANG),
    FuzzyFlag.IN_ING: (Final.IN, Final.ING),
    FuzzyFlag.U_OU: (Final.U, Final.OU),
    FuzzyFlag.UAN_UANG: (Final.UAN, Final.UANG),
    FuzzyFlag.V_U: (Final.V, Final.U),
    FuzzyFlag.VE_UE: (Final.VE, Final.UE),
}


def _build_spellings() -> dict[str, list[tuple[Initial, Final, FuzzyFlag]]]:
    """Map every typeable spelling to its raw (initial, final, required flag).

    Raw pairs that are not valid syllables are kept: they become readable
    through a fuzzy rule (``cuang`` is read as ``chuang`` with C_CH).
    """
    spellings: dict[str, list[tuple[Initial, Final, FuzzyFlag]]] = {}

    def add(text: str, initial: Initial, final: Final, flag: FuzzyFlag) -> None:
        spellings.setdefault(text, []).append((initial, final, flag))

    for initial in Initial:
        for final in Final:
            if final in (Final.INVALID, Final.ZERO):
                continue
            text = INITIAL_TEXT[initial] + FINAL_TEXT[final]
            add(text, initial, final, FuzzyFlag.NONE)
            if text.endswith("ng"):
                add(text[:-2] + "gn", initial, final, FuzzyFlag.NG_GN)
    add("m", Initial.M, Final.ZERO, FuzzyFlag.NONE)
    add("n", Initial.N, Final.ZERO, FuzzyFlag.NONE)
    return spellings


SPELLINGS = _build_spellings()


def _partners(value, table: dict, flags: FuzzyFlag) -> list:
    result = [value]
    for flag, pair in table.items():
        if flags & flag and value in pair:
            other = pair[1] if pair[0] == value else pair[0]
            if other not in result:
                result.append(other)
    return result


def spelling_readings(
    text: str, flags: FuzzyFlag = FuzzyFlag.NONE
) -> list[tuple[Syllable, bool]]:
    """Full-syllable readings of a spelling, exact ones first."""
    result: list[tuple[Syllable, bool]] = []
    seen: set[Syllable] = set()
    for initial, final, required in SPELLINGS.get(text, ()):
        if required and not flags & required:
            continue
        for i in _partners(initial, _INITIAL_FUZZY, flags):
            for f in _partners(final, _FINAL_FUZZY, flags):
                syl = Syllable(i, f)
                if syl in VALID_SYLLABLES and syl not in seen:
                    seen.add(syl)
                    fuzzy = bool(required) or i != initial or f != final
                    result.append((syl, fuzzy))
    result.sort(key=lambda r: r[1])
    return result


@lru_cache(maxsize=4096)
def string_to_syllables(
    text: str, flags: FuzzyFlag = FuzzyFlag.NONE
) -> tuple[tuple[Syllable, bool], ...]:
    """All readings of one segment: full syllables, then the bare initial.

    Readings reachable through several fuzzy rules appear once.
    """
    result = spelling_readings(text, flags)
    initial = INITIAL_BY_TEXT.get(text)
    if initial is not None:
        seen = {syl for syl, _ in result}
        for i in _partners(initial, _INITIAL_FUZZY, flags):
            syl = Syllable(i, Final.INVALID)
            if syl not in seen:
                seen.add(syl)
                result.append((syl, i != initial))
    result.sort(key=lambda r: r[1])
    return tuple(result)


@lru_cache(maxsize=4096)
def is_valid_user_pinyin(text: str, flags: FuzzyFlag = FuzzyFlag.NONE) -> bool:
    """True if ``text`` spells at least one full syllable under ``flags``."""
    return bool(spelling_readings(text, flags))


def _build_inner_segments() -> dict[str, tuple[str, str]]:
    # Zero-initial tails only; "ng" would split "yang" into "ya'ng".
    heads = {
        syl.to_string() for syl in VALID_SYLLABLES
        if syl.final is not Final.ZERO
    }
    tails = {
        syl.to_string() for syl in VALID_SYLLABLES
        if syl.initial is Initial.ZERO and syl.final is not Final.NG
    }
    inner: dict[str, tuple[str, str]] = {}
    for syl in sorted(VALID_SYLLABLES, key=lambda s: s.to_string()):
        text = syl.to_string()
        if len(text) < 4:
            continue
        for cut in range(1, len(text)):
            if text[:cut] in heads and text[cut:] in tails:
                inner[text] = (text[:cut], text[cut:])
                break
    return inner


INNER_SEGMENTS = _build_inner_segments()
