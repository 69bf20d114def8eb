"""IPA transcription segmentation.

Splits a transcription such as ``/pərˈmɪt/`` into phoneme tokens
(``["p", "ər", "ˈm", "ɪ", "t"]``). Stress marks ride on the following
symbol, length marks and other diacritics stay with the symbol they modify,
and an ``r`` after a rhotacizable vowel becomes part of that vowel.
"""

import unicodedata

from .classifier import MODIFIERS, STRESS_MARKS, classify, strip_stress
from .models import PhonemeToken

DELIMITERS = frozenset("/[]()")

TIE_BAR = "͡"

# Vowels that form a single r-colored unit with a following r
R_COLORABLE = frozenset("əɜɑɔɪʊɛ")

_RHOTICS = frozenset("rɹ")


def clean_transcription(ipa: str) -> str:
    """Strip slash/bracket delimiters and surrounding whitespace."""
    return "".join(ch for ch in ipa if ch not in DELIMITERS).strip()


def _takes_r_coloring(token: str) -> bool:
    base = strip_stress(token).replace("ː", "")
    return base in R_COLORABLE


def _is_modifier(ch: str) -> bool:
    return ch in MODIFIERS or unicodedata.combining(ch) != 0


def split_phonemes(ipa: str) -> list[str]:
    """Split an IPA transcription into raw phoneme tokens.

    Args:
        ipa: Transcription, optionally wrapped in slashes or brackets

    Returns:
        Ordered token strings with stress marks attached to the following
        symbol. Empty or delimiter-only input yields an empty list.
    """
    cleaned = clean_transcription(ipa)
    tokens: list[str] = []
    i = 0
    n = len(cleaned)

    while i < n:
        ch = cleaned[i]
        i += 1
        if ch.isspace():
            continue

        token = ch
        if ch in STRESS_MARKS:
            while i < n and cleaned[i] in STRESS_MARKS:
                token += cleaned[i]
                i += 1
            if i < n and not cleaned[i].isspace():
                token += cleaned[i]
                i += 1

        while i < n:
            nxt = cleaned[i]
            if nxt == TIE_BAR:
                # Tie bar joins the next symbol into one affricate
                token += nxt
                i += 1
                if i < n and not cleaned[i].isspace():
                    token += cleaned[i]
                    i += 1
            elif _is_modifier(nxt):
                token += nxt
                i += 1
            elif nxt in _RHOTICS and _takes_r_coloring(token):
                token += nxt
                i += 1
            else:
                break

        if strip_stress(token):
            tokens.append(token)

    return tokens


def segment(ipa: str) -> list[PhonemeToken]:
    """Segment and classify an IPA transcription."""
    tokens = []
    for raw in split_phonemes(ipa):
        stripped = strip_stress(raw)
        tokens.append(
            PhonemeToken(raw=raw, stripped=stripped, classification=classify(stripped))
        )
    return tokens
