"""IPA phoneme classification.

Two static tables map IPA symbols to consonant or vowel. Each table lists
multi-character symbols ahead of their single-character prefixes so that a
scan always settles on the longest symbol ("tʃ" before "t", "ɜːr" before
"ɜː" before "ɜ"). Classification is advisory: unknown tokens come back as
``PhonemeClass.UNMATCHED`` rather than raising.
"""

from .models import PhonemeClass

STRESS_MARKS = frozenset("ˈˌ")

# Characters that modify the preceding base symbol without changing its class:
# length, nasalization, r-coloring, tie bar, aspiration, labialization,
# palatalization, velarization.
MODIFIERS = frozenset("ː̃˞͡ʰʷʲˠ")

CONSONANTS: tuple[str, ...] = (
    # Affricates, tie-bar and bare spellings
    "t͡ʃ", "d͡ʒ", "tʃ", "dʒ",
    # Plosives
    "p", "b", "t", "d", "k", "g", "ɡ", "ʔ",
    # Fricatives
    "f", "v", "θ", "ð", "s", "z", "ʃ", "ʒ", "h", "x",
    # Nasals
    "m", "n", "ŋ",
    # Liquids and taps
    "l", "ɫ", "r", "ɹ", "ɾ",
    # Glides
    "j", "w",
)

VOWELS: tuple[str, ...] = (
    # R-colored long vowels
    "ɜːr", "ɑːr", "ɔːr", "iːr", "uːr",
    # Diphthongs followed by r
    "aɪr", "aʊr",
    # Long vowels
    "iː", "ɑː", "ɔː", "uː", "ɜː", "eː",
    # Diphthongs
    "aɪ", "aʊ", "eɪ", "oɪ", "ɔɪ", "oʊ", "əʊ",
    # Centering diphthongs
    "ɪə", "eə", "ʊə",
    # R-colored short vowels
    "ər", "ɜr", "ɑr", "ɔr", "ɪr", "ʊr", "ɛr",
    # Single-character r-colored vowels
    "ɚ", "ɝ",
    # Monophthongs
    "i", "ɪ", "e", "ɛ", "æ", "a", "ɑ", "ɒ", "ɔ", "o",
    "ʊ", "u", "ʌ", "ə", "ɜ", "ɐ",
)

_TABLES: tuple[tuple[tuple[str, ...], PhonemeClass], ...] = (
    (VOWELS, PhonemeClass.VOWEL),
    (CONSONANTS, PhonemeClass.CONSONANT),
)

_RHOTICS = ("r", "ɹ")


def strip_stress(text: str) -> str:
    """Remove primary and secondary stress marks."""
    return "".join(ch for ch in text if ch not in STRESS_MARKS)


def _exact(symbol: str) -> PhonemeClass | None:
    for table, cls in _TABLES:
        if symbol in table:
            return cls
    return None


def _longest_prefix(symbol: str) -> PhonemeClass | None:
    """Match the longest table entry whose remainder is only modifiers."""
    best: tuple[int, PhonemeClass] | None = None
    for table, cls in _TABLES:
        for entry in table:
            if not symbol.startswith(entry):
                continue
            rest = symbol[len(entry):]
            if rest and all(ch in MODIFIERS for ch in rest):
                if best is None or len(entry) > best[0]:
                    best = (len(entry), cls)
                break
    return best[1] if best else None


def classify(phoneme: str) -> PhonemeClass:
    """Classify one phoneme token as consonant, vowel or unmatched.

    Args:
        phoneme: A single segmented token; stress marks are ignored

    Returns:
        The phoneme class. Never raises for string input.
    """
    clean = strip_stress(phoneme).strip()
    if not clean:
        return PhonemeClass.UNMATCHED

    cls = _exact(clean) or _longest_prefix(clean)
    if cls is not None:
        return cls

    # r-colored vowels the segmenter did not pre-merge (e.g. "eɪr")
    if len(clean) >= 2 and clean.endswith(_RHOTICS):
        base = clean[:-1]
        if _exact(base) is PhonemeClass.VOWEL:
            return PhonemeClass.VOWEL

    return PhonemeClass.UNMATCHED


def is_consonant(phoneme: str) -> bool:
    return classify(phoneme) is PhonemeClass.CONSONANT


def is_vowel(phoneme: str) -> bool:
    return classify(phoneme) is PhonemeClass.VOWEL
