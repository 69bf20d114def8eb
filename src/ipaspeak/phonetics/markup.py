"""SSML construction with explicit IPA pronunciation.

The backend receives the transcription inside a ``<phoneme>`` tag so it never
falls back to its own grapheme-to-phoneme guess, which is what makes
heteronyms come out right:

    build_ssml("record", "/ˈrɛkərd/")
    # '<speak><phoneme alphabet="ipa" ph="ˈrɛkərd">record</phoneme></speak>'

    build_ssml("pit", "/pɪt/", "p")
    # '<speak><phoneme alphabet="ipa" ph="pə">p</phoneme></speak>'

Any change to the markup produced here must be paired with a bump of
``CACHE_VERSION`` in ``ipaspeak.cache.keys``.
"""

from xml.sax.saxutils import escape

from .classifier import strip_stress
from .segmenter import clean_transcription

# Plosives cannot be voiced in isolation, so they get a trailing schwa
PLOSIVES = frozenset({"p", "t", "k", "b", "d", "g", "ɡ"})

NEUTRAL_VOWEL = "ə"

# Visible text for multi-character phonemes
PHONEME_PLACEHOLDER = "sound"

_ATTR_ENTITIES = {'"': "&quot;"}


def _xml_safe(text: str) -> str:
    """Drop characters that are not allowed anywhere in an XML 1.0 document."""
    return "".join(ch for ch in text if _is_xml_char(ord(ch)))


def _is_xml_char(code: int) -> bool:
    return (
        code in (0x9, 0xA, 0xD)
        or 0x20 <= code <= 0xD7FF
        or 0xE000 <= code <= 0xFFFD
        or 0x10000 <= code <= 0x10FFFF
    )


def _text(value: str) -> str:
    return escape(_xml_safe(value))


def _attr(value: str) -> str:
    return escape(_xml_safe(value), _ATTR_ENTITIES)


def phoneme_pronunciation(phoneme: str) -> str:
    """IPA actually sent for a single phoneme (stress removed, schwa after plosives)."""
    clean = strip_stress(phoneme).strip()
    if clean in PLOSIVES:
        return f"{clean}{NEUTRAL_VOWEL}"
    return clean


def build_ssml(word: str, ipa: str, phoneme: str | None = None) -> str:
    """Build SSML for a whole word or for one of its phonemes.

    Args:
        word: Word text shown to the backend in full-word mode
        ipa: Full-word IPA transcription, slashes allowed
        phoneme: Optional single phoneme to pronounce instead of the word

    Returns:
        Well-formed SSML. Never raises; empty transcriptions degrade to plain
        word text inside ``<speak>``.
    """
    clean_phoneme = strip_stress(phoneme).strip() if phoneme else ""

    if clean_phoneme:
        ph = phoneme_pronunciation(clean_phoneme)
        text = clean_phoneme if len(clean_phoneme) == 1 else PHONEME_PLACEHOLDER
        return (
            f'<speak><phoneme alphabet="ipa" ph="{_attr(ph)}">'
            f"{_text(text)}</phoneme></speak>"
        )

    ph = clean_transcription(ipa or "")
    word_text = (word or "").strip()
    if not ph:
        return f"<speak>{_text(word_text)}</speak>"

    return (
        f'<speak><phoneme alphabet="ipa" ph="{_attr(ph)}">'
        f"{_text(word_text)}</phoneme></speak>"
    )


def strip_speak_wrapper(ssml: str) -> str:
    """Inline form of the markup for backends that reject a ``<speak>`` root."""
    body = ssml.strip()
    if body.startswith("<speak>") and body.endswith("</speak>"):
        body = body[len("<speak>") : -len("</speak>")]
    return body
