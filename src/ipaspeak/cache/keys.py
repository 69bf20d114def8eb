"""Cache key derivation.

A key identifies one pronunciation request: the word, the IPA transcription
it is pronounced with, and optionally a single phoneme from it. The same
logical request always maps to the same key, and ``CACHE_VERSION`` is part of
every key so that bumping it orphans every previously stored entry.
"""

import hashlib
import json
import unicodedata
from dataclasses import dataclass

# Bump whenever ipaspeak.phonetics.markup changes the markup it produces.
CACHE_VERSION = 1

_IPA_DELIMITERS = "/[]"


@dataclass(frozen=True)
class CacheKey:
    """A derived cache key.

    Attributes:
        version: Markup-logic version the key was derived under
        word: Normalized word
        ipa: Normalized IPA transcription
        phoneme: Normalized phoneme, or None for full-word audio
        digest: SHA-256 hex digest of the fields
    """

    version: int
    word: str
    ipa: str
    phoneme: str | None
    digest: str

    @property
    def value(self) -> str:
        return f"v{self.version}-{self.digest}"

    def __str__(self) -> str:
        return self.value


def normalize_word(word: str) -> str:
    return unicodedata.normalize("NFC", word).strip().lower()


def normalize_ipa(ipa: str) -> str:
    """Canonical transcription text: NFC, outer whitespace and delimiters removed.

    Stress marks are kept, so stress placement distinguishes keys.
    """
    text = unicodedata.normalize("NFC", ipa).strip()
    return text.strip(_IPA_DELIMITERS).strip()


def normalize_phoneme(phoneme: str | None) -> str | None:
    if phoneme is None:
        return None
    text = unicodedata.normalize("NFC", phoneme).strip()
    return text or None


def derive_cache_key(
    word: str,
    ipa: str,
    phoneme: str | None = None,
    version: int = CACHE_VERSION,
) -> CacheKey:
    """Derive the cache key for a pronunciation request.

    Args:
        word: Word text; case and surrounding whitespace are ignored
        ipa: IPA transcription, with or without slashes
        phoneme: Optional single phoneme
        version: Markup-logic version, defaults to the current one

    Returns:
        CacheKey whose string form is ``v{version}-{sha256 hex}``
    """
    norm_word = normalize_word(word)
    norm_ipa = normalize_ipa(ipa)
    norm_phoneme = normalize_phoneme(phoneme)

    # JSON keeps field boundaries unambiguous when fields contain ":"
    material = json.dumps(
        [version, norm_word, norm_ipa, norm_phoneme], ensure_ascii=False
    )
    digest = hashlib.sha256(material.encode("utf-8")).hexdigest()

    return CacheKey(
        version=version,
        word=norm_word,
        ipa=norm_ipa,
        phoneme=norm_phoneme,
        digest=digest,
    )


def key_version(key: str) -> int | None:
    """Version encoded in a key string, or None if the string is not a key."""
    prefix, sep, _ = key.partition("-")
    if not sep or not prefix.startswith("v") or not prefix[1:].isdigit():
        return None
    return int(prefix[1:])
