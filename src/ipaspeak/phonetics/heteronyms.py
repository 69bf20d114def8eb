"""Heteronym detection from dictionary phonetics.

A heteronym is spelled one way but pronounced differently depending on its
part of speech (record: /ˈrɛkərd/ noun, /rɪˈkɔrd/ verb). Each distinct
pronunciation needs its own IPA-keyed audio cache entry, so callers use the
detector to decide how many pronunciations to offer for a word.
"""

import logging
from collections.abc import Iterable

from .classifier import STRESS_MARKS
from .models import HeteronymGroup, PhoneticEntry

logger = logging.getLogger(__name__)

# Free dictionary sources rarely tag phonetics with a part of speech, so
# common heteronyms are listed here to signal ambiguity upstream.
KNOWN_HETERONYMS = frozenset(
    {
        "permit",
        "record",
        "present",
        "object",
        "subject",
        "project",
        "contract",
        "produce",
        "desert",
        "refuse",
        "content",
        "contest",
        "convict",
        "conduct",
        "conflict",
        "console",
        "excuse",
        "export",
        "import",
        "increase",
        "insult",
        "protest",
        "rebel",
        "reject",
        "suspect",
        "transport",
        "read",
        "live",
        "bow",
        "close",
    }
)

PLACEHOLDER_PARTS_OF_SPEECH = ("noun", "verb")
UNKNOWN_POS = "unknown"

_IGNORED = frozenset("/()[] ") | STRESS_MARKS


def is_known_heteronym(word: str) -> bool:
    return word.strip().lower() in KNOWN_HETERONYMS


def normalize_transcription(transcription: str) -> str:
    """Comparison form of a transcription.

    Drops slashes, parentheses, brackets, spaces and stress marks and
    lowercases the rest. Only used to compare pronunciations; output groups
    always carry the original text.
    """
    return "".join(ch for ch in transcription if ch not in _IGNORED).lower()


def detect_heteronyms(
    word: str, phonetics: Iterable[PhoneticEntry]
) -> list[HeteronymGroup]:
    """Group a word's phonetics into distinct pronunciations by part of speech.

    Algorithm:
    1. Keep entries with a non-blank transcription.
    2. Keep the first transcription seen per part of speech; entries with no
       part of speech share the "unknown" group.
    3. If the kept transcriptions have two or more distinct normalized forms,
       return every group.
    4. Otherwise, a known heteronym with fewer than two tagged groups yields
       two placeholder groups (noun, verb) with empty transcriptions: the
       dictionary gave no evidence either way. Anything else yields [].

    Args:
        word: The looked-up word
        phonetics: Dictionary phonetic entries, in source order

    Returns:
        Zero groups (no disambiguation needed) or two or more groups.
        Never raises for well-typed input.
    """
    by_pos: dict[str, HeteronymGroup] = {}
    for entry in phonetics:
        if not entry.transcription or not entry.transcription.strip():
            continue
        pos = (entry.part_of_speech or UNKNOWN_POS).strip().lower() or UNKNOWN_POS
        if pos in by_pos:
            continue
        audio = entry.audio_url if entry.audio_url and entry.audio_url.strip() else None
        by_pos[pos] = HeteronymGroup(
            part_of_speech=pos,
            transcription=entry.transcription.strip(),
            audio_url=audio,
        )

    distinct = {normalize_transcription(g.transcription) for g in by_pos.values()}
    if len(distinct) >= 2:
        logger.debug(
            f"'{word}' has {len(distinct)} distinct pronunciations across "
            f"{len(by_pos)} parts of speech"
        )
        return list(by_pos.values())

    tagged = [pos for pos in by_pos if pos != UNKNOWN_POS]
    if len(tagged) < 2 and is_known_heteronym(word):
        logger.debug(
            f"'{word}' is a known heteronym without distinguishing phonetics"
        )
        return [
            HeteronymGroup(part_of_speech=pos, transcription="")
            for pos in PLACEHOLDER_PARTS_OF_SPEECH
        ]
    return []


def is_heteronym(groups: list[HeteronymGroup]) -> bool:
    return len(groups) >= 2


def needs_resolution(groups: list[HeteronymGroup]) -> bool:
    """True when the groups only signal ambiguity and carry no transcriptions.

    Callers decide how to resolve these (an upstream language model, a
    default pronunciation, or asking the user); the detector does not guess.
    """
    return bool(groups) and all(g.is_placeholder for g in groups)


def pronunciation_for(
    groups: list[HeteronymGroup], part_of_speech: str
) -> str | None:
    """Transcription for a part of speech, or None if absent."""
    wanted = part_of_speech.strip().lower()
    for group in groups:
        if group.part_of_speech.lower() == wanted:
            return group.transcription or None
    return None
