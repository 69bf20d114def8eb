"""Data models for phonetic processing."""

from dataclasses import dataclass
from enum import Enum


class PhonemeClass(str, Enum):
    """Coarse classification of a single IPA phoneme."""

    CONSONANT = "consonant"
    VOWEL = "vowel"
    UNMATCHED = "unmatched"


@dataclass(frozen=True)
class PhonemeToken:
    """One segmented phoneme from an IPA transcription.

    Attributes:
        raw: Token text as it appeared in the transcription (stress marks kept)
        stripped: Token text with primary/secondary stress marks removed
        classification: Consonant, vowel or unmatched
    """

    raw: str
    stripped: str
    classification: PhonemeClass

    @property
    def stressed(self) -> bool:
        return self.raw != self.stripped


@dataclass(frozen=True)
class PhoneticEntry:
    """A phonetic record as supplied by a dictionary source.

    Attributes:
        transcription: IPA transcription, possibly slash-delimited or empty
        part_of_speech: Part of speech the transcription applies to, if known
        audio_url: Recording URL supplied by the dictionary, if any
    """

    transcription: str
    part_of_speech: str | None = None
    audio_url: str | None = None


@dataclass(frozen=True)
class HeteronymGroup:
    """One pronunciation of a heteronym, keyed by part of speech.

    An empty ``transcription`` marks a placeholder group: the word is a
    known heteronym but no distinguishing transcription was available.
    """

    part_of_speech: str
    transcription: str
    audio_url: str | None = None

    @property
    def is_placeholder(self) -> bool:
        return not self.transcription
