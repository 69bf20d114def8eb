"""TTS data models with validation."""

from dataclasses import dataclass
from enum import Enum

from ..cache.keys import CacheKey

MAX_WORD_LENGTH = 100
MAX_IPA_LENGTH = 200
MAX_PHONEME_LENGTH = 50


def _validate_fields(word: str, ipa: str, phoneme: str | None) -> None:
    if not isinstance(word, str) or not word.strip():
        raise ValueError("word cannot be empty")
    if len(word) > MAX_WORD_LENGTH:
        raise ValueError(f"word must be at most {MAX_WORD_LENGTH} characters")
    if not isinstance(ipa, str) or not ipa.strip():
        raise ValueError("ipa cannot be empty")
    if len(ipa) > MAX_IPA_LENGTH:
        raise ValueError(f"ipa must be at most {MAX_IPA_LENGTH} characters")
    if phoneme is not None:
        if not isinstance(phoneme, str):
            raise ValueError("phoneme must be a string")
        if len(phoneme) > MAX_PHONEME_LENGTH:
            raise ValueError(
                f"phoneme must be at most {MAX_PHONEME_LENGTH} characters"
            )


class CacheStatus(str, Enum):
    """Whether audio came from the server cache or fresh synthesis."""

    HIT = "HIT"
    MISS = "MISS"


@dataclass
class SynthesisRequest:
    """A request for pronunciation audio.

    Args:
        word: Word to pronounce (1-100 characters)
        ipa: IPA transcription to pronounce it with (1-200 characters)
        phoneme: Optional single phoneme to pronounce instead (max 50 characters)
        part_of_speech: Informational only; the transcription already
            distinguishes heteronyms
        bypass_cache: Skip the cache lookup and always synthesize
    """

    word: str
    ipa: str
    phoneme: str | None = None
    part_of_speech: str | None = None
    bypass_cache: bool = False

    def __post_init__(self) -> None:
        """Validate request fields."""
        _validate_fields(self.word, self.ipa, self.phoneme)


@dataclass
class ReportRequest:
    """A report that the audio for a request sounds wrong."""

    word: str
    ipa: str
    phoneme: str | None = None

    def __post_init__(self) -> None:
        """Validate request fields."""
        _validate_fields(self.word, self.ipa, self.phoneme)


@dataclass(frozen=True)
class SynthesisResult:
    """Audio returned for a synthesis request.

    Args:
        audio: MP3 audio bytes
        cache_status: HIT when served from the server cache
        key: Cache key the audio is stored under
        markup: Markup sent to the backend, None on a cache hit
    """

    audio: bytes
    cache_status: CacheStatus
    key: CacheKey
    markup: str | None = None

    @property
    def cached(self) -> bool:
        return self.cache_status is CacheStatus.HIT


@dataclass(frozen=True)
class ReportResult:
    """Outcome of a recorded report."""

    key: CacheKey


@dataclass
class VoiceSettings:
    """Voice generation settings for ElevenLabs.

    Args:
        stability: Voice stability (0.0-1.0)
        similarity_boost: Voice similarity boost (0.0-1.0)
        style: Voice style exaggeration (0.0-1.0)
        use_speaker_boost: Whether to use speaker boost
        speaking_rate: Speaking rate (0.25-4.0)
    """

    stability: float = 0.75
    similarity_boost: float = 0.75
    style: float = 0.0
    use_speaker_boost: bool = True
    speaking_rate: float = 0.9

    def __post_init__(self) -> None:
        """Validate voice settings."""
        if not 0.0 <= self.stability <= 1.0:
            raise ValueError("stability must be between 0.0 and 1.0")
        if not 0.0 <= self.similarity_boost <= 1.0:
            raise ValueError("similarity_boost must be between 0.0 and 1.0")
        if not 0.0 <= self.style <= 1.0:
            raise ValueError("style must be between 0.0 and 1.0")
        if not 0.25 <= self.speaking_rate <= 4.0:
            raise ValueError("speaking_rate must be between 0.25 and 4.0")

    def to_dict(self) -> dict:
        return {
            "stability": self.stability,
            "similarity_boost": self.similarity_boost,
            "style": self.style,
            "use_speaker_boost": self.use_speaker_boost,
            "speed": self.speaking_rate,
        }
