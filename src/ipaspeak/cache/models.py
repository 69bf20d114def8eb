"""Data models for cache storage."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CacheEntry:
    """Audio stored under a derived cache key.

    Entries are never mutated in place; invalidation deletes them and the
    next store writes a new entry.

    Attributes:
        key: Derived cache key string
        audio: Encoded audio bytes (MP3)
        stored_at: Unix timestamp of when the audio was stored
    """

    key: str
    audio: bytes
    stored_at: float

    def age(self, now: float) -> float:
        return max(0.0, now - self.stored_at)
