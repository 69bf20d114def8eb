"""Free Dictionary API lookup for phonetic entries."""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from .phonetics.models import PhoneticEntry

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.dictionaryapi.dev/api/v2/entries/en"


class DictionaryError(Exception):
    """Raised when the dictionary service fails for a reason other than an unknown word."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _entry_part_of_speech(entry: dict[str, Any]) -> str | None:
    """Part of speech of an entry when it has exactly one meaning."""
    meanings = entry.get("meanings") or []
    parts = {
        m.get("partOfSpeech")
        for m in meanings
        if isinstance(m, dict) and m.get("partOfSpeech")
    }
    return parts.pop() if len(parts) == 1 else None


def parse_entries(payload: Any) -> list[PhoneticEntry]:
    """Extract phonetic entries from a Free Dictionary API response body.

    Entries without any transcription text are skipped. When an entry lists
    no phonetics, its top-level ``phonetic`` field is used instead.
    """
    if not isinstance(payload, list):
        return []

    results: list[PhoneticEntry] = []
    for entry in payload:
        if not isinstance(entry, dict):
            continue
        entry_pos = _entry_part_of_speech(entry)
        phonetics = [p for p in entry.get("phonetics") or [] if isinstance(p, dict)]

        found = False
        for phonetic in phonetics:
            text = (phonetic.get("text") or "").strip()
            if not text:
                continue
            found = True
            results.append(
                PhoneticEntry(
                    transcription=text,
                    part_of_speech=phonetic.get("partOfSpeech") or entry_pos,
                    audio_url=phonetic.get("audio") or None,
                )
            )

        fallback = (entry.get("phonetic") or "").strip()
        if not found and fallback:
            results.append(PhoneticEntry(transcription=fallback, part_of_speech=entry_pos))

    return results


class DictionaryClient:
    """Looks up word phonetics in the Free Dictionary API."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def lookup(self, word: str) -> list[PhoneticEntry]:
        """Phonetic entries for a word; empty when the word is unknown.

        Raises:
            ValueError: If word is empty
            DictionaryError: On transport failures or unexpected status codes
        """
        if not word or not word.strip():
            raise ValueError("Word cannot be empty")

        url = f"{self.base_url}/{quote(word.strip().lower())}"
        try:
            response = await self._http.get(url)
        except httpx.HTTPError as e:
            raise DictionaryError(f"Dictionary lookup failed: {e}") from e

        if response.status_code == 404:
            logger.debug(f"'{word}' not found in dictionary")
            return []
        if response.status_code != 200:
            raise DictionaryError(
                f"Dictionary lookup failed with status {response.status_code}",
                response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise DictionaryError(f"Malformed dictionary response: {e}") from e

        entries = parse_entries(payload)
        logger.debug(f"Dictionary returned {len(entries)} phonetics for '{word}'")
        return entries
