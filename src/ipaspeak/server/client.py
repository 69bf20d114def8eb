"""HTTP client for the ipaspeak server with a local persistent cache.

Lookups go to the local store first, then to the server; server audio is
stored locally before it is returned. Only one playback runs at a time:
starting another cancels whatever the previous one was doing, whether
fetching or playing.
"""

import asyncio
import logging
import sqlite3
from dataclasses import dataclass
from typing import Any

import httpx

from ..audio.player import AudioPlayer
from ..cache.keys import CacheKey, derive_cache_key
from ..cache.storage import ClientAudioStore
from ..tts.models import ReportRequest, SynthesisRequest

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

SOURCE_LOCAL = "local"
SOURCE_SERVER_HIT = "server-hit"
SOURCE_SERVER_MISS = "server-miss"


class ClientError(Exception):
    """Base exception for client-side request outcomes."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PronunciationUnavailableError(ClientError):
    """Audio could not be obtained. Safe to retry when ``retryable`` is set."""

    def __init__(
        self, message: str, retryable: bool = True, status_code: int | None = None
    ) -> None:
        super().__init__(message, status_code)
        self.retryable = retryable


class ReportNotRecordedError(ClientError):
    """The server did not record a report. Safe to retry."""


class RateLimitedError(ClientError):
    """The server rejected the request for exceeding its rate limit."""

    def __init__(self, message: str, retry_after: int | None = None) -> None:
        super().__init__(message, 429)
        self.retry_after = retry_after


class RequestRejectedError(ClientError):
    """The server rejected the request fields as invalid."""


@dataclass(frozen=True)
class FetchResult:
    """Audio for a request and where it came from.

    Attributes:
        audio: MP3 audio bytes
        source: "local", "server-hit" or "server-miss"
        key: Cache key of the request
    """

    audio: bytes
    source: str
    key: CacheKey


def _error_message(response: httpx.Response) -> tuple[str, dict]:
    """Envelope message and data from an error response, tolerating non-JSON bodies."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase, {}
    if not isinstance(body, dict):
        return str(body), {}
    data = body.get("data") if isinstance(body.get("data"), dict) else {}
    return str(body.get("message") or response.reason_phrase), data


def _retry_after(response: httpx.Response) -> int | None:
    value = response.headers.get("retry-after")
    if value and value.isdigit():
        return int(value)
    return None


class PronunciationClient:
    """Fetches, plays and reports pronunciations against an ipaspeak server.

    Example:
        store = ClientAudioStore(Path("~/.cache/ipaspeak/client").expanduser())
        async with PronunciationClient("http://127.0.0.1:8787", store) as client:
            request = SynthesisRequest(word="record", ipa="/rɪˈkɔrd/")
            await client.play(request)
            await client.report(ReportRequest(word="record", ipa="/rɪˈkɔrd/"))
    """

    def __init__(
        self,
        server_url: str,
        store: ClientAudioStore,
        player: AudioPlayer | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the client.

        Args:
            server_url: Base URL of the ipaspeak server
            store: Local persistent audio store
            player: Audio player, created on first playback if omitted
            http_client: Preconfigured httpx client; owned by the caller
            timeout: Request timeout in seconds when creating the httpx client
        """
        self.server_url = server_url.rstrip("/")
        self.store = store
        self.player = player
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self._active: asyncio.Task | None = None
        # Result of the most recent fetch made for playback
        self.last_fetch: FetchResult | None = None

    async def __aenter__(self) -> "PronunciationClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Stop playback and close the HTTP client if this object created it."""
        await self.stop()
        if self._owns_http:
            await self._http.aclose()

    async def fetch(self, request: SynthesisRequest) -> FetchResult:
        """Get audio for a request from the local store or the server.

        Args:
            request: Synthesis request; ``bypass_cache`` skips the local store
                and asks the server to skip its cache too

        Returns:
            FetchResult with the audio and its source

        Raises:
            RateLimitedError: Server rate limit exceeded
            RequestRejectedError: Server rejected the fields
            PronunciationUnavailableError: Synthesis or transport failed
        """
        key = derive_cache_key(request.word, request.ipa, request.phoneme)

        if not request.bypass_cache:
            local = await asyncio.to_thread(self.store.get, key)
            if local is not None:
                logger.debug(f"Local hit for '{request.word}' ({key})")
                return FetchResult(audio=local, source=SOURCE_LOCAL, key=key)

        payload = {
            "word": request.word,
            "ipa": request.ipa,
            "phoneme": request.phoneme,
            "part_of_speech": request.part_of_speech,
            "bypass_cache": request.bypass_cache,
        }
        try:
            response = await self._http.post(f"{self.server_url}/tts", json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Pronunciation request failed: {e}")
            raise PronunciationUnavailableError(
                f"Pronunciation unavailable, try again: {e}"
            ) from e

        if response.status_code != 200:
            self._raise_for_synthesis(response)

        audio = response.content
        if not audio:
            raise PronunciationUnavailableError(
                "Pronunciation unavailable, try again: empty audio", status_code=200
            )

        server_key = response.headers.get("x-cache-key")
        if server_key and server_key != str(key):
            logger.warning(f"Server key {server_key} differs from local key {key}")

        source = (
            SOURCE_SERVER_HIT
            if response.headers.get("x-cache", "").upper() == "HIT"
            else SOURCE_SERVER_MISS
        )

        try:
            await asyncio.to_thread(self.store.put, key, audio)
        except sqlite3.Error as e:
            logger.error(f"Failed to store audio locally: {e}")

        logger.debug(f"Fetched '{request.word}' from server ({source}, {key})")
        return FetchResult(audio=audio, source=source, key=key)

    def _raise_for_synthesis(self, response: httpx.Response) -> None:
        message, data = _error_message(response)
        status = response.status_code
        if status == 429:
            raise RateLimitedError(message, _retry_after(response))
        if status == 422:
            raise RequestRejectedError(message, status)
        retryable = bool(data.get("retryable", status >= 500))
        raise PronunciationUnavailableError(message, retryable, status)

    async def _fetch_and_play(self, request: SynthesisRequest) -> bool:
        result = await self.fetch(request)
        self.last_fetch = result
        if self.player is None:
            self.player = AudioPlayer()
        return await self.player.play_bytes_async(result.audio)

    async def play(self, request: SynthesisRequest) -> bool:
        """Fetch and play a pronunciation in the single playback slot.

        Any previous fetch or playback is cancelled first so outputs never
        overlap.

        Returns:
            True if playback completed, False if it was superseded or stopped
        """
        previous = self._active
        if previous is not None and not previous.done():
            previous.cancel()

        task = asyncio.create_task(self._fetch_and_play(request))
        self._active = task
        try:
            return await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            # Superseded by a newer play() or stop()
            return False
        finally:
            if self._active is task:
                self._active = None

    async def stop(self) -> None:
        """Cancel the active fetch or playback, if any."""
        task = self._active
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.debug(f"Cancelled playback ended with: {e}")
        if self.player is not None:
            self.player.stop()

    async def report(self, request: ReportRequest) -> str:
        """Report a bad pronunciation.

        The local copy is dropped before contacting the server, so the next
        fetch goes to the server even if the report fails.

        Returns:
            The server's cache key for the reported request

        Raises:
            RateLimitedError: Report rate limit exceeded
            RequestRejectedError: Server rejected the fields
            ReportNotRecordedError: The server did not record the report
        """
        key = derive_cache_key(request.word, request.ipa, request.phoneme)
        await asyncio.to_thread(self.store.remove, key)

        payload = {"word": request.word, "ipa": request.ipa, "phoneme": request.phoneme}
        try:
            response = await self._http.post(
                f"{self.server_url}/tts/report", json=payload
            )
        except httpx.HTTPError as e:
            logger.error(f"Report request failed: {e}")
            raise ReportNotRecordedError(f"Report not recorded: {e}") from e

        message, data = _error_message(response)
        if response.status_code == 429:
            raise RateLimitedError(message, _retry_after(response))
        if response.status_code == 422:
            raise RequestRejectedError(message, 422)
        if response.status_code != 200:
            raise ReportNotRecordedError(
                f"Report not recorded: {message}", response.status_code
            )

        body = response.json()
        server_key = (body.get("data") or {}).get("key") or str(key)
        logger.info(f"Reported '{request.word}' {request.ipa} ({server_key})")
        return server_key

    async def prune_expired(self) -> int:
        """Delete expired entries from the local store."""
        return await asyncio.to_thread(self.store.prune_expired)

    async def purge_old_versions(self) -> int:
        """Delete local entries stored under an older markup version."""
        return await asyncio.to_thread(self.store.purge_old_versions)
