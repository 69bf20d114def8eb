"""Pronunciation pipeline orchestrator for ipaspeak.

Coordinates the cache key deriver, the tiered server cache, the markup
builder and a synthesis provider. The HTTP server and the CLI both drive
synthesis and reports through this one service.
"""

import logging

from ..cache.keys import derive_cache_key
from ..cache.tiered import TieredAudioCache
from ..phonetics.markup import build_ssml
from ..providers.base import TTSProvider
from .models import (
    CacheStatus,
    ReportRequest,
    ReportResult,
    SynthesisRequest,
    SynthesisResult,
)

logger = logging.getLogger(__name__)


class PronunciationService:
    """Serves pronunciation audio through the server cache.

    Concurrent misses for the same key may each call the backend; the last
    write wins. No lock is held across the backend call.

    Example:
        service = PronunciationService(
            cache=TieredAudioCache(cache_dir),
            provider=ProviderRegistry.get_instance("google"),
            voice="en-US-Neural2-J",
        )

        result = await service.synthesize(
            SynthesisRequest(word="record", ipa="/ˈrɛkərd/")
        )
        # result.cache_status is MISS the first time, HIT afterwards

        await service.report(ReportRequest(word="record", ipa="/ˈrɛkərd/"))
        # the next synthesize() for that request calls the backend again
    """

    def __init__(
        self,
        cache: TieredAudioCache,
        provider: TTSProvider,
        voice: str = "",
        provider_name: str = "",
    ) -> None:
        """Initialize the service.

        Args:
            cache: Server-side tiered cache
            provider: Synthesis backend
            voice: Voice passed to the backend (empty for its default)
            provider_name: Name used in status output
        """
        self.cache = cache
        self.provider = provider
        self.voice = voice
        self.provider_name = provider_name or type(provider).__name__

    async def synthesize(self, request: SynthesisRequest) -> SynthesisResult:
        """Return audio for a request, synthesizing on a cache miss.

        Args:
            request: Validated synthesis request

        Returns:
            SynthesisResult with the audio, cache status and key

        Raises:
            TTSError: Classified backend failure; nothing is cached
            CacheWriteError: Audio was synthesized but could not be stored
        """
        key = derive_cache_key(request.word, request.ipa, request.phoneme)

        if request.bypass_cache:
            logger.debug(f"Cache bypass requested for {key}")
        else:
            cached = await self.cache.get(key)
            if cached is not None:
                logger.debug(f"Serving '{request.word}' from cache ({key})")
                return SynthesisResult(
                    audio=cached, cache_status=CacheStatus.HIT, key=key
                )

        markup = build_ssml(request.word, request.ipa, request.phoneme)
        logger.debug(f"Markup for {key}: {markup}")

        try:
            audio = await self.provider.synthesize(markup, self.voice)
        except Exception as e:
            logger.error(f"Synthesis failed for '{request.word}' {request.ipa}: {e}")
            raise

        await self.cache.set(key, audio)

        target = f"phoneme '{request.phoneme}' of " if request.phoneme else ""
        logger.info(
            f"Synthesized {target}'{request.word}' {request.ipa} "
            f"({len(audio)} bytes) as {key}"
        )
        return SynthesisResult(
            audio=audio, cache_status=CacheStatus.MISS, key=key, markup=markup
        )

    async def report(self, request: ReportRequest) -> ReportResult:
        """Record a bad pronunciation report.

        Suppresses the key and deletes its stored copy, so the next request
        for it is always a miss and regenerates the audio.

        Raises:
            CacheWriteError: If the stored copy cannot be deleted
        """
        key = derive_cache_key(request.word, request.ipa, request.phoneme)

        self.cache.report(key)
        await self.cache.delete(key)

        logger.info(
            f"Report recorded for '{request.word}' {request.ipa}"
            f"{f' phoneme {request.phoneme}' if request.phoneme else ''} ({key})"
        )
        return ReportResult(key=key)

    async def stats(self) -> dict:
        """Cache statistics plus provider information."""
        stats = await self.cache.stats()
        stats["provider"] = self.provider_name
        return stats
