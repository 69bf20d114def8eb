"""Core functionality for ipaspeak - orchestrates client-side operations."""

import logging
from pathlib import Path
from typing import Any

from .audio.player import AudioPlayer
from .cache.storage import ClientAudioStore
from .config import IpaspeakConfig, load_config
from .dictionary import DictionaryClient
from .phonetics.heteronyms import detect_heteronyms
from .phonetics.models import HeteronymGroup, PhoneticEntry
from .providers import ProviderRegistry
from .server.client import PronunciationClient
from .tts.models import ReportRequest, SynthesisRequest

logger = logging.getLogger(__name__)


def open_client_store(config: IpaspeakConfig) -> ClientAudioStore:
    return ClientAudioStore(
        config.cache.client_dir, ttl_seconds=config.cache.client_ttl_seconds
    )


async def speak_word(
    word: str,
    ipa: str,
    phoneme: str | None = None,
    bypass_cache: bool = False,
    output: str | Path | None = None,
    config: IpaspeakConfig | None = None,
) -> dict[str, Any]:
    """Fetch a pronunciation and play it or save it to a file.

    Args:
        word: Word to pronounce
        ipa: IPA transcription
        phoneme: Optional single phoneme to pronounce instead
        bypass_cache: Skip the local store and the server cache
        output: File path to save audio to instead of playing it
        config: Configuration (loaded from disk if omitted)

    Returns:
        {"played": bool, "saved": str | None, "source": str | None, "key": str | None}

    Raises:
        ValueError: If request fields are invalid
        ClientError: If the server rejects or cannot serve the request
        RuntimeError: If audio playback fails
        OSError: If the output file cannot be written
    """
    config = config or load_config()
    request = SynthesisRequest(
        word=word, ipa=ipa, phoneme=phoneme, bypass_cache=bypass_cache
    )
    store = open_client_store(config)

    async with PronunciationClient(config.http.server_url, store) as client:
        if output:
            result = await client.fetch(request)
            AudioPlayer.save_to_file(result.audio, output)
            return {
                "played": False,
                "saved": str(output),
                "source": result.source,
                "key": str(result.key),
            }

        played = await client.play(request)
        result = client.last_fetch
        return {
            "played": played,
            "saved": None,
            "source": result.source if result else None,
            "key": str(result.key) if result else None,
        }


async def report_word(
    word: str,
    ipa: str,
    phoneme: str | None = None,
    config: IpaspeakConfig | None = None,
) -> str:
    """Report a bad pronunciation and drop the local copy.

    Returns:
        The server cache key that was invalidated

    Raises:
        ValueError: If request fields are invalid
        ClientError: If the report was not recorded
    """
    config = config or load_config()
    request = ReportRequest(word=word, ipa=ipa, phoneme=phoneme)
    store = open_client_store(config)

    async with PronunciationClient(config.http.server_url, store) as client:
        return await client.report(request)


def prune_client_store(config: IpaspeakConfig | None = None) -> dict[str, int]:
    """Remove expired and old-version entries from the local store."""
    config = config or load_config()
    store = open_client_store(config)
    expired = store.prune_expired()
    old_versions = store.purge_old_versions()
    logger.info(
        f"Pruned {expired} expired and {old_versions} old-version client entries"
    )
    return {"expired": expired, "old_versions": old_versions, "remaining": store.count()}


async def lookup_variants(
    word: str, dictionary: DictionaryClient | None = None
) -> tuple[list[PhoneticEntry], list[HeteronymGroup]]:
    """Dictionary phonetics for a word and its heteronym groups.

    Raises:
        DictionaryError: If the dictionary service fails
    """
    client = dictionary or DictionaryClient()
    try:
        entries = await client.lookup(word)
    finally:
        if dictionary is None:
            await client.aclose()
    return entries, detect_heteronyms(word, entries)


async def list_available_voices(provider: str) -> list[dict]:
    """Voices offered by a provider.

    Raises:
        KeyError: If provider not found
        TTSError: If the provider cannot be configured or queried
    """
    provider_instance = ProviderRegistry.get_instance(provider)
    return await provider_instance.list_voices()
