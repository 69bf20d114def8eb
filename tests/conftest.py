"""Pytest configuration and fixtures for ipaspeak tests."""

import os
import sys
from collections.abc import Generator
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ipaspeak.cache.tiered import TieredAudioCache
from ipaspeak.providers import ProviderRegistry
from ipaspeak.providers.base import TTSProvider
from ipaspeak.tts.pipeline import PronunciationService


class FakeProvider(TTSProvider):
    """Provider that records markup and returns distinct bytes per call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []
        self.error: Exception | None = None

    async def synthesize(self, markup: str, voice: str) -> bytes:
        self.calls.append((markup, voice))
        if self.error is not None:
            raise self.error
        return f"ID3:{len(self.calls)}:{markup}".encode()

    async def list_voices(self) -> list[dict]:
        return [{"id": "fake-voice", "name": "Fake", "provider": "fake"}]


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch) -> None:
    """Keep user configuration and environment out of every test."""
    for name in list(os.environ):
        if name.startswith("IPASPEAK_"):
            monkeypatch.delenv(name)
    monkeypatch.setattr("ipaspeak.config._cached_config", None)


@pytest.fixture(autouse=True)
def restore_provider_registry() -> Generator[None, None, None]:
    """Undo registry changes made by a test."""
    providers = dict(ProviderRegistry._providers)
    instances = dict(ProviderRegistry._instances)
    yield
    ProviderRegistry._providers.clear()
    ProviderRegistry._providers.update(providers)
    ProviderRegistry._instances.clear()
    ProviderRegistry._instances.update(instances)


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def server_cache(tmp_path: Path) -> TieredAudioCache:
    return TieredAudioCache(tmp_path / "audio", memory_entries=10)


@pytest.fixture
def service(
    server_cache: TieredAudioCache, fake_provider: FakeProvider
) -> PronunciationService:
    return PronunciationService(
        cache=server_cache,
        provider=fake_provider,
        voice="en-US-Neural2-J",
        provider_name="fake",
    )
