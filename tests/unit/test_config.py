"""Unit tests for configuration loading."""

import sys
import tomllib
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from ipaspeak.config import (
    DEFAULT_CACHE_ROOT,
    DEFAULT_CONFIG,
    generate_config,
    load_config,
    parse_config,
)

MINIMAL = {
    "synthesis": {"provider": "google", "voice": "en-US-Neural2-J"},
    "http": {"host": "127.0.0.1"},
}


class TestParseConfig:
    """Test building config from parsed TOML."""

    def test_default_config_parses(self) -> None:
        config = parse_config(tomllib.loads(DEFAULT_CONFIG))

        assert config.synthesis.provider == "google"
        assert config.synthesis.voice == "en-US-Neural2-J"
        assert config.synthesis.speaking_rate == 0.9
        assert config.http.port == 8787
        assert config.http.server_url == "http://127.0.0.1:8787"
        assert config.cache.memory_entries == 100
        assert config.cache.server_ttl_days == 0
        assert config.rate_limit.synthesis_per_window == 30
        assert config.rate_limit.report_per_window == 5
        assert config.rate_limit.window_seconds == 60
        assert config.http.trusted_proxies == ()

    def test_minimal_config_uses_defaults(self) -> None:
        config = parse_config(MINIMAL)

        assert config.cache.server_dir == DEFAULT_CACHE_ROOT / "audio"
        assert config.cache.client_dir == DEFAULT_CACHE_ROOT / "client"
        assert config.cache.client_ttl_days == 30
        assert config.http.server_url == "http://127.0.0.1:8787"

    def test_trusted_proxies(self) -> None:
        data = dict(MINIMAL, http={"host": "0.0.0.0", "trusted_proxies": ["127.0.0.1", "::1"]})

        assert parse_config(data).http.trusted_proxies == ("127.0.0.1", "::1")

    def test_missing_required_values(self) -> None:
        with pytest.raises(ValueError, match="synthesis.voice, http.host"):
            parse_config({"synthesis": {"provider": "google"}})

    def test_ttl_seconds(self) -> None:
        data = dict(MINIMAL, cache={"server_ttl_days": 2, "client_ttl_days": 0.5})
        config = parse_config(data)

        assert config.cache.server_ttl_seconds == 2 * 86400
        assert config.cache.client_ttl_seconds == 43200

    def test_cache_dirs_expand_user(self) -> None:
        data = dict(MINIMAL, cache={"server_dir": "~/tts-audio"})
        config = parse_config(data)

        assert config.cache.server_dir == Path.home() / "tts-audio"

    def test_env_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("IPASPEAK_PROVIDER", "elevenlabs")
        monkeypatch.setenv("IPASPEAK_VOICE", "voice-123")
        monkeypatch.setenv("IPASPEAK_HTTP_HOST", "0.0.0.0")
        monkeypatch.setenv("IPASPEAK_HTTP_PORT", "9000")
        monkeypatch.setenv("IPASPEAK_SERVER_URL", "http://tts.internal:9000")

        config = parse_config(MINIMAL)

        assert config.synthesis.provider == "elevenlabs"
        assert config.synthesis.voice == "voice-123"
        assert config.http.host == "0.0.0.0"
        assert config.http.port == 9000
        assert config.http.server_url == "http://tts.internal:9000"

    def test_cache_dir_env_override(self, monkeypatch) -> None:
        monkeypatch.setenv("IPASPEAK_CACHE_DIR", "/tmp/ipaspeak-cache")
        data = dict(MINIMAL, cache={"server_dir": "/elsewhere"})

        config = parse_config(data)

        assert config.cache.server_dir == Path("/tmp/ipaspeak-cache/audio")
        assert config.cache.client_dir == Path("/tmp/ipaspeak-cache/client")


class TestLoadConfig:
    """Test reading config files from disk."""

    def test_missing_file_is_generated_then_exits(self) -> None:
        with TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "ipaspeak" / "config.toml"

            with pytest.raises(SystemExit) as exc_info:
                load_config(path)

            assert exc_info.value.code == 1
            assert path.read_text() == DEFAULT_CONFIG

    def test_loads_existing_file(self) -> None:
        with TemporaryDirectory() as temp_dir:
            path = generate_config(Path(temp_dir) / "config.toml")

            config = load_config(path)

            assert config.synthesis.provider == "google"

    def test_invalid_toml_exits(self) -> None:
        with TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "config.toml"
            path.write_text("[synthesis\nprovider = ")

            with pytest.raises(SystemExit):
                load_config(path)

    def test_missing_values_exit(self) -> None:
        with TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "config.toml"
            path.write_text('[synthesis]\nprovider = "google"\n')

            with pytest.raises(SystemExit):
                load_config(path)

    def test_explicit_path_is_not_cached(self) -> None:
        with TemporaryDirectory() as temp_dir:
            first = Path(temp_dir) / "first.toml"
            second = Path(temp_dir) / "second.toml"
            generate_config(first)
            second.write_text(DEFAULT_CONFIG.replace('provider = "google"', 'provider = "elevenlabs"'))

            assert load_config(first).synthesis.provider == "google"
            assert load_config(second).synthesis.provider == "elevenlabs"
