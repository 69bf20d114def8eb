"""Configuration management for ipaspeak.

Loads configuration from ~/.config/ipaspeak/config.toml.
Priority chain: CLI flags > env vars > config file.
"""

import os
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path

CONFIG_DIR = Path.home() / ".config" / "ipaspeak"
CONFIG_PATH = CONFIG_DIR / "config.toml"

DEFAULT_CONFIG = """\
# ipaspeak configuration

[synthesis]
# Provider: "google" (Google Cloud Text-to-Speech) or "elevenlabs"
provider = "google"

# Voice name. Google: en-US-Neural2-J, en-US-Wavenet-D, en-US-Standard-B, ...
# ElevenLabs: a voice ID
voice = "en-US-Neural2-J"

language_code = "en-US"

# Slightly slower than normal speech for learners
speaking_rate = 0.9

[http]
# Bind address: "127.0.0.1" = localhost only, "0.0.0.0" = allow LAN access
host = "127.0.0.1"
port = 8787

# Server the CLI client talks to
server_url = "http://127.0.0.1:8787"

# Reverse proxies whose X-Forwarded-For header identifies the client for rate
# limiting, e.g. ["127.0.0.1"]. The header is ignored from any other peer.
trusted_proxies = []

[cache]
# Server cache directory (default ~/.cache/ipaspeak/audio)
# server_dir = "/var/cache/ipaspeak/audio"

# Entries kept in the server memory tier
memory_entries = 100

# Server entry lifetime in days, 0 = never expire
server_ttl_days = 0

# Seconds between background sweeps of expired server entries, 0 = disabled
sweep_interval = 0

# Client store directory (default ~/.cache/ipaspeak/client)
# client_dir = "~/.cache/ipaspeak/client"

# Client entry lifetime in days
client_ttl_days = 30

[rate_limit]
synthesis_per_window = 30
report_per_window = 5
window_seconds = 60

# Credentials are read from environment variables, not this file:
#   GOOGLE_APPLICATION_CREDENTIALS  - path to a service account key file
#   GOOGLE_CLOUD_TTS_CREDENTIALS    - service account JSON contents
#   ELEVENLABS_API_KEY              - ElevenLabs provider
"""

DEFAULT_CACHE_ROOT = Path.home() / ".cache" / "ipaspeak"


@dataclass(frozen=True)
class SynthesisConfig:
    """Synthesis provider configuration."""

    provider: str
    voice: str
    language_code: str = "en-US"
    speaking_rate: float = 0.9


@dataclass(frozen=True)
class HTTPConfig:
    """HTTP server and client configuration."""

    host: str
    port: int
    server_url: str
    trusted_proxies: tuple[str, ...] = ()


@dataclass(frozen=True)
class CacheConfig:
    """Server and client cache configuration."""

    server_dir: Path
    client_dir: Path
    memory_entries: int = 100
    server_ttl_days: float = 0
    sweep_interval: float = 0
    client_ttl_days: float = 30

    @property
    def server_ttl_seconds(self) -> float:
        return self.server_ttl_days * 86400

    @property
    def client_ttl_seconds(self) -> float:
        return self.client_ttl_days * 86400


@dataclass(frozen=True)
class RateLimitConfig:
    """Per-client request ceilings."""

    synthesis_per_window: int = 30
    report_per_window: int = 5
    window_seconds: float = 60


@dataclass(frozen=True)
class IpaspeakConfig:
    """Top-level ipaspeak configuration."""

    synthesis: SynthesisConfig
    http: HTTPConfig
    cache: CacheConfig
    rate_limit: RateLimitConfig


_cached_config: IpaspeakConfig | None = None


def generate_config(path: Path = CONFIG_PATH) -> Path:
    """Generate default config file at ~/.config/ipaspeak/config.toml."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG)
    return path


def _expand(value: str | None, default: Path) -> Path:
    return Path(value).expanduser() if value else default


def parse_config(data: dict) -> IpaspeakConfig:
    """Build config from parsed TOML data with env var overrides.

    Raises:
        ValueError: If required values are missing or malformed
    """
    synthesis = data.get("synthesis", {})
    http_cfg = data.get("http", {})
    cache = data.get("cache", {})
    limits = data.get("rate_limit", {})

    missing = []
    if "provider" not in synthesis:
        missing.append("synthesis.provider")
    if "voice" not in synthesis:
        missing.append("synthesis.voice")
    if "host" not in http_cfg:
        missing.append("http.host")
    if missing:
        raise ValueError(f"Missing required config values: {', '.join(missing)}")

    # Env vars override config file values
    port = int(os.getenv("IPASPEAK_HTTP_PORT", str(http_cfg.get("port", 8787))))
    host = os.getenv("IPASPEAK_HTTP_HOST", http_cfg["host"])
    cache_root = os.getenv("IPASPEAK_CACHE_DIR")

    if cache_root:
        server_dir = Path(cache_root).expanduser() / "audio"
        client_dir = Path(cache_root).expanduser() / "client"
    else:
        server_dir = _expand(cache.get("server_dir"), DEFAULT_CACHE_ROOT / "audio")
        client_dir = _expand(cache.get("client_dir"), DEFAULT_CACHE_ROOT / "client")

    return IpaspeakConfig(
        synthesis=SynthesisConfig(
            provider=os.getenv("IPASPEAK_PROVIDER", synthesis["provider"]),
            voice=os.getenv("IPASPEAK_VOICE", synthesis["voice"]),
            language_code=synthesis.get("language_code", "en-US"),
            speaking_rate=float(synthesis.get("speaking_rate", 0.9)),
        ),
        http=HTTPConfig(
            host=host,
            port=port,
            server_url=os.getenv(
                "IPASPEAK_SERVER_URL",
                http_cfg.get("server_url", f"http://{host}:{port}"),
            ),
            trusted_proxies=tuple(
                str(proxy) for proxy in http_cfg.get("trusted_proxies", [])
            ),
        ),
        cache=CacheConfig(
            server_dir=server_dir,
            client_dir=client_dir,
            memory_entries=int(cache.get("memory_entries", 100)),
            server_ttl_days=float(cache.get("server_ttl_days", 0)),
            sweep_interval=float(cache.get("sweep_interval", 0)),
            client_ttl_days=float(cache.get("client_ttl_days", 30)),
        ),
        rate_limit=RateLimitConfig(
            synthesis_per_window=int(limits.get("synthesis_per_window", 30)),
            report_per_window=int(limits.get("report_per_window", 5)),
            window_seconds=float(limits.get("window_seconds", 60)),
        ),
    )


def load_config(path: Path | None = None) -> IpaspeakConfig:
    """Load configuration from config file with env var overrides.

    On first run, generates the config file and exits so the user
    can review it before proceeding.

    Args:
        path: Config file to read instead of ~/.config/ipaspeak/config.toml

    Returns:
        Loaded and validated IpaspeakConfig.

    Raises:
        SystemExit: If config is missing (after generating) or invalid.
    """
    global _cached_config
    if _cached_config is not None and path is None:
        return _cached_config

    config_path = path or CONFIG_PATH

    if not config_path.exists():
        generated = generate_config(config_path)
        print(
            f"No config found. Generated {generated}, review it and run again.",
            file=sys.stderr,
        )
        raise SystemExit(1)

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
        config = parse_config(data)
    except (tomllib.TOMLDecodeError, ValueError) as e:
        print(f"Invalid config: {e}", file=sys.stderr)
        print(f"Edit {config_path} or delete it to regenerate.", file=sys.stderr)
        raise SystemExit(1) from e

    if path is None:
        _cached_config = config
    return config
