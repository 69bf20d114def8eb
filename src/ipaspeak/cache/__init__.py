"""Cache management for ipaspeak pronunciation audio."""

import os
from pathlib import Path


def get_cache_dir() -> Path:
    """Get or create the ipaspeak cache directory.

    Uses $IPASPEAK_CACHE_DIR when set, otherwise ~/.cache/ipaspeak/. Creates
    the ``audio`` (server tier) and ``client`` (persistent store)
    subdirectories if they don't exist.

    Returns:
        Path to the cache directory
    """
    override = os.getenv("IPASPEAK_CACHE_DIR")
    cache_dir = Path(override) if override else Path.home() / ".cache" / "ipaspeak"
    cache_dir.mkdir(parents=True, exist_ok=True)

    (cache_dir / "audio").mkdir(exist_ok=True)
    (cache_dir / "client").mkdir(exist_ok=True)

    return cache_dir
