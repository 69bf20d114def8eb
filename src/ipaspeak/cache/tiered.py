"""Server-side tiered audio cache.

Two tiers share one key space:

- a bounded in-memory LRU map, a non-durable subset used to skip disk reads
- a flat directory of ``{key}.mp3`` files, the durable source of truth

A suppression set sits in front of both. A reported key reads as a miss
until it is stored again, even while a physical copy still exists.
"""

import asyncio
import logging
import os
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from pathlib import Path

from . import get_cache_dir
from .errors import CacheWriteError
from .keys import CACHE_VERSION, CacheKey, key_version
from .models import CacheEntry

logger = logging.getLogger(__name__)

AUDIO_SUFFIX = ".mp3"


class TieredAudioCache:
    """Memory + filesystem cache for synthesized pronunciation audio.

    Memory, suppression and statistics state is guarded by a thread lock
    that is never held across an await or file operation. File I/O runs in
    worker threads.

    Example:
        cache = TieredAudioCache(Path("/var/cache/ipaspeak/audio"))
        key = derive_cache_key("record", "/ˈrɛkərd/")

        audio = await cache.get(key)
        if audio is None:
            audio = await provider.synthesize(build_ssml(...), voice)
            await cache.set(key, audio)
    """

    def __init__(
        self,
        cache_dir: Path | None = None,
        memory_entries: int = 100,
        ttl_seconds: float = 0,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the cache.

        Args:
            cache_dir: Directory for audio files (defaults to ~/.cache/ipaspeak/audio)
            memory_entries: Capacity of the memory tier; 0 disables it
            ttl_seconds: Entry lifetime; 0 or less means entries never expire
            clock: Time source returning Unix timestamps

        Raises:
            ValueError: If memory_entries is negative
        """
        if memory_entries < 0:
            raise ValueError(f"memory_entries must be >= 0, got {memory_entries}")

        self.cache_dir = cache_dir or get_cache_dir() / "audio"
        self.cache_dir.mkdir(parents=True, exist_ok=True)

        self.memory_entries = memory_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock

        self._lock = threading.Lock()
        self._memory: OrderedDict[str, CacheEntry] = OrderedDict()
        self._suppressed: set[str] = set()
        # Bumped by set, report and delete; a filesystem read only repopulates
        # memory if its key's generation is unchanged when the read returns
        self._generations: dict[str, int] = {}

        self._hits = 0
        self._misses = 0

        logger.debug(
            f"TieredAudioCache at {self.cache_dir} "
            f"(memory={memory_entries}, ttl={ttl_seconds}s)"
        )

    def _path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid cache key: {key!r}")
        return self.cache_dir / f"{key}{AUDIO_SUFFIX}"

    def _expired(self, stored_at: float) -> bool:
        if self.ttl_seconds <= 0:
            return False
        return self._clock() - stored_at > self.ttl_seconds

    def _entry_expired(self, entry: CacheEntry) -> bool:
        if self.ttl_seconds <= 0:
            return False
        return entry.age(self._clock()) > self.ttl_seconds

    def _bump(self, key: str) -> None:
        """Advance a key's generation. Caller must hold the lock."""
        self._generations[key] = self._generations.get(key, 0) + 1

    def _record(self, hit: bool) -> None:
        with self._lock:
            if hit:
                self._hits += 1
            else:
                self._misses += 1

    def _remember(self, entry: CacheEntry) -> None:
        """Insert or refresh a memory entry and evict least recently used.

        Caller must hold the lock.
        """
        if self.memory_entries == 0:
            return
        self._memory[entry.key] = entry
        self._memory.move_to_end(entry.key)
        while len(self._memory) > self.memory_entries:
            evicted, _ = self._memory.popitem(last=False)
            logger.debug(f"Evicted {evicted} from memory tier")

    def is_suppressed(self, key: CacheKey | str) -> bool:
        with self._lock:
            return str(key) in self._suppressed

    async def get(self, key: CacheKey | str) -> bytes | None:
        """Look up audio for a key.

        Suppressed keys miss. Memory is consulted before the filesystem, and
        a filesystem hit repopulates memory. Expired entries miss and are
        deleted. Filesystem read errors degrade to a miss.

        Args:
            key: Cache key

        Returns:
            Audio bytes, or None on a miss
        """
        key = str(key)
        path = self._path_for(key)

        memory_expired = False
        with self._lock:
            if key in self._suppressed:
                logger.debug(f"Cache miss (suppressed): {key}")
                self._misses += 1
                return None

            entry = self._memory.get(key)
            if entry is not None:
                if self._entry_expired(entry):
                    del self._memory[key]
                    memory_expired = True
                else:
                    self._memory.move_to_end(key)
                    self._hits += 1
                    logger.debug(f"Cache hit (memory): {key}")
                    return entry.audio

            generation = self._generations.get(key, 0)

        if memory_expired:
            logger.debug(f"Cache miss (expired): {key}")
            await self._discard_quietly(path)
            self._record(hit=False)
            return None

        entry = await asyncio.to_thread(self._read_file, key, path)
        if entry is None:
            logger.debug(f"Cache miss: {key}")
            self._record(hit=False)
            return None

        if self._entry_expired(entry):
            logger.debug(f"Cache miss (expired on disk): {key}")
            await self._discard_quietly(path)
            self._record(hit=False)
            return None

        with self._lock:
            # A report, delete or newer set may have landed during the read
            if key in self._suppressed:
                self._misses += 1
                return None
            if self._generations.get(key, 0) != generation:
                current = self._memory.get(key)
                if current is None:
                    self._misses += 1
                    logger.debug(f"Cache miss (changed during read): {key}")
                    return None
                self._memory.move_to_end(key)
                self._hits += 1
                logger.debug(f"Cache hit (memory, changed during read): {key}")
                return current.audio
            self._remember(entry)
            self._hits += 1

        logger.debug(f"Cache hit (filesystem): {key}")
        return entry.audio

    async def set(self, key: CacheKey | str, audio: bytes) -> None:
        """Store audio for a key in both tiers and clear any suppression.

        The file is written first; suppression is cleared and memory updated
        only after the write succeeded.

        Args:
            key: Cache key
            audio: Audio bytes to store

        Raises:
            CacheWriteError: If the filesystem write fails
        """
        key = str(key)
        path = self._path_for(key)

        try:
            await asyncio.to_thread(self._write_file, path, audio)
        except OSError as e:
            logger.error(f"Failed to write cache entry {key}: {e}")
            raise CacheWriteError(
                f"Failed to write cache entry {key}: {e}", key, e
            ) from e

        entry = CacheEntry(key=key, audio=audio, stored_at=self._clock())
        with self._lock:
            was_suppressed = key in self._suppressed
            self._suppressed.discard(key)
            self._bump(key)
            self._remember(entry)

        if was_suppressed:
            logger.info(f"Regenerated reported entry {key}")
        logger.debug(f"Cached {len(audio)} bytes as {key}")

    def report(self, key: CacheKey | str) -> None:
        """Suppress a key and evict it from memory.

        The filesystem copy is left alone; lookups miss until the next set.
        """
        key = str(key)
        with self._lock:
            self._suppressed.add(key)
            self._bump(key)
            self._memory.pop(key, None)
        logger.info(f"Suppressed cache entry {key}")

    async def delete(self, key: CacheKey | str) -> None:
        """Remove a key from memory and the filesystem.

        A missing file is not an error. The suppression mark is untouched.

        Raises:
            CacheWriteError: If an existing file cannot be removed
        """
        key = str(key)
        path = self._path_for(key)
        with self._lock:
            self._bump(key)
            self._memory.pop(key, None)

        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as e:
            logger.error(f"Failed to delete cache entry {key}: {e}")
            raise CacheWriteError(
                f"Failed to delete cache entry {key}: {e}", key, e
            ) from e
        logger.debug(f"Deleted cache entry {key}")

    async def prune_expired(self) -> int:
        """Delete expired entries from both tiers.

        Returns:
            Number of files removed
        """
        if self.ttl_seconds <= 0:
            return 0

        with self._lock:
            for key in [k for k, e in self._memory.items() if self._entry_expired(e)]:
                del self._memory[key]

        removed = await asyncio.to_thread(
            self._sweep_files, lambda path, stat: self._expired(stat.st_mtime)
        )
        if removed:
            logger.info(f"Pruned {removed} expired cache entries")
        return removed

    async def purge_old_versions(self, version: int = CACHE_VERSION) -> int:
        """Delete files whose key was derived under another markup version.

        Returns:
            Number of files removed
        """

        def stale(path: Path, stat: os.stat_result) -> bool:
            return key_version(path.stem) != version

        with self._lock:
            for key in [k for k in self._memory if key_version(k) != version]:
                del self._memory[key]

        removed = await asyncio.to_thread(self._sweep_files, stale)
        if removed:
            logger.info(f"Purged {removed} cache entries from other versions")
        return removed

    async def stats(self) -> dict:
        """Cache statistics for status reporting."""
        disk_entries = await asyncio.to_thread(self._count_files)
        with self._lock:
            return {
                "memory_entries": len(self._memory),
                "memory_capacity": self.memory_entries,
                "suppressed": len(self._suppressed),
                "disk_entries": disk_entries,
                "hits": self._hits,
                "misses": self._misses,
                "ttl_seconds": self.ttl_seconds,
            }

    def _read_file(self, key: str, path: Path) -> CacheEntry | None:
        try:
            stat = path.stat()
            audio = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Unreadable cache entry {key}, treating as miss: {e}")
            return None
        return CacheEntry(key=key, audio=audio, stored_at=stat.st_mtime)

    def _write_file(self, path: Path, audio: bytes) -> None:
        # Write to a sibling temp file and rename so readers never see a
        # partially written entry
        tmp_path = path.with_name(
            f".{path.name}.{os.getpid()}.{threading.get_ident()}.tmp"
        )
        try:
            tmp_path.write_bytes(audio)
            os.replace(tmp_path, path)
        except OSError:
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError as cleanup_error:
                logger.warning(
                    f"Failed to clean up partial cache file {tmp_path}: {cleanup_error}"
                )
            raise

    async def _discard_quietly(self, path: Path) -> None:
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to remove expired cache file {path}: {e}")

    def _sweep_files(
        self, should_remove: Callable[[Path, os.stat_result], bool]
    ) -> int:
        removed = 0
        for path in self.cache_dir.glob(f"*{AUDIO_SUFFIX}"):
            try:
                if should_remove(path, path.stat()):
                    path.unlink(missing_ok=True)
                    removed += 1
            except OSError as e:
                logger.warning(f"Skipping cache file {path} during sweep: {e}")
        return removed

    def _count_files(self) -> int:
        return sum(1 for _ in self.cache_dir.glob(f"*{AUDIO_SUFFIX}"))
