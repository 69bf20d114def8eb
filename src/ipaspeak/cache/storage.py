"""SQLite persistent store for client-side pronunciation audio."""

import logging
import sqlite3
import time
from collections.abc import Callable
from pathlib import Path

from .keys import CACHE_VERSION, CacheKey

logger = logging.getLogger(__name__)

# Layout of the audio table. Opening a store written under any other layout
# clears it outright.
SCHEMA_VERSION = 2

DEFAULT_TTL_SECONDS = 30 * 24 * 60 * 60


class ClientAudioStore:
    """SQLite-based persistent audio store for the client tier.

    Rows are keyed by the same derived cache key the server uses and carry
    the markup version they were stored under, so entries from an older
    version are never looked up again and can be purged in bulk.
    """

    def __init__(
        self,
        cache_dir: Path,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the store with its database in the given directory.

        Args:
            cache_dir: Directory containing the store database
            ttl_seconds: Entry lifetime; 0 or less means entries never expire
            clock: Time source returning Unix timestamps
        """
        self.cache_dir = cache_dir
        cache_dir.mkdir(parents=True, exist_ok=True)

        self.db_path = cache_dir / "audio.db"
        self.ttl_seconds = ttl_seconds
        self._clock = clock

        self._init_db_with_wal()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection with WAL mode for concurrency."""
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=30.0,  # 30 second timeout if locked
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA busy_timeout=30000")
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    def _init_db_with_wal(self) -> None:
        conn = self._get_connection()
        try:
            self._init_db(conn)
        finally:
            conn.close()

    def _init_db(self, conn: sqlite3.Connection) -> None:
        """Create the schema, wiping the store if it was written under another layout."""
        stored_version = conn.execute("PRAGMA user_version").fetchone()[0]

        if stored_version != SCHEMA_VERSION:
            if stored_version != 0:
                logger.info(
                    f"Client store schema {stored_version} is incompatible with "
                    f"{SCHEMA_VERSION}, clearing {self.db_path}"
                )
            # Rows from another layout cannot be told apart reliably, so the
            # whole table goes rather than individual entries
            conn.execute("DROP TABLE IF EXISTS audio")

        conn.execute("""
            CREATE TABLE IF NOT EXISTS audio (
                key TEXT PRIMARY KEY,
                version INTEGER NOT NULL,
                audio BLOB NOT NULL,
                stored_at REAL NOT NULL
            )
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_audio_stored_at
            ON audio(stored_at)
        """)
        conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        conn.commit()

    def _expired(self, stored_at: float) -> bool:
        if self.ttl_seconds <= 0:
            return False
        return self._clock() - stored_at > self.ttl_seconds

    def get(self, key: CacheKey | str) -> bytes | None:
        """Retrieve audio for a key.

        Expired rows are deleted on read and reported as missing.

        Args:
            key: Cache key to look up

        Returns:
            Audio bytes if present and fresh, None otherwise
        """
        key = str(key)
        conn = self._get_connection()
        try:
            row = conn.execute(
                "SELECT audio, stored_at FROM audio WHERE key = ?", (key,)
            ).fetchone()
            if row is None:
                return None
            if self._expired(row["stored_at"]):
                conn.execute("DELETE FROM audio WHERE key = ?", (key,))
                conn.commit()
                logger.debug(f"Dropped expired client entry {key}")
                return None
            return bytes(row["audio"])
        finally:
            conn.close()

    def put(self, key: CacheKey, audio: bytes) -> None:
        """Store audio for a key, replacing any existing row."""
        conn = self._get_connection()
        try:
            conn.execute(
                """
                INSERT INTO audio (key, version, audio, stored_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    version = excluded.version,
                    audio = excluded.audio,
                    stored_at = excluded.stored_at
            """,
                (str(key), key.version, sqlite3.Binary(audio), self._clock()),
            )
            conn.commit()
        finally:
            conn.close()

    def remove(self, key: CacheKey | str) -> bool:
        """Delete a key. Returns whether a row was removed."""
        conn = self._get_connection()
        try:
            cursor = conn.execute("DELETE FROM audio WHERE key = ?", (str(key),))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def prune_expired(self) -> int:
        """Delete all expired rows. Returns the number deleted."""
        if self.ttl_seconds <= 0:
            return 0
        cutoff = self._clock() - self.ttl_seconds
        conn = self._get_connection()
        try:
            cursor = conn.execute("DELETE FROM audio WHERE stored_at < ?", (cutoff,))
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()

    def purge_old_versions(self, version: int = CACHE_VERSION) -> int:
        """Delete rows stored under any other markup version. Returns the number deleted."""
        conn = self._get_connection()
        try:
            cursor = conn.execute("DELETE FROM audio WHERE version != ?", (version,))
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()

    def clear(self) -> None:
        conn = self._get_connection()
        try:
            conn.execute("DELETE FROM audio")
            conn.commit()
        finally:
            conn.close()

    def count(self) -> int:
        conn = self._get_connection()
        try:
            return conn.execute("SELECT COUNT(*) FROM audio").fetchone()[0]
        finally:
            conn.close()
