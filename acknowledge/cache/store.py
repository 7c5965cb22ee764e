"""Persistent key -> bytes store backing registry and contributor lookups.

Entries live under ``<directory>/<digest[:2]>/<digest>`` where ``digest`` is the
SHA-256 of the key. Each file holds one JSON header line followed by the raw
payload, so a truncated or foreign file is detected on read and reported as a
miss. There is no expiry; ``clear()`` is the only way to drop stale data.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import shutil
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from acknowledge.errors import CacheCorruptionError

logger = logging.getLogger(__name__)

_FORMAT_VERSION = 1


class CacheEntry(BaseModel):
    """A single stored value with its write time."""

    model_config = ConfigDict(frozen=True)

    key: str
    payload: bytes
    written_at: datetime


def digest_key(key: str) -> str:
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


class CacheStore:
    """Filesystem cache, safe for concurrent writes of distinct keys."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory).expanduser()
        self._lock = threading.Lock()

    def _path_for(self, key: str) -> Path:
        digest = digest_key(key)
        return self.directory / digest[:2] / digest

    def read_entry(self, key: str) -> CacheEntry | None:
        """Return the stored entry, or None if absent.

        Raises CacheCorruptionError if a file exists but cannot be decoded.
        """
        path = self._path_for(key)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None

        header_line, sep, payload = raw.partition(b"\n")
        if not sep:
            raise CacheCorruptionError(key, "missing header")
        try:
            header = json.loads(header_line)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CacheCorruptionError(key, f"unreadable header: {e}") from e
        if not isinstance(header, dict) or header.get("v") != _FORMAT_VERSION:
            raise CacheCorruptionError(key, "unknown format")
        if header.get("key") != key:
            raise CacheCorruptionError(key, "key mismatch")
        if header.get("size") != len(payload):
            raise CacheCorruptionError(key, "truncated payload")
        try:
            written_at = datetime.fromisoformat(header["written_at"])
        except (KeyError, TypeError, ValueError) as e:
            raise CacheCorruptionError(key, f"bad timestamp: {e}") from e
        return CacheEntry(key=key, payload=payload, written_at=written_at)

    def get(self, key: str) -> bytes | None:
        """Return the payload for key. Corrupt entries count as a miss."""
        try:
            entry = self.read_entry(key)
        except CacheCorruptionError as e:
            logger.warning("%s; treating as a miss", e)
            return None
        if entry is None:
            logger.debug("cache MISS: %s", key)
            return None
        logger.debug("cache HIT: %s", key)
        return entry.payload

    def set(self, key: str, payload: bytes) -> None:
        """Write payload for key, replacing any previous entry atomically."""
        path = self._path_for(key)
        header = {
            "v": _FORMAT_VERSION,
            "key": key,
            "size": len(payload),
            "written_at": datetime.now(timezone.utc).isoformat(),
        }
        data = json.dumps(header).encode("utf-8") + b"\n" + payload

        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("cache WRITE: %s (%d bytes)", key, len(payload))

    def clear(self) -> int:
        """Remove every entry. Returns the number of entries removed."""
        with self._lock:
            count = self.count()
            if self.directory.exists():
                shutil.rmtree(self.directory)
        logger.info("cleared %d cache entries from %s", count, self.directory)
        return count

    def count(self) -> int:
        if not self.directory.exists():
            return 0
        return sum(
            1
            for p in self.directory.glob("*/*")
            if p.is_file() and not p.name.startswith(".tmp-")
        )


class NullCache(CacheStore):
    """Cache that never stores anything, used when caching is disabled."""

    def __init__(self) -> None:
        super().__init__(Path(os.devnull))

    def read_entry(self, key: str) -> CacheEntry | None:
        return None

    def get(self, key: str) -> bytes | None:
        return None

    def set(self, key: str, payload: bytes) -> None:
        return None

    def clear(self) -> int:
        return 0

    def count(self) -> int:
        return 0
