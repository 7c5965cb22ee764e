"""Tests for acknowledge.cache: file store, corruption handling, clearing."""

import pytest

from acknowledge.cache import CacheStore, NullCache, create_cache, digest_key
from acknowledge.config.models import CacheConfig
from acknowledge.errors import CacheCorruptionError


# ── get / set ───────────────────────────────────────────────────────


class TestCacheStore:
    def test_miss_returns_none(self, cache):
        assert cache.get("contributors:github:github.com/a/b") is None

    def test_set_then_get(self, cache):
        cache.set("k", b"payload")
        assert cache.get("k") == b"payload"

    def test_overwrite_replaces_value(self, cache):
        cache.set("k", b"old")
        cache.set("k", b"new")
        assert cache.get("k") == b"new"

    def test_entry_records_key_and_time(self, cache):
        cache.set("k", b"x")
        entry = cache.read_entry("k")
        assert entry.key == "k"
        assert entry.written_at.tzinfo is not None

    def test_sharded_layout(self, cache):
        cache.set("k", b"x")
        digest = digest_key("k")
        assert (cache.directory / digest[:2] / digest).is_file()

    def test_empty_payload(self, cache):
        cache.set("k", b"")
        assert cache.get("k") == b""

    def test_persists_across_instances(self, tmp_path):
        CacheStore(tmp_path / "c").set("k", b"v")
        assert CacheStore(tmp_path / "c").get("k") == b"v"

    def test_no_temp_files_left_behind(self, cache):
        cache.set("k", b"x")
        leftovers = [p for p in cache.directory.rglob(".tmp-*")]
        assert leftovers == []


# ── Corruption ──────────────────────────────────────────────────────


class TestCorruption:
    def _path(self, cache, key):
        digest = digest_key(key)
        return cache.directory / digest[:2] / digest

    def test_truncated_payload_is_corrupt(self, cache):
        cache.set("k", b"0123456789")
        path = self._path(cache, "k")
        path.write_bytes(path.read_bytes()[:-3])
        with pytest.raises(CacheCorruptionError, match="truncated"):
            cache.read_entry("k")

    def test_garbage_header_is_corrupt(self, cache):
        cache.set("k", b"x")
        self._path(cache, "k").write_bytes(b"not json\npayload")
        with pytest.raises(CacheCorruptionError):
            cache.read_entry("k")

    def test_missing_header_is_corrupt(self, cache):
        cache.set("k", b"x")
        self._path(cache, "k").write_bytes(b"no newline at all")
        with pytest.raises(CacheCorruptionError, match="missing header"):
            cache.read_entry("k")

    def test_corrupt_entry_is_a_miss_for_get(self, cache, caplog):
        cache.set("k", b"x")
        self._path(cache, "k").write_bytes(b"junk")
        assert cache.get("k") is None
        assert "corrupt cache entry" in caplog.text


# ── clear / count ───────────────────────────────────────────────────


class TestClear:
    def test_clear_removes_everything(self, cache):
        for i in range(3):
            cache.set(f"k{i}", b"x")
        assert cache.count() == 3
        assert cache.clear() == 3
        assert cache.count() == 0
        assert cache.get("k0") is None

    def test_clear_on_missing_directory(self, tmp_path):
        assert CacheStore(tmp_path / "never-created").clear() == 0

    def test_set_after_clear(self, cache):
        cache.set("k", b"x")
        cache.clear()
        cache.set("k", b"y")
        assert cache.get("k") == b"y"


# ── create_cache ────────────────────────────────────────────────────


class TestCreateCache:
    def test_disabled_returns_null_cache(self):
        store = create_cache(CacheConfig(enabled=False))
        assert isinstance(store, NullCache)
        store.set("k", b"x")
        assert store.get("k") is None

    def test_expands_home(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        store = create_cache(CacheConfig(directory="~/ack-cache"))
        assert store.directory == tmp_path / "ack-cache"
