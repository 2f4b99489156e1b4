"""
Unit tests for the per-file metadata cache.

Tests change classification by a single probe: creation, deletion,
modification, timestamp-only changes, and failure handling that must
leave the cached entry untouched.
"""

import zlib
from unittest.mock import patch

import pytest

from cfgswitch.models import ChangeType
from cfgswitch.monitoring import MetadataCache, compute_checksum, inspect_file, stat_file


@pytest.mark.unit
class TestFileHelpers:
    """Test cases for stat and checksum helpers."""

    def test_stat_missing_file(self, temp_dir):
        assert stat_file(temp_dir / "missing.json") is None

    def test_stat_existing_file(self, temp_dir):
        path = temp_dir / "a.json"
        path.write_bytes(b"12345")
        mtime_ns, size = stat_file(path)
        assert size == 5
        assert mtime_ns == path.stat().st_mtime_ns

    def test_checksum_matches_crc32(self, temp_dir):
        path = temp_dir / "big.json"
        data = b"x" * (200 * 1024) + b"tail"
        path.write_bytes(data)
        assert compute_checksum(path) == zlib.crc32(data)


@pytest.mark.unit
class TestMetadataCacheProbe:
    """Test cases for MetadataCache.probe."""

    def test_absent_without_cache_is_noop(self, temp_dir):
        cache = MetadataCache()
        assert cache.probe(temp_dir / "missing.json") is None
        assert len(cache) == 0

    def test_created(self, temp_dir):
        cache = MetadataCache()
        path = temp_dir / "a.json"
        path.write_text("{}")

        assert cache.probe(path) is ChangeType.CREATED
        assert path in cache
        assert cache.get(path).size == 2

    def test_unchanged_file_is_not_rehashed(self, temp_dir):
        cache = MetadataCache()
        path = temp_dir / "a.json"
        path.write_text("{}")
        cache.probe(path)

        with patch("cfgswitch.monitoring.metadata_cache.compute_checksum") as checksum:
            for _ in range(5):
                assert cache.probe(path) is None
        checksum.assert_not_called()

    def test_modified(self, temp_dir, test_utils):
        cache = MetadataCache()
        path = temp_dir / "a.json"
        path.write_text('{"a": 1}')
        cache.probe(path)

        path.write_text('{"a": 2}')
        test_utils.bump_mtime(path)

        assert cache.probe(path) is ChangeType.MODIFIED
        assert cache.get(path).checksum == zlib.crc32(b'{"a": 2}')

    def test_timestamp_only_change_refreshes_silently(self, temp_dir, test_utils):
        cache = MetadataCache()
        path = temp_dir / "a.json"
        path.write_text("{}")
        cache.probe(path)
        before = cache.get(path)

        test_utils.bump_mtime(path)

        assert cache.probe(path) is None
        after = cache.get(path)
        assert after.checksum == before.checksum
        assert after.modified_time == path.stat().st_mtime_ns

    def test_deleted(self, temp_dir):
        cache = MetadataCache()
        path = temp_dir / "a.json"
        path.write_text("{}")
        cache.probe(path)

        path.unlink()

        assert cache.probe(path) is ChangeType.DELETED
        assert path not in cache
        assert cache.probe(path) is None

    def test_deleted_between_stat_and_read(self, temp_dir, test_utils):
        cache = MetadataCache()
        path = temp_dir / "a.json"
        path.write_text("{}")
        cache.probe(path)
        test_utils.bump_mtime(path)

        with patch(
            "cfgswitch.monitoring.metadata_cache.compute_checksum",
            side_effect=FileNotFoundError("gone"),
        ):
            assert cache.probe(path) is ChangeType.DELETED
        assert path not in cache

    def test_read_failure_keeps_previous_entry(self, temp_dir, test_utils):
        cache = MetadataCache()
        path = temp_dir / "a.json"
        path.write_text("{}")
        cache.probe(path)
        before = cache.get(path)
        test_utils.bump_mtime(path)

        with patch(
            "cfgswitch.monitoring.metadata_cache.compute_checksum",
            side_effect=PermissionError("denied"),
        ):
            with pytest.raises(PermissionError):
                cache.probe(path)

        assert cache.get(path) == before

    def test_discard_and_clear(self, temp_dir):
        cache = MetadataCache()
        paths = []
        for name in ("a", "b"):
            path = temp_dir / f"{name}.json"
            path.write_text("{}")
            cache.probe(path)
            paths.append(path)

        cache.discard(paths[0])
        cache.discard(paths[0])
        assert list(cache) == [paths[1]]
        cache.clear()
        assert len(cache) == 0

    def test_invalid_size_limit(self):
        with pytest.raises(ValueError):
            MetadataCache(size_limit=0)


@pytest.mark.unit
class TestInspectFile:
    """Test cases for classifying a file without a cache."""

    def test_leaves_cache_to_caller(self, temp_dir):
        cache = MetadataCache()
        path = temp_dir / "a.json"
        path.write_text("{}")

        change_type, entry = inspect_file(path, None)

        assert change_type is ChangeType.CREATED
        assert entry.size == 2
        assert len(cache) == 0

    def test_unchanged_returns_cached_entry(self, temp_dir):
        path = temp_dir / "a.json"
        path.write_text("{}")
        _, entry = inspect_file(path, None)

        assert inspect_file(path, entry) == (None, entry)

    def test_missing_file(self, temp_dir):
        path = temp_dir / "a.json"
        path.write_text("{}")
        _, entry = inspect_file(path, None)
        path.unlink()

        assert inspect_file(path, entry) == (ChangeType.DELETED, None)
        assert inspect_file(path, None) == (None, None)
