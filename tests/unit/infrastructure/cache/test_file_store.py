import os
import time
from pathlib import Path

import pytest

from fscache.domain.exceptions import ConfigError, StorageError
from fscache.infrastructure.cache import key_codec
from fscache.infrastructure.cache.file_store import (
    HEADER_SIZE,
    MAGIC,
    STALE_TEMP_SECONDS,
    TEMP_PREFIX,
    FileStore,
    validate_prefix,
)


def _entry_path(store: FileStore, key: str) -> Path:
    return store.directory / key_codec.encode(key)


def test_init_rejects_missing_root(tmp_path: Path):
    with pytest.raises(ConfigError, match="does not exist"):
        FileStore(tmp_path / "missing")


def test_init_rejects_file_as_root(tmp_path: Path):
    not_a_dir = tmp_path / "file"
    not_a_dir.write_text("x")
    with pytest.raises(ConfigError, match="not a directory"):
        FileStore(not_a_dir)


def test_init_rejects_unwritable_root(cache_root: Path, mocker):
    mocker.patch("fscache.infrastructure.cache.file_store.os.access", return_value=False)
    with pytest.raises(ConfigError, match="not writable"):
        FileStore(cache_root)


def test_namespace_directory_is_created_lazily(cache_root: Path):
    store = FileStore(cache_root, "lazy")
    assert not store.directory.exists()
    store.put("/k", b"v", time.time() + 60)
    assert store.directory.is_dir()
    if os.name == "posix":
        assert (store.directory.stat().st_mode & 0o777) == 0o700


def test_namespace_creation_tolerates_existing_directory(cache_root: Path):
    (cache_root / "shared").mkdir()
    store = FileStore(cache_root, "shared")
    store.put("/k", b"v", time.time() + 60)
    assert store.get("/k") == (b"v", True)


@pytest.mark.parametrize("prefix, expected", [
    (None, "default"),
    ("", "default"),
    ("reports", "reports"),
    ("reports/daily/", "reports/daily"),
    ("./reports", "reports"),
])
def test_validate_prefix(prefix, expected):
    assert validate_prefix(prefix) == expected


@pytest.mark.parametrize("prefix", ["/etc", "../outside", "a/../../b"])
def test_validate_prefix_rejects_escaping_paths(prefix):
    with pytest.raises(ConfigError):
        validate_prefix(prefix)


def test_put_then_get(file_store: FileStore):
    file_store.put("/users/42", b"payload", time.time() + 60)
    assert file_store.get("/users/42") == (b"payload", True)
    assert file_store.exists("/users/42")


def test_entry_file_layout(file_store: FileStore):
    expires_at = time.time() + 60
    file_store.put("/users/42", b"payload", expires_at)
    data = _entry_path(file_store, "/users/42").read_bytes()
    assert data.startswith(MAGIC)
    assert data[HEADER_SIZE:] == b"payload"


def test_get_missing_key(file_store: FileStore):
    assert file_store.get("/nope") == (None, False)
    assert not file_store.exists("/nope")


def test_expired_entry_is_deleted_on_read(file_store: FileStore):
    file_store.put("/old", b"v", time.time() - 1)
    path = _entry_path(file_store, "/old")
    assert path.exists()
    assert file_store.get("/old") == (None, False)
    assert not path.exists()


def test_exists_removes_expired_entry(file_store: FileStore):
    file_store.put("/old", b"v", time.time() - 1)
    assert not file_store.exists("/old")
    assert not _entry_path(file_store, "/old").exists()


def test_corrupt_entry_is_treated_as_missing(file_store: FileStore):
    file_store.put("/k", b"v", time.time() + 60)
    path = _entry_path(file_store, "/k")
    path.write_bytes(b"garbage")
    assert file_store.get("/k") == (None, False)
    assert not path.exists()


def test_failed_cleanup_of_expired_entry_is_swallowed(file_store: FileStore, mocker):
    file_store.put("/old", b"v", time.time() - 1)
    mocker.patch.object(Path, "unlink", side_effect=PermissionError("denied"))
    assert file_store.get("/old") == (None, False)


def test_put_replaces_existing_entry(file_store: FileStore):
    file_store.put("/k", b"first", time.time() + 60)
    file_store.put("/k", b"second", time.time() + 60)
    assert file_store.get("/k") == (b"second", True)
    assert len(list(file_store.directory.iterdir())) == 1


def test_put_failure_raises_storage_error_and_leaves_no_files(file_store: FileStore, mocker):
    file_store.put("/other", b"v", time.time() + 60)
    mocker.patch("fscache.infrastructure.cache.file_store.os.replace", side_effect=OSError(28, "No space left on device"))
    with pytest.raises(StorageError):
        file_store.put("/k", b"v", time.time() + 60)
    names = [p.name for p in file_store.directory.iterdir()]
    assert names == [key_codec.encode("/other")]


def test_delete_is_idempotent(file_store: FileStore):
    file_store.put("/k", b"v", time.time() + 60)
    file_store.delete("/k")
    file_store.delete("/k")
    file_store.delete("/never-written")
    assert file_store.get("/k") == (None, False)


def test_delete_failure_raises_storage_error(file_store: FileStore, mocker):
    file_store.put("/k", b"v", time.time() + 60)
    mocker.patch.object(Path, "unlink", side_effect=PermissionError("denied"))
    with pytest.raises(StorageError):
        file_store.delete("/k")


def test_clear_only_affects_own_namespace(cache_root: Path):
    first = FileStore(cache_root, "first")
    second = FileStore(cache_root, "second")
    nested = FileStore(cache_root, "first/nested")
    for store in (first, second, nested):
        store.put("/k", b"v", time.time() + 60)

    assert first.clear() == 1

    assert first.get("/k") == (None, False)
    assert first.directory.is_dir()
    assert second.get("/k") == (b"v", True)
    assert nested.get("/k") == (b"v", True)


def test_clear_on_missing_namespace(cache_root: Path):
    assert FileStore(cache_root, "never-used").clear() == 0


def test_clear_keeps_temp_files_of_active_writers(file_store: FileStore):
    file_store.put("/k", b"v", time.time() + 60)
    temp = file_store.directory / f"{TEMP_PREFIX}inflight"
    temp.write_bytes(b"partial")
    assert file_store.clear() == 1
    assert temp.exists()


def test_sweep_removes_expired_corrupt_and_stale_temp_files(file_store: FileStore):
    now = time.time()
    file_store.put("/fresh", b"v", now + 60)
    file_store.put("/old", b"v", now - 1)
    (file_store.directory / "junk").write_bytes(b"not an entry")
    stale_temp = file_store.directory / f"{TEMP_PREFIX}stale"
    stale_temp.write_bytes(b"partial")
    old = now - STALE_TEMP_SECONDS - 10
    os.utime(stale_temp, (old, old))
    young_temp = file_store.directory / f"{TEMP_PREFIX}young"
    young_temp.write_bytes(b"partial")

    assert file_store.sweep() == 3

    assert file_store.get("/fresh") == (b"v", True)
    assert not stale_temp.exists()
    assert young_temp.exists()


def test_stats(file_store: FileStore):
    now = time.time()
    file_store.put("/a", b"12345", now + 60)
    file_store.put("/b", b"123", now - 1)
    (file_store.directory / f"{TEMP_PREFIX}x").write_bytes(b"")

    stats = file_store.stats()

    assert stats.directory == str(file_store.directory)
    assert stats.entries == 2
    assert stats.expired == 1
    assert stats.total_bytes == 8
    assert stats.temp_files == 1


def test_discard(file_store: FileStore, mocker):
    file_store.put("/k", b"v", time.time() + 60)
    assert file_store.discard("/k") is True
    assert file_store.discard("/k") is False
    file_store.put("/k", b"v", time.time() + 60)
    mocker.patch.object(Path, "unlink", side_effect=PermissionError("denied"))
    assert file_store.discard("/k") is False
