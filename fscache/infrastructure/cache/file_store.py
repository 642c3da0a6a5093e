"""Durable key/value storage with TTL, scoped to one namespace directory.

Each entry is one file named by the key codec, holding a small header (magic
plus the absolute expiration time) followed by the serialized value. Writes go
to a temp file in the same directory which is then renamed over the final
name, so concurrent readers never observe a partially written entry. No locks
are taken: concurrent writers race and the last rename wins.
"""

import logging
import os
import struct
import tempfile
import time
from pathlib import Path, PurePosixPath
from typing import Iterator, Optional, Tuple, Union

from fscache.domain.exceptions import ConfigError, StorageError
from fscache.domain.models.common import DEFAULT_PREFIX, CacheEntry, NamespaceStats
from fscache.infrastructure.cache import key_codec

logger = logging.getLogger(__name__)

MAGIC = b"FSC1"
_HEADER = struct.Struct(">d")
HEADER_SIZE = len(MAGIC) + _HEADER.size
TEMP_PREFIX = ".tmp-"
NAMESPACE_MODE = 0o700
STALE_TEMP_SECONDS = 60 * 60  # temp files older than this are leftovers of crashed writers


def pack_entry(entry: CacheEntry) -> bytes:
    return MAGIC + _HEADER.pack(entry.expires_at) + entry.value


def unpack_entry(data: bytes) -> Optional[CacheEntry]:
    """Parses raw file contents; returns None for anything that is not an entry."""
    if len(data) < HEADER_SIZE or not data.startswith(MAGIC):
        return None
    (expires_at,) = _HEADER.unpack_from(data, len(MAGIC))
    return CacheEntry(value=data[HEADER_SIZE:], expires_at=expires_at)


def validate_prefix(prefix: Optional[str]) -> str:
    """Normalizes a namespace prefix; an empty prefix becomes 'default'."""
    if not prefix:
        return DEFAULT_PREFIX
    path = PurePosixPath(prefix.replace("\\", "/"))
    if path.is_absolute() or ".." in path.parts:
        raise ConfigError(f"Invalid cache prefix '{prefix}': must be a relative path inside the cache directory")
    parts = [part for part in path.parts if part not in ("", ".")]
    if not parts:
        return DEFAULT_PREFIX
    return "/".join(parts)


class FileStore:
    """Entry files of a single namespace: ``<cache_root>/<prefix>/<encoded key>``."""

    def __init__(self, cache_root: Union[str, Path], prefix: Optional[str] = None):
        """Binds the store to a namespace.

        The cache root is validated here, once; the namespace directory itself
        is created lazily on the first write.

        Raises:
            ConfigError: If the cache root is missing, not a directory or not
                writable, or if the prefix escapes the cache root.
        """
        self.cache_root = Path(cache_root)
        if not self.cache_root.exists():
            raise ConfigError(f"Cache directory does not exist ( {self.cache_root} )")
        if not self.cache_root.is_dir():
            raise ConfigError(f"Cache directory is not a directory ( {self.cache_root} )")
        if not os.access(self.cache_root, os.W_OK | os.X_OK):
            raise ConfigError(f"Cache directory is not writable ( {self.cache_root} )")
        self.prefix = validate_prefix(prefix)
        self.directory = self.cache_root.joinpath(*self.prefix.split("/"))
        logger.debug(f"FileStore bound to namespace '{self.prefix}' at {self.directory}")

    def _path(self, key: str) -> Path:
        return self.directory / key_codec.encode(key)

    def _ensure_directory(self) -> None:
        try:
            # exist_ok: another process may create the namespace concurrently
            self.directory.mkdir(mode=NAMESPACE_MODE, parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create cache namespace {self.directory}: {e}", str(self.directory)) from e

    def put(self, key: str, value: bytes, expires_at: float) -> None:
        """Writes an entry atomically, replacing any previous entry for ``key``."""
        self._ensure_directory()
        path = self._path(key)
        data = pack_entry(CacheEntry(value=value, expires_at=expires_at))
        temp_name = None
        try:
            fd, temp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, dir=self.directory)
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
            # os.replace is atomic on POSIX and Windows
            os.replace(temp_name, path)
            temp_name = None
            logger.debug(f"Stored cache entry: key={key}, file={path.name}, expires_at={expires_at:.0f}")
        except OSError as e:
            logger.error(f"Failed to write cache file {path}: {e}")
            raise StorageError(f"Failed to write cache entry '{key}': {e}", str(path)) from e
        finally:
            if temp_name is not None:
                self._remove_quietly(Path(temp_name))

    def _read(self, key: str, now: Optional[float] = None) -> Optional[CacheEntry]:
        path = self._path(key)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Failed to read cache file {path}: {e}")
            return None

        entry = unpack_entry(data)
        if entry is None:
            logger.warning(f"Corrupt cache file {path}. Removing.")
            self._remove_quietly(path)
            return None
        now = time.time() if now is None else now
        if entry.is_expired(now):
            logger.debug(f"Cache entry expired for key: {key}. Removing file.")
            self._remove_quietly(path)
            return None
        return entry

    def get(self, key: str) -> Tuple[Optional[bytes], bool]:
        """Reads an entry. Expired entries are deleted and reported as missing."""
        entry = self._read(key)
        if entry is None:
            logger.debug(f"Cache MISS for key: {key}")
            return None, False
        logger.debug(f"Cache HIT for key: {key}")
        return entry.value, True

    def exists(self, key: str) -> bool:
        return self._read(key) is not None

    def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink()
            logger.debug(f"Deleted cache entry: key={key}, file={path.name}")
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Failed to delete cache entry '{key}': {e}", str(path)) from e

    def discard(self, key: str) -> bool:
        """Removes an entry found to be unusable; failures are logged, not raised."""
        return self._remove_quietly(self._path(key))

    def _files(self) -> Iterator[Path]:
        try:
            children = list(self.directory.iterdir())
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageError(f"Failed to list cache namespace {self.directory}: {e}", str(self.directory)) from e
        for child in children:
            # Subdirectories are nested namespaces and belong to other stores.
            if child.is_file() and not child.is_symlink():
                yield child

    def clear(self) -> int:
        """Removes every entry file of the namespace; the directory is kept."""
        removed = 0
        now = time.time()
        for path in self._files():
            # A young temp file belongs to a writer that is about to rename it.
            if path.name.startswith(TEMP_PREFIX) and self._mtime(path) >= now - STALE_TEMP_SECONDS:
                continue
            try:
                path.unlink()
                removed += 1
            except FileNotFoundError:
                pass
            except OSError as e:
                raise StorageError(f"Failed to clear cache file {path}: {e}", str(path)) from e
        logger.info(f"Cleared cache namespace '{self.prefix}'. Removed {removed} files.")
        return removed

    def sweep(self, now: Optional[float] = None) -> int:
        """Removes expired and corrupt entries plus leftover temp files."""
        now = time.time() if now is None else now
        removed = 0
        for path in self._files():
            if path.name.startswith(TEMP_PREFIX):
                stale = self._mtime(path) < now - STALE_TEMP_SECONDS
            else:
                header = self._peek(path)
                stale = header is None or now > header[0]
            if stale and self._remove_quietly(path):
                removed += 1
        logger.info(f"Swept cache namespace '{self.prefix}'. Removed {removed} files.")
        return removed

    def stats(self, now: Optional[float] = None) -> NamespaceStats:
        now = time.time() if now is None else now
        stats = NamespaceStats(directory=str(self.directory))
        for path in self._files():
            if path.name.startswith(TEMP_PREFIX):
                stats.temp_files += 1
                continue
            header = self._peek(path)
            if header is None:
                continue
            expires_at, size = header
            stats.entries += 1
            stats.total_bytes += size
            if now > expires_at:
                stats.expired += 1
        return stats

    def _peek(self, path: Path) -> Optional[Tuple[float, int]]:
        """Reads only the header of an entry file: (expires_at, payload size)."""
        try:
            with open(path, "rb") as f:
                header = f.read(HEADER_SIZE)
                size = os.fstat(f.fileno()).st_size
        except OSError:
            return None
        entry = unpack_entry(header)
        if entry is None:
            return None
        return entry.expires_at, size - HEADER_SIZE

    @staticmethod
    def _mtime(path: Path) -> float:
        try:
            return path.stat().st_mtime
        except OSError:
            return time.time()

    @staticmethod
    def _remove_quietly(path: Path) -> bool:
        """Deletes a file, logging instead of raising; a leftover is retried by the next read or sweep."""
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Failed to delete cache file {path}: {e}")
            return False
