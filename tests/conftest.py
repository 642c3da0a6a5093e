import pytest
from pathlib import Path
from typer.testing import CliRunner

from fscache.infrastructure.cache.file_store import FileStore
from fscache.infrastructure.cache.store import Store
from fscache.infrastructure.config import settings

START_TIME = 1_700_000_000.0


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def cache_root(tmp_path: Path) -> Path:
    """An existing, writable cache root directory."""
    root = tmp_path / "cache"
    root.mkdir()
    return root


@pytest.fixture
def file_store(cache_root: Path) -> FileStore:
    return FileStore(cache_root, "default")


@pytest.fixture
def store(cache_root: Path) -> Store:
    return Store.create(cache_root, prefix="default", default_ttl=60)


@pytest.fixture
def clock(mocker):
    """Freezes the wall clock seen by the cache modules.

    Returns a one-element list; tests move time forward by changing clock[0].
    """
    now = [START_TIME]
    fake_time = mocker.MagicMock()
    fake_time.time.side_effect = lambda: now[0]
    for module in ("store", "file_store", "ttl"):
        mocker.patch(f"fscache.infrastructure.cache.{module}.time", fake_time)
    return now


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path: Path):
    """Keeps tests away from the user's config file, .env files and FSCACHE_* variables."""
    for name in ("FSCACHE_DIR", "FSCACHE_DEFAULT_TTL", "FSCACHE_PREFIX"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(settings, "_loaded", True)
    monkeypatch.setattr(settings, "_config", {})
    settings.clear_test_config()
    yield
    settings.clear_test_config()
