from pathlib import Path

import pytest

from fscache.infrastructure.config import settings


def test_get_config_priority(monkeypatch):
    """Test that test overrides beat environment variables, which beat loaded config."""
    monkeypatch.setattr(settings, "_config", {"cache.prefix": "from-yaml"})
    assert settings.get_config("cache.prefix") == "from-yaml"

    monkeypatch.setenv("CACHE.PREFIX", "from-env")
    assert settings.get_config("cache.prefix") == "from-env"

    settings.set_config_for_testing({"cache.prefix": "from-test"})
    assert settings.get_config("cache.prefix") == "from-test"


def test_get_config_converts_integers_from_environment(monkeypatch):
    monkeypatch.setenv("FSCACHE_DEFAULT_TTL", "300")
    assert settings.get_config("FSCACHE_DEFAULT_TTL") == 300
    monkeypatch.setenv("FSCACHE_DEFAULT_TTL", "2 hours")
    assert settings.get_config("FSCACHE_DEFAULT_TTL") == "2 hours"


def test_get_config_default():
    assert settings.get_config("missing.key", "fallback") == "fallback"


def test_load_configuration_reads_nested_yaml(monkeypatch, tmp_path: Path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("cache:\n  dir: /var/cache/app\n  default_ttl: 2 hours\n  prefix: web\n")
    monkeypatch.setattr(settings, "_loaded", False)
    monkeypatch.chdir(tmp_path)

    settings.load_configuration(config_file=config_file)

    assert settings.get_cache_dir() == Path("/var/cache/app")
    assert settings.get_default_ttl() == "2 hours"
    assert settings.get_namespace_prefix() == "web"


def test_load_configuration_ignores_invalid_yaml(monkeypatch, tmp_path: Path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("cache: [unclosed")
    monkeypatch.setattr(settings, "_loaded", False)
    monkeypatch.chdir(tmp_path)

    settings.load_configuration(config_file=config_file)

    assert settings.get_namespace_prefix() == "default"


def test_load_configuration_reads_dotenv(monkeypatch, tmp_path: Path):
    (tmp_path / ".env").write_text("FSCACHE_PREFIX=from-dotenv\n")
    # Registers the variable with monkeypatch so the value loaded below is undone.
    monkeypatch.setenv("FSCACHE_PREFIX", "placeholder")
    monkeypatch.delenv("FSCACHE_PREFIX")
    monkeypatch.setattr(settings, "_loaded", False)
    monkeypatch.chdir(tmp_path)

    settings.load_configuration(config_file=tmp_path / "missing.yaml")

    assert settings.get_namespace_prefix() == "from-dotenv"


def test_defaults():
    assert settings.get_cache_dir() == settings.DEFAULT_CACHE_DIR
    assert settings.get_default_ttl() == 7200
    assert settings.get_namespace_prefix() == "default"


def test_environment_overrides(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("FSCACHE_DIR", str(tmp_path))
    monkeypatch.setenv("FSCACHE_PREFIX", "jobs")
    monkeypatch.setenv("FSCACHE_DEFAULT_TTL", "60")
    assert settings.get_cache_dir() == tmp_path
    assert settings.get_namespace_prefix() == "jobs"
    assert settings.get_default_ttl() == 60
