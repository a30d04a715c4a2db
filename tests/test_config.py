"""Tests for configuration and backend selection."""

import json

import pytest

from relboard import config
from relboard.storage.factory import create_backend
from relboard.storage.local_backend import LocalBackend


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("RELBOARD_BACKEND", "RELBOARD_DATA_DIR", "RELBOARD_PORT", "LOG_LEVEL",
                 "SUPABASE_URL", "SUPABASE_KEY", "STORAGE_SECRET"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"storage_backend": "Supabase", "port": "9000"}))
    return path


def test_defaults(clean_env, tmp_path):
    missing = tmp_path / "missing.json"
    assert config.get_backend_type(missing) == "local"
    assert config.get_port(missing) == 8080
    assert config.get_log_level(missing) == "INFO"
    assert config.get_supabase_credentials(missing) == (None, None)


def test_config_file_values(clean_env, config_file):
    assert config.get_backend_type(config_file) == "supabase"
    assert config.get_port(config_file) == 9000


def test_environment_overrides_file(clean_env, config_file):
    clean_env.setenv("RELBOARD_BACKEND", "local")
    clean_env.setenv("RELBOARD_PORT", "7000")
    assert config.get_backend_type(config_file) == "local"
    assert config.get_port(config_file) == 7000


def test_invalid_port_falls_back(clean_env, tmp_path):
    clean_env.setenv("RELBOARD_PORT", "not-a-port")
    assert config.get_port(tmp_path / "missing.json") == 8080


def test_corrupt_config_is_ignored(clean_env, tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{broken")
    assert config.load_config(path) == {}


class TestBackendFactory:

    def test_local_backend(self, clean_env, tmp_path):
        backend = create_backend("local", data_dir=tmp_path / "data")
        assert isinstance(backend, LocalBackend)
        assert (tmp_path / "data" / "people").is_dir()

    def test_data_dir_from_environment(self, clean_env, tmp_path):
        clean_env.setenv("RELBOARD_DATA_DIR", str(tmp_path / "env-data"))
        backend = create_backend(config_path=tmp_path / "missing.json")
        assert backend.data_dir == tmp_path / "env-data"

    def test_supabase_backend_with_client(self, clean_env):
        from unittest.mock import MagicMock
        from relboard.storage.supabase_backend import SupabaseBackend

        backend = create_backend("supabase", supabase_client=MagicMock())
        assert isinstance(backend, SupabaseBackend)

    def test_unknown_backend(self, clean_env):
        with pytest.raises(ValueError):
            create_backend("mongodb")
