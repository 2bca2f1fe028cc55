"""Tests for nbrepo.config: env loading, storage parsing, project root."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from nbrepo.config import (
    DEFAULT_STORAGE,
    MAX_REPO_NUM,
    RepoConfig,
    find_project_root,
    load_config,
    parse_storage_names,
)


class TestParseStorageNames:
    def test_single(self):
        assert parse_storage_names("sqlite") == ["sqlite"]

    def test_trims_and_drops_empty(self):
        assert parse_storage_names(" sqlite , ,local ") == ["sqlite", "local"]

    def test_empty(self):
        assert parse_storage_names("   ") == []


class TestRepoConfig:
    def test_defaults(self):
        config = RepoConfig()
        assert config.storage == DEFAULT_STORAGE
        assert config.max_repos == MAX_REPO_NUM
        assert config.one_way_sync is False
        assert config.anonymous_allowed is True
        assert config.isolate_failures is False

    def test_max_repos_bounded(self):
        with pytest.raises(ValidationError):
            RepoConfig(max_repos=3)


class TestLoadConfig:
    def test_env_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("NBREPO_STORAGE", "sqlite,local")
        monkeypatch.setenv("NBREPO_ONE_WAY_SYNC", "true")
        monkeypatch.setenv("NBREPO_ANONYMOUS_ALLOWED", "0")
        monkeypatch.setenv("NBREPO_DB_PATH", str(tmp_path / "x.db"))
        monkeypatch.setenv("NBREPO_NOTEBOOK_DIR", str(tmp_path / "nb"))
        config = load_config(tmp_path)
        assert config.storage_names == ["sqlite", "local"]
        assert config.one_way_sync is True
        assert config.anonymous_allowed is False
        assert config.db_path == (tmp_path / "x.db").resolve()
        assert config.notebook_dir == (tmp_path / "nb").resolve()

    def test_paths_default_under_project_root(self, tmp_path, monkeypatch):
        monkeypatch.delenv("NBREPO_DB_PATH", raising=False)
        monkeypatch.delenv("NBREPO_NOTEBOOK_DIR", raising=False)
        config = load_config(tmp_path)
        assert config.db_path == tmp_path / ".nbrepo" / "notebooks.db"
        assert config.notebook_dir == tmp_path / ".nbrepo" / "notebooks"

    def test_invalid_bool(self, tmp_path, monkeypatch):
        monkeypatch.setenv("NBREPO_ONE_WAY_SYNC", "sometimes")
        with pytest.raises(ValidationError):
            load_config(tmp_path)


class TestFindProjectRoot:
    def test_finds_marker(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_project_root(nested) == tmp_path.resolve()
