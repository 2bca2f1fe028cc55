"""Shared fixtures and factories for nbrepo tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from nbrepo.config import RepoConfig
from nbrepo.errors import RepoError
from nbrepo.local_repo import LocalNotebookRepo
from nbrepo.models import Note, Paragraph
from nbrepo.parser import JsonNoteParser
from nbrepo.plugins import PluginManager
from nbrepo.sqlite_repo import SQLiteNotebookRepo
from nbrepo.sync import NotebookRepoSync

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def make_paragraph(minutes: int = 0, text: str = "%md hello world") -> Paragraph:
    """A paragraph created *minutes* after BASE_TIME."""
    return Paragraph(text=text, created_at=BASE_TIME + timedelta(minutes=minutes))


def make_note(
    path: str = "/my_project/my_note",
    *,
    minutes: int = 0,
    note_id: str | None = None,
    text: str = "%md hello world",
) -> Note:
    """A note with one paragraph whose freshness is BASE_TIME + *minutes*."""
    kwargs = {"note_id": note_id} if note_id else {}
    return Note(path=path, paragraphs=[make_paragraph(minutes, text)], **kwargs)


class FailingInitRepo(SQLiteNotebookRepo):
    """A storage whose initialization always fails."""

    async def init(self, config, parser):  # type: ignore[no-untyped-def]
        raise RepoError("storage unreachable")


class BrokenListRepo(SQLiteNotebookRepo):
    """A storage that initializes but cannot list notes."""

    async def list(self, subject):  # type: ignore[no-untyped-def]
        raise RepoError("listing unavailable")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def config(tmp_path: Path) -> RepoConfig:
    """Two SQLite storages, no startup sync."""
    return RepoConfig(
        storage="primary,secondary",
        default_storage="primary",
        anonymous_allowed=False,
        notebook_dir=tmp_path / "notebooks",
        db_path=tmp_path / "default.db",
    )


@pytest.fixture()
def parser() -> JsonNoteParser:
    return JsonNoteParser()


@pytest.fixture()
def plugins(tmp_path: Path) -> PluginManager:
    """Named storages backed by files under tmp_path."""
    manager = PluginManager()
    manager.register("primary", lambda: SQLiteNotebookRepo(tmp_path / "primary.db"))
    manager.register("secondary", lambda: SQLiteNotebookRepo(tmp_path / "secondary.db"))
    manager.register("local", lambda: LocalNotebookRepo(tmp_path / "local"))
    manager.register("failing", FailingInitRepo)
    manager.register("broken", lambda: BrokenListRepo(tmp_path / "broken.db"))
    return manager


@pytest.fixture()
async def sqlite_repo(tmp_path: Path, config: RepoConfig, parser: JsonNoteParser):
    """Yield an initialized SQLiteNotebookRepo backed by a temp database."""
    repo = SQLiteNotebookRepo(tmp_path / "repo.db")
    await repo.init(config, parser)
    yield repo
    await repo.close()


@pytest.fixture()
async def local_repo(tmp_path: Path, config: RepoConfig, parser: JsonNoteParser):
    """Yield an initialized LocalNotebookRepo in a temp directory."""
    repo = LocalNotebookRepo(tmp_path / "files")
    await repo.init(config, parser)
    yield repo
    await repo.close()


@pytest.fixture()
async def engine(plugins: PluginManager, config: RepoConfig):
    """Yield a NotebookRepoSync over two SQLite storages (both keep revisions)."""
    e = NotebookRepoSync(plugins, config)
    await e.init()
    yield e
    await e.close()


@pytest.fixture()
async def mixed_engine(plugins: PluginManager, config: RepoConfig):
    """Yield a NotebookRepoSync over SQLite (primary) and local files (secondary)."""
    e = NotebookRepoSync(plugins, config.model_copy(update={"storage": "primary,local"}))
    await e.init()
    yield e
    await e.close()
