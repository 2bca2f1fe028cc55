"""Unit tests for SQLiteNotebookRepo."""

from __future__ import annotations

import pytest

from nbrepo.errors import NoteNotFoundError, RepoError
from nbrepo.models import ANONYMOUS, Note
from nbrepo.sqlite_repo import SQLiteNotebookRepo
from tests.conftest import make_note

# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


class TestSaveAndGet:
    async def test_roundtrip(self, sqlite_repo):
        note = make_note("/proj/a", text="%python print(1)")
        await sqlite_repo.save(note, ANONYMOUS)
        got = await sqlite_repo.get(note.note_id, "/proj/a", ANONYMOUS)
        assert got == note

    async def test_overwrite_keeps_one_row(self, sqlite_repo):
        note = make_note("/proj/a", note_id="N1")
        await sqlite_repo.save(note, ANONYMOUS)
        await sqlite_repo.save(make_note("/proj/a", note_id="N1", text="v2"), ANONYMOUS)
        assert list(await sqlite_repo.list(ANONYMOUS)) == ["N1"]
        got = await sqlite_repo.get("N1", "/proj/a", ANONYMOUS)
        assert got.paragraphs[0].text == "v2"

    async def test_path_normalized(self, sqlite_repo):
        note = make_note("proj/a/")
        await sqlite_repo.save(note, ANONYMOUS)
        assert (await sqlite_repo.list(ANONYMOUS))[note.note_id].path == "/proj/a"
        assert (await sqlite_repo.get(note.note_id, "/proj/a", ANONYMOUS)).path == "/proj/a"

    async def test_missing(self, sqlite_repo):
        with pytest.raises(NoteNotFoundError):
            await sqlite_repo.get("NOPE", "/nowhere", ANONYMOUS)

    async def test_wrong_path(self, sqlite_repo):
        note = make_note("/proj/a")
        await sqlite_repo.save(note, ANONYMOUS)
        with pytest.raises(NoteNotFoundError):
            await sqlite_repo.get(note.note_id, "/proj/b", ANONYMOUS)


class TestList:
    async def test_empty(self, sqlite_repo):
        assert await sqlite_repo.list(ANONYMOUS) == {}

    async def test_ordered_by_path(self, sqlite_repo):
        for path in ("/b", "/a", "/c/d"):
            await sqlite_repo.save(make_note(path), ANONYMOUS)
        listed = await sqlite_repo.list(ANONYMOUS)
        assert [info.path for info in listed.values()] == ["/a", "/b", "/c/d"]
        assert all(note_id == info.note_id for note_id, info in listed.items())


class TestMove:
    async def test_move_note(self, sqlite_repo):
        note = make_note("/old/name")
        await sqlite_repo.save(note, ANONYMOUS)
        await sqlite_repo.move(note.note_id, "/old/name", "/new/name", ANONYMOUS)
        moved = await sqlite_repo.get(note.note_id, "/new/name", ANONYMOUS)
        assert moved.path == "/new/name"
        with pytest.raises(NoteNotFoundError):
            await sqlite_repo.get(note.note_id, "/old/name", ANONYMOUS)

    async def test_move_missing(self, sqlite_repo):
        with pytest.raises(NoteNotFoundError):
            await sqlite_repo.move("NOPE", "/a", "/b", ANONYMOUS)

    async def test_move_folder(self, sqlite_repo):
        inside = make_note("/proj/sub/a")
        sibling = make_note("/project/b")
        await sqlite_repo.save(inside, ANONYMOUS)
        await sqlite_repo.save(sibling, ANONYMOUS)
        await sqlite_repo.move_folder("/proj", "/archive/proj", ANONYMOUS)
        listed = await sqlite_repo.list(ANONYMOUS)
        assert listed[inside.note_id].path == "/archive/proj/sub/a"
        assert listed[sibling.note_id].path == "/project/b"
        moved = await sqlite_repo.get(inside.note_id, "/archive/proj/sub/a", ANONYMOUS)
        assert moved.path == "/archive/proj/sub/a"


class TestRemove:
    async def test_remove_note(self, sqlite_repo):
        note = make_note("/gone")
        await sqlite_repo.save(note, ANONYMOUS)
        await sqlite_repo.remove(note.note_id, "/gone", ANONYMOUS)
        assert await sqlite_repo.list(ANONYMOUS) == {}

    async def test_remove_missing(self, sqlite_repo):
        with pytest.raises(NoteNotFoundError):
            await sqlite_repo.remove("NOPE", "/gone", ANONYMOUS)

    async def test_remove_keeps_revisions(self, sqlite_repo):
        note = make_note("/gone")
        await sqlite_repo.save(note, ANONYMOUS)
        revision = await sqlite_repo.checkpoint(note.note_id, "/gone", "m", ANONYMOUS)
        await sqlite_repo.remove(note.note_id, "/gone", ANONYMOUS)

        history = await sqlite_repo.revision_history(note.note_id, "/gone", ANONYMOUS)
        assert [r.revision_id for r in history] == [revision.revision_id]
        restored = await sqlite_repo.set_note_revision(
            note.note_id, "/gone", revision.revision_id, ANONYMOUS
        )
        assert restored == note
        assert await sqlite_repo.get(note.note_id, "/gone", ANONYMOUS) == note

    async def test_remove_folder_keeps_revisions(self, sqlite_repo):
        note = make_note("/proj/a")
        await sqlite_repo.save(note, ANONYMOUS)
        await sqlite_repo.checkpoint(note.note_id, "/proj/a", "m", ANONYMOUS)
        await sqlite_repo.remove_folder("/proj", ANONYMOUS)
        assert await sqlite_repo.list(ANONYMOUS) == {}
        assert len(await sqlite_repo.revision_history(note.note_id, "/proj/a", ANONYMOUS)) == 1

    async def test_remove_folder(self, sqlite_repo):
        keep = make_note("/keep/a")
        for path in ("/proj/a", "/proj/sub/b"):
            await sqlite_repo.save(make_note(path), ANONYMOUS)
        await sqlite_repo.save(keep, ANONYMOUS)
        await sqlite_repo.remove_folder("/proj", ANONYMOUS)
        assert list(await sqlite_repo.list(ANONYMOUS)) == [keep.note_id]

    async def test_remove_missing_folder_is_noop(self, sqlite_repo):
        await sqlite_repo.remove_folder("/nowhere", ANONYMOUS)
        assert await sqlite_repo.list(ANONYMOUS) == {}


# ---------------------------------------------------------------------------
# Version control
# ---------------------------------------------------------------------------


class TestRevisions:
    async def test_checkpoint_and_get(self, sqlite_repo):
        note = make_note("/n", text="v1")
        await sqlite_repo.save(note, ANONYMOUS)
        rev = await sqlite_repo.checkpoint(note.note_id, "/n", "first", ANONYMOUS)
        assert rev is not None
        await sqlite_repo.save(make_note("/n", note_id=note.note_id, text="v2"), ANONYMOUS)

        old = await sqlite_repo.get_revision(note.note_id, "/n", rev.revision_id, ANONYMOUS)
        assert old is not None
        assert old.paragraphs[0].text == "v1"

    async def test_checkpoint_missing_note(self, sqlite_repo):
        with pytest.raises(NoteNotFoundError):
            await sqlite_repo.checkpoint("NOPE", "/n", "m", ANONYMOUS)

    async def test_unchanged_records_nothing(self, sqlite_repo):
        note = make_note("/n")
        await sqlite_repo.save(note, ANONYMOUS)
        assert await sqlite_repo.checkpoint(note.note_id, "/n", "one", ANONYMOUS) is not None
        assert await sqlite_repo.checkpoint(note.note_id, "/n", "two", ANONYMOUS) is None
        assert len(await sqlite_repo.revision_history(note.note_id, "/n", ANONYMOUS)) == 1

    async def test_unknown_revision(self, sqlite_repo):
        assert await sqlite_repo.get_revision("N", "/n", "R", ANONYMOUS) is None
        assert await sqlite_repo.set_note_revision("N", "/n", "R", ANONYMOUS) is None

    async def test_set_note_revision(self, sqlite_repo):
        note = make_note("/n", text="v1")
        await sqlite_repo.save(note, ANONYMOUS)
        rev = await sqlite_repo.checkpoint(note.note_id, "/n", "m", ANONYMOUS)
        await sqlite_repo.save(make_note("/n", note_id=note.note_id, text="v2"), ANONYMOUS)

        restored = await sqlite_repo.set_note_revision(
            note.note_id, "/n", rev.revision_id, ANONYMOUS
        )
        assert restored is not None
        current = await sqlite_repo.get(note.note_id, "/n", ANONYMOUS)
        assert current.paragraphs[0].text == "v1"

    async def test_empty_note_checkpoint(self, sqlite_repo):
        note = Note(path="/empty")
        await sqlite_repo.save(note, ANONYMOUS)
        rev = await sqlite_repo.checkpoint(note.note_id, "/empty", "m", ANONYMOUS)
        assert rev is not None
        assert rev.time.tzinfo is not None


# ---------------------------------------------------------------------------
# Settings and lifecycle
# ---------------------------------------------------------------------------


class TestSettings:
    async def test_reports_database_path(self, sqlite_repo, tmp_path):
        (setting,) = await sqlite_repo.get_settings(ANONYMOUS)
        assert setting.name == "Database Path"
        assert setting.selected == str(tmp_path / "repo.db")

    async def test_update_is_ignored(self, sqlite_repo, tmp_path, caplog):
        caplog.set_level("WARNING", logger="nbrepo.sqlite_repo")
        await sqlite_repo.update_settings({"Database Path": "/elsewhere.db"}, ANONYMOUS)
        (setting,) = await sqlite_repo.get_settings(ANONYMOUS)
        assert setting.selected == str(tmp_path / "repo.db")
        assert "read-only" in caplog.text


class TestLifecycle:
    async def test_uninitialised_raises(self, tmp_path):
        repo = SQLiteNotebookRepo(tmp_path / "never.db")
        with pytest.raises(RepoError, match="not initialised"):
            await repo.list(ANONYMOUS)

    async def test_db_path_from_config(self, config, parser):
        repo = SQLiteNotebookRepo()
        await repo.init(config, parser)
        try:
            assert config.db_path.exists()
        finally:
            await repo.close()

    async def test_close_twice(self, config, parser, tmp_path):
        repo = SQLiteNotebookRepo(tmp_path / "twice.db")
        await repo.init(config, parser)
        await repo.close()
        await repo.close()

    async def test_data_survives_reopen(self, config, parser, tmp_path):
        note = make_note("/persist")
        repo = SQLiteNotebookRepo(tmp_path / "reopen.db")
        await repo.init(config, parser)
        await repo.save(note, ANONYMOUS)
        await repo.close()

        repo = SQLiteNotebookRepo(tmp_path / "reopen.db")
        await repo.init(config, parser)
        try:
            assert (await repo.get(note.note_id, "/persist", ANONYMOUS)) == note
        finally:
            await repo.close()
