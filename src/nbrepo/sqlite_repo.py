"""SQLite implementation of the NotebookRepo protocol, with revisions."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

import aiosqlite

from nbrepo.errors import NoteNotFoundError, RepoError
from nbrepo.models import (
    AuthenticationInfo,
    Note,
    NoteInfo,
    Revision,
    SettingsInfo,
    new_id,
    utcnow,
)
from nbrepo.paths import is_in_folder, normalize_path, rebase_path

if TYPE_CHECKING:
    from nbrepo.config import RepoConfig
    from nbrepo.parser import NoteParser

logger = logging.getLogger("nbrepo.sqlite_repo")

# ---------------------------------------------------------------------------
# SQL schema
# ---------------------------------------------------------------------------

_SCHEMA = """
CREATE TABLE IF NOT EXISTS notes (
    note_id     TEXT PRIMARY KEY,
    path        TEXT NOT NULL,
    note_json   TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_notes_path ON notes(path);

CREATE TABLE IF NOT EXISTS revisions (
    revision_id TEXT PRIMARY KEY,
    note_id     TEXT NOT NULL,
    path        TEXT NOT NULL,
    message     TEXT NOT NULL DEFAULT '',
    note_json   TEXT NOT NULL,
    created_at  TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_revisions_note ON revisions(note_id, created_at);
"""


def _dt_to_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def _iso_to_dt(s: str) -> datetime:
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


# ---------------------------------------------------------------------------
# SQLiteNotebookRepo
# ---------------------------------------------------------------------------


class SQLiteNotebookRepo:
    """Notes and their checkpoints in a single SQLite database.

    Checkpoints store a full snapshot of the note; a checkpoint of an unchanged
    note records nothing and returns ``None``.
    """

    def __init__(self, db_path: str | Path | None = None) -> None:
        self._db_path = Path(db_path) if db_path else None
        self._db: aiosqlite.Connection | None = None
        self._parser: NoteParser | None = None
        self._write_lock = asyncio.Lock()

    # -- lifecycle -----------------------------------------------------------

    async def init(self, config: RepoConfig, parser: NoteParser) -> None:
        if self._db_path is None:
            self._db_path = config.db_path
        self._parser = parser
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(str(self._db_path))
        self._db.row_factory = aiosqlite.Row
        await self._db.execute("PRAGMA journal_mode=WAL")
        await self._db.execute("PRAGMA busy_timeout=5000")
        await self._db.executescript(_SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RepoError("Storage not initialised, call init() first")
        return self._db

    @property
    def _note_parser(self) -> NoteParser:
        if self._parser is None:
            raise RepoError("Storage not initialised, call init() first")
        return self._parser

    # -- helpers -------------------------------------------------------------

    async def _fetch(self, note_id: str, path: str) -> aiosqlite.Row:
        cur = await self._conn.execute(
            "SELECT * FROM notes WHERE note_id = ? AND path = ?",
            (note_id, normalize_path(path)),
        )
        row = await cur.fetchone()
        if row is None:
            raise NoteNotFoundError(note_id, path)
        return row

    async def _write(self, note: Note) -> None:
        note = note.model_copy(update={"path": normalize_path(note.path)})
        await self._conn.execute(
            """INSERT INTO notes (note_id, path, note_json, updated_at)
               VALUES (?, ?, ?, ?)
               ON CONFLICT(note_id) DO UPDATE SET
                   path = excluded.path,
                   note_json = excluded.note_json,
                   updated_at = excluded.updated_at""",
            (
                note.note_id,
                note.path,
                self._note_parser.to_json(note),
                _dt_to_iso(utcnow()),
            ),
        )

    # -- notes ---------------------------------------------------------------

    async def list(self, subject: AuthenticationInfo) -> dict[str, NoteInfo]:
        cur = await self._conn.execute("SELECT note_id, path FROM notes ORDER BY path")
        rows = await cur.fetchall()
        return {r["note_id"]: NoteInfo(note_id=r["note_id"], path=r["path"]) for r in rows}

    async def get(self, note_id: str, path: str, subject: AuthenticationInfo) -> Note:
        row = await self._fetch(note_id, path)
        return self._note_parser.from_json(row["note_json"])

    async def save(self, note: Note, subject: AuthenticationInfo) -> None:
        async with self._write_lock:
            await self._write(note)
            await self._conn.commit()

    async def move(
        self, note_id: str, path: str, new_path: str, subject: AuthenticationInfo
    ) -> None:
        async with self._write_lock:
            row = await self._fetch(note_id, path)
            note = self._note_parser.from_json(row["note_json"])
            await self._write(note.model_copy(update={"path": normalize_path(new_path)}))
            await self._conn.commit()

    async def move_folder(
        self, folder_path: str, new_folder_path: str, subject: AuthenticationInfo
    ) -> None:
        async with self._write_lock:
            cur = await self._conn.execute("SELECT * FROM notes")
            for row in await cur.fetchall():
                if not is_in_folder(row["path"], folder_path):
                    continue
                note = self._note_parser.from_json(row["note_json"])
                new_path = rebase_path(row["path"], folder_path, new_folder_path)
                await self._write(note.model_copy(update={"path": new_path}))
            await self._conn.commit()

    async def remove(self, note_id: str, path: str, subject: AuthenticationInfo) -> None:
        # Revisions outlive the note so a removed note can be restored.
        async with self._write_lock:
            cur = await self._conn.execute(
                "DELETE FROM notes WHERE note_id = ? AND path = ?",
                (note_id, normalize_path(path)),
            )
            if cur.rowcount == 0:
                raise NoteNotFoundError(note_id, path)
            await self._conn.commit()

    async def remove_folder(self, folder_path: str, subject: AuthenticationInfo) -> None:
        async with self._write_lock:
            cur = await self._conn.execute("SELECT note_id, path FROM notes")
            doomed = [
                r["note_id"] for r in await cur.fetchall() if is_in_folder(r["path"], folder_path)
            ]
            for note_id in doomed:
                await self._conn.execute("DELETE FROM notes WHERE note_id = ?", (note_id,))
            await self._conn.commit()

    # -- version control -----------------------------------------------------

    async def checkpoint(
        self, note_id: str, path: str, message: str, subject: AuthenticationInfo
    ) -> Revision | None:
        async with self._write_lock:
            row = await self._fetch(note_id, path)
            cur = await self._conn.execute(
                """SELECT note_json FROM revisions WHERE note_id = ?
                   ORDER BY created_at DESC, rowid DESC LIMIT 1""",
                (note_id,),
            )
            latest = await cur.fetchone()
            if latest is not None and latest["note_json"] == row["note_json"]:
                logger.info("Note %s unchanged since last checkpoint, nothing to record", note_id)
                return None

            revision = Revision(revision_id=new_id(), message=message, time=utcnow())
            await self._conn.execute(
                """INSERT INTO revisions
                   (revision_id, note_id, path, message, note_json, created_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    revision.revision_id,
                    note_id,
                    row["path"],
                    message,
                    row["note_json"],
                    _dt_to_iso(revision.time),
                ),
            )
            await self._conn.commit()
            return revision

    async def get_revision(
        self, note_id: str, path: str, revision_id: str, subject: AuthenticationInfo
    ) -> Note | None:
        cur = await self._conn.execute(
            "SELECT note_json FROM revisions WHERE note_id = ? AND revision_id = ?",
            (note_id, revision_id),
        )
        row = await cur.fetchone()
        if row is None:
            return None
        return self._note_parser.from_json(row["note_json"])

    async def revision_history(
        self, note_id: str, path: str, subject: AuthenticationInfo
    ) -> list[Revision]:
        cur = await self._conn.execute(
            """SELECT revision_id, message, created_at FROM revisions WHERE note_id = ?
               ORDER BY created_at DESC, rowid DESC""",
            (note_id,),
        )
        rows = await cur.fetchall()
        return [
            Revision(
                revision_id=r["revision_id"],
                message=r["message"],
                time=_iso_to_dt(r["created_at"]),
            )
            for r in rows
        ]

    async def set_note_revision(
        self, note_id: str, path: str, revision_id: str, subject: AuthenticationInfo
    ) -> Note | None:
        note = await self.get_revision(note_id, path, revision_id, subject)
        if note is None:
            return None
        restored = note.model_copy(update={"path": normalize_path(path)})
        await self.save(restored, subject)
        return restored

    # -- settings ------------------------------------------------------------

    async def get_settings(self, subject: AuthenticationInfo) -> list[SettingsInfo]:
        return [
            SettingsInfo(type="input", name="Database Path", selected=str(self._db_path or ""))
        ]

    async def update_settings(self, settings: dict[str, str], subject: AuthenticationInfo) -> None:
        logger.warning("Method not implemented: SQLite storage settings are read-only")

    def __repr__(self) -> str:
        return f"SQLiteNotebookRepo(db_path={str(self._db_path)!r})"
