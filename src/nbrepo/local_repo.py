"""Filesystem implementation of the NotebookRepo protocol.

Each note is one JSON file named ``<name>_<note_id>.json`` inside the
directory tree that mirrors its path, e.g. ``/proj/a`` with id ``2F8K1``
lives at ``<notebook_dir>/proj/a_2F8K1.json``.  Folders are directories.
The id part is percent-encoded with ``_`` escaped too, so the last ``_`` in
a file name always separates name from id.  Paths resolving outside the
notebook directory are rejected.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import quote, unquote

from nbrepo.errors import NoteNotFoundError, RepoError
from nbrepo.models import AuthenticationInfo, Note, NoteInfo, SettingsInfo
from nbrepo.paths import normalize_path

if TYPE_CHECKING:
    from nbrepo.config import RepoConfig
    from nbrepo.parser import NoteParser

logger = logging.getLogger("nbrepo.local_repo")

_SUFFIX = ".json"
NOTEBOOK_PATH_SETTING = "Notebook Path"


def _encode_id(note_id: str) -> str:
    return quote(note_id, safe="").replace("_", "%5F")


def _decode_id(encoded: str) -> str:
    return unquote(encoded)


class LocalNotebookRepo:
    """Notes as JSON files under a notebook directory. No revision support."""

    def __init__(self, notebook_dir: str | Path | None = None) -> None:
        self._root = Path(notebook_dir) if notebook_dir else None
        self._parser: NoteParser | None = None

    # -- lifecycle -----------------------------------------------------------

    async def init(self, config: RepoConfig, parser: NoteParser) -> None:
        if self._root is None:
            self._root = config.notebook_dir
        self._parser = parser
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RepoError(f"Cannot create notebook directory {self._root}: {e}") from e

    async def close(self) -> None:
        pass

    @property
    def root(self) -> Path:
        if self._root is None or self._parser is None:
            raise RepoError("Storage not initialised, call init() first")
        return self._root

    @property
    def _note_parser(self) -> NoteParser:
        if self._parser is None:
            raise RepoError("Storage not initialised, call init() first")
        return self._parser

    # -- helpers -------------------------------------------------------------

    def _inside_root(self, target: Path, path: str) -> Path:
        root = self.root.resolve()
        resolved = target.resolve()
        if resolved != root and root not in resolved.parents:
            raise RepoError(f"Path {path} resolves outside the notebook directory {self.root}")
        return target

    def _note_file(self, note_id: str, path: str) -> Path:
        rel = normalize_path(path).lstrip("/")
        file = self.root / f"{rel}_{_encode_id(note_id)}{_SUFFIX}"
        if not rel:
            raise RepoError(f"Note {note_id} needs a name, got path {path!r}")
        return self._inside_root(file, path)

    def _folder(self, folder_path: str) -> Path:
        return self._inside_root(self.root / normalize_path(folder_path).lstrip("/"), folder_path)

    def _parse(self, file: Path) -> NoteInfo | None:
        name, sep, encoded = file.stem.rpartition("_")
        if not sep or not name or not encoded:
            return None
        parts = [*file.parent.relative_to(self.root).parts, name]
        return NoteInfo(note_id=_decode_id(encoded), path=normalize_path("/".join(parts)))

    def _scan(self) -> dict[str, NoteInfo]:
        infos: dict[str, NoteInfo] = {}
        for file in sorted(self.root.rglob(f"*{_SUFFIX}")):
            info = self._parse(file)
            if info is None:
                logger.warning("Skipping file with unexpected name %s", file)
                continue
            infos[info.note_id] = info
        return infos

    def _read(self, file: Path) -> Note:
        try:
            raw = file.read_text(encoding="utf-8")
        except OSError as e:
            raise RepoError(f"Cannot read {file}: {e}") from e
        return self._note_parser.from_json(raw)

    def _write(self, note: Note) -> Path:
        note = note.model_copy(update={"path": normalize_path(note.path)})
        file = self._note_file(note.note_id, note.path)
        try:
            file.parent.mkdir(parents=True, exist_ok=True)
            tmp = file.with_name(file.name + ".tmp")
            tmp.write_text(self._note_parser.to_json(note), encoding="utf-8")
            os.replace(tmp, file)
            # A note id lives in exactly one file.
            for stale in self.root.rglob(f"*_{_encode_id(note.note_id)}{_SUFFIX}"):
                info = self._parse(stale)
                if stale != file and info is not None and info.note_id == note.note_id:
                    stale.unlink()
        except OSError as e:
            raise RepoError(f"Cannot write note {note.note_id} to {file}: {e}") from e
        return file

    def _existing(self, note_id: str, path: str) -> Path:
        file = self._note_file(note_id, path)
        if not file.is_file():
            raise NoteNotFoundError(note_id, path)
        return file

    def _move(self, note_id: str, path: str, new_path: str) -> None:
        src = self._existing(note_id, path)
        note = self._read(src)
        self._write(note.model_copy(update={"path": new_path}))

    def _move_folder(self, folder_path: str, new_folder_path: str) -> None:
        src = self._folder(folder_path)
        dst = self._folder(new_folder_path)
        if not src.is_dir():
            raise RepoError(f"Folder {folder_path} not found")
        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
            src.rename(dst)
        except OSError as e:
            raise RepoError(f"Cannot move folder {folder_path} to {new_folder_path}: {e}") from e
        # Paths are also stored inside the notes.
        for note_id, info in self._scan().items():
            file = self._note_file(note_id, info.path)
            if dst in file.parents:
                self._write(self._read(file).model_copy(update={"path": info.path}))

    def _remove(self, note_id: str, path: str) -> None:
        file = self._existing(note_id, path)
        try:
            file.unlink()
        except OSError as e:
            raise RepoError(f"Cannot remove note {note_id}: {e}") from e

    def _remove_folder(self, folder_path: str) -> None:
        folder = self._folder(folder_path)
        if not folder.is_dir():
            logger.info("Folder %s does not exist, nothing to remove", folder_path)
            return
        try:
            shutil.rmtree(folder)
        except OSError as e:
            raise RepoError(f"Cannot remove folder {folder_path}: {e}") from e

    # -- notes ---------------------------------------------------------------

    async def list(self, subject: AuthenticationInfo) -> dict[str, NoteInfo]:
        return await asyncio.to_thread(self._scan)

    async def get(self, note_id: str, path: str, subject: AuthenticationInfo) -> Note:
        return await asyncio.to_thread(lambda: self._read(self._existing(note_id, path)))

    async def save(self, note: Note, subject: AuthenticationInfo) -> None:
        await asyncio.to_thread(self._write, note)

    async def move(
        self, note_id: str, path: str, new_path: str, subject: AuthenticationInfo
    ) -> None:
        await asyncio.to_thread(self._move, note_id, path, new_path)

    async def move_folder(
        self, folder_path: str, new_folder_path: str, subject: AuthenticationInfo
    ) -> None:
        await asyncio.to_thread(self._move_folder, folder_path, new_folder_path)

    async def remove(self, note_id: str, path: str, subject: AuthenticationInfo) -> None:
        await asyncio.to_thread(self._remove, note_id, path)

    async def remove_folder(self, folder_path: str, subject: AuthenticationInfo) -> None:
        await asyncio.to_thread(self._remove_folder, folder_path)

    # -- settings ------------------------------------------------------------

    async def get_settings(self, subject: AuthenticationInfo) -> list[SettingsInfo]:
        return [
            SettingsInfo(type="input", name=NOTEBOOK_PATH_SETTING, selected=str(self._root or ""))
        ]

    async def update_settings(self, settings: dict[str, str], subject: AuthenticationInfo) -> None:
        new_dir = settings.get(NOTEBOOK_PATH_SETTING, "").strip()
        if not new_dir:
            logger.warning(
                "No %r setting given, notebook directory unchanged", NOTEBOOK_PATH_SETTING
            )
            return
        root = Path(new_dir).expanduser()
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RepoError(f"Cannot use {root} as notebook directory: {e}") from e
        logger.info("Notebook directory changed from %s to %s", self._root, root)
        self._root = root

    def __repr__(self) -> str:
        return f"LocalNotebookRepo(notebook_dir={str(self._root)!r})"
