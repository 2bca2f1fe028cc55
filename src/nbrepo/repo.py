"""Backend protocols: the contract that every notebook storage implements."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from nbrepo.models import (
    AuthenticationInfo,
    Note,
    NoteInfo,
    Revision,
    SettingsInfo,
)

if TYPE_CHECKING:
    from nbrepo.config import RepoConfig
    from nbrepo.parser import NoteParser


@runtime_checkable
class NotebookRepo(Protocol):
    """Async interface for notebook persistence.

    Every method is async.  Failures are reported as ``RepoError`` (or one of
    its subclasses); a missing note raises ``NoteNotFoundError``.
    """

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def init(self, config: RepoConfig, parser: NoteParser) -> None:
        """Open connections / create directories. Raises on unrecoverable errors."""
        ...

    async def close(self) -> None:
        """Release resources. Safe to call more than once."""
        ...

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    async def list(self, subject: AuthenticationInfo) -> dict[str, NoteInfo]:
        """Map every note id to its listing record."""
        ...

    async def get(self, note_id: str, path: str, subject: AuthenticationInfo) -> Note:
        """Fetch a note by id and path."""
        ...

    async def save(self, note: Note, subject: AuthenticationInfo) -> None:
        """Create or overwrite *note* at ``note.path``."""
        ...

    async def move(
        self, note_id: str, path: str, new_path: str, subject: AuthenticationInfo
    ) -> None:
        """Move a single note to *new_path*."""
        ...

    async def move_folder(
        self, folder_path: str, new_folder_path: str, subject: AuthenticationInfo
    ) -> None:
        """Rename a folder together with every note below it."""
        ...

    async def remove(self, note_id: str, path: str, subject: AuthenticationInfo) -> None:
        """Delete a single note."""
        ...

    async def remove_folder(self, folder_path: str, subject: AuthenticationInfo) -> None:
        """Delete a folder and every note below it."""
        ...

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def get_settings(self, subject: AuthenticationInfo) -> list[SettingsInfo]:
        ...

    async def update_settings(
        self, settings: dict[str, str], subject: AuthenticationInfo
    ) -> None:
        ...


@runtime_checkable
class NotebookRepoWithVersionControl(NotebookRepo, Protocol):
    """Extended contract for backends that keep revisions."""

    async def checkpoint(
        self, note_id: str, path: str, message: str, subject: AuthenticationInfo
    ) -> Revision | None:
        """Snapshot the current note. ``None`` means nothing was recorded."""
        ...

    async def get_revision(
        self, note_id: str, path: str, revision_id: str, subject: AuthenticationInfo
    ) -> Note | None:
        """Return the note as it was at *revision_id*."""
        ...

    async def revision_history(
        self, note_id: str, path: str, subject: AuthenticationInfo
    ) -> list[Revision]:
        """Revisions of a note, newest first."""
        ...

    async def set_note_revision(
        self, note_id: str, path: str, revision_id: str, subject: AuthenticationInfo
    ) -> Note | None:
        """Make *revision_id* the current content and return the restored note."""
        ...


def supports_version_control(repo: object) -> bool:
    """Whether *repo* satisfies the extended version-control contract."""
    return isinstance(repo, NotebookRepoWithVersionControl)
