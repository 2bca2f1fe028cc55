"""NotebookRepoSync: keeps a primary and an optional secondary storage in step."""

from __future__ import annotations

import logging
from typing import Any

from nbrepo import fanout, versioning
from nbrepo.config import RepoConfig
from nbrepo.diff import notes_check_diff
from nbrepo.errors import RepoError
from nbrepo.models import (
    ANONYMOUS,
    AuthenticationInfo,
    Note,
    NoteInfo,
    RepoHandle,
    RepoWithSettings,
    Revision,
    SettingsInfo,
    SyncResult,
)
from nbrepo.parser import JsonNoteParser, NoteParser
from nbrepo.plugins import PluginManager
from nbrepo.reconcile import reconcile
from nbrepo.registry import RepoRegistry
from nbrepo.repo import NotebookRepo

logger = logging.getLogger("nbrepo.sync")


class NotebookRepoSync:
    """Storage front-end that fans writes out to every configured storage.

    Reads are served by the primary storage (index 0).  ``save`` and single
    note ``move`` must succeed on the primary and are best effort on the
    secondary; ``remove`` and folder moves go to every storage and stop at the
    first failure.  ``sync`` copies new and updated notes between two storages
    based on paragraph timestamps.
    """

    def __init__(
        self,
        plugins: PluginManager | None = None,
        config: RepoConfig | None = None,
        parser: NoteParser | None = None,
    ) -> None:
        self._registry = RepoRegistry(plugins)
        self._config = config or RepoConfig()
        self._parser: NoteParser = parser or JsonNoteParser()

    # -- lifecycle -----------------------------------------------------------

    async def init(
        self, config: RepoConfig | None = None, parser: NoteParser | None = None
    ) -> None:
        if config is not None:
            self._config = config
        if parser is not None:
            self._parser = parser
        await self._registry.initialize(self._config, self._parser)

        if self.repo_count > 1 and self._config.anonymous_allowed:
            try:
                await self.sync(ANONYMOUS)
            except Exception:
                logger.exception("Couldn't sync anonymous mode on start")

    async def close(self) -> None:
        await self._registry.close()

    async def __aenter__(self) -> NotebookRepoSync:
        await self.init()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # -- registry access -----------------------------------------------------

    @property
    def config(self) -> RepoConfig:
        return self._config

    @property
    def note_parser(self) -> NoteParser:
        return self._parser

    @property
    def repo_count(self) -> int:
        return self._registry.repo_count

    @property
    def handles(self) -> list[RepoHandle]:
        return self._registry.handles

    def repo_at(self, index: int) -> NotebookRepo:
        return self._registry.repo_at(index)

    def is_revision_supported_in_repo(self, index: int) -> bool:
        try:
            return self._registry.handle_at(index).supports_version_control
        except RepoError:
            logger.exception("Error getting storage %d", index)
            return False

    def is_revision_supported_in_default_repo(self) -> bool:
        return self.is_revision_supported_in_repo(0)

    @property
    def _remove_policy(self) -> fanout.FanoutPolicy:
        return fanout.all_isolated if self._config.isolate_failures else fanout.all_or_abort

    # =========================================================================
    # Reads (primary only)
    # =========================================================================

    async def list(self, subject: AuthenticationInfo) -> dict[str, NoteInfo]:
        return await self.repo_at(0).list(subject)

    async def get(self, note_id: str, path: str, subject: AuthenticationInfo) -> Note:
        return await self.repo_at(0).get(note_id, path, subject)

    # =========================================================================
    # Writes
    # =========================================================================

    async def save(self, note: Note, subject: AuthenticationInfo) -> None:
        await fanout.best_effort_secondary(
            self._registry.handles, lambda repo: repo.save(note, subject), "save note"
        )

    async def move(
        self, note_id: str, path: str, new_path: str, subject: AuthenticationInfo
    ) -> None:
        await fanout.best_effort_secondary(
            self._registry.handles,
            lambda repo: repo.move(note_id, path, new_path, subject),
            "move note",
        )

    async def move_folder(
        self, folder_path: str, new_folder_path: str, subject: AuthenticationInfo
    ) -> None:
        await self._remove_policy(
            self._registry.handles,
            lambda repo: repo.move_folder(folder_path, new_folder_path, subject),
            "move folder",
        )

    async def remove(self, note_id: str, path: str, subject: AuthenticationInfo) -> None:
        # TODO: roll back the primary removal when a secondary removal fails.
        await self._remove_policy(
            self._registry.handles,
            lambda repo: repo.remove(note_id, path, subject),
            "remove note",
        )

    async def remove_folder(self, folder_path: str, subject: AuthenticationInfo) -> None:
        await self._remove_policy(
            self._registry.handles,
            lambda repo: repo.remove_folder(folder_path, subject),
            "remove folder",
        )

    # -- single storage helpers ----------------------------------------------

    async def list_from(self, index: int, subject: AuthenticationInfo) -> list[NoteInfo]:
        return list((await self.repo_at(index).list(subject)).values())

    async def get_from(
        self, index: int, note_id: str, path: str, subject: AuthenticationInfo
    ) -> Note:
        return await self.repo_at(index).get(note_id, path, subject)

    async def save_to(self, index: int, note: Note, subject: AuthenticationInfo) -> None:
        await self.repo_at(index).save(note, subject)

    async def remove_from(
        self, index: int, note_id: str, path: str, subject: AuthenticationInfo
    ) -> None:
        await self.repo_at(index).remove(note_id, path, subject)

    # =========================================================================
    # Sync
    # =========================================================================

    async def sync(
        self,
        subject: AuthenticationInfo,
        source_index: int = 0,
        dest_index: int = 1,
    ) -> SyncResult:
        """Copy new/updated notes from the source to the destination storage and back."""
        logger.info("Sync started")
        source = self.repo_at(source_index)
        dest = self.repo_at(dest_index)
        source_notes = (await source.list(subject)).values()
        dest_notes = (await dest.list(subject)).values()

        plan = await notes_check_diff(
            source_notes,
            source,
            dest_notes,
            dest,
            subject,
            one_way_sync=self._config.one_way_sync,
        )
        result = await reconcile(
            plan, source, dest, subject, isolate_failures=self._config.isolate_failures
        )
        logger.info("Sync ended")
        return result

    # =========================================================================
    # Version control
    # =========================================================================

    async def checkpoint(
        self, note_id: str, path: str, message: str, subject: AuthenticationInfo
    ) -> Revision | None:
        return await versioning.checkpoint(
            self._registry.handles, note_id, path, message, subject, self._registry.max_repos
        )

    async def get_revision(
        self, note_id: str, path: str, revision_id: str, subject: AuthenticationInfo
    ) -> Note | None:
        return await versioning.get_revision(
            self._registry.handles, note_id, path, revision_id, subject
        )

    async def revision_history(
        self, note_id: str, path: str, subject: AuthenticationInfo
    ) -> list[Revision]:
        return await versioning.revision_history(self._registry.handles, note_id, path, subject)

    async def set_note_revision(
        self, note_id: str, path: str, revision_id: str, subject: AuthenticationInfo
    ) -> Note | None:
        return await versioning.set_note_revision(
            self._registry.handles,
            note_id,
            path,
            revision_id,
            subject,
            self._registry.max_repos,
        )

    # =========================================================================
    # Settings
    # =========================================================================

    async def get_notebook_repos(self, subject: AuthenticationInfo) -> list[RepoWithSettings]:
        return [
            RepoWithSettings(
                name=handle.name,
                class_name=handle.class_name,
                settings=await handle.repo.get_settings(subject),
            )
            for handle in self._registry
        ]

    async def update_notebook_repo(
        self, name: str, settings: dict[str, str], subject: AuthenticationInfo
    ) -> RepoWithSettings | None:
        """Update the first storage whose plugin or class name is *name*."""
        for handle in self._registry:
            if name not in (handle.name, handle.class_name):
                continue
            await handle.repo.update_settings(settings, subject)
            return RepoWithSettings(
                name=handle.name,
                class_name=handle.class_name,
                settings=await handle.repo.get_settings(subject),
            )
        return None

    async def get_settings(self, subject: AuthenticationInfo) -> list[SettingsInfo]:
        try:
            return await self.repo_at(0).get_settings(subject)
        except Exception:
            logger.exception("Cannot get notebook repo settings")
            return []

    async def update_settings(self, settings: dict[str, str], subject: AuthenticationInfo) -> None:
        try:
            await self.repo_at(0).update_settings(settings, subject)
        except Exception:
            logger.exception("Cannot update notebook repo settings")
