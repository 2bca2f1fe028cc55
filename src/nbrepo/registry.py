"""Backend registry: the ordered set of initialized storages (0 = primary)."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from nbrepo.config import MAX_REPO_NUM, RepoConfig
from nbrepo.errors import ConfigurationError, RepoIndexError
from nbrepo.models import RepoHandle
from nbrepo.parser import NoteParser
from nbrepo.plugins import PluginManager
from nbrepo.repo import NotebookRepo

logger = logging.getLogger("nbrepo.registry")


class RepoRegistry:
    """Owns the backend handles for the process lifetime.

    Handles are appended once during ``initialize`` and never reordered, so an
    index keeps referring to the same backend afterwards.
    """

    def __init__(self, plugins: PluginManager | None = None) -> None:
        self._plugins = plugins or PluginManager.default()
        self._handles: list[RepoHandle] = []
        self.max_repos = MAX_REPO_NUM

    # -- lifecycle -----------------------------------------------------------

    async def initialize(self, config: RepoConfig, parser: NoteParser) -> None:
        if self._handles:
            logger.info("Storages already initialized, closing them before reinitializing")
            await self.close()
        self.max_repos = config.max_repos
        names = config.storage_names
        if not names:
            names = [config.default_storage]
            logger.warning("Empty storage configuration, using default %s", config.default_storage)
        if len(names) > self.max_repos:
            logger.warning(
                "Unsupported number %d of storages in %r, first %d will be used",
                len(names),
                config.storage,
                self.max_repos,
            )

        for name in names[: self.max_repos]:
            try:
                repo = await self._load(name, config, parser)
            except Exception:
                logger.exception("Failed to initialize storage %s, skipping it", name)
                continue
            self._add(name, repo)

        if not self._handles:
            name = config.default_storage
            logger.info("No storage could be initialized, using default %s storage", name)
            try:
                repo = await self._load(name, config, parser)
            except Exception as e:
                raise ConfigurationError(
                    f"Default storage {name!r} failed to initialize: {e}"
                ) from e
            self._add(name, repo)

    async def close(self) -> None:
        logger.info("Closing all notebook storages")
        for handle in self._handles:
            try:
                await handle.repo.close()
            except Exception:
                logger.exception("Failed to close storage %s", handle.name)
        self._handles = []

    async def _load(self, name: str, config: RepoConfig, parser: NoteParser) -> NotebookRepo:
        repo = self._plugins.load_notebook_repo(name)
        await repo.init(config, parser)
        return repo

    def _add(self, name: str, repo: NotebookRepo) -> None:
        self._handles.append(RepoHandle(index=len(self._handles), name=name, repo=repo))

    # -- access --------------------------------------------------------------

    @property
    def repo_count(self) -> int:
        return len(self._handles)

    @property
    def handles(self) -> list[RepoHandle]:
        return list(self._handles)

    def handle_at(self, index: int) -> RepoHandle:
        if index < 0 or index >= self.repo_count:
            raise RepoIndexError(
                f"Requested storage index {index} isn't initialized,"
                f" repository count is {self.repo_count}"
            )
        return self._handles[index]

    def repo_at(self, index: int) -> NotebookRepo:
        return self.handle_at(index).repo

    def __len__(self) -> int:
        return self.repo_count

    def __iter__(self) -> Iterator[RepoHandle]:
        return iter(self._handles)
