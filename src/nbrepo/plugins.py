"""Named constructors for storage backends."""

from __future__ import annotations

import importlib
import logging
from collections.abc import Callable

from nbrepo.errors import ConfigurationError
from nbrepo.repo import NotebookRepo

logger = logging.getLogger("nbrepo.plugins")

RepoFactory = Callable[[], NotebookRepo]


class PluginManager:
    """Maps configured backend names to factories producing NotebookRepo instances.

    Names that are not registered but look like ``package.module:Attr`` are
    imported and called with no arguments.
    """

    def __init__(self) -> None:
        self._factories: dict[str, RepoFactory] = {}

    @classmethod
    def default(cls) -> PluginManager:
        """A manager with the built-in ``sqlite`` and ``local`` backends registered."""
        from nbrepo.local_repo import LocalNotebookRepo
        from nbrepo.sqlite_repo import SQLiteNotebookRepo

        manager = cls()
        manager.register("sqlite", SQLiteNotebookRepo)
        manager.register("local", LocalNotebookRepo)
        return manager

    def register(self, name: str, factory: RepoFactory) -> None:
        if name in self._factories:
            logger.warning("Replacing storage plugin %s", name)
        self._factories[name] = factory

    @property
    def names(self) -> list[str]:
        return sorted(self._factories)

    def load_notebook_repo(self, name: str) -> NotebookRepo:
        """Instantiate the backend registered (or importable) under *name*."""
        factory = self._factories.get(name)
        if factory is None:
            factory = self._import_factory(name)
        repo = factory()
        if not isinstance(repo, NotebookRepo):
            raise ConfigurationError(f"Storage {name!r} does not implement NotebookRepo")
        return repo

    @staticmethod
    def _import_factory(name: str) -> RepoFactory:
        module_name, sep, attr = name.partition(":")
        if not sep or not module_name or not attr:
            raise ConfigurationError(f"Unknown storage {name!r}")
        try:
            module = importlib.import_module(module_name)
            return getattr(module, attr)
        except (ImportError, AttributeError) as e:
            raise ConfigurationError(f"Cannot load storage {name!r}: {e}") from e
