"""nbrepo: notebook storage with primary/secondary synchronization."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("nbrepo")
except PackageNotFoundError:
    __version__ = "0.0.0"

from nbrepo.config import RepoConfig, load_config
from nbrepo.errors import (
    CheckpointError,
    ConfigurationError,
    NoteNotFoundError,
    RepoError,
    RepoIndexError,
)
from nbrepo.models import (
    ANONYMOUS,
    AuthenticationInfo,
    CheckpointResult,
    Note,
    NoteInfo,
    Paragraph,
    RepoHandle,
    RepoWithSettings,
    Revision,
    SettingsInfo,
    SyncPlan,
    SyncResult,
)
from nbrepo.repo import NotebookRepo, NotebookRepoWithVersionControl, supports_version_control
from nbrepo.sync import NotebookRepoSync

__all__ = [
    "ANONYMOUS",
    "AuthenticationInfo",
    "CheckpointError",
    "CheckpointResult",
    "ConfigurationError",
    "Note",
    "NoteInfo",
    "NoteNotFoundError",
    "NotebookRepo",
    "NotebookRepoSync",
    "NotebookRepoWithVersionControl",
    "Paragraph",
    "RepoConfig",
    "RepoError",
    "RepoHandle",
    "RepoIndexError",
    "RepoWithSettings",
    "Revision",
    "SettingsInfo",
    "SyncPlan",
    "SyncResult",
    "load_config",
    "supports_version_control",
]
