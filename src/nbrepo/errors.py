"""Exception taxonomy for storage backends and the sync engine."""

from __future__ import annotations


class RepoError(Exception):
    """Base class for storage failures raised by backends and the engine."""


class NoteNotFoundError(RepoError):
    """Raised when a note cannot be located by id and path."""

    def __init__(self, note_id: str, path: str) -> None:
        super().__init__(f"Note {note_id} not found at {path}")
        self.note_id = note_id
        self.path = path


class RepoIndexError(RepoError, IndexError):
    """Raised when a backend ordinal is outside the initialized range."""


class ConfigurationError(RepoError):
    """Raised when no backend (not even the default) could be initialized."""


class CheckpointError(RepoError):
    """Raised when every attempted checkpoint failed."""

    def __init__(self, failures: list[str]) -> None:
        super().__init__("\n".join(failures))
        self.failures = failures


__all__ = [
    "CheckpointError",
    "ConfigurationError",
    "NoteNotFoundError",
    "RepoError",
    "RepoIndexError",
]
