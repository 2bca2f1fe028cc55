"""Note (de)serialization used by the storage backends."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from nbrepo.errors import RepoError
from nbrepo.models import Note


@runtime_checkable
class NoteParser(Protocol):
    """Turns notes into their stored text form and back."""

    def to_json(self, note: Note) -> str:
        ...

    def from_json(self, raw: str) -> Note:
        ...


class JsonNoteParser:
    """Pydantic-backed JSON parser."""

    def __init__(self, indent: int | None = None) -> None:
        self._indent = indent

    def to_json(self, note: Note) -> str:
        return note.model_dump_json(indent=self._indent)

    def from_json(self, raw: str) -> Note:
        try:
            return Note.model_validate_json(raw)
        except ValidationError as e:
            raise RepoError(
                f"Unreadable note content: {e.error_count()} validation error(s)"
            ) from e
