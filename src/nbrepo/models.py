"""Pydantic models for nbrepo: the shared data contracts."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from nbrepo.repo import NotebookRepo


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex[:12].upper()


def _name_from_path(path: str) -> str:
    return path.rstrip("/").rsplit("/", 1)[-1]


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


class Paragraph(BaseModel):
    """One executable/content unit within a note."""

    paragraph_id: str = Field(default_factory=new_id)
    title: str = ""
    text: str = ""
    created_at: datetime | None = Field(default_factory=utcnow)
    started_at: datetime | None = None
    finished_at: datetime | None = None


class Note(BaseModel):
    """Full note content: an id, a hierarchical path and its paragraphs."""

    note_id: str = Field(default_factory=new_id)
    path: str
    paragraphs: list[Paragraph] = Field(default_factory=list)
    metadata: dict[str, str] = Field(default_factory=dict)

    @property
    def name(self) -> str:
        return _name_from_path(self.path)


class NoteInfo(BaseModel):
    """Lightweight listing record for one note."""

    model_config = ConfigDict(frozen=True)

    note_id: str
    path: str

    @property
    def name(self) -> str:
        return _name_from_path(self.path)

    @classmethod
    def from_note(cls, note: Note) -> NoteInfo:
        return cls(note_id=note.note_id, path=note.path)


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


class AuthenticationInfo(BaseModel):
    """The acting principal. Passed through to backends, never interpreted here."""

    model_config = ConfigDict(frozen=True)

    user: str
    roles: list[str] = Field(default_factory=list)


ANONYMOUS = AuthenticationInfo(user="anonymous")


# ---------------------------------------------------------------------------
# Version control
# ---------------------------------------------------------------------------


class Revision(BaseModel):
    """A named, retrievable snapshot of a note."""

    revision_id: str
    message: str
    time: datetime = Field(default_factory=utcnow)


class CheckpointResult(BaseModel):
    """Outcome of one checkpoint fanned out across backends."""

    attempted: int = 0
    revisions: list[Revision | None] = Field(default_factory=list)
    failures: list[str] = Field(default_factory=list)

    @property
    def all_failed(self) -> bool:
        return self.attempted > 0 and len(self.failures) == self.attempted

    @property
    def revision(self) -> Revision | None:
        """First successful result, falling back to the second when the first is empty."""
        if not self.revisions:
            return None
        rev = self.revisions[0]
        if rev is None and len(self.revisions) > 1:
            rev = self.revisions[1]
        return rev


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class SettingsInfo(BaseModel):
    """Free-form key/value settings descriptor exposed by a backend."""

    type: Literal["input", "dropdown"] = "input"
    name: str
    value: list[dict[str, str]] = Field(default_factory=list)
    selected: str = ""


class RepoWithSettings(BaseModel):
    """A configured backend together with its current settings."""

    name: str
    class_name: str
    settings: list[SettingsInfo] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Sync
# ---------------------------------------------------------------------------


class SyncPlan(BaseModel):
    """Output of one diff: three disjoint lists of notes."""

    push: list[NoteInfo] = Field(default_factory=list)
    pull: list[NoteInfo] = Field(default_factory=list)
    delete_dest: list[NoteInfo] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.push or self.pull or self.delete_dest)

    def note_ids(self) -> dict[str, list[str]]:
        return {
            "push": [n.note_id for n in self.push],
            "pull": [n.note_id for n in self.pull],
            "delete_dest": [n.note_id for n in self.delete_dest],
        }


class SyncResult(BaseModel):
    """What one reconcile pass actually did."""

    pushed: list[str] = Field(default_factory=list)
    pulled: list[str] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Backend handles
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RepoHandle:
    """One configured, initialized backend and its ordinal position (0 = primary)."""

    index: int
    name: str
    repo: NotebookRepo

    @property
    def class_name(self) -> str:
        return type(self.repo).__name__

    @property
    def supports_version_control(self) -> bool:
        from nbrepo.repo import supports_version_control

        return supports_version_control(self.repo)
