"""Version-control aggregation over storages that support revisions."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import cast

from nbrepo.errors import CheckpointError
from nbrepo.models import AuthenticationInfo, CheckpointResult, Note, RepoHandle, Revision
from nbrepo.repo import NotebookRepoWithVersionControl

logger = logging.getLogger("nbrepo.versioning")


def _vc(handle: RepoHandle) -> NotebookRepoWithVersionControl:
    return cast(NotebookRepoWithVersionControl, handle.repo)


async def checkpoint_all(
    handles: Sequence[RepoHandle],
    note_id: str,
    path: str,
    message: str,
    subject: AuthenticationInfo,
    max_repos: int,
) -> CheckpointResult:
    """Checkpoint on every capable storage and collect the per-storage outcomes."""
    result = CheckpointResult()
    for handle in handles[:max_repos]:
        if not handle.supports_version_control:
            continue
        result.attempted += 1
        try:
            result.revisions.append(await _vc(handle).checkpoint(note_id, path, message, subject))
        except Exception as e:
            logger.warning(
                "Couldn't checkpoint in %s storage with index %d for note %s: %s",
                handle.class_name,
                handle.index,
                note_id,
                e,
            )
            result.failures.append(
                f"Error on storage {handle.class_name} with index {handle.index} : {e}"
            )
    return result


async def checkpoint(
    handles: Sequence[RepoHandle],
    note_id: str,
    path: str,
    message: str,
    subject: AuthenticationInfo,
    max_repos: int,
) -> Revision | None:
    """Checkpoint everywhere; fail only when every attempted storage failed."""
    result = await checkpoint_all(handles, note_id, path, message, subject, max_repos)
    if result.all_failed:
        raise CheckpointError(result.failures)
    return result.revision


async def get_revision(
    handles: Sequence[RepoHandle],
    note_id: str,
    path: str,
    revision_id: str,
    subject: AuthenticationInfo,
) -> Note | None:
    if not handles or not handles[0].supports_version_control:
        return None
    try:
        return await _vc(handles[0]).get_revision(note_id, path, revision_id, subject)
    except Exception:
        logger.exception("Failed to get revision %s of note %s", revision_id, note_id)
        return None


async def revision_history(
    handles: Sequence[RepoHandle],
    note_id: str,
    path: str,
    subject: AuthenticationInfo,
) -> list[Revision]:
    if not handles or not handles[0].supports_version_control:
        return []
    try:
        return await _vc(handles[0]).revision_history(note_id, path, subject)
    except Exception:
        logger.exception("Failed to list revision history of note %s", note_id)
        return []


async def set_note_revision(
    handles: Sequence[RepoHandle],
    note_id: str,
    path: str,
    revision_id: str,
    subject: AuthenticationInfo,
    max_repos: int,
) -> Note | None:
    """Restore *revision_id* everywhere; return the first storage's non-empty result."""
    restored: Note | None = None
    for handle in handles[:max_repos]:
        if not handle.supports_version_control:
            continue
        try:
            current = await _vc(handle).set_note_revision(note_id, path, revision_id, subject)
        except Exception:
            logger.exception(
                "Failed to set revision %s of note %s in storage %s",
                revision_id,
                note_id,
                handle.name,
            )
            current = None
        if current is not None and restored is None:
            restored = current
    return restored
