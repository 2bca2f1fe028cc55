"""Reconciler: applies a SyncPlan to a pair of storages."""

from __future__ import annotations

import logging

from nbrepo.errors import RepoError
from nbrepo.models import AuthenticationInfo, NoteInfo, SyncPlan, SyncResult
from nbrepo.repo import NotebookRepo

logger = logging.getLogger("nbrepo.reconcile")


async def push_notes(
    notes: list[NoteInfo],
    source: NotebookRepo,
    dest: NotebookRepo,
    subject: AuthenticationInfo,
) -> tuple[list[str], list[str]]:
    """Copy each note from *source* to *dest*. Returns (copied ids, failed ids).

    A note that cannot be read or written is logged and skipped.
    """
    done: list[str] = []
    failed: list[str] = []
    for info in notes:
        try:
            note = await source.get(info.note_id, info.path, subject)
            await dest.save(note, subject)
        except Exception:
            logger.exception(
                "Failed to push note %s to storage, moving onto next one", info.note_id
            )
            failed.append(info.note_id)
            continue
        done.append(info.note_id)
    return done, failed


async def delete_notes(
    notes: list[NoteInfo],
    repo: NotebookRepo,
    subject: AuthenticationInfo,
    *,
    isolate_failures: bool = False,
) -> list[str]:
    """Remove each note from *repo* by id and its path in that storage.

    By default the first failure propagates and the remaining notes are left
    in place. With *isolate_failures* every note is attempted and the failures
    are raised together afterwards.
    """
    deleted: list[str] = []
    errors: list[str] = []
    for info in notes:
        if not isolate_failures:
            await repo.remove(info.note_id, info.path, subject)
            deleted.append(info.note_id)
            continue
        try:
            await repo.remove(info.note_id, info.path, subject)
        except Exception as e:
            logger.exception("Failed to delete note %s from storage", info.note_id)
            errors.append(f"{info.note_id}: {e}")
            continue
        deleted.append(info.note_id)
    if errors:
        raise RepoError("Failed to delete notes:\n" + "\n".join(errors))
    return deleted


def _log_list(notes: list[NoteInfo], header: str, empty: str) -> None:
    if not notes:
        logger.info(empty)
        return
    logger.info(header)
    for info in notes:
        logger.info("Note : %s", info.note_id)


async def reconcile(
    plan: SyncPlan,
    source: NotebookRepo,
    dest: NotebookRepo,
    subject: AuthenticationInfo,
    *,
    isolate_failures: bool = False,
) -> SyncResult:
    result = SyncResult()

    _log_list(plan.push, "The following notes will be pushed", "Nothing to push")
    if plan.push:
        result.pushed, failed = await push_notes(plan.push, source, dest, subject)
        result.failed.extend(failed)

    _log_list(plan.pull, "The following notes will be pulled", "Nothing to pull")
    if plan.pull:
        result.pulled, failed = await push_notes(plan.pull, dest, source, subject)
        result.failed.extend(failed)

    _log_list(
        plan.delete_dest,
        "The following notes will be deleted from dest",
        "Nothing to delete from dest",
    )
    if plan.delete_dest:
        result.deleted = await delete_notes(
            plan.delete_dest, dest, subject, isolate_failures=isolate_failures
        )

    return result
