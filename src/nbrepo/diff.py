"""Diff engine: decides which notes to push, pull, or delete between two storages."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from nbrepo.models import EPOCH, AuthenticationInfo, Note, NoteInfo, SyncPlan
from nbrepo.repo import NotebookRepo

logger = logging.getLogger("nbrepo.diff")


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def last_modification_date(note: Note) -> datetime:
    """Latest created/started/finished timestamp across all paragraphs.

    Missing timestamps are ignored; a note without any yields the epoch.
    """
    latest = EPOCH
    for paragraph in note.paragraphs:
        for stamp in (paragraph.created_at, paragraph.started_at, paragraph.finished_at):
            if stamp is not None and _as_utc(stamp) > latest:
                latest = _as_utc(stamp)
    return latest


async def notes_check_diff(
    source_notes: Iterable[NoteInfo],
    source_repo: NotebookRepo,
    dest_notes: Iterable[NoteInfo],
    dest_repo: NotebookRepo,
    subject: AuthenticationInfo,
    *,
    one_way_sync: bool = False,
) -> SyncPlan:
    """Partition both listings into push / pull / delete-from-destination.

    Notes present on both sides are compared by ``last_modification_date``;
    equal dates mean no action even when the content differs.
    """
    source = list(source_notes)
    dest_by_id = {n.note_id: n for n in dest_notes}
    source_ids = {n.note_id for n in source}
    plan = SyncPlan()

    for snote in source:
        dnote = dest_by_id.get(snote.note_id)
        if dnote is None:
            # Unknown to the destination: the source is authoritative.
            plan.push.append(snote)
            continue

        try:
            snote_full = await source_repo.get(snote.note_id, snote.path, subject)
            dnote_full = await dest_repo.get(dnote.note_id, dnote.path, subject)
            sdate = last_modification_date(snote_full)
            ddate = last_modification_date(dnote_full)
        except Exception:
            logger.exception("Cannot access previously listed note %s from storage", snote.note_id)
            continue

        if sdate == ddate:
            continue
        if sdate > ddate or one_way_sync:
            logger.info("Modified note %s is added to push list : %s", snote.note_id, sdate)
            plan.push.append(snote)
        else:
            logger.info("Modified note %s is added to pull list : %s", dnote.note_id, ddate)
            plan.pull.append(dnote)

    for dnote in dest_by_id.values():
        if dnote.note_id in source_ids:
            continue
        if one_way_sync:
            logger.info("Extraneous note is added to delete dest list : %s", dnote.note_id)
            plan.delete_dest.append(dnote)
        else:
            logger.info("Missing note is added to pull list : %s", dnote.note_id)
            plan.pull.append(dnote)

    return plan
