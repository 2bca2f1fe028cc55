"""Write fan-out policies across the configured storages."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence

from nbrepo.errors import RepoError
from nbrepo.models import RepoHandle
from nbrepo.repo import NotebookRepo

logger = logging.getLogger("nbrepo.fanout")

RepoOp = Callable[[NotebookRepo], Awaitable[None]]
FanoutPolicy = Callable[[Sequence[RepoHandle], RepoOp, str], Awaitable[None]]


async def best_effort_secondary(handles: Sequence[RepoHandle], op: RepoOp, what: str) -> None:
    """Apply *op* to the primary (failures propagate), then to the rest (failures logged)."""
    if not handles:
        raise RepoError(f"No storage available to {what}")
    await op(handles[0].repo)
    for handle in handles[1:]:
        try:
            await op(handle.repo)
        except Exception as e:
            logger.info("%s: Failed to %s in secondary storage %s", e, what, handle.name)


async def all_or_abort(handles: Sequence[RepoHandle], op: RepoOp, what: str) -> None:
    """Apply *op* to every storage in order; the first failure stops the loop."""
    for handle in handles:
        await op(handle.repo)


async def all_isolated(handles: Sequence[RepoHandle], op: RepoOp, what: str) -> None:
    """Apply *op* to every storage, then raise one error listing all failures."""
    errors: list[str] = []
    for handle in handles:
        try:
            await op(handle.repo)
        except Exception as e:
            logger.exception(
                "Failed to %s in storage %s with index %d", what, handle.name, handle.index
            )
            errors.append(f"Error on storage {handle.name} with index {handle.index} : {e}")
    if errors:
        raise RepoError("\n".join(errors))
