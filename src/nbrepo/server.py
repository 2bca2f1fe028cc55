"""MCP server for nbrepo: list, sync, checkpoint and inspect notebook storages."""

from __future__ import annotations

import logging
import sys

from mcp.server.fastmcp import FastMCP

from nbrepo.config import load_config
from nbrepo.errors import CheckpointError
from nbrepo.models import ANONYMOUS
from nbrepo.sync import NotebookRepoSync

logger = logging.getLogger("nbrepo.server")
logging.basicConfig(stream=sys.stderr, level=logging.INFO)

mcp = FastMCP(
    "nbrepo",
    instructions=(
        "Notebook storage with a primary and an optional secondary backend. "
        "Tools: list_notes, sync_repos, checkpoint_note, revision_history, repo_settings."
    ),
)

# ---------------------------------------------------------------------------
# Engine singleton, initialised lazily on first tool call
# ---------------------------------------------------------------------------

_engine: NotebookRepoSync | None = None


async def _get_engine() -> NotebookRepoSync:
    """Return the initialised NotebookRepoSync singleton."""
    global _engine
    if _engine is None:
        engine = NotebookRepoSync(config=load_config())
        await engine.init()
        _engine = engine
    return _engine


# ---------------------------------------------------------------------------
# MCP Tools
# ---------------------------------------------------------------------------


@mcp.tool()
async def list_notes(repo: int = 0) -> str:
    """List the notes of one storage.

    Args:
        repo: Storage index (0 = primary, 1 = secondary).
    """
    try:
        engine = await _get_engine()
        notes = await engine.list_from(repo, ANONYMOUS)
    except Exception:
        logger.exception("list_notes failed")
        return f"Error: could not list storage {repo}."
    if not notes:
        return f"No notes in storage {repo}."
    lines = [f"## Notes in storage {repo}", ""]
    lines += [f"- {n.path} (ID: {n.note_id})" for n in sorted(notes, key=lambda n: n.path)]
    return "\n".join(lines)


@mcp.tool()
async def sync_repos(source: int = 0, dest: int = 1) -> str:
    """Copy new and updated notes between two storages.

    Args:
        source: Source storage index.
        dest: Destination storage index.
    """
    try:
        engine = await _get_engine()
        result = await engine.sync(ANONYMOUS, source_index=source, dest_index=dest)
    except Exception:
        logger.exception("sync_repos failed")
        return f"Error: could not sync storage {source} with storage {dest}."
    summary = (
        f"Synced storage {source} with storage {dest}: pushed {len(result.pushed)},"
        f" pulled {len(result.pulled)}, deleted {len(result.deleted)}."
    )
    if result.failed:
        summary += f" Failed: {', '.join(result.failed)}."
    return summary


@mcp.tool()
async def checkpoint_note(note_id: str, path: str, message: str = "") -> str:
    """Record a revision of a note in every storage that keeps revisions.

    Args:
        note_id: ID of the note.
        path: Current path of the note, e.g. /project/note.
        message: Optional checkpoint message.
    """
    try:
        engine = await _get_engine()
        revision = await engine.checkpoint(note_id, path, message, ANONYMOUS)
    except CheckpointError as e:
        logger.warning("checkpoint_note failed on every storage")
        return f"Error: checkpoint failed.\n{e}"
    except Exception:
        logger.exception("checkpoint_note failed")
        return f'Error: could not checkpoint note "{note_id}".'
    if revision is None:
        return f'Nothing to checkpoint for note "{note_id}".'
    return f'Checkpoint {revision.revision_id} recorded for note "{note_id}".'


@mcp.tool()
async def revision_history(note_id: str, path: str) -> str:
    """List the revisions of a note kept by the primary storage.

    Args:
        note_id: ID of the note.
        path: Current path of the note.
    """
    try:
        engine = await _get_engine()
        revisions = await engine.revision_history(note_id, path, ANONYMOUS)
    except Exception:
        logger.exception("revision_history failed")
        return f'Error: could not read history of note "{note_id}".'
    if not revisions:
        return f'No revisions for note "{note_id}".'
    lines = [f"## Revisions of {note_id}", ""]
    lines += [f"- {r.revision_id} {r.time.isoformat()} {r.message}" for r in revisions]
    return "\n".join(lines)


@mcp.tool()
async def repo_settings() -> str:
    """Show the configured storages and their settings."""
    try:
        engine = await _get_engine()
        repos = await engine.get_notebook_repos(ANONYMOUS)
    except Exception:
        logger.exception("repo_settings failed")
        return "Error: could not read storage settings."
    lines = ["## Storages", ""]
    for index, repo in enumerate(repos):
        settings = ", ".join(f"{s.name}={s.selected}" for s in repo.settings) or "-"
        lines.append(f"- [{index}] {repo.name} ({repo.class_name}): {settings}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Entry point (used by `nbrepo serve`)
# ---------------------------------------------------------------------------


def main() -> None:
    """Run the nbrepo MCP server over stdio."""
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
