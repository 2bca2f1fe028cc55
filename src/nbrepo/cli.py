"""Typer CLI for nbrepo: list, sync, checkpoint, history, repos, serve."""

from __future__ import annotations

import asyncio
import logging

import typer

from nbrepo.config import load_config
from nbrepo.errors import RepoError
from nbrepo.models import ANONYMOUS

logger = logging.getLogger("nbrepo.cli")

app = typer.Typer(
    name="nbrepo",
    help="Notebook storage with primary/secondary synchronization.",
    no_args_is_help=True,
)


def _run(coro):  # type: ignore[no-untyped-def]
    """Run an async coroutine synchronously."""
    return asyncio.run(coro)


def _fail(message: str) -> None:
    typer.echo(message, err=True)
    raise typer.Exit(1)


@app.callback()
def main_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log sync progress to stderr"),
) -> None:
    """Configure logging before any command runs."""
    logging.basicConfig(level=logging.INFO if verbose else logging.WARNING)


# ---------------------------------------------------------------------------
# nbrepo list
# ---------------------------------------------------------------------------


@app.command(name="list")
def list_cmd(
    repo: int = typer.Option(0, "--repo", "-r", help="Storage index (0 = primary)"),
) -> None:
    """List notes in one storage."""

    async def _list() -> None:
        from nbrepo.display import display_notes
        from nbrepo.sync import NotebookRepoSync

        async with NotebookRepoSync(config=load_config()) as engine:
            notes = await engine.list_from(repo, ANONYMOUS)
            display_notes(notes, repo)

    try:
        _run(_list())
    except RepoError as e:
        _fail(str(e))


# ---------------------------------------------------------------------------
# nbrepo sync
# ---------------------------------------------------------------------------


@app.command()
def sync(
    source: int = typer.Option(0, "--source", "-s", help="Source storage index"),
    dest: int = typer.Option(1, "--dest", "-d", help="Destination storage index"),
) -> None:
    """Copy new and updated notes between two storages."""

    async def _sync() -> None:
        from nbrepo.display import display_sync_result
        from nbrepo.sync import NotebookRepoSync

        config = load_config().model_copy(update={"anonymous_allowed": False})
        async with NotebookRepoSync(config=config) as engine:
            result = await engine.sync(ANONYMOUS, source_index=source, dest_index=dest)
            display_sync_result(result, source, dest)

    try:
        _run(_sync())
    except RepoError as e:
        _fail(str(e))


# ---------------------------------------------------------------------------
# nbrepo checkpoint / history
# ---------------------------------------------------------------------------


@app.command()
def checkpoint(
    note_id: str = typer.Argument(..., help="Note ID"),
    path: str = typer.Argument(..., help="Note path, e.g. /project/note"),
    message: str = typer.Option("", "--message", "-m", help="Checkpoint message"),
) -> None:
    """Record a revision of a note in every storage that keeps revisions."""

    async def _checkpoint() -> None:
        from nbrepo.sync import NotebookRepoSync

        async with NotebookRepoSync(config=load_config()) as engine:
            revision = await engine.checkpoint(note_id, path, message, ANONYMOUS)
            if revision is None:
                typer.echo("Nothing to checkpoint.")
            else:
                typer.echo(f"Checkpoint {revision.revision_id} recorded.")

    try:
        _run(_checkpoint())
    except RepoError as e:
        _fail(str(e))


@app.command()
def history(
    note_id: str = typer.Argument(..., help="Note ID"),
    path: str = typer.Argument(..., help="Note path, e.g. /project/note"),
) -> None:
    """Show the revision history of a note (primary storage)."""

    async def _history() -> None:
        from nbrepo.display import display_revisions
        from nbrepo.sync import NotebookRepoSync

        async with NotebookRepoSync(config=load_config()) as engine:
            display_revisions(await engine.revision_history(note_id, path, ANONYMOUS), note_id)

    try:
        _run(_history())
    except RepoError as e:
        _fail(str(e))


# ---------------------------------------------------------------------------
# nbrepo repos
# ---------------------------------------------------------------------------


@app.command()
def repos() -> None:
    """Show the configured storages and their settings."""

    async def _repos() -> None:
        from nbrepo.display import display_repos
        from nbrepo.sync import NotebookRepoSync

        async with NotebookRepoSync(config=load_config()) as engine:
            display_repos(await engine.get_notebook_repos(ANONYMOUS))

    try:
        _run(_repos())
    except RepoError as e:
        _fail(str(e))


# ---------------------------------------------------------------------------
# nbrepo serve
# ---------------------------------------------------------------------------


@app.command()
def serve() -> None:
    """Run the MCP server over stdio."""
    from nbrepo.server import main

    main()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
