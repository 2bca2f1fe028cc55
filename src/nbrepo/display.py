"""Rich terminal formatting for CLI output."""

from __future__ import annotations

from datetime import datetime, timezone

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from nbrepo.models import NoteInfo, RepoWithSettings, Revision, SyncResult

console = Console()


def _format_date(dt: datetime) -> str:
    """Format a datetime for display."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.strftime("%b %d %Y %I:%M %p")


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


def display_notes(notes: list[NoteInfo], repo_index: int = 0) -> None:
    """Display a storage listing as a rich table."""
    if not notes:
        console.print(f"[dim]No notes in storage {repo_index}.[/dim]")
        return

    table = Table(title=f"Notes (storage {repo_index})", show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", width=14)
    table.add_column("Name", style="bold")
    table.add_column("Path", no_wrap=False)

    for info in sorted(notes, key=lambda n: n.path):
        table.add_row(info.note_id, info.name, info.path)

    console.print(table)


# ---------------------------------------------------------------------------
# Sync
# ---------------------------------------------------------------------------


def display_sync_result(result: SyncResult, source: int, dest: int) -> None:
    lines = [
        f"Pushed ({source} -> {dest}): {len(result.pushed)}",
        f"Pulled ({dest} -> {source}): {len(result.pulled)}",
        f"Deleted from {dest}: {len(result.deleted)}",
    ]
    if result.failed:
        lines.append(f"[red]Failed: {', '.join(result.failed)}[/red]")
    console.print(Panel("\n".join(lines), title="Sync"))


# ---------------------------------------------------------------------------
# Revisions
# ---------------------------------------------------------------------------


def display_revisions(revisions: list[Revision], note_id: str) -> None:
    if not revisions:
        console.print(f"[dim]No revisions for note {note_id}.[/dim]")
        return

    table = Table(title=f"Revisions of {note_id}", show_header=True, header_style="bold")
    table.add_column("Revision", style="cyan", width=14)
    table.add_column("Date", width=22)
    table.add_column("Message", no_wrap=False)
    for rev in revisions:
        table.add_row(rev.revision_id, _format_date(rev.time), rev.message or "-")
    console.print(table)


# ---------------------------------------------------------------------------
# Storages
# ---------------------------------------------------------------------------


def display_repos(repos: list[RepoWithSettings]) -> None:
    table = Table(title="Storages", show_header=True, header_style="bold")
    table.add_column("#", width=3)
    table.add_column("Name", style="cyan")
    table.add_column("Class")
    table.add_column("Settings", no_wrap=False)
    for index, repo in enumerate(repos):
        settings = ", ".join(f"{s.name}={s.selected}" for s in repo.settings) or "-"
        role = " (primary)" if index == 0 else ""
        table.add_row(str(index), repo.name + role, repo.class_name, settings)
    console.print(table)
