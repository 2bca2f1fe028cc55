"""Project configuration, storage list parsing, and path resolution."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field

MAX_REPO_NUM = 2
DEFAULT_STORAGE = "sqlite"

# ---------------------------------------------------------------------------
# Project root detection
# ---------------------------------------------------------------------------


def find_project_root(start: str | Path | None = None) -> Path:
    """Walk up from *start* (default: cwd) looking for a project root marker.

    Markers (in priority order): .git, pyproject.toml, package.json, Cargo.toml.
    Falls back to *start* itself if no marker is found.
    """
    p = Path(start) if start else Path.cwd()
    p = p.resolve()

    for directory in [p, *p.parents]:
        for marker in (".git", "pyproject.toml", "package.json", "Cargo.toml"):
            if (directory / marker).exists():
                return directory
    return p


# ---------------------------------------------------------------------------
# Storage list parsing
# ---------------------------------------------------------------------------


def parse_storage_names(raw: str) -> list[str]:
    """Split a comma-separated storage value into trimmed, non-empty names."""
    return [name.strip() for name in raw.split(",") if name.strip()]


# ---------------------------------------------------------------------------
# Config model
# ---------------------------------------------------------------------------


class RepoConfig(BaseModel):
    """Settings consumed by the backend registry, the sync engine and the backends."""

    storage: str = DEFAULT_STORAGE
    default_storage: str = DEFAULT_STORAGE
    max_repos: int = Field(default=MAX_REPO_NUM, ge=1, le=MAX_REPO_NUM)
    one_way_sync: bool = False
    anonymous_allowed: bool = True
    isolate_failures: bool = False
    notebook_dir: Path = Path(".nbrepo") / "notebooks"
    db_path: Path = Path(".nbrepo") / "notebooks.db"

    @property
    def storage_names(self) -> list[str]:
        return parse_storage_names(self.storage)


_ENV_FIELDS = {
    "NBREPO_STORAGE": "storage",
    "NBREPO_DEFAULT_STORAGE": "default_storage",
    "NBREPO_ONE_WAY_SYNC": "one_way_sync",
    "NBREPO_ANONYMOUS_ALLOWED": "anonymous_allowed",
    "NBREPO_ISOLATE_FAILURES": "isolate_failures",
}


def load_config(project_root: str | Path | None = None) -> RepoConfig:
    """Build a RepoConfig from ``NBREPO_*`` environment variables.

    Paths resolve in this order:
    1. NBREPO_NOTEBOOK_DIR / NBREPO_DB_PATH environment variables
    2. <project_root>/.nbrepo/notebooks and <project_root>/.nbrepo/notebooks.db
    """
    values: dict[str, object] = {}
    for env, field in _ENV_FIELDS.items():
        raw = os.environ.get(env)
        if raw is not None:
            values[field] = raw.strip()

    root = Path(project_root) if project_root else find_project_root()
    notebook_dir = os.environ.get("NBREPO_NOTEBOOK_DIR")
    db_path = os.environ.get("NBREPO_DB_PATH")
    values["notebook_dir"] = (
        Path(notebook_dir).expanduser().resolve()
        if notebook_dir
        else root / ".nbrepo" / "notebooks"
    )
    values["db_path"] = (
        Path(db_path).expanduser().resolve() if db_path else root / ".nbrepo" / "notebooks.db"
    )
    return RepoConfig.model_validate(values)
