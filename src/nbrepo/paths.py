"""Helpers for hierarchical note paths (``/folder/sub/name``)."""

from __future__ import annotations


def normalize_path(path: str) -> str:
    """Ensure a single leading slash and no trailing slash."""
    return "/" + path.strip("/")


def is_in_folder(path: str, folder: str) -> bool:
    folder = normalize_path(folder)
    if folder == "/":
        return True
    return normalize_path(path).startswith(folder + "/")


def rebase_path(path: str, folder: str, new_folder: str) -> str:
    """Replace the *folder* prefix of *path* with *new_folder*."""
    folder = normalize_path(folder)
    rest = normalize_path(path)[len(folder) :] if folder != "/" else normalize_path(path)
    return normalize_path(normalize_path(new_folder) + rest)
