"""Path utilities for locating case directories."""

import os
from pathlib import Path


def get_index_directory_path(case_path: Path) -> Path:
    """Return the .hitsave directory of a case (e.g. /cases/c1/.hitsave)."""
    return case_path / '.hitsave'


def find_case_for_path(target_path: Path) -> Path | None:
    """Find the nearest directory at or above target_path that holds a .hitsave index.

    The path is normalized with os.path.normpath() so that '..' components are removed
    without following symlinks.

    Returns:
        The case directory, or None when the filesystem root is reached without a match.
    """
    target_path = target_path if target_path.is_absolute() else Path.cwd() / target_path
    current = Path(os.path.normpath(str(target_path)))

    while True:
        index_dir = get_index_directory_path(current)
        if index_dir.exists() and index_dir.is_dir():
            return current

        parent = current.parent
        if parent == current:
            return None

        current = parent
