"""Filesystem helpers for staging directories."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from extensions.errors import FatalSetupError

logger = logging.getLogger(__name__)


def reset_directory(path: Path) -> None:
    """Delete ``path`` and recreate it empty.

    Symlinks inside the directory are removed, never followed, so linked
    sources survive a reset.

    Raises:
        FatalSetupError: If the directory cannot be removed or created.
    """
    path = Path(path)
    try:
        if path.is_symlink() or path.is_file():
            path.unlink()
            logger.info("Removed %s", path)
        elif path.exists():
            shutil.rmtree(path)
            logger.info("Cleared %s", path)
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FatalSetupError(f"Cannot reset directory {path}: {e}") from e


def copy_file_or_dir(src: Path, dest: Path) -> bool:
    """Copy a file or a directory tree, overwriting what is already there.

    Returns:
        False if ``src`` does not exist, True once copied.
    """
    src, dest = Path(src), Path(dest)
    if not src.exists():
        return False

    dest.parent.mkdir(parents=True, exist_ok=True)
    if src.is_dir():
        shutil.copytree(src, dest, dirs_exist_ok=True)
    else:
        shutil.copy2(src, dest)
    return True
