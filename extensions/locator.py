"""Extension discovery.

Finds extension roots under the extensions source directory. An extension
root is a directory holding a package descriptor. Extensions may sit directly
under the source directory or one level deeper, grouped by kind:

    src/extensions/
    ├── alpha/
    │   └── package.json
    └── endpoints/
        └── beta/
            └── package.json
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from extensions.manifest import DESCRIPTOR_FILENAME

logger = logging.getLogger(__name__)

# Directory names never scanned for extensions
IGNORED_DIRS = {"node_modules"}


@dataclass(frozen=True)
class ExtensionTarget:
    """A directory recognized as one extension."""

    absolute_path: Path
    relative_name: str

    @property
    def descriptor_path(self) -> Path:
        return self.absolute_path / DESCRIPTOR_FILENAME

    @property
    def src_dir(self) -> Path:
        """Editable source subdirectory."""
        return self.absolute_path / "src"

    @property
    def dist_dir(self) -> Path:
        """Compiled output subdirectory."""
        return self.absolute_path / "dist"

    def __str__(self) -> str:
        return self.relative_name


class ExtensionLocator:
    """Discover extension targets at most two levels under a root.

    Example:
        >>> locator = ExtensionLocator(Path("src/extensions"))
        >>> [t.relative_name for t in locator.locate()]
        ['alpha', 'endpoints/beta']
    """

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def locate(self) -> list[ExtensionTarget]:
        """Discover all extension targets.

        Returns:
            Targets in discovery order, unique by resolved path. Empty if the
            root does not exist.
        """
        targets: list[ExtensionTarget] = []
        seen: set[Path] = set()

        if not self.root.is_dir():
            logger.info("No extensions directory found at %s", self.root)
            return targets

        for entry in self._subdirs(self.root):
            self._collect(entry, targets, seen)
            for sub_entry in self._subdirs(entry):
                self._collect(sub_entry, targets, seen)

        logger.debug(
            "Discovered %d extension(s) under %s: %s",
            len(targets),
            self.root,
            ", ".join(t.relative_name for t in targets),
        )
        return targets

    def _collect(
        self, directory: Path, targets: list[ExtensionTarget], seen: set[Path]
    ) -> None:
        if not (directory / DESCRIPTOR_FILENAME).is_file():
            return

        resolved = directory.resolve()
        if resolved in seen:
            logger.debug("Skipping %s: already discovered as %s", directory, resolved)
            return

        seen.add(resolved)
        targets.append(
            ExtensionTarget(
                absolute_path=directory.absolute(),
                relative_name=directory.relative_to(self.root).as_posix(),
            )
        )

    @staticmethod
    def _subdirs(directory: Path) -> list[Path]:
        try:
            entries = sorted(directory.iterdir())
        except OSError as e:
            logger.warning("Cannot read %s: %s", directory, e)
            return []
        return [
            entry
            for entry in entries
            if entry.is_dir() and entry.name not in IGNORED_DIRS and not entry.name.startswith(".")
        ]


def locate(root: Path | str) -> list[ExtensionTarget]:
    """Discover extension targets under ``root``."""
    return ExtensionLocator(root).locate()
