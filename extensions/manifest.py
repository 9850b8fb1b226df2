"""Package descriptor handling for extensions.

Reads extension descriptors (package.json), derives the sanitized descriptor
shipped in a distribution, and the rewritten descriptor used when linking
editable sources in development.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from extensions.errors import ExtstageError
from schemas.descriptor import (
    DEFAULT_ENTRY_POINT,
    DEFAULT_EXTENSION_TYPE,
    DESCRIPTOR_DEFAULTS,
    DEV_ENTRY_POINT,
    DISTRIBUTED_FILES,
    EXTENSION_KEY,
    SanitizedDescriptor,
)

DESCRIPTOR_FILENAME = "package.json"


class ManifestError(ExtstageError, ValueError):
    """Raised when a descriptor cannot be read or is not a structured object."""

    pass


def load_descriptor(path: Path) -> dict[str, Any]:
    """Load a package descriptor from disk.

    Args:
        path: Path to the descriptor file.

    Returns:
        The parsed descriptor.

    Raises:
        ManifestError: If the file is unreadable, not JSON, or not an object.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise ManifestError(f"Cannot read descriptor {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ManifestError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ManifestError(f"Descriptor {path} is not a JSON object")
    return data


def write_descriptor(path: Path, data: Mapping[str, Any]) -> None:
    """Write a descriptor as 2-space indented JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def _extension_section(descriptor: Mapping[str, Any]) -> dict[str, Any]:
    section = descriptor.get(EXTENSION_KEY) or {}
    if not isinstance(section, Mapping):
        raise ManifestError(f"'{EXTENSION_KEY}' must be an object, got {type(section).__name__}")
    return dict(section)


def sanitize(descriptor: Mapping[str, Any]) -> SanitizedDescriptor:
    """Derive the runtime-safe descriptor for a distributed extension.

    Missing or empty fields take the values in ``DESCRIPTOR_DEFAULTS`` and the
    extension entry point defaults to the compiled ``dist/index.js``.

    Args:
        descriptor: Raw package descriptor.

    Returns:
        The sanitized descriptor.

    Raises:
        ManifestError: If the descriptor is not a structured object.
    """
    if not isinstance(descriptor, Mapping):
        raise ManifestError(f"Descriptor must be an object, got {type(descriptor).__name__}")

    extension = _extension_section(descriptor)
    extension["path"] = extension.get("path") or DEFAULT_ENTRY_POINT

    return SanitizedDescriptor(
        name=descriptor.get("name"),
        version=descriptor.get("version") or DESCRIPTOR_DEFAULTS["version"],
        description=descriptor.get("description") or DESCRIPTOR_DEFAULTS["description"],
        icon=descriptor.get("icon"),
        keywords=descriptor.get("keywords"),
        type=descriptor.get("type") or DESCRIPTOR_DEFAULTS["type"],
        files=list(DISTRIBUTED_FILES),
        extension=extension,
    )


def dev_descriptor(descriptor: Mapping[str, Any]) -> dict[str, Any]:
    """Rewrite a descriptor so the host loads the editable source entry.

    The result is a copy: the full descriptor with its extension sub-object
    pointing both ``path`` and ``source`` at the editable entry file.
    """
    if not isinstance(descriptor, Mapping):
        raise ManifestError(f"Descriptor must be an object, got {type(descriptor).__name__}")

    extension = _extension_section(descriptor)
    entry = extension.get("source") or DEV_ENTRY_POINT
    extension.update(
        type=extension.get("type") or DEFAULT_EXTENSION_TYPE,
        path=entry,
        source=entry,
    )

    rewritten = dict(descriptor)
    rewritten[EXTENSION_KEY] = extension
    return rewritten
