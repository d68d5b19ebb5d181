"""Filesystem implementation of :class:`~podcast_dl.core.protocols.SaveTarget`.

:class:`DirectorySaveTarget` is the non-interactive save path: it writes
the blob into a fixed directory, never overwriting an existing file.
"""

from __future__ import annotations

from pathlib import Path

from podcast_dl.core.models import MediaBlob
from podcast_dl.exceptions import SaveError


def unique_path(path: Path) -> Path:
    """Return *path*, or ``name (n).ext`` for the first free ``n``."""
    if not path.exists():
        return path
    n = 1
    while True:
        candidate = path.with_name(f"{path.stem} ({n}){path.suffix}")
        if not candidate.exists():
            return candidate
        n += 1


def write_blob(blob: MediaBlob, path: Path) -> Path:
    """Write *blob* to *path*, creating parent directories.

    Raises
    ------
    SaveError
        When the file cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(blob.data)
    except OSError as exc:
        raise SaveError(f"Could not save to {path}: {exc}") from exc
    return path


class DirectorySaveTarget:
    """Save into *directory* under the requested filename."""

    def __init__(self, directory: Path) -> None:
        self._directory: Path = directory

    def save(self, blob: MediaBlob, filename: str) -> Path:
        return write_blob(blob, unique_path(self._directory / filename))
