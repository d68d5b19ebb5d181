"""Hand a finished :class:`MediaBlob` to the save collaborator.

The primary target is the interactive "save as" flow.  When it is
unavailable (no TTY, optional UI package missing) or raises anything
else, the blob is written by the fallback target instead.  A dismissed
dialog is a user decision and is not retried.
"""

from __future__ import annotations

from pathlib import Path

from podcast_dl.config import DEFAULT_FILENAME
from podcast_dl.core.models import LogEntry, LogLevel, MediaBlob
from podcast_dl.core.protocols import LogCallback, SaveTarget
from podcast_dl.exceptions import SaveCancelledError


def save_with_fallback(
    blob: MediaBlob,
    primary: SaveTarget,
    fallback: SaveTarget | None = None,
    *,
    filename: str = DEFAULT_FILENAME,
    on_log: LogCallback | None = None,
) -> Path:
    """Save *blob* through *primary*, retrying once with *fallback*.

    Raises
    ------
    SaveCancelledError
        When the user dismissed the primary dialog; never retried.
    SaveError
        The primary target's error when no fallback is configured, or
        the fallback's own error.
    """
    try:
        return primary.save(blob, filename)
    except SaveCancelledError:
        raise
    except Exception as exc:
        if fallback is None:
            raise
        if on_log is not None:
            on_log(LogEntry(f"Save dialog unavailable ({exc}), saving directly", LogLevel.WARNING))
    return fallback.save(blob, filename)
