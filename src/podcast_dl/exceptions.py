"""Custom exception hierarchy for podcast-dl.

All exceptions that cross layer boundaries must inherit from
:class:`PodcastDlError`.  Raw third-party exceptions (requests,
subprocess, OS errors) must NEVER propagate beyond the infrastructure
layer — they must be caught and re-raised as a typed subclass defined
here.

Hierarchy
---------
PodcastDlError
├── InvalidSourceError
├── ExtractionError
├── FetchError
│   └── DownloadError
├── CaptionListingError
├── EngineLoadError
├── MuxError
├── ReadError
├── StorageError
├── ProcessingError
├── SaveError
├── SaveCancelledError
└── EnvironmentError
    └── FfmpegNotFoundError
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from podcast_dl.core.models import PipelineStage


class PodcastDlError(Exception):
    """Base exception for all podcast-dl errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Markup source ---------------------------------------------------------

class InvalidSourceError(PodcastDlError):
    """Raised when the markup source cannot be read."""


# --- Endpoint resolution ---------------------------------------------------

class ExtractionError(PodcastDlError):
    """Raised when required session fields are absent from the markup.

    ``missing_fields`` names every required field that was not found,
    in descriptor order.
    """

    def __init__(
        self,
        missing_fields: Sequence[str],
        *,
        hint: str | None = None,
    ) -> None:
        self.missing_fields: tuple[str, ...] = tuple(missing_fields)
        super().__init__(
            "Failed to extract Kaltura configuration: missing "
            + ", ".join(self.missing_fields),
            hint=hint or "Are you on a valid podcast page?",
        )


# --- Network ---------------------------------------------------------------

class FetchError(PodcastDlError):
    """Raised when a single HTTP fetch fails."""


class DownloadError(FetchError):
    """Raised when both the direct and the relay fetch of a resource failed."""

    def __init__(
        self,
        name: str,
        *,
        direct_error: BaseException,
        proxy_error: BaseException,
    ) -> None:
        super().__init__(
            f"Failed to download {name} even with proxy: {proxy_error}",
            hint=f"Direct attempt failed first with: {direct_error}",
        )
        self.name: str = name
        self.direct_error: BaseException = direct_error
        self.proxy_error: BaseException = proxy_error


class CaptionListingError(PodcastDlError):
    """Raised when the caption-listing endpoint returns an unusable payload."""


# --- Transcoding engine ----------------------------------------------------

class EngineLoadError(PodcastDlError):
    """Raised when the transcoding engine fails to initialise."""


class MuxError(PodcastDlError):
    """Raised when a remux command fails inside the engine."""


class ReadError(PodcastDlError):
    """Raised when a working file cannot be read back from the engine."""


class StorageError(PodcastDlError):
    """Raised when the engine's working storage rejects a write or delete."""


class ProcessingError(PodcastDlError):
    """Wraps a fatal pipeline error with the stage it occurred in."""

    def __init__(self, stage: PipelineStage, cause: PodcastDlError) -> None:
        super().__init__(
            f"Processing failed during {stage.value}: {cause}",
            hint=cause.hint,
        )
        self.stage: PipelineStage = stage
        self.cause: PodcastDlError = cause


# --- Output ----------------------------------------------------------------

class SaveError(PodcastDlError):
    """Raised when a save target is unavailable or cannot persist the result."""


class SaveCancelledError(PodcastDlError):
    """Raised when the user dismisses the save dialog."""


# --- Environment / tooling -------------------------------------------------

class EnvironmentError(PodcastDlError):
    """Raised when a required runtime dependency is not available."""


class FfmpegNotFoundError(EnvironmentError):
    """Raised when ffmpeg cannot be located on the system PATH."""

