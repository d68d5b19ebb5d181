"""Domain models for podcast-dl.

All models are **frozen** dataclasses — immutable value objects with no
behaviour beyond data access.  They carry zero I/O, zero dependencies on
external packages, and must remain pure across the entire lifecycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from podcast_dl.config import DEFAULT_CONTENT_TYPE


# ---------------------------------------------------------------------------
# Session and endpoints
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class SessionInfo:
    """Kaltura session identifiers scraped from a podcast page."""

    entry_id: str
    """Kaltura entry (video) identifier, e.g. ``1_abc123``."""

    account_id: str
    """Kaltura partner (account) identifier, digits only."""

    session_token: str | None = None
    """Kaltura session (``ks``) token, or ``None`` when the page has none."""


@dataclass(frozen=True, slots=True)
class EndpointSet:
    """Provider URLs derived from a :class:`SessionInfo`."""

    video_url: str
    """playManifest download URL for the source video."""

    subtitle_url: str | None
    """Caption-listing API URL.  ``None`` iff no session token was found."""


# ---------------------------------------------------------------------------
# Subtitles
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class SubtitleSpec:
    """One individually addressable subtitle file to embed."""

    url: str
    language_code: str = "eng"
    """ISO 639-2 code written to the track's ``language`` metadata."""

    label: str = ""
    """Human-readable track title.  Empty means no ``title`` metadata."""

    file_name: str | None = None
    """Source file name; only its extension is used for the working file."""


@dataclass(frozen=True, slots=True)
class CaptionAsset:
    """A single entry of the Kaltura caption-listing response."""

    id: str
    label: str
    language: str
    language_code: str
    file_ext: str
    is_default: bool = False


# ---------------------------------------------------------------------------
# Pipeline output and reporting
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class MediaBlob:
    """Final deliverable bytes, tagged with their content type."""

    data: bytes = field(repr=False)
    content_type: str = DEFAULT_CONTENT_TYPE

    def __len__(self) -> int:
        return len(self.data)


class LogLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class LogEntry:
    """A single progress-log line emitted by the core layer."""

    message: str
    level: LogLevel = LogLevel.INFO
    timestamp: datetime = field(default_factory=datetime.now)


class PipelineStage(str, Enum):
    """States of a single ``process_video`` invocation."""

    IDLE = "idle"
    ENGINE_LOADING = "engine loading"
    FETCHING_VIDEO = "video fetch"
    FETCHING_SUBTITLES = "subtitle fetch"
    MUXING = "muxing"
    PASS_THROUGH = "pass-through"
    READING = "output read"
    CLEANUP = "cleanup"
    DONE = "done"
    FAILED = "failed"
