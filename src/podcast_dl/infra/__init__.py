"""Infrastructure layer — external system integration.

This layer wraps all interaction with requests, ffmpeg and the
filesystem.  Every raw third-party exception must be caught here and
re-raised as a :class:`~podcast_dl.exceptions.PodcastDlError` subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
"""

from podcast_dl.infra.ffmpeg_detector import ToolStatus, detect_ffmpeg, detect_ffprobe, require_ffmpeg
from podcast_dl.infra.ffmpeg_engine import FfmpegEngine
from podcast_dl.infra.http_client import RequestsHttpClient
from podcast_dl.infra.savers import DirectorySaveTarget

__all__: list[str] = [
    "DirectorySaveTarget",
    "FfmpegEngine",
    "RequestsHttpClient",
    "ToolStatus",
    "detect_ffmpeg",
    "detect_ffprobe",
    "require_ffmpeg",
]
