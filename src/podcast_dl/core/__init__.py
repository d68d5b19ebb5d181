"""Core / service layer — business logic and data transformations.

Rules
-----
* No ``print()`` calls.
* Network, engine and filesystem access only through the protocols in
  :mod:`podcast_dl.core.protocols`.
* No imports from ``cli`` or ``infra``.
"""

from podcast_dl.core.caption_catalog import CaptionCatalog
from podcast_dl.core.command_builder import build_remux_command
from podcast_dl.core.endpoint_resolver import build_endpoints, extract_urls, resolve
from podcast_dl.core.models import (
    EndpointSet,
    LogEntry,
    LogLevel,
    MediaBlob,
    PipelineStage,
    SessionInfo,
    SubtitleSpec,
)
from podcast_dl.core.pipeline import PipelineOrchestrator
from podcast_dl.core.protocols import HttpClient, SaveTarget, TranscodeEngine
from podcast_dl.core.resource_fetcher import ResourceFetcher
from podcast_dl.core.streaming_downloader import StreamingDownloader

__all__: list[str] = [
    "CaptionCatalog",
    "EndpointSet",
    "HttpClient",
    "LogEntry",
    "LogLevel",
    "MediaBlob",
    "PipelineOrchestrator",
    "PipelineStage",
    "ResourceFetcher",
    "SaveTarget",
    "SessionInfo",
    "StreamingDownloader",
    "SubtitleSpec",
    "TranscodeEngine",
    "build_endpoints",
    "build_remux_command",
    "extract_urls",
    "resolve",
]
