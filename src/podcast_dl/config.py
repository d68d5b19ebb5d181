"""Runtime settings shared by the core, infra and CLI layers.

Settings are a frozen value object built once by the CLI from its
arguments.  Library callers may construct their own or rely on the
defaults, which reproduce the hosted Kaltura player setup.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_PROVIDER_HOST: str = "cdnapisec.kaltura.com"
DEFAULT_RELAY_HOST: str = "api.allorigins.win"
DEFAULT_FILENAME: str = "podcast.mp4"
DEFAULT_CONTENT_TYPE: str = "video/mp4"


@dataclass(frozen=True, slots=True)
class Settings:
    """Tunable knobs for a single podcast-dl run."""

    provider_host: str = DEFAULT_PROVIDER_HOST
    """Host serving the playManifest and caption APIs."""

    relay_host: str = DEFAULT_RELAY_HOST
    """Host of the CORS relay used as the fetch fallback."""

    request_timeout: float = 60.0
    """Per-request HTTP timeout in seconds."""

    chunk_size: int = 1 << 16
    """Chunk size for the streaming download path."""

    default_filename: str = DEFAULT_FILENAME
    output_dir: Path = Path(".")
