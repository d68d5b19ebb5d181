"""podcast-dl — Kaltura-hosted podcast video downloader.

Resolves the media endpoint from captured page markup, fetches it with a
relay fallback and optionally remuxes subtitle tracks into the result.
"""

from podcast_dl.version import __version__

__all__: list[str] = ["__version__"]
