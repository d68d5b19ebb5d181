"""Direct streaming download without the remux engine.

This is the lightweight acquisition path: one HTTP request, no relay
fallback, no subtitles.  Bytes are accumulated chunk by chunk so that
progress can be reported against the declared ``Content-Length``.
"""

from __future__ import annotations

from pathlib import Path

from podcast_dl.config import Settings
from podcast_dl.core.delivery import save_with_fallback
from podcast_dl.core.models import LogEntry, LogLevel, MediaBlob
from podcast_dl.core.protocols import HttpClient, LogCallback, ProgressCallback, SaveTarget


class StreamingDownloader:
    """Fetch a video in chunks and hand it to a save target.

    Parameters
    ----------
    http:
        Any object satisfying the :class:`HttpClient` protocol.
    saver:
        Primary save target (the interactive "save as" flow).
    fallback_saver:
        Target used when *saver* is unavailable or fails.
    """

    def __init__(
        self,
        http: HttpClient,
        saver: SaveTarget,
        *,
        fallback_saver: SaveTarget | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._http = http
        self._saver = saver
        self._fallback_saver = fallback_saver
        self._settings = settings or Settings()

    def fetch(self, url: str, *, on_progress: ProgressCallback | None = None) -> MediaBlob:
        """Stream *url* into memory.

        Progress is only reported when the server declared a length;
        without one a percentage cannot be computed honestly.

        Raises
        ------
        FetchError
            On any network failure or non-success status.
        """
        chunks: list[bytes] = []
        received = 0
        with self._http.stream(url, chunk_size=self._settings.chunk_size) as response:
            total = response.content_length
            for chunk in response.iter_chunks():
                if not chunk:
                    continue
                chunks.append(chunk)
                received += len(chunk)
                if total and on_progress is not None:
                    on_progress(min(100, round(received / total * 100)))
        return MediaBlob(b"".join(chunks))

    def download_video(
        self,
        url: str,
        *,
        on_progress: ProgressCallback | None = None,
        on_log: LogCallback | None = None,
    ) -> Path:
        """Stream *url* and save it under the default filename.

        Returns
        -------
        Path
            Where the video was written.
        """
        blob = self.fetch(url, on_progress=on_progress)
        if on_log is not None:
            on_log(LogEntry(f"Received {len(blob)} bytes", LogLevel.SUCCESS))
        return save_with_fallback(
            blob,
            self._saver,
            self._fallback_saver,
            filename=self._settings.default_filename,
            on_log=on_log,
        )
