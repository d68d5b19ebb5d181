"""Fetch a URL into engine working storage with a relay fallback.

Kaltura's playManifest and caption endpoints frequently refuse
cross-origin or scripted requests.  Every resource is therefore tried
directly first and, on any failure, exactly once more through a public
CORS relay.  There are no further retries.

Guarantees
----------
* Only :class:`~podcast_dl.exceptions.PodcastDlError` subclasses escape.
* No concurrency control — callers serialise fetches into the same name.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import quote

from podcast_dl.config import DEFAULT_RELAY_HOST
from podcast_dl.core.models import LogEntry, LogLevel
from podcast_dl.core.protocols import HttpClient, LogCallback, TranscodeEngine
from podcast_dl.exceptions import DownloadError, FetchError, PodcastDlError

# Characters JavaScript's encodeURIComponent leaves untouched.
_URI_COMPONENT_SAFE: str = "-_.!~*'()"


def relay_url(url: str, relay_host: str = DEFAULT_RELAY_HOST) -> str:
    """Rewrite *url* to be served through the CORS relay."""
    return f"https://{relay_host}/raw?url={quote(url, safe=_URI_COMPONENT_SAFE)}"


# ---------------------------------------------------------------------------
# Attempt / fallback combinator
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Attempt:
    """Outcome of one fetch attempt against *url*."""

    url: str
    error: PodcastDlError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def or_else(self, fallback: Callable[[], Attempt]) -> Attempt:
        """Return ``self`` when it succeeded, otherwise run *fallback*."""
        if self.ok:
            return self
        return fallback()


def attempt(action: Callable[[str], None], url: str) -> Attempt:
    """Run ``action(url)`` and capture its failure as an :class:`Attempt`."""
    try:
        action(url)
    except PodcastDlError as exc:
        return Attempt(url, exc)
    except Exception as exc:
        error = FetchError(f"Unexpected error fetching {url}: {exc}")
        error.__cause__ = exc
        return Attempt(url, error)
    return Attempt(url)


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------

class ResourceFetcher:
    """Stateless helper that writes remote resources into an engine.

    Parameters
    ----------
    http:
        Any object satisfying the :class:`HttpClient` protocol.
    relay_host:
        Host of the CORS relay used for the single fallback attempt.
    """

    def __init__(self, http: HttpClient, *, relay_host: str = DEFAULT_RELAY_HOST) -> None:
        self._http: HttpClient = http
        self._relay_host: str = relay_host

    def fetch_into(
        self,
        engine: TranscodeEngine,
        url: str,
        name: str,
        *,
        on_log: LogCallback | None = None,
    ) -> str:
        """Download *url* into working file *name*.

        Returns
        -------
        str
            The URL that finally served the bytes (direct or relayed).

        Raises
        ------
        DownloadError
            When both the direct and the relay attempt failed.
        """

        def write(source: str) -> None:
            engine.write_file(name, self._http.get_bytes(source))

        def via_relay() -> Attempt:
            if on_log is not None:
                on_log(LogEntry(
                    f"Direct download failed for {name}, trying via proxy...",
                    LogLevel.WARNING,
                ))
            return attempt(write, relay_url(url, self._relay_host))

        direct = attempt(write, url)
        result = direct.or_else(via_relay)
        if direct.error is not None and result.error is not None:
            raise DownloadError(
                name,
                direct_error=direct.error,
                proxy_error=result.error,
            ) from result.error
        return result.url
