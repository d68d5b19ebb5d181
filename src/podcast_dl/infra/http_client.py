"""requests-backed implementation of :class:`~podcast_dl.core.protocols.HttpClient`.

This module is the **only** place in the codebase that imports
``requests``.  All requests exceptions are caught here and re-raised as
:class:`~podcast_dl.exceptions.FetchError` — nothing raw escapes the
infrastructure boundary.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from podcast_dl.exceptions import EnvironmentError, FetchError
from podcast_dl.version import __version__


def _import_requests() -> Any:
    """Import requests lazily so ``--help``/``doctor`` work without it."""
    try:
        import requests
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "requests is not installed. Install with: pip install requests",
        ) from exc
    return requests


class RequestsStream:
    """An open streaming response satisfying ``StreamedResponse``."""

    def __init__(self, response: Any, chunk_size: int) -> None:
        self._response: Any = response
        self._chunk_size: int = chunk_size
        self.content_length: int | None = _parse_content_length(
            response.headers.get("Content-Length"),
        )

    def iter_chunks(self) -> Iterator[bytes]:
        requests = _import_requests()
        try:
            yield from self._response.iter_content(chunk_size=self._chunk_size)
        except requests.RequestException as exc:
            raise FetchError(f"Connection lost while streaming: {exc}") from exc


class RequestsHttpClient:
    """Concrete :class:`HttpClient` backed by a ``requests.Session``.

    Usage::

        http = RequestsHttpClient(timeout=30)
        body = http.get_bytes("https://example.com/page")

    Parameters
    ----------
    timeout:
        Per-request timeout in seconds (connect and read).
    session:
        Optional pre-configured session; one is created lazily otherwise.
    """

    def __init__(self, *, timeout: float = 60.0, session: Any = None) -> None:
        self._timeout: float = timeout
        self._session: Any = session

    def _get_session(self) -> Any:
        if self._session is None:
            requests = _import_requests()
            self._session = requests.Session()
            self._session.headers["User-Agent"] = f"podcast-dl/{__version__}"
        return self._session

    # ------------------------------------------------------------------
    # Protocol methods
    # ------------------------------------------------------------------

    def get_bytes(self, url: str) -> bytes:
        """Fetch *url* completely and return the body.

        Raises
        ------
        FetchError
            On connection errors, timeouts and non-2xx responses.
        """
        requests = _import_requests()
        session = self._get_session()
        try:
            response = session.get(url, timeout=self._timeout)
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise FetchError(
                f"Failed to fetch {url}: HTTP {exc.response.status_code}",
            ) from exc
        except requests.RequestException as exc:
            raise FetchError(f"Failed to fetch {url}: {exc}") from exc
        return bytes(response.content)

    @contextmanager
    def stream(self, url: str, *, chunk_size: int) -> Iterator[RequestsStream]:
        """Open *url* for chunked reading; the response closes on exit.

        Raises
        ------
        FetchError
            On connection errors, timeouts and non-2xx responses.
        """
        requests = _import_requests()
        session = self._get_session()
        try:
            response = session.get(url, stream=True, timeout=self._timeout)
        except requests.RequestException as exc:
            raise FetchError(f"Failed to fetch video: {exc}") from exc

        with response:
            if not response.ok:
                raise FetchError(
                    f"Failed to fetch video: {response.status_code}",
                    hint="The session token in the page may have expired.",
                )
            yield RequestsStream(response, chunk_size)


def _parse_content_length(value: str | None) -> int | None:
    """Return a positive declared length, or ``None``."""
    if value is None:
        return None
    try:
        length = int(value)
    except ValueError:
        return None
    return length if length > 0 else None
