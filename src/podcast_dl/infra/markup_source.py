"""Infrastructure: obtain the podcast page markup to resolve.

The markup can come from a saved HTML file, from standard input (``-``)
or from the live page URL.  Saved pages are the reliable option: the
session token is often only present in markup rendered for a logged-in
browser.
"""

from __future__ import annotations

import sys
from pathlib import Path

from podcast_dl.core.protocols import HttpClient
from podcast_dl.exceptions import FetchError, InvalidSourceError


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def read_markup(source: str, http: HttpClient) -> str:
    """Return the page markup named by *source*.

    Raises
    ------
    InvalidSourceError
        When *source* is empty, unreadable or cannot be fetched.
    """
    stripped = source.strip()
    if not stripped:
        raise InvalidSourceError("Source must not be empty.")

    if stripped == "-":
        return sys.stdin.read()

    if is_url(stripped):
        try:
            body = http.get_bytes(stripped)
        except FetchError as exc:
            raise InvalidSourceError(
                f"Could not fetch page: {exc}",
                hint="Save the page from your browser and pass the HTML file instead.",
            ) from exc
        return body.decode("utf-8", errors="replace")

    path = Path(stripped).expanduser()
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise InvalidSourceError(
            f"Could not read {path}: {exc.strerror or exc}",
            hint="Pass a saved HTML page, '-' for stdin, or the page URL.",
        ) from exc
