"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols — never on concrete
implementations — preserving the dependency inversion principle.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Protocol

from podcast_dl.core.models import LogEntry, MediaBlob

ProgressCallback = Callable[[int], None]
"""Receives an integer percentage in ``[0, 100]``."""

RatioCallback = Callable[[float], None]
"""Receives an engine progress ratio in ``[0.0, 1.0]``."""

LogCallback = Callable[[LogEntry], None]


class TranscodeEngine(Protocol):
    """Contract for the remux engine and its working-storage namespace.

    The engine is stateful and **not** reentrant: callers must ensure
    only one pipeline invocation uses an instance at a time.
    """

    @property
    def is_loaded(self) -> bool:
        ...  # pragma: no cover

    def load(self) -> None:
        """Initialise the engine.  A second call is a no-op.

        Raises
        ------
        EngineLoadError
            When the engine cannot be initialised.
        """
        ...  # pragma: no cover

    def write_file(self, name: str, data: bytes) -> None:
        ...  # pragma: no cover

    def read_file(self, name: str) -> bytes:
        """Return the bytes stored under *name*.

        Raises
        ------
        ReadError
            When *name* does not exist or cannot be read.
        """
        ...  # pragma: no cover

    def delete_file(self, name: str) -> None:
        """Remove *name*.  Deleting a missing name is a no-op."""
        ...  # pragma: no cover

    def exec(
        self,
        command: Sequence[str],
        *,
        progress_callback: RatioCallback | None = None,
    ) -> None:
        """Run *command* against the working namespace.

        Raises
        ------
        MuxError
            When the command exits unsuccessfully.
        """
        ...  # pragma: no cover


class StreamedResponse(Protocol):
    """An open streaming HTTP response body."""

    content_length: int | None
    """Declared ``Content-Length``, or ``None`` when absent."""

    def iter_chunks(self) -> Iterator[bytes]:
        ...  # pragma: no cover


class HttpClient(Protocol):
    """Contract for HTTP backends.

    Implementations must map all backend-specific exceptions to
    :class:`~podcast_dl.exceptions.FetchError`.
    """

    def get_bytes(self, url: str) -> bytes:
        """Fetch *url* completely and return the body.

        Raises
        ------
        FetchError
            On any network failure or non-success status.
        """
        ...  # pragma: no cover

    def stream(
        self,
        url: str,
        *,
        chunk_size: int,
    ) -> AbstractContextManager[StreamedResponse]:
        """Open *url* for chunked reading.

        Raises
        ------
        FetchError
            On any network failure or non-success status.
        """
        ...  # pragma: no cover


class SaveTarget(Protocol):
    """Contract for persisting a finished :class:`MediaBlob`."""

    def save(self, blob: MediaBlob, filename: str) -> Path:
        """Persist *blob* and return the path it was written to.

        Raises
        ------
        SaveError
            When the target is unavailable or the write fails.
        """
        ...  # pragma: no cover
