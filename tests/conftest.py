"""Shared pytest fixtures and configuration for the podcast-dl test suite.

Guidelines
----------
* No internet access in any test.
* No ffmpeg binary required — the engine is faked at the protocol
  boundary, and subprocess is patched for the ffmpeg adapter tests.
* Core tests must be pure — no side effects.
* Tests must not depend on OS state.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager

import pytest

from podcast_dl.core.protocols import RatioCallback
from podcast_dl.exceptions import EngineLoadError, FetchError, PodcastDlError, ReadError


class FakeEngine:
    """In-memory :class:`TranscodeEngine` recording every call."""

    def __init__(
        self,
        *,
        fail_load: bool = False,
        exec_error: PodcastDlError | None = None,
        exec_output: bytes | None = b"MUXED",
        progress: Sequence[float] = (0.0, 0.5, 1.0),
    ) -> None:
        self.files: dict[str, bytes] = {}
        self.loaded = False
        self.load_calls = 0
        self.exec_calls: list[list[str]] = []
        self.files_at_exec: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self._fail_load = fail_load
        self._exec_error = exec_error
        self._exec_output = exec_output
        self._progress = tuple(progress)

    @property
    def is_loaded(self) -> bool:
        return self.loaded

    def load(self) -> None:
        self.load_calls += 1
        if self._fail_load:
            raise EngineLoadError("Failed to load FFmpeg: core missing")
        self.loaded = True

    def write_file(self, name: str, data: bytes) -> None:
        self.files[name] = bytes(data)

    def read_file(self, name: str) -> bytes:
        if name not in self.files:
            raise ReadError(f"Working file {name} does not exist.")
        return self.files[name]

    def delete_file(self, name: str) -> None:
        self.deleted.append(name)
        self.files.pop(name, None)

    def exec(
        self,
        command: Sequence[str],
        *,
        progress_callback: RatioCallback | None = None,
    ) -> None:
        self.exec_calls.append(list(command))
        self.files_at_exec = dict(self.files)
        if progress_callback is not None:
            for ratio in self._progress:
                progress_callback(ratio)
        if self._exec_output is not None:
            self.files[command[-1]] = self._exec_output
        if self._exec_error is not None:
            raise self._exec_error


class FakeStream:
    def __init__(self, chunks: Sequence[bytes], content_length: int | None) -> None:
        self._chunks = list(chunks)
        self.content_length = content_length

    def iter_chunks(self) -> Iterator[bytes]:
        yield from self._chunks


class FakeHttp:
    """In-memory :class:`HttpClient`.

    ``responses`` maps URL → body bytes or an exception to raise.
    Unknown URLs fail with :class:`FetchError`.
    """

    def __init__(
        self,
        responses: dict[str, bytes | BaseException] | None = None,
        *,
        chunks: Sequence[bytes] = (),
        content_length: int | None = None,
    ) -> None:
        self.responses = dict(responses or {})
        self.requested: list[str] = []
        self._chunks = chunks
        self._content_length = content_length

    def get_bytes(self, url: str) -> bytes:
        self.requested.append(url)
        value = self.responses.get(url)
        if value is None:
            raise FetchError(f"Failed to fetch {url}: HTTP 404")
        if isinstance(value, BaseException):
            raise value
        return value

    @contextmanager
    def stream(self, url: str, *, chunk_size: int) -> Iterator[FakeStream]:
        self.requested.append(url)
        value = self.responses.get(url)
        if isinstance(value, BaseException):
            raise value
        yield FakeStream(self._chunks, self._content_length)


@pytest.fixture()
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture()
def markup() -> str:
    return (
        '<script>var cfg = {"entry_id": "1_abc123", '
        '"src": "https://cdnapisec.kaltura.com/p/456/embedPlaykitJs/"};'
        ' flashvars.ks="xyz987";</script>'
    )
