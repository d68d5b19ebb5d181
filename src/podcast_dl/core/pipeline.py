"""Core pipeline orchestrator — fetch, optionally remux, clean up.

The orchestrator owns every failure and partial-failure decision of a
``process_video`` invocation:

* Engine load, video fetch, remux and output read failures are fatal
  and surface as :class:`~podcast_dl.exceptions.ProcessingError` tagged
  with the stage they occurred in.
* A subtitle that cannot be fetched is dropped with a warning; the rest
  of the job continues.
* Every working file the invocation created is deleted before it
  returns, whether it succeeded or not.

Stages::

    IDLE → ENGINE_LOADING → FETCHING_VIDEO → FETCHING_SUBTITLES
         → {MUXING | PASS_THROUGH} → READING → CLEANUP → {DONE | FAILED}
"""

from __future__ import annotations

import threading
import weakref
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

from podcast_dl.core.command_builder import (
    OUTPUT_WORKING_NAME,
    VIDEO_WORKING_NAME,
    build_remux_command,
    subtitle_working_name,
)
from podcast_dl.core.models import (
    LogEntry,
    LogLevel,
    MediaBlob,
    PipelineStage,
    SubtitleSpec,
)
from podcast_dl.core.protocols import (
    LogCallback,
    ProgressCallback,
    RatioCallback,
    TranscodeEngine,
)
from podcast_dl.core.resource_fetcher import ResourceFetcher
from podcast_dl.exceptions import DownloadError, PodcastDlError, ProcessingError

_ENGINE_LOCKS: weakref.WeakKeyDictionary[TranscodeEngine, threading.Lock] = weakref.WeakKeyDictionary()
_ENGINE_LOCKS_GUARD = threading.Lock()


def engine_lock(engine: TranscodeEngine) -> threading.Lock:
    """Return the lock serialising every pipeline run on *engine*."""
    with _ENGINE_LOCKS_GUARD:
        lock = _ENGINE_LOCKS.get(engine)
        if lock is None:
            lock = _ENGINE_LOCKS[engine] = threading.Lock()
        return lock


class PipelineOrchestrator:
    """Drives one engine through fetch → mux → read → cleanup.

    The engine's working namespace is shared state, so invocations are
    serialised with a lock tied to the engine.  Orchestrators that share
    an engine therefore never interleave.

    Parameters
    ----------
    engine:
        Any object satisfying the :class:`TranscodeEngine` protocol.
        The caller controls its lifetime (``load``/``close``).
    fetcher:
        Fetcher used for the video and each subtitle.
    """

    def __init__(self, engine: TranscodeEngine, fetcher: ResourceFetcher) -> None:
        self._engine: TranscodeEngine = engine
        self._fetcher: ResourceFetcher = fetcher
        self._lock = engine_lock(engine)
        self._state: PipelineStage = PipelineStage.IDLE

    @property
    def state(self) -> PipelineStage:
        """Stage of the current (or most recent) invocation."""
        return self._state

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process_video(
        self,
        video_url: str,
        subtitles: Sequence[SubtitleSpec] = (),
        *,
        on_progress: ProgressCallback | None = None,
        on_log: LogCallback | None = None,
    ) -> MediaBlob:
        """Fetch *video_url*, embed *subtitles* and return the result.

        With no subtitle surviving the fetch stage the original video
        bytes are returned untouched and the engine never runs a command.

        Raises
        ------
        ProcessingError
            Wrapping the engine load, video download, remux or read
            failure that aborted the invocation.
        """
        with self._lock:
            return self._run(video_url, subtitles, on_progress, on_log)

    # ------------------------------------------------------------------
    # Invocation body
    # ------------------------------------------------------------------

    def _run(
        self,
        video_url: str,
        subtitles: Sequence[SubtitleSpec],
        on_progress: ProgressCallback | None,
        on_log: LogCallback | None,
    ) -> MediaBlob:
        def log(message: str, level: LogLevel = LogLevel.INFO) -> None:
            if on_log is not None:
                on_log(LogEntry(message, level))

        engine = self._engine
        created: list[str] = []
        succeeded = False

        try:
            with self._stage(PipelineStage.ENGINE_LOADING):
                engine.load()

            with self._stage(PipelineStage.FETCHING_VIDEO):
                log("Downloading video file...")
                created.append(VIDEO_WORKING_NAME)
                self._fetcher.fetch_into(engine, video_url, VIDEO_WORKING_NAME, on_log=on_log)
                log("Video downloaded successfully", LogLevel.SUCCESS)

            sub_files, sub_specs = self._fetch_subtitles(subtitles, created, on_log)

            if sub_files:
                with self._stage(PipelineStage.MUXING):
                    log("Embedding subtitles...")
                    command = build_remux_command(sub_files, sub_specs)
                    created.append(OUTPUT_WORKING_NAME)
                    engine.exec(command, progress_callback=_percent_adapter(on_progress))
                    log("FFmpeg processing complete", LogLevel.SUCCESS)
                result_name = OUTPUT_WORKING_NAME
            else:
                self._state = PipelineStage.PASS_THROUGH
                log("No subtitles to embed, passing through original video...")
                result_name = VIDEO_WORKING_NAME

            with self._stage(PipelineStage.READING):
                data = engine.read_file(result_name)

            succeeded = True
            return MediaBlob(data)
        except ProcessingError as exc:
            log(f"Processing failed: {exc.cause}", LogLevel.ERROR)
            raise
        finally:
            self._state = PipelineStage.CLEANUP
            self._cleanup(created)
            self._state = PipelineStage.DONE if succeeded else PipelineStage.FAILED

    def _fetch_subtitles(
        self,
        subtitles: Sequence[SubtitleSpec],
        created: list[str],
        on_log: LogCallback | None,
    ) -> tuple[list[str], list[SubtitleSpec]]:
        """Fetch each subtitle in order, dropping the ones that fail.

        Fetches run one at a time so the surviving files keep the
        caller's order and map onto contiguous track indices.
        """
        self._state = PipelineStage.FETCHING_SUBTITLES
        files: list[str] = []
        specs: list[SubtitleSpec] = []
        if not subtitles:
            return files, specs

        if on_log is not None:
            on_log(LogEntry("Downloading subtitle files..."))

        for i, spec in enumerate(subtitles):
            name = subtitle_working_name(i, spec)
            created.append(name)
            try:
                self._fetcher.fetch_into(self._engine, spec.url, name, on_log=on_log)
            except DownloadError:
                if on_log is not None:
                    on_log(LogEntry(
                        f"Failed to download subtitle: {spec.label or name}",
                        LogLevel.WARNING,
                    ))
                continue
            files.append(name)
            specs.append(spec)
            if on_log is not None:
                on_log(LogEntry(
                    f"Downloaded subtitle: {spec.label or name}",
                    LogLevel.SUCCESS,
                ))
        return files, specs

    def _cleanup(self, created: Sequence[str]) -> None:
        """Delete every working file of this invocation.

        A name whose creation itself failed may not exist; deletion
        errors are ignored so one stale file cannot block the rest.
        """
        for name in created:
            try:
                self._engine.delete_file(name)
            except (PodcastDlError, OSError):
                continue

    @contextmanager
    def _stage(self, stage: PipelineStage) -> Iterator[None]:
        """Enter *stage* and tag any domain error raised inside it."""
        self._state = stage
        try:
            yield
        except ProcessingError:
            raise
        except PodcastDlError as exc:
            raise ProcessingError(stage, exc) from exc


def _percent_adapter(on_progress: ProgressCallback | None) -> RatioCallback | None:
    """Map engine ratios onto rounded integer percentages."""
    if on_progress is None:
        return None

    def forward(ratio: float) -> None:
        on_progress(round(min(max(ratio, 0.0), 1.0) * 100))

    return forward
