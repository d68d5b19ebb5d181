"""ffmpeg-backed implementation of :class:`~podcast_dl.core.protocols.TranscodeEngine`.

The engine's working storage is a private temporary directory created
by :meth:`FfmpegEngine.load` and removed by :meth:`FfmpegEngine.close`.
Working files are addressed by bare names inside that directory, and
every command runs with it as the current directory, so remux commands
only ever see relative names such as ``input.mp4``.

This module is the **only** place in the codebase that spawns ffmpeg or
ffprobe.  All subprocess and OS errors are caught here and re-raised as
typed :class:`~podcast_dl.exceptions.PodcastDlError` subclasses.
"""

from __future__ import annotations

import json
import shutil
import subprocess
import tempfile
from collections.abc import Sequence
from pathlib import Path

from podcast_dl.core.protocols import RatioCallback
from podcast_dl.exceptions import (
    EngineLoadError,
    FfmpegNotFoundError,
    MuxError,
    ReadError,
    StorageError,
)
from podcast_dl.infra.ffmpeg_detector import detect_ffprobe, require_ffmpeg


def parse_progress_line(line: str, duration: float | None) -> float | None:
    """Turn one ``-progress`` key=value line into a ratio, if it carries one.

    ``out_time_us`` is only meaningful against a known input duration;
    ``progress=end`` always means done.
    """
    key, _, value = line.strip().partition("=")
    if key == "progress" and value == "end":
        return 1.0
    if key != "out_time_us" or not duration:
        return None
    try:
        elapsed = int(value) / 1_000_000
    except ValueError:
        # ffmpeg reports N/A until the first packet is muxed.
        return None
    return min(1.0, max(0.0, elapsed / duration))


class FfmpegEngine:
    """Remux engine driving the system ffmpeg binary.

    Usage::

        with FfmpegEngine() as engine:
            engine.write_file("input.mp4", data)
            engine.exec(["-i", "input.mp4", "-c", "copy", "output.mp4"])
            result = engine.read_file("output.mp4")

    Instances are stateful and not safe for concurrent use.
    """

    _BASE_ARGS: tuple[str, ...] = (
        "-y",
        "-hide_banner",
        "-nostats",
        "-loglevel", "error",
        "-progress", "pipe:1",
    )

    def __init__(
        self,
        *,
        ffmpeg_path: Path | None = None,
        ffprobe_path: Path | None = None,
    ) -> None:
        self._ffmpeg_path: Path | None = ffmpeg_path
        self._ffprobe_path: Path | None = ffprobe_path
        self._workdir: Path | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_loaded(self) -> bool:
        return self._workdir is not None

    def load(self) -> None:
        """Locate ffmpeg and create the working directory (idempotent).

        Raises
        ------
        EngineLoadError
            When ffmpeg is missing or the directory cannot be created.
        """
        if self._workdir is not None:
            return

        try:
            ffmpeg = self._ffmpeg_path or require_ffmpeg()
        except FfmpegNotFoundError as exc:
            raise EngineLoadError(f"Failed to load FFmpeg: {exc}", hint=exc.hint) from exc

        if self._ffprobe_path is None:
            # Optional: without ffprobe the remux still works, only
            # progress reporting is lost.
            self._ffprobe_path = detect_ffprobe().path

        try:
            workdir = Path(tempfile.mkdtemp(prefix="podcast-dl-"))
        except OSError as exc:
            raise EngineLoadError(f"Failed to create working directory: {exc}") from exc

        self._ffmpeg_path = ffmpeg
        self._workdir = workdir

    def close(self) -> None:
        """Remove the working directory and everything in it (idempotent)."""
        if self._workdir is not None:
            shutil.rmtree(self._workdir, ignore_errors=True)
            self._workdir = None

    def __enter__(self) -> FfmpegEngine:
        self.load()
        return self

    def __exit__(self, *_args: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Working storage
    # ------------------------------------------------------------------

    def _path(self, name: str) -> Path:
        if self._workdir is None:
            raise EngineLoadError("FFmpeg not initialized; call load() first.")
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise StorageError(f"Invalid working file name: {name!r}")
        return self._workdir / name

    def write_file(self, name: str, data: bytes) -> None:
        path = self._path(name)
        try:
            path.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Could not write {name}: {exc}") from exc

    def read_file(self, name: str) -> bytes:
        path = self._path(name)
        if not path.is_file():
            raise ReadError(f"Working file {name} does not exist.")
        try:
            return path.read_bytes()
        except OSError as exc:
            raise ReadError(f"Could not read {name}: {exc}") from exc

    def delete_file(self, name: str) -> None:
        path = self._path(name)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Could not delete {name}: {exc}") from exc

    def list_files(self) -> list[str]:
        if self._workdir is None:
            return []
        return sorted(entry.name for entry in self._workdir.iterdir())

    # ------------------------------------------------------------------
    # Command execution
    # ------------------------------------------------------------------

    def exec(
        self,
        command: Sequence[str],
        *,
        progress_callback: RatioCallback | None = None,
    ) -> None:
        """Run ffmpeg with *command* inside the working directory.

        Raises
        ------
        MuxError
            When ffmpeg cannot be started or exits non-zero.
        """
        if self._workdir is None or self._ffmpeg_path is None:
            raise EngineLoadError("FFmpeg not initialized; call load() first.")

        duration = self._input_duration(command) if progress_callback else None
        argv = [str(self._ffmpeg_path), *self._BASE_ARGS, *command]

        with tempfile.TemporaryFile() as stderr_sink:
            try:
                process = subprocess.Popen(
                    argv,
                    cwd=self._workdir,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.PIPE,
                    stderr=stderr_sink,
                    text=True,
                )
            except OSError as exc:
                raise MuxError(f"Could not start ffmpeg: {exc}") from exc

            with process:
                if process.stdout is not None:
                    for line in process.stdout:
                        ratio = parse_progress_line(line, duration)
                        if ratio is not None and progress_callback is not None:
                            progress_callback(ratio)
                returncode = process.wait()

            if returncode != 0:
                stderr_sink.seek(0)
                tail = stderr_sink.read().decode(errors="replace").strip().splitlines()[-5:]
                raise MuxError(
                    f"ffmpeg exited with code {returncode}",
                    hint="\n".join(tail) or None,
                )

    def _input_duration(self, command: Sequence[str]) -> float | None:
        """Return the duration of the first input of *command*, if known."""
        if self._ffprobe_path is None or self._workdir is None:
            return None
        try:
            first_input = command[list(command).index("-i") + 1]
        except (ValueError, IndexError):
            return None

        try:
            completed = subprocess.run(
                [
                    str(self._ffprobe_path),
                    "-v", "error",
                    "-print_format", "json",
                    "-show_format",
                    first_input,
                ],
                cwd=self._workdir,
                capture_output=True,
                text=True,
                check=True,
                timeout=15,
            )
            payload = json.loads(completed.stdout or "{}")
            return float((payload.get("format") or {})["duration"])
        except (OSError, subprocess.SubprocessError, ValueError, KeyError, TypeError):
            # Progress is best effort; the remux itself does not need it.
            return None
