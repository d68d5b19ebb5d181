"""Tests for the ffmpeg-backed engine (infra/ffmpeg_engine.py).

ffmpeg is never spawned: detection is patched and ``subprocess.Popen``
/ ``subprocess.run`` are replaced with fakes.  Working storage uses a
real temporary directory.
"""

from __future__ import annotations

import io
import json
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from podcast_dl.exceptions import (
    EngineLoadError,
    FfmpegNotFoundError,
    MuxError,
    ReadError,
    StorageError,
)
from podcast_dl.infra.ffmpeg_detector import ToolStatus
from podcast_dl.infra.ffmpeg_engine import FfmpegEngine, parse_progress_line

_MODULE = "podcast_dl.infra.ffmpeg_engine"
_NO_PROBE = ToolStatus(name="ffprobe", found=False, path=None, install_commands=())


class FakePopen:
    """Stand-in for :class:`subprocess.Popen` replaying canned output."""

    def __init__(self, stdout_lines: list[str], returncode: int = 0, stderr: bytes = b"") -> None:
        self._stdout_lines = stdout_lines
        self._returncode = returncode
        self._stderr = stderr
        self.argv: list[str] = []
        self.kwargs: dict[str, object] = {}

    def __call__(self, argv: list[str], **kwargs: object) -> FakePopen:
        self.argv = argv
        self.kwargs = kwargs
        self.stdout = io.StringIO("".join(self._stdout_lines))
        sink = kwargs["stderr"]
        sink.write(self._stderr)  # type: ignore[attr-defined]
        return self

    def __enter__(self) -> FakePopen:
        return self

    def __exit__(self, *_args: object) -> None:
        self.stdout.close()

    def wait(self) -> int:
        return self._returncode


@pytest.fixture()
def engine():  # type: ignore[no-untyped-def]
    eng = FfmpegEngine(ffmpeg_path=Path("/usr/bin/ffmpeg"), ffprobe_path=None)
    with patch(f"{_MODULE}.detect_ffprobe", return_value=_NO_PROBE):
        eng.load()
    yield eng
    eng.close()


# ---------------------------------------------------------------------------
# parse_progress_line
# ---------------------------------------------------------------------------

class TestParseProgressLine:
    def test_out_time_against_duration(self) -> None:
        assert parse_progress_line("out_time_us=5000000\n", 10.0) == 0.5

    def test_clamped(self) -> None:
        assert parse_progress_line("out_time_us=20000000", 10.0) == 1.0
        assert parse_progress_line("out_time_us=-5", 10.0) == 0.0

    def test_end_marker(self) -> None:
        assert parse_progress_line("progress=end", None) == 1.0

    @pytest.mark.parametrize(
        ("line", "duration"),
        [
            ("progress=continue", 10.0),
            ("out_time_us=N/A", 10.0),
            ("out_time_us=100", None),
            ("frame=12", 10.0),
            ("", 10.0),
        ],
    )
    def test_ignored_lines(self, line: str, duration: float | None) -> None:
        assert parse_progress_line(line, duration) is None


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

class TestLifecycle:
    def test_load_creates_workdir(self, engine: FfmpegEngine) -> None:
        assert engine.is_loaded
        assert engine.list_files() == []

    def test_load_is_idempotent(self, engine: FfmpegEngine) -> None:
        engine.write_file("keep.txt", b"x")
        engine.load()
        assert engine.list_files() == ["keep.txt"]

    def test_missing_ffmpeg(self) -> None:
        missing = FfmpegNotFoundError("ffmpeg is not installed or not on PATH.", hint="brew install ffmpeg")
        with patch(f"{_MODULE}.require_ffmpeg", side_effect=missing):
            eng = FfmpegEngine()
            with pytest.raises(EngineLoadError, match="Failed to load FFmpeg") as exc_info:
                eng.load()
        assert exc_info.value.hint == "brew install ffmpeg"
        assert not eng.is_loaded

    def test_close_removes_workdir(self, engine: FfmpegEngine) -> None:
        engine.write_file("a.bin", b"1")
        workdir = engine._workdir
        assert workdir is not None
        engine.close()
        assert not workdir.exists()
        assert not engine.is_loaded
        engine.close()

    def test_context_manager(self) -> None:
        with patch(f"{_MODULE}.detect_ffprobe", return_value=_NO_PROBE):
            with FfmpegEngine(ffmpeg_path=Path("/usr/bin/ffmpeg")) as eng:
                assert eng.is_loaded
        assert not eng.is_loaded

    def test_storage_requires_load(self) -> None:
        with pytest.raises(EngineLoadError):
            FfmpegEngine().write_file("a", b"")


# ---------------------------------------------------------------------------
# Working storage
# ---------------------------------------------------------------------------

class TestStorage:
    def test_write_read_delete(self, engine: FfmpegEngine) -> None:
        engine.write_file("input.mp4", b"VIDEO")
        assert engine.read_file("input.mp4") == b"VIDEO"
        engine.delete_file("input.mp4")
        assert engine.list_files() == []

    def test_overwrite(self, engine: FfmpegEngine) -> None:
        engine.write_file("a", b"1")
        engine.write_file("a", b"2")
        assert engine.read_file("a") == b"2"

    def test_read_missing(self, engine: FfmpegEngine) -> None:
        with pytest.raises(ReadError, match="does not exist"):
            engine.read_file("output.mp4")

    def test_delete_missing_is_noop(self, engine: FfmpegEngine) -> None:
        engine.delete_file("never-written.srt")

    @pytest.mark.parametrize("name", ["", ".", "..", "../escape", "a/b", "a\\b"])
    def test_rejects_path_names(self, engine: FfmpegEngine, name: str) -> None:
        with pytest.raises(StorageError):
            engine.write_file(name, b"")


# ---------------------------------------------------------------------------
# exec
# ---------------------------------------------------------------------------

class TestExec:
    def test_runs_in_workdir_with_base_args(self, engine: FfmpegEngine) -> None:
        fake = FakePopen(["progress=end\n"])
        with patch(f"{_MODULE}.subprocess.Popen", fake):
            engine.exec(["-i", "input.mp4", "output.mp4"])

        assert fake.argv[0] == str(Path("/usr/bin/ffmpeg"))
        assert fake.argv[-3:] == ["-i", "input.mp4", "output.mp4"]
        assert "-progress" in fake.argv
        assert fake.kwargs["cwd"] == engine._workdir

    def test_progress_with_known_duration(self, engine: FfmpegEngine) -> None:
        engine._ffprobe_path = Path("/usr/bin/ffprobe")
        duration_run = MagicMock(return_value=subprocess.CompletedProcess(
            args=[], returncode=0, stdout=json.dumps({"format": {"duration": "4.0"}}),
        ))
        fake = FakePopen([
            "out_time_us=N/A\n",
            "out_time_us=1000000\n",
            "progress=continue\n",
            "out_time_us=3000000\n",
            "progress=end\n",
        ])
        seen: list[float] = []

        with patch(f"{_MODULE}.subprocess.run", duration_run), patch(f"{_MODULE}.subprocess.Popen", fake):
            engine.exec(["-i", "input.mp4", "output.mp4"], progress_callback=seen.append)

        assert seen == [0.25, 0.75, 1.0]
        assert duration_run.call_args.args[0][-1] == "input.mp4"

    def test_progress_without_ffprobe_only_reports_end(self, engine: FfmpegEngine) -> None:
        fake = FakePopen(["out_time_us=1000000\n", "progress=end\n"])
        seen: list[float] = []
        with patch(f"{_MODULE}.subprocess.Popen", fake):
            engine.exec(["-i", "input.mp4", "output.mp4"], progress_callback=seen.append)
        assert seen == [1.0]

    def test_duration_lookup_failure_is_tolerated(self, engine: FfmpegEngine) -> None:
        engine._ffprobe_path = Path("/usr/bin/ffprobe")
        duration_run = MagicMock(side_effect=subprocess.CalledProcessError(1, "ffprobe"))
        fake = FakePopen(["out_time_us=1000000\n", "progress=end\n"])
        seen: list[float] = []
        with patch(f"{_MODULE}.subprocess.run", duration_run), patch(f"{_MODULE}.subprocess.Popen", fake):
            engine.exec(["-i", "input.mp4", "output.mp4"], progress_callback=seen.append)
        assert seen == [1.0]

    def test_nonzero_exit(self, engine: FfmpegEngine) -> None:
        stderr = b"\n".join(f"line {i}".encode() for i in range(8))
        fake = FakePopen([], returncode=1, stderr=stderr)
        with patch(f"{_MODULE}.subprocess.Popen", fake):
            with pytest.raises(MuxError, match="exited with code 1") as exc_info:
                engine.exec(["-i", "input.mp4", "output.mp4"])
        assert exc_info.value.hint == "line 3\nline 4\nline 5\nline 6\nline 7"

    def test_spawn_failure(self, engine: FfmpegEngine) -> None:
        with patch(f"{_MODULE}.subprocess.Popen", side_effect=FileNotFoundError("ffmpeg")):
            with pytest.raises(MuxError, match="Could not start ffmpeg"):
                engine.exec(["-i", "input.mp4", "output.mp4"])

    def test_requires_load(self) -> None:
        with pytest.raises(EngineLoadError):
            FfmpegEngine().exec(["-i", "a", "b"])
