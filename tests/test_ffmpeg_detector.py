"""Tests for ffmpeg suite detection (infra/ffmpeg_detector.py).

All tests mock :func:`shutil.which` — no system dependency.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from podcast_dl.exceptions import FfmpegNotFoundError
from podcast_dl.infra.ffmpeg_detector import (
    ToolStatus,
    _platform_install_commands,
    detect_ffmpeg,
    detect_ffprobe,
    detect_tool,
    install_hint,
    require_ffmpeg,
)


# ---------------------------------------------------------------------------
# detect_*
# ---------------------------------------------------------------------------

class TestDetectTool:
    @patch("podcast_dl.infra.ffmpeg_detector.shutil.which")
    def test_found(self, mock_which: object) -> None:
        mock_which.return_value = "/usr/bin/ffmpeg"  # type: ignore[union-attr]
        status = detect_ffmpeg()

        assert status.name == "ffmpeg"
        assert status.found is True
        assert isinstance(status.path, Path)
        assert status.version_hint.startswith("found at")
        assert status.install_commands == ()

    @patch("podcast_dl.infra.ffmpeg_detector.shutil.which")
    def test_not_found(self, mock_which: object) -> None:
        mock_which.return_value = None  # type: ignore[union-attr]
        status = detect_ffmpeg()

        assert status.found is False
        assert status.path is None
        assert status.version_hint == "not found"
        assert len(status.install_commands) > 0

    @patch("podcast_dl.infra.ffmpeg_detector.shutil.which")
    def test_ffprobe_probes_its_own_name(self, mock_which: object) -> None:
        mock_which.return_value = None  # type: ignore[union-attr]
        status = detect_ffprobe()
        mock_which.assert_called_once_with("ffprobe")  # type: ignore[union-attr]
        assert status.name == "ffprobe"

    @patch("podcast_dl.infra.ffmpeg_detector.shutil.which", return_value="/opt/bin/tool")
    def test_generic_name(self, _mock_which: object) -> None:
        assert detect_tool("tool").found is True


# ---------------------------------------------------------------------------
# require_ffmpeg / install_hint
# ---------------------------------------------------------------------------

class TestRequireFfmpeg:
    @patch("podcast_dl.infra.ffmpeg_detector.shutil.which")
    def test_found_returns_path(self, mock_which: object) -> None:
        mock_which.return_value = "/usr/bin/ffmpeg"  # type: ignore[union-attr]
        assert isinstance(require_ffmpeg(), Path)

    @patch("podcast_dl.infra.ffmpeg_detector.shutil.which")
    def test_missing_raises_with_hint(self, mock_which: object) -> None:
        mock_which.return_value = None  # type: ignore[union-attr]
        with pytest.raises(FfmpegNotFoundError, match="not installed") as exc_info:
            require_ffmpeg()
        assert exc_info.value.hint is not None
        assert "Install ffmpeg" in exc_info.value.hint

    def test_hint_none_when_nothing_to_install(self) -> None:
        status = ToolStatus(name="ffmpeg", found=True, path=Path("/usr/bin/ffmpeg"), install_commands=())
        assert install_hint(status) is None

    def test_hint_lists_every_command(self) -> None:
        status = ToolStatus(name="ffmpeg", found=False, path=None, install_commands=("a", "b"))
        assert install_hint(status) == "Install ffmpeg using one of:\n  a\n  b"


# ---------------------------------------------------------------------------
# Platform install commands
# ---------------------------------------------------------------------------

class TestPlatformInstallCommands:
    @patch("podcast_dl.infra.ffmpeg_detector.platform.system", return_value="Windows")
    def test_windows_commands(self, _mock_sys: object) -> None:
        cmds = _platform_install_commands()
        assert "winget install Gyan.FFmpeg" in cmds
        assert "choco install ffmpeg" in cmds

    @patch("podcast_dl.infra.ffmpeg_detector.platform.system", return_value="Linux")
    def test_linux_commands(self, _mock_sys: object) -> None:
        cmds = _platform_install_commands()
        assert any("apt" in c for c in cmds)
        assert any("dnf" in c for c in cmds)

    @patch("podcast_dl.infra.ffmpeg_detector.platform.system", return_value="Darwin")
    def test_darwin_commands(self, _mock_sys: object) -> None:
        assert _platform_install_commands() == ("brew install ffmpeg",)

    @patch("podcast_dl.infra.ffmpeg_detector.platform.system", return_value="Plan9")
    def test_unknown_platform(self, _mock_sys: object) -> None:
        assert "ffmpeg.org" in _platform_install_commands()[0]


class TestToolStatus:
    def test_frozen(self) -> None:
        status = ToolStatus(name="ffmpeg", found=True, path=Path("/usr/bin/ffmpeg"), install_commands=())
        with pytest.raises(AttributeError):
            status.found = False  # type: ignore[misc]
