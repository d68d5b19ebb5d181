"""Infrastructure: ffmpeg / ffprobe detection and platform guidance.

This module is responsible for locating the ffmpeg tool binaries on the
system PATH and providing platform-specific installation guidance when
they are missing.

Rules
-----
* Detection via :func:`shutil.which` only — no subprocess.
* No permanent PATH modification.
* No ``print()`` — callers handle user-facing output.
"""

from __future__ import annotations

import platform
import shutil
from dataclasses import dataclass
from pathlib import Path

from podcast_dl.exceptions import FfmpegNotFoundError


# ---------------------------------------------------------------------------
# Detection result
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ToolStatus:
    """Result of a PATH lookup for one ffmpeg suite binary.

    Attributes
    ----------
    name : str
        Binary name that was probed (``ffmpeg`` or ``ffprobe``).
    found : bool
        Whether the binary was located on PATH.
    path : Path | None
        Absolute path to the binary, or ``None``.
    install_commands : tuple[str, ...]
        Suggested shell commands for installing the ffmpeg suite on the
        current platform.  Empty when the binary is already present.
    """

    name: str
    found: bool
    path: Path | None
    install_commands: tuple[str, ...]

    @property
    def version_hint(self) -> str:
        return f"found at {self.path}" if self.found else "not found"


# ---------------------------------------------------------------------------
# Detection logic
# ---------------------------------------------------------------------------

def detect_tool(name: str) -> ToolStatus:
    """Look up the binary *name* on the system.

    Returns a :class:`ToolStatus` regardless of whether it is present —
    the caller decides whether to abort or merely warn.
    """
    result = shutil.which(name)
    if result is not None:
        return ToolStatus(name=name, found=True, path=Path(result).resolve(), install_commands=())
    return ToolStatus(
        name=name,
        found=False,
        path=None,
        install_commands=_platform_install_commands(),
    )


def detect_ffmpeg() -> ToolStatus:
    return detect_tool("ffmpeg")


def detect_ffprobe() -> ToolStatus:
    return detect_tool("ffprobe")


def install_hint(status: ToolStatus) -> str | None:
    """Render the install commands of *status* as a multi-line hint."""
    if not status.install_commands:
        return None
    lines = ["Install ffmpeg using one of:"]
    lines.extend(f"  {cmd}" for cmd in status.install_commands)
    return "\n".join(lines)


def require_ffmpeg() -> Path:
    """Locate ffmpeg or raise :class:`FfmpegNotFoundError`.

    Used by code paths that cannot proceed without it, i.e. loading the
    remux engine.
    """
    status = detect_ffmpeg()
    if not status.found or status.path is None:
        raise FfmpegNotFoundError(
            "ffmpeg is not installed or not on PATH.",
            hint=install_hint(status),
        )
    return status.path


# ---------------------------------------------------------------------------
# Platform-specific install guidance
# ---------------------------------------------------------------------------

def _platform_install_commands() -> tuple[str, ...]:
    """Return install commands appropriate for the current OS."""
    system = platform.system().lower()
    if system == "windows":
        return (
            "winget install Gyan.FFmpeg",
            "choco install ffmpeg",
        )
    if system == "linux":
        return (
            "sudo apt install ffmpeg",
            "sudo dnf install ffmpeg",
            "sudo pacman -S ffmpeg",
        )
    if system == "darwin":
        return ("brew install ffmpeg",)
    return ("Please install ffmpeg from https://ffmpeg.org/download.html",)
