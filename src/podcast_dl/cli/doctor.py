"""``podcast-dl doctor`` — environment diagnostics command.

Gathers system information and renders a Rich table summarising
whether the runtime environment satisfies podcast-dl's requirements.

This module lives in the CLI layer — it may import from ``infra``
and ``core``, and it renders via Rich.  No business logic resides
here; it purely collects and displays diagnostic data.
"""

from __future__ import annotations

import platform
import sys

from podcast_dl.cli import exit_codes
from podcast_dl.cli.console import console
from podcast_dl.infra.ffmpeg_detector import ToolStatus, detect_ffmpeg, detect_ffprobe
from podcast_dl.version import __version__


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _python_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the Python version row."""
    version = platform.python_version()
    ok = sys.version_info[:2] >= (3, 10)
    status = "[green]OK[/green]" if ok else "[red]FAIL (>=3.10 required)[/red]"
    return "Python", version, status


def _requests_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the requests row."""
    try:
        import requests
    except ImportError:
        return "requests", "NOT INSTALLED", "[red]FAIL[/red]"
    return "requests", str(getattr(requests, "__version__", "unknown")), "[green]OK[/green]"


def _tool_check(status_obj: ToolStatus, missing_note: str) -> tuple[str, str, str]:
    """Return (label, value, status) for an ffmpeg-suite binary row.

    Missing binaries only warn: ``--mode stream`` needs neither, and
    ffprobe only feeds remux progress.
    """
    if status_obj.found:
        return status_obj.name, str(status_obj.path), "[green]OK[/green]"
    return status_obj.name, f"not found ({missing_note})", "[yellow]WARN[/yellow]"


def _os_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the OS row."""
    system_raw = platform.system()
    system_display = {
        "Windows": "Windows",
        "Linux": "Linux",
        "Darwin": "macOS",
    }.get(system_raw, system_raw)
    value = f"{system_display} {platform.release()} ({platform.machine()})"
    return "OS", value, "[green]OK[/green]"


def _status_plain(status: str) -> str:
    """Convert rich-markup status to plain text."""
    for word in ("FAIL", "WARN", "OK"):
        if word in status:
            return word
    return status


def _print_plain_doctor_table(checks: list[tuple[str, str, str]]) -> None:
    """Render doctor output without Rich."""
    print("\npodcast-dl doctor", file=sys.stderr)
    print("=" * 64, file=sys.stderr)
    print(f"{'Component':<12} {'Value':<40} {'Status':<8}", file=sys.stderr)
    print("-" * 64, file=sys.stderr)
    for label, value, status in checks:
        print(f"{label:<12} {value:<40} {_status_plain(status):<8}", file=sys.stderr)
    print(file=sys.stderr)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_doctor() -> int:
    """Execute all diagnostic checks and render a summary table.

    Returns
    -------
    int
        :data:`exit_codes.SUCCESS` when all critical checks pass,
        :data:`exit_codes.GENERAL_ERROR` if a critical check fails.
    """
    ffmpeg_status = detect_ffmpeg()
    checks = [
        ("podcast-dl", __version__, "[green]OK[/green]"),
        _python_version_check(),
        _requests_version_check(),
        _tool_check(ffmpeg_status, "subtitle embedding disabled"),
        _tool_check(detect_ffprobe(), "no remux progress"),
        _os_check(),
    ]
    has_failure = any("FAIL" in status for _, _, status in checks)

    try:
        from rich.table import Table
    except ModuleNotFoundError:
        _print_plain_doctor_table(checks)
    else:
        table = Table(
            title="podcast-dl doctor",
            show_header=True,
            header_style="bold cyan",
            border_style="dim",
        )
        table.add_column("Component", style="bold", min_width=12)
        table.add_column("Value", min_width=20)
        table.add_column("Status", justify="center", min_width=8)
        for label, value, status in checks:
            table.add_row(label, value, status)
        console.print()
        console.print(table)
        console.print()

    if not ffmpeg_status.found and ffmpeg_status.install_commands:
        console.print("[yellow]ffmpeg is not installed.[/yellow]")
        console.print("Install using one of the following commands:\n")
        for cmd in ffmpeg_status.install_commands:
            console.print(f"  [bold]{cmd}[/bold]")
        console.print()

    if has_failure:
        console.print("[bold red]Some checks failed.[/bold red]")
        return exit_codes.GENERAL_ERROR

    console.print("[bold green]All checks passed.[/bold green]")
    return exit_codes.SUCCESS
