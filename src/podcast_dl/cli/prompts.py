"""Interactive prompts for the CLI layer.

This module is responsible for:

* Rendering a Rich table of the caption tracks found for an entry.
* Letting the user tick which tracks to embed via a questionary checkbox.
* The interactive "save as" target used before the directory fallback.

All display-related logic lives here — no business logic, no
downloading, no caption parsing.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from podcast_dl.cli.console import console
from podcast_dl.core.models import MediaBlob, SubtitleSpec
from podcast_dl.exceptions import EnvironmentError, SaveCancelledError, SaveError
from podcast_dl.infra.savers import unique_path, write_blob


def _import_questionary() -> Any:
    """Import questionary lazily for interactive selection."""
    try:
        import questionary
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "questionary is not installed. Install with: pip install questionary",
        ) from exc
    return questionary


def _import_rich_table() -> type[Any]:
    """Import rich table lazily for caption rendering."""
    try:
        from rich.table import Table
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "rich is not installed. Install with: pip install rich",
        ) from exc
    return Table


# ---------------------------------------------------------------------------
# Presentation helpers (pure transforms, no I/O)
# ---------------------------------------------------------------------------

def _build_choice_label(index: int, spec: SubtitleSpec) -> str:
    """Build the single-line label shown in the questionary checkbox.

    Format: ``"  1.  eng   English"``
    """
    label = spec.label or "(untitled)"
    return f"  {index + 1}.  {spec.language_code:<5} {label}"


def _display_caption_table(specs: Sequence[SubtitleSpec]) -> None:
    """Print a Rich table summarising the available caption tracks."""
    table_class = _import_rich_table()

    table = table_class(
        title="Available Captions",
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
    )
    table.add_column("#", justify="right", style="dim", width=4)
    table.add_column("Language", justify="left", min_width=8)
    table.add_column("Label", justify="left", min_width=16)
    table.add_column("File", justify="left", min_width=10)

    for i, spec in enumerate(specs, start=1):
        table.add_row(str(i), spec.language_code, spec.label, spec.file_name or "")

    console.print()
    console.print(table)
    console.print()


# ---------------------------------------------------------------------------
# Public prompt functions
# ---------------------------------------------------------------------------

def prompt_caption_selection(specs: Sequence[SubtitleSpec]) -> list[SubtitleSpec]:
    """Display caption tracks and let the user choose which to embed.

    The returned list keeps the listing order regardless of the order
    in which boxes were ticked.  An empty selection is valid and leads to
    a pass-through download.

    Raises
    ------
    KeyboardInterrupt
        If the user presses Ctrl+C or Esc during selection.
    """
    if not specs:
        return []

    questionary = _import_questionary()
    _display_caption_table(specs)

    choices = [
        questionary.Choice(title=_build_choice_label(i, spec), value=i, checked=True)
        for i, spec in enumerate(specs)
    ]
    selected: list[int] | None = questionary.checkbox(
        "Select caption tracks to embed:",
        choices=choices,
    ).ask()  # Returns None on Ctrl+C / Esc

    if selected is None:
        raise KeyboardInterrupt
    chosen = set(selected)
    return [spec for i, spec in enumerate(specs) if i in chosen]


class PromptSaveTarget:
    """Interactive "save as" dialog, the preferred save path.

    Unavailable (raises :class:`SaveError` or :class:`EnvironmentError`)
    when stdin is not a terminal or questionary is missing, letting the
    caller fall back to a plain directory target.
    """

    def __init__(self, directory: Path) -> None:
        self._directory: Path = directory

    def save(self, blob: MediaBlob, filename: str) -> Path:
        if not sys.stdin.isatty():
            raise SaveError("No interactive terminal for the save dialog.")
        questionary = _import_questionary()

        default = unique_path(self._directory / filename)
        answer: str | None = questionary.path(
            f"Save video as ({len(blob) / (1024 * 1024):.1f} MB):",
            default=str(default),
        ).ask()
        if not answer:
            raise SaveCancelledError("Save cancelled.")
        return write_blob(blob, Path(answer).expanduser())
