"""Rich-based progress display driven by integer percentage callbacks.

Both acquisition paths report progress as an ``int`` in ``[0, 100]``:
the streaming path per received chunk, the remux path per ffmpeg
progress block.  This module bridges those callbacks with a Rich
:class:`~rich.progress.Progress` bar.

Design
------
* The :class:`RichPercentProgress` manages a Rich Progress context.
* :meth:`__call__` is the ``on_progress`` callback handed to the core.
* Shutdown-safe: if the progress bar is already stopped, calls are
  silently ignored.
* No ``print()`` — Rich handles all rendering.
"""

from __future__ import annotations

from typing import Any

from podcast_dl.cli.console import get_rich_console
from podcast_dl.exceptions import EnvironmentError


class RichPercentProgress:
    """Callable percentage-progress adapter for Rich.

    Usage::

        with RichPercentProgress("Downloading") as progress:
            downloader.download_video(url, on_progress=progress)
    """

    def __init__(self, description: str = "Working") -> None:
        try:
            from rich.progress import (
                BarColumn,
                Progress,
                SpinnerColumn,
                TaskProgressColumn,
                TextColumn,
                TimeElapsedColumn,
            )
        except ModuleNotFoundError as exc:
            raise EnvironmentError(
                "rich is not installed. Install with: pip install rich",
            ) from exc

        self._progress: Any = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=get_rich_console(),
            transient=False,
        )
        self._description: str = description
        self._task_id: Any = None
        self._started: bool = False
        self.last_percent: int | None = None

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> RichPercentProgress:
        self.start()
        return self

    def __exit__(self, *_args: object) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the Rich progress display."""
        if not self._started:
            self._progress.start()
            self._task_id = self._progress.add_task(self._description, total=100)
            self._started = True

    def stop(self) -> None:
        """Stop the Rich progress display (idempotent)."""
        if self._started:
            self._progress.stop()
            self._started = False

    # ------------------------------------------------------------------
    # Callback
    # ------------------------------------------------------------------

    def __call__(self, percent: int) -> None:
        """``on_progress`` callback; out-of-range values are clamped."""
        if not self._started:
            return
        clamped = max(0, min(100, int(percent)))
        self.last_percent = clamped
        self._progress.update(self._task_id, completed=clamped)
