"""CLI console helpers with optional Rich support.

This module intentionally avoids module-level imports of optional UI
dependencies so bootstrap paths (``--help``, ``--version``, ``doctor``)
remain functional even when Rich is not installed.
"""

from __future__ import annotations

import re
import sys
from typing import Any

from podcast_dl.core.models import LogEntry, LogLevel
from podcast_dl.exceptions import EnvironmentError

_MARKUP_TAG = re.compile(r"\[/?[a-z ]+\]")

_LEVEL_STYLES: dict[LogLevel, str] = {
	LogLevel.INFO: "blue",
	LogLevel.SUCCESS: "green",
	LogLevel.WARNING: "yellow",
	LogLevel.ERROR: "bold red",
}


def _load_rich_console_class() -> type[Any]:
	"""Return ``rich.console.Console`` class or raise ``EnvironmentError``."""
	try:
		from rich.console import Console
	except ModuleNotFoundError as exc:
		raise EnvironmentError(
			"rich is not installed. Install with: pip install rich",
		) from exc
	return Console


def get_rich_console() -> Any:
	"""Create a Rich console instance targeting stderr."""
	console_class = _load_rich_console_class()
	return console_class(stderr=True)


class _ConsoleProxy:
	"""Minimal ``print``-compatible proxy with Rich fallback."""

	def print(self, *objects: object) -> None:
		"""Render with Rich when available, else plain stderr print."""
		try:
			rich_console = get_rich_console()
		except EnvironmentError:
			print(*(_strip_markup(obj) for obj in objects), file=sys.stderr)
			return
		rich_console.print(*objects)


def _strip_markup(obj: object) -> object:
	"""Drop Rich style tags so plain output stays readable."""
	if isinstance(obj, str):
		return _MARKUP_TAG.sub("", obj)
	return obj


console = _ConsoleProxy()


def print_log_entry(entry: LogEntry) -> None:
	"""Render one core-layer log entry with a timestamp and level colour."""
	style = _LEVEL_STYLES.get(entry.level, "white")
	stamp = entry.timestamp.strftime("%H:%M:%S")
	console.print(f"[dim]{stamp}[/dim] [{style}]{entry.message}[/{style}]")
