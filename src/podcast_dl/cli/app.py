"""CLI application entry point and command routing for podcast-dl.

This module is the **sole error boundary** for the entire application.
It catches :class:`~podcast_dl.exceptions.PodcastDlError`,
``KeyboardInterrupt``, and any unexpected ``Exception``, rendering
user-friendly messages via Rich and returning well-defined exit codes.

Architecture notes
------------------
* No business logic lives here — all work is delegated to the core/service
  and infrastructure layers.
* ``print()`` is forbidden outside the CLI layer; Rich console is used
  exclusively.
* This module is the only place that translates between the domain world
  and the OS process exit code.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from podcast_dl.cli import exit_codes
from podcast_dl.cli.console import console
from podcast_dl.config import DEFAULT_FILENAME, DEFAULT_PROVIDER_HOST, DEFAULT_RELAY_HOST, Settings
from podcast_dl.core.models import SubtitleSpec
from podcast_dl.exceptions import PodcastDlError
from podcast_dl.version import __version__


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def _parse_subtitle_arg(value: str) -> SubtitleSpec:
    """Parse ``URL[,LANG[,LABEL]]`` into a :class:`SubtitleSpec`."""
    parts = [part.strip() for part in value.split(",", 2)]
    url = parts[0]
    if not url.startswith(("http://", "https://")):
        raise argparse.ArgumentTypeError(f"subtitle URL must be http(s): {url!r}")
    language = parts[1] if len(parts) > 1 and parts[1] else "eng"
    label = parts[2] if len(parts) > 2 else ""
    return SubtitleSpec(url=url, language_code=language, label=label)


def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser.

    Sub-commands are not used; the CLI supports:
    * ``podcast-dl <source>``   — resolve and download a podcast video
    * ``podcast-dl doctor``     — environment diagnostics
    * ``podcast-dl --version``
    """
    parser = argparse.ArgumentParser(
        prog="podcast-dl",
        description="Download Kaltura-hosted podcast videos, optionally with subtitles.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "target",
        nargs="?",
        default=None,
        help="Saved page HTML, '-' for stdin, the page URL, or 'doctor'.",
    )
    parser.add_argument(
        "--mode",
        choices=("mux", "stream"),
        default="mux",
        help="'mux' fetches via ffmpeg and can embed subtitles; "
        "'stream' is a plain download (default: mux).",
    )
    parser.add_argument(
        "-s",
        "--subtitle",
        dest="subtitles",
        action="append",
        type=_parse_subtitle_arg,
        default=[],
        metavar="URL[,LANG[,LABEL]]",
        help="Subtitle file to embed; repeat for more tracks, in track order.",
    )
    parser.add_argument(
        "--captions",
        action="store_true",
        help="Also embed the caption tracks listed for the entry.",
    )
    parser.add_argument(
        "--pick",
        action="store_true",
        help="Choose interactively which listed caption tracks to embed.",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        type=Path,
        default=Path("."),
        help="Directory to save into (default: current directory).",
    )
    parser.add_argument("--filename", default=DEFAULT_FILENAME, help=argparse.SUPPRESS)
    parser.add_argument(
        "--no-prompt",
        action="store_true",
        help="Save straight into the output directory without a save dialog.",
    )
    parser.add_argument("--host", default=DEFAULT_PROVIDER_HOST, help="Kaltura API host.")
    parser.add_argument("--relay-host", default=DEFAULT_RELAY_HOST, help="CORS relay host.")
    parser.add_argument("--timeout", type=float, default=60.0, help="HTTP timeout in seconds.")
    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    return Settings(
        provider_host=args.host,
        relay_host=args.relay_host,
        request_timeout=args.timeout,
        default_filename=args.filename,
        output_dir=args.output_dir,
    )


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

def _handle_download(args: argparse.Namespace) -> int:
    """Resolve the page and download the video.

    Flow:
    1. Read the page markup and resolve the Kaltura endpoints.
    2. Optionally list caption tracks and let the user pick.
    3. Acquire the video via the remux pipeline or a plain stream.
    4. Save through the save dialog, falling back to the output directory.
    """
    from podcast_dl.cli.console import print_log_entry
    from podcast_dl.cli.progress import RichPercentProgress
    from podcast_dl.cli.prompts import PromptSaveTarget, prompt_caption_selection
    from podcast_dl.core.caption_catalog import CaptionCatalog
    from podcast_dl.core.delivery import save_with_fallback
    from podcast_dl.core.endpoint_resolver import extract_urls, resolve
    from podcast_dl.core.models import LogEntry, LogLevel
    from podcast_dl.core.pipeline import PipelineOrchestrator
    from podcast_dl.core.resource_fetcher import ResourceFetcher
    from podcast_dl.core.streaming_downloader import StreamingDownloader
    from podcast_dl.exceptions import CaptionListingError
    from podcast_dl.infra.ffmpeg_engine import FfmpegEngine
    from podcast_dl.infra.http_client import RequestsHttpClient
    from podcast_dl.infra.markup_source import read_markup
    from podcast_dl.infra.savers import DirectorySaveTarget

    settings = _settings_from_args(args)
    http = RequestsHttpClient(timeout=settings.request_timeout)
    log = print_log_entry

    log(LogEntry("Reading page markup..."))
    markup = read_markup(args.target, http)

    log(LogEntry("Processing Kaltura video info..."))
    endpoints = extract_urls(markup, host=settings.provider_host, on_log=log)
    log(LogEntry("Video URL found", LogLevel.SUCCESS))

    subtitles: list[SubtitleSpec] = list(args.subtitles)
    if args.captions and endpoints.subtitle_url is not None:
        log(LogEntry("Subtitle URL found", LogLevel.SUCCESS))
        catalog = CaptionCatalog(http)
        try:
            listed = catalog.subtitle_specs(
                endpoints.subtitle_url,
                resolve(markup),
                settings.provider_host,
            )
        except CaptionListingError as exc:
            log(LogEntry(f"Caption listing unavailable: {exc}", LogLevel.WARNING))
            listed = []
        else:
            log(LogEntry(f"Found {len(listed)} caption track(s)", LogLevel.SUCCESS))
        if args.pick:
            listed = prompt_caption_selection(listed)
        subtitles.extend(listed)

    if args.no_prompt:
        saver = DirectorySaveTarget(settings.output_dir)
        fallback = None
    else:
        saver = PromptSaveTarget(settings.output_dir)
        fallback = DirectorySaveTarget(settings.output_dir)

    if args.mode == "stream":
        if subtitles:
            log(LogEntry("Stream mode cannot embed subtitles; ignoring them", LogLevel.WARNING))
        log(LogEntry("Starting download..."))
        downloader = StreamingDownloader(http, saver, fallback_saver=fallback, settings=settings)
        with RichPercentProgress("Downloading") as progress:
            blob = downloader.fetch(endpoints.video_url, on_progress=progress)
    else:
        engine = FfmpegEngine()
        orchestrator = PipelineOrchestrator(
            engine,
            ResourceFetcher(http, relay_host=settings.relay_host),
        )
        try:
            with RichPercentProgress("Processing") as progress:
                blob = orchestrator.process_video(
                    endpoints.video_url,
                    subtitles,
                    on_progress=progress,
                    on_log=log,
                )
        finally:
            engine.close()

    path = save_with_fallback(
        blob,
        saver,
        fallback,
        filename=settings.default_filename,
        on_log=log,
    )
    log(LogEntry(f"Download complete! Saved to {path}", LogLevel.SUCCESS))
    return exit_codes.SUCCESS


def _handle_doctor() -> int:
    """Dispatch the ``doctor`` diagnostics command."""
    from podcast_dl.cli.doctor import run_doctor

    return run_doctor()


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the podcast-dl CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.target is None:
        parser.print_help()
        return exit_codes.SUCCESS

    if args.target.lower() == "doctor":
        return _handle_doctor()

    return _handle_download(args)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except PodcastDlError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {exc.hint}")
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
