"""Pure construction of the ffmpeg remux command.

The command stream-copies audio and video from the source and converts
every subtitle input to ``mov_text``, the text codec MP4 accepts.
Nothing is re-encoded.

Layout::

    -i input.mp4 [-i sub_0.srt ...]
    -c:v copy -c:a copy -c:s mov_text
    -map 0:v -map 0:a
    [-map 1:0 -metadata:s:s:0 language=eng [-metadata:s:s:0 title=English] ...]
    output.mp4
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import PurePath

from podcast_dl.core.models import SubtitleSpec

VIDEO_WORKING_NAME: str = "input.mp4"
OUTPUT_WORKING_NAME: str = "output.mp4"
DEFAULT_SUBTITLE_LANGUAGE: str = "eng"
SUBTITLE_CODEC: str = "mov_text"
DEFAULT_SUBTITLE_SUFFIX: str = ".srt"


def subtitle_working_name(index: int, spec: SubtitleSpec) -> str:
    """Return the working-file name for the subtitle at *index*.

    Names are always ``sub_<index>`` so they cannot collide with each
    other or with the video and output files.  ``spec.file_name`` only
    contributes its extension.
    """
    suffix = PurePath(spec.file_name).suffix.lower() if spec.file_name else ""
    if not suffix[1:].isalnum():
        suffix = DEFAULT_SUBTITLE_SUFFIX
    return f"sub_{index}{suffix}"


def build_remux_command(
    subtitle_files: Sequence[str],
    subtitle_specs: Sequence[SubtitleSpec],
) -> list[str]:
    """Build the remux token list for *subtitle_files*.

    ``subtitle_specs`` must run parallel to ``subtitle_files``: entry
    ``i`` of both describes output subtitle track ``i``.
    """
    if len(subtitle_files) != len(subtitle_specs):
        raise ValueError(
            f"Got {len(subtitle_files)} subtitle files "
            f"but {len(subtitle_specs)} subtitle specs."
        )

    command: list[str] = ["-i", VIDEO_WORKING_NAME]
    for file_name in subtitle_files:
        command += ["-i", file_name]

    command += ["-c:v", "copy", "-c:a", "copy", "-c:s", SUBTITLE_CODEC]
    command += ["-map", "0:v", "-map", "0:a"]

    for i, spec in enumerate(subtitle_specs):
        command += ["-map", f"{i + 1}:0"]
        language = spec.language_code or DEFAULT_SUBTITLE_LANGUAGE
        command += [f"-metadata:s:s:{i}", f"language={language}"]
        if spec.label:
            command += [f"-metadata:s:s:{i}", f"title={spec.label}"]

    command.append(OUTPUT_WORKING_NAME)
    return command
