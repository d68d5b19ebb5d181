"""Pure Kaltura endpoint resolution from captured page markup.

Every function in this module is a **pure** transformation — no I/O,
no side effects, fully deterministic, and trivially unit-testable.

Pipeline order (enforced by :func:`extract_urls`):

1. **Resolve** — evaluate the field descriptors against the markup.
2. **Build** — fill the provider URL templates from the session.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from podcast_dl.config import DEFAULT_PROVIDER_HOST
from podcast_dl.core.models import EndpointSet, LogEntry, LogLevel, SessionInfo
from podcast_dl.core.protocols import LogCallback
from podcast_dl.exceptions import ExtractionError


# ---------------------------------------------------------------------------
# Field descriptors
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class FieldPattern:
    """One named value to pull out of the markup.

    The first capture group of the first match is the field value.
    """

    name: str
    pattern: re.Pattern[str]
    required: bool


SESSION_FIELDS: tuple[FieldPattern, ...] = (
    FieldPattern("entry_id", re.compile(r"entry_id['\":\s=]+([a-zA-Z0-9_-]+)"), True),
    FieldPattern("account_id", re.compile(r"/p/(\d+)/"), True),
    FieldPattern("session_token", re.compile(r"ks['\":\s=]+([a-zA-Z0-9_-]+)"), False),
)


# ---------------------------------------------------------------------------
# URL templates
# ---------------------------------------------------------------------------

VIDEO_URL_TEMPLATE: str = (
    "https://{host}/p/{account_id}/sp/{account_id}00/playManifest"
    "/entryId/{entry_id}/format/download/protocol/https"
)

SUBTITLE_URL_TEMPLATE: str = (
    "https://{host}/api_v3/index.php?service=caption_captionasset"
    "&apiVersion=3.1&expiry=86400&clientTag=kwidget:v2.101&format=1"
    "&ignoreNull=1&action=list&filter:objectType=KalturaAssetFilter"
    "&filter:entryIdEqual={entry_id}&filter:statusEqual=2"
    "&pager:pageSize=50&ks={session_token}"
)


# ---------------------------------------------------------------------------
# 1. Resolve
# ---------------------------------------------------------------------------

def resolve(
    markup: str,
    fields: tuple[FieldPattern, ...] = SESSION_FIELDS,
) -> SessionInfo:
    """Extract a :class:`SessionInfo` from raw page *markup*.

    Raises
    ------
    ExtractionError
        Naming every required field that has no match.
    """
    values: dict[str, str | None] = {}
    missing: list[str] = []
    for descriptor in fields:
        match = descriptor.pattern.search(markup)
        values[descriptor.name] = match.group(1) if match else None
        if match is None and descriptor.required:
            missing.append(descriptor.name)

    if missing:
        raise ExtractionError(missing)

    return SessionInfo(
        entry_id=str(values["entry_id"]),
        account_id=str(values["account_id"]),
        session_token=values.get("session_token"),
    )


# ---------------------------------------------------------------------------
# 2. Build
# ---------------------------------------------------------------------------

def build_video_url(info: SessionInfo, host: str = DEFAULT_PROVIDER_HOST) -> str:
    url = VIDEO_URL_TEMPLATE.format(
        host=host,
        account_id=info.account_id,
        entry_id=info.entry_id,
    )
    if info.session_token:
        url += f"/ks/{info.session_token}"
    return url


def build_subtitle_url(info: SessionInfo, host: str = DEFAULT_PROVIDER_HOST) -> str:
    return SUBTITLE_URL_TEMPLATE.format(
        host=host,
        entry_id=info.entry_id,
        session_token=info.session_token or "",
    )


def build_endpoints(
    info: SessionInfo,
    host: str = DEFAULT_PROVIDER_HOST,
) -> EndpointSet:
    """Fill the provider templates for *info*.

    ``subtitle_url`` is only built when a session token is present; the
    caption API rejects anonymous listing requests.
    """
    subtitle_url = build_subtitle_url(info, host) if info.session_token else None
    return EndpointSet(video_url=build_video_url(info, host), subtitle_url=subtitle_url)


# ---------------------------------------------------------------------------
# Composite pipeline
# ---------------------------------------------------------------------------

def extract_urls(
    markup: str,
    *,
    host: str = DEFAULT_PROVIDER_HOST,
    on_log: LogCallback | None = None,
) -> EndpointSet:
    """Run resolve → build and emit an advisory when captions are unavailable.

    Raises
    ------
    ExtractionError
        When the markup lacks a required session field.
    """
    endpoints = build_endpoints(resolve(markup), host)
    if endpoints.subtitle_url is None and on_log is not None:
        on_log(LogEntry(
            "No KS token available, cannot construct subtitle API URL",
            LogLevel.WARNING,
        ))
    return endpoints
