"""Resolve the Kaltura caption-listing endpoint into subtitle specs.

The listing URL derived from the page only *describes* the caption
assets of an entry.  This module fetches that listing, parses it into
:class:`CaptionAsset` records and turns the usable ones into
individually addressable :class:`SubtitleSpec` values via the
``caption_captionasset.serve`` action.

Parsing and spec construction are pure; only :meth:`CaptionCatalog.list_captions`
performs I/O, through the injected :class:`HttpClient`.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any
from urllib.parse import urlencode

from podcast_dl.config import DEFAULT_PROVIDER_HOST
from podcast_dl.core.models import CaptionAsset, SessionInfo, SubtitleSpec
from podcast_dl.core.protocols import HttpClient
from podcast_dl.exceptions import CaptionListingError, PodcastDlError

# Formats ffmpeg can read and convert to mov_text.
SUPPORTED_EXTENSIONS: frozenset[str] = frozenset({"srt", "vtt", "ass", "ssa"})

# ISO 639-1 → ISO 639-2/B, for the container's language tag.
_ISO639_2: dict[str, str] = {
    "ar": "ara", "de": "ger", "en": "eng", "es": "spa", "fr": "fre",
    "he": "heb", "hi": "hin", "it": "ita", "ja": "jpn", "ko": "kor",
    "nl": "dut", "pl": "pol", "pt": "por", "ru": "rus", "sv": "swe",
    "tr": "tur", "uk": "ukr", "zh": "chi",
}


def to_iso639_2(code: str) -> str:
    """Return a three-letter language tag for *code* where one is known."""
    normalized = code.strip().lower()
    return _ISO639_2.get(normalized, normalized)


# ---------------------------------------------------------------------------
# Raw payload → domain models (pure)
# ---------------------------------------------------------------------------

def parse_caption_listing(payload: Any) -> list[CaptionAsset]:
    """Convert a decoded listing response into :class:`CaptionAsset` records.

    Raises
    ------
    CaptionListingError
        When the payload is a Kaltura API exception or malformed.
    """
    if not isinstance(payload, dict):
        raise CaptionListingError("Caption listing returned an unexpected data structure.")

    if payload.get("objectType") == "KalturaAPIException":
        raise CaptionListingError(
            f"Caption listing rejected: {payload.get('message', 'unknown error')}",
            hint="The session token may have expired; reload the podcast page.",
        )

    raw: object = payload.get("objects")
    if not isinstance(raw, list):
        raise CaptionListingError("Caption listing has no 'objects' list.")

    return [
        CaptionAsset(
            id=str(entry.get("id", "")),
            label=str(entry.get("label") or entry.get("language") or ""),
            language=str(entry.get("language") or ""),
            language_code=str(entry.get("languageCode") or ""),
            file_ext=str(entry.get("fileExt") or "").lower(),
            is_default=bool(entry.get("isDefault")),
        )
        for entry in raw
        if isinstance(entry, dict) and entry.get("id")
    ]


def build_serve_url(
    asset_id: str,
    session_token: str | None,
    host: str = DEFAULT_PROVIDER_HOST,
) -> str:
    query = urlencode({
        "service": "caption_captionasset",
        "action": "serve",
        "captionAssetId": asset_id,
        "ks": session_token or "",
    })
    return f"https://{host}/api_v3/index.php?{query}"


def to_subtitle_specs(
    assets: Sequence[CaptionAsset],
    session: SessionInfo,
    host: str = DEFAULT_PROVIDER_HOST,
) -> list[SubtitleSpec]:
    """Turn the convertible *assets* into subtitle specs, in listing order.

    Assets in formats ffmpeg cannot turn into ``mov_text`` (e.g. DFXP)
    are skipped.
    """
    specs: list[SubtitleSpec] = []
    for asset in assets:
        if asset.file_ext not in SUPPORTED_EXTENSIONS:
            continue
        specs.append(SubtitleSpec(
            url=build_serve_url(asset.id, session.session_token, host),
            language_code=to_iso639_2(asset.language_code) if asset.language_code else "eng",
            label=asset.label,
            file_name=f"{asset.id}.{asset.file_ext}",
        ))
    return specs


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------

class CaptionCatalog:
    """Lists the caption assets behind a caption-listing URL.

    Parameters
    ----------
    http:
        Any object satisfying the :class:`HttpClient` protocol.
    """

    def __init__(self, http: HttpClient) -> None:
        self._http: HttpClient = http

    def list_captions(self, subtitle_url: str) -> list[CaptionAsset]:
        """Fetch and parse the listing at *subtitle_url*.

        Raises
        ------
        FetchError
            When the listing cannot be downloaded.
        CaptionListingError
            When the response is not a usable listing.
        """
        body = self._http.get_bytes(subtitle_url)
        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise CaptionListingError("Caption listing is not valid JSON.") from exc
        return parse_caption_listing(payload)

    def subtitle_specs(
        self,
        subtitle_url: str,
        session: SessionInfo,
        host: str = DEFAULT_PROVIDER_HOST,
    ) -> list[SubtitleSpec]:
        """List captions and convert them to specs in one step."""
        try:
            assets = self.list_captions(subtitle_url)
        except CaptionListingError:
            raise
        except PodcastDlError as exc:
            raise CaptionListingError(
                f"Could not fetch caption listing: {exc}",
                hint=exc.hint,
            ) from exc
        return to_subtitle_specs(assets, session, host)
