"""Tests for caption-listing resolution (core/caption_catalog.py)."""

from __future__ import annotations

import json
from urllib.parse import parse_qs, urlsplit

import pytest

from conftest import FakeHttp
from podcast_dl.core.caption_catalog import (
    CaptionCatalog,
    build_serve_url,
    parse_caption_listing,
    to_iso639_2,
    to_subtitle_specs,
)
from podcast_dl.core.models import CaptionAsset, SessionInfo
from podcast_dl.exceptions import CaptionListingError, FetchError

LISTING_URL = "https://cdnapisec.kaltura.com/api_v3/index.php?service=caption_captionasset&action=list&ks=xyz987"
SESSION = SessionInfo(entry_id="1_abc123", account_id="456", session_token="xyz987")


def _listing(*objects: dict[str, object]) -> dict[str, object]:
    return {"objectType": "KalturaCaptionAssetListResponse", "objects": list(objects), "totalCount": len(objects)}


ENGLISH = {"id": "1_en", "label": "English", "language": "English", "languageCode": "en", "fileExt": "srt", "isDefault": True}
FRENCH = {"id": "1_fr", "label": "", "language": "French", "languageCode": "fr", "fileExt": "VTT"}
DFXP = {"id": "1_de", "label": "Deutsch", "language": "German", "languageCode": "de", "fileExt": "dfxp"}


class TestParseCaptionListing:
    def test_parses_objects(self) -> None:
        assets = parse_caption_listing(_listing(ENGLISH, FRENCH))
        assert assets[0] == CaptionAsset(
            id="1_en", label="English", language="English",
            language_code="en", file_ext="srt", is_default=True,
        )
        assert assets[1].label == "French"
        assert assets[1].file_ext == "vtt"
        assert assets[1].is_default is False

    def test_skips_entries_without_id(self) -> None:
        assert parse_caption_listing(_listing({"label": "ghost"}, ENGLISH))[0].id == "1_en"

    def test_empty_listing(self) -> None:
        assert parse_caption_listing(_listing()) == []

    def test_api_exception(self) -> None:
        payload = {"objectType": "KalturaAPIException", "message": "Invalid KS"}
        with pytest.raises(CaptionListingError, match="Invalid KS") as exc_info:
            parse_caption_listing(payload)
        assert exc_info.value.hint is not None

    @pytest.mark.parametrize("payload", [[], "text", None, {"objects": "nope"}, {}])
    def test_malformed(self, payload: object) -> None:
        with pytest.raises(CaptionListingError):
            parse_caption_listing(payload)


class TestSpecs:
    def test_iso_mapping(self) -> None:
        assert to_iso639_2("en") == "eng"
        assert to_iso639_2(" FR ") == "fre"
        assert to_iso639_2("xx") == "xx"

    def test_serve_url(self) -> None:
        parts = urlsplit(build_serve_url("1_en", "xyz987"))
        assert parts.netloc == "cdnapisec.kaltura.com"
        assert parts.path == "/api_v3/index.php"
        assert parse_qs(parts.query) == {
            "service": ["caption_captionasset"],
            "action": ["serve"],
            "captionAssetId": ["1_en"],
            "ks": ["xyz987"],
        }

    def test_skips_unsupported_formats(self) -> None:
        assets = parse_caption_listing(_listing(ENGLISH, DFXP, FRENCH))
        specs = to_subtitle_specs(assets, SESSION)
        assert [s.label for s in specs] == ["English", "French"]
        assert [s.file_name for s in specs] == ["1_en.srt", "1_fr.vtt"]
        assert [s.language_code for s in specs] == ["eng", "fre"]

    def test_missing_language_code_defaults(self) -> None:
        asset = CaptionAsset(id="a", label="", language="", language_code="", file_ext="srt")
        assert to_subtitle_specs([asset], SESSION)[0].language_code == "eng"

    def test_custom_host(self) -> None:
        specs = to_subtitle_specs(parse_caption_listing(_listing(ENGLISH)), SESSION, "kaltura.example.edu")
        assert specs[0].url.startswith("https://kaltura.example.edu/api_v3/")


class TestCaptionCatalog:
    def test_subtitle_specs(self) -> None:
        http = FakeHttp({LISTING_URL: json.dumps(_listing(ENGLISH, FRENCH)).encode()})
        specs = CaptionCatalog(http).subtitle_specs(LISTING_URL, SESSION)
        assert len(specs) == 2
        assert http.requested == [LISTING_URL]

    def test_invalid_json(self) -> None:
        http = FakeHttp({LISTING_URL: b"<html>rate limited</html>"})
        with pytest.raises(CaptionListingError, match="not valid JSON"):
            CaptionCatalog(http).list_captions(LISTING_URL)

    def test_fetch_error_raw_from_list_captions(self) -> None:
        with pytest.raises(FetchError):
            CaptionCatalog(FakeHttp()).list_captions(LISTING_URL)

    def test_fetch_error_wrapped_by_subtitle_specs(self) -> None:
        http = FakeHttp({LISTING_URL: FetchError("HTTP 403", hint="expired")})
        with pytest.raises(CaptionListingError) as exc_info:
            CaptionCatalog(http).subtitle_specs(LISTING_URL, SESSION)
        assert exc_info.value.hint == "expired"
        assert isinstance(exc_info.value.__cause__, FetchError)
