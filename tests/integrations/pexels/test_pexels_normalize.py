from __future__ import annotations

import json
from pathlib import Path

import pytest

from streamia_backend.integrations.pexels.normalize import (
    ExternalVideo,
    MalformedVideo,
    normalize_video,
    normalize_videos,
    parse_video,
    title_from_url,
)


def _sample_videos() -> list:
    repo_root = Path(__file__).resolve().parents[3]
    payload = json.loads(
        (repo_root / "tests" / "fixtures" / "pexels" / "popular_videos_sample.json").read_text(encoding="utf-8")
    )
    return payload["videos"]


def test_normalize_fixture_skips_malformed_items() -> None:
    movies = normalize_videos(_sample_videos())

    assert [m.external_id for m in movies] == ["857251", "1093662", "3571264"]

    waves = movies[0]
    assert waves.title == "Waves Crashing On Rocks"
    assert waves.category == "ocean, nature"
    assert waves.cover_image.endswith("free-video-857251.jpg")
    assert waves.video_url.endswith("857251-hd_1280_720_25fps.mp4")
    assert waves.duration == 12
    assert waves.provider == "external"


def test_title_falls_back_to_author_then_id() -> None:
    movies = normalize_videos(_sample_videos())
    assert movies[1].title == "Pressmaster"

    anonymous = normalize_video(ExternalVideo(id="77", url="https://www.pexels.com/video/77/"))
    assert anonymous.title == "Pexels video 77"


def test_cover_falls_back_to_first_picture_and_missing_files_are_none() -> None:
    movies = normalize_videos(_sample_videos())

    assert movies[1].cover_image.endswith("1093662/pictures/preview-0.jpg")
    assert movies[2].video_url is None


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://www.pexels.com/video/waves-crashing-on-rocks-857251/", "Waves Crashing On Rocks"),
        ("https://www.pexels.com/video/aerial-view-12/", "Aerial View"),
        ("https://www.pexels.com/video/857251/", None),
        ("", None),
        (None, None),
    ],
)
def test_title_from_url(url, expected) -> None:  # noqa: ANN001
    assert title_from_url(url) == expected


@pytest.mark.parametrize("raw", [None, "video", {"id": None}, {"id": True}, {"id": "abc"}])
def test_parse_video_rejects_items_without_usable_id(raw) -> None:  # noqa: ANN001
    assert isinstance(parse_video(raw), MalformedVideo)


def test_parse_video_accepts_string_ids_and_to_row_shape() -> None:
    parsed = parse_video({"id": " 42 ", "tags": ["a", " ", 3, "b"], "duration": 7.9})

    assert isinstance(parsed, ExternalVideo)
    assert parsed.id == "42"
    assert parsed.tags == ("a", "b")
    assert parsed.duration == 7

    row = normalize_video(parsed).to_row()
    assert set(row) == {
        "title",
        "description",
        "category",
        "cover_image",
        "video_url",
        "external_id",
        "duration",
        "provider",
    }
    assert row["external_id"] == "42"
