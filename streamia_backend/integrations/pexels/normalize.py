"""
Normalization of Pexels video payloads into catalog movie rows.

Raw items are first parsed into `ExternalVideo` (well-formed) or
`MalformedVideo` (anything without a usable id); only the former are turned
into `NormalizedMovie` rows.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Union
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

EXTERNAL_PROVIDER = "external"

_SLUG_TRAILING_ID = re.compile(r"-?\d+$")


@dataclass(frozen=True)
class ExternalVideo:
    id: str
    url: str | None = None
    image: str | None = None
    duration: int | None = None
    author: str | None = None
    description: str | None = None
    tags: tuple[str, ...] = ()
    video_links: tuple[str, ...] = ()
    picture_links: tuple[str, ...] = ()


@dataclass(frozen=True)
class MalformedVideo:
    reason: str
    raw: Any = field(default=None, repr=False)


ParsedVideo = Union[ExternalVideo, MalformedVideo]


@dataclass(frozen=True)
class NormalizedMovie:
    """An external item in the shape of a `movies` row (minus id/timestamps)."""

    title: str
    external_id: str
    description: str = ""
    category: str = ""
    cover_image: str | None = None
    video_url: str | None = None
    duration: int | None = None
    provider: str = EXTERNAL_PROVIDER

    def to_row(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "cover_image": self.cover_image,
            "video_url": self.video_url,
            "external_id": self.external_id,
            "duration": self.duration,
            "provider": self.provider,
        }


def _clean_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _links(entries: Any, key: str) -> tuple[str, ...]:
    if not isinstance(entries, list):
        return ()
    links = []
    for entry in entries:
        if isinstance(entry, Mapping):
            link = _clean_str(entry.get(key))
            if link:
                links.append(link)
    return tuple(links)


def _coerce_id(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value.strip().isdigit():
        return value.strip()
    return None


def _coerce_duration(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    return None


def parse_video(raw: Any) -> ParsedVideo:
    if not isinstance(raw, Mapping):
        return MalformedVideo("item is not an object", raw)

    video_id = _coerce_id(raw.get("id"))
    if video_id is None:
        return MalformedVideo("missing or invalid id", raw)

    user = raw.get("user")
    author = _clean_str(user.get("name")) if isinstance(user, Mapping) else None
    tags_raw = raw.get("tags")
    tags = tuple(t.strip() for t in tags_raw if isinstance(t, str) and t.strip()) if isinstance(tags_raw, list) else ()

    return ExternalVideo(
        id=video_id,
        url=_clean_str(raw.get("url")),
        image=_clean_str(raw.get("image")),
        duration=_coerce_duration(raw.get("duration")),
        author=author,
        description=_clean_str(raw.get("description")),
        tags=tags,
        video_links=_links(raw.get("video_files"), "link"),
        picture_links=_links(raw.get("video_pictures"), "picture"),
    )


def title_from_url(url: str | None) -> str | None:
    """
    Derive a display title from a Pexels page URL.

    Example: https://www.pexels.com/video/waves-crashing-on-rocks-857251/ -> "Waves Crashing On Rocks"
    """
    if not url:
        return None
    path = urlparse(url).path.strip("/")
    if not path:
        return None
    slug = path.split("/")[-1]
    slug = _SLUG_TRAILING_ID.sub("", slug)
    words = [w for w in slug.split("-") if w]
    if not words:
        return None
    return " ".join(w.capitalize() for w in words)


def normalize_video(video: ExternalVideo) -> NormalizedMovie:
    title = title_from_url(video.url) or video.author or f"Pexels video {video.id}"
    cover = video.image or (video.picture_links[0] if video.picture_links else None)
    return NormalizedMovie(
        title=title,
        external_id=video.id,
        description=video.description or "",
        category=", ".join(video.tags),
        cover_image=cover,
        video_url=video.video_links[0] if video.video_links else None,
        duration=video.duration,
    )


def normalize_videos(raw_items: Iterable[Any]) -> list[NormalizedMovie]:
    normalized: list[NormalizedMovie] = []
    for raw in raw_items:
        parsed = parse_video(raw)
        if isinstance(parsed, MalformedVideo):
            logger.warning(f"Skipping malformed Pexels item: {parsed.reason}")
            continue
        normalized.append(normalize_video(parsed))
    return normalized
