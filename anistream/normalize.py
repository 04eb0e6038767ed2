"""Turn loosely-typed source fields into normalized records.

Every adapter builds its records through these helpers so the defaults for
missing fields (empty lists, ``"Unknown"``, zero rating) live in one place.
"""
from __future__ import annotations

from typing import Any, Iterable, Optional

from anistream.models import AnimeRecord, AnimeStatus, EpisodeRecord

RATING_SCALE = 5

_STATUS_ALIASES = {
    "ongoing": AnimeStatus.ONGOING,
    "on-going": AnimeStatus.ONGOING,
    "releasing": AnimeStatus.ONGOING,
    "currently airing": AnimeStatus.ONGOING,
    "airing": AnimeStatus.ONGOING,
    "completed": AnimeStatus.COMPLETED,
    "complete": AnimeStatus.COMPLETED,
    "finished": AnimeStatus.COMPLETED,
    "finished airing": AnimeStatus.COMPLETED,
    "upcoming": AnimeStatus.UPCOMING,
    "not_yet_released": AnimeStatus.UPCOMING,
    "not yet aired": AnimeStatus.UPCOMING,
    "not yet released": AnimeStatus.UPCOMING,
}


def normalize_status(value: Any) -> AnimeStatus:
    if isinstance(value, AnimeStatus):
        return value
    if not value:
        return AnimeStatus.UNKNOWN
    return _STATUS_ALIASES.get(str(value).strip().lower(), AnimeStatus.UNKNOWN)


def normalize_rating(value: Any, scale: float) -> float:
    """Rescale a score given on ``0..scale`` to ``0..5``, two decimals."""
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    if score <= 0 or scale <= 0:
        return 0.0
    return round(min(score, scale) * RATING_SCALE / scale, 2)


def _int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _episode_number(value: Any) -> int:
    """Whole episode numbers only; recaps listed as ``12.5`` give 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not number.is_integer():
        return 0
    return int(number)


def _names(values: Optional[Iterable[Any]]) -> list[str]:
    names = []
    for item in values or []:
        if isinstance(item, dict):
            item = item.get("name")
        if item and str(item).strip():
            names.append(str(item).strip())
    return names


def normalize_anime(
    source: str,
    id: Any,
    title: Any,
    *,
    image: Any = None,
    banner: Any = None,
    description: Any = None,
    genres: Optional[Iterable[Any]] = None,
    status: Any = None,
    episode_count: Any = None,
    duration: Any = None,
    release_date: Any = None,
    rating: Any = None,
    rating_scale: float = RATING_SCALE,
    studios: Optional[Iterable[Any]] = None,
    trailer: Any = None,
) -> AnimeRecord:
    image = str(image or "")
    return AnimeRecord(
        id=str(id),
        title=str(title or "").strip() or "Unknown Title",
        image=image,
        banner=str(banner or image),
        description=str(description or "").strip(),
        genres=_names(genres),
        status=normalize_status(status),
        episode_count=_int(episode_count),
        duration=str(duration).strip() if duration else "Unknown",
        release_date=str(release_date).strip() if release_date else "Unknown",
        rating=normalize_rating(rating, rating_scale),
        studios=_names(studios),
        trailer=str(trailer) if trailer else None,
        source=source,
    )


def normalize_episode(anime_id: Any, number: Any, **fields: Any) -> Optional[EpisodeRecord]:
    """Build an episode, or ``None`` when the number is not a positive whole number."""
    number = _episode_number(number)
    if number < 1:
        return None
    return EpisodeRecord(
        id=str(fields.get("id") or f"{anime_id}-episode-{number}"),
        anime_id=str(anime_id),
        number=number,
        title=str(fields.get("title") or ""),
        thumbnail=str(fields.get("thumbnail") or ""),
        release_date=str(fields.get("release_date") or ""),
        url=str(fields.get("url") or ""),
        anime_title=str(fields.get("anime_title") or ""),
    )
