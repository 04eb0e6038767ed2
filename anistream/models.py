from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class AnimeStatus(str, Enum):
    ONGOING = "Ongoing"
    COMPLETED = "Completed"
    UPCOMING = "Upcoming"
    UNKNOWN = "Unknown"


class ResolutionStatus(str, Enum):
    OK = "ok"
    ANIME_NOT_FOUND = "anime_not_found"
    EPISODE_NOT_FOUND = "episode_not_found"
    STREAM_UNAVAILABLE = "stream_unavailable"
    UPSTREAM_ERROR = "upstream_error"


@dataclass(slots=True)
class SearchResult:
    id: str
    title: str
    image: str = ""
    source: str = ""
    release_date: str = ""
    status: str = ""
    episode_count: int = 0


@dataclass(slots=True)
class StreamVariant:
    quality: str
    url: str
    is_m3u8: bool = False
    size: str = ""
    audio: str = ""


def quality_value(label: str) -> int:
    digits = re.sub(r"[^0-9]", "", label or "")
    return int(digits) if digits else -1


@dataclass(slots=True)
class StreamResolution:
    sources: List[StreamVariant] = field(default_factory=list)
    headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.sources.sort(key=lambda s: quality_value(s.quality), reverse=True)

    @property
    def best(self) -> Optional[StreamVariant]:
        return self.sources[0] if self.sources else None


@dataclass(slots=True)
class EpisodeRecord:
    id: str
    anime_id: str
    number: int
    title: str = ""
    thumbnail: str = ""
    release_date: str = ""
    url: str = ""
    anime_title: str = ""
    stream: Optional[StreamResolution] = None

    def __post_init__(self) -> None:
        if not self.title:
            self.title = f"Episode {self.number}"


@dataclass(slots=True)
class AnimeRecord:
    id: str
    title: str
    image: str = ""
    banner: str = ""
    description: str = ""
    genres: List[str] = field(default_factory=list)
    status: AnimeStatus = AnimeStatus.UNKNOWN
    episode_count: int = 0
    duration: str = "Unknown"
    release_date: str = "Unknown"
    rating: float = 0.0
    studios: List[str] = field(default_factory=list)
    trailer: Optional[str] = None
    source: str = ""


@dataclass(slots=True)
class TorrentRecord:
    name: str
    torrent_url: str
    magnet_url: str = ""
    size: str = ""
    date: str = ""
    seeders: int = 0
    leechers: int = 0


@dataclass(slots=True)
class CompleteAnimeInfo:
    anime: AnimeRecord
    episodes: Optional[List[EpisodeRecord]] = None
    provider_id: Optional[str] = None


@dataclass(slots=True)
class Resolution:
    status: ResolutionStatus
    stream: Optional[StreamResolution] = None
    anime_id: str = ""
    episode: Optional[EpisodeRecord] = None
    source: str = ""
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.status is ResolutionStatus.OK and self.stream is not None
