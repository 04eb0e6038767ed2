from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from anistream import config
from anistream.errors import ParseFailure, ScraperError
from anistream.models import AnimeRecord, EpisodeRecord, SearchResult
from anistream.normalize import normalize_anime, normalize_episode
from anistream.scraper import SCHEMA_ERRORS, BaseScraper

logger = logging.getLogger(__name__)

MEDIA_FIELDS = """
    id
    title { romaji english native }
    description
    coverImage { large extraLarge }
    bannerImage
    genres
    status
    episodes
    duration
    startDate { year month day }
    averageScore
    studios { nodes { name } }
    trailer { id site }
"""

MEDIA_BY_ID = "query ($id: Int) { Media(id: $id, type: ANIME) { %s } }" % MEDIA_FIELDS
MEDIA_BY_SEARCH = "query ($search: String) { Media(search: $search, type: ANIME) { %s } }" % MEDIA_FIELDS

SEARCH = """
query ($search: String, $page: Int, $perPage: Int) {
  Page(page: $page, perPage: $perPage) {
    media(search: $search, type: ANIME) { id title { romaji english } coverImage { large } }
  }
}
"""

TRENDING = """
query ($page: Int, $perPage: Int) {
  Page(page: $page, perPage: $perPage) {
    media(type: ANIME, sort: TRENDING_DESC) {
      id title { romaji english } coverImage { large } genres averageScore status episodes
    }
  }
}
"""

ONGOING = """
query ($page: Int, $perPage: Int) {
  Page(page: $page, perPage: $perPage) {
    media(type: ANIME, status: RELEASING, sort: POPULARITY_DESC) {
      id title { romaji english } coverImage { large } genres averageScore episodes
    }
  }
}
"""

AIRING_SCHEDULE = """
query ($page: Int, $perPage: Int) {
  Page(page: $page, perPage: $perPage) {
    airingSchedules(sort: TIME_DESC, notYetAired: false) {
      episode
      airingAt
      media { id title { romaji english } coverImage { large } }
    }
  }
}
"""


def _title(media: dict) -> str:
    title = media.get("title") or {}
    return title.get("english") or title.get("romaji") or ""


def _release_date(start: Optional[dict]) -> Optional[str]:
    if not start or not start.get("year"):
        return None
    return "-".join(str(start[k]) for k in ("year", "month", "day") if start.get(k))


def _trailer(trailer: Optional[dict]) -> Optional[str]:
    if trailer and trailer.get("site") == "youtube" and trailer.get("id"):
        return f"https://www.youtube.com/embed/{trailer['id']}"
    return None


class AniListClient(BaseScraper):
    """AniList GraphQL metadata source."""

    name = "anilist"
    BASE_URL = config.ANILIST_URL
    HEADERS = {
        "User-Agent": config.USER_AGENT,
        "Content-Type": "application/json",
        "Accept": "application/json",
    }

    def query(self, query: str, **variables) -> dict:
        payload = self._post_json(self.BASE_URL, json={"query": query, "variables": variables})
        if not isinstance(payload, dict) or payload.get("data") is None:
            errors = payload.get("errors") if isinstance(payload, dict) else None
            raise ParseFailure(f"anilist returned no data: {errors}")
        return payload["data"]

    def to_record(self, media: dict) -> AnimeRecord:
        cover = media.get("coverImage") or {}
        image = cover.get("extraLarge") or cover.get("large")
        duration = media.get("duration")
        return normalize_anime(
            self.name,
            media["id"],
            _title(media),
            image=image,
            banner=media.get("bannerImage") or image,
            description=media.get("description"),
            genres=media.get("genres"),
            status=media.get("status"),
            episode_count=media.get("episodes"),
            duration=f"{duration} min" if duration else None,
            release_date=_release_date(media.get("startDate")),
            rating=media.get("averageScore"),
            rating_scale=100,
            studios=(media.get("studios") or {}).get("nodes"),
            trailer=_trailer(media.get("trailer")),
        )

    def fetch_search(self, query):
        data = self.query(SEARCH, search=query, page=1, perPage=10)
        return [
            SearchResult(
                id=str(media.get("id") or ""),
                title=_title(media),
                image=(media.get("coverImage") or {}).get("large") or "",
                source=self.name,
            )
            for media in data["Page"]["media"]
        ]

    def get_info(self, anime_id: str) -> Optional[AnimeRecord]:
        """Look up by numeric AniList id, or by title otherwise."""
        try:
            if str(anime_id).isdigit():
                data = self.query(MEDIA_BY_ID, id=int(anime_id))
            else:
                data = self.query(MEDIA_BY_SEARCH, search=anime_id)
            media = data.get("Media")
            return self.to_record(media) if media else None
        except (ScraperError, *SCHEMA_ERRORS) as e:
            logger.warning("anilist info for %r failed: %s", anime_id, e)
            return None

    def _page(self, query: str, key: str, limit: int) -> list[dict]:
        try:
            return self.query(query, page=1, perPage=limit)["Page"][key] or []
        except (ScraperError, *SCHEMA_ERRORS) as e:
            logger.warning("anilist %s listing failed: %s", key, e)
            return []

    def trending(self, limit: int = 10) -> list[AnimeRecord]:
        return self._records(self._page(TRENDING, "media", limit))

    def ongoing(self, limit: int = 10) -> list[AnimeRecord]:
        return self._records(self._page(ONGOING, "media", limit))

    def _records(self, media_list) -> list[AnimeRecord]:
        records = []
        for media in media_list:
            try:
                records.append(self.to_record(media))
            except SCHEMA_ERRORS as e:
                logger.debug("skipping malformed anilist media %r: %s", media, e)
        return records

    def airing_schedule(self, limit: int = 20) -> list[EpisodeRecord]:
        """Most recently aired episodes, newest first, possibly several per anime."""
        episodes = []
        for schedule in self._page(AIRING_SCHEDULE, "airingSchedules", limit):
            media = schedule.get("media") or {}
            if not media.get("id"):
                continue
            aired = schedule.get("airingAt")
            ep = normalize_episode(
                media["id"],
                schedule.get("episode"),
                id=f"{media['id']}-ep{schedule.get('episode')}",
                thumbnail=(media.get("coverImage") or {}).get("large"),
                release_date=datetime.fromtimestamp(aired, tz=timezone.utc).isoformat() if aired else "",
                anime_title=_title(media),
            )
            if ep is not None:
                episodes.append(ep)
        return episodes
