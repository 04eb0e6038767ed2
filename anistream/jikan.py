from __future__ import annotations

import logging
from typing import Optional

from anistream import config
from anistream.errors import ScraperError
from anistream.models import AnimeRecord, SearchResult
from anistream.normalize import normalize_anime
from anistream.scraper import SCHEMA_ERRORS, BaseScraper

logger = logging.getLogger(__name__)


class JikanClient(BaseScraper):
    """MyAnimeList data through the Jikan REST API."""

    name = "jikan"
    BASE_URL = config.JIKAN_URL

    def fetch_search(self, query):
        data = self._get_json(f"{self.BASE_URL}/anime", params={"q": query, "limit": 10})
        return [
            SearchResult(
                id=str(item.get("mal_id") or ""),
                title=item.get("title") or "",
                image=((item.get("images") or {}).get("jpg") or {}).get("image_url") or "",
                source=self.name,
                status=item.get("status") or "",
                episode_count=item.get("episodes") or 0,
            )
            for item in data.get("data") or []
        ]

    def to_record(self, anime: dict) -> AnimeRecord:
        image = ((anime.get("images") or {}).get("jpg") or {}).get("large_image_url")
        aired = (anime.get("aired") or {}).get("from")
        trailer = anime.get("trailer") or {}
        return normalize_anime(
            self.name,
            anime["mal_id"],
            anime.get("title_english") or anime.get("title"),
            image=image,
            banner=image,
            description=anime.get("synopsis"),
            genres=anime.get("genres"),
            status=anime.get("status"),
            episode_count=anime.get("episodes"),
            duration=anime.get("duration"),
            release_date=aired.split("T")[0] if aired else None,
            rating=anime.get("score"),
            rating_scale=10,
            studios=anime.get("studios"),
            trailer=trailer.get("embed_url") or anime.get("trailer_url"),
        )

    def get_info(self, anime_id: str) -> Optional[AnimeRecord]:
        """Look up by MAL id when numeric, otherwise take the first title match."""
        try:
            if str(anime_id).isdigit():
                anime = self._get_json(f"{self.BASE_URL}/anime/{anime_id}").get("data")
            else:
                data = self._get_json(f"{self.BASE_URL}/anime", params={"q": anime_id, "limit": 1})
                hits = data.get("data") or []
                anime = hits[0] if hits else None
            return self.to_record(anime) if anime else None
        except (ScraperError, *SCHEMA_ERRORS) as e:
            logger.warning("jikan info for %r failed: %s", anime_id, e)
            return None
