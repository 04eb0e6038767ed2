from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote

from anistream import config
from anistream.errors import ParseFailure, ScraperError
from anistream.models import AnimeRecord, EpisodeRecord, SearchResult, StreamResolution, StreamVariant
from anistream.normalize import normalize_anime, normalize_episode
from anistream.parser import convert_size, extract_kwik_playlist, page_index
from anistream.scraper import SCHEMA_ERRORS, BaseScraper

logger = logging.getLogger(__name__)


class AnimePaheScraper(BaseScraper):
    name = "animepahe"
    BASE_URL = config.ANIMEPAHE_BASE_URL
    HEADERS = {
        "User-Agent": config.USER_AGENT,
        "Referer": f"{config.ANIMEPAHE_BASE_URL}/",
    }

    @property
    def api_url(self):
        return f"{self.BASE_URL}/api"

    def fetch_search(self, query):
        data = self._get_json(f"{self.api_url}?m=search&q={quote(query)}")
        items = data.get("data") if isinstance(data, dict) else None
        if not isinstance(items, list):
            return []
        return [
            SearchResult(
                id=str(item.get("session") or ""),
                title=str(item.get("title") or ""),
                image=item.get("poster") or "",
                source=self.name,
                release_date=f"{item.get('season', '')} {item.get('year', '')}".strip(),
                status=item.get("status") or "",
                episode_count=item.get("episodes") or 0,
            )
            for item in items
            if isinstance(item, dict)
        ]

    def _release_page(self, anime_id, page=1) -> dict:
        data = self._get_json(f"{self.api_url}?m=release&id={anime_id}&sort=episode_asc&page={page}")
        if not isinstance(data, dict):
            raise ParseFailure(f"release page {page} of {anime_id} is not an object")
        return data

    def _episodes_from(self, anime_id, data) -> list[EpisodeRecord]:
        episodes = []
        for item in data.get("data") or []:
            ep = normalize_episode(
                anime_id,
                item.get("episode"),
                id=item.get("session"),
                thumbnail=item.get("snapshot"),
                release_date=item.get("created_at"),
            )
            if ep is not None:
                episodes.append(ep)
        return episodes

    def get_info(self, anime_id: str) -> Optional[AnimeRecord]:
        try:
            data = self._get_json(f"{self.api_url}?m=search&q={quote(anime_id)}")
            hits = data.get("data") or []
            if not hits:
                return None
            anime = hits[0]
            release = self._release_page(anime["session"])
            first = (release.get("data") or [{}])[0]
            return normalize_anime(
                self.name,
                anime["session"],
                anime.get("title"),
                image=anime.get("poster"),
                status=anime.get("status"),
                episode_count=anime.get("episodes"),
                duration=first.get("duration"),
                release_date=f"{anime.get('season', '')} {anime.get('year', '')}".strip(),
                rating=anime.get("score"),
                rating_scale=10,
            )
        except (ScraperError, *SCHEMA_ERRORS) as e:
            logger.warning("animepahe info for %s failed: %s", anime_id, e)
            return None

    def list_episodes(self, anime_id: str) -> list[EpisodeRecord]:
        try:
            first = self._release_page(anime_id)
            if not first.get("total"):
                return []
            episodes = self._episodes_from(anime_id, first)
            for page in range(2, int(first.get("last_page") or 1) + 1):
                episodes.extend(self._episodes_from(anime_id, self._release_page(anime_id, page)))
        except (ScraperError, *SCHEMA_ERRORS) as e:
            logger.warning("animepahe episodes for %s failed: %s", anime_id, e)
            return []
        episodes.sort(key=lambda ep: ep.number)
        return episodes

    def find_episode(self, anime_id: str, number: int) -> Optional[EpisodeRecord]:
        try:
            first = self._release_page(anime_id)
            total = int(first.get("total") or 0)
            pages = int(first.get("last_page") or 1)
            if not total:
                return None
            page = page_index(number, pages, total) if number <= total else pages
            data = first if page == 1 else self._release_page(anime_id, page)
            for ep in self._episodes_from(anime_id, data):
                if ep.number == number:
                    return ep
        except (ScraperError, *SCHEMA_ERRORS) as e:
            logger.warning("animepahe episode %s of %s failed: %s", number, anime_id, e)
            return None
        if pages == 1:
            return None
        logger.debug("episode %s of %s not on page %s, scanning all pages", number, anime_id, page)
        return super().find_episode(anime_id, number)

    def resolve_stream(self, episode: EpisodeRecord) -> Optional[StreamResolution]:
        try:
            data = self._get_json(f"{self.api_url}?m=links&id={episode.id}&p=kwik")
            files = data.get("data") if isinstance(data, dict) else None
        except ScraperError as e:
            logger.warning("animepahe links for %s failed: %s", episode.id, e)
            return None
        if not isinstance(files, list) or not files:
            return None

        variants = []
        for file in files:
            if not isinstance(file, dict) or not file:
                continue
            quality = next(iter(file))
            details = file[quality]
            if not isinstance(details, dict) or not details.get("kwik"):
                continue
            try:
                page = self._get(details["kwik"])
            except ScraperError as e:
                logger.warning("kwik page for %s %s failed: %s", episode.id, quality, e)
                continue
            url = extract_kwik_playlist(page.text)
            if not url:
                continue
            size = details.get("filesize")
            variants.append(StreamVariant(
                quality=quality,
                url=url,
                is_m3u8=".m3u8" in url,
                size=convert_size(size) if isinstance(size, (int, float)) and size > 0 else "Unknown",
                audio="japanese" if details.get("audio") == "jpn" else "english",
            ))

        if not variants:
            return None
        return StreamResolution(sources=variants, headers={"Referer": config.KWIK_REFERER})
