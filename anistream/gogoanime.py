from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote, urljoin

from anistream import config
from anistream.errors import ParseFailure, ScraperError
from anistream.models import AnimeRecord, EpisodeRecord, SearchResult, StreamResolution, StreamVariant
from anistream.normalize import normalize_anime, normalize_episode
from anistream.parser import label_values, slug_from_url
from anistream.scraper import SCHEMA_ERRORS, BaseScraper

logger = logging.getLogger(__name__)


class GogoAnimeScraper(BaseScraper):
    name = "gogoanime"
    BASE_URL = config.GOGOANIME_BASE_URL

    def fetch_search(self, query):
        soup = self._get_soup(f"{self.BASE_URL}/search.html?keyword={quote(query)}")
        results = []
        for item in soup.select("div.last_episodes ul.items li"):
            link = item.select_one("p.name a")
            if link is None:
                continue
            img = item.select_one("div.img img")
            results.append(SearchResult(
                id=slug_from_url(link.get("href"), after="category"),
                title=link.get_text(strip=True),
                image=img.get("src", "") if img else "",
                source=self.name,
            ))
        return results

    def _episode_count(self, soup) -> int:
        last = soup.select("#episode_page li a")
        if not last:
            return 0
        try:
            return int(last[-1].get_text(strip=True).split("-")[1])
        except (IndexError, ValueError):
            return 0

    def get_info(self, anime_id: str) -> Optional[AnimeRecord]:
        try:
            soup = self._get_soup(f"{self.BASE_URL}/category/{anime_id}")
            body = soup.select_one("div.anime_info_body_bg")
            if body is None:
                raise ParseFailure(f"no info block for {anime_id}")
            info = label_values(body, "p.type")
            img = body.find("img")
            title = body.find("h1")
            genres = [g.strip() for g in info.get("genre", "").split(",") if g.strip()]
            return normalize_anime(
                self.name,
                anime_id,
                title.get_text(strip=True) if title else anime_id,
                image=img.get("src") if img else "",
                description=info.get("plot summary"),
                genres=genres,
                status=info.get("status"),
                episode_count=self._episode_count(soup),
                release_date=info.get("released"),
            )
        except (ScraperError, *SCHEMA_ERRORS) as e:
            logger.warning("gogoanime info for %s failed: %s", anime_id, e)
            return None

    def list_episodes(self, anime_id: str) -> list[EpisodeRecord]:
        try:
            soup = self._get_soup(f"{self.BASE_URL}/category/{anime_id}")
        except ScraperError as e:
            logger.warning("gogoanime episodes for %s failed: %s", anime_id, e)
            return []
        episodes = []
        for number in range(1, self._episode_count(soup) + 1):
            episodes.append(normalize_episode(
                anime_id,
                number,
                id=f"{anime_id}-episode-{number}",
                url=f"{self.BASE_URL}/{anime_id}-episode-{number}",
            ))
        return episodes

    def resolve_stream(self, episode: EpisodeRecord) -> Optional[StreamResolution]:
        url = episode.url or f"{self.BASE_URL}/{episode.id}"
        try:
            soup = self._get_soup(url)
            iframe = soup.select_one("div.play-video iframe")
            if iframe is None or not iframe.get("src"):
                raise ParseFailure(f"no player iframe on {url}")
            embed_url = iframe["src"]
            if embed_url.startswith("//"):
                embed_url = "https:" + embed_url
            embed_url = urljoin(url, embed_url)

            embed = self._get_soup(embed_url, headers={"Referer": url})
            source = embed.find("source")
            video_url = source.get("src") if source else None
            if not video_url:
                video = embed.find("video")
                video_url = video.get("data-src") if video else None
            if not video_url:
                raise ParseFailure(f"no media reference on {embed_url}")
        except ScraperError as e:
            logger.warning("gogoanime stream for %s failed: %s", url, e)
            return None
        return StreamResolution(
            sources=[StreamVariant(quality="default", url=video_url, is_m3u8=".m3u8" in video_url)],
            headers={"Referer": embed_url},
        )
