from __future__ import annotations

import dataclasses
import logging
from typing import Optional

from anistream.models import AnimeRecord, CompleteAnimeInfo, EpisodeRecord, SearchResult
from anistream.resolver import IdentifierKind, classify_identifier
from anistream.scraper import BaseScraper

logger = logging.getLogger(__name__)


class AnimeCatalog:
    """Listings and merged anime details built from several sources.

    ``metadata`` must offer AniList's ``trending``/``ongoing``/``airing_schedule``
    listings. Episodes come from ``primary``, linked to the metadata purely by
    title, so a wrong adaptation can be matched when titles collide.
    """

    def __init__(self, metadata, fallback_metadata: BaseScraper, primary: BaseScraper, secondary: BaseScraper):
        self.metadata = metadata
        self.fallback_metadata = fallback_metadata
        self.primary = primary
        self.secondary = secondary
        self.adapters = {primary.name: primary, secondary.name: secondary}

    def trending(self, limit: int = 10) -> list[AnimeRecord]:
        return self.metadata.trending(limit)[:limit]

    def ongoing(self, limit: int = 10) -> list[AnimeRecord]:
        return self.metadata.ongoing(limit)[:limit]

    def latest_episodes(self, limit: int = 10) -> list[EpisodeRecord]:
        """Newest aired episodes, one per anime, scanning at most ``2 * limit`` entries."""
        seen = set()
        latest = []
        for ep in self.metadata.airing_schedule(limit * 2)[: limit * 2]:
            if len(latest) >= limit:
                break
            if ep.anime_id in seen:
                continue
            seen.add(ep.anime_id)
            latest.append(ep)
        return latest

    def complete_info(self, title: str) -> Optional[CompleteAnimeInfo]:
        anime = self.metadata.get_info(title)
        if anime is None:
            logger.info("%s has no match for %r, trying %s", self.metadata.name, title, self.fallback_metadata.name)
            anime = self.fallback_metadata.get_info(title)
        if anime is None:
            return None

        hits = self.primary.search(anime.title)
        if not hits:
            return CompleteAnimeInfo(anime=anime)
        provider_id = hits[0].id
        return CompleteAnimeInfo(anime=anime, episodes=self.primary.list_episodes(provider_id), provider_id=provider_id)

    def search(self, query: str, source: Optional[str] = None) -> list[SearchResult]:
        adapter = self.adapters.get(source or self.secondary.name)
        if adapter is None:
            return []
        return [dataclasses.replace(hit, id=f"{adapter.name}:{hit.id}") for hit in adapter.search(query)]

    def details(self, anime_id: str) -> Optional[AnimeRecord]:
        kind, source, key = classify_identifier(anime_id, self.adapters)
        if kind is IdentifierKind.DIRECT:
            return self.adapters[source].get_info(key)

        if "-" in key:
            anime = self.primary.get_info(key)
            if anime is not None:
                return anime
        if kind is IdentifierKind.METADATA:
            anime = self.metadata.get_info(key)
            if anime is not None:
                return anime

        info = self.complete_info(key)
        if info is not None:
            return info.anime
        return self.secondary.get_info(key)
