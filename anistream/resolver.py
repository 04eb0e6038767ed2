"""Resolve ``(anime id, episode number)`` to a playable stream.

An identifier is one of:

* ``source:id`` (``animepahe:abc123``) where ``source`` names an adapter. It
  goes straight to that adapter, retrying the other adapter when the episode
  is missing there;
* a numeric AniList id, whose canonical title is looked up and then searched
  for on the primary adapter;
* anything else, taken as a slug or title and searched for verbatim.

Searches run down a ladder of increasingly loose queries. Each rung runs at
most once and either finishes the request or hands over to the next rung.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from anistream import config
from anistream.errors import ScraperError, TransientNetworkFailure
from anistream.models import EpisodeRecord, Resolution, ResolutionStatus, SearchResult
from anistream.scraper import SCHEMA_ERRORS, BaseScraper

logger = logging.getLogger(__name__)


class IdentifierKind(str, Enum):
    DIRECT = "direct"
    METADATA = "metadata"
    SEARCH = "search"


def classify_identifier(anime_id: str, sources: Iterable[str] = ()) -> tuple[IdentifierKind, str, str]:
    """Return ``(kind, source, key)``; ``source`` is empty unless prefixed.

    Only a prefix naming one of ``sources`` makes an id direct, so titles such
    as ``Re:Zero`` are searched for as they are.
    """
    anime_id = anime_id.strip()
    source, sep, key = anime_id.partition(":")
    source, key = source.strip().lower(), key.strip()
    if sep and key and source in sources:
        return IdentifierKind.DIRECT, source, key
    if anime_id.isdigit():
        return IdentifierKind.METADATA, "", anime_id
    return IdentifierKind.SEARCH, "", anime_id


@dataclass
class ResolutionContext:
    episode: int
    attempts: int = 0
    network_failures: int = 0
    anime_found: bool = False

    def search(self, adapter: BaseScraper, query: str) -> list[SearchResult]:
        self.attempts += 1
        try:
            hits = adapter.fetch_search(query)
        except TransientNetworkFailure as e:
            self.network_failures += 1
            logger.warning("%s search for %r failed: %s", adapter.name, query, e)
            return []
        except (ScraperError, *SCHEMA_ERRORS) as e:
            logger.warning("%s search for %r returned unexpected data: %s", adapter.name, query, e)
            return []
        return adapter.usable_results(hits)

    def finish(self, adapter: BaseScraper, anime_id: str, episode: EpisodeRecord) -> Resolution:
        stream = adapter.resolve_stream(episode)
        if stream is None or not stream.sources:
            logger.info("no stream for %s episode %s on %s", anime_id, episode.number, adapter.name)
            return self.result(ResolutionStatus.STREAM_UNAVAILABLE, anime_id=anime_id, episode=episode, source=adapter.name)
        episode.stream = stream
        return self.result(ResolutionStatus.OK, stream=stream, anime_id=anime_id, episode=episode, source=adapter.name)

    def exhausted(self) -> Resolution:
        if self.anime_found:
            return self.result(ResolutionStatus.EPISODE_NOT_FOUND)
        if self.attempts and self.network_failures == self.attempts:
            return self.result(ResolutionStatus.UPSTREAM_ERROR)
        return self.result(ResolutionStatus.ANIME_NOT_FOUND)

    def result(self, status: ResolutionStatus, **fields) -> Resolution:
        return Resolution(status=status, attempts=self.attempts, **fields)


class Rung:
    """One fallback step. ``attempt`` returns a final resolution or ``None`` to move on."""

    def attempt(self, ctx: ResolutionContext) -> Optional[Resolution]:
        raise NotImplementedError


class SearchRung(Rung):
    def __init__(self, adapter: BaseScraper, query: str):
        self.adapter = adapter
        self.query = query

    def __repr__(self):
        return f"<SearchRung {self.adapter.name} {self.query!r}>"

    def attempt(self, ctx):
        hits = ctx.search(self.adapter, self.query)
        if not hits:
            logger.debug("no %s results for %r", self.adapter.name, self.query)
            return None
        ctx.anime_found = True
        anime_id = hits[0].id
        episode = self.adapter.find_episode(anime_id, ctx.episode)
        if episode is None:
            logger.info("%s has no episode %s for %s", self.adapter.name, ctx.episode, anime_id)
            return None
        return ctx.finish(self.adapter, anime_id, episode)


class EpisodeRung(Rung):
    def __init__(self, adapter: BaseScraper, anime_id: str):
        self.adapter = adapter
        self.anime_id = anime_id

    def __repr__(self):
        return f"<EpisodeRung {self.adapter.name} {self.anime_id!r}>"

    def attempt(self, ctx):
        episode = self.adapter.find_episode(self.anime_id, ctx.episode)
        if episode is None:
            logger.info("%s has no episode %s for %s", self.adapter.name, ctx.episode, self.anime_id)
            return None
        return ctx.finish(self.adapter, self.anime_id, episode)


def run_ladder(rungs: Iterable[Rung], ctx: ResolutionContext) -> Resolution:
    for rung in rungs:
        resolution = rung.attempt(ctx)
        if resolution is not None:
            return resolution
    return ctx.exhausted()


class StreamResolver:
    def __init__(self, primary: BaseScraper, secondary: BaseScraper, metadata: BaseScraper, keywords: Optional[list[str]] = None):
        self.primary = primary
        self.secondary = secondary
        self.metadata = metadata
        self.keywords = list(config.SEARCH_KEYWORDS if keywords is None else keywords)
        self.adapters = {primary.name: primary, secondary.name: secondary}

    def search_ladder(self, query: str) -> list[Rung]:
        spaced = query.replace("-", " ")
        queries = [query, spaced] + [f"{spaced} {keyword}" for keyword in self.keywords]
        return [SearchRung(self.primary, q) for q in queries]

    def direct_ladder(self, source: str, anime_id: str) -> list[Rung]:
        adapter = self.adapters[source]
        others = [a for a in self.adapters.values() if a is not adapter]
        return [EpisodeRung(adapter, anime_id)] + [EpisodeRung(other, anime_id) for other in others]

    def resolve(self, anime_id: str, episode: int) -> Resolution:
        kind, source, key = classify_identifier(anime_id, self.adapters)
        ctx = ResolutionContext(episode=episode)
        logger.info("resolving %r episode %s as %s", anime_id, episode, kind.value)

        if kind is IdentifierKind.DIRECT:
            ctx.anime_found = True
            return run_ladder(self.direct_ladder(source, key), ctx)

        query = key
        if kind is IdentifierKind.METADATA:
            info = self.metadata.get_info(key)
            if info is not None:
                logger.info("%s %s is %r", self.metadata.name, key, info.title)
                query = info.title
            else:
                logger.info("%s has no entry %s, searching for the id itself", self.metadata.name, key)

        resolution = run_ladder(self.search_ladder(query), ctx)
        logger.info("%r episode %s: %s after %d searches", anime_id, episode, resolution.status.value, resolution.attempts)
        return resolution
