from __future__ import annotations

import logging
from typing import Optional

import requests
from bs4 import BeautifulSoup

from anistream import config
from anistream.errors import ParseFailure, ScraperError, TransientNetworkFailure
from anistream.models import AnimeRecord, EpisodeRecord, SearchResult, StreamResolution

logger = logging.getLogger(__name__)

# what a drifted upstream schema typically raises while we pick fields out of it
SCHEMA_ERRORS = (KeyError, IndexError, TypeError, ValueError, AttributeError)


class BaseScraper:
    """Shared HTTP plumbing and the fail-soft surface of every source adapter.

    Subclasses implement ``fetch_search`` and may raise ``ScraperError`` from
    it; ``search`` and the other public operations never raise for upstream
    trouble and return ``[]`` or ``None`` instead.
    """

    name = ""
    BASE_URL = ""
    HEADERS = {
        "User-Agent": config.USER_AGENT,
    }

    def __init__(self, session: Optional[requests.Session] = None, timeout: Optional[float] = None):
        self.session = session or requests.Session()
        self.session.headers.update(self.HEADERS)
        self.timeout = timeout if timeout is not None else config.REQUEST_TIMEOUT

    def __repr__(self):
        return f"<{type(self).__name__} {self.BASE_URL}>"

    def _request(self, method, url, **kwargs):
        kwargs.setdefault("timeout", self.timeout)
        try:
            response = getattr(self.session, method)(url, **kwargs)
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransientNetworkFailure(f"{method.upper()} {url}: {e}") from e
        return response

    def _get(self, url, **kwargs):
        return self._request("get", url, **kwargs)

    def _get_soup(self, url, **kwargs) -> BeautifulSoup:
        response = self._get(url, **kwargs)
        return BeautifulSoup(response.content, "lxml")

    def _get_json(self, url, **kwargs):
        response = self._get(url, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise ParseFailure(f"{url} did not return JSON") from e

    def _post_json(self, url, **kwargs):
        response = self._request("post", url, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise ParseFailure(f"{url} did not return JSON") from e

    def fetch_search(self, query: str) -> list[SearchResult]:
        raise NotImplementedError

    def search(self, query: str) -> list[SearchResult]:
        try:
            results = self.fetch_search(query)
        except ScraperError as e:
            logger.warning("%s search for %r failed: %s", self.name, query, e)
            return []
        except SCHEMA_ERRORS as e:
            logger.warning("%s search for %r returned unexpected data: %s", self.name, query, e)
            return []
        return self.usable_results(results)

    @staticmethod
    def usable_results(results: list[SearchResult]) -> list[SearchResult]:
        """Drop entries without an id or title, trimming both."""
        usable = []
        for result in results:
            result.id = str(result.id or "").strip()
            result.title = str(result.title or "").strip()
            if result.id and result.title:
                usable.append(result)
        return usable

    def get_info(self, anime_id: str) -> Optional[AnimeRecord]:
        return None

    def list_episodes(self, anime_id: str) -> list[EpisodeRecord]:
        return []

    def find_episode(self, anime_id: str, number: int) -> Optional[EpisodeRecord]:
        return next((ep for ep in self.list_episodes(anime_id) if ep.number == number), None)

    def resolve_stream(self, episode: EpisodeRecord) -> Optional[StreamResolution]:
        return None
