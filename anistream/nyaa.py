from __future__ import annotations

import logging
from urllib.parse import quote, urljoin

from anistream import config
from anistream.errors import ScraperError
from anistream.models import TorrentRecord
from anistream.scraper import BaseScraper

logger = logging.getLogger(__name__)


def _int(cell) -> int:
    try:
        return int(cell.get_text(strip=True)) if cell else 0
    except ValueError:
        return 0


class NyaaScraper(BaseScraper):
    """English-translated anime torrents listed on nyaa."""

    name = "nyaa"
    BASE_URL = config.NYAA_BASE_URL

    def search_torrents(self, title: str) -> list[TorrentRecord]:
        try:
            soup = self._get_soup(f"{self.BASE_URL}/?f=0&c=1_2&q={quote(title)}")
        except ScraperError as e:
            logger.warning("nyaa search for %r failed: %s", title, e)
            return []

        results = []
        for row in soup.select("table.torrent-list tbody tr"):
            cells = row.find_all("td")
            if len(cells) < 7:
                continue
            name_link = next(
                (a for a in cells[1].find_all("a") if "comments" not in (a.get("class") or [])),
                None,
            )
            links = cells[2].find_all("a")
            if name_link is None or not links:
                continue
            results.append(TorrentRecord(
                name=name_link.get_text(strip=True),
                torrent_url=urljoin(self.BASE_URL + "/", links[0].get("href", "")),
                magnet_url=links[1].get("href", "") if len(links) > 1 else "",
                size=cells[3].get_text(strip=True),
                date=cells[4].get_text(strip=True),
                seeders=_int(cells[5]),
                leechers=_int(cells[6]),
            ))
        return results
