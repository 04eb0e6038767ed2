from __future__ import annotations

import html
import logging
import math
import re
from typing import Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from anistream import config
from anistream.errors import MalformedToken

logger = logging.getLogger(__name__)

SIZE_NAMES = ["B", "KB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB"]


def clean_text(value: str) -> str:
    value = html.unescape(re.sub(r"<[^>]+>", " ", value or ""))
    return re.sub(r"\s+", " ", value).strip()


def slug_from_url(url: str, after: Optional[str] = None) -> str:
    """Last path segment, or the one following the ``after`` segment."""
    parts = [part for part in urlparse(url or "").path.split("/") if part]
    if after is None:
        return parts[-1] if parts else ""
    if after in parts[:-1]:
        return parts[parts.index(after) + 1]
    return ""


def as_soup(page) -> BeautifulSoup:
    if isinstance(page, Tag):
        return page
    return BeautifulSoup(page or "", "lxml")


def label_values(page, selector: str) -> dict[str, str]:
    """Collect ``Label: value`` pairs from profile-style markup.

    Each element matched by ``selector`` is a label. Its value is the text that
    follows the label inside the same element, or the next sibling element's
    text when the label element holds nothing else.
    """
    soup = as_soup(page)
    pairs: dict[str, str] = {}
    for el in soup.select(selector):
        label_el = el.find("span")
        if label_el is not None:
            label = label_el.get_text(" ", strip=True)
            value = clean_text(el.get_text(" ", strip=True)[len(label):])
        else:
            label = el.get_text(" ", strip=True)
            value = ""
        if not value:
            sibling = el.find_next_sibling()
            value = sibling.get_text(" ", strip=True) if sibling is not None else ""
        key = label.strip().rstrip(":").strip().lower()
        if key and key not in pairs:
            pairs[key] = clean_text(value).lstrip(":").strip()
    return pairs


def nth_script(page, index: int) -> Optional[str]:
    scripts = as_soup(page).find_all("script")
    if index < 0 or index >= len(scripts):
        return None
    script = scripts[index]
    return script.string or script.get_text()


def split_tokens(payload: str, marker: str, terminator: str = ".split", sep: str = "|") -> list[str]:
    """Return the ``sep``-delimited tokens between ``marker`` and ``terminator``."""
    if not payload or marker not in payload:
        raise MalformedToken(f"marker {marker!r} not found")
    body = payload.split(marker, 1)[1].split(terminator, 1)[0]
    return body.split(sep)


def token_from_end(tokens: list[str], offset: int) -> str:
    if offset < 1 or offset > len(tokens):
        raise MalformedToken(f"token -{offset} out of range for {len(tokens)} tokens")
    return tokens[-offset]


def convert_size(size_bytes: float) -> str:
    if size_bytes < 0:
        raise ValueError("size must not be negative")
    if size_bytes == 0:
        return "0B"
    # i == floor(log_1024(size_bytes))
    i = 0
    while i < len(SIZE_NAMES) - 1 and size_bytes >= 1024 ** (i + 1):
        i += 1
    s = math.floor(size_bytes / 1024 ** i * 100 + 0.5) / 100
    return f"{s:g} {SIZE_NAMES[i]}"


def page_index(episode: int, pages: int, total_episodes: int) -> int:
    """Page of a paginated listing that holds ``episode``."""
    if pages < 1 or total_episodes < 1:
        return 1
    page = (episode * pages + total_episodes - 1) // total_episodes
    return max(1, min(page, pages))


def kwik_playlist_from_tokens(tokens: list[str]) -> str:
    if len(tokens) < 10:
        raise MalformedToken(f"expected at least 10 tokens, got {len(tokens)}")

    def t(offset):
        return token_from_end(tokens, offset)

    return (
        f"https://{t(2)}-{t(3)}.{t(4)}.{t(5)}.{t(6)}"
        f"/hls/{t(8)}/{t(9)}/{t(10)}/owo.m3u8"
    )


def extract_kwik_playlist(page) -> Optional[str]:
    """Rebuild the HLS playlist URL hidden in a kwik delivery page.

    The page packs the URL pieces into a pipe-delimited token list inside one
    inline script, after the player name. The layout is unversioned; any
    mismatch yields ``None``.
    """
    try:
        script = nth_script(page, config.KWIK_SCRIPT_INDEX)
        if not script:
            raise MalformedToken(f"script #{config.KWIK_SCRIPT_INDEX} missing")
        tokens = split_tokens(script, config.KWIK_MARKER)
        return kwik_playlist_from_tokens(tokens)
    except MalformedToken as e:
        logger.warning("Could not decode kwik page: %s", e)
        return None
