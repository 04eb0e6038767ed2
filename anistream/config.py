from __future__ import annotations

import os


def _env(name: str, default: str) -> str:
    return os.environ.get(f"ANISTREAM_{name}", default)


GOGOANIME_BASE_URL = _env("GOGOANIME_BASE_URL", "https://gogoanime.pe").rstrip("/")
ANIMEPAHE_BASE_URL = _env("ANIMEPAHE_BASE_URL", "https://animepahe.com").rstrip("/")
ANILIST_URL = _env("ANILIST_URL", "https://graphql.anilist.co")
JIKAN_URL = _env("JIKAN_URL", "https://api.jikan.moe/v4").rstrip("/")
NYAA_BASE_URL = _env("NYAA_BASE_URL", "https://nyaa.si").rstrip("/")

USER_AGENT = _env(
    "USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)
REQUEST_TIMEOUT = float(_env("REQUEST_TIMEOUT", "10"))

SEARCH_KEYWORDS = [kw.strip() for kw in _env("SEARCH_KEYWORDS", "anime,tv,season,episode").split(",") if kw.strip()]

# kwik delivery page layout, see parser.extract_kwik_playlist
KWIK_SCRIPT_INDEX = int(_env("KWIK_SCRIPT_INDEX", "6"))
KWIK_MARKER = _env("KWIK_MARKER", "Plyr")
KWIK_REFERER = _env("KWIK_REFERER", "https://kwik.cx/")

LOG_LEVEL = _env("LOG_LEVEL", "INFO")
HOST = _env("HOST", "0.0.0.0")
PORT = int(_env("PORT", "5000"))
