"""In-memory sources standing in for the real scrapers in orchestration tests."""
from anistream.models import AnimeRecord, EpisodeRecord, SearchResult, StreamResolution, StreamVariant
from anistream.scraper import BaseScraper


class FakeSource(BaseScraper):
    def __init__(self, name, results=None, episodes=None, infos=None, qualities=("720p",), playable=True, search_error=None):
        super().__init__()
        self.name = name
        self.results = results or {}
        self.episodes = episodes or {}
        self.infos = infos or {}
        self.qualities = list(qualities)
        self.playable = playable
        self.search_error = search_error
        self.calls = []

    @property
    def searches(self):
        return [arg for op, arg in self.calls if op == "search"]

    def fetch_search(self, query):
        self.calls.append(("search", query))
        if self.search_error is not None:
            raise self.search_error
        return [
            SearchResult(id=anime_id, title=anime_id.replace("-", " ").title(), source=self.name)
            for anime_id in self.results.get(query, [])
        ]

    def get_info(self, anime_id):
        self.calls.append(("info", anime_id))
        return self.infos.get(anime_id)

    def list_episodes(self, anime_id):
        self.calls.append(("episodes", anime_id))
        return [
            EpisodeRecord(id=f"{anime_id}-{n}", anime_id=anime_id, number=n)
            for n in self.episodes.get(anime_id, [])
        ]

    def resolve_stream(self, episode):
        self.calls.append(("stream", episode.id))
        if not self.playable:
            return None
        return StreamResolution(
            sources=[
                StreamVariant(quality=q, url=f"https://cdn.test/{episode.id}/{q}.m3u8", is_m3u8=True)
                for q in self.qualities
            ],
            headers={"Referer": "https://cdn.test/"},
        )


class FakeMetadata(FakeSource):
    def __init__(self, name="anilist", trending=None, ongoing=None, schedule=None, **kwargs):
        super().__init__(name, **kwargs)
        self._trending = trending or []
        self._ongoing = ongoing or []
        self.schedule = schedule or []
        self.schedule_requests = []

    def trending(self, limit=10):
        return self._trending[:limit]

    def ongoing(self, limit=10):
        return self._ongoing[:limit]

    def airing_schedule(self, limit=20):
        self.schedule_requests.append(limit)
        return self.schedule[:limit]


def anime(anime_id, title, source="anilist"):
    return AnimeRecord(id=anime_id, title=title, source=source)


KWIK_TOKENS = ["m3u8", "owo", "abc", "05", "01", "uwu", "org", "nextcdn", "files", "11", "eu", "source"]


def kwik_page(tokens=KWIK_TOKENS, scripts_before=6, marker="Plyr"):
    filler = "".join(f"<script>var s{i} = {i};</script>" for i in range(scripts_before))
    packed = (
        "eval(function(p,a,c,k,e,d){return p}('const player = new %s(video)',62,62,'%s'.split('|'),0,{}))"
        % (marker, "|".join(tokens))
    )
    return f"<html><head>{filler}</head><body><video></video><script>{packed}</script></body></html>"
