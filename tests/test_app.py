from unittest.mock import MagicMock

import pytest

from anistream.models import (
    AnimeRecord,
    AnimeStatus,
    Resolution,
    ResolutionStatus,
    StreamResolution,
    StreamVariant,
)
from anistream.web import app as default_app, create_app


@pytest.fixture
def resolver():
    return MagicMock()


@pytest.fixture
def catalog():
    return MagicMock()


@pytest.fixture
def client(resolver, catalog):
    app = create_app(resolver=resolver, catalog=catalog, torrents=MagicMock())
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


def ok_resolution():
    stream = StreamResolution(
        sources=[
            StreamVariant(quality="720p", url="https://cdn.test/720.m3u8", is_m3u8=True),
            StreamVariant(quality="1080p", url="https://cdn.test/1080.m3u8", is_m3u8=True),
        ],
        headers={"Referer": "https://kwik.cx/"},
    )
    return Resolution(status=ResolutionStatus.OK, stream=stream, anime_id="abc", source="animepahe")


def test_stream_returns_sources(client, resolver):
    resolver.resolve.return_value = ok_resolution()
    rv = client.get('/api/stream/animepahe:abc/1')

    assert rv.status_code == 200
    assert [s["quality"] for s in rv.json["sources"]] == ["1080p", "720p"]
    assert rv.json["headers"] == {"Referer": "https://kwik.cx/"}
    resolver.resolve.assert_called_once_with("animepahe:abc", 1)


def test_stream_redirects_to_best_variant(client, resolver):
    resolver.resolve.return_value = ok_resolution()
    rv = client.get('/api/stream/123/1?redirect=1')

    assert rv.status_code == 302
    assert rv.headers["Location"] == "https://cdn.test/1080.m3u8"


@pytest.mark.parametrize("episode", ["abc", "0", "-2"])
def test_stream_rejects_bad_episode(client, resolver, episode):
    rv = client.get(f'/api/stream/one-piece/{episode}')

    assert rv.status_code == 400
    assert rv.json["error"] == "Invalid episode number"
    resolver.resolve.assert_not_called()


@pytest.mark.parametrize("status,code,message", [
    (ResolutionStatus.ANIME_NOT_FOUND, 404, "Anime not found"),
    (ResolutionStatus.EPISODE_NOT_FOUND, 404, "Episode not found"),
    (ResolutionStatus.STREAM_UNAVAILABLE, 404, "Stream not available"),
    (ResolutionStatus.UPSTREAM_ERROR, 502, "Upstream sources unreachable"),
])
def test_stream_failures(client, resolver, status, code, message):
    resolver.resolve.return_value = Resolution(status=status)
    rv = client.get('/api/stream/one-piece/3')

    assert rv.status_code == code
    assert rv.json == {"error": message, "reason": status.value}


def test_search_requires_query(client):
    assert client.get('/api/search').status_code == 400


def test_anime_detail(client, catalog):
    catalog.details.return_value = AnimeRecord(id="21", title="One Piece", status=AnimeStatus.ONGOING, source="anilist")
    rv = client.get('/api/anime/21')

    assert rv.status_code == 200
    assert rv.json["title"] == "One Piece"
    assert rv.json["status"] == "Ongoing"


def test_anime_detail_missing(client, catalog):
    catalog.details.return_value = None
    assert client.get('/api/anime/nothing').status_code == 404


def test_trending_limit_is_clamped(client, catalog):
    catalog.trending.return_value = []
    rv = client.get('/api/trending?limit=500')

    assert rv.status_code == 200
    catalog.trending.assert_called_once_with(50)


def test_module_app_serves_routes():
    rules = {rule.rule for rule in default_app.url_map.iter_rules()}

    assert '/api/stream/<path:anime_id>/<episode>' in rules
    assert '/api/search' in rules
    with default_app.test_client() as client:
        assert client.get('/api/search').status_code == 400
