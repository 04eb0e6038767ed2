from __future__ import annotations

import logging
from dataclasses import asdict

from flask import Flask, jsonify, redirect, request

from anistream import config
from anistream.anilist import AniListClient
from anistream.animepahe import AnimePaheScraper
from anistream.catalog import AnimeCatalog
from anistream.gogoanime import GogoAnimeScraper
from anistream.jikan import JikanClient
from anistream.models import ResolutionStatus
from anistream.nyaa import NyaaScraper
from anistream.resolver import StreamResolver

logger = logging.getLogger(__name__)

FAILURES = {
    ResolutionStatus.ANIME_NOT_FOUND: ("Anime not found", 404),
    ResolutionStatus.EPISODE_NOT_FOUND: ("Episode not found", 404),
    ResolutionStatus.STREAM_UNAVAILABLE: ("Stream not available", 404),
    ResolutionStatus.UPSTREAM_ERROR: ("Upstream sources unreachable", 502),
}


def build_services():
    gogo = GogoAnimeScraper()
    pahe = AnimePaheScraper()
    anilist = AniListClient()
    resolver = StreamResolver(primary=gogo, secondary=pahe, metadata=anilist)
    catalog = AnimeCatalog(metadata=anilist, fallback_metadata=JikanClient(), primary=gogo, secondary=pahe)
    return resolver, catalog, NyaaScraper()


def _limit(default=10, maximum=50):
    limit = request.args.get("limit", default, type=int)
    return max(1, min(limit, maximum))


def create_app(resolver=None, catalog=None, torrents=None):
    if resolver is None or catalog is None or torrents is None:
        default_resolver, default_catalog, default_torrents = build_services()
        resolver = resolver or default_resolver
        catalog = catalog or default_catalog
        torrents = torrents or default_torrents

    app = Flask(__name__)

    @app.route('/api/stream/<path:anime_id>/<episode>')
    def stream(anime_id, episode):
        try:
            number = int(episode)
        except ValueError:
            number = 0
        if number < 1:
            return jsonify({"error": "Invalid episode number"}), 400

        logger.info("stream request for %s episode %s", anime_id, number)
        resolution = resolver.resolve(anime_id, number)
        if resolution.ok:
            if request.args.get("redirect") in ("1", "true"):
                return redirect(resolution.stream.best.url)
            return jsonify(asdict(resolution.stream))

        message, status = FAILURES[resolution.status]
        return jsonify({"error": message, "reason": resolution.status.value}), status

    @app.route('/api/search')
    def search():
        query = request.args.get('q', '').strip()
        if not query:
            return jsonify({"error": "Query is required"}), 400
        results = catalog.search(query, request.args.get('source'))
        return jsonify([asdict(r) for r in results])

    @app.route('/api/anime/<path:anime_id>')
    def anime_detail(anime_id):
        anime = catalog.details(anime_id)
        if anime is None:
            return jsonify({"error": "Anime not found"}), 404
        return jsonify(asdict(anime))

    @app.route('/api/complete')
    def complete():
        title = request.args.get('title', '').strip()
        if not title:
            return jsonify({"error": "Title is required"}), 400
        info = catalog.complete_info(title)
        if info is None:
            return jsonify({"error": "Anime not found"}), 404
        return jsonify(asdict(info))

    @app.route('/api/trending')
    def trending():
        return jsonify([asdict(a) for a in catalog.trending(_limit())])

    @app.route('/api/ongoing')
    def ongoing():
        return jsonify([asdict(a) for a in catalog.ongoing(_limit())])

    @app.route('/api/latest')
    def latest():
        return jsonify([asdict(ep) for ep in catalog.latest_episodes(_limit())])

    @app.route('/api/torrents')
    def torrent_search():
        query = request.args.get('q', '').strip()
        if not query:
            return jsonify({"error": "Query is required"}), 400
        return jsonify([asdict(t) for t in torrents.search_torrents(query)])

    return app


app = create_app()


if __name__ == '__main__':
    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app.run(debug=False, host=config.HOST, port=config.PORT)
