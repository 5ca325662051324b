"""End-to-end tests for the cleanup pipeline against mocked backends."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from reclaimarr.config import Settings
from reclaimarr.runner import CleanupRunner
from reclaimarr.services.jellyfin import JellyfinAuthenticationError, JellyfinClient
from reclaimarr.services.radarr import RadarrClient
from reclaimarr.services.sonarr import SonarrClient

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


def _iso(days_ago: int) -> str:
    return (NOW - timedelta(days=days_ago)).strftime("%Y-%m-%dT%H:%M:%S.0000000Z")


EPISODES = [
    {"Id": "1", "Name": "S1E1", "SeriesName": "Stale Show", "DateCreated": _iso(400)},
    {"Id": "2", "Name": "S1E2", "SeriesName": "Stale Show", "DateCreated": _iso(350)},
    {
        "Id": "3",
        "Name": "S1E1",
        "SeriesName": "Loved Show",
        "DateCreated": _iso(500),
        "UserData": {"Played": True},
    },
    {"Id": "4", "Name": "S1E1", "SeriesName": "Fresh Show", "DateCreated": _iso(30)},
    {"Id": "5", "Name": "S1E1", "SeriesName": "Unknown To Sonarr", "DateCreated": _iso(600)},
]
MOVIES = [
    {"Id": "m1", "Name": "Old Movie", "DateCreated": _iso(800)},
    {"Id": "m2", "Name": "Wishlist Movie", "DateCreated": _iso(800)},
    {"Id": "m3", "Name": "Watched Movie", "DateCreated": _iso(800), "UserData": {"PlayCount": 3}},
]
SERIES = [
    {"id": 1, "title": "Stale Show", "statistics": {"episodeFileCount": 3, "sizeOnDisk": 3_000_000_000}},
    {"id": 2, "title": "Loved Show", "statistics": {"episodeFileCount": 1, "sizeOnDisk": 10}},
    {"id": 3, "title": "Stale Show", "statistics": {"episodeFileCount": 9, "sizeOnDisk": 9}},
]
RADARR_MOVIES = [
    {"id": 10, "title": "Old Movie", "hasFile": True, "sizeOnDisk": 500, "movieFile": {"id": 100}},
    {"id": 11, "title": "Wishlist Movie", "hasFile": False, "sizeOnDisk": 0},
    {"id": 12, "title": "Watched Movie", "hasFile": True, "sizeOnDisk": 5, "movieFile": {"id": 120}},
]


def jellyfin_handler(requests: list[httpx.Request], *, auth_status: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path == "/Users/authenticatebyname":
            if auth_status != 200:
                return httpx.Response(auth_status)
            return httpx.Response(200, json={"AccessToken": "t", "User": {"Id": "u"}})
        if request.url.params["IncludeItemTypes"] == "Episode":
            return httpx.Response(200, json={"Items": EPISODES})
        return httpx.Response(200, json={"Items": MOVIES})

    return handler


def arr_handler(requests: list[httpx.Request], listing: list[dict]):
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        path = request.url.path
        if path in {"/api/v3/series", "/api/v3/movie"}:
            return httpx.Response(200, json=listing)
        if path == "/api/v3/episode":
            return httpx.Response(
                200, json=[{"episodeFileId": 501}, {"episodeFileId": 502}, {"episodeFileId": 503}]
            )
        if request.method == "GET":
            return httpx.Response(200, json={"id": int(path.rsplit("/", 1)[1]), "monitored": True})
        return httpx.Response(200)

    return handler


def _settings(**overrides) -> Settings:
    base = {
        "JELLYFIN_URL": "http://jellyfin.example.com",
        "JELLYFIN_USERNAME": "admin",
        "JELLYFIN_PASSWORD": "secret",
        "AGE_THRESHOLD_DAYS": 365,
    }
    base.update(overrides)
    return Settings(_env_file=None, **base)  # type: ignore[arg-type]


def _mutations(requests: list[httpx.Request]) -> list[tuple[str, str]]:
    return [(r.method, r.url.path) for r in requests if r.method in {"DELETE", "PUT"}]


@pytest.mark.anyio("asyncio")
async def test_dry_run_reports_projected_impact_without_mutations(clean_env) -> None:
    jellyfin_requests: list[httpx.Request] = []
    sonarr_requests: list[httpx.Request] = []

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(jellyfin_handler(jellyfin_requests)),
        base_url="http://jellyfin.example.com",
    ) as jf_http, httpx.AsyncClient(
        transport=httpx.MockTransport(arr_handler(sonarr_requests, SERIES)),
        base_url="http://sonarr.example.com",
    ) as sonarr_http:
        runner = CleanupRunner(
            _settings(),
            JellyfinClient(jf_http, "admin", "secret"),
            [SonarrClient(sonarr_http, "key")],
            now=NOW,
        )
        [result] = await runner.run()

    assert result.kind == "series"
    assert result.dry_run is True
    assert result.candidate_count == 2
    assert result.matched_count == 1
    assert (result.total_files, result.total_bytes) == (3, 3_000_000_000)
    assert result.deleted_file_count == 0
    assert _mutations(sonarr_requests) == []


@pytest.mark.anyio("asyncio")
async def test_live_run_processes_series_and_movies(clean_env) -> None:
    sonarr_requests: list[httpx.Request] = []
    radarr_requests: list[httpx.Request] = []

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(jellyfin_handler([])),
        base_url="http://jellyfin.example.com",
    ) as jf_http, httpx.AsyncClient(
        transport=httpx.MockTransport(arr_handler(sonarr_requests, SERIES)),
        base_url="http://sonarr.example.com",
    ) as sonarr_http, httpx.AsyncClient(
        transport=httpx.MockTransport(arr_handler(radarr_requests, RADARR_MOVIES)),
        base_url="http://radarr.example.com",
    ) as radarr_http:
        runner = CleanupRunner(
            _settings(DRY_RUN=False),
            JellyfinClient(jf_http, "admin", "secret"),
            [SonarrClient(sonarr_http, "key"), RadarrClient(radarr_http, "key")],
            now=NOW,
        )
        series_result, movie_result = await runner.run()

    assert series_result.deleted_file_count == 3
    assert series_result.unmonitored_count == 1
    assert _mutations(sonarr_requests) == [
        ("DELETE", "/api/v3/episodefile/501"),
        ("DELETE", "/api/v3/episodefile/502"),
        ("DELETE", "/api/v3/episodefile/503"),
        ("PUT", "/api/v3/series/1"),
    ]

    assert movie_result.kind == "movie"
    assert movie_result.candidate_count == 2
    assert movie_result.matched_count == 1
    assert (movie_result.total_files, movie_result.total_bytes) == (1, 500)
    assert _mutations(radarr_requests) == [
        ("DELETE", "/api/v3/moviefile/100"),
        ("PUT", "/api/v3/movie/10"),
    ]


@pytest.mark.anyio("asyncio")
async def test_catalog_is_not_queried_without_candidates(clean_env) -> None:
    sonarr_requests: list[httpx.Request] = []

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(jellyfin_handler([])),
        base_url="http://jellyfin.example.com",
    ) as jf_http, httpx.AsyncClient(
        transport=httpx.MockTransport(arr_handler(sonarr_requests, SERIES)),
        base_url="http://sonarr.example.com",
    ) as sonarr_http:
        runner = CleanupRunner(
            _settings(AGE_THRESHOLD_DAYS=10_000),
            JellyfinClient(jf_http, "admin", "secret"),
            [SonarrClient(sonarr_http, "key")],
            now=NOW,
        )
        [result] = await runner.run()

    assert sonarr_requests == []
    assert result.candidate_count == 0
    assert result.matched_count == 0


@pytest.mark.anyio("asyncio")
async def test_authentication_failure_is_fatal(clean_env) -> None:
    sonarr_requests: list[httpx.Request] = []

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(jellyfin_handler([], auth_status=401)),
        base_url="http://jellyfin.example.com",
    ) as jf_http, httpx.AsyncClient(
        transport=httpx.MockTransport(arr_handler(sonarr_requests, SERIES)),
        base_url="http://sonarr.example.com",
    ) as sonarr_http:
        runner = CleanupRunner(
            _settings(),
            JellyfinClient(jf_http, "admin", "secret"),
            [SonarrClient(sonarr_http, "key")],
            now=NOW,
        )
        with pytest.raises(JellyfinAuthenticationError):
            await runner.run()

    assert sonarr_requests == []
