"""Shared test fixtures and configuration."""

import os
import sys
from pathlib import Path

import httpx
import pytest

# Add backend dir to path so imports work
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load .env for test runs
from dotenv import load_dotenv
load_dotenv(Path(__file__).parent.parent / ".env")

from config import STATION_BASE_URL, STATION_SHORTCODE


def has_api_key(key_name: str) -> bool:
    val = os.environ.get(key_name, "")
    return val != "" and val != "REPLACE_ME"


# Marker for skipping tests when the Gemini key isn't configured
requires_gemini = pytest.mark.skipif(
    not has_api_key("GEMINI_API_KEY"),
    reason="GEMINI_API_KEY not set",
)


ONDEMAND_URL = f"{STATION_BASE_URL}/api/station/{STATION_SHORTCODE}/ondemand"
NOW_PLAYING_URL = f"{STATION_BASE_URL}/api/nowplaying/{STATION_SHORTCODE}"
LIVE_RADIO_URL = f"{STATION_BASE_URL}/listen/{STATION_SHORTCODE}/radio.mp3"


def ondemand_entry(title, album="", playlists=(), art=None, track_id=1):
    """One entry shaped like the station's on-demand listing."""
    return {
        "download_url": f"/api/station/{STATION_SHORTCODE}/ondemand/download/{track_id}",
        "media": {
            "title": title,
            "artist": "Hoosier Illusions",
            "album": album,
            "art": art,
            "playlists": [{"name": name} for name in playlists],
        },
    }


HOLIDAY_LISTING = [
    ondemand_entry("Silver Bells", album="Hoosier Holidays", art="https://art.example/bells.jpg", track_id=1),
    ondemand_entry("candy cane lane", playlists=["holidays-mix"], track_id=2),
    ondemand_entry("Frosty Windows", album="Hoosier Holidays", track_id=3),
    ondemand_entry("Marching Owls", album="Fauna the Musical", track_id=4),
]


def now_playing_payload(title, art=None, next_title=None):
    payload = {
        "station": {"shortcode": STATION_SHORTCODE},
        "live": {"is_live": False},
        "now_playing": {"song": {"title": title, "artist": "Hoosier Illusions", "art": art}},
    }
    if next_title:
        payload["playing_next"] = {"song": {"title": next_title, "artist": "Hoosier Illusions"}}
    return payload


class FakeStation:
    """Programmable upstream for httpx.MockTransport.

    ``routes`` maps a full URL (no query string) to a JSON body, an
    ``httpx.Response``, a handler callable, or an exception instance to
    raise. Every request is recorded in ``requests``.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url).split("?", 1)[0]
        if url not in self.routes:
            return httpx.Response(404, json={"error": "not found"})
        route = self.routes[url]
        if isinstance(route, Exception):
            raise route
        if isinstance(route, httpx.Response):
            return route
        if callable(route):
            return route(request)
        return httpx.Response(200, json=route)

    def hits(self, url):
        return [r for r in self.requests if str(r.url).split("?", 1)[0] == url]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def fake_station():
    return FakeStation({
        ONDEMAND_URL: HOLIDAY_LISTING,
        # Maps back onto the "deadspeak" default, so live polls leave its visuals alone.
        NOW_PLAYING_URL: now_playing_payload("Deadspeak", art="https://art.example/deadspeak.jpg"),
    })
