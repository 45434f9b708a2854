"""AzuraCast station client.

Wraps the two public station endpoints the kiosk depends on:
  - ``/api/station/{shortcode}/ondemand``: the on-demand track listing
  - ``/api/nowplaying/{shortcode}``: current/next song metadata

No authentication required. Callers decide how failures degrade; this
client raises ``httpx.HTTPError`` on transport or status errors.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from services.media_mapping import Track, normalize_trigger

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_S = 10


class AzuraCastService:
    """Stateless client for one AzuraCast station."""

    def __init__(
        self,
        base_url: str,
        shortcode: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.shortcode = shortcode
        self._transport = transport

    @property
    def ondemand_url(self) -> str:
        return f"{self.base_url}/api/station/{self.shortcode}/ondemand"

    @property
    def now_playing_url(self) -> str:
        return f"{self.base_url}/api/nowplaying/{self.shortcode}"

    def client(self, timeout: float | None = REQUEST_TIMEOUT_S) -> httpx.AsyncClient:
        """New AsyncClient sharing this service's transport."""
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    def is_station_url(self, url: str | None) -> bool:
        return bool(url) and url.startswith(self.base_url)

    async def fetch_ondemand(self) -> list[Track]:
        """Fetch and parse the on-demand listing. Untitled entries are dropped."""
        async with self.client() as client:
            resp = await client.get(self.ondemand_url)
            resp.raise_for_status()
            data = resp.json()

        tracks = []
        for entry in data if isinstance(data, list) else []:
            track = Track.from_ondemand(entry, self.base_url) if isinstance(entry, dict) else None
            if track is not None:
                tracks.append(track)
        logger.info("[AZURACAST] On-demand listing: %d tracks", len(tracks))
        return tracks

    async def find_track(self, title: str) -> Track | None:
        """Case-insensitive exact title match against the on-demand listing."""
        wanted = normalize_trigger(title)
        for track in await self.fetch_ondemand():
            if track.key == wanted:
                return track
        logger.info("[AZURACAST] No on-demand track titled %r", title)
        return None

    async def fetch_now_playing(self) -> dict[str, Any]:
        async with self.client() as client:
            resp = await client.get(self.now_playing_url)
            resp.raise_for_status()
            data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"now playing payload is {type(data).__name__}, expected an object")
        return data
