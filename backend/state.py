"""Shared application state (injected into routes)."""

from __future__ import annotations

from pathlib import Path

import httpx
from fastapi import Request

from config import (
    CONFIG_BUCKET_DIR,
    GEMINI_API_KEY,
    GEMINI_MODEL,
    NOW_PLAYING_POLL_INTERVAL_S,
    STATION_BASE_URL,
    STATION_SHORTCODE,
)
from services.azuracast import AzuraCastService
from services.catalog import CatalogService
from services.chat_assistant import ChatAssistant
from services.config_store import ConfigStore
from services.display_state import FailedMediaCache
from services.now_playing import NowPlayingCache
from services.player import PlayerController


class AppState:
    """One per app. ``transport`` lets tests fake every outbound HTTP call."""

    def __init__(
        self,
        *,
        store_root: Path = CONFIG_BUCKET_DIR,
        transport: httpx.AsyncBaseTransport | None = None,
        gemini_api_key: str = GEMINI_API_KEY,
        poll_interval: float = NOW_PLAYING_POLL_INTERVAL_S,
    ) -> None:
        self.transport = transport
        self.store = ConfigStore(store_root)
        self.station = AzuraCastService(STATION_BASE_URL, STATION_SHORTCODE, transport=transport)
        self.catalog = CatalogService(self.store, self.station)
        self.failed_media = FailedMediaCache()
        self.player = PlayerController(self.catalog, self.station, self.failed_media, poll_interval)
        self.now_playing = NowPlayingCache(self.station)
        self.chat = ChatAssistant(api_key=gemini_api_key, model=GEMINI_MODEL)

    def http_client(self, timeout: float | None = 10) -> httpx.AsyncClient:
        """Client for the byte-streaming proxies."""
        return httpx.AsyncClient(timeout=timeout, transport=self.transport, follow_redirects=True)


def get_state(request: Request) -> AppState:
    return request.app.state.kiosk
