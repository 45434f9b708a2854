"""PlayerController: owns the kiosk's PlaybackSession and wires the engine together.

User actions (typed trigger, dropdown pick, poster click, media end) come in
here; each produces one atomic session patch, after which the now-playing
poller is re-synced to the new audio source. Observers get a combined
session + render-plan state after every change.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from config import NOW_PLAYING_POLL_INTERVAL_S
from services.azuracast import AzuraCastService
from services.catalog import CatalogService
from services.display_state import FailedMediaCache, RenderPlan, UiFlags, build_render_plan
from services.errors import MediaPlaybackFailed
from services.media_mapping import Catalog, Track
from services.now_playing import NowPlayingPoller
from services.playlist import PlaylistEngine
from services.resolver import MediaResolver, ResolvedMedia
from services.session import PlaybackSession

logger = logging.getLogger(__name__)

StateListener = Callable[[dict[str, Any]], None]


class PlayerController:
    def __init__(
        self,
        catalog_service: CatalogService,
        station: AzuraCastService,
        failed_media: FailedMediaCache,
        poll_interval: float = NOW_PLAYING_POLL_INTERVAL_S,
    ):
        self.catalog_service = catalog_service
        self.failed_media = failed_media
        self.session = PlaybackSession()
        self.ui = UiFlags()
        self.catalog: Catalog = {}
        self.resolver = MediaResolver(station)
        self.playlists = PlaylistEngine(station, catalog_service)
        self.poller = NowPlayingPoller(station, self.session, lambda: self.catalog, poll_interval)

        self._catalog_loaded = False
        self._catalog_lock = asyncio.Lock()
        self._listeners: list[StateListener] = []
        self.session.subscribe(self._on_session_change)

    # -- catalog -----------------------------------------------------------

    async def ensure_catalog(self) -> Catalog:
        """First call builds the catalog; resolutions wait for it."""
        async with self._catalog_lock:
            if not self._catalog_loaded:
                await self._load_catalog()
        return self.catalog

    async def refresh_catalog(self) -> Catalog:
        async with self._catalog_lock:
            await self._load_catalog()
        return self.catalog

    async def _load_catalog(self) -> None:
        try:
            self.catalog = await self.catalog_service.build()
        except (OSError, ValueError) as e:
            logger.error("[PLAYER] Catalog load failed, using defaults only: %s", e)
            self.catalog = self.catalog_service.default_catalog()
        self._catalog_loaded = True

    # -- user actions --------------------------------------------------------

    async def play_trigger(self, trigger: str) -> ResolvedMedia:
        catalog = await self.ensure_catalog()
        try:
            return await self.resolver.resolve(self.session, trigger, catalog)
        finally:
            self.poller.sync()

    async def play_theme(self, theme_title: str) -> list[Track]:
        catalog = await self.ensure_catalog()
        try:
            return await self.playlists.play_theme(self.session, theme_title, catalog)
        finally:
            self.poller.sync()

    async def media_ended(self) -> None:
        self.playlists.advance(self.session, self.catalog)
        self.poller.sync()

    async def stop(self) -> None:
        """Back to the idle splash."""
        self.session.apply(
            current_mapping=None,
            audio_src=None,
            video_src=None,
            image_src=None,
            pano_src=None,
            playlist=[],
            current_track_index=0,
            is_initial_state=True,
            error=None,
        )
        self.poller.sync()

    def toggle_expanded(self) -> bool:
        self.ui.is_expanded = not self.ui.is_expanded
        self._notify()
        return self.ui.is_expanded

    def escape(self) -> None:
        if self.ui.is_expanded:
            self.ui.is_expanded = False
            self._notify()

    def set_fullscreen_pref(self, enabled: bool) -> None:
        self.ui.is_fullscreen_pref = enabled
        self._notify()

    def report_media_error(self, url: str) -> None:
        err = MediaPlaybackFailed(url)
        if not self.failed_media.has(url):
            logger.warning("[PLAYER] %s (falling back to cover art)", err.message)
        self.failed_media.record(url)
        self._notify()

    async def shutdown(self) -> None:
        await self.poller.shutdown()

    # -- observation ---------------------------------------------------------

    def render_plan(self) -> RenderPlan:
        return build_render_plan(self.session, self.ui, self.failed_media)

    def state(self) -> dict[str, Any]:
        return {
            "session": self.session.snapshot(),
            "display": self.render_plan().to_json(),
            "ui": {"isExpanded": self.ui.is_expanded, "isFullscreenPref": self.ui.is_fullscreen_pref},
        }

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _on_session_change(self, snapshot: dict[str, Any]) -> None:
        # A new idle cycle always starts collapsed.
        if snapshot["isInitialState"]:
            self.ui.is_expanded = False
        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        state = self.state()
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("[PLAYER] State listener failed")
