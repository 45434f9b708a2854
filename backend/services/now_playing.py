"""Now-playing metadata: background poller and proxy cache.

The poller runs only while the session is playing the live radio stream. It
is keyed by the exact ``audio_src`` it was started for: switching streams
cancels the old task before a new one is scheduled, and any response that
arrives for a source that is no longer current is dropped.
"""

from __future__ import annotations

import asyncio
import contextlib
import copy
import logging
from typing import Any, Callable

import httpx

from config import NOW_PLAYING_POLL_INTERVAL_S
from services.azuracast import AzuraCastService
from services.errors import RemoteFetchFailed
from services.live_edge import is_live_stream
from services.media_mapping import Catalog, normalize_trigger
from services.session import NowPlaying, PlaybackSession

logger = logging.getLogger(__name__)

OFFLINE_PAYLOAD: dict[str, Any] = {
    "live": {"is_live": False, "streamer_name": "Offline"},
    "now_playing": {"song": {"title": "Stream Offline", "artist": ""}},
}


class NowPlayingCache:
    """Upstream now-playing with last-known-good fallback, for the HTTP proxy."""

    def __init__(self, station: AzuraCastService):
        self.station = station
        self.last_good: dict[str, Any] | None = None

    async def get(self) -> dict[str, Any]:
        try:
            data = await self.station.fetch_now_playing()
        except (httpx.HTTPError, ValueError) as e:
            err = RemoteFetchFailed("now playing", e)
            logger.warning("[NOWPLAYING] %s (serving %s)", err.message, "cache" if self.last_good else "offline")
            return self.last_good if self.last_good is not None else copy.deepcopy(OFFLINE_PAYLOAD)
        self.last_good = data
        return data


class NowPlayingPoller:
    def __init__(
        self,
        station: AzuraCastService,
        session: PlaybackSession,
        catalog_provider: Callable[[], Catalog],
        interval: float = NOW_PLAYING_POLL_INTERVAL_S,
    ):
        self.station = station
        self.session = session
        self.catalog_provider = catalog_provider
        self.interval = interval
        self._task: asyncio.Task | None = None
        self._origin: str | None = None

    @property
    def running_for(self) -> str | None:
        """The audio source the active task polls for, if any."""
        if self._task is None or self._task.done():
            return None
        return self._origin

    def sync(self) -> None:
        """Start, restart or stop polling to match ``session.audio_src``.

        Must be called from the event loop after every change of audio source.
        """
        src = self.session.audio_src
        if is_live_stream(src):
            if self.running_for == src:
                return
            self._cancel()
            self._origin = src
            self._task = asyncio.get_running_loop().create_task(self._run(src))
            logger.info("[POLL] Started for %s (every %.0fs)", src, self.interval)
            return

        if self._task is not None:
            logger.info("[POLL] Stopped (left live stream)")
        self._cancel()
        if self.session.now_playing is not None or self.session.album_art is not None:
            self.session.apply(now_playing=None, album_art=None)

    def _cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._origin = None

    async def shutdown(self) -> None:
        task = self._task
        self._cancel()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run(self, origin: str) -> None:
        while True:
            await self.poll_once(origin)
            await asyncio.sleep(self.interval)

    async def poll_once(self, origin: str) -> bool:
        """One fetch. Returns True if the response was applied."""
        try:
            payload = await self.station.fetch_now_playing()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("[POLL] Fetch failed, keeping last known values: %s", e)
            return False
        return self.apply_payload(payload, origin)

    def apply_payload(self, payload: dict[str, Any], origin: str) -> bool:
        if self.session.audio_src != origin:
            logger.debug("[POLL] Dropping stale response for %s", origin)
            return False

        now_playing = NowPlaying.from_payload(payload)
        patch: dict[str, Any] = {"now_playing": now_playing}
        song = now_playing.current
        if song is not None and song.art:
            patch["album_art"] = song.art
        # The idle splash stays up until the user plays something.
        if not self.session.is_initial_state and song is not None and song.title:
            patch.update(self._visual_patch(song.title))

        self.session.apply(**patch)
        return True

    def _visual_patch(self, title: str) -> dict[str, Any]:
        mapping = self.catalog_provider().get(normalize_trigger(title))
        if mapping is None:
            return {"current_mapping": None, "video_src": None, "image_src": None, "pano_src": None}
        patch = {"current_mapping": mapping, "video_src": None, "image_src": None, "pano_src": mapping.pano_url}
        if mapping.video_url:
            patch["video_src"] = mapping.video_url
        elif mapping.image_url:
            patch["image_src"] = mapping.image_url
        return patch
