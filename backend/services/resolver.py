"""Media Catalog Resolver: free-text trigger → playable media.

A trigger with a direct ``audioUrl`` resolves immediately. A mapping without
audio is looked up by title in the station's on-demand listing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from services.azuracast import AzuraCastService
from services.errors import KioskError, TrackNotFound, UnknownTrigger
from services.live_edge import rewrite_for_live_edge
from services.media_mapping import Catalog, MediaMapping, normalize_trigger
from services.session import PlaybackSession, failure_patch

logger = logging.getLogger(__name__)


@dataclass
class ResolvedMedia:
    trigger: str
    mapping: MediaMapping
    audio_src: str | None
    video_src: str | None
    image_src: str | None
    pano_src: str | None

    def to_patch(self) -> dict[str, Any]:
        """Session patch for a single-track resolution (cancels any playlist)."""
        return {
            "current_mapping": self.mapping,
            "audio_src": self.audio_src,
            "video_src": self.video_src,
            "image_src": self.image_src,
            "pano_src": self.pano_src,
            "playlist": [],
            "current_track_index": 0,
            "is_initial_state": False,
            "error": None,
        }


class MediaResolver:
    def __init__(self, station: AzuraCastService):
        self.station = station

    async def resolve_trigger(self, trigger: str, catalog: Catalog) -> ResolvedMedia:
        """Resolve without touching any session. Raises UnknownTrigger / TrackNotFound."""
        key = normalize_trigger(trigger)
        mapping = catalog.get(key)
        if mapping is None:
            raise UnknownTrigger(key)

        audio_url = mapping.audio_url
        image_url = mapping.image_url
        if not audio_url:
            track_name = mapping.title or key
            try:
                track = await self.station.find_track(track_name)
            except (httpx.HTTPError, ValueError) as e:
                logger.warning("[RESOLVE] On-demand lookup for %r failed: %s", track_name, e)
                track = None
            if track is None:
                raise TrackNotFound(track_name)
            audio_url = track.audio_url
            image_url = image_url or track.art

        return ResolvedMedia(
            trigger=key,
            mapping=mapping,
            audio_src=rewrite_for_live_edge(audio_url),
            video_src=mapping.video_url,
            image_src=image_url,
            pano_src=mapping.pano_url,
        )

    async def resolve(self, session: PlaybackSession, trigger: str, catalog: Catalog) -> ResolvedMedia:
        """Resolve and apply the outcome to ``session`` as one patch.

        On failure the session is cleared with the error message and the
        KioskError is re-raised for the caller to surface.
        """
        try:
            resolved = await self.resolve_trigger(trigger, catalog)
        except KioskError as e:
            logger.info("[RESOLVE] %s", e.message)
            session.apply(**failure_patch(e.message))
            raise

        session.apply(**resolved.to_patch())
        logger.info("[RESOLVE] %r → audio=%s video=%s", resolved.trigger, resolved.audio_src, resolved.video_src)
        return resolved
