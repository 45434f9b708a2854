"""Playlist Engine: thematic track lists with wraparound advancement.

A poster click names a theme ("Hoosier Holidays"). Tracks whose album or
playlist membership matches the theme are queued in title order; if none
match, an exact title match plays on its own.
"""

from __future__ import annotations

import logging
from typing import Any

from services.azuracast import AzuraCastService
from services.catalog import CatalogService
from services.errors import TrackNotFound
from services.live_edge import rewrite_for_live_edge
from services.media_mapping import Catalog, Track, normalize_trigger
from services.session import PlaybackSession, failure_patch

logger = logging.getLogger(__name__)


def _matches_theme(track: Track, term: str) -> bool:
    album = track.album.strip().lower()
    if album and (term in album or album in term):
        return True
    return any(term in name.lower() for name in track.playlists)


def build_playlist_from_theme(theme_title: str, all_tracks: list[Track]) -> list[Track]:
    """Album/playlist matches, else an exact title match; sorted by title (case-insensitive)."""
    term = normalize_trigger(theme_title)
    if not term:
        return []

    matches = [track for track in all_tracks if _matches_theme(track, term)]
    if not matches:
        matches = [track for track in all_tracks if track.key == term][:1]
    return sorted(matches, key=lambda track: track.title.lower())


def track_patch(track: Track, catalog: Catalog) -> dict[str, Any]:
    """Sources for one playlist track. A catalog override supplies video/image/pano."""
    override = catalog.get(track.key)
    mapping = override or track.to_mapping()
    return {
        "current_mapping": mapping,
        "audio_src": rewrite_for_live_edge(track.audio_url),
        "video_src": override.video_url if override else None,
        "image_src": (override.image_url if override else None) or track.art,
        "pano_src": override.pano_url if override else None,
    }


class PlaylistEngine:
    def __init__(self, station: AzuraCastService, catalog_service: CatalogService):
        self.station = station
        self.catalog_service = catalog_service

    async def play_theme(self, session: PlaybackSession, theme_title: str, catalog: Catalog) -> list[Track]:
        """Build a playlist for ``theme_title`` and start its first track."""
        all_tracks = await self.catalog_service.fetch_remote_tracks() or []
        playlist = build_playlist_from_theme(theme_title, all_tracks)
        if not playlist:
            err = TrackNotFound(theme_title.strip())
            logger.info("[PLAYLIST] %s", err.message)
            session.apply(**failure_patch(err.message))
            raise err

        try:
            written = self.catalog_service.upsert_tracks(playlist)
        except (OSError, ValueError) as e:
            logger.warning("[PLAYLIST] Could not persist theme tracks: %s", e)
            written = 0
        logger.info(
            "[PLAYLIST] Theme %r: %d tracks (%d catalog entries written)",
            theme_title, len(playlist), written,
        )

        session.apply(
            **track_patch(playlist[0], catalog),
            playlist=playlist,
            current_track_index=0,
            is_initial_state=False,
            error=None,
        )
        return playlist

    def advance(self, session: PlaybackSession, catalog: Catalog) -> None:
        """Media-end handler. No playlist: no-op. Otherwise next track, wrapping to 0."""
        if not session.playlist:
            return
        index = (session.current_track_index + 1) % len(session.playlist)
        track = session.playlist[index]
        session.apply(**track_patch(track, catalog), current_track_index=index)
        next_track = session.next_track
        logger.info(
            "[PLAYLIST] Now %d/%d: %r (next: %r)",
            index + 1, len(session.playlist), track.title, next_track.title if next_track else None,
        )
