"""PlaybackSession: the single mutable state shared by the playback engine.

Resolver, playlist engine and now-playing poller all write through
``PlaybackSession.apply``: one call is one atomic patch, so a media-source
write and its matching mapping/metadata write are never observed apart.
Subscribers (the WebSocket push) see one snapshot per patch.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Callable

from services.media_mapping import MediaMapping, Track

logger = logging.getLogger(__name__)

SessionListener = Callable[[dict[str, Any]], None]


@dataclass
class Song:
    title: str = ""
    artist: str = ""
    album: str = ""
    art: str | None = None

    @classmethod
    def from_payload(cls, raw: dict[str, Any] | None) -> "Song | None":
        if not isinstance(raw, dict):
            return None
        return cls(
            title=raw.get("title") or "",
            artist=raw.get("artist") or "",
            album=raw.get("album") or "",
            art=raw.get("art") or None,
        )


@dataclass
class NowPlaying:
    """Current and next song as reported by the station."""

    current: Song | None = None
    next: Song | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "NowPlaying":
        return cls(
            current=Song.from_payload((payload.get("now_playing") or {}).get("song")),
            next=Song.from_payload((payload.get("playing_next") or {}).get("song")),
        )


@dataclass
class PlaybackSession:
    current_mapping: MediaMapping | None = None
    audio_src: str | None = None
    video_src: str | None = None
    image_src: str | None = None
    pano_src: str | None = None
    playlist: list[Track] = field(default_factory=list)
    current_track_index: int = 0
    # True until the first explicit play action; background updates must not
    # replace the idle splash while it is set.
    is_initial_state: bool = True
    error: str | None = None
    now_playing: NowPlaying | None = None
    album_art: str | None = None
    version: int = 0
    _listeners: list[SessionListener] = field(default_factory=list, repr=False, compare=False)

    def apply(self, **changes: Any) -> None:
        """Apply one atomic patch and notify subscribers once."""
        unknown = set(changes) - PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown session fields: {sorted(unknown)}")
        for name, value in changes.items():
            setattr(self, name, value)
        self.version += 1

        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("[SESSION] Listener failed")

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def current_track(self) -> Track | None:
        if not self.playlist:
            return None
        return self.playlist[self.current_track_index % len(self.playlist)]

    @property
    def next_track(self) -> Track | None:
        if not self.playlist:
            return None
        return self.playlist[(self.current_track_index + 1) % len(self.playlist)]

    def snapshot(self) -> dict[str, Any]:
        next_track = self.next_track
        return {
            "version": self.version,
            "currentMapping": self.current_mapping.to_json() if self.current_mapping else None,
            "audioSrc": self.audio_src,
            "videoSrc": self.video_src,
            "imageSrc": self.image_src,
            "panoSrc": self.pano_src,
            "playlist": [track.title for track in self.playlist],
            "currentTrackIndex": self.current_track_index,
            "nextTrack": next_track.title if next_track else None,
            "isInitialState": self.is_initial_state,
            "error": self.error,
            "nowPlaying": asdict(self.now_playing) if self.now_playing else None,
            "albumArt": self.album_art,
        }


PATCHABLE_FIELDS = frozenset(
    f.name for f in fields(PlaybackSession) if f.name not in ("version", "_listeners")
)


def failure_patch(message: str) -> dict[str, Any]:
    """Patch for a failed user action: nothing playing, error shown, no mapping."""
    return {
        "current_mapping": None,
        "audio_src": None,
        "video_src": None,
        "image_src": None,
        "pano_src": None,
        "playlist": [],
        "current_track_index": 0,
        "error": message,
    }
