"""Display State Resolver.

Every render decision is derived here from the session and a small set of UI
flags; nothing about the display mode is stored. Precedence:

    initial state → idle
    pano          → panorama
    video         → fullscreen / theater video
    image or art  → fullscreen / theater image
    otherwise     → idle
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from urllib.parse import quote

from config import DEFAULT_LOGO_URL
from services.live_edge import is_loop_source
from services.session import PlaybackSession


class DisplayMode(str, Enum):
    IDLE = "idle"
    PANORAMA = "panorama"
    FULLSCREEN_VIDEO = "fullscreen_video"
    THEATER_VIDEO = "theater_video"
    FULLSCREEN_IMAGE = "fullscreen_image"
    THEATER_IMAGE = "theater_image"


MEDIA_MODES = frozenset({
    DisplayMode.FULLSCREEN_VIDEO,
    DisplayMode.THEATER_VIDEO,
    DisplayMode.FULLSCREEN_IMAGE,
    DisplayMode.THEATER_IMAGE,
})


@dataclass
class UiFlags:
    is_expanded: bool = False
    is_fullscreen_pref: bool = False


class FailedMediaCache:
    """URLs that failed to play this process; they render as cover art from then on."""

    def __init__(self) -> None:
        self._urls: set[str] = set()

    def has(self, url: str | None) -> bool:
        return bool(url) and url in self._urls

    def record(self, url: str) -> None:
        self._urls.add(url)

    def __len__(self) -> int:
        return len(self._urls)


def _wants_fullscreen(session: PlaybackSession, ui: UiFlags) -> bool:
    mapping = session.current_mapping
    return bool(mapping and mapping.play_fullscreen) or ui.is_fullscreen_pref


def compute_display_mode(session: PlaybackSession, ui: UiFlags) -> DisplayMode:
    if session.is_initial_state:
        return DisplayMode.IDLE
    if session.pano_src:
        return DisplayMode.PANORAMA

    fullscreen = _wants_fullscreen(session, ui)
    if session.video_src:
        return DisplayMode.FULLSCREEN_VIDEO if fullscreen else DisplayMode.THEATER_VIDEO
    # Anything playing has at least fallback art to show.
    if session.image_src or session.audio_src:
        return DisplayMode.FULLSCREEN_IMAGE if fullscreen else DisplayMode.THEATER_IMAGE
    return DisplayMode.IDLE


def album_art_proxy_url(art_url: str) -> str:
    return f"/api/album-art?url={quote(art_url, safe='')}"


def effective_image_src(session: PlaybackSession) -> str:
    """Explicit image, else proxied album art, else the logo.

    Evaluated at render time: album art changes underneath us whenever the
    now-playing poller sees a new song.
    """
    if session.image_src:
        return session.image_src
    if session.album_art:
        return album_art_proxy_url(session.album_art)
    return DEFAULT_LOGO_URL


@dataclass
class RenderPlan:
    mode: DisplayMode
    overlay: bool
    video_src: str | None = None
    image_src: str | None = None
    pano_src: str | None = None
    audio_src: str | None = None
    muted: bool = True
    video_loop: bool = True
    audio_loop: bool = False

    def to_json(self) -> dict:
        return {
            "mode": self.mode.value,
            "overlay": self.overlay,
            "videoSrc": self.video_src,
            "imageSrc": self.image_src,
            "panoSrc": self.pano_src,
            "audioSrc": self.audio_src,
            "muted": self.muted,
            "videoLoop": self.video_loop,
            "audioLoop": self.audio_loop,
        }


_IMAGE_FOR_VIDEO = {
    DisplayMode.FULLSCREEN_VIDEO: DisplayMode.FULLSCREEN_IMAGE,
    DisplayMode.THEATER_VIDEO: DisplayMode.THEATER_IMAGE,
}


def build_render_plan(
    session: PlaybackSession,
    ui: UiFlags,
    failed_media: FailedMediaCache | None = None,
) -> RenderPlan:
    mode = compute_display_mode(session, ui)
    if mode in _IMAGE_FOR_VIDEO and failed_media is not None and failed_media.has(session.video_src):
        mode = _IMAGE_FOR_VIDEO[mode]

    mapping = session.current_mapping
    plan = RenderPlan(
        mode=mode,
        overlay=ui.is_expanded and mode in MEDIA_MODES,
        audio_src=session.audio_src,
        muted=mapping.mute_video if mapping else True,
        audio_loop=is_loop_source(session.audio_src),
    )
    if mode is DisplayMode.PANORAMA:
        plan.pano_src = session.pano_src
    elif mode in (DisplayMode.FULLSCREEN_VIDEO, DisplayMode.THEATER_VIDEO):
        plan.video_src = session.video_src
    elif mode in (DisplayMode.FULLSCREEN_IMAGE, DisplayMode.THEATER_IMAGE):
        plan.image_src = effective_image_src(session)
    return plan
