"""Live-radio stream detection and live-edge cache busting.

Browsers happily replay a cached response for a URL they have already
played. For the continuous radio stream that means reconnecting minutes
behind the broadcast, so every resolution of a live-stream URL stamps a
fresh ``t`` query parameter. Rewriting happens once per resolution, never
at render time, otherwise the ``src`` would change on every render and
restart playback.
"""

from __future__ import annotations

import time
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from config import LIVE_STREAM_FILENAME

CACHE_BUST_PARAM = "t"
VIDEO_EXTENSIONS = (".mp4", ".webm", ".mov", ".m4v")


def is_live_stream(url: str | None) -> bool:
    if not url:
        return False
    path = urlsplit(url).path
    return path.rsplit("/", 1)[-1] == LIVE_STREAM_FILENAME


def rewrite_for_live_edge(url: str | None, now: float | None = None) -> str | None:
    if not is_live_stream(url):
        return url
    stamp = int((time.time() if now is None else now) * 1000)
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != CACHE_BUST_PARAM]
    query.append((CACHE_BUST_PARAM, str(stamp)))
    return urlunsplit(parts._replace(query=urlencode(query)))


def is_loop_source(url: str | None) -> bool:
    """Live radio and video backdrops loop; on-demand tracks end and may advance."""
    if not url:
        return False
    if is_live_stream(url):
        return True
    return urlsplit(url).path.lower().endswith(VIDEO_EXTENSIONS)
