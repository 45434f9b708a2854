"""Kiosk error taxonomy.

User-initiated actions (submit trigger, save mapping) surface these directly.
Background work (catalog listing, now-playing poll, proxies) logs them and
falls back to last-known-good or defaults-only behavior instead.
"""

from __future__ import annotations


class KioskError(Exception):
    """Base class. ``message`` is safe to show to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnknownTrigger(KioskError):
    def __init__(self, trigger: str):
        super().__init__(f'No media found for "{trigger}"')
        self.trigger = trigger


class TrackNotFound(KioskError):
    def __init__(self, track_name: str):
        super().__init__(f'Track "{track_name}" not found in the on-demand library')
        self.track_name = track_name


class RemoteFetchFailed(KioskError):
    def __init__(self, source: str, reason: object):
        super().__init__(f"Failed to fetch {source}: {reason}")
        self.source = source


class ValidationFailed(KioskError):
    pass


class MediaPlaybackFailed(KioskError):
    def __init__(self, url: str):
        super().__init__(f"Playback failed: {url}")
        self.url = url
