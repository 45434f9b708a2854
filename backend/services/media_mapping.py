"""Trigger → media data model.

A ``MediaMapping`` is the fully-populated form of one catalog entry. Raw JSON
(admin payloads, stored blobs, defaults) goes through ``MediaMapping.from_raw``
exactly once, which is where ``showInDropdown``/``muteVideo``/``playFullscreen``
get their defaults and blank URLs become ``None``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


def normalize_trigger(text: str | None) -> str:
    return (text or "").strip().lower()


class MediaMapping(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    video_url: str | None = Field(default=None, alias="videoUrl")
    audio_url: str | None = Field(default=None, alias="audioUrl")
    pano_url: str | None = Field(default=None, alias="panoUrl")
    image_url: str | None = Field(default=None, alias="imageUrl")
    show_in_dropdown: bool = Field(default=True, alias="showInDropdown")
    mute_video: bool = Field(default=True, alias="muteVideo")
    play_fullscreen: bool = Field(default=False, alias="playFullscreen")
    title: str | None = None
    album: str | None = None
    artist: str | None = None
    deleted: bool = Field(default=False, alias="_deleted")

    @field_validator(
        "video_url", "audio_url", "pano_url", "image_url", "title", "album", "artist",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("show_in_dropdown", "mute_video", "play_fullscreen", "deleted", mode="before")
    @classmethod
    def _null_to_default(cls, value: Any, info) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    @classmethod
    def from_raw(cls, raw: dict[str, Any] | None) -> "MediaMapping":
        return cls.model_validate(raw or {})

    @classmethod
    def tombstone(cls) -> "MediaMapping":
        return cls(deleted=True)

    def to_json(self) -> dict[str, Any]:
        """Wire form (camelCase). Tombstones serialize as ``{"_deleted": true}``."""
        if self.deleted:
            return {"_deleted": True}
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"deleted"})

    @property
    def has_visual(self) -> bool:
        return bool(self.video_url or self.image_url or self.pano_url)


Catalog = dict[str, MediaMapping]


def catalog_from_json(raw: dict[str, Any] | None) -> Catalog:
    """Parse a stored/posted mappings blob. Malformed entries are skipped."""
    catalog: Catalog = {}
    if not isinstance(raw, dict):
        return catalog
    for trigger, value in raw.items():
        key = normalize_trigger(trigger)
        if not key:
            continue
        try:
            catalog[key] = MediaMapping.from_raw(value if isinstance(value, dict) else None)
        except ValidationError as e:
            logger.warning("[CATALOG] Skipping malformed mapping %r: %s", trigger, e)
    return catalog


def catalog_to_json(catalog: Catalog) -> dict[str, dict[str, Any]]:
    return {key: mapping.to_json() for key, mapping in catalog.items()}


@dataclass
class Track:
    """One entry of the station's on-demand listing."""

    title: str
    album: str = ""
    artist: str = ""
    art: str | None = None
    playlists: list[str] = field(default_factory=list)
    download_url: str = ""
    audio_url: str = ""

    @property
    def key(self) -> str:
        return normalize_trigger(self.title)

    @classmethod
    def from_ondemand(cls, entry: dict[str, Any], station_base_url: str) -> "Track | None":
        """Build from ``{media: {...}, download_url}``. Returns None for untitled entries."""
        media = entry.get("media") or {}
        title = (media.get("title") or "").strip()
        if not title:
            return None

        playlists: list[str] = []
        for playlist in media.get("playlists") or []:
            name = playlist.get("name") if isinstance(playlist, dict) else playlist
            if isinstance(name, str) and name:
                playlists.append(name)

        download_url = entry.get("download_url") or ""
        if download_url.startswith("http"):
            upstream = download_url
        else:
            upstream = f"{station_base_url}{download_url}"

        return cls(
            title=title,
            album=media.get("album") or "",
            artist=media.get("artist") or "",
            art=media.get("art") or None,
            playlists=playlists,
            download_url=download_url,
            audio_url=f"/api/proxy-audio?url={upstream}",
        )

    def to_mapping(self) -> MediaMapping:
        return MediaMapping(
            audio_url=self.audio_url,
            show_in_dropdown=True,
            mute_video=True,
            title=self.title,
            album=self.album or None,
            artist=self.artist or None,
            image_url=self.art,
        )
