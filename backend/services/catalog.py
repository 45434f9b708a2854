"""Media catalog: layered merge and persistence of trigger mappings.

Effective catalog, lowest to highest precedence:
    built-in defaults < persisted custom entries < on-demand listing back-fill

The on-demand layer only fills gaps (empty or placeholder audio, missing
image/title) and adds tracks nobody has mapped yet. Tombstones stored in the
custom layer remove a key no matter which layer would otherwise supply it.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from services.azuracast import AzuraCastService
from services.config_store import MAPPINGS_FILE, ConfigStore
from services.defaults import DEFAULT_MAPPINGS
from services.errors import RemoteFetchFailed, ValidationFailed
from services.live_edge import is_live_stream
from services.media_mapping import (
    Catalog,
    MediaMapping,
    Track,
    catalog_from_json,
    catalog_to_json,
    normalize_trigger,
)

logger = logging.getLogger(__name__)

# Audio URLs containing this were generated from an earlier listing and may be stale.
PLACEHOLDER_AUDIO_MARKER = "/ondemand/download/"


def backfill_from_track(mapping: MediaMapping, track: Track) -> MediaMapping:
    """Fill only what the mapping is missing; never overwrite user data."""
    updates = {}
    if not mapping.audio_url or PLACEHOLDER_AUDIO_MARKER in mapping.audio_url:
        updates["audio_url"] = track.audio_url
    if not mapping.image_url and track.art:
        updates["image_url"] = track.art
    if not mapping.title:
        updates["title"] = track.title
    return mapping.model_copy(update=updates) if updates else mapping


def merge_catalog(
    defaults: Catalog,
    custom: Catalog,
    remote_tracks: list[Track] | None,
) -> Catalog:
    """Build the effective catalog. Pure: inputs are never mutated.

    ``remote_tracks`` is None when the listing could not be fetched; the
    merge then proceeds with defaults and custom entries only.
    """
    merged = {key: mapping.model_copy() for key, mapping in defaults.items()}
    merged.update({key: mapping.model_copy() for key, mapping in custom.items()})

    tombstoned = {key for key, mapping in merged.items() if mapping.deleted}
    effective = {key: mapping for key, mapping in merged.items() if not mapping.deleted}

    for track in remote_tracks or []:
        key = track.key
        if key in tombstoned:
            continue
        if key in effective:
            effective[key] = backfill_from_track(effective[key], track)
        else:
            effective[key] = track.to_mapping()
    return effective


def tombstone_missing_defaults(payload: Catalog, defaults: Catalog) -> Catalog:
    """Mark every built-in key absent from ``payload`` as deleted."""
    result = dict(payload)
    for key in defaults:
        if key not in result:
            result[key] = MediaMapping.tombstone()
    return result


class CatalogService:
    """Reads and writes the custom mapping layer and builds the effective catalog."""

    def __init__(
        self,
        store: ConfigStore,
        station: AzuraCastService,
        defaults: dict | None = None,
    ):
        self.store = store
        self.station = station
        self.defaults = catalog_from_json(DEFAULT_MAPPINGS if defaults is None else defaults)

    def default_catalog(self) -> Catalog:
        return {key: mapping.model_copy() for key, mapping in self.defaults.items()}

    def load_custom(self) -> Catalog:
        return catalog_from_json(self.store.get(MAPPINGS_FILE))

    def _save_custom(self, custom: Catalog) -> None:
        self.store.put(MAPPINGS_FILE, catalog_to_json(custom))

    async def fetch_remote_tracks(self) -> list[Track] | None:
        try:
            return await self.station.fetch_ondemand()
        except (httpx.HTTPError, ValueError) as e:
            err = RemoteFetchFailed("on-demand listing", e)
            logger.warning("[CATALOG] %s (continuing without it)", err.message)
            return None

    async def build(self) -> Catalog:
        """Effective catalog. Store errors propagate; listing errors do not."""
        custom = self.load_custom()
        remote = await self.fetch_remote_tracks()
        catalog = merge_catalog(self.defaults, custom, remote)
        logger.info(
            "[CATALOG] Built %d mappings (%d custom, %s remote)",
            len(catalog),
            len(custom),
            "no" if remote is None else len(remote),
        )
        return catalog

    async def custom_with_refreshed_audio(self) -> Catalog:
        """Stored custom layer with every on-demand track's audio URL refreshed."""
        custom = self.load_custom()
        for track in await self.fetch_remote_tracks() or []:
            existing = custom.get(track.key)
            if existing is None:
                custom[track.key] = MediaMapping(audio_url=track.audio_url)
            elif not existing.deleted:
                custom[track.key] = existing.model_copy(update={"audio_url": track.audio_url})
        return custom

    def replace_custom(self, payload: Catalog) -> Catalog:
        """Persist a full admin catalog; omitted built-ins become tombstones."""
        to_save = tombstone_missing_defaults(payload, self.defaults)
        self._save_custom(to_save)
        removed = [key for key, mapping in to_save.items() if mapping.deleted]
        if removed:
            logger.info("[CATALOG] Tombstoned defaults: %s", ", ".join(sorted(removed)))
        return to_save

    def save_mapping(self, trigger: str, mapping: MediaMapping) -> str:
        key = normalize_trigger(trigger)
        if not key:
            raise ValidationFailed("Trigger word is required")
        custom = self.load_custom()
        custom[key] = mapping
        self._save_custom(custom)
        logger.info("[CATALOG] Saved mapping %r", key)
        return key

    def upsert_tracks(self, tracks: list[Track]) -> int:
        """Make each track individually triggerable. Returns the number of entries written."""
        custom = self.load_custom()
        changed = 0
        for track in tracks:
            existing = custom.get(track.key)
            if existing is not None and existing.deleted:
                continue
            base = existing or self.defaults.get(track.key)
            updated = backfill_from_track(base, track) if base is not None else track.to_mapping()
            if updated != existing:
                custom[track.key] = updated
                changed += 1
        if changed:
            self._save_custom(custom)
        return changed

    async def validate_assets(self, *, video_url: str | None, audio_url: str | None) -> None:
        """HEAD-check uploaded assets before a mapping is saved.

        Station URLs (live stream, on-demand downloads) and relative proxy
        URLs are not checked.
        """
        urls = []
        if video_url and video_url.startswith("http"):
            urls.append(video_url)
        if (
            audio_url
            and audio_url.startswith("http")
            and not is_live_stream(audio_url)
            and not self.station.is_station_url(audio_url)
        ):
            urls.append(audio_url)
        if not urls:
            return

        try:
            async with self.station.client() as client:
                responses = await asyncio.gather(
                    *(client.head(url, follow_redirects=True) for url in urls)
                )
        except httpx.HTTPError as e:
            raise ValidationFailed(f"Validation failed: {e}") from e

        for url, resp in zip(urls, responses):
            if not resp.is_success:
                name = url.rstrip("/").rsplit("/", 1)[-1]
                logger.info("[CATALOG] Validation failed for %s (HTTP %d)", url, resp.status_code)
                raise ValidationFailed(
                    f"File not found: {name} – upload TitleCase.mp4 and .mp3 first"
                )
