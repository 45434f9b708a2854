"""Configuration REST endpoints.

Read/write endpoints for the admin panel and the kiosk frontend:
- Effective media catalog and the stored custom layer
- Single-mapping save with asset validation
- Theater, video-position and hotspot layout blobs

Each blob is replaced whole on POST; there is no partial update.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from services.config_store import (
    HOTSPOT_CONFIG_FILE,
    THEATER_CONFIG_FILE,
    VIDEO_POSITION_FILE,
)
from services.defaults import (
    ALBUM_POSTERS_FIRST_IMAGE,
    ALBUM_POSTERS_HOTSPOT_ID,
    ALBUM_POSTERS_LABEL,
    DEFAULT_HOTSPOT_CONFIG,
    DEFAULT_THEATER_CONFIG,
    DEFAULT_VIDEO_POSITION,
)
from services.errors import ValidationFailed
from services.media_mapping import MediaMapping, catalog_from_json, catalog_to_json
from state import AppState, get_state

router = APIRouter(prefix="/api", tags=["config"])
logger = logging.getLogger(__name__)


class SaveMappingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    trigger: str | None = None
    video_url: str | None = Field(default=None, alias="videoUrl")
    audio_url: str | None = Field(default=None, alias="audioUrl")
    pano_url: str | None = Field(default=None, alias="panoUrl")
    image_url: str | None = Field(default=None, alias="imageUrl")
    show_in_dropdown: bool | None = Field(default=None, alias="showInDropdown")
    mute_video: bool | None = Field(default=None, alias="muteVideo")
    play_fullscreen: bool | None = Field(default=None, alias="playFullscreen")

    def to_mapping(self) -> MediaMapping:
        return MediaMapping(
            video_url=self.video_url,
            audio_url=self.audio_url,
            pano_url=self.pano_url,
            image_url=self.image_url,
            show_in_dropdown=self.show_in_dropdown,
            mute_video=self.mute_video,
            play_fullscreen=self.play_fullscreen,
        )


async def _refresh_player(state: AppState) -> None:
    try:
        await state.player.refresh_catalog()
    except Exception as e:
        logger.warning("[CONFIG-API] Player catalog refresh failed: %s", e)


@router.get("/config")
async def get_config(response: Response, state: AppState = Depends(get_state)):
    """Effective catalog. Falls back to the built-in defaults if the store is unreadable."""
    try:
        catalog = await state.catalog.build()
    except (OSError, ValueError) as e:
        logger.error("[CONFIG-API] Could not build catalog, serving defaults: %s", e)
        return catalog_to_json(state.catalog.default_catalog())
    response.headers["Cache-Control"] = "public, max-age=10"
    return catalog_to_json(catalog)


@router.get("/custom-media")
async def get_custom_media(state: AppState = Depends(get_state)):
    """Stored custom layer (tombstones included) with fresh on-demand audio URLs."""
    try:
        custom = await state.catalog.custom_with_refreshed_audio()
    except (OSError, ValueError) as e:
        logger.error("[CONFIG-API] Failed to read mappings: %s", e)
        raise HTTPException(status_code=500, detail="Failed to read mappings")
    return catalog_to_json(custom)


@router.post("/custom-media")
async def save_custom_media(
    payload: dict[str, Any] = Body(...),
    state: AppState = Depends(get_state),
):
    """Replace the whole custom layer. Built-in keys left out are tombstoned."""
    try:
        saved = state.catalog.replace_custom(catalog_from_json(payload))
    except OSError as e:
        logger.error("[CONFIG-API] Failed to save mappings: %s", e)
        raise HTTPException(status_code=500, detail="Failed to save mappings")
    logger.info("[CONFIG-API] Custom media saved (%d entries)", len(saved))
    await _refresh_player(state)
    return {"success": True}


@router.post("/save-mapping")
async def save_mapping(req: SaveMappingRequest, state: AppState = Depends(get_state)):
    if not req.trigger or not req.trigger.strip():
        raise HTTPException(status_code=400, detail="Trigger word is required")

    try:
        await state.catalog.validate_assets(video_url=req.video_url, audio_url=req.audio_url)
        key = state.catalog.save_mapping(req.trigger, req.to_mapping())
    except ValidationFailed as e:
        return JSONResponse(status_code=400, content={"success": False, "error": e.message})
    except (OSError, ValueError) as e:
        logger.error("[CONFIG-API] Failed to save mapping %r: %s", req.trigger, e)
        raise HTTPException(status_code=500, detail="Failed to save mapping")

    await _refresh_player(state)
    return {"success": True, "trigger": key}


def _add_blob_routes(path: str, blob: str, label: str, default: Any) -> None:
    """GET returns the stored blob or ``default``; POST replaces it."""
    slug = blob.removesuffix(".json").replace("-", "_")

    @router.get(path, operation_id=f"get_{slug}")
    async def read_blob(state: AppState = Depends(get_state)):
        try:
            return state.store.get_or_default(blob, copy.deepcopy(default))
        except (OSError, ValueError) as e:
            logger.error("[CONFIG-API] Failed to read %s: %s", blob, e)
            raise HTTPException(status_code=500, detail=f"Failed to read {label}")

    @router.post(path, operation_id=f"save_{slug}")
    async def write_blob(payload: Any = Body(...), state: AppState = Depends(get_state)):
        try:
            state.store.put(blob, payload)
        except OSError as e:
            logger.error("[CONFIG-API] Failed to save %s: %s", blob, e)
            raise HTTPException(status_code=500, detail=f"Failed to save {label}")
        return {"success": True}


_add_blob_routes("/theater-config", THEATER_CONFIG_FILE, "theater config", DEFAULT_THEATER_CONFIG)
_add_blob_routes("/video-position", VIDEO_POSITION_FILE, "video position", DEFAULT_VIDEO_POSITION)
_add_blob_routes("/hotspot-config", HOTSPOT_CONFIG_FILE, "hotspot config", DEFAULT_HOTSPOT_CONFIG)


@router.post("/force-update-album-posters")
async def force_update_album_posters(state: AppState = Depends(get_state)):
    """Re-apply the Album Posters label and first image on the stored hotspot config."""
    try:
        config = state.store.get_or_default(HOTSPOT_CONFIG_FILE, copy.deepcopy(DEFAULT_HOTSPOT_CONFIG))
        for hotspot in config.get("hotspots", []):
            if hotspot.get("id") != ALBUM_POSTERS_HOTSPOT_ID:
                continue
            hotspot["label"] = ALBUM_POSTERS_LABEL
            contents = hotspot.get("contents") or []
            if contents:
                contents[0]["imagePlaceholder"] = ALBUM_POSTERS_FIRST_IMAGE
        state.store.put(HOTSPOT_CONFIG_FILE, config)
    except Exception as e:
        logger.error("[CONFIG-API] Album posters update failed: %s", e)
        raise HTTPException(status_code=500, detail="Failed to update Album Posters hotspot")
    return {"success": True, "message": "Album Posters hotspot updated successfully"}
