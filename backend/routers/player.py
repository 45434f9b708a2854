"""Player control endpoints and the live state WebSocket.

Every action returns the full player state (session, render plan, UI flags).
Connected kiosks also receive that state on ``/ws/player`` after every change,
including changes made by the background now-playing poller.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from services.errors import KioskError
from state import AppState, get_state

router = APIRouter(tags=["player"])
logger = logging.getLogger(__name__)


class TriggerRequest(BaseModel):
    trigger: str


class ThemeRequest(BaseModel):
    title: str


class FullscreenPrefRequest(BaseModel):
    enabled: bool


class MediaErrorRequest(BaseModel):
    url: str


@router.get("/api/player/state")
async def get_player_state(state: AppState = Depends(get_state)):
    return state.player.state()


@router.post("/api/player/trigger")
async def play_trigger(req: TriggerRequest, state: AppState = Depends(get_state)):
    """Resolve a typed or dropdown trigger and start playback."""
    try:
        await state.player.play_trigger(req.trigger)
    except KioskError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return state.player.state()


@router.post("/api/player/theme")
async def play_theme(req: ThemeRequest, state: AppState = Depends(get_state)):
    """Poster click: queue every track of the theme and play the first."""
    try:
        await state.player.play_theme(req.title)
    except KioskError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return state.player.state()


@router.post("/api/player/ended")
async def media_ended(state: AppState = Depends(get_state)):
    await state.player.media_ended()
    return state.player.state()


@router.post("/api/player/stop")
async def stop(state: AppState = Depends(get_state)):
    await state.player.stop()
    return state.player.state()


@router.post("/api/player/expand")
async def toggle_expanded(state: AppState = Depends(get_state)):
    state.player.toggle_expanded()
    return state.player.state()


@router.post("/api/player/escape")
async def escape(state: AppState = Depends(get_state)):
    state.player.escape()
    return state.player.state()


@router.post("/api/player/fullscreen-pref")
async def set_fullscreen_pref(req: FullscreenPrefRequest, state: AppState = Depends(get_state)):
    state.player.set_fullscreen_pref(req.enabled)
    return state.player.state()


@router.post("/api/player/media-error")
async def report_media_error(req: MediaErrorRequest, state: AppState = Depends(get_state)):
    """The kiosk could not play ``url``; render cover art in its place from now on."""
    state.player.report_media_error(req.url)
    return state.player.state()


async def _send_json(ws: WebSocket, msg: dict, closed: asyncio.Event) -> None:
    """Send a JSON message to the kiosk WebSocket, unless closed."""
    if closed.is_set():
        return
    try:
        await ws.send_text(json.dumps(msg))
    except Exception as e:
        logger.info("[WS] Send failed (%s), marking closed", type(e).__name__)
        closed.set()


async def _handle_client_message(msg: dict[str, Any], state: AppState) -> None:
    msg_type = msg.get("type")
    if msg_type == "escape":
        state.player.escape()
    elif msg_type == "expand":
        state.player.toggle_expanded()
    elif msg_type == "ended":
        await state.player.media_ended()
    elif msg_type == "media_error" and msg.get("url"):
        state.player.report_media_error(msg["url"])
    else:
        logger.info("[WS] Unknown msg type=%s", msg_type)


@router.websocket("/ws/player")
async def player_ws(websocket: WebSocket):
    """Push ``{"type": "state", ...}`` on every player change; accept simple UI commands."""
    await websocket.accept()
    state: AppState = websocket.app.state.kiosk
    closed = asyncio.Event()
    updates: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
    unsubscribe = state.player.subscribe(updates.put_nowait)
    logger.info("[WS] Player client connected")

    async def push_updates() -> None:
        while not closed.is_set():
            snapshot = await updates.get()
            await _send_json(websocket, {"type": "state", **snapshot}, closed)

    push_task = asyncio.create_task(push_updates())
    try:
        await _send_json(websocket, {"type": "state", **state.player.state()}, closed)
        while True:
            raw = await websocket.receive_text()
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                logger.info("[WS] Ignoring non-JSON message")
                continue
            if isinstance(msg, dict):
                await _handle_client_message(msg, state)
    except WebSocketDisconnect:
        logger.info("[WS] Player client disconnected")
    finally:
        closed.set()
        unsubscribe()
        push_task.cancel()
