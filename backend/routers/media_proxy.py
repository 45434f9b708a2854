"""Same-origin proxies for station metadata, audio bytes and cover art.

The kiosk's audio element and canvas code cannot read cross-origin station
responses directly, so these endpoints relay them with CORS-friendly headers.
"""

from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import RedirectResponse, StreamingResponse
from starlette.background import BackgroundTask

from config import DEFAULT_LOGO_URL
from services.errors import RemoteFetchFailed
from state import AppState, get_state

router = APIRouter(prefix="/api", tags=["media"])
logger = logging.getLogger(__name__)

# Upstream headers relayed to the audio element unchanged. Length is left to the
# server since the body is relayed decoded.
FORWARDED_AUDIO_HEADERS = ("content-type", "content-range")


@router.get("/nowplaying")
async def now_playing(response: Response, state: AppState = Depends(get_state)):
    """Station now-playing JSON; last good copy (or an offline stub) on failure."""
    data = await state.now_playing.get()
    response.headers["Cache-Control"] = "public, max-age=3, stale-while-revalidate=5"
    return data


@router.get("/proxy-audio")
async def proxy_audio(request: Request, url: str | None = None, state: AppState = Depends(get_state)):
    """Stream audio bytes from the station, forwarding Range for seeking."""
    if not url:
        raise HTTPException(status_code=400, detail="Missing url parameter")

    upstream_headers = {}
    if "range" in request.headers:
        upstream_headers["Range"] = request.headers["range"]

    client = state.http_client(timeout=None)
    try:
        upstream = await client.send(client.build_request("GET", url, headers=upstream_headers), stream=True)
    except httpx.HTTPError as e:
        await client.aclose()
        logger.error("[PROXY] %s", RemoteFetchFailed("audio", e).message)
        raise HTTPException(status_code=500, detail="Failed to proxy audio")

    if upstream.status_code not in (200, 206):
        logger.error("[PROXY] Upstream returned HTTP %d for %s", upstream.status_code, url)
        await upstream.aclose()
        await client.aclose()
        raise HTTPException(status_code=500, detail="Failed to proxy audio")

    headers = {
        "Content-Disposition": "inline",
        "Accept-Ranges": "bytes",
        "Access-Control-Allow-Origin": "*",
    }
    for name in FORWARDED_AUDIO_HEADERS:
        if name in upstream.headers:
            headers[name.title()] = upstream.headers[name]

    async def close_upstream() -> None:
        await upstream.aclose()
        await client.aclose()

    return StreamingResponse(
        upstream.aiter_bytes(),
        status_code=upstream.status_code,
        headers=headers,
        background=BackgroundTask(close_upstream),
    )


@router.get("/album-art")
async def album_art(url: str | None = None, state: AppState = Depends(get_state)):
    """Cover art bytes, cached for an hour. Redirects to the logo when the fetch fails."""
    if not url:
        raise HTTPException(status_code=400, detail="Missing url parameter")

    try:
        async with state.http_client() as client:
            resp = await client.get(url)
            resp.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning("[PROXY] %s, redirecting to logo", RemoteFetchFailed("album art", e).message)
        return RedirectResponse(DEFAULT_LOGO_URL, status_code=302)

    return Response(
        content=resp.content,
        media_type=resp.headers.get("content-type", "image/jpeg"),
        headers={"Cache-Control": "public, max-age=3600", "Access-Control-Allow-Origin": "*"},
    )


@router.get("/track-metadata")
async def track_metadata(response: Response, url: str | None = None, state: AppState = Depends(get_state)):
    """Cover art for an on-demand track, looked up by its audio URL."""
    if not url:
        raise HTTPException(status_code=400, detail="Missing url parameter")

    art = None
    for track in await state.catalog.fetch_remote_tracks() or []:
        if url == track.audio_url or (track.download_url and url.endswith(track.download_url)):
            art = track.art
            break

    response.headers["Cache-Control"] = "public, max-age=60"
    return {"albumArt": art}
