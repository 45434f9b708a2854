"""Chat box endpoint: play a trigger if the text names one, else ask Gemini."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from services.chat_assistant import match_trigger
from services.media_mapping import catalog_to_json
from state import AppState, get_state

router = APIRouter(prefix="/api", tags=["chat"])
logger = logging.getLogger(__name__)


class ChatRequest(BaseModel):
    message: str | None = None
    mappings: dict[str, Any] | None = None


@router.post("/chat")
async def chat(req: ChatRequest, state: AppState = Depends(get_state)):
    if not req.message or not req.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")

    mappings = req.mappings
    if mappings is None:
        mappings = catalog_to_json(await state.player.ensure_catalog())

    trigger = match_trigger(req.message, mappings)
    if trigger is not None:
        logger.info("[CHAT] Message matched trigger %r", trigger)
        return {"type": "trigger", "trigger": trigger, "mapping": mappings[trigger]}

    response = await state.chat.reply(req.message, mappings)
    return {"type": "chat", "response": response}
