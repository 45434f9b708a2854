"""Kiosk chat box: trigger matching with a Gemini fallback.

Typed text that names a catalog trigger plays it. Anything else is answered
by a short Gemini completion that nudges the visitor towards the available
triggers. Without an API key, or when the call fails, a fixed reply is used.
"""

from __future__ import annotations

import logging
from typing import Any

from google import genai
from google.genai import types

from services.media_mapping import normalize_trigger

logger = logging.getLogger(__name__)

FALLBACK_REPLY = (
    "I'm here to help! Try typing one of the available shortcuts to play media, "
    "or ask me how to use this site."
)
EMPTY_COMPLETION_REPLY = "I'm here to help! Try typing a trigger word to play media."
DEFAULT_TRIGGER_HINT = "hoosier illusions, hoosier haze, deadspeak"

SYSTEM_PROMPT = """\
You are a helpful assistant for the Hoosier Illusions website. This is an \
interactive media experience where users can:
- Type trigger words to play videos and audio streams
- Available triggers include: {triggers}
- The site features a virtual theater where videos play within a theater screen
- Users can access an admin panel at /admin to manage media mappings

Keep responses brief (1-2 sentences), friendly, and focused on helping users \
navigate the site. If they ask about triggers, mention the available ones."""


def _is_tombstone(value: Any) -> bool:
    if isinstance(value, dict):
        return bool(value.get("_deleted"))
    return bool(getattr(value, "deleted", False))


def match_trigger(message: str, mappings: dict[str, Any]) -> str | None:
    key = normalize_trigger(message)
    if not key or key not in mappings or _is_tombstone(mappings[key]):
        return None
    return key


def dropdown_triggers(mappings: dict[str, Any]) -> list[str]:
    """Keys flagged for the dropdown. Accepts raw JSON dicts or MediaMapping values."""
    triggers = []
    for key, value in mappings.items():
        if _is_tombstone(value):
            continue
        if isinstance(value, dict):
            visible = value.get("showInDropdown", True) is not False
        else:
            visible = bool(getattr(value, "show_in_dropdown", True))
        if visible:
            triggers.append(key)
    return triggers


class ChatAssistant:
    def __init__(self, api_key: str, model: str = "gemini-2.5-flash"):
        self.model = model
        self.client = genai.Client(api_key=api_key) if api_key else None

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def _build_config(self, mappings: dict[str, Any] | None) -> types.GenerateContentConfig:
        triggers = ", ".join(dropdown_triggers(mappings)) if mappings else DEFAULT_TRIGGER_HINT
        return types.GenerateContentConfig(
            system_instruction=SYSTEM_PROMPT.format(triggers=triggers or DEFAULT_TRIGGER_HINT),
        )

    async def reply(self, message: str, mappings: dict[str, Any] | None = None) -> str:
        if self.client is None:
            return FALLBACK_REPLY

        logger.info("[CHAT] Calling %s: %r", self.model, message[:80])
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=message,
                config=self._build_config(mappings),
            )
        except Exception as e:
            logger.error("[CHAT] Gemini request failed: %s", e)
            return FALLBACK_REPLY

        text = (response.text or "").strip() if response is not None else ""
        return text or EMPTY_COMPLETION_REPLY
