"""Key → JSON blob persistence for kiosk configuration.

Each config domain is one whole-value blob (``mappings.json``,
``theater-config.json``, ...) stored as a file under a bucket directory.
Reads and writes always move the entire value; there is no partial update.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

MAPPINGS_FILE = "mappings.json"
THEATER_CONFIG_FILE = "theater-config.json"
VIDEO_POSITION_FILE = "video-position.json"
HOTSPOT_CONFIG_FILE = "hotspot-config.json"


class ConfigStore:
    """Directory-backed blob store."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def _path(self, name: str) -> Path:
        if "/" in name or "\\" in name or name.startswith("."):
            raise ValueError(f"Invalid blob name: {name!r}")
        return self.root / name

    def exists(self, name: str) -> bool:
        return self._path(name).exists()

    def get(self, name: str) -> Any | None:
        """Return the stored value, or None if the blob does not exist.

        A blob that exists but cannot be parsed raises ``json.JSONDecodeError``;
        callers decide whether that falls back to defaults.
        """
        path = self._path(name)
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def get_or_default(self, name: str, default: Any) -> Any:
        value = self.get(name)
        return default if value is None else value

    def put(self, name: str, value: Any) -> None:
        """Persist ``value`` verbatim, replacing the whole blob."""
        path = self._path(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(json.dumps(value, indent=2), encoding="utf-8")
        os.replace(tmp, path)
        logger.info("[STORE] Saved %s (%d bytes)", name, path.stat().st_size)
