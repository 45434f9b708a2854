import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv(Path(__file__).parent / ".env")

GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY", "")
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")
FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:5173")
FRONTEND_DIST_DIR = Path(os.environ.get("FRONTEND_DIST_DIR", Path(__file__).parent.parent / "dist"))

# AzuraCast station
STATION_BASE_URL = os.environ.get("STATION_BASE_URL", "https://stream.hoosierillusions.com").rstrip("/")
STATION_SHORTCODE = os.environ.get("STATION_SHORTCODE", "hoosier-illusions")
LIVE_STREAM_FILENAME = os.environ.get("LIVE_STREAM_FILENAME", "radio.mp3")
NOW_PLAYING_POLL_INTERVAL_S = float(os.environ.get("NOW_PLAYING_POLL_INTERVAL_S", "15"))

# Config blobs (one JSON file per domain)
CONFIG_BUCKET_DIR = Path(
    os.environ.get("CONFIG_BUCKET_DIR", Path(__file__).parent / "data" / "hoosier-illusions-radio-config")
)

DEFAULT_LOGO_URL = os.environ.get(
    "DEFAULT_LOGO_URL",
    "https://storage.googleapis.com/hoosierillusionsimages/OwlWhiteTransparent.png",
)
