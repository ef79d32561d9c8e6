"""Configuration: env, data paths, Spotify / GetSong credentials, playlist tuning."""
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent

# Load .env from project root so SPOTIFY_CLIENT_ID etc. are set
load_dotenv(BASE_DIR / ".env")


def _optional_float(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    try:
        return float(value)
    except ValueError:
        return None


DATA_DIR = Path(os.getenv("PACEMIX_DATA_DIR", str(BASE_DIR / "data")))

# Local tempo dataset (CSV or JSON), loaded once at startup
TEMPO_DATASET_PATH = Path(os.getenv("TEMPO_DATASET_PATH", str(DATA_DIR / "spotify_tracks.csv")))

# Spotify (OAuth via Spotipy)
SPOTIFY_CLIENT_ID = os.getenv("SPOTIFY_CLIENT_ID", "")
SPOTIFY_CLIENT_SECRET = os.getenv("SPOTIFY_CLIENT_SECRET", "")
SPOTIFY_REDIRECT_URI = os.getenv("SPOTIFY_REDIRECT_URI", "http://localhost:8501")
SPOTIFY_SCOPES = " ".join([
    "user-top-read",
    "user-read-playback-state",
    "user-modify-playback-state",
    "playlist-read-private",
    "playlist-modify-private",
])

# GetSong BPM lookup (optional)
GETSONG_API_KEY = os.getenv("GETSONG_API_KEY", "")

# Unknown-tempo policy: unset keeps such tracks out of intensity filtering,
# a number (historically 120) is assigned to them instead.
UNKNOWN_TEMPO_DEFAULT = _optional_float(os.getenv("UNKNOWN_TEMPO_DEFAULT"))

# Augmentation: curated mixes per target BPM
TEMPO_PLAYLISTS = {
    130: "0rk91AJ5eLcenUKbAlCmTP",  # 130 BPM Mix
    170: "5mn8yt78HIXg161cccC29T",  # 170 BPM Mix
    180: "3DpH0nPzLIKjxA35dRXzBp",  # 180 BPM Mix
}
AUGMENT_LIMIT = int(os.getenv("AUGMENT_LIMIT", "100"))

# How many top tracks to pull as the primary catalog
TOP_TRACKS_LIMIT = int(os.getenv("TOP_TRACKS_LIMIT", "50"))
TOP_TRACKS_TIME_RANGE = os.getenv("TOP_TRACKS_TIME_RANGE", "short_term")

# Logging
LOG_LEVEL = os.getenv("PACEMIX_LOG_LEVEL", "INFO")
LOG_FILE = Path(os.getenv("PACEMIX_LOG_FILE", str(DATA_DIR / "pacemix.log")))


def ensure_data_dir() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
