"""Test configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add repo root to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from tempo_engine.models import Track


def make_track(track_id, bpm=None, seconds=180, artist=None, title=None, **kwargs):
    """Build a Track with sensible defaults for selector tests."""
    return Track(
        id=str(track_id),
        title=title or f"Song {track_id}",
        artist=artist or f"Artist {track_id}",
        duration_seconds=seconds,
        tempo_bpm=bpm,
        **kwargs,
    )


def streaming_record(track_id, name="Song", artist="Artist", duration_ms=200_000, **extra):
    """Raw track as the Spotify Web API returns it."""
    record = {
        "id": track_id,
        "name": name,
        "artists": [{"name": artist}],
        "duration_ms": duration_ms,
        "uri": f"spotify:track:{track_id}",
        "external_urls": {"spotify": f"https://open.spotify.com/track/{track_id}"},
        "album": {
            "id": f"album-{track_id}",
            "name": "Greatest Hits",
            "images": [{"url": f"https://img.example/{track_id}.jpg"}],
        },
    }
    record.update(extra)
    return record


def static_record(track_id, title="Song", artist="Artist", bpm=150, time="3:30", **extra):
    """Raw track in the bundled static-catalog shape."""
    record = {
        "id": track_id,
        "title": title,
        "artist": artist,
        "bpm": bpm,
        "time": time,
        "albumArt": "s",
    }
    record.update(extra)
    return record


@pytest.fixture
def track_factory():
    return make_track
