"""
Tempo (BPM) providers.

  LocalTempoDataset     static dataset on disk (CSV or JSON), loaded once
  GetSongTempoProvider  https://api.getsong.co/ lookup by title + artist
  StaticTempoTable      in-memory {(title, artist): bpm}
  ChainedTempoProvider  first provider that knows the track wins

Dataset: https://huggingface.co/datasets/maharshipandya/spotify-tracks-dataset
(~114K tracks with BPM data), or a JSON list of
{track_title, artist, bpm} records.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Iterable

import pandas as pd
import requests

from tempo_engine.models import lookup_key

logger = logging.getLogger(__name__)

GETSONG_API_BASE = "https://api.getsong.co"

# Dataset column → canonical name
_COLUMN_ALIASES = {
    "track_id": "track_id",
    "id": "track_id",
    "track_name": "title",
    "track_title": "title",
    "title": "title",
    "artists": "artist",
    "artist": "artist",
    "tempo": "tempo",
    "bpm": "tempo",
    "duration_ms": "duration_ms",
    "popularity": "popularity",
}


def normalize_lookup_key(title: str, artist: str) -> str:
    """Lowercase, trimmed ``title|artist`` key."""
    return lookup_key(title, artist)


def _clean(value) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value).strip().lower()


def _first_listed(artists) -> str:
    """The HF dataset joins multiple artists with ';'."""
    text = "" if artists is None or (isinstance(artists, float) and pd.isna(artists)) else str(artists)
    return text.split(";")[0].strip()


# ── Local dataset ───────────────────────────────────────────────────────
class LocalTempoDataset:
    """
    Read-only tempo dataset.  The file is read once in the constructor; the
    owner decides how long the instance lives (the Streamlit app caches it
    with ``st.cache_resource``).
    """

    def __init__(self, path: str | Path | None = None, frame: pd.DataFrame | None = None):
        self.path = Path(path) if path is not None else None
        if frame is None:
            frame = self._read(self.path)
        self._frame = self._prepare(frame)
        # Exact matches: first occurrence of each key wins
        exact = self._frame.drop_duplicates(subset="_key", keep="first")
        self._by_key: dict[str, float] = dict(zip(exact["_key"], exact["tempo"]))
        logger.info(f"Loaded {len(self._frame)} tracks from tempo dataset")

    @classmethod
    def from_records(cls, records: Iterable[dict]) -> "LocalTempoDataset":
        return cls(frame=pd.DataFrame(list(records)))

    @staticmethod
    def _read(path: Path | None) -> pd.DataFrame:
        if path is None or not path.exists():
            logger.warning(f"Tempo dataset not found at {path}; tempo lookups will miss")
            return pd.DataFrame()
        if path.suffix.lower() == ".json":
            return pd.read_json(path, orient="records")
        return pd.read_csv(path)

    @staticmethod
    def _prepare(frame: pd.DataFrame) -> pd.DataFrame:
        df = frame.rename(columns={c: _COLUMN_ALIASES[c] for c in frame.columns if c in _COLUMN_ALIASES})
        df = df.loc[:, ~df.columns.duplicated()].copy()
        for column, default in (("track_id", ""), ("title", ""), ("artist", ""), ("tempo", None)):
            if column not in df.columns:
                df[column] = default

        df["tempo"] = pd.to_numeric(df["tempo"], errors="coerce")
        df = df.dropna(subset=["tempo"])
        df = df[df["tempo"] > 0].copy()

        df["track_id"] = df["track_id"].map(lambda v: "" if _clean(v) == "" else str(v).strip())
        df["artist"] = df["artist"].map(_first_listed)
        df["_title"] = df["title"].map(_clean)
        df["_artist"] = df["artist"].map(_clean)
        df["_key"] = [f"{t}|{a}" for t, a in zip(df["_title"], df["_artist"])]
        return df.reset_index(drop=True)

    def __len__(self) -> int:
        return len(self._frame)

    def lookup(self, title: str, artist: str) -> float | None:
        """
        Tempo for ``(title, artist)``: exact match on the trimmed lowercase
        pair first, then a partial match where either string contains the
        other, for both title and artist.
        """
        t, a = _clean(title), _clean(artist)
        if not t or not a or self._frame.empty:
            return None

        exact = self._by_key.get(f"{t}|{a}")
        if exact is not None:
            return float(exact)

        titles = self._frame["_title"]
        title_mask = titles.str.contains(t, regex=False) | titles.map(lambda v: bool(v) and v in t)
        candidates = self._frame[title_mask]
        if candidates.empty:
            return None
        artists = candidates["_artist"]
        artist_mask = artists.str.contains(a, regex=False) | artists.map(lambda v: bool(v) and v in a)
        matched = candidates[artist_mask]
        if matched.empty:
            return None
        return float(matched.iloc[0]["tempo"])

    def search_by_tempo(
        self,
        min_bpm: float,
        max_bpm: float,
        exclude_ids: set[str] | None = None,
        limit: int = 50,
    ) -> list[dict]:
        """
        Up to ``limit`` tracks with ``min_bpm <= tempo <= max_bpm``, most
        popular first.  Rows without a track id are never returned.

        Returns raw records: id, uri, name, artist, duration_ms, bpm.
        """
        df = self._frame[self._frame["track_id"] != ""]
        df = df[(df["tempo"] >= min_bpm) & (df["tempo"] <= max_bpm)]
        if exclude_ids:
            df = df[~df["track_id"].isin(exclude_ids)]
        if df.empty:
            return []

        if "popularity" in df.columns:
            df = df.sort_values("popularity", ascending=False, kind="stable")

        results = []
        for _, row in df.head(limit).iterrows():
            duration = row.get("duration_ms")
            results.append({
                "id": row["track_id"],
                "uri": f"spotify:track:{row['track_id']}",
                "name": row["title"],
                "artist": row["artist"],
                "duration_ms": int(duration) if pd.notna(duration) else 210000,
                "bpm": float(row["tempo"]),
            })
        return results


# ── GetSong remote lookup ───────────────────────────────────────────────
class GetSongError(Exception):
    """GetSong request failed."""


class GetSongAuthError(GetSongError):
    """Missing or rejected API key."""


class GetSongRateLimitError(GetSongError):
    """HTTP 429 from GetSong."""


class GetSongTempoProvider:
    """
    Tempo lookup against the GetSong BPM API.

    The free tier allows 3000 requests/hour, so calls are spaced by
    ``request_delay`` seconds and capped at ``max_requests`` per instance.
    """

    def __init__(
        self,
        api_key: str | None = None,
        max_requests: int = 50,
        request_delay: float = 1.0,
        timeout: float = 10,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key or ""
        self.max_requests = max_requests
        self.request_delay = request_delay
        self.timeout = timeout
        self.session = session or requests.Session()
        self.requests_made = 0
        self._last_request_at: float | None = None

    def _request(self, endpoint: str, params: dict) -> dict | list:
        if not self.api_key:
            raise GetSongAuthError("GetSong API key not configured.")

        url = f"{GETSONG_API_BASE}{endpoint}"
        try:
            resp = self.session.get(
                url,
                params={"api_key": self.api_key, **params},
                headers={"X-API-KEY": self.api_key},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise GetSongError(f"Failed to fetch from GetSong API: {e}") from e

        if resp.status_code == 401:
            raise GetSongAuthError("Invalid API key.")
        if resp.status_code == 429:
            raise GetSongRateLimitError("Rate limit exceeded. Please wait before making more requests.")
        if not resp.ok:
            raise GetSongError(f"GetSong API request failed: {resp.status_code} {resp.reason}")
        return resp.json()

    def _wait_turn(self) -> None:
        if self._last_request_at is not None and self.request_delay > 0:
            elapsed = time.monotonic() - self._last_request_at
            if elapsed < self.request_delay:
                time.sleep(self.request_delay - elapsed)
        self._last_request_at = time.monotonic()
        self.requests_made += 1

    @staticmethod
    def _search_results(data) -> list:
        if isinstance(data, list):
            return data
        if not isinstance(data, dict):
            return []
        search = data.get("search")
        if isinstance(search, dict) and search.get("error"):
            return []
        if isinstance(search, list):
            return search
        for value in data.values():
            if isinstance(value, list):
                return value
        return []

    def search_song(self, title: str, artist: str) -> dict | None:
        """First search hit for ``title`` by ``artist`` (raises GetSongError)."""
        if not title or not artist:
            return None
        data = self._request("/search/", {
            "type": "both",
            "lookup": f"song:{title} artist:{artist}",
            "limit": "5",
        })
        results = self._search_results(data)
        if not results:
            return None
        first = results[0]
        if not isinstance(first, dict) or not first.get("title") or not first.get("tempo"):
            return None
        try:
            tempo = int(first["tempo"])
        except (TypeError, ValueError):
            return None
        return {
            "id": first.get("id"),
            "title": first["title"],
            "tempo": tempo,
            "artist": first.get("artist"),
            "uri": first.get("uri"),
        }

    def lookup(self, title: str, artist: str) -> float | None:
        if not title or not artist:
            return None
        if self.requests_made >= self.max_requests:
            logger.debug(f"GetSong request cap ({self.max_requests}) reached, skipping '{title}'")
            return None
        self._wait_turn()
        try:
            song = self.search_song(title, artist)
        except GetSongError as e:
            logger.warning(f"Failed to search song '{title}' by '{artist}': {e}")
            return None
        if song is None:
            return None
        return float(song["tempo"])


# ── Simple providers ────────────────────────────────────────────────────
class StaticTempoTable:
    """In-memory tempo table keyed by ``title|artist``."""

    def __init__(self, tempos: dict[tuple[str, str], float] | None = None):
        self._tempos = {
            normalize_lookup_key(title, artist): bpm
            for (title, artist), bpm in (tempos or {}).items()
        }

    def add(self, title: str, artist: str, bpm: float) -> None:
        self._tempos[normalize_lookup_key(title, artist)] = bpm

    def lookup(self, title: str, artist: str) -> float | None:
        return self._tempos.get(normalize_lookup_key(title, artist))


class ChainedTempoProvider:
    """Ask each provider in turn; the first positive tempo wins."""

    def __init__(self, providers: Iterable):
        self.providers = [p for p in providers if p is not None]

    def lookup(self, title: str, artist: str) -> float | None:
        for provider in self.providers:
            try:
                bpm = provider.lookup(title, artist)
            except Exception as e:
                logger.warning(f"{type(provider).__name__} failed for '{title}': {e}")
                continue
            if bpm is not None and bpm > 0:
                return bpm
        return None
