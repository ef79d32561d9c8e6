"""
Spotify OAuth + track/playback helpers for Streamlit.

Raw track dicts are returned exactly as the Web API sends them; mapping to
``Track`` values is the normalizer's job.
"""

import logging

import spotipy
import streamlit as st
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from config import (
    SPOTIFY_CLIENT_ID,
    SPOTIFY_CLIENT_SECRET,
    SPOTIFY_REDIRECT_URI,
    SPOTIFY_SCOPES,
)

logger = logging.getLogger(__name__)


class PlaybackError(Exception):
    """Playback could not be started (e.g. no available device)."""


def _get_auth_manager() -> SpotifyOAuth:
    """Return a SpotifyOAuth manager configured from env vars."""
    return SpotifyOAuth(
        client_id=SPOTIFY_CLIENT_ID,
        client_secret=SPOTIFY_CLIENT_SECRET,
        redirect_uri=SPOTIFY_REDIRECT_URI,
        scope=SPOTIFY_SCOPES,
        cache_handler=spotipy.cache_handler.MemoryCacheHandler(
            token_info=st.session_state.get("token_info")
        ),
        show_dialog=True,
    )


def get_auth_url() -> str:
    """Return the Spotify authorization URL the user should visit."""
    return _get_auth_manager().get_authorize_url()


def handle_auth_callback() -> bool:
    """
    Check query params for a Spotify auth code, exchange it for a token,
    and store the token in session state.  Returns True if a valid token
    is now available.
    """
    if st.session_state.get("token_info"):
        auth_manager = _get_auth_manager()
        # Refresh if expired
        token_info = auth_manager.validate_token(st.session_state["token_info"])
        if token_info:
            st.session_state["token_info"] = token_info
            return True

    code = st.query_params.get("code")
    if code:
        auth_manager = _get_auth_manager()
        try:
            token_info = auth_manager.get_access_token(code, as_dict=True)
        except SpotifyOauthError as e:
            logger.error(f"Spotify token exchange failed: {e}")
            st.error(f"Authentication failed: {e}")
            return False
        st.session_state["token_info"] = token_info
        # Clear the code from the URL to avoid re-processing
        st.query_params.clear()
        return True

    return False


def get_spotify_client() -> spotipy.Spotify | None:
    """Return an authenticated Spotify client, or None."""
    if not st.session_state.get("token_info"):
        return None
    return spotipy.Spotify(auth_manager=_get_auth_manager())


# ── Catalog ─────────────────────────────────────────────────────────────

def fetch_top_tracks(
    sp: spotipy.Spotify,
    time_range: str = "short_term",
    limit: int = 50,
) -> list[dict]:
    """The user's top tracks (``short_term`` / ``medium_term`` / ``long_term``)."""
    results = sp.current_user_top_tracks(limit=limit, time_range=time_range)
    tracks = (results or {}).get("items") or []
    logger.info(f"Retrieved {len(tracks)} top tracks from Spotify")
    return tracks


def _fetch_album_tracks(sp: spotipy.Spotify, album_id: str, limit: int) -> list[dict]:
    album = sp.album(album_id)
    if not album:
        return []
    # Album track objects come without the album; attach it for artwork
    album_ref = {
        "id": album.get("id"),
        "name": album.get("name"),
        "images": album.get("images") or [],
    }
    tracks: list[dict] = []
    results = album.get("tracks") or {}
    while results and len(tracks) < limit:
        for item in results.get("items") or []:
            if item and item.get("id"):
                tracks.append({**item, "album": album_ref})
        if results.get("next") and len(tracks) < limit:
            results = sp.next(results)
        else:
            break
    return tracks[:limit]


def fetch_playlist_or_album_tracks(
    sp: spotipy.Spotify,
    source_id: str,
    limit: int = 100,
) -> list[dict]:
    """
    Up to ``limit`` tracks from a playlist, falling back to treating
    ``source_id`` as an album when it is not a readable playlist.
    """
    tracks: list[dict] = []
    try:
        results = sp.playlist_items(source_id, limit=min(limit, 100), additional_types=("track",))
        while results and len(tracks) < limit:
            for item in results.get("items") or []:
                track = item.get("track")
                if not track or not track.get("id"):
                    continue  # skip local/unavailable tracks
                tracks.append(track)
            if results.get("next") and len(tracks) < limit:
                results = sp.next(results)
            else:
                break
    except SpotifyException as e:
        logger.info(f"{source_id} is not a readable playlist ({e.http_status}), trying album")
        return _fetch_album_tracks(sp, source_id, limit)
    return tracks[:limit]


# ── Playback ────────────────────────────────────────────────────────────

def fetch_available_devices(sp: spotipy.Spotify) -> list[dict]:
    return (sp.devices() or {}).get("devices") or []


def start_playback(sp: spotipy.Spotify, uris: list[str]) -> dict:
    """
    Play ``uris`` from the first track on the active device, transferring
    playback to the first available device when none is active.  Returns
    the device used.
    """
    uris = [u for u in uris if u]
    if not uris:
        raise PlaybackError("Nothing to play.")

    devices = fetch_available_devices(sp)
    if not devices:
        raise PlaybackError(
            "No devices available. Please open Spotify on your phone, computer, "
            "or web player, then try again."
        )

    target = next((d for d in devices if d.get("is_active")), None)
    if target is None:
        target = devices[0]
        try:
            sp.transfer_playback(target["id"], force_play=False)
        except SpotifyException as e:
            # start_playback below still targets the device explicitly
            logger.warning(f"Transfer to {target.get('name')} failed: {e}")

    sp.start_playback(
        device_id=target["id"],
        uris=uris,
        offset={"position": 0},
        position_ms=0,
    )
    return target


def create_spotify_playlist(
    sp: spotipy.Spotify,
    name: str,
    track_uris: list[str],
    description: str = "",
) -> str:
    """
    Create a new playlist on the user's account and add tracks.
    Returns the playlist URL.
    """
    user_id = sp.current_user()["id"]
    playlist = sp.user_playlist_create(
        user=user_id,
        name=name,
        public=False,
        description=description,
    )
    # Spotify API accepts max 100 tracks per request
    for i in range(0, len(track_uris), 100):
        sp.playlist_add_items(playlist["id"], track_uris[i : i + 100])
    return playlist["external_urls"]["spotify"]
