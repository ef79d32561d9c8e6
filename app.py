"""
PaceMix – tempo-matched running playlists (Streamlit)
"""

import html
from datetime import date
from functools import partial

import streamlit as st
from spotipy.exceptions import SpotifyException

import config
from bpm_service import ChainedTempoProvider, GetSongTempoProvider, LocalTempoDataset
from logging_setup import setup_logging
from pace_service import expected_pace_min_per_mile, format_pace
from spotify_utils import (
    PlaybackError,
    create_spotify_playlist,
    fetch_playlist_or_album_tracks,
    fetch_top_tracks,
    get_auth_url,
    get_spotify_client,
    handle_auth_callback,
    start_playback,
)
from tempo_engine.augmentation import CuratedTempoCatalog, DatasetTempoCatalog
from tempo_engine.normalizer import TrackNormalizer
from tempo_engine.selector import PlaylistSelector, SelectorConfig
from workout_playlist import PlaylistService, playlist_stats

config.ensure_data_dir()
setup_logging(config.LOG_LEVEL)

DISTANCE_OPTIONS = {
    "Short (under 20 min)": "short",
    "Medium (20–40 min)": "medium",
    "Long (40+ min)": "long",
}
INTENSITY_OPTIONS = {
    "Easy (120–140 BPM)": "low",
    "Moderate (140–180 BPM)": "medium",
    "Intense (180+ BPM)": "high",
}

# ─── Page config ────────────────────────────────────────────────────────
st.set_page_config(
    page_title="PaceMix",
    page_icon="🏃",
    layout="centered",
)

# ─── Custom CSS ─────────────────────────────────────────────────────────
st.markdown(
    """
    <style>
    .block-container { max-width: 760px; }
    .track-row {
        display: flex; align-items: center; gap: 12px;
        padding: 6px 0; border-bottom: 1px solid #333;
    }
    .track-row img { border-radius: 4px; }
    .art-letter {
        width: 40px; height: 40px; border-radius: 4px; background: #334155;
        display: flex; align-items: center; justify-content: center;
        font-weight: 700; text-transform: uppercase;
    }
    .source-tag {
        font-size: 0.65rem; font-weight: 600; padding: 2px 6px;
        border-radius: 8px; display: inline-block; margin-left: 4px;
    }
    .primary   { background: #22c55e; color: #fff; }
    .augmented { background: #a855f7; color: #fff; }
    </style>
    """,
    unsafe_allow_html=True,
)


# ─── Helpers ────────────────────────────────────────────────────────────
@st.cache_resource
def _load_dataset() -> LocalTempoDataset:
    return LocalTempoDataset(config.TEMPO_DATASET_PATH)


def _tempo_provider():
    dataset = _load_dataset()
    if config.GETSONG_API_KEY:
        return ChainedTempoProvider([dataset, GetSongTempoProvider(config.GETSONG_API_KEY)])
    return dataset


def _art_html(track) -> str:
    if track.album_image_url:
        return f'<img src="{html.escape(track.album_image_url)}" width="40" height="40"/>'
    letter = track.album_art if len(track.album_art) == 1 else "♪"
    return f'<div class="art-letter">{html.escape(letter)}</div>'


def _source_tag(source: str) -> str:
    if source == "augmented":
        return '<span class="source-tag augmented">MIX</span>'
    return '<span class="source-tag primary">YOURS</span>'


# ─── Auth handling ──────────────────────────────────────────────────────
is_authed = handle_auth_callback()

# =====================================================================
# SCREEN 1 – Login
# =====================================================================
if not is_authed:
    st.title("PaceMix")
    st.subheader("Run to the beat.")
    st.write(
        "Pick how far and how hard you want to run. We'll build a playlist "
        "from your top tracks whose tempo matches your effort."
    )
    st.link_button("🔗 Login with Spotify", get_auth_url(), use_container_width=True)
    st.stop()

sp = get_spotify_client()
if sp is None:
    st.error("Could not create Spotify client. Please log in again.")
    if st.button("Reset session"):
        st.session_state.clear()
        st.rerun()
    st.stop()

try:
    display_name = sp.current_user().get("display_name") or "Runner"
except SpotifyException:
    display_name = "Runner"

st.title("PaceMix")
st.caption(f"Logged in as **{display_name}**")

with st.sidebar:
    st.header("Account")
    if st.button("Logout", use_container_width=True):
        st.session_state.clear()
        st.rerun()

# =====================================================================
# SCREEN 2 – Run setup
# =====================================================================
st.header("1. Your run")

col_a, col_b = st.columns(2)
with col_a:
    distance_label = st.radio("Distance", list(DISTANCE_OPTIONS), index=1)
with col_b:
    intensity_label = st.radio("Intensity", list(INTENSITY_OPTIONS), index=1)

distance = DISTANCE_OPTIONS[distance_label]
intensity = INTENSITY_OPTIONS[intensity_label]

if st.button("🎵 Generate playlist", type="primary", use_container_width=True):
    for key in ("generated_playlist", "saved_spotify_url"):
        st.session_state.pop(key, None)

    with st.status("Building your playlist…", expanded=True) as status:
        st.write("Fetching your top tracks…")
        raw_tracks = fetch_top_tracks(
            sp,
            time_range=config.TOP_TRACKS_TIME_RANGE,
            limit=config.TOP_TRACKS_LIMIT,
        )

        st.write("Matching tempos…")
        normalizer = TrackNormalizer(_tempo_provider(), default_tempo=config.UNKNOWN_TEMPO_DEFAULT)
        selector = PlaylistSelector(
            SelectorConfig(augment_limit=config.AUGMENT_LIMIT),
            normalizer,
        )
        augment = CuratedTempoCatalog(
            partial(fetch_playlist_or_album_tracks, sp),
            config.TEMPO_PLAYLISTS,
            fallback=DatasetTempoCatalog(_load_dataset()),
        )
        service = PlaylistService(normalizer, selector, augment=augment)
        st.session_state["generated_playlist"] = service.build(raw_tracks, distance, intensity)
        status.update(label="Playlist ready!", state="complete", expanded=False)

if "generated_playlist" not in st.session_state:
    st.stop()

# =====================================================================
# SCREEN 3 – Results
# =====================================================================
playlist = st.session_state["generated_playlist"]
stats = playlist_stats(playlist.tracks)

st.divider()
st.header(f"2. {playlist.title}")
st.caption(playlist.artist_summary)

if not playlist.tracks:
    st.warning("No songs matched this run. Try another intensity.")
    st.stop()

c1, c2, c3, c4 = st.columns(4)
c1.metric("Tracks", stats["total_tracks"])
c2.metric("Duration", f"{stats['total_duration_min']} min")
c3.metric("BPM Range", f"{stats['min_bpm']}–{stats['max_bpm']}")
c4.metric("Avg BPM", stats["avg_bpm"])

st.subheader("BPM by track")
bpm_data = [{"Track #": i + 1, "BPM": t.tempo_bpm or 0} for i, t in enumerate(playlist.tracks)]
st.area_chart(bpm_data, x="Track #", y="BPM", color="#ef4444")

st.subheader("Tracklist")
for track in playlist.tracks:
    bpm_str = f"{track.tempo_bpm:.0f} BPM" if track.tempo_bpm else "— BPM"
    pace_str = format_pace(expected_pace_min_per_mile(track.tempo_bpm), unit="mi")
    row_html = (
        f'<div class="track-row">'
        f"{_art_html(track)}"
        f'<div style="flex:1">'
        f"<strong>{html.escape(track.title)}</strong><br>"
        f'<span style="opacity:0.7">{html.escape(track.artist)}</span>'
        f"</div>"
        f'<div style="text-align:right; min-width:70px">'
        f"{bpm_str}<br>"
        f'<span style="opacity:0.6">{track.display_time}</span>'
        f"</div>"
        f'<div style="text-align:right; min-width:80px">~{html.escape(pace_str)}</div>'
        f'<div style="min-width:60px; text-align:right">{_source_tag(track.source)}</div>'
        f"</div>"
    )
    st.html(row_html)

st.divider()

# =====================================================================
# Playback / Save
# =====================================================================
track_uris = [t.playback_ref for t in playlist.tracks if t.playback_ref]

if st.button("▶️ Play on Spotify", use_container_width=True):
    try:
        device = start_playback(sp, track_uris)
        st.success(f"Playing on {device.get('name', 'your device')}.")
    except PlaybackError as e:
        st.error(str(e))
    except SpotifyException as e:
        st.error(f"Spotify could not start playback: {e.msg}")

st.subheader("Save to Spotify")
playlist_name = st.text_input(
    "Playlist name",
    value=f"{playlist.title.title()} – {date.today().strftime('%b %d')}",
)
if st.button("💾 Save to my Spotify", use_container_width=True):
    with st.spinner("Creating playlist…"):
        url = create_spotify_playlist(
            sp,
            name=playlist_name,
            track_uris=track_uris,
            description=f"{playlist.title} · {stats['min_bpm']}–{stats['max_bpm']} BPM",
        )
        st.session_state["saved_spotify_url"] = url
    st.balloons()

if "saved_spotify_url" in st.session_state:
    url = st.session_state["saved_spotify_url"]
    st.success("Playlist saved to your Spotify account!")
    st.markdown(
        f'<a href="{url}" target="_blank" rel="noopener noreferrer" '
        'style="display:inline-block;background:#1DB954;color:white;padding:10px 24px;'
        'border-radius:20px;text-decoration:none;font-weight:600;text-align:center;">'
        "🎵 Open in Spotify</a>",
        unsafe_allow_html=True,
    )
