import logging
import re
from typing import List, Optional
from urllib.parse import urlparse

import spotipy
from spotipy.oauth2 import SpotifyClientCredentials
from spotipy_anon import SpotifyAnon

from models import PlaylistInfo, Song

logger = logging.getLogger(__name__)

SPOTIFY_GENERATED_PREFIX = '37i9dQZF1E'
_BARE_ID = re.compile(r'^[A-Za-z0-9]+$')


def _warn_if_generated(playlist_id):
    # Check if this is a Spotify algorithmic/curated playlist
    if playlist_id.startswith(SPOTIFY_GENERATED_PREFIX):
        logger.warning(f"⚠️  Warning: This appears to be a Spotify curated/algorithmic playlist (ID: {playlist_id})")
        logger.warning("These playlists may have limited API access and could cause 404 errors.")
        logger.warning("Attempting to proceed anyway...")


def get_spotify_playlist_id(playlist_ref):
    """
    Playlist ID from an open.spotify.com URL, a spotify:playlist: URI or a bare ID.
    Returns None for anything else (artist URLs, albums, garbage).
    """
    playlist_ref = (playlist_ref or "").strip()
    playlist_id = None
    if playlist_ref.startswith("spotify:"):
        parts = playlist_ref.split(':')
        if len(parts) == 3 and parts[1] == 'playlist':
            playlist_id = parts[2]
    elif "://" in playlist_ref:
        parsed_url = urlparse(playlist_ref)
        if parsed_url.netloc == "open.spotify.com":
            path_parts = [part for part in parsed_url.path.split('/') if part]
            if 'playlist' in path_parts and path_parts.index('playlist') + 1 < len(path_parts):
                playlist_id = path_parts[path_parts.index('playlist') + 1]
    elif _BARE_ID.match(playlist_ref):
        playlist_id = playlist_ref

    if playlist_id:
        _warn_if_generated(playlist_id)
    return playlist_id or None


def setup_spotify_client(config):
    # Create both authenticated and anonymous clients
    auth_manager = SpotifyClientCredentials(client_id=config.spotify_client_id,
                                            client_secret=config.spotify_client_secret)
    sp_authenticated = spotipy.Spotify(auth_manager=auth_manager)
    sp_anonymous = spotipy.Spotify(auth_manager=SpotifyAnon())
    return sp_authenticated, sp_anonymous


def _not_found_message(playlist_id):
    error_msg = f"Spotify playlist not found (ID: {playlist_id}). "
    if playlist_id.startswith(SPOTIFY_GENERATED_PREFIX):
        error_msg += "\n🔒 This Spotify curated playlist is not accessible via API.\n"
        error_msg += "Even anonymous authentication failed.\n\n"
        error_msg += "✅ Try using instead:\n"
        error_msg += "  • User-created public playlists\n"
        error_msg += "  • Your own personal playlists\n"
        error_msg += "  • Collaborative playlists\n\n"
        error_msg += f"💡 Look for playlist URLs that don't start with '{SPOTIFY_GENERATED_PREFIX}'"
    else:
        error_msg += "This could mean:\n"
        error_msg += "  1. The playlist ID is incorrect\n"
        error_msg += "  2. The playlist is private and not accessible\n"
        error_msg += "  3. The playlist has been deleted\n"
        error_msg += "Please check the playlist URL and make sure it's public."
    return error_msg


def _with_fallback(sp_authenticated, sp_anonymous, playlist_id, fetch):
    """
    Run fetch(client) with the authenticated client, retrying with the
    anonymous client on 404. Spotify errors come back as ValueError.
    """
    try:
        return fetch(sp_authenticated)
    except spotipy.SpotifyException as e:
        if e.http_status == 404:
            logger.warning(f"⚠️  Authenticated access failed for playlist {playlist_id}")
            logger.info("🔄 Trying anonymous authentication (for curated playlists)...")
            try:
                return fetch(sp_anonymous)
            except spotipy.SpotifyException as anon_e:
                if anon_e.http_status == 404:
                    raise ValueError(_not_found_message(playlist_id))
                elif anon_e.http_status == 401:
                    raise ValueError("Both authenticated and anonymous Spotify access failed.")
                raise ValueError(f"Spotify API error (anonymous): {anon_e}")
        elif e.http_status == 401:
            raise ValueError("Spotify authentication failed. Please check your client credentials.")
        raise ValueError(f"Spotify API error: {e}")


def _image_url(images):
    if images:
        return images[0].get('url') or ""
    return ""


def to_playlist_info(data) -> PlaylistInfo:
    return PlaylistInfo(
        id=data['id'],
        name=data.get('name') or "",
        description=data.get('description') or "",
        owner=(data.get('owner') or {}).get('display_name') or "",
        track_count=(data.get('tracks') or {}).get('total') or 0,
        public=bool(data.get('public')),
        image_url=_image_url(data.get('images')),
    )


def get_playlist_info(sp_authenticated, sp_anonymous, playlist_id) -> PlaylistInfo:
    fields = 'id,name,description,owner.display_name,tracks.total,public,images'
    data = _with_fallback(sp_authenticated, sp_anonymous, playlist_id,
                          lambda sp: sp.playlist(playlist_id, fields=fields))
    data.setdefault('id', playlist_id)
    return to_playlist_info(data)


def _all_items(sp, results):
    items = []
    if results and 'items' in results:
        items.extend(results['items'])
        while results.get('next'):
            results = sp.next(results)
            items.extend(results['items'])
    return items


def get_spotify_playlist_tracks(sp_authenticated, sp_anonymous, playlist_id):
    """Every raw playlist item, following pagination"""
    def fetch(sp):
        return _all_items(sp, sp.playlist_items(playlist_id, additional_types=('track',)))

    all_tracks = _with_fallback(sp_authenticated, sp_anonymous, playlist_id, fetch)
    logger.info(f"✅ Fetched {len(all_tracks)} items from Spotify playlist {playlist_id}")
    return all_tracks


def get_user_public_playlists(sp, username) -> List[PlaylistInfo]:
    try:
        items = _all_items(sp, sp.user_playlists(username))
    except spotipy.SpotifyException as e:
        raise ValueError(f"Failed to fetch public playlists for user {username}: {e}")
    return [to_playlist_info(item) for item in items if item and item.get('public')]


def to_song(track_data) -> Optional[Song]:
    """Song for a playlist track object; None for local files, removed tracks and nameless entries"""
    if not track_data or not track_data.get('id'):
        return None
    track_name = track_data.get('name')
    artists = track_data.get('artists') or []
    primary_artist = artists[0].get('name') if artists else None
    if not track_name or not primary_artist:
        return None
    return Song(
        id=track_data['id'],
        name=track_name,
        artist=primary_artist,
        album=(track_data.get('album') or {}).get('name') or "",
        duration_ms=track_data.get('duration_ms') or 0,
        uri=track_data.get('uri') or "",
        isrc=(track_data.get('external_ids') or {}).get('isrc') or "",
        url=(track_data.get('external_urls') or {}).get('spotify') or "",
    )


def parse_spotify_tracks(raw_tracks) -> List[Song]:
    parsed_tracks = []
    for item in raw_tracks:
        song = to_song((item or {}).get('track'))
        if song:
            parsed_tracks.append(song)
    return parsed_tracks
