import logging
import uuid
from typing import List, NamedTuple, Optional, Tuple

from credential import Config, load_config
from models import MatchResult, PlaylistInfo, Song, MATCH_TYPE_ERROR, MATCH_TYPE_TITLE_ARTIST
from musicbrainz_utils import MUSICBRAINZ_RECORDING_URL, populate_musicbrainz_ids, setup_musicbrainz_client
from plex_matcher import TrackMatcher
from plex_utils import (
    PLEX_ERRORS,
    PlexTrackSearcher,
    create_or_update_plex_playlist,
    get_music_library,
    setup_plex_client,
)
from similarity import confidence
from spotify_utils import (
    get_playlist_info,
    get_spotify_playlist_id,
    get_spotify_playlist_tracks,
    get_user_public_playlists,
    parse_spotify_tracks,
    setup_spotify_client,
)

logger = logging.getLogger(__name__)

SEPARATOR = "=" * 80
NOISY_LOGGERS = ("urllib3", "spotipy", "plexapi", "musicbrainzngs")

# A playlist failing with one of these is skipped, not fatal
SYNC_ERRORS = (ValueError,) + PLEX_ERRORS


def configure_logging(debug=False):
    """One bare stream handler on the root logger; third-party clients stay quiet"""
    root = logging.getLogger()
    if not any(getattr(handler, '_plexify', False) for handler in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(message)s'))
        handler._plexify = True
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# Status and report lines go through logging so web jobs capture them too
def log_status(msg):
    logger.info(msg)


class SyncClients(NamedTuple):
    sp_authenticated: object
    sp_anonymous: object
    plex: object
    music_library: object


def setup_clients(config: Config) -> SyncClients:
    log_status("Setting up Spotify client...")
    sp_authenticated, sp_anonymous = setup_spotify_client(config)

    log_status("Setting up Plex client...")
    plex = setup_plex_client(config)
    music_library = get_music_library(plex, config)
    return SyncClients(sp_authenticated, sp_anonymous, plex, music_library)


def get_playlist_metadata(config: Config, clients: SyncClients) -> List[PlaylistInfo]:
    """Playlists to sync: every public playlist of the configured user, or the configured IDs"""
    if config.spotify_username:
        playlists = get_user_public_playlists(clients.sp_authenticated, config.spotify_username)
        log_status(f"🎵 Processing {len(playlists)} public Spotify playlist(s) for user {config.spotify_username}...")
        return playlists

    playlists = []
    for playlist_ref in config.spotify_playlist_ids:
        playlist_id = get_spotify_playlist_id(playlist_ref)
        if not playlist_id:
            logger.error(f"❌ Not a Spotify playlist: {playlist_ref}")
            continue
        try:
            playlists.append(get_playlist_info(clients.sp_authenticated, clients.sp_anonymous, playlist_id))
        except ValueError as e:
            logger.error(f"❌ Failed to get playlist info for {playlist_id}: {e}")
    log_status(f"🎵 Processing {len(playlists)} Spotify playlist(s)...")
    return playlists


def match_spotify_tracks(songs: List[Song], searcher: PlexTrackSearcher) -> Tuple[List[MatchResult], list]:
    """Match songs one at a time; returns the results and the matched plexapi tracks in playlist order"""
    results = []
    found_plex_tracks = []
    total = len(songs)
    log_status(f"🔍 Matching {total} tracks with Plex library...")

    for i, song in enumerate(songs, 1):
        log_status(f"[{i}/{total}] Searching: {song.artist} - {song.name}")
        try:
            track, match_type = searcher.search_track(song)
            plex_track = searcher.plex_item(track.id) if track else None
        except PLEX_ERRORS as e:
            logger.error(f"  ❌ Error searching for {song.artist} - {song.name}: {e}")
            results.append(MatchResult(song=song, match_type=MATCH_TYPE_ERROR))
            continue

        results.append(MatchResult(
            song=song,
            track=track,
            match_type=match_type,
            confidence=confidence(song.target(), track),
        ))
        if plex_track is not None:
            found_plex_tracks.append(plex_track)
            log_status("  ✅ Found in Plex")
        else:
            log_status("  ❌ Not found in Plex")

    return results, found_plex_tracks


def populate_musicbrainz_ids_for_missing_tracks(results: List[MatchResult]):
    missing = [result.song for result in results if result.track is None]
    if not missing:
        return
    log_status("🔍 Looking up MusicBrainz IDs for missing tracks...")
    populate_musicbrainz_ids(missing)


def display_songs(songs: List[Song]):
    log_status(f"Songs in playlist ({len(songs)} total):")
    log_status("-" * 60)
    for i, song in enumerate(songs, 1):
        log_status(f"{i:3d}. {song.artist} - {song.name} ({song.album})")
    log_status(f"Successfully fetched {len(songs)} songs from Spotify playlist")


def _percent(count, total):
    return count / total * 100 if total else 0.0


def display_summary(results: List[MatchResult], playlist):
    total = len(results)
    matched = sum(1 for result in results if result.match_type == MATCH_TYPE_TITLE_ARTIST)
    missing = total - matched

    log_status(SEPARATOR)
    log_status("SUMMARY")
    log_status(SEPARATOR)
    log_status(f"Total songs: {total}")
    log_status(f"Title/Artist matches: {matched} ({_percent(matched, total):.1f}%)")
    log_status(f"No matches: {missing} ({_percent(missing, total):.1f}%)")
    if matched:
        log_status(f"✅ Found {matched} matched tracks in Plex library")
        if playlist is not None:
            log_status(f"✅ Successfully created/updated playlist: {playlist.title} (ID: {playlist.ratingKey})")
    else:
        log_status("❌ No matches found")


def display_missing_tracks_summary(missing: List[MatchResult]):
    log_status(SEPARATOR)
    log_status("MISSING TRACKS SUMMARY")
    log_status(SEPARATOR)
    log_status(f"Tracks not found in Plex library ({len(missing)} total):")
    for i, result in enumerate(missing, 1):
        song = result.song
        log_status(f"{i:3d}. {song.artist} - {song.name}")
        log_status(f"     Spotify track ID: {song.id}")
        log_status(f"     ISRC: {song.isrc or '(not available)'}")
        if song.musicbrainz_id:
            log_status(f"     MusicBrainz ID: {song.musicbrainz_id} - {MUSICBRAINZ_RECORDING_URL.format(song.musicbrainz_id)}")
        else:
            log_status("     MusicBrainz ID: (not found)")


def display_matching_results(results: List[MatchResult], playlist):
    log_status(SEPARATOR)
    log_status("MATCHING RESULTS")
    log_status(SEPARATOR)
    for i, result in enumerate(results, 1):
        line = f"{i:3d}. {result.song.artist} - {result.song.name}: "
        if result.track is not None:
            line += f"🔍 Title/Artist match (Plex: {result.track.artist} - {result.track.title})"
        elif result.match_type == MATCH_TYPE_ERROR:
            line += "⚠️ Search error"
        else:
            line += "❌ No match"
        log_status(line)

    display_summary(results, playlist)
    missing = [result for result in results if result.track is None]
    if missing:
        display_missing_tracks_summary(missing)


def process_playlist(info: PlaylistInfo, clients: SyncClients, searcher: PlexTrackSearcher,
                     index: int = 1, total: int = 1) -> List[MatchResult]:
    log_status(f"📋 Playlist {index}/{total}: {info.name} ({info.id})")
    log_status(SEPARATOR)

    raw_tracks = get_spotify_playlist_tracks(clients.sp_authenticated, clients.sp_anonymous, info.id)
    songs = parse_spotify_tracks(raw_tracks)
    display_songs(songs)

    log_status(SEPARATOR)
    log_status("MATCHING SONGS TO PLEX LIBRARY")
    log_status(SEPARATOR)
    results, found_plex_tracks = match_spotify_tracks(songs, searcher)

    playlist = create_or_update_plex_playlist(
        clients.plex,
        info.name,
        found_plex_tracks,
        description=info.description,
        spotify_playlist_id=info.id,
        artwork_url=info.image_url,
    )

    populate_musicbrainz_ids_for_missing_tracks(results)
    display_matching_results(results, playlist)
    return results


def sync_playlists(config: Config, clients: SyncClients, verbose: bool = False) -> int:
    """
    Sync every configured playlist, one after another.

    Returns the number of playlists found to process; a playlist that fails is
    logged and skipped.
    """
    run_id = uuid.uuid4()
    log_status(f"[SYNC-START] Run ID: {run_id}")
    setup_musicbrainz_client()

    playlists = get_playlist_metadata(config, clients)
    if not playlists:
        return 0

    searcher = PlexTrackSearcher(clients.music_library, TrackMatcher(verbose=verbose))
    for index, info in enumerate(playlists, 1):
        try:
            process_playlist(info, clients, searcher, index, len(playlists))
        except SYNC_ERRORS as e:
            logger.error(f"❌ Failed to process playlist {info.id}: {e}")

    log_status("🎉 All playlists processed!")
    return len(playlists)


def sync_playlist(playlist_ref: str, config: Optional[Config] = None, verbose: bool = False) -> List[MatchResult]:
    """Sync a single playlist given as URL, URI or ID; errors propagate to the caller"""
    playlist_id = get_spotify_playlist_id(playlist_ref)
    if not playlist_id:
        raise ValueError("Invalid Spotify Playlist URL provided.")

    config = config or load_config(require_playlists=False)
    clients = setup_clients(config)
    setup_musicbrainz_client()

    log_status(f"Fetching Spotify playlist (ID: {playlist_id})...")
    info = get_playlist_info(clients.sp_authenticated, clients.sp_anonymous, playlist_id)
    log_status(f"Found playlist: '{info.name}'")

    searcher = PlexTrackSearcher(clients.music_library, TrackMatcher(verbose=verbose))
    return process_playlist(info, clients, searcher)
