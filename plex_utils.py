import html
import logging
from typing import Dict, List, Optional, Tuple

from plexapi.server import PlexServer
from plexapi.exceptions import NotFound, PlexApiException
from requests.exceptions import RequestException

from models import CandidateTrack, Song, MATCH_TYPE_NONE, MATCH_TYPE_TITLE_ARTIST
from plex_matcher import TrackMatcher
from search_strategies import PlannedQuery, plan_search_variants

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 100
SPOTIFY_PLAYLIST_URL = "https://open.spotify.com/playlist/{}"

PLEX_ERRORS = (PlexApiException, RequestException)


def setup_plex_client(config):
    plex = PlexServer(config.plex_url, config.plex_token)
    return plex


def get_music_library(plex, config):
    """Music section by configured ID, falling back to the section name"""
    if config.plex_library_section_id:
        return plex.library.sectionByID(config.plex_library_section_id)
    return plex.library.section(config.plex_music_library)


def to_candidate(plex_track) -> CandidateTrack:
    return CandidateTrack(
        id=str(plex_track.ratingKey),
        title=plex_track.title or "",
        artist=plex_track.grandparentTitle or "",
        album=plex_track.parentTitle or "",
    )


class PlexTrackSearcher:
    """
    Runs the search strategy cascade against one Plex music section.

    Plex items are remembered by rating key so matched candidates can be
    turned back into plexapi objects for playlist updates.
    """

    def __init__(self, music_library, matcher: TrackMatcher, search_limit: int = SEARCH_LIMIT):
        self.music_library = music_library
        self.matcher = matcher
        self.search_limit = search_limit
        self.track_cache: Dict[str, object] = {}
        self._library_tracks: Optional[List[CandidateTrack]] = None

    def _remember(self, items) -> List[CandidateTrack]:
        candidates = []
        for item in items:
            if getattr(item, 'TYPE', None) != 'track':
                continue
            candidate = to_candidate(item)
            self.track_cache[candidate.id] = item
            candidates.append(candidate)
        return candidates

    def _query(self, description: str, search) -> List[CandidateTrack]:
        try:
            return self._remember(search())
        except PLEX_ERRORS as e:
            logger.warning(f"⚠️ Plex {description} failed: {e}")
            return []

    def search_combined(self, title: str, artist: str) -> List[CandidateTrack]:
        query = f"{title} {artist}"
        return self._query("combined search", lambda: self.music_library.hubSearch(
            query, mediatype='track', limit=self.search_limit))

    def search_by_title(self, title: str) -> List[CandidateTrack]:
        return self._query("title search", lambda: self.music_library.searchTracks(
            title=title, maxresults=self.search_limit))

    def search_by_artist(self, artist: str) -> List[CandidateTrack]:
        return self._query("artist search", lambda: self.music_library.hubSearch(
            artist, mediatype='track', limit=self.search_limit))

    def library_tracks(self) -> List[CandidateTrack]:
        """Every track in the section, fetched once per searcher; a failed scan is retried next time"""
        if self._library_tracks is None:
            logger.info("📚 Loading full Plex library track list...")
            try:
                tracks = self._remember(self.music_library.searchTracks())
            except PLEX_ERRORS as e:
                logger.warning(f"⚠️ Plex library scan failed: {e}")
                return []
            self._library_tracks = tracks
            logger.info(f"📚 Loaded {len(tracks)} tracks")
        return self._library_tracks

    def _try_query(self, query: PlannedQuery, song: Song) -> Optional[CandidateTrack]:
        if query.library_scan:
            searches = [("full library", self.library_tracks)]
        else:
            searches = [
                ("combined", lambda: self.search_combined(query.title, query.artist)),
                ("title", lambda: self.search_by_title(query.title)),
                ("artist", lambda: self.search_by_artist(query.artist)),
            ]

        for name, search in searches:
            candidates = search()
            logger.debug(f"🔍 {name} search for '{query.title}' by '{query.artist}' returned {len(candidates)} tracks")
            if not candidates:
                continue
            track = self.matcher.find_best_match(candidates, song.name, song.artist)
            if track is not None:
                return track
        return None

    def search_track(self, song: Song) -> Tuple[Optional[CandidateTrack], str]:
        """Find the Plex track for a Spotify song, returning (track, match type)"""
        logger.debug(f"🔍 SearchTrack: searching for '{song.name}' by '{song.artist}'")
        for query in plan_search_variants(song.name, song.artist):
            track = self._try_query(query, song)
            if track is not None:
                logger.info(f"✅ Found match '{track.title}' by '{track.artist}' using {query.strategy}")
                return track, MATCH_TYPE_TITLE_ARTIST
        return None, MATCH_TYPE_NONE

    def plex_item(self, track_id: str):
        item = self.track_cache.get(track_id)
        if item is None:
            item = self.music_library.fetchItem(int(track_id))
            self.track_cache[track_id] = item
        return item


def build_playlist_description(description: str, spotify_playlist_id: str) -> str:
    """Spotify description (HTML entities decoded) followed by a sync attribution line"""
    description = html.unescape(description or "")
    if not spotify_playlist_id:
        return description
    sync_line = f"synced from Spotify: {SPOTIFY_PLAYLIST_URL.format(spotify_playlist_id)}"
    if description:
        return f"{description}\n\n{sync_line}"
    return sync_line


def _unique_tracks(plex_tracks):
    seen = set()
    unique = []
    for track in plex_tracks:
        if track.ratingKey in seen:
            continue
        seen.add(track.ratingKey)
        unique.append(track)
    return unique


def create_or_update_plex_playlist(plex, playlist_title, found_plex_tracks, description="",
                                   spotify_playlist_id="", artwork_url=""):
    """
    Make the Plex playlist mirror the matched tracks, in order.

    An existing playlist with the same title is cleared and refilled; otherwise
    a new one is created. Returns the playlist, or None when nothing matched.
    """
    if not found_plex_tracks:
        logger.info("No matching tracks found in Plex. No playlist will be created or updated.")
        return None

    tracks = _unique_tracks(found_plex_tracks)
    summary = build_playlist_description(description, spotify_playlist_id)

    try:
        playlist = plex.playlist(playlist_title)
    except NotFound:
        logger.info(f"Playlist '{playlist_title}' not found. Creating a new playlist...")
        playlist = plex.createPlaylist(title=playlist_title, items=tracks)
        _set_summary(playlist, summary)
        logger.info(f"✅ Created playlist '{playlist_title}' with {len(tracks)} tracks.")
    else:
        logger.info(f"Playlist '{playlist_title}' already exists. Syncing it to match Spotify...")
        _set_summary(playlist, summary)
        existing = playlist.items()
        if existing:
            playlist.removeItems(existing)
        playlist.addItems(tracks)
        logger.info(f"✅ Replaced {len(existing)} tracks with {len(tracks)} tracks.")

    if artwork_url:
        set_playlist_poster(playlist, artwork_url)
    return playlist


def _set_summary(playlist, summary):
    if not summary:
        return
    try:
        playlist.editSummary(summary)
    except PLEX_ERRORS as e:
        logger.warning(f"⚠️ Failed to update playlist description: {e}")


def set_playlist_poster(playlist, artwork_url):
    try:
        playlist.uploadPoster(url=artwork_url)
        logger.info("🎨 Playlist artwork updated")
    except PLEX_ERRORS as e:
        logger.warning(f"⚠️ Failed to set playlist artwork: {e}")
