import logging
from typing import Iterable, Optional

import musicbrainzngs

from models import Song

logger = logging.getLogger(__name__)

APP_NAME = "plexify"
APP_VERSION = "1.0"
APP_CONTACT = "https://github.com/grrywlsn/plexify"

MUSICBRAINZ_RECORDING_URL = "https://musicbrainz.org/recording/{}"


def setup_musicbrainz_client():
    musicbrainzngs.set_useragent(APP_NAME, APP_VERSION, APP_CONTACT)


def get_musicbrainz_id_by_isrc(isrc: str) -> Optional[str]:
    if not isrc:
        return None
    try:
        result = musicbrainzngs.get_recordings_by_isrc(isrc)
    except musicbrainzngs.ResponseError as e:
        # 404 for an ISRC MusicBrainz does not know
        logger.debug(f"MusicBrainz has no recording for ISRC {isrc}: {e}")
        return None
    recordings = result.get('isrc', {}).get('recording-list', [])
    if recordings:
        return recordings[0]['id']
    return None


def get_musicbrainz_id_by_artist_and_title(artist: str, title: str) -> Optional[str]:
    if not artist or not title:
        return None
    result = musicbrainzngs.search_recordings(artist=artist, recording=title, limit=1)
    recordings = result.get('recording-list', [])
    if recordings:
        return recordings[0]['id']
    return None


def find_musicbrainz_id(song: Song) -> Optional[str]:
    """ISRC lookup first, then an artist/title search"""
    try:
        mbid = get_musicbrainz_id_by_isrc(song.isrc)
        if mbid:
            return mbid
        return get_musicbrainz_id_by_artist_and_title(song.artist, song.name)
    except musicbrainzngs.WebServiceError as e:
        logger.warning(f"⚠️ MusicBrainz lookup failed for {song.artist} - {song.name}: {e}")
        return None


def populate_musicbrainz_ids(songs: Iterable[Song]):
    """Fill in musicbrainz_id on each song in place; songs that already have one are skipped"""
    for song in songs:
        if song.musicbrainz_id:
            continue
        mbid = find_musicbrainz_id(song)
        if mbid:
            song.musicbrainz_id = mbid
