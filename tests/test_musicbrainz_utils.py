from unittest.mock import patch

import musicbrainzngs
import pytest

from models import Song
from musicbrainz_utils import (
    find_musicbrainz_id,
    get_musicbrainz_id_by_artist_and_title,
    get_musicbrainz_id_by_isrc,
    populate_musicbrainz_ids,
)

ISRC_RESULT = {'isrc': {'id': "GBUM71703489", 'recording-list': [{'id': "mbid-isrc"}]}}
SEARCH_RESULT = {'recording-list': [{'id': "mbid-search"}, {'id': "mbid-other"}]}


@pytest.fixture
def isrc_lookup():
    with patch("musicbrainz_utils.musicbrainzngs.get_recordings_by_isrc") as lookup:
        yield lookup


@pytest.fixture
def recording_search():
    with patch("musicbrainz_utils.musicbrainzngs.search_recordings") as search:
        yield search


def song(**kwargs):
    fields = dict(id="sp1", name="Spotlight", artist="Jessie Ware", isrc="GBUM71703489")
    fields.update(kwargs)
    return Song(**fields)


class TestLookups:
    def test_isrc(self, isrc_lookup):
        isrc_lookup.return_value = ISRC_RESULT
        assert get_musicbrainz_id_by_isrc("GBUM71703489") == "mbid-isrc"

    def test_empty_isrc_not_looked_up(self, isrc_lookup):
        assert get_musicbrainz_id_by_isrc("") is None
        isrc_lookup.assert_not_called()

    def test_unknown_isrc(self, isrc_lookup):
        isrc_lookup.side_effect = musicbrainzngs.ResponseError("not found")
        assert get_musicbrainz_id_by_isrc("XX0000000000") is None

    def test_search_takes_first(self, recording_search):
        recording_search.return_value = SEARCH_RESULT
        assert get_musicbrainz_id_by_artist_and_title("Jessie Ware", "Spotlight") == "mbid-search"
        recording_search.assert_called_once_with(artist="Jessie Ware", recording="Spotlight", limit=1)

    def test_search_no_results(self, recording_search):
        recording_search.return_value = {'recording-list': []}
        assert get_musicbrainz_id_by_artist_and_title("Jessie Ware", "Spotlight") is None


class TestFindMusicBrainzId:
    """Test the ISRC-then-search lookup order"""

    def test_isrc_first(self, isrc_lookup, recording_search):
        isrc_lookup.return_value = ISRC_RESULT
        assert find_musicbrainz_id(song()) == "mbid-isrc"
        recording_search.assert_not_called()

    def test_search_fallback(self, isrc_lookup, recording_search):
        isrc_lookup.side_effect = musicbrainzngs.ResponseError("not found")
        recording_search.return_value = SEARCH_RESULT
        assert find_musicbrainz_id(song()) == "mbid-search"

    def test_network_error_is_none(self, isrc_lookup, recording_search, caplog):
        isrc_lookup.return_value = {'isrc': {'recording-list': []}}
        recording_search.side_effect = musicbrainzngs.NetworkError("offline")
        assert find_musicbrainz_id(song()) is None
        assert "MusicBrainz lookup failed" in caplog.text


class TestPopulate:
    def test_fills_missing_ids_in_place(self, isrc_lookup, recording_search):
        isrc_lookup.return_value = ISRC_RESULT
        songs = [song(), song(id="sp2", musicbrainz_id="already-set")]

        populate_musicbrainz_ids(songs)

        assert songs[0].musicbrainz_id == "mbid-isrc"
        assert songs[1].musicbrainz_id == "already-set"
        isrc_lookup.assert_called_once_with("GBUM71703489")

    def test_not_found_leaves_empty(self, isrc_lookup, recording_search):
        recording_search.return_value = {'recording-list': []}
        songs = [song(isrc="")]
        populate_musicbrainz_ids(songs)
        assert songs[0].musicbrainz_id == ""
