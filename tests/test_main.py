import logging
from unittest.mock import Mock, patch

import pytest
from plexapi.exceptions import BadRequest

import main
from credential import Config
from main import (
    SyncClients,
    configure_logging,
    display_matching_results,
    get_playlist_metadata,
    match_spotify_tracks,
    populate_musicbrainz_ids_for_missing_tracks,
    sync_playlists,
)
from models import MatchResult, PlaylistInfo, Song, MATCH_TYPE_ERROR, MATCH_TYPE_NONE, MATCH_TYPE_TITLE_ARTIST
from tests.conftest import candidate


def song(id, name, artist, **kwargs):
    return Song(id=id, name=name, artist=artist, **kwargs)


@pytest.fixture
def clients():
    return SyncClients(Mock(), Mock(), Mock(), Mock())


@pytest.fixture
def info_logs(caplog):
    caplog.set_level(logging.INFO)
    return caplog


class TestMatchSpotifyTracks:
    """Test per-song matching with a mocked searcher"""

    def test_results_in_order(self):
        songs = [
            song("s1", "Spotlight", "Jessie Ware"),
            song("s2", "Unknown", "Nobody"),
            song("s3", "Broken", "Someone"),
        ]
        matched = candidate("Spotlight", "Jessie Ware", id="10")
        searcher = Mock()
        searcher.search_track.side_effect = [
            (matched, MATCH_TYPE_TITLE_ARTIST),
            (None, MATCH_TYPE_NONE),
            BadRequest("search failed"),
        ]

        results, found = match_spotify_tracks(songs, searcher)

        assert [r.match_type for r in results] == [MATCH_TYPE_TITLE_ARTIST, MATCH_TYPE_NONE, MATCH_TYPE_ERROR]
        assert results[0].track == matched
        assert results[0].confidence == pytest.approx(1.0)
        assert results[1].track is None
        assert results[1].confidence == 0.0
        assert found == [searcher.plex_item.return_value]
        searcher.plex_item.assert_called_once_with("10")

    def test_empty_playlist(self):
        results, found = match_spotify_tracks([], Mock())
        assert results == []
        assert found == []


class TestReport:
    """Test the report lines"""

    def test_matching_results(self, info_logs):
        results = [
            MatchResult(song=song("s1", "Spotlight", "Jessie Ware"),
                        track=candidate("Spotlight", "Jessie Ware"), match_type=MATCH_TYPE_TITLE_ARTIST),
            MatchResult(song=song("s2", "Unknown", "Nobody", isrc="GB0000000001", musicbrainz_id="mbid-1")),
            MatchResult(song=song("s3", "Broken", "Someone"), match_type=MATCH_TYPE_ERROR),
        ]
        playlist = Mock(title="Chill Mix", ratingKey=99)

        display_matching_results(results, playlist)

        text = info_logs.text
        assert "1. Jessie Ware - Spotlight: 🔍 Title/Artist match (Plex: Jessie Ware - Spotlight)" in text
        assert "2. Nobody - Unknown: ❌ No match" in text
        assert "3. Someone - Broken: ⚠️ Search error" in text
        assert "Title/Artist matches: 1 (33.3%)" in text
        assert "No matches: 2 (66.7%)" in text
        assert "Successfully created/updated playlist: Chill Mix (ID: 99)" in text
        assert "MISSING TRACKS SUMMARY" in text
        assert "ISRC: GB0000000001" in text
        assert "MusicBrainz ID: mbid-1 - https://musicbrainz.org/recording/mbid-1" in text
        assert "ISRC: (not available)" in text
        assert "MusicBrainz ID: (not found)" in text

    def test_all_matched(self, info_logs):
        results = [MatchResult(song=song("s1", "Spotlight", "Jessie Ware"),
                               track=candidate("Spotlight", "Jessie Ware"), match_type=MATCH_TYPE_TITLE_ARTIST)]
        display_matching_results(results, None)
        assert "MISSING TRACKS SUMMARY" not in info_logs.text


def test_musicbrainz_lookup_only_for_missing():
    found = MatchResult(song=song("s1", "Spotlight", "Jessie Ware"), track=candidate("Spotlight", "Jessie Ware"))
    missing = MatchResult(song=song("s2", "Unknown", "Nobody"))

    with patch.object(main, "populate_musicbrainz_ids") as populate:
        populate_musicbrainz_ids_for_missing_tracks([found, missing])
        populate.assert_called_once_with([missing.song])

        populate.reset_mock()
        populate_musicbrainz_ids_for_missing_tracks([found])
        populate.assert_not_called()


class TestPlaylistMetadata:
    def test_user_playlists(self, clients):
        config = Config(spotify_username="someone")
        playlists = [PlaylistInfo(id="a", name="A")]
        with patch.object(main, "get_user_public_playlists", return_value=playlists) as user_playlists:
            assert get_playlist_metadata(config, clients) == playlists
        user_playlists.assert_called_once_with(clients.sp_authenticated, "someone")

    def test_playlist_ids(self, clients):
        config = Config(spotify_playlist_ids=["https://open.spotify.com/playlist/abc", "not a playlist", "def"])

        def playlist_info(sp_authenticated, sp_anonymous, playlist_id):
            if playlist_id == "def":
                raise ValueError("Spotify playlist not found")
            return PlaylistInfo(id=playlist_id, name="Mix")

        with patch.object(main, "get_playlist_info", side_effect=playlist_info):
            playlists = get_playlist_metadata(config, clients)

        assert [p.id for p in playlists] == ["abc"]


class TestSyncPlaylists:
    """Test the sequential multi-playlist run"""

    def test_nothing_to_sync(self, clients):
        with patch.object(main, "get_playlist_metadata", return_value=[]), \
                patch.object(main, "setup_musicbrainz_client"):
            assert sync_playlists(Config(), clients) == 0

    def test_failed_playlist_skipped(self, clients):
        playlists = [PlaylistInfo(id="a", name="A"), PlaylistInfo(id="b", name="B")]
        with patch.object(main, "get_playlist_metadata", return_value=playlists), \
                patch.object(main, "setup_musicbrainz_client"), \
                patch.object(main, "process_playlist", side_effect=[ValueError("boom"), []]) as process:
            assert sync_playlists(Config(), clients) == 2

        assert process.call_count == 2
        assert process.call_args[0][0].id == "b"


class TestConfigureLogging:
    def test_single_handler(self):
        root = logging.getLogger()
        level = root.level
        try:
            configure_logging()
            configure_logging(debug=True)
            ours = [h for h in root.handlers if getattr(h, '_plexify', False)]
            assert len(ours) == 1
            assert root.level == logging.DEBUG
            assert logging.getLogger("plexapi").level == logging.WARNING
        finally:
            for handler in [h for h in root.handlers if getattr(h, '_plexify', False)]:
                root.removeHandler(handler)
            root.setLevel(level)
