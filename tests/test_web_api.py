import logging
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

import web_api
from web_api import app, sync_spotify_url

PLAYLIST_URL = "https://open.spotify.com/playlist/5ABHKGoOzxkaa28ttQV9sE"


@pytest.fixture
def client():
    return TestClient(app)


def test_root_redirects_to_ui(client):
    response = client.get("/", follow_redirects=False)
    assert response.status_code == 307
    assert response.headers["location"] == "/static/index.html"


def test_unknown_job(client):
    response = client.get("/status/does-not-exist")
    assert response.status_code == 404


class TestSubmit:
    """Test background sync jobs"""

    def test_job_log_captured(self, client):
        def fake_sync(url):
            logging.getLogger("main").info(f"syncing {url}")

        with patch.object(web_api, "sync_playlist", side_effect=fake_sync) as sync:
            response = client.post("/submit", json={"url": PLAYLIST_URL})

        job_id = response.json()["job_id"]
        job = client.get(f"/status/{job_id}").json()
        sync.assert_called_once_with(PLAYLIST_URL)
        assert job["status"] == "done"
        assert f"syncing {PLAYLIST_URL}" in job["log"]

    def test_failed_job(self, client):
        with patch.object(web_api, "sync_playlist", side_effect=ValueError("Spotify playlist not found")):
            response = client.post("/submit", json={"url": PLAYLIST_URL})

        job = client.get(f"/status/{response.json()['job_id']}").json()
        assert job["status"] == "error"
        assert job["log"][-1] == "❌ Error: Spotify playlist not found"

    def test_unsupported_url(self, client):
        with patch.object(web_api, "sync_playlist") as sync:
            response = client.post("/submit", json={"url": "https://open.spotify.com/album/abc"})

        job = client.get(f"/status/{response.json()['job_id']}").json()
        assert job["status"] == "error"
        assert "Unsupported Spotify URL" in job["log"][-1]
        sync.assert_not_called()

    def test_sync_spotify_url_rejects_non_playlists(self):
        with pytest.raises(ValueError, match="Unsupported Spotify URL"):
            sync_spotify_url("https://open.spotify.com/artist/abc")


class TestMatchEndpoint:
    """Test matching caller-supplied candidates"""

    def test_suffix_title_matches(self, client):
        response = client.post("/match", json={
            "title": "Spotlight - Single Edit",
            "artist": "Jessie Ware",
            "candidates": [
                {"id": "1", "title": "Spotlight (Remix)", "artist": "Someone"},
                {"id": "2", "title": "Spotlight", "artist": "Jessie Ware"},
            ],
        })
        body = response.json()
        assert response.status_code == 200
        assert body["match_type"] == "title_artist"
        assert body["track"]["id"] == "2"
        assert body["confidence"] == pytest.approx(1.0)
        assert [s["track"]["id"] for s in body["scored"]] == ["1", "2"]

    def test_no_match(self, client):
        response = client.post("/match", json={
            "title": "the lakes - bonus track",
            "artist": "Taylor Swift",
            "candidates": [{"id": "1", "title": "Some Other Song", "artist": "Some Other Artist"}],
        })
        body = response.json()
        assert body["match_type"] == "none"
        assert body["track"] is None
        assert body["confidence"] == 0.0

    def test_no_candidates(self, client):
        body = client.post("/match", json={"title": "Song", "artist": "Artist"}).json()
        assert body["match_type"] == "none"
        assert body["scored"] == []

    def test_punctuation_mode(self, client):
        body = client.post("/match", json={
            "title": "Do It",
            "artist": "Chloe x Halle",
            "candidates": [{"id": "7", "title": "Do It", "artist": "Chloe × Halle"}],
            "normalized_punctuation": True,
        }).json()
        assert body["match_type"] == "title_artist"
        assert body["track"]["id"] == "7"
