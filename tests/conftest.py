from unittest.mock import Mock

import pytest

from models import CandidateTrack
from plex_matcher import TrackMatcher


def candidate(title, artist, id="1", album=""):
    return CandidateTrack(id=id, title=title, artist=artist, album=album)


def plex_track(rating_key, title, artist, album="Album"):
    """Stand-in for a plexapi Track"""
    return Mock(TYPE='track', ratingKey=rating_key, title=title, grandparentTitle=artist, parentTitle=album)


@pytest.fixture
def matcher():
    return TrackMatcher()


@pytest.fixture
def log_lines():
    return []


@pytest.fixture
def verbose_matcher(log_lines):
    return TrackMatcher(verbose=True, log=log_lines.append)
