from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

MATCH_TYPE_TITLE_ARTIST = "title_artist"
MATCH_TYPE_NONE = "none"
MATCH_TYPE_ERROR = "error"


class SearchTarget(BaseModel):
    """Raw Spotify title/artist being looked for"""
    model_config = ConfigDict(frozen=True)

    title: str
    artist: str


class CandidateTrack(BaseModel):
    """A Plex library track returned by a search; title/artist may be empty"""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    artist: str = ""
    album: str = ""


class ScoredCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    candidate: CandidateTrack
    title_similarity: float
    artist_similarity: float
    combined_score: float


class MatchOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    track: Optional[CandidateTrack] = None
    match_type: Literal["title_artist", "none"] = MATCH_TYPE_NONE


class Song(BaseModel):
    """A Spotify playlist track"""
    id: str
    name: str
    artist: str
    album: str = ""
    duration_ms: int = 0
    uri: str = ""
    isrc: str = ""
    url: str = ""
    musicbrainz_id: str = ""

    def target(self) -> SearchTarget:
        return SearchTarget(title=self.name, artist=self.artist)


class PlaylistInfo(BaseModel):
    id: str
    name: str
    description: str = ""
    owner: str = ""
    track_count: int = 0
    public: bool = False
    image_url: str = ""


class MatchResult(BaseModel):
    song: Song
    track: Optional[CandidateTrack] = None
    match_type: Literal["title_artist", "none", "error"] = MATCH_TYPE_NONE
    confidence: float = 0.0
