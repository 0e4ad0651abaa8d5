import logging
import os
import uuid
from typing import Dict, List, Optional

from fastapi import FastAPI, BackgroundTasks, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from main import sync_playlist
from models import CandidateTrack, SearchTarget
from plex_matcher import TrackMatcher
from spotify_utils import get_spotify_playlist_id

app = FastAPI(title="Plexify")


def sync_spotify_url(spotify_url):
    """Only playlist URLs, URIs and IDs are supported"""
    if not get_spotify_playlist_id(spotify_url):
        raise ValueError("Unsupported Spotify URL. Please provide a playlist URL.")
    logging.info("📋 Detected playlist URL, starting playlist sync...")
    sync_playlist(spotify_url)


# Redirect root URL to web UI (must be after app is defined)
@app.get("/")
def root():
    return RedirectResponse(url="/static/index.html")


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
static_dir = os.path.join(os.path.dirname(__file__), "static")
if os.path.exists(static_dir):
    app.mount("/static", StaticFiles(directory=static_dir, html=True), name="static")

# In-memory job store, lost on restart
jobs: Dict[str, Dict] = {}


class SpotifyRequest(BaseModel):
    url: str


class MatchRequest(BaseModel):
    title: str
    artist: str
    candidates: List[CandidateTrack] = []
    normalized_punctuation: bool = False


class ScoredTrack(BaseModel):
    track: CandidateTrack
    title_similarity: float
    artist_similarity: float
    combined_score: float


class MatchResponse(BaseModel):
    track: Optional[CandidateTrack] = None
    match_type: str
    confidence: float
    scored: List[ScoredTrack] = []


class JobLogHandler(logging.Handler):
    """Copies every log record into a job's log list"""

    def __init__(self, job_log: List[str]):
        super().__init__(level=logging.INFO)
        self.job_log = job_log
        self.setFormatter(logging.Formatter('%(message)s'))

    def emit(self, record):
        self.job_log.append(self.format(record))


def run_job(job_id: str, url: str):
    job = jobs[job_id]
    job["status"] = "running"

    job_handler = JobLogHandler(job["log"])
    root_logger = logging.getLogger()
    root_logger.addHandler(job_handler)
    if root_logger.level > logging.INFO or root_logger.level == logging.NOTSET:
        root_logger.setLevel(logging.INFO)

    try:
        sync_spotify_url(url)
        job["status"] = "done"
    except Exception as e:
        job["status"] = "error"
        job["log"].append(f"❌ Error: {str(e)}")
    finally:
        root_logger.removeHandler(job_handler)


@app.post("/submit")
def submit_spotify_sync(req: SpotifyRequest, background_tasks: BackgroundTasks):
    job_id = str(uuid.uuid4())
    jobs[job_id] = {"status": "queued", "progress": 0, "log": []}
    background_tasks.add_task(run_job, job_id, req.url)
    return {"job_id": job_id}


@app.get("/status/{job_id}")
def get_status(job_id: str):
    job = jobs.get(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@app.post("/match", response_model=MatchResponse)
def match_track(req: MatchRequest):
    """Run the matcher on caller-supplied candidates, with per-candidate scores for diagnostics"""
    matcher = TrackMatcher()
    target = SearchTarget(title=req.title, artist=req.artist)
    outcome = matcher.match(req.candidates, target, normalized_punctuation=req.normalized_punctuation)
    scored = [
        ScoredTrack(
            track=s.candidate,
            title_similarity=s.title_similarity,
            artist_similarity=s.artist_similarity,
            combined_score=s.combined_score,
        )
        for s in (matcher.score_candidate(target, candidate) for candidate in req.candidates)
    ]
    return MatchResponse(
        track=outcome.track,
        match_type=outcome.match_type,
        confidence=matcher.confidence(target, outcome.track),
        scored=scored,
    )
