import logging
from typing import Callable, List, Optional, Sequence

from models import (
    CandidateTrack,
    MatchOutcome,
    ScoredCandidate,
    SearchTarget,
    MATCH_TYPE_NONE,
    MATCH_TYPE_TITLE_ARTIST,
)
from similarity import (
    ARTIST_NORMALIZERS,
    SELECTOR_TITLE_NORMALIZERS,
    combined_score,
    confidence,
    similarity_variants,
    string_similarity,
)
from text_normalizers import normalize_punctuation

logger = logging.getLogger(__name__)

MIN_CONFIDENCE_SCORE = 0.7
VARIOUS_ARTISTS = "various artists"

# (title above, artist below) pairs that reject a candidate
_GUARDS = ((0.9, 0.3), (0.7, 0.2))


def _clean(s: str) -> str:
    return s.strip().lower()


def is_various_artists(track: CandidateTrack) -> bool:
    return _clean(track.artist) == VARIOUS_ARTISTS


class TrackMatcher:
    """
    Picks the Plex track that best matches a Spotify title/artist.

    Stateless apart from its logging settings, so one instance can be shared
    across a whole sync run.
    """

    def __init__(self, verbose: bool = False, log: Optional[Callable[[str], None]] = None):
        self.verbose = verbose
        self.log = log or logger.info

    def _debug(self, msg: str):
        if self.verbose:
            self.log(msg)

    def _best_variant(self, a: str, b: str, normalizers, field: str) -> float:
        best = None
        for label, score in similarity_variants(a, b, normalizers):
            self._debug(f"   {field} similarity ({label}): {score:.3f}")
            if best is None or score > best:
                best = score
        return best

    def score_candidate(self, target: SearchTarget, candidate: CandidateTrack) -> ScoredCandidate:
        """Best-of-variants title and artist similarity for one candidate"""
        title_similarity = self._best_variant(target.title, candidate.title, SELECTOR_TITLE_NORMALIZERS, "Title")
        artist_similarity = self._best_variant(target.artist, candidate.artist, ARTIST_NORMALIZERS, "Artist")
        return ScoredCandidate(
            candidate=candidate,
            title_similarity=title_similarity,
            artist_similarity=artist_similarity,
            combined_score=combined_score(title_similarity, artist_similarity),
        )

    def _rejected(self, scored: ScoredCandidate, label: str) -> bool:
        track = scored.candidate
        for title_above, artist_below in _GUARDS:
            if scored.title_similarity > title_above and scored.artist_similarity < artist_below:
                if is_various_artists(track):
                    self._debug(f"🎵 {label}: allowing 'Various Artists' compilation match '{track.title}' by '{track.artist}' "
                                f"(title: {scored.title_similarity:.3f} > {title_above}, artist: {scored.artist_similarity:.3f} < {artist_below})")
                    return False
                self._debug(f"🚫 {label}: rejecting '{track.title}' by '{track.artist}' "
                            f"(title: {scored.title_similarity:.3f} > {title_above}, artist: {scored.artist_similarity:.3f} < {artist_below})")
                return True
        return False

    def _select(self, scored_candidates, title: str, artist: str, label: str) -> Optional[CandidateTrack]:
        best: Optional[ScoredCandidate] = None
        for scored in scored_candidates:
            track = scored.candidate
            self._debug(f"   Combined score for '{track.title}' by '{track.artist}': {scored.combined_score:.3f} "
                        f"(title: {scored.title_similarity:.3f}, artist: {scored.artist_similarity:.3f})")

            if self._rejected(scored, label):
                continue

            best_score = best.combined_score if best else 0.0
            if scored.combined_score > best_score:
                self._debug(f"📈 {label}: new best match '{track.title}' by '{track.artist}' "
                            f"(score: {scored.combined_score:.3f} > {best_score:.3f})")
                best = scored
            elif best and scored.combined_score == best_score and scored.artist_similarity > best.artist_similarity:
                self._debug(f"🎯 {label}: tie-breaker, '{track.title}' by '{track.artist}' wins "
                            f"(better artist: {scored.artist_similarity:.3f} > {best.artist_similarity:.3f})")
                best = scored
            else:
                self._debug(f"⏭️  {label}: skipping '{track.title}' by '{track.artist}' (score: {scored.combined_score:.3f})")

            if scored.title_similarity == 1.0 and scored.artist_similarity == 1.0:
                self._debug(f"🎯 {label}: perfect match found '{track.title}' by '{track.artist}'")
                return track

        if best and best.combined_score >= MIN_CONFIDENCE_SCORE:
            self.log(f"✅ {label}: returning match '{best.candidate.title}' by '{best.candidate.artist}' "
                     f"(score: {best.combined_score:.3f} >= {MIN_CONFIDENCE_SCORE}) for search '{title}' by '{artist}'")
            return best.candidate

        best_score = best.combined_score if best else 0.0
        self._debug(f"❌ {label}: no match found (best score: {best_score:.3f} < {MIN_CONFIDENCE_SCORE}) "
                    f"for search '{title}' by '{artist}'")
        return None

    def find_best_match(self, candidates: Sequence[CandidateTrack], title: str, artist: str) -> Optional[CandidateTrack]:
        """
        Return the candidate that best matches the raw Spotify title/artist, or None.

        An exact (case-insensitive, trimmed) title and artist match wins outright.
        Otherwise every candidate is scored over normalizer variants, implausible
        title-only matches are rejected, and the best combined score is returned
        if it reaches MIN_CONFIDENCE_SCORE.
        """
        if not candidates:
            return None

        label = "FindBestMatch"
        target = SearchTarget(title=title, artist=artist)
        title_lower = _clean(title)
        artist_lower = _clean(artist)
        self._debug(f"🔍 {label}: searching for '{title}' by '{artist}' among {len(candidates)} tracks")

        for track in candidates:
            if _clean(track.title) == title_lower and _clean(track.artist) == artist_lower:
                self._debug(f"✅ {label}: exact match found '{track.title}' by '{track.artist}'")
                return track

        scored = (self.score_candidate(target, track) for track in candidates)
        return self._select(scored, title, artist, label)

    def find_best_match_with_normalized_punctuation(self, candidates: Sequence[CandidateTrack], title: str,
                                                    artist: str) -> Optional[CandidateTrack]:
        """Narrower pass: punctuation-normalize both sides, then compare without variant expansion"""
        if not candidates:
            return None

        label = "FindBestMatchWithNormalizedPunctuation"
        title_lower = _clean(normalize_punctuation(title))
        artist_lower = _clean(normalize_punctuation(artist))
        self._debug(f"🔍 {label}: searching for '{title_lower}' by '{artist_lower}' among {len(candidates)} tracks")

        normalized: List[ScoredCandidate] = []
        for track in candidates:
            track_title = _clean(normalize_punctuation(track.title))
            track_artist = _clean(normalize_punctuation(track.artist))
            if track_title == title_lower and track_artist == artist_lower:
                self._debug(f"✅ {label}: exact match found '{track.title}' by '{track.artist}'")
                return track
            title_similarity = string_similarity(title_lower, track_title)
            artist_similarity = string_similarity(artist_lower, track_artist)
            normalized.append(ScoredCandidate(
                candidate=track,
                title_similarity=title_similarity,
                artist_similarity=artist_similarity,
                combined_score=combined_score(title_similarity, artist_similarity),
            ))

        return self._select(normalized, title, artist, label)

    def match(self, candidates: Sequence[CandidateTrack], target: SearchTarget,
              normalized_punctuation: bool = False) -> MatchOutcome:
        if normalized_punctuation:
            track = self.find_best_match_with_normalized_punctuation(candidates, target.title, target.artist)
        else:
            track = self.find_best_match(candidates, target.title, target.artist)
        if track is None:
            return MatchOutcome(track=None, match_type=MATCH_TYPE_NONE)
        return MatchOutcome(track=track, match_type=MATCH_TYPE_TITLE_ARTIST)

    def confidence(self, target: SearchTarget, candidate: Optional[CandidateTrack]) -> float:
        return confidence(target, candidate)
