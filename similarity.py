"""
Similarity scoring between Spotify-sourced text and Plex library metadata.

string_similarity() is the single primitive; everything else runs it over
normalizer variants of a title or artist and keeps the best score.
"""
from collections import Counter
from typing import Callable, Iterator, Optional, Sequence, Tuple

from text_normalizers import (
    remove_brackets,
    remove_featuring,
    normalize_title,
    remove_with,
    remove_common_suffixes,
    normalize_punctuation,
    normalize_accents,
)

TITLE_WEIGHT = 0.7
ARTIST_WEIGHT = 0.3

Normalizer = Tuple[str, Callable[[str], str]]

# Variants used by confidence()
CONFIDENCE_TITLE_NORMALIZERS: Sequence[Normalizer] = (
    ("brackets", remove_brackets),
    ("featuring", remove_featuring),
    ("normalized", normalize_title),
    ("with", remove_with),
    ("suffixes", remove_common_suffixes),
    ("accents", normalize_accents),
)

# The match selector also tries punctuation on titles
SELECTOR_TITLE_NORMALIZERS: Sequence[Normalizer] = (
    ("brackets", remove_brackets),
    ("featuring", remove_featuring),
    ("normalized", normalize_title),
    ("with", remove_with),
    ("suffixes", remove_common_suffixes),
    ("punctuation", normalize_punctuation),
    ("accents", normalize_accents),
)

ARTIST_NORMALIZERS: Sequence[Normalizer] = (
    ("punctuation", normalize_punctuation),
    ("accents", normalize_accents),
    ("featuring", remove_featuring),
)


def _clean(s: str) -> str:
    return s.strip().lower()


def string_similarity(s1: str, s2: str) -> float:
    """
    Score two strings in [0, 1].

    Checked in order: equality (1.0), an empty side (0.0), containment
    (shorter/longer length ratio), a side with no words (0.0), then
    0.7 * word overlap + 0.3 * length similarity. Callers lowercase and
    trim beforehand.
    """
    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    if s1 in s2 or s2 in s1:
        shorter, longer = sorted((len(s1), len(s2)))
        return shorter / longer

    words1 = s1.split()
    words2 = s2.split()
    if not words1 or not words2:
        return 0.0

    # each word can be matched once
    common = sum((Counter(words1) & Counter(words2)).values())
    word_overlap = common / max(len(words1), len(words2))

    max_len = max(len(s1), len(s2))
    length_similarity = 1.0 - abs(len(s1) - len(s2)) / max_len

    return 0.7 * word_overlap + 0.3 * length_similarity


def combined_score(title_similarity: float, artist_similarity: float) -> float:
    return TITLE_WEIGHT * title_similarity + ARTIST_WEIGHT * artist_similarity


def similarity_variants(a: str, b: str, normalizers: Sequence[Normalizer]) -> Iterator[Tuple[str, float]]:
    """Yield (label, score) for the raw pair and then for each normalizer applied to both sides."""
    yield "original", string_similarity(_clean(a), _clean(b))
    for label, normalizer in normalizers:
        yield label, string_similarity(_clean(normalizer(a)), _clean(normalizer(b)))


def best_similarity(a: str, b: str, normalizers: Sequence[Normalizer]) -> float:
    return max(score for _, score in similarity_variants(a, b, normalizers))


def confidence(target, candidate: Optional[object]) -> float:
    """
    Diagnostic confidence between a SearchTarget and a CandidateTrack.

    Used for reports; it does not apply the match selector's guard rules.
    No candidate scores 0.0.
    """
    if candidate is None:
        return 0.0
    title_similarity = best_similarity(target.title, candidate.title, CONFIDENCE_TITLE_NORMALIZERS)
    artist_similarity = best_similarity(target.artist, candidate.artist, ARTIST_NORMALIZERS)
    return combined_score(title_similarity, artist_similarity)
