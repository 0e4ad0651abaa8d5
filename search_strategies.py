"""
Ordered search strategies for finding a Spotify track in a Plex library.

Each strategy is a pure (title, artist) -> [(query_title, query_artist), ...]
function. The searcher walks them in order and stops at the first strategy
whose queries produce an accepted match.
"""
from typing import Callable, List, NamedTuple, Tuple

from text_normalizers import (
    remove_brackets,
    remove_featuring,
    normalize_title,
    remove_with,
    remove_common_suffixes,
    normalize_accents,
)

QueryVariant = Tuple[str, str]


class SearchStrategy(NamedTuple):
    name: str
    variants: Callable[[str, str], List[QueryVariant]]
    library_scan: bool = False


class PlannedQuery(NamedTuple):
    strategy: str
    title: str
    artist: str
    library_scan: bool = False


# contraction -> expansions, tried after the plain quote swaps
_CONTRACTIONS = (
    ("n't", (" not",)),
    ("'t", (" not",)),
    ("'s", (" is", "s")),
    ("'re", (" are",)),
    ("'ll", (" will",)),
    ("'ve", (" have",)),
    ("'d", (" would", " had")),
)


def single_quote_variations(title: str) -> List[str]:
    """Spellings of a title with an apostrophe: 'Don't Stop' -> 'Dont Stop', 'Don`t Stop', 'Do not Stop', ..."""
    if "'" not in title:
        return [title]
    variations = [
        title,
        title.replace("'", ""),
        title.replace("'", "`"),
        title.replace("'", "′"),
        title.replace("'", "’"),
    ]
    for contraction, expansions in _CONTRACTIONS:
        if contraction in title:
            variations.extend(title.replace(contraction, expansion) for expansion in expansions)
    return [variation for variation in variations if variation]


def _exact(title, artist):
    return [(title, artist)]


def _single_quotes(title, artist):
    if "'" not in title and "'" not in artist:
        return []
    return [(variation, artist) for variation in single_quote_variations(title)]


def _title_variant(normalizer):
    def variants(title, artist):
        changed = normalizer(title)
        return [(changed, artist)] if changed != title else []
    return variants


def _artist_featuring(title, artist):
    changed = remove_featuring(artist)
    return [(title, changed)] if changed != artist else []


def _accents(title, artist):
    accent_title = normalize_accents(title)
    accent_artist = normalize_accents(artist)
    if accent_title != title or accent_artist != artist:
        return [(accent_title, accent_artist)]
    return []


STRATEGIES = (
    SearchStrategy("exact title/artist", _exact),
    SearchStrategy("single quote variations", _single_quotes),
    SearchStrategy("brackets removed", _title_variant(remove_brackets)),
    SearchStrategy("featuring removed", _title_variant(remove_featuring)),
    SearchStrategy("artist featuring removed", _artist_featuring),
    SearchStrategy("normalized title", _title_variant(normalize_title)),
    SearchStrategy("with removed", _title_variant(remove_with)),
    SearchStrategy("suffixes removed", _title_variant(remove_common_suffixes)),
    SearchStrategy("accent normalization", _accents),
    SearchStrategy("full library search", _exact, library_scan=True),
)


def plan_search_variants(title: str, artist: str, strategies=STRATEGIES) -> List[PlannedQuery]:
    """
    Flatten the strategies into the ordered list of queries to run.

    A query already planned by an earlier strategy is not repeated; the
    library scan is always kept since it does not depend on the query text.
    """
    planned = []
    seen = set()
    for strategy in strategies:
        if strategy.library_scan:
            planned.append(PlannedQuery(strategy.name, title, artist, library_scan=True))
            continue
        for query_title, query_artist in strategy.variants(title, artist):
            key = (query_title, query_artist)
            if not query_title or key in seen:
                continue
            seen.add(key)
            planned.append(PlannedQuery(strategy.name, query_title, query_artist))
    return planned
