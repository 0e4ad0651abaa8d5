"""
String normalizers used when comparing Spotify track names against Plex metadata.

Every function here is a pure str -> str transform. A string without the
pattern a normalizer looks for comes back unchanged, so they can be applied
blindly to both sides of a comparison.
"""
import re

_BRACKET_PATTERNS = (
    re.compile(r'\([^)]*\)'),
    re.compile(r'\[[^\]]*\]'),
    re.compile(r'\{[^}]*\}'),
)
_WHITESPACE = re.compile(r'\s+')

FEATURING_PATTERNS = (
    " featuring ",
    " feat. ",
    " feat ",
    " ft. ",
    " ft ",
)

_WITH_WORD = re.compile(r'\bwith\b', re.IGNORECASE)

_SUFFIX_WORDS = (
    "bonus track",
    "remix",
    "extended",
    "radio edit",
    "single edit",
    "edit",
    "version",
    "live",
    "acoustic",
    "instrumental",
    "demo",
    "original mix",
    "club mix",
    "clean",
    "explicit",
    "bonus",
    "track",
    "remastered",
)

COMMON_SUFFIXES = (
    tuple(f" - {word}" for word in _SUFFIX_WORDS)
    + (
        " - from the motion picture",
        " - from the film",
        " - from the movie",
        " - from the soundtrack",
        " - soundtrack version",
        " - film version",
        " - movie version",
    )
    + tuple(f" ({word})" for word in _SUFFIX_WORDS)
    + (
        " (from the soundtrack)",
        " (soundtrack version)",
        " (film version)",
        " (movie version)",
    )
)
_SUFFIX_PATTERNS = tuple(re.compile(re.escape(suffix) + r'$', re.IGNORECASE) for suffix in COMMON_SUFFIXES)

_YEAR_REMASTERED_PATTERNS = (
    re.compile(r'\s*-?\s*\d{4}\s+remastered\s*$', re.IGNORECASE),
    re.compile(r'\s*\(\s*\d{4}\s+remastered\s*\)\s*$', re.IGNORECASE),
)

# Film/show names inside these can be anything, so they are found anywhere in the title
SOUNDTRACK_PATTERNS = (
    " - from the motion picture",
    " - from the film",
    " - from the movie",
    " - love theme from",
    "(from the motion picture",
    "(from the film",
    "(from the movie",
    "(love theme from",
)
_SOUNDTRACK_PATTERNS = tuple(re.compile(re.escape(pattern), re.IGNORECASE) for pattern in SOUNDTRACK_PATTERNS)
_SOUNDTRACK_ATTRIBUTION = re.compile(r'(?:\s+-\s*|\s*\(\s*)from\s+.*?\bsoundtrack\s*\)?\s*$', re.IGNORECASE)

_PUNCTUATION_TABLE = str.maketrans({
    "‐": "-",  # hyphen
    "–": "-",  # en dash
    "—": "-",  # em dash
    "―": "-",  # horizontal bar
    "×": "x",  # multiplication sign, "Chloe × Halle"
    "‘": "'",
    "’": "'",
    "`": "'",
    "′": "'",
    "“": '"',
    "”": '"',
    "…": "...",
})

_ACCENTS = {
    'a': 'áàâãäåāăą',
    'b': 'ḅḃ',
    'c': 'çćĉċč',
    'd': 'ḏďđ',
    'e': 'éèêëēĕėę',
    'g': 'ğģġ',
    'h': 'ḫĥħ',
    'i': 'íìîïīĭį',
    'k': 'ḳḵ',
    'l': 'łĺļľḷḹ',
    'm': 'ṁṃ',
    'n': 'ñńņňṅṇ',
    'o': 'óòôõöøōŏő',
    'p': 'ṗṕ',
    'r': 'řŕŗ',
    's': 'śŝşšṡṣ',
    't': 'ṯťţṫṭ',
    'u': 'úùûüūŭůűṻṳ',
    'v': 'ṽṿ',
    'w': 'ẁẃẅẇẉ',
    'x': 'ẋẍ',
    'y': 'ýÿŷỳỹỷ',
    'z': 'źżžẑẓẕ',
}


def _build_accent_table():
    table = {}
    for base, accented in _ACCENTS.items():
        for ch in accented:
            table[ord(ch)] = base
            upper = ch.upper()
            if len(upper) == 1 and upper != ch:
                table[ord(upper)] = base.upper()
    return table


_ACCENT_TABLE = _build_accent_table()


def _collapse_whitespace(s: str) -> str:
    return _WHITESPACE.sub(' ', s).strip()


def _strip_trailing_dash(s: str) -> str:
    s = s.strip()
    if s.endswith('-'):
        s = s[:-1].strip()
    return s


def remove_brackets(s: str) -> str:
    """Drop (...), [...] and {...} spans: 'Song (feat. X) [Remix]' -> 'Song'"""
    for pattern in _BRACKET_PATTERNS:
        s = pattern.sub('', s)
    return _collapse_whitespace(s)


def remove_featuring(s: str) -> str:
    """
    Cut the string at the last featuring credit.

    Patterns are tried in FEATURING_PATTERNS order; the first pattern present
    wins and the string is truncated at its last occurrence.
    """
    for pattern in FEATURING_PATTERNS:
        matches = list(re.finditer(re.escape(pattern), s, re.IGNORECASE))
        if matches:
            return s[:matches[-1].start()].strip()
    return s


def remove_with(s: str) -> str:
    """
    Strip a 'with <artist>' credit.

    A leading 'with ' is dropped; otherwise the string is cut before the last
    whole-word 'with' that is not the final word ('without'/'within' never match).
    'Neon Moon - with Kacey Musgraves' -> 'Neon Moon'
    """
    if s.lower().startswith("with ") and s[5:].strip():
        return _strip_trailing_dash(s[5:])

    matches = list(_WITH_WORD.finditer(s))
    if matches:
        last = matches[-1]
        if last.end() < len(s.rstrip()):
            return _strip_trailing_dash(s[:last.start()])
    return s


def normalize_title(s: str) -> str:
    """Lowercase and turn every ' - ' segment into a parenthesised one: 'A - B - C' -> 'a (b) (c)'"""
    s = s.lower()
    parts = s.split(" - ")
    if len(parts) > 1:
        s = parts[0] + ''.join(f" ({part.strip()})" for part in parts[1:])
    return _collapse_whitespace(s)


def remove_common_suffixes(s: str) -> str:
    """
    Remove one edit/mix/version or soundtrack suffix from a track title.

    Only the first rule that applies is used, checked in this order: the fixed
    suffix list, year-remastered patterns, soundtrack attributions found
    anywhere past the start, and finally '- from ... Soundtrack'.
    'the lakes - bonus track' -> 'the lakes'
    """
    for pattern in _SUFFIX_PATTERNS:
        match = pattern.search(s)
        if match:
            return _strip_trailing_dash(s[:match.start()])

    for pattern in _YEAR_REMASTERED_PATTERNS:
        match = pattern.search(s)
        if match:
            return _strip_trailing_dash(s[:match.start()])

    for pattern in _SOUNDTRACK_PATTERNS:
        match = pattern.search(s)
        if match and match.start() > 0:
            return _strip_trailing_dash(s[:match.start()])

    match = _SOUNDTRACK_ATTRIBUTION.search(s)
    if match and match.start() > 0:
        return _strip_trailing_dash(s[:match.start()])

    return s


def normalize_punctuation(s: str) -> str:
    """Map typographic dashes, quotes, '×' and '…' to their ASCII forms"""
    return s.translate(_PUNCTUATION_TABLE)


def normalize_accents(s: str) -> str:
    """Fold Latin diacritics to base letters ('Mötley Crüe' -> 'Motley Crue'); other scripts are untouched"""
    return s.translate(_ACCENT_TABLE)
