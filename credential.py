import os
from typing import Dict, List, Optional

from dotenv import load_dotenv, find_dotenv
from pydantic import BaseModel

# All sensitive values must be set in .env file or the environment (no hardcoded secrets)

# Load .env if it exists; variables already in the environment win
dotenv_path = find_dotenv(usecwd=True)
if dotenv_path:
    load_dotenv(dotenv_path)

SECTION_ID_PLACEHOLDER = "your_music_library_section_id"
DEFAULT_MUSIC_LIBRARY = "Music"


class Config(BaseModel):
    spotify_client_id: str = ""
    spotify_client_secret: str = ""
    spotify_username: str = ""
    spotify_playlist_ids: List[str] = []
    plex_url: str = ""
    plex_token: str = ""
    plex_library_section_id: int = 0
    plex_music_library: str = DEFAULT_MUSIC_LIBRARY


def parse_comma_separated_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_library_section_id(value: Optional[str]) -> int:
    """'0', empty and the .env template placeholder all mean 'not set'"""
    if not value or value.strip() in ("0", SECTION_ID_PLACEHOLDER):
        return 0
    try:
        return int(value.strip())
    except ValueError:
        raise RuntimeError(f"Invalid PLEX_LIBRARY_SECTION_ID '{value}': must be a number")


def _env(*keys: str) -> str:
    for key in keys:
        value = os.getenv(key, "")
        if value:
            return value
    return ""


def read_settings() -> Dict[str, str]:
    """Raw settings from the environment, keyed by their canonical variable names"""
    return {
        "SPOTIFY_CLIENT_ID": _env("SPOTIFY_CLIENT_ID", "SPOTIPY_CLIENT_ID"),
        "SPOTIFY_CLIENT_SECRET": _env("SPOTIFY_CLIENT_SECRET", "SPOTIPY_CLIENT_SECRET"),
        "SPOTIFY_USERNAME": _env("SPOTIFY_USERNAME"),
        "SPOTIFY_PLAYLIST_ID": _env("SPOTIFY_PLAYLIST_ID"),
        "PLEX_URL": _env("PLEX_URL"),
        "PLEX_TOKEN": _env("PLEX_TOKEN"),
        "PLEX_LIBRARY_SECTION_ID": _env("PLEX_LIBRARY_SECTION_ID"),
        "PLEX_MUSIC_LIBRARY": _env("PLEX_MUSIC_LIBRARY"),
    }


def validate_config(config: Config, require_playlists: bool = True) -> List[str]:
    problems = []
    if not config.spotify_client_id or not config.spotify_client_secret:
        problems.append("SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET must be set in .env")
    if not config.plex_url or not config.plex_token:
        problems.append("PLEX_URL and PLEX_TOKEN must be set in .env")
    if require_playlists and not config.spotify_username and not config.spotify_playlist_ids:
        problems.append("Either SPOTIFY_USERNAME or SPOTIFY_PLAYLIST_ID must be provided "
                        "(set in .env or with --username / --playlists)")
    return problems


def load_config(overrides: Optional[Dict[str, str]] = None, require_playlists: bool = True) -> Config:
    """
    Build the Config from .env / the environment, then apply CLI overrides.

    Overrides use the environment variable names; empty values are ignored.
    Every validation problem is reported in a single RuntimeError.
    """
    settings = read_settings()
    for key, value in (overrides or {}).items():
        if value:
            settings[key] = value

    config = Config(
        spotify_client_id=settings["SPOTIFY_CLIENT_ID"],
        spotify_client_secret=settings["SPOTIFY_CLIENT_SECRET"],
        spotify_username=settings["SPOTIFY_USERNAME"],
        spotify_playlist_ids=parse_comma_separated_list(settings["SPOTIFY_PLAYLIST_ID"]),
        plex_url=settings["PLEX_URL"],
        plex_token=settings["PLEX_TOKEN"],
        plex_library_section_id=parse_library_section_id(settings["PLEX_LIBRARY_SECTION_ID"]),
        plex_music_library=settings["PLEX_MUSIC_LIBRARY"] or DEFAULT_MUSIC_LIBRARY,
    )

    problems = validate_config(config, require_playlists)
    if problems:
        raise RuntimeError("Configuration validation failed:\n" + "\n".join(f"  - {p}" for p in problems))
    return config
