import sys

import click

from credential import load_config
from main import configure_logging, setup_clients, sync_playlists

__version__ = "1.0.0"

WELCOME = r'''
============================================
  Plexify: Spotify → Plex Music playlists
============================================
Matches the tracks of your Spotify playlists against your Plex music
library and creates or updates a Plex playlist for each one.
'''

NO_PLAYLISTS = '''
❌ No playlists to process!
Please provide either:
  - SPOTIFY_USERNAME in .env (or --username) to sync every public playlist of a user
  - SPOTIFY_PLAYLIST_ID in .env (or --playlists) with comma-separated playlist IDs or URLs

Example:
  plexify --username your_spotify_username
  plexify --playlists 37i9dQZF1DXcBWIGoYBM5M,37i9dQZF1DXcBWIGoYBM5N
  plexify --debug --playlists 37i9dQZF1DXcBWIGoYBM5M  # with matching details
'''

EXIT_OK = 0
EXIT_NO_PLAYLISTS = 1
EXIT_CONFIG_ERROR = 2
EXIT_CLIENT_ERROR = 3


@click.command()
@click.option('--playlists', help='Comma-separated Spotify playlist IDs or URLs (overrides SPOTIFY_PLAYLIST_ID)')
@click.option('--username', help='Spotify username whose public playlists are synced (overrides SPOTIFY_USERNAME)')
@click.option('--debug', is_flag=True, help='Show detailed matching and similarity information')
@click.version_option(__version__, '--version', prog_name='Plexify')
def cli(playlists, username, debug):
    """Sync Spotify playlists into a Plex music library."""
    configure_logging(debug)
    click.echo(WELCOME)

    try:
        config = load_config({"SPOTIFY_PLAYLIST_ID": playlists, "SPOTIFY_USERNAME": username})
    except RuntimeError as e:
        click.echo(click.style(str(e), fg='red'), err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    try:
        clients = setup_clients(config)
    except Exception as e:
        click.echo(click.style(f"Failed to set up Spotify/Plex clients: {e}", fg='red'), err=True)
        sys.exit(EXIT_CLIENT_ERROR)

    try:
        processed = sync_playlists(config, clients, verbose=debug)
    except KeyboardInterrupt:
        click.echo("\nOperation cancelled by user.")
        sys.exit(EXIT_OK)
    except ValueError as e:
        click.echo(click.style(f"\nAn error occurred: {e}", fg='red'), err=True)
        sys.exit(EXIT_CLIENT_ERROR)

    if not processed:
        click.echo(NO_PLAYLISTS)
        sys.exit(EXIT_NO_PLAYLISTS)


if __name__ == "__main__":
    cli()
