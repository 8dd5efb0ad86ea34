"""Spotify Web API calls used by the liked songs mirror."""

from typing import Dict, List, Optional

from liked_mirror.transport import NotFoundError, SpotifyApiError, Transport
from liked_mirror.utils.logger import get_logger


SPOTIFY_API_BASE = "https://api.spotify.com/v1"
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
LIKED_TRACKS_PAGE_SIZE = 50
MIRROR_PLAYLIST_DESCRIPTION = "Mirror of liked songs (auto-synced)"


def refresh_access_token(
    transport: Transport,
    client_id: str,
    client_secret: str,
    refresh_token: str
) -> str:
    """
    Exchange the long-lived refresh token for a fresh access token.

    Args:
        transport: Spotify transport
        client_id: Spotify application client ID
        client_secret: Spotify application client secret
        refresh_token: Refresh token from the authorization helper

    Returns:
        Access token string

    Raises:
        SpotifyApiError: If the exchange fails or returns no access token
    """
    payload = transport.execute(
        'POST',
        SPOTIFY_TOKEN_URL,
        form={
            'grant_type': 'refresh_token',
            'refresh_token': refresh_token,
            'client_id': client_id,
            'client_secret': client_secret
        }
    )

    access_token = (payload or {}).get('access_token')
    if not access_token:
        raise SpotifyApiError(None, "Spotify token response did not include access_token")

    return access_token


def get_current_user(transport: Transport, access_token: str) -> Dict:
    """Return the profile ({'id', 'display_name', ...}) of the token's owner."""
    return transport.execute('GET', f"{SPOTIFY_API_BASE}/me", bearer=access_token)


def get_playlist(transport: Transport, playlist_id: str, access_token: str, logger=None) -> Optional[Dict]:
    """
    Check whether a playlist still exists.

    Returns:
        {'id': ...} if the playlist resolves, None if Spotify answers 404
    """
    logger = logger or get_logger()
    logger.info(f"Checking playlist existence for playlistId={playlist_id}.")

    try:
        return transport.execute(
            'GET',
            f"{SPOTIFY_API_BASE}/playlists/{playlist_id}?fields=id",
            bearer=access_token
        )
    except NotFoundError:
        return None


def create_public_playlist(transport: Transport, name: str, access_token: str) -> Dict:
    """
    Create a public playlist owned by the current user.

    Returns:
        Dict with keys: id, external_url (None if Spotify sent none)
    """
    response = transport.execute(
        'POST',
        f"{SPOTIFY_API_BASE}/me/playlists",
        body={
            'name': name,
            'public': True,
            'description': MIRROR_PLAYLIST_DESCRIPTION
        },
        bearer=access_token
    )

    external_urls = response.get('external_urls') or {}
    return {
        'id': response['id'],
        'external_url': external_urls.get('spotify')
    }


def fetch_all_liked_tracks(transport: Transport, access_token: str, logger=None) -> List[Dict]:
    """
    Fetch every saved track of the current user.

    The offset advances by the number of items actually returned so short
    pages are tolerated. Upstream order (newest liked first) is kept as is.

    Args:
        transport: Spotify transport
        access_token: Bearer token

    Returns:
        List of saved track items ({'added_at': ..., 'track': {...} or None})
    """
    logger = logger or get_logger()

    results = []
    offset = 0
    total = None

    while total is None or len(results) < total:
        page = transport.execute(
            'GET',
            f"{SPOTIFY_API_BASE}/me/tracks?limit={LIKED_TRACKS_PAGE_SIZE}&offset={offset}",
            bearer=access_token
        ) or {}

        items = page.get('items') or []
        total = page.get('total') or 0
        logger.info(
            f"Fetched liked tracks page offset={page.get('offset', offset)} "
            f"items={len(items)} collected={len(results)}/{total}"
        )

        if not items:
            break

        results.extend(items)
        offset += len(items)

    logger.info(f"Completed liked tracks fetch. collected={len(results)} total={total}")
    return results


def replace_playlist_items(transport: Transport, playlist_id: str, uris: List[str], access_token: str) -> None:
    """
    Replace the playlist contents with `uris`.

    Spotify may answer 403 when clearing a playlist that is already empty;
    that case is treated as success.
    """
    try:
        transport.execute(
            'PUT',
            f"{SPOTIFY_API_BASE}/playlists/{playlist_id}/items",
            body={'uris': uris},
            bearer=access_token
        )
    except SpotifyApiError as e:
        if not uris and e.status == 403:
            return
        raise


def add_playlist_items(transport: Transport, playlist_id: str, uris: List[str], access_token: str) -> None:
    """Append `uris` to the end of the playlist."""
    transport.execute(
        'POST',
        f"{SPOTIFY_API_BASE}/playlists/{playlist_id}/items",
        body={'uris': uris},
        bearer=access_token
    )
