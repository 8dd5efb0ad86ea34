"""
One-time helper that obtains a Spotify refresh token for the mirror sync.

Runs the authorization code flow in the browser, captures the callback on the
local redirect URI and prints the refresh token to store as
SPOTIFY_REFRESH_TOKEN.
"""

import secrets
import sys
from typing import Dict

from spotipy.cache_handler import MemoryCacheHandler
from spotipy.oauth2 import SpotifyOAuth

from liked_mirror.utils.config import load_auth_config
from liked_mirror.utils.logger import get_logger


logger = get_logger()

SCOPE = "user-library-read playlist-modify-public user-read-private"


class AuthHelperError(Exception):
    """Exception raised when no refresh token could be obtained."""
    pass


def build_auth_manager(client_id: str, client_secret: str, redirect_uri: str) -> SpotifyOAuth:
    """Create an OAuth manager that keeps tokens in memory and checks a random callback state."""
    return SpotifyOAuth(
        client_id=client_id,
        client_secret=client_secret,
        redirect_uri=redirect_uri,
        scope=SCOPE,
        state=secrets.token_hex(16),
        open_browser=True,
        cache_handler=MemoryCacheHandler()
    )


def obtain_refresh_token(auth_manager: SpotifyOAuth) -> str:
    """
    Run the authorization code flow and return the refresh token.

    Raises:
        AuthHelperError: If Spotify returned no refresh token
    """
    logger.info("Opening Spotify authorization URL in your browser...")
    logger.info("If it does not open automatically, use this URL:\n")
    logger.info(auth_manager.get_authorize_url())

    code = auth_manager.get_authorization_code()
    auth_manager.get_access_token(code, as_dict=False, check_cache=False)

    token_info: Dict = auth_manager.cache_handler.get_cached_token() or {}
    refresh_token = token_info.get('refresh_token')
    if not refresh_token:
        raise AuthHelperError("Spotify token response did not include refresh_token.")

    return refresh_token


def main():
    """Main entry point for the authorization helper."""
    try:
        settings = load_auth_config()
        auth_manager = build_auth_manager(
            settings['client_id'],
            settings['client_secret'],
            settings['redirect_uri']
        )
        refresh_token = obtain_refresh_token(auth_manager)

        logger.info("\nRefresh token generated successfully. Add this to your secrets:")
        logger.info("SPOTIFY_REFRESH_TOKEN=")
        logger.info(refresh_token)
        sys.exit(0)

    except KeyboardInterrupt:
        logger.info("\n\nAuthorization interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Auth helper failed: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
