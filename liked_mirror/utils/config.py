"""Configuration loader reading settings from the environment (and .env)."""

import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from dotenv import load_dotenv


DEFAULT_FALLBACK_PLAYLIST_NAME = "Liked Songs Mirror"
DEFAULT_REDIRECT_URI = "http://127.0.0.1:8888/callback"
TRUTHY_VALUES = ('1', 'true', 'yes', 'on')


class ConfigurationError(Exception):
    """Exception raised when required settings are missing."""
    pass


class AppConfig:
    """Settings for one mirror sync pass."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        fallback_playlist_name: str = DEFAULT_FALLBACK_PLAYLIST_NAME,
        state_file_path: Optional[str] = None,
        fallback_single_writes: bool = False
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.fallback_playlist_name = fallback_playlist_name
        self.state_file_path = state_file_path or default_state_file_path()
        self.fallback_single_writes = fallback_single_writes

    def __repr__(self) -> str:
        # Secrets stay out of logs
        return (
            f"AppConfig(client_id={self.client_id!r}, "
            f"fallback_playlist_name={self.fallback_playlist_name!r}, "
            f"state_file_path={self.state_file_path!r}, "
            f"fallback_single_writes={self.fallback_single_writes})"
        )


def default_state_file_path() -> str:
    return str(Path.cwd() / "state" / "state.json")


def _read(env: Mapping[str, str], name: str) -> str:
    return (env.get(name) or '').strip()


def _require(env: Mapping[str, str], names: List[str]) -> Dict[str, str]:
    values = {name: _read(env, name) for name in names}
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigurationError(
            f"Missing required environment variable(s): {', '.join(missing)}"
        )
    return values


def load_config(env_file: str = None, env: Mapping[str, str] = None) -> AppConfig:
    """
    Load sync settings.

    Args:
        env_file: Optional .env file to load before reading the environment
        env: Mapping to read instead of os.environ (no .env loading when given)

    Returns:
        AppConfig instance

    Raises:
        ConfigurationError: If any required setting is missing or blank
    """
    if env is None:
        load_dotenv(env_file)
        env = os.environ

    required = _require(env, [
        'SPOTIFY_CLIENT_ID',
        'SPOTIFY_CLIENT_SECRET',
        'SPOTIFY_REFRESH_TOKEN'
    ])

    return AppConfig(
        client_id=required['SPOTIFY_CLIENT_ID'],
        client_secret=required['SPOTIFY_CLIENT_SECRET'],
        refresh_token=required['SPOTIFY_REFRESH_TOKEN'],
        fallback_playlist_name=_read(env, 'FALLBACK_PLAYLIST_NAME') or DEFAULT_FALLBACK_PLAYLIST_NAME,
        state_file_path=_read(env, 'STATE_FILE_PATH') or None,
        fallback_single_writes=_read(env, 'SPOTIFY_FALLBACK_SINGLE_WRITES').lower() in TRUTHY_VALUES
    )


def load_auth_config(env_file: str = None, env: Mapping[str, str] = None) -> Dict[str, str]:
    """
    Load the settings needed by the one-time authorization helper.

    Returns:
        Dictionary with keys client_id, client_secret, redirect_uri

    Raises:
        ConfigurationError: If client id or secret is missing
    """
    if env is None:
        load_dotenv(env_file)
        env = os.environ

    required = _require(env, ['SPOTIFY_CLIENT_ID', 'SPOTIFY_CLIENT_SECRET'])

    return {
        'client_id': required['SPOTIFY_CLIENT_ID'],
        'client_secret': required['SPOTIFY_CLIENT_SECRET'],
        'redirect_uri': _read(env, 'SPOTIFY_REDIRECT_URI') or DEFAULT_REDIRECT_URI
    }
