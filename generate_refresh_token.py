#!/usr/bin/env python3
"""
Generate the Spotify refresh token used by sync.py.

Requires SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET (environment or .env).
The redirect URI registered for the app must match SPOTIFY_REDIRECT_URI
(default: http://127.0.0.1:8888/callback).
"""

import sys
from pathlib import Path

# Add package root to path
sys.path.insert(0, str(Path(__file__).parent))

from liked_mirror.auth_helper import main


if __name__ == '__main__':
    main()
