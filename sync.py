#!/usr/bin/env python3
"""
Spotify Liked Songs Mirror

Runs one sync pass: the mirror playlist is rewritten to match your liked
songs, newest first. Safe to run on a schedule.
"""

import sys
from pathlib import Path

# Add package root to path
sys.path.insert(0, str(Path(__file__).parent))

from liked_mirror.sync_service import main


if __name__ == '__main__':
    main()
