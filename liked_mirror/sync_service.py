"""Synchronization service mirroring Spotify liked songs into a public playlist."""

import argparse
import sys
from typing import Dict, Optional, Tuple

from liked_mirror import playlist_writer, spotify_client
from liked_mirror.selection import select_candidate_uris
from liked_mirror.state_store import StateStore
from liked_mirror.transport import Transport
from liked_mirror.utils.config import AppConfig, load_config
from liked_mirror.utils.logger import get_logger, setup_logger


# Pass stages, in order
START = 'START'
TOKEN_REFRESHED = 'TOKEN_REFRESHED'
IDENTITY_RESOLVED = 'IDENTITY_RESOLVED'
COLLECTION_RESOLVED = 'COLLECTION_RESOLVED'
LISTING_FETCHED = 'LISTING_FETCHED'
CANDIDATES_SELECTED = 'CANDIDATES_SELECTED'
COLLECTION_CLEARED = 'COLLECTION_CLEARED'
ITEMS_WRITTEN = 'ITEMS_WRITTEN'
DONE = 'DONE'

STAGES = (
    START,
    TOKEN_REFRESHED,
    IDENTITY_RESOLVED,
    COLLECTION_RESOLVED,
    LISTING_FETCHED,
    CANDIDATES_SELECTED,
    COLLECTION_CLEARED,
    ITEMS_WRITTEN,
    DONE,
)


def build_initial_playlist_name(display_name: Optional[str], fallback_name: str) -> str:
    """Name the mirror after the user, or use the fallback for a blank name."""
    trimmed = (display_name or '').strip()
    if not trimmed:
        return fallback_name
    return f"{trimmed}'s Liked Songs"


class SyncSummary:
    """Counts reported at the end of a pass."""

    def __init__(
        self,
        playlist_id: str,
        created_playlist: bool,
        liked_count: int,
        candidate_count: int,
        mirrored_count: int,
        skipped_count: int
    ):
        self.playlist_id = playlist_id
        self.created_playlist = created_playlist
        self.liked_count = liked_count
        self.candidate_count = candidate_count
        self.mirrored_count = mirrored_count
        self.skipped_count = skipped_count

    def to_dict(self) -> Dict:
        """Convert summary to dictionary."""
        return {
            'playlist_id': self.playlist_id,
            'created_playlist': self.created_playlist,
            'liked_count': self.liked_count,
            'candidate_count': self.candidate_count,
            'mirrored_count': self.mirrored_count,
            'skipped_count': self.skipped_count
        }

    def log_line(self) -> str:
        return " ".join([
            "Sync complete.",
            f"playlistId={self.playlist_id}",
            f"createdPlaylist={str(self.created_playlist).lower()}",
            f"likedCount={self.liked_count}",
            f"candidateCount={self.candidate_count}",
            f"mirroredCount={self.mirrored_count}",
            f"skippedCount={self.skipped_count}",
        ])


class LikedSongsMirrorService:
    """Runs one reconciliation pass of the liked songs mirror."""

    def __init__(self, transport: Transport, config: AppConfig, logger=None):
        """
        Initialize mirror service.

        Args:
            transport: Spotify transport
            config: Loaded settings
            logger: Logger with info/warning/error methods
        """
        self.transport = transport
        self.config = config
        self.logger = logger or get_logger()
        self.stage = START

    def _advance(self, stage: str) -> None:
        expected = STAGES[STAGES.index(self.stage) + 1]
        if stage != expected:
            raise RuntimeError(f"Invalid stage transition {self.stage} -> {stage}")
        self.stage = stage

    def _resolve_playlist(self, stored_playlist_id: Optional[str], display_name: Optional[str],
                          access_token: str) -> Tuple[str, bool]:
        if stored_playlist_id:
            self.logger.info(f"Stage: checking existing playlist (playlistId={stored_playlist_id}).")
            existing = spotify_client.get_playlist(
                self.transport, stored_playlist_id, access_token, logger=self.logger
            )
            if existing:
                self.logger.info(f"Stage: existing playlist confirmed (playlistId={stored_playlist_id}).")
                return stored_playlist_id, False

            self.logger.warning(
                f"Stored playlist ID {stored_playlist_id} was not found. Creating a new mirror playlist."
            )

        playlist_name = build_initial_playlist_name(display_name, self.config.fallback_playlist_name)
        self.logger.info(f"Stage: creating mirror playlist ({playlist_name}).")
        created = spotify_client.create_public_playlist(self.transport, playlist_name, access_token)

        self.logger.info(f"Created mirror playlist: {playlist_name} ({created['id']})")
        if created['external_url']:
            self.logger.info(f"Playlist URL: {created['external_url']}")

        return created['id'], True

    def sync(self, state: Dict) -> Tuple[SyncSummary, Dict]:
        """
        Mirror the liked songs into the playlist recorded in `state`.

        Args:
            state: Persisted state ({'playlist_id': str or None})

        Returns:
            Tuple of (SyncSummary, next_state)

        Raises:
            SpotifyApiError: If any Spotify call fails; the pass is aborted
        """
        self.stage = START

        self.logger.info("Stage: refreshing access token.")
        access_token = spotify_client.refresh_access_token(
            self.transport,
            self.config.client_id,
            self.config.client_secret,
            self.config.refresh_token
        )
        self._advance(TOKEN_REFRESHED)
        self.logger.info("Stage: access token acquired.")

        self.logger.info("Stage: fetching current user.")
        current_user = spotify_client.get_current_user(self.transport, access_token)
        self._advance(IDENTITY_RESOLVED)
        self.logger.info(f"Stage: current user fetched (userId={current_user.get('id')}).")

        self.logger.info("Stage: resolving mirror playlist.")
        playlist_id, created_playlist = self._resolve_playlist(
            state.get('playlist_id'), current_user.get('display_name'), access_token
        )
        self._advance(COLLECTION_RESOLVED)

        self.logger.info("Stage: fetching liked tracks.")
        liked_tracks = spotify_client.fetch_all_liked_tracks(
            self.transport, access_token, logger=self.logger
        )
        self._advance(LISTING_FETCHED)

        self.logger.info("Stage: selecting candidate URIs.")
        candidates = select_candidate_uris(liked_tracks)
        self._advance(CANDIDATES_SELECTED)
        self.logger.info(
            f"Stage: selected candidates likedCount={candidates.liked_count} "
            f"candidateCount={len(candidates.uris)} skippedCount={candidates.skipped_count}"
        )

        write_result = playlist_writer.replace_all(
            self.transport,
            playlist_id,
            candidates.uris,
            access_token,
            fallback_single_writes=self.config.fallback_single_writes,
            logger=self.logger,
            on_cleared=lambda: self._advance(COLLECTION_CLEARED)
        )
        self._advance(ITEMS_WRITTEN)

        summary = SyncSummary(
            playlist_id=playlist_id,
            created_playlist=created_playlist,
            liked_count=candidates.liked_count,
            candidate_count=len(candidates.uris),
            mirrored_count=write_result.mirrored_count,
            skipped_count=candidates.skipped_count + write_result.write_skipped_count
        )
        self._advance(DONE)

        return summary, {'playlist_id': playlist_id}


def sync_liked_songs_mirror(transport: Transport, config: AppConfig, state: Dict,
                            logger=None) -> Tuple[SyncSummary, Dict]:
    """Run one reconciliation pass. See LikedSongsMirrorService.sync()."""
    return LikedSongsMirrorService(transport, config, logger=logger).sync(state)


def run(config: AppConfig, logger=None, transport: Transport = None) -> SyncSummary:
    """
    Read state, run a pass and persist the playlist ID if it changed.

    Returns:
        SyncSummary of the pass
    """
    logger = logger or get_logger()
    transport = transport or Transport(logger=logger)

    store = StateStore(config.state_file_path)
    state = store.read()

    summary, next_state = sync_liked_songs_mirror(transport, config, state, logger=logger)

    if state.get('playlist_id') != next_state['playlist_id']:
        store.write(next_state)
        logger.info(f"Updated {config.state_file_path} with mirror playlist ID.")

    logger.info(summary.log_line())
    return summary


def main():
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="Mirror Spotify liked songs into a public playlist"
    )
    parser.add_argument(
        '--log-file',
        type=str,
        default=None,
        help='Path to log file (optional)'
    )
    parser.add_argument(
        '--state-file',
        type=str,
        default=None,
        help='Path to state file (default: STATE_FILE_PATH or state/state.json)'
    )
    parser.add_argument(
        '--fallback-single-writes',
        action='store_true',
        help='Retry rejected batches one track at a time, skipping unavailable tracks'
    )

    args = parser.parse_args()
    logger = setup_logger(log_file=args.log_file)

    try:
        config = load_config()
        if args.state_file:
            config.state_file_path = args.state_file
        if args.fallback_single_writes:
            config.fallback_single_writes = True

        run(config, logger=logger)
        sys.exit(0)

    except KeyboardInterrupt:
        logger.error("Sync interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Sync failed: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
