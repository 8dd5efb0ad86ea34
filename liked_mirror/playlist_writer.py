"""Rewriting the mirror playlist in ordered batches."""

from typing import Callable, List

from liked_mirror import spotify_client
from liked_mirror.transport import SpotifyApiError, Transport
from liked_mirror.utils.logger import get_logger


PLAYLIST_WRITE_BATCH_SIZE = 100

# Substrings of Spotify 400 messages that point at a single bad URI
PER_TRACK_AVAILABILITY_MARKERS = (
    'not available',
    'unavailable',
    'not found',
    'invalid track uri',
    'invalid base62',
)


class WriteResult:
    """Outcome of rewriting a playlist."""

    def __init__(self, mirrored_count: int = 0, write_skipped_count: int = 0):
        self.mirrored_count = mirrored_count
        self.write_skipped_count = write_skipped_count

    def __repr__(self) -> str:
        return f"WriteResult(mirrored_count={self.mirrored_count}, write_skipped_count={self.write_skipped_count})"


def chunk(items: List, size: int) -> List[List]:
    """Split `items` into consecutive lists of at most `size` elements."""
    if size <= 0:
        raise ValueError("chunk size must be positive")
    return [items[i:i + size] for i in range(0, len(items), size)]


def should_fallback_to_single_writes(error: Exception) -> bool:
    return isinstance(error, SpotifyApiError) and error.status == 400


def is_per_track_availability_error(error: Exception) -> bool:
    """
    Classify a 400 on a single-URI write as "this track can't be added".

    Spotify only reports this in free text, so the check matches substrings
    of the message.
    """
    if not isinstance(error, SpotifyApiError) or error.status != 400:
        return False

    message = error.message.lower()
    return any(marker in message for marker in PER_TRACK_AVAILABILITY_MARKERS)


def clear_playlist(transport: Transport, playlist_id: str, access_token: str) -> None:
    """Empty the playlist; an already-empty playlist is not an error."""
    spotify_client.replace_playlist_items(transport, playlist_id, [], access_token)


def append_in_batches(
    transport: Transport,
    playlist_id: str,
    uris: List[str],
    access_token: str,
    logger=None
) -> WriteResult:
    """
    Append `uris` batch by batch, in order. Any failure aborts the write.
    """
    logger = logger or get_logger()
    batches = chunk(uris, PLAYLIST_WRITE_BATCH_SIZE)
    logger.info(f"Stage: writing {len(batches)} chunks.")

    mirrored_count = 0
    for index, batch in enumerate(batches, 1):
        logger.info(f"Stage: writing chunk {index}/{len(batches)} size={len(batch)}.")
        spotify_client.add_playlist_items(transport, playlist_id, batch, access_token)
        mirrored_count += len(batch)

    return WriteResult(mirrored_count=mirrored_count)


def append_with_fallback(
    transport: Transport,
    playlist_id: str,
    uris: List[str],
    access_token: str,
    logger=None
) -> WriteResult:
    """
    Append `uris` in batches, degrading to one-by-one writes for a batch
    rejected with 400.

    During the one-by-one pass, URIs rejected as unavailable are skipped and
    counted; every other error aborts the write.
    """
    logger = logger or get_logger()
    batches = chunk(uris, PLAYLIST_WRITE_BATCH_SIZE)
    result = WriteResult()

    logger.info(f"Writing playlist in {len(batches)} chunks of up to {PLAYLIST_WRITE_BATCH_SIZE}.")

    for index, batch in enumerate(batches, 1):
        logger.info(
            f"Writing chunk {index}/{len(batches)} size={len(batch)} "
            f"mirroredSoFar={result.mirrored_count}"
        )

        try:
            spotify_client.add_playlist_items(transport, playlist_id, batch, access_token)
            result.mirrored_count += len(batch)
            continue
        except SpotifyApiError as e:
            if not should_fallback_to_single_writes(e):
                raise
            logger.warning(
                f"Chunk add failed for {len(batch)} tracks with status 400. "
                f"Falling back to single-track writes."
            )

        for uri in batch:
            try:
                spotify_client.add_playlist_items(transport, playlist_id, [uri], access_token)
                result.mirrored_count += 1
            except SpotifyApiError as e:
                if not is_per_track_availability_error(e):
                    raise
                result.write_skipped_count += 1
                logger.warning(f"Skipping unavailable track URI: {uri}")

    return result


def replace_all(
    transport: Transport,
    playlist_id: str,
    uris: List[str],
    access_token: str,
    fallback_single_writes: bool = False,
    logger=None,
    on_cleared: Callable[[], None] = None
) -> WriteResult:
    """
    Make the playlist contain exactly `uris`, in order.

    Args:
        transport: Spotify transport
        playlist_id: Mirror playlist ID
        uris: Ordered track URIs
        access_token: Bearer token
        fallback_single_writes: Retry 400-rejected batches one URI at a time
        logger: Logger with info/warning/error methods
        on_cleared: Called once the playlist is empty, before any append

    Returns:
        WriteResult
    """
    logger = logger or get_logger()

    logger.info("Stage: clearing mirror playlist.")
    clear_playlist(transport, playlist_id, access_token)
    if on_cleared:
        on_cleared()

    logger.info("Stage: appending tracks to mirror playlist.")
    if fallback_single_writes:
        return append_with_fallback(transport, playlist_id, uris, access_token, logger=logger)
    return append_in_batches(transport, playlist_id, uris, access_token, logger=logger)
