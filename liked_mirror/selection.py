"""Selection of the track URIs to mirror from a liked tracks listing."""

from typing import Dict, List, Optional


class CandidateSet:
    """Ordered, de-duplicated URIs plus the counts behind them."""

    def __init__(self, uris: List[str], liked_count: int, skipped_count: int):
        self.uris = uris
        self.liked_count = liked_count
        self.skipped_count = skipped_count

    @property
    def duplicate_count(self) -> int:
        return self.liked_count - len(self.uris) - self.skipped_count

    def __repr__(self) -> str:
        return (
            f"CandidateSet(candidates={len(self.uris)}, liked_count={self.liked_count}, "
            f"skipped_count={self.skipped_count})"
        )


def is_skippable_track(track: Optional[Dict]) -> bool:
    """
    A track cannot be mirrored when it is missing, has no URI, is a local
    file or is explicitly flagged as not playable. A missing is_playable
    flag counts as playable.
    """
    return (
        not track
        or not track.get('uri')
        or track.get('is_local') is True
        or track.get('is_playable') is False
    )


def select_candidate_uris(liked_tracks: List[Dict]) -> CandidateSet:
    """
    Pick the URIs to write to the mirror playlist.

    The first occurrence of each URI wins and listing order is kept.
    Duplicates are dropped without being counted as skipped.

    Args:
        liked_tracks: Saved track items, newest first

    Returns:
        CandidateSet
    """
    seen_uris = set()
    uris = []
    skipped_count = 0

    for item in liked_tracks:
        track = item.get('track')
        if is_skippable_track(track):
            skipped_count += 1
            continue

        uri = track['uri']
        if uri in seen_uris:
            continue

        seen_uris.add(uri)
        uris.append(uri)

    return CandidateSet(
        uris=uris,
        liked_count=len(liked_tracks),
        skipped_count=skipped_count
    )
