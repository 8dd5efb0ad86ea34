"""Unit tests for candidate URI selection."""

from liked_mirror.selection import is_skippable_track, select_candidate_uris


def item(track):
    return {'added_at': '2026-01-01T00:00:00Z', 'track': track}


class TestIsSkippableTrack:
    """Test cases for is_skippable_track."""

    def test_missing_track(self):
        assert is_skippable_track(None)

    def test_empty_uri(self):
        assert is_skippable_track({'id': '1', 'uri': ''})

    def test_local_track(self):
        assert is_skippable_track({'id': '1', 'uri': 'spotify:local:x', 'is_local': True})

    def test_unplayable_track(self):
        assert is_skippable_track({'id': '1', 'uri': 'spotify:track:1', 'is_playable': False})

    def test_playable_flags(self):
        assert not is_skippable_track({'id': '1', 'uri': 'spotify:track:1'})
        assert not is_skippable_track({'id': '1', 'uri': 'spotify:track:1', 'is_playable': None})
        assert not is_skippable_track({'id': '1', 'uri': 'spotify:track:1', 'is_playable': True, 'is_local': False})


class TestSelectCandidateUris:
    """Test cases for select_candidate_uris."""

    def test_skips_and_dedupes(self):
        """Test local, unplayable and missing tracks are skipped, duplicates dropped."""
        result = select_candidate_uris([
            item({'id': '1', 'uri': '1'}),
            item({'id': '2', 'uri': '2', 'is_local': True}),
            item({'id': '3', 'uri': '3', 'is_playable': False}),
            item(None),
            item({'id': '1', 'uri': '1'}),
        ])

        assert result.uris == ['1']
        assert result.liked_count == 5
        assert result.skipped_count == 3
        assert result.duplicate_count == 1

    def test_keeps_first_seen_order(self):
        """Test the first occurrence of each URI keeps its position."""
        result = select_candidate_uris([
            item({'id': 'c', 'uri': 'spotify:track:c'}),
            item({'id': 'a', 'uri': 'spotify:track:a'}),
            item({'id': 'c', 'uri': 'spotify:track:c'}),
            item({'id': 'b', 'uri': 'spotify:track:b'}),
            item({'id': 'a', 'uri': 'spotify:track:a'}),
        ])

        assert result.uris == ['spotify:track:c', 'spotify:track:a', 'spotify:track:b']
        assert result.skipped_count == 0
        assert result.liked_count == 5

    def test_counts_add_up(self):
        """Test liked = candidates + skipped + duplicates."""
        listing = [
            item({'id': str(i % 7), 'uri': f"spotify:track:{i % 7}", 'is_playable': i % 5 != 0})
            for i in range(40)
        ] + [item(None)] * 3

        result = select_candidate_uris(listing)

        assert result.liked_count == len(listing)
        assert result.duplicate_count >= 0
        assert result.liked_count == len(result.uris) + result.skipped_count + result.duplicate_count
        assert len(set(result.uris)) == len(result.uris)

    def test_empty_listing(self):
        result = select_candidate_uris([])

        assert result.uris == []
        assert result.liked_count == 0
        assert result.skipped_count == 0

    def test_record_without_track_key(self):
        result = select_candidate_uris([{'added_at': '2026-01-01T00:00:00Z'}])

        assert result.uris == []
        assert result.skipped_count == 1
