"""Unit tests for the mirror playlist writer."""

import pytest
from unittest.mock import Mock

from liked_mirror import playlist_writer
from liked_mirror.playlist_writer import (
    chunk,
    is_per_track_availability_error,
    replace_all,
)
from liked_mirror.transport import ClientRequestError, UpstreamUnavailableError


ITEMS_URL = 'https://api.spotify.com/v1/playlists/p1/items'


def uris(count, start=0):
    return [f"spotify:track:{i}" for i in range(start, start + count)]


def written_batches(transport):
    """Return the uris of every POST made through the mock transport."""
    return [
        c[1]['body']['uris']
        for c in transport.execute.call_args_list
        if c[0][0] == 'POST'
    ]


@pytest.fixture
def transport():
    """Create a mock transport."""
    return Mock()


class TestChunk:
    """Test cases for chunk."""

    def test_exact_and_remainder(self):
        assert chunk([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]

    def test_empty(self):
        assert chunk([], 100) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            chunk([1], 0)


class TestIsPerTrackAvailabilityError:
    """Test cases for is_per_track_availability_error."""

    @pytest.mark.parametrize('message', [
        'Track not available in market',
        'Resource Unavailable',
        'Not found.',
        'Invalid track uri: spotify:track:x',
        'Invalid base62 id',
    ])
    def test_availability_messages(self, message):
        assert is_per_track_availability_error(ClientRequestError(400, message))

    def test_other_400(self):
        assert not is_per_track_availability_error(ClientRequestError(400, 'Too many ids requested'))

    def test_other_status(self):
        assert not is_per_track_availability_error(ClientRequestError(403, 'Not available'))
        assert not is_per_track_availability_error(ValueError('not available'))


class TestReplaceAll:
    """Test cases for replace_all."""

    def test_clears_then_appends_in_order(self, transport):
        """Test the playlist is emptied first and batches of 100 follow in order."""
        transport.execute.return_value = None
        ordered = uris(250)

        result = replace_all(transport, 'p1', ordered, 'tok', logger=Mock())

        first = transport.execute.call_args_list[0]
        assert first[0] == ('PUT', ITEMS_URL)
        assert first[1]['body'] == {'uris': []}

        batches = written_batches(transport)
        assert [len(b) for b in batches] == [100, 100, 50]
        assert sum(batches, []) == ordered
        assert result.mirrored_count == 250
        assert result.write_skipped_count == 0

    def test_on_cleared_runs_between_clear_and_append(self, transport):
        """Test the cleared callback fires after the PUT and before any POST."""
        transport.execute.return_value = None
        seen = []

        replace_all(
            transport, 'p1', uris(150), 'tok', logger=Mock(),
            on_cleared=lambda: seen.append(transport.execute.call_count)
        )

        assert seen == [1]
        assert transport.execute.call_count == 3

    def test_empty_candidate_list_only_clears(self, transport):
        transport.execute.return_value = None

        result = replace_all(transport, 'p1', [], 'tok', logger=Mock())

        assert transport.execute.call_count == 1
        assert result.mirrored_count == 0

    def test_already_empty_playlist(self, transport):
        """Test a 403 on the clear call does not stop the write."""
        transport.execute.side_effect = [ClientRequestError(403, "Forbidden"), None]

        result = replace_all(transport, 'p1', uris(1), 'tok', logger=Mock())

        assert result.mirrored_count == 1

    def test_failure_aborts_by_default(self, transport):
        """Test a failed batch aborts the rewrite without fallback."""
        transport.execute.side_effect = [
            None,
            None,
            ClientRequestError(400, "Invalid base62 id"),
        ]

        with pytest.raises(ClientRequestError):
            replace_all(transport, 'p1', uris(250), 'tok', logger=Mock())

        assert transport.execute.call_count == 3

    def test_fallback_skips_unavailable_tracks(self, transport):
        """Test a rejected batch is retried one URI at a time when enabled."""
        bad = 'spotify:track:1'

        def execute(method, url, body=None, bearer=None):
            if method == 'POST' and len(body['uris']) > 1:
                raise ClientRequestError(400, "Payload contains a non-existing ID")
            if method == 'POST' and body['uris'] == [bad]:
                raise ClientRequestError(400, "Track not available")
            return None

        transport.execute.side_effect = execute

        result = replace_all(transport, 'p1', uris(3), 'tok', fallback_single_writes=True, logger=Mock())

        assert result.mirrored_count == 2
        assert result.write_skipped_count == 1
        singles = [b for b in written_batches(transport) if len(b) == 1]
        assert singles == [['spotify:track:0'], ['spotify:track:1'], ['spotify:track:2']]

    def test_fallback_reraises_other_single_errors(self, transport):
        """Test single-write errors that are not availability problems abort."""
        def execute(method, url, body=None, bearer=None):
            if method == 'POST' and len(body['uris']) > 1:
                raise ClientRequestError(400, "bad batch")
            if method == 'POST':
                raise ClientRequestError(400, "Too many requests in body")
            return None

        transport.execute.side_effect = execute

        with pytest.raises(ClientRequestError, match="Too many requests in body"):
            replace_all(transport, 'p1', uris(2), 'tok', fallback_single_writes=True, logger=Mock())

    def test_fallback_not_used_for_server_errors(self, transport):
        transport.execute.side_effect = [None, UpstreamUnavailableError(503, "down")]

        with pytest.raises(UpstreamUnavailableError):
            replace_all(transport, 'p1', uris(2), 'tok', fallback_single_writes=True, logger=Mock())

    def test_fallback_keeps_clean_batches_whole(self, transport):
        transport.execute.return_value = None

        result = playlist_writer.append_with_fallback(transport, 'p1', uris(150), 'tok', logger=Mock())

        assert [len(b) for b in written_batches(transport)] == [100, 50]
        assert result.mirrored_count == 150
