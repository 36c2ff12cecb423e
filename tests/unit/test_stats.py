"""Unit tests for consumer stats."""

from streaming_api.errors import ErrorKind
from streaming_api.observability.stats import ConsumerStats


class TestConsumerStats:
    def test_record_error_counts_by_kind(self):
        stats = ConsumerStats()
        stats.record_error(ErrorKind.TRANSPORT, RuntimeError("reset"))
        stats.record_error(ErrorKind.COMMIT, RuntimeError("409"))
        stats.record_error(ErrorKind.TRANSPORT, RuntimeError("refused"))

        assert stats.errors[ErrorKind.TRANSPORT] == 2
        assert stats.errors[ErrorKind.COMMIT] == 1
        assert stats.consecutive_failures == 3
        assert stats.last_error == "refused"

    def test_as_dict(self):
        stats = ConsumerStats(commits=4, last_stream_id="s-1")
        stats.record_error(ErrorKind.PROCESSING, ValueError("bad"))
        data = stats.as_dict()
        assert data["commits"] == 4
        assert data["last_stream_id"] == "s-1"
        assert data["errors"] == {"processing": 1}
