"""Unit tests for timestamp utilities."""

from datetime import datetime, timedelta, timezone

from site_scheduler.utils.timestamps import ensure_utc, utc_now


class TestUtcNow:
    """Tests for utc_now function."""

    def test_utc_now_returns_aware_utc_datetime(self):
        assert utc_now().tzinfo == timezone.utc

    def test_utc_now_is_recent(self):
        before = datetime.now(timezone.utc)
        now = utc_now()
        after = datetime.now(timezone.utc)

        assert before <= now <= after


class TestEnsureUtc:
    """Tests for ensure_utc function."""

    def test_none_passes_through(self):
        assert ensure_utc(None) is None

    def test_naive_datetime_is_taken_as_utc(self):
        """SQLite hands back naive values for timezone-aware columns."""
        result = ensure_utc(datetime(2026, 5, 1, 12, 30))

        assert result == datetime(2026, 5, 1, 12, 30, tzinfo=timezone.utc)

    def test_utc_datetime_is_unchanged(self):
        dt = datetime(2026, 5, 1, 12, 30, tzinfo=timezone.utc)

        assert ensure_utc(dt) == dt

    def test_other_timezone_is_converted(self):
        eastern = timezone(timedelta(hours=-5))

        result = ensure_utc(datetime(2026, 5, 1, 7, 30, tzinfo=eastern))

        assert result.tzinfo == timezone.utc
        assert result.hour == 12
