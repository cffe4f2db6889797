from datetime import UTC, datetime, timedelta, timezone

from fitnext.app.core.time import as_utc, utc_now


def test_utc_now_is_timezone_aware_utc():
    value = utc_now()
    assert value.tzinfo is UTC


def test_as_utc_attaches_or_converts_timezone():
    naive = datetime(2030, 1, 1, 9, 0)
    assert as_utc(naive) == datetime(2030, 1, 1, 9, 0, tzinfo=UTC)
    plus_two = datetime(2030, 1, 1, 11, 0, tzinfo=timezone(timedelta(hours=2)))
    assert as_utc(plus_two).hour == 9
    assert as_utc(None) is None
