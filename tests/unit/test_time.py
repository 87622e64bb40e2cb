import pytest

from apps.api.app.core.time import day_key, start_of_next_local_day

# 2024-05-01T00:00:00Z
MIDNIGHT_UTC = 1714521600
HOUR = 3600
DAY = 86400

OFFSETS = [-720, -330, -60, 0, 60, 345, 540, 840]


def test_day_key_utc_boundaries():
    assert day_key(MIDNIGHT_UTC, 0) == "2024-05-01"
    assert day_key(MIDNIGHT_UTC - 1, 0) == "2024-04-30"
    assert day_key(MIDNIGHT_UTC + DAY - 1, 0) == "2024-05-01"


def test_day_key_follows_offset():
    assert day_key(MIDNIGHT_UTC - 1, 60) == "2024-05-01"
    assert day_key(MIDNIGHT_UTC, -60) == "2024-04-30"
    assert day_key(MIDNIGHT_UTC + 10 * HOUR, 840) == "2024-05-02"
    assert day_key(MIDNIGHT_UTC + 11 * HOUR, -720) == "2024-04-30"
    assert day_key(MIDNIGHT_UTC + 12 * HOUR, -720) == "2024-05-01"


def test_day_key_before_epoch():
    assert day_key(-1, 0) == "1969-12-31"
    assert day_key(0, -1) == "1969-12-31"


def test_day_key_handles_leap_day():
    feb_29 = MIDNIGHT_UTC - 62 * DAY
    assert day_key(feb_29, 0) == "2024-02-29"
    assert day_key(feb_29 + DAY, 0) == "2024-03-01"


def test_start_of_next_local_day_at_exact_midnight():
    assert start_of_next_local_day(MIDNIGHT_UTC, 0) == MIDNIGHT_UTC + DAY
    assert start_of_next_local_day(MIDNIGHT_UTC + 12 * HOUR, 60) == MIDNIGHT_UTC + DAY - HOUR


@pytest.mark.parametrize("tz", OFFSETS)
def test_start_of_next_local_day_is_next_local_midnight(tz):
    for step in range(0, 2 * DAY, 17 * 60 + 13):
        ts = MIDNIGHT_UTC + step
        nxt = start_of_next_local_day(ts, tz)
        assert ts < nxt <= ts + DAY
        assert day_key(nxt - 1, tz) == day_key(ts, tz)
        assert day_key(nxt, tz) != day_key(ts, tz)


@pytest.mark.parametrize("tz", OFFSETS)
def test_day_key_monotonic_and_changes_once_per_day(tz):
    start = start_of_next_local_day(MIDNIGHT_UTC, tz)
    keys = [day_key(start + minute * 60, tz) for minute in range(0, 3 * 24 * 60)]
    assert keys == sorted(keys)
    assert len(set(keys)) == 3
    changes = sum(1 for a, b in zip(keys, keys[1:]) if a != b)
    assert changes == 2
