import datetime as dt
import time

SECONDS_PER_DAY = 86400
_EPOCH_DATE = dt.date(1970, 1, 1)


def now_ts() -> int:
    return int(time.time())


def _local_day_number(ts: int, tz_offset_min: int) -> int:
    # Days since 1970-01-01 in the offset's local time; floor division keeps
    # pre-epoch and negative offsets on the right date.
    return (int(ts) + int(tz_offset_min) * 60) // SECONDS_PER_DAY


def day_key(ts: int, tz_offset_min: int) -> str:
    """Local calendar date (YYYY-MM-DD) of ``ts`` under a fixed UTC offset."""
    day = _EPOCH_DATE + dt.timedelta(days=_local_day_number(ts, tz_offset_min))
    return day.isoformat()


def start_of_next_local_day(ts: int, tz_offset_min: int) -> int:
    """Epoch seconds of local midnight that starts the day after ``ts``."""
    next_day = _local_day_number(ts, tz_offset_min) + 1
    return next_day * SECONDS_PER_DAY - int(tz_offset_min) * 60
