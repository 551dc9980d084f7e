from datetime import datetime, time
from zoneinfo import ZoneInfo


def local_now(tz_name: str) -> datetime:
    """Current wall-clock time at the restaurant, as a naive datetime."""
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)


def parse_clock_time(value: str) -> time:
    return datetime.strptime(value.strip(), "%H:%M").time()
