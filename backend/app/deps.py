import calendar
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .database import async_session
from .domain.services import BusinessHours
from .utils.time import parse_clock_time

_WEEKDAYS = {name.lower(): index for index, name in enumerate(calendar.day_name)}


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


def parse_closed_days(value: str) -> frozenset[int]:
    days = set()
    for raw in value.split(","):
        name = raw.strip().lower()
        if not name:
            continue
        if name not in _WEEKDAYS:
            raise ValueError(f"unknown weekday in CLOSED_DAYS: {raw!r}")
        days.add(_WEEKDAYS[name])
    return frozenset(days)


def get_business_hours() -> BusinessHours:
    settings = get_settings()
    return BusinessHours(
        opens_at=parse_clock_time(settings.opening_time),
        closes_at=parse_clock_time(settings.closing_time),
        last_seating_minutes=settings.last_seating_minutes,
        closed_weekdays=parse_closed_days(settings.closed_days),
        timezone=settings.restaurant_timezone,
    )
