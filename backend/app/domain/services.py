import calendar
import re
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Mapping, Optional

from ..models import ReservationStatus
from .errors import InvalidStatusError, StateConflictError, ValidationError

VALID_FIELDS = frozenset(
    {
        "first_name",
        "last_name",
        "mobile_number",
        "reservation_date",
        "reservation_time",
        "people",
        "status",
        "created_at",
        "updated_at",
        "reservation_id",
    }
)
REQUIRED_FIELDS = (
    "first_name",
    "last_name",
    "mobile_number",
    "reservation_date",
    "reservation_time",
    "people",
)
TEXT_FIELDS = ("first_name", "last_name", "mobile_number", "reservation_date", "reservation_time")
# Only reachable through the status endpoint
STAFF_ONLY_STATUSES = frozenset({ReservationStatus.SEATED, ReservationStatus.FINISHED})

_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")
_TIME_PATTERN = re.compile(r"\d{2}:\d{2}(:\d{2})?")
# Characters a stored mobile_number may carry besides digits; search strips exactly these
PHONE_SEPARATORS = "() -.+/"
_PHONE_CHARS = r"[\d" + re.escape(PHONE_SEPARATORS) + "]"
_PHONE_PATTERN = re.compile(_PHONE_CHARS + r"*\d" + _PHONE_CHARS + "*")


@dataclass(frozen=True)
class BusinessHours:
    opens_at: time = time(10, 30)
    closes_at: time = time(22, 30)
    last_seating_minutes: int = 60
    closed_weekdays: frozenset[int] = field(default_factory=lambda: frozenset({calendar.TUESDAY}))
    timezone: str = "UTC"

    @property
    def last_seating(self) -> time:
        closing = datetime.combine(date(2000, 1, 1), self.closes_at)
        return (closing - timedelta(minutes=self.last_seating_minutes)).time()


@dataclass(frozen=True)
class ReservationDraft:
    first_name: str
    last_name: str
    mobile_number: str
    people: int
    reservation_date: date
    reservation_time: time
    status: ReservationStatus = ReservationStatus.BOOKED

    def as_fields(self) -> dict[str, Any]:
        return asdict(self)


def check_known_fields(payload: Mapping[str, Any]) -> None:
    invalid = [name for name in payload if name not in VALID_FIELDS]
    if invalid:
        raise ValidationError(f"Invalid field(s): {', '.join(invalid)}")


def check_required_fields(payload: Mapping[str, Any]) -> None:
    for name in REQUIRED_FIELDS:
        if not payload.get(name):
            raise ValidationError(f"Must include a {name}")
    for name in TEXT_FIELDS:
        if not isinstance(payload[name], str):
            raise ValidationError(f"{name} must be text")


def parse_reservation_date(value: str) -> date:
    message = "the reservation_date must be a valid date in the format 'YYYY-MM-DD'"
    if not _DATE_PATTERN.fullmatch(value):
        raise ValidationError(message)
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise ValidationError(message) from exc


def parse_reservation_time(value: str) -> time:
    message = "the reservation_time must be a valid time in the format 'HH:MM'"
    match = _TIME_PATTERN.fullmatch(value)
    if match is None:
        raise ValidationError(message)
    fmt = "%H:%M:%S" if match.group(1) else "%H:%M"
    try:
        return datetime.strptime(value, fmt).time()
    except ValueError as exc:
        raise ValidationError(message) from exc


def check_not_in_past(reservation_date: date, reservation_time: time, *, now: datetime) -> None:
    if datetime.combine(reservation_date, reservation_time) < now:
        raise ValidationError(
            "The date and time cannot be in the past. "
            f"Please select a future date. Today is {now:%Y-%m-%d %H:%M}."
        )


def check_open_day(reservation_date: date, hours: BusinessHours) -> None:
    weekday = reservation_date.weekday()
    if weekday in hours.closed_weekdays:
        raise ValidationError(
            f"The restaurant is closed on {calendar.day_name[weekday]}s. Please select a different day."
        )


def check_opening_hours(reservation_time: time, hours: BusinessHours) -> None:
    if reservation_time < hours.opens_at:
        raise ValidationError(f"The restaurant does not open until {hours.opens_at:%H:%M}.")
    if reservation_time >= hours.last_seating:
        raise ValidationError(
            f"The restaurant closes at {hours.closes_at:%H:%M}. Please schedule your reservation "
            f"at least {hours.last_seating_minutes} minutes before close."
        )


def check_mobile_number(value: str) -> None:
    if not _PHONE_PATTERN.fullmatch(value):
        raise ValidationError(
            "the mobile_number may only contain digits and the separators " + repr(PHONE_SEPARATORS)
        )


def parse_people(value: Any) -> int:
    # bool is an int subclass; JSON true must not count as one guest
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError("Invalid number of people")
    return value


def parse_status(value: Any) -> ReservationStatus:
    try:
        return ReservationStatus(value)
    except ValueError as exc:
        raise InvalidStatusError(f'Invalid status: "{value}"') from exc


def check_client_status(value: Any) -> ReservationStatus:
    """Status a client may set on create/update. Missing means booked."""
    if not value:
        return ReservationStatus.BOOKED
    status = parse_status(value)
    if status in STAFF_ONLY_STATUSES:
        raise ValidationError(f"status is {status}")
    return status


def validate_reservation_payload(
    payload: Mapping[str, Any],
    *,
    now: datetime,
    hours: Optional[BusinessHours] = None,
) -> ReservationDraft:
    """
    Run the create/update checks in order and stop at the first failure.
    `now` is naive restaurant-local time. Returns the typed draft on success.
    """
    hours = hours or BusinessHours()
    check_known_fields(payload)
    check_required_fields(payload)
    check_mobile_number(payload["mobile_number"])
    reservation_date = parse_reservation_date(payload["reservation_date"])
    reservation_time = parse_reservation_time(payload["reservation_time"])
    check_not_in_past(reservation_date, reservation_time, now=now)
    check_open_day(reservation_date, hours)
    check_opening_hours(reservation_time, hours)
    people = parse_people(payload["people"])
    status = check_client_status(payload.get("status"))
    return ReservationDraft(
        first_name=payload["first_name"],
        last_name=payload["last_name"],
        mobile_number=payload["mobile_number"],
        people=people,
        reservation_date=reservation_date,
        reservation_time=reservation_time,
        status=status,
    )


def require_reservation_id(reservation_id: Optional[int]) -> int:
    if not reservation_id:
        raise ValidationError("missing reservation_id")
    return reservation_id


def require_status(payload: Mapping[str, Any]) -> ReservationStatus:
    value = payload.get("status")
    if value is None or value == "":
        raise ValidationError("Must include a status")
    return parse_status(value)


def ensure_editable(status: ReservationStatus) -> None:
    """Full edits are only allowed while the party has not been seated or closed out."""
    if status != ReservationStatus.BOOKED:
        raise StateConflictError(f"Reservation status: '{status}'.")


def digits_only(value: str) -> str:
    return re.sub(r"\D", "", value)
