from datetime import date, datetime, time, timezone
from typing import Any, cast

import pytest
from app.domain.services import BusinessHours
from app.models import Reservation, ReservationStatus
from app.routers import reservations as router
from app.schemas import ReservationEnvelope, ReservationResponse
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession


class DummySession:
    """Minimal async session stub that supports `async with session.begin()`."""

    async def __aenter__(self) -> "DummySession":
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> bool:
        return False

    def begin(self) -> "DummySession":
        return self


def _reservation(status: ReservationStatus = ReservationStatus.BOOKED) -> Reservation:
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return Reservation(
        reservation_id=100,
        first_name="Birdperson",
        last_name="Phoenix",
        mobile_number="555-0100",
        people=2,
        reservation_date=date(2030, 6, 10),
        reservation_time=time(19, 0),
        status=status,
        created_at=now,
        updated_at=now,
    )


class FakeService:
    def __init__(self, reservation: Reservation, previous: ReservationStatus = ReservationStatus.BOOKED) -> None:
        self.reservation = reservation
        self.previous = previous

    async def create(self, payload: dict[str, Any]) -> Reservation:
        return self.reservation

    async def update(self, reservation_id: int, payload: dict[str, Any]) -> Reservation:
        return self.reservation

    async def change_status(self, reservation_id: int, payload: dict[str, Any]) -> tuple[Reservation, ReservationStatus]:
        return self.reservation, self.previous


@pytest.mark.asyncio
async def test_create_reservation_emits_audit(monkeypatch: pytest.MonkeyPatch) -> None:
    reservation = _reservation()
    calls: list[dict[str, Any]] = []

    monkeypatch.setattr(router, "_service", lambda session, hours: FakeService(reservation))
    monkeypatch.setattr(router, "emit_audit_log", lambda **kwargs: calls.append(kwargs))

    result: ReservationResponse = await router.create_reservation(
        payload=ReservationEnvelope(data={}),
        session=cast(AsyncSession, DummySession()),
        hours=BusinessHours(),
    )

    assert result.data.reservation_id == reservation.reservation_id
    assert len(calls) == 1
    assert calls[0]["action"] == "reservation.created"
    assert calls[0]["initiator"] == "guest"
    assert calls[0]["status_from"] is None
    assert calls[0]["status_to"] == ReservationStatus.BOOKED


@pytest.mark.asyncio
async def test_status_change_emits_previous_status(monkeypatch: pytest.MonkeyPatch) -> None:
    reservation = _reservation(ReservationStatus.FINISHED)
    calls: list[dict[str, Any]] = []

    monkeypatch.setattr(
        router,
        "_service",
        lambda session, hours: FakeService(reservation, previous=ReservationStatus.SEATED),
    )
    monkeypatch.setattr(router, "emit_audit_log", lambda **kwargs: calls.append(kwargs))

    result = await router.update_reservation_status(
        payload=ReservationEnvelope(data={"status": "finished"}),
        reservation_id=reservation.reservation_id,
        session=cast(AsyncSession, DummySession()),
        hours=BusinessHours(),
    )

    assert result.data.status == ReservationStatus.FINISHED
    assert calls[0]["action"] == "reservation.status_changed"
    assert calls[0]["initiator"] == "staff"
    assert calls[0]["status_from"] == ReservationStatus.SEATED
    assert calls[0]["status_to"] == ReservationStatus.FINISHED


@pytest.mark.asyncio
async def test_update_log_failure_returns_500(monkeypatch: pytest.MonkeyPatch) -> None:
    reservation = _reservation()

    def fake_emit(**kwargs: Any) -> None:
        raise RuntimeError("fail log")

    monkeypatch.setattr(router, "_service", lambda session, hours: FakeService(reservation))
    monkeypatch.setattr(router, "emit_audit_log", fake_emit)

    with pytest.raises(HTTPException) as excinfo:
        await router.update_reservation(
            payload=ReservationEnvelope(data={}),
            reservation_id=reservation.reservation_id,
            session=cast(AsyncSession, DummySession()),
            hours=BusinessHours(),
        )
    assert excinfo.value.status_code == 500
