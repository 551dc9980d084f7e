from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, List, Mapping

from sqlalchemy import ColumnElement, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.repositories import ReservationRepository
from ..domain.services import PHONE_SEPARATORS, ReservationDraft
from ..models import Reservation, ReservationStatus

_INACTIVE_STATUSES = (ReservationStatus.FINISHED, ReservationStatus.CANCELLED)


def _utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _digits_expression(column: Any) -> ColumnElement[str]:
    expr = column
    for char in PHONE_SEPARATORS:
        expr = func.replace(expr, char, "")
    return expr


class SqlAlchemyReservationRepository(ReservationRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def insert(self, draft: ReservationDraft) -> Reservation:
        now = _utc_now_naive()
        reservation = Reservation(**draft.as_fields(), created_at=now, updated_at=now)
        self.session.add(reservation)
        await self.session.flush()
        return reservation

    async def find_by_id(self, reservation_id: int) -> Reservation | None:
        result = await self.session.scalar(select(Reservation).where(Reservation.reservation_id == reservation_id))
        return result if isinstance(result, Reservation) else None

    async def update_by_id(self, reservation_id: int, fields: Mapping[str, Any]) -> Reservation | None:
        reservation = await self.find_by_id(reservation_id)
        if reservation is None:
            return None
        for name, value in fields.items():
            setattr(reservation, name, value)
        reservation.updated_at = _utc_now_naive()
        self.session.add(reservation)
        await self.session.flush()
        return reservation

    async def list_all(self) -> List[Reservation]:
        stmt = select(Reservation).order_by(
            Reservation.reservation_date,
            Reservation.reservation_time,
            Reservation.reservation_id,
        )
        return list((await self.session.scalars(stmt)).all())

    async def list_by_date(self, reservation_date: date) -> List[Reservation]:
        stmt = (
            select(Reservation)
            .where(
                Reservation.reservation_date == reservation_date,
                Reservation.status.not_in(_INACTIVE_STATUSES),
            )
            .order_by(Reservation.reservation_time, Reservation.reservation_id)
        )
        return list((await self.session.scalars(stmt)).all())

    async def search_by_phone_fragment(self, digits: str) -> List[Reservation]:
        stmt = (
            select(Reservation)
            .where(_digits_expression(Reservation.mobile_number).like(f"%{digits}%"))
            .order_by(Reservation.reservation_date, Reservation.reservation_time)
        )
        return list((await self.session.scalars(stmt)).all())
