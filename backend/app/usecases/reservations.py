from __future__ import annotations

from datetime import date, datetime
from typing import Any, Callable, Mapping, Optional

from ..domain.errors import NotFoundError
from ..domain.repositories import ReservationRepository
from ..domain.services import (
    BusinessHours,
    digits_only,
    ensure_editable,
    require_reservation_id,
    require_status,
    validate_reservation_payload,
)
from ..models import Reservation, ReservationStatus
from ..utils.time import local_now


class ReservationService:
    """Reservation use cases over an injected repository.

    Every mutation is validated before the repository is touched. `clock`
    returns naive restaurant-local time and defaults to the wall clock in
    `hours.timezone`.
    """

    def __init__(
        self,
        res_repo: ReservationRepository,
        *,
        hours: Optional[BusinessHours] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.res_repo = res_repo
        self.hours = hours or BusinessHours()
        self.clock = clock or (lambda: local_now(self.hours.timezone))

    async def list_all(self) -> list[Reservation]:
        return await self.res_repo.list_all()

    async def list_by_date(self, reservation_date: date) -> list[Reservation]:
        return await self.res_repo.list_by_date(reservation_date)

    async def search(self, mobile_number: str) -> list[Reservation]:
        return await self.res_repo.search_by_phone_fragment(digits_only(mobile_number))

    async def create(self, payload: Mapping[str, Any]) -> Reservation:
        draft = validate_reservation_payload(payload, now=self.clock(), hours=self.hours)
        return await self.res_repo.insert(draft)

    async def read(self, reservation_id: Optional[int]) -> Reservation:
        reservation_id = require_reservation_id(reservation_id)
        reservation = await self.res_repo.find_by_id(reservation_id)
        if reservation is None:
            raise NotFoundError(f"Reservation not found: {reservation_id}")
        return reservation

    async def update(self, reservation_id: Optional[int], payload: Mapping[str, Any]) -> Reservation:
        draft = validate_reservation_payload(payload, now=self.clock(), hours=self.hours)
        current = await self.read(reservation_id or payload.get("reservation_id"))
        ensure_editable(current.status)
        return await self._write(current.reservation_id, draft.as_fields())

    async def change_status(
        self,
        reservation_id: Optional[int],
        payload: Mapping[str, Any],
    ) -> tuple[Reservation, ReservationStatus]:
        """Set the status only. Returns the updated record and the status it had before."""
        current = await self.read(reservation_id or payload.get("reservation_id"))
        previous = current.status
        status = require_status(payload)
        updated = await self._write(current.reservation_id, {"status": status})
        return updated, previous

    async def _write(self, reservation_id: int, fields: Mapping[str, Any]) -> Reservation:
        updated = await self.res_repo.update_by_id(reservation_id, fields)
        if updated is None:
            raise NotFoundError(f"Reservation not found: {reservation_id}")
        return updated
