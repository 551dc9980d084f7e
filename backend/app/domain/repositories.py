from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Protocol

from ..models import Reservation
from .services import ReservationDraft


class ReservationRepository(Protocol):
    async def insert(self, draft: ReservationDraft) -> Reservation: ...

    async def find_by_id(self, reservation_id: int) -> Reservation | None: ...

    async def update_by_id(self, reservation_id: int, fields: Mapping[str, Any]) -> Reservation | None: ...

    async def list_all(self) -> list[Reservation]: ...

    async def list_by_date(self, reservation_date: date) -> list[Reservation]: ...

    async def search_by_phone_fragment(self, digits: str) -> list[Reservation]: ...
