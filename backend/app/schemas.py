from datetime import date, datetime, time
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from .models import Reservation, ReservationStatus


class ReservationEnvelope(BaseModel):
    # `data` stays a raw mapping: field whitelisting and presence checks run on what the client sent
    data: Dict[str, Any] = Field(default_factory=dict)


class ReservationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reservation_id: int
    first_name: str
    last_name: str
    mobile_number: str
    people: int
    reservation_date: date
    reservation_time: time
    status: ReservationStatus
    created_at: datetime
    updated_at: datetime

    @field_serializer("reservation_time")
    def _ser_time(self, value: time) -> str:
        return value.strftime("%H:%M")

    @classmethod
    def from_db(cls, reservation: Reservation) -> "ReservationRead":
        return cls.model_validate(reservation)


class ReservationResponse(BaseModel):
    data: ReservationRead


class ReservationListResponse(BaseModel):
    data: List[ReservationRead]


class ErrorResponse(BaseModel):
    status: int
    message: str
