from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_business_hours, get_session
from ..domain.services import BusinessHours
from ..infrastructure.repositories import SqlAlchemyReservationRepository
from ..models import Reservation, ReservationStatus
from ..schemas import ReservationEnvelope, ReservationListResponse, ReservationRead, ReservationResponse
from ..usecases.reservations import ReservationService
from ..utils.audit_log import AuditAction, AuditInitiator, emit_audit_log

router = APIRouter(prefix="/reservations", tags=["reservations"])


def _service(session: AsyncSession, hours: BusinessHours) -> ReservationService:
    return ReservationService(SqlAlchemyReservationRepository(session), hours=hours)


def _audit(
    action: AuditAction,
    initiator: AuditInitiator,
    reservation: Reservation,
    status_from: Optional[ReservationStatus],
) -> None:
    try:
        emit_audit_log(
            action=action,
            initiator=initiator,
            reservation_id=reservation.reservation_id,
            people=reservation.people,
            reservation_date=reservation.reservation_date,
            reservation_time=reservation.reservation_time,
            status_from=status_from,
            status_to=reservation.status,
        )
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failed") from exc


@router.get("", response_model=ReservationListResponse)
async def list_reservations(
    reservation_date: Optional[date] = Query(default=None, alias="date", description="YYYY-MM-DD"),
    mobile_number: Optional[str] = Query(default=None, description="full or partial phone number"),
    session: AsyncSession = Depends(get_session),
    hours: BusinessHours = Depends(get_business_hours),
) -> ReservationListResponse:
    service = _service(session, hours)
    if reservation_date is not None:
        rows = await service.list_by_date(reservation_date)
    elif mobile_number:
        rows = await service.search(mobile_number)
    else:
        rows = await service.list_all()
    return ReservationListResponse(data=[ReservationRead.from_db(row) for row in rows])


@router.post("", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    payload: ReservationEnvelope,
    session: AsyncSession = Depends(get_session),
    hours: BusinessHours = Depends(get_business_hours),
) -> ReservationResponse:
    service = _service(session, hours)
    async with session.begin():
        reservation = await service.create(payload.data)

    _audit("reservation.created", "guest", reservation, status_from=None)
    return ReservationResponse(data=ReservationRead.from_db(reservation))


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def read_reservation(
    reservation_id: int = Path(...),
    session: AsyncSession = Depends(get_session),
    hours: BusinessHours = Depends(get_business_hours),
) -> ReservationResponse:
    reservation = await _service(session, hours).read(reservation_id)
    return ReservationResponse(data=ReservationRead.from_db(reservation))


@router.put("/{reservation_id}", response_model=ReservationResponse)
async def update_reservation(
    payload: ReservationEnvelope,
    reservation_id: int = Path(...),
    session: AsyncSession = Depends(get_session),
    hours: BusinessHours = Depends(get_business_hours),
) -> ReservationResponse:
    service = _service(session, hours)
    async with session.begin():
        reservation = await service.update(reservation_id, payload.data)

    _audit("reservation.updated", "guest", reservation, status_from=ReservationStatus.BOOKED)
    return ReservationResponse(data=ReservationRead.from_db(reservation))


@router.put("/{reservation_id}/status", response_model=ReservationResponse)
async def update_reservation_status(
    payload: ReservationEnvelope,
    reservation_id: int = Path(...),
    session: AsyncSession = Depends(get_session),
    hours: BusinessHours = Depends(get_business_hours),
) -> ReservationResponse:
    service = _service(session, hours)
    async with session.begin():
        reservation, status_from = await service.change_status(reservation_id, payload.data)

    _audit("reservation.status_changed", "staff", reservation, status_from=status_from)
    return ReservationResponse(data=ReservationRead.from_db(reservation))
