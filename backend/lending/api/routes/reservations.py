"""Reservation Routes - borrow, return and query reservations.

Invariants:
    - Routes only translate HTTP <-> service calls; rules live in core/ and services/
    - LendingError subclasses propagate to the global handler (structured JSON)
    - Admin affordances (due-date override, delete) depend on require_admin_endpoints
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from lending.api.dependencies import get_reservation_service, require_admin_endpoints
from lending.core.domain_types import ReservationStatus
from lending.core.errors import ErrorContext, ReservationNotFoundError
from lending.schemas.reservation import (
    DueDateUpdate, ReservationCreate, ReservationList, ReservationResponse,
)
from lending.services.reservation_service import ReservationService

router = APIRouter(prefix="/api/v1/reservations", tags=["reservations"])


def _page(records, page: int, limit: int) -> ReservationList:
    return ReservationList(
        reservations=[ReservationResponse.from_record(r) for r in records],
        page=page, limit=limit,
    )


@router.post(
    "", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED,
)
async def create_reservation(
    body: ReservationCreate,
    service: ReservationService = Depends(get_reservation_service),
):
    """Borrow an item: charge the reservation fee and take one copy."""
    record = await service.create_reservation(body.user_id, body.item_id)
    return ReservationResponse.from_record(record)


@router.get("", response_model=ReservationList)
async def list_reservations(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: ReservationStatus | None = Query(None, alias="status"),
    service: ReservationService = Depends(get_reservation_service),
):
    """Open reservations, or every reservation in one status when filtered."""
    if status_filter is not None:
        records = await service.list_by_status(status_filter, page, limit)
    else:
        records = await service.list_open(page, limit)
    return _page(records, page, limit)


@router.get("/user/{user_id}", response_model=ReservationList)
async def list_user_reservations(
    user_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: ReservationService = Depends(get_reservation_service),
):
    records = await service.list_by_user(user_id, page, limit)
    return _page(records, page, limit)


@router.get("/item/{item_id}", response_model=ReservationList)
async def list_item_reservations(
    item_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: ReservationService = Depends(get_reservation_service),
):
    records = await service.list_by_item(item_id, page, limit)
    return _page(records, page, limit)


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
):
    return ReservationResponse.from_record(
        await service.get_reservation(reservation_id),
    )


@router.post("/{reservation_id}/return", response_model=ReservationResponse)
async def return_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
):
    """Return the borrowed copy; late fees are charged to the wallet."""
    record = await service.return_book(reservation_id)
    if record is None:
        raise ReservationNotFoundError(
            str(reservation_id), ErrorContext(reservation_id=str(reservation_id)),
        )
    return ReservationResponse.from_record(record)


@router.put(
    "/{reservation_id}/due-date",
    response_model=ReservationResponse,
    dependencies=[Depends(require_admin_endpoints)],
)
async def force_due_date(
    reservation_id: UUID,
    body: DueDateUpdate,
    service: ReservationService = Depends(get_reservation_service),
):
    record = await service.force_due_date(reservation_id, body.due_date)
    return ReservationResponse.from_record(record)


@router.delete(
    "/{reservation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin_endpoints)],
)
async def delete_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
):
    if not await service.delete_reservation(reservation_id):
        raise ReservationNotFoundError(
            str(reservation_id), ErrorContext(reservation_id=str(reservation_id)),
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
