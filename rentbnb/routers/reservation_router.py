from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import schemas, crud, models
from ..auth import CurrentUser
from ..database import get_db
from ..exceptions import ForbiddenError, NotFoundError
from ..rate_limit import rate_limit
from ..responses import created_response, success_response

router = APIRouter(prefix="/reservations", tags=["Reservations"])


def get_reservation_or_404(reservation_id: int, db: Session = Depends(get_db)) -> models.Reservation:
    db_reservation = crud.get_reservation(db, reservation_id)
    if db_reservation is None:
        raise NotFoundError("Reservation not found")
    return db_reservation


@router.post("/", response_model=schemas.Envelope[schemas.ReservationRead], status_code=status.HTTP_201_CREATED)
def create_reservation(
        reservation: schemas.ReservationCreate,
        current_user: CurrentUser,
        db: Session = Depends(get_db),
        limit: None = Depends(rate_limit(times=30, minutes=1)),
):
    """
    Reserve a listing for [start_date, end_date) as the authenticated user.
    """
    db_reservation = crud.create_reservation(db=db, reservation=reservation, user_id=current_user.id)
    return created_response(schemas.ReservationRead.model_validate(db_reservation))


@router.get("/", response_model=schemas.Envelope[List[schemas.ReservationRead]])
def read_my_reservations(
        current_user: CurrentUser,
        db: Session = Depends(get_db),
        skip: int = Query(default=0, ge=0),
        limit: int = Query(default=100, ge=1, le=100),
):
    """
    Get all trips of the authenticated user.
    """
    reservations = crud.get_reservations_by_user(db=db, user_id=current_user.id, skip=skip, limit=limit)
    return success_response([schemas.ReservationRead.model_validate(r) for r in reservations])


@router.get("/hosting", response_model=schemas.Envelope[List[schemas.ReservationRead]])
def read_hosting_reservations(
        current_user: CurrentUser,
        db: Session = Depends(get_db),
        skip: int = Query(default=0, ge=0),
        limit: int = Query(default=100, ge=1, le=100),
):
    """
    Get reservations made on the authenticated user's listings.
    """
    reservations = crud.get_reservations_for_host(db=db, owner_id=current_user.id, skip=skip, limit=limit)
    return success_response([schemas.ReservationRead.model_validate(r) for r in reservations])


@router.get("/{reservation_id}", response_model=schemas.Envelope[schemas.ReservationRead])
def read_reservation(
        current_user: CurrentUser,
        db_reservation: models.Reservation = Depends(get_reservation_or_404),
):
    if crud.reservation_role(db_reservation, current_user.id) is None:
        raise ForbiddenError("Not allowed to view this reservation")
    return success_response(schemas.ReservationRead.model_validate(db_reservation))


@router.patch("/{reservation_id}/status", response_model=schemas.Envelope[schemas.ReservationRead])
def update_reservation_status(
        update: schemas.ReservationStatusUpdate,
        current_user: CurrentUser,
        db_reservation: models.Reservation = Depends(get_reservation_or_404),
        db: Session = Depends(get_db),
):
    db_reservation = crud.change_reservation_status(
        db=db, db_reservation=db_reservation, new_status=update.status, actor_id=current_user.id
    )
    return success_response(schemas.ReservationRead.model_validate(db_reservation))


@router.delete("/{reservation_id}", response_model=schemas.Envelope[None])
def delete_reservation(
        current_user: CurrentUser,
        db_reservation: models.Reservation = Depends(get_reservation_or_404),
        db: Session = Depends(get_db),
):
    """
    Remove a reservation. Allowed for the guest and for the host of the listing.
    """
    if crud.reservation_role(db_reservation, current_user.id) is None:
        raise ForbiddenError("Not allowed to delete this reservation")
    crud.delete_reservation(db=db, db_reservation=db_reservation)
    return success_response()
