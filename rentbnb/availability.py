"""
Reservation availability for a listing.

Stays are half-open date intervals [start_date, end_date): the guest checks
out on end_date, so a new stay may start on the day another one ends.
Cancelled reservations never block a stay.
"""
import datetime
from typing import List, NamedTuple

from sqlalchemy.orm import Session

from . import models
from .exceptions import InvalidStayError


class Availability(NamedTuple):
    available: bool
    conflicts: List[models.Reservation]


def validate_stay(start_date: datetime.date, end_date: datetime.date) -> None:
    """Rejects zero-length and inverted stays."""
    if start_date >= end_date:
        raise InvalidStayError()


def overlaps(start_a: datetime.date, end_a: datetime.date,
             start_b: datetime.date, end_b: datetime.date) -> bool:
    return start_a < end_b and start_b < end_a


def nights(start_date: datetime.date, end_date: datetime.date) -> int:
    validate_stay(start_date, end_date)
    return (end_date - start_date).days


def find_conflicts(
        db: Session,
        listing_id: int,
        start_date: datetime.date,
        end_date: datetime.date,
) -> List[models.Reservation]:
    """
    Returns the non-cancelled reservations of a listing that overlap
    [start_date, end_date), earliest first.
    """
    validate_stay(start_date, end_date)

    # (Existing Start < New End) AND (New Start < Existing End)
    criteria = [
        models.Reservation.listing_id == listing_id,
        models.Reservation.status != models.ReservationStatus.CANCELLED,
        models.Reservation.start_date < end_date,
        models.Reservation.end_date > start_date,
    ]

    return db.query(models.Reservation).filter(*criteria).order_by(models.Reservation.start_date).all()


def check_availability(
        db: Session,
        listing_id: int,
        start_date: datetime.date,
        end_date: datetime.date,
) -> Availability:
    conflicts = find_conflicts(db, listing_id, start_date, end_date)
    return Availability(available=not conflicts, conflicts=conflicts)
