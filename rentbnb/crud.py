import datetime
import logging
from typing import List, Optional, Tuple

from sqlalchemy import exists, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models, schemas, auth, availability
from .exceptions import (
    ConflictError, ForbiddenError, NotFoundError, ReservationConflictError, ValidationFailed
)

logger = logging.getLogger("rentbnb.crud")

Status = models.ReservationStatus


# --- Users ---

def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.get(models.User, user_id)

def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email).first()

def create_user(db: Session, user: schemas.UserCreate) -> models.User:
    db_user = models.User(
        email=user.email,
        name=user.name,
        hashed_password=auth.hash_password(user.password),
    )
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Email already registered")
    db.refresh(db_user)
    logger.info(f"Registered user {db_user.id}")
    return db_user

def update_user(db: Session, db_user: models.User, update: schemas.UserUpdate) -> models.User:
    for key, value in update.model_dump(exclude_unset=True).items():
        setattr(db_user, key, value)
    db.commit()
    db.refresh(db_user)
    return db_user

def delete_user(db: Session, db_user: models.User) -> None:
    """
    Deletes a user together with their listings, reservations, reviews and favorites.
    """
    user_id = db_user.id
    db.delete(db_user)
    db.commit()
    logger.info(f"Deleted user {user_id} and everything they own")


# --- Amenities ---

def get_amenities(db: Session, skip: int = 0, limit: int = 100) -> List[models.Amenity]:
    return db.query(models.Amenity).order_by(models.Amenity.category, models.Amenity.name).offset(skip).limit(limit).all()

def create_amenity(db: Session, amenity: schemas.AmenityCreate) -> models.Amenity:
    db_amenity = models.Amenity(**amenity.model_dump())
    db.add(db_amenity)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f"Amenity '{amenity.name}' already exists")
    db.refresh(db_amenity)
    return db_amenity

def get_amenities_by_ids(db: Session, amenity_ids: List[int]) -> List[models.Amenity]:
    wanted = set(amenity_ids)
    if not wanted:
        return []
    found = db.query(models.Amenity).filter(models.Amenity.id.in_(wanted)).all()
    missing = wanted - {a.id for a in found}
    if missing:
        raise NotFoundError(f"Amenities not found: {sorted(missing)}")
    return found


# --- Listings ---

def get_listing(db: Session, listing_id: int) -> Optional[models.Listing]:
    return db.get(models.Listing, listing_id)

def get_listings(db: Session, filters: schemas.ListingFilters) -> List[models.Listing]:
    query = db.query(models.Listing)

    if filters.user_id is not None:
        query = query.filter(models.Listing.user_id == filters.user_id)
    if filters.category:
        query = query.filter(models.Listing.category == filters.category)
    if filters.location_value:
        query = query.filter(models.Listing.location_value == filters.location_value)
    if filters.guest_count is not None:
        query = query.filter(models.Listing.guest_count >= filters.guest_count)
    if filters.room_count is not None:
        query = query.filter(models.Listing.room_count >= filters.room_count)
    if filters.bathroom_count is not None:
        query = query.filter(models.Listing.bathroom_count >= filters.bathroom_count)
    if filters.min_price is not None:
        query = query.filter(models.Listing.price >= filters.min_price)
    if filters.max_price is not None:
        query = query.filter(models.Listing.price <= filters.max_price)

    if (filters.start_date is None) != (filters.end_date is None):
        raise ValidationFailed(
            "start_date and end_date must be given together",
            details=[{"field": "start_date" if filters.start_date is None else "end_date", "message": "Field required"}],
        )
    if filters.start_date is not None:
        availability.validate_stay(filters.start_date, filters.end_date)
        booked = exists().where(
            models.Reservation.listing_id == models.Listing.id,
            models.Reservation.status != Status.CANCELLED,
            models.Reservation.start_date < filters.end_date,
            models.Reservation.end_date > filters.start_date,
        )
        query = query.filter(~booked)

    return query.order_by(models.Listing.created_at.desc(), models.Listing.id.desc()).offset(filters.skip).limit(filters.limit).all()

def create_listing(db: Session, listing: schemas.ListingCreate, owner_id: int) -> models.Listing:
    amenities = get_amenities_by_ids(db, listing.amenity_ids)
    db_listing = models.Listing(**listing.model_dump(exclude={"amenity_ids"}), user_id=owner_id)
    db_listing.amenities = amenities
    db.add(db_listing)
    db.commit()
    db.refresh(db_listing)
    logger.info(f"User {owner_id} created listing {db_listing.id}")
    return db_listing

def update_listing(db: Session, db_listing: models.Listing, update: schemas.ListingUpdate) -> models.Listing:
    data = update.model_dump(exclude_unset=True)
    amenity_ids = data.pop("amenity_ids", None)
    amenities = get_amenities_by_ids(db, amenity_ids) if amenity_ids is not None else None
    for key, value in data.items():
        # Required columns cannot be cleared
        if value is None:
            continue
        setattr(db_listing, key, value)
    if amenities is not None:
        db_listing.amenities = amenities
    db.commit()
    db.refresh(db_listing)
    return db_listing

def delete_listing(db: Session, db_listing: models.Listing) -> None:
    listing_id = db_listing.id
    db.delete(db_listing)
    db.commit()
    logger.info(f"Deleted listing {listing_id}")

def get_rating_summary(db: Session, listing_id: int) -> Tuple[int, Optional[float]]:
    """
    Returns (review count, average rating) for a listing.
    """
    count, average = db.query(func.count(models.Review.id), func.avg(models.Review.rating)).filter(
        models.Review.listing_id == listing_id
    ).one()
    return count, (round(float(average), 2) if average is not None else None)


# --- Reservations ---

# (current status, requested status) -> who may make the change
STATUS_TRANSITIONS = {
    (Status.PENDING, Status.CONFIRMED): {"host"},
    (Status.PENDING, Status.CANCELLED): {"guest", "host"},
    (Status.CONFIRMED, Status.CANCELLED): {"guest", "host"},
    (Status.CONFIRMED, Status.COMPLETED): {"host"},
}

def create_reservation(db: Session, reservation: schemas.ReservationCreate, user_id: int) -> models.Reservation:
    """
    Books a stay for a user.

    The listing row is locked for the rest of the transaction so two
    overlapping bookings cannot both pass the conflict check. SQLite ignores
    FOR UPDATE; its engine opens every transaction with BEGIN IMMEDIATE instead
    (see database.use_immediate_transactions).
    """
    availability.validate_stay(reservation.start_date, reservation.end_date)

    db_listing = db.query(models.Listing).filter(
        models.Listing.id == reservation.listing_id
    ).with_for_update().first()
    if db_listing is None:
        db.rollback()
        raise NotFoundError("Listing not found")
    if db_listing.user_id == user_id:
        db.rollback()
        raise ForbiddenError("Hosts cannot reserve their own listing")

    conflicts = availability.find_conflicts(db, db_listing.id, reservation.start_date, reservation.end_date)
    if conflicts:
        db.rollback()
        logger.info(
            f"Rejected reservation on listing {db_listing.id} for "
            f"{reservation.start_date}..{reservation.end_date}: {len(conflicts)} conflict(s)"
        )
        raise ReservationConflictError()

    db_reservation = models.Reservation(
        listing_id=db_listing.id,
        user_id=user_id,
        start_date=reservation.start_date,
        end_date=reservation.end_date,
        total_price=availability.nights(reservation.start_date, reservation.end_date) * db_listing.price,
        status=Status.PENDING,
    )
    db.add(db_reservation)
    db.commit()
    db.refresh(db_reservation)
    logger.info(f"User {user_id} reserved listing {db_listing.id} (reservation {db_reservation.id})")
    return db_reservation

def get_reservation(db: Session, reservation_id: int) -> Optional[models.Reservation]:
    return db.get(models.Reservation, reservation_id)

def get_reservations_by_user(db: Session, user_id: int, skip: int = 0, limit: int = 100) -> List[models.Reservation]:
    return db.query(models.Reservation).filter(
        models.Reservation.user_id == user_id
    ).order_by(models.Reservation.start_date).offset(skip).limit(limit).all()

def get_reservations_for_host(db: Session, owner_id: int, skip: int = 0, limit: int = 100) -> List[models.Reservation]:
    return db.query(models.Reservation).join(models.Listing).filter(
        models.Listing.user_id == owner_id
    ).order_by(models.Reservation.start_date).offset(skip).limit(limit).all()

def get_booked_ranges(db: Session, listing_id: int, from_date: Optional[datetime.date] = None) -> List[models.Reservation]:
    """
    Non-cancelled reservations of a listing, optionally only those still running on or after from_date.
    """
    query = db.query(models.Reservation).filter(
        models.Reservation.listing_id == listing_id,
        models.Reservation.status != Status.CANCELLED,
    )
    if from_date is not None:
        query = query.filter(models.Reservation.end_date > from_date)
    return query.order_by(models.Reservation.start_date).all()

def reservation_role(db_reservation: models.Reservation, user_id: int) -> Optional[str]:
    if db_reservation.listing.user_id == user_id:
        return "host"
    if db_reservation.user_id == user_id:
        return "guest"
    return None

def change_reservation_status(
        db: Session,
        db_reservation: models.Reservation,
        new_status: models.ReservationStatus,
        actor_id: int,
) -> models.Reservation:
    role = reservation_role(db_reservation, actor_id)
    if role is None:
        raise ForbiddenError("Not allowed to modify this reservation")

    allowed = STATUS_TRANSITIONS.get((db_reservation.status, new_status))
    if allowed is None:
        raise ConflictError(
            f"Cannot change reservation from {db_reservation.status.value} to {new_status.value}"
        )
    if role not in allowed:
        raise ForbiddenError(f"Only the {' or '.join(sorted(allowed))} can mark this reservation {new_status.value}")

    old_status = db_reservation.status
    db_reservation.status = new_status
    db.commit()
    db.refresh(db_reservation)
    logger.info(
        f"Reservation {db_reservation.id}: {old_status.value} -> {new_status.value} by {role} {actor_id}"
    )
    return db_reservation

def delete_reservation(db: Session, db_reservation: models.Reservation) -> None:
    reservation_id = db_reservation.id
    db.delete(db_reservation)
    db.commit()
    logger.info(f"Deleted reservation {reservation_id}")


# --- Reviews ---

def create_review(db: Session, listing_id: int, user_id: int, review: schemas.ReviewCreate) -> models.Review:
    db_review = models.Review(listing_id=listing_id, user_id=user_id, **review.model_dump())
    db.add(db_review)
    try:
        db.commit()
    except IntegrityError:
        # uq_reviews_user_listing
        db.rollback()
        raise ConflictError("You have already reviewed this listing")
    db.refresh(db_review)
    return db_review

def get_review(db: Session, review_id: int) -> Optional[models.Review]:
    return db.get(models.Review, review_id)

def get_reviews_for_listing(db: Session, listing_id: int, skip: int = 0, limit: int = 100) -> List[models.Review]:
    return db.query(models.Review).filter(
        models.Review.listing_id == listing_id
    ).order_by(models.Review.created_at.desc(), models.Review.id.desc()).offset(skip).limit(limit).all()

def update_review(db: Session, db_review: models.Review, update: schemas.ReviewUpdate) -> models.Review:
    for key, value in update.model_dump(exclude_unset=True).items():
        if key == "rating" and value is None:
            continue
        setattr(db_review, key, value)
    db.commit()
    db.refresh(db_review)
    return db_review

def delete_review(db: Session, db_review: models.Review) -> None:
    db.delete(db_review)
    db.commit()


# --- Favorites ---

def get_favorites(db_user: models.User) -> List[models.Listing]:
    return sorted(db_user.favorite_listings, key=lambda listing: listing.id)

def add_favorite(db: Session, db_user: models.User, db_listing: models.Listing) -> List[models.Listing]:
    if db_listing not in db_user.favorite_listings:
        db_user.favorite_listings.append(db_listing)
        db.commit()
    return get_favorites(db_user)

def remove_favorite(db: Session, db_user: models.User, db_listing: models.Listing) -> List[models.Listing]:
    if db_listing in db_user.favorite_listings:
        db_user.favorite_listings.remove(db_listing)
        db.commit()
    return get_favorites(db_user)
