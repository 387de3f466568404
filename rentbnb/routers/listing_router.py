import datetime
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import schemas, crud, availability, models
from ..auth import CurrentUser
from ..database import get_db
from ..exceptions import ForbiddenError, NotFoundError
from ..responses import created_response, success_response

router = APIRouter(prefix="/listings", tags=["Listings"])


def get_listing_or_404(listing_id: int, db: Session = Depends(get_db)) -> models.Listing:
    db_listing = crud.get_listing(db, listing_id)
    if db_listing is None:
        raise NotFoundError("Listing not found")
    return db_listing


def get_owned_listing(
        current_user: CurrentUser,
        db_listing: models.Listing = Depends(get_listing_or_404),
) -> models.Listing:
    if db_listing.user_id != current_user.id:
        raise ForbiddenError("Only the host can modify this listing")
    return db_listing


def listing_detail(db: Session, db_listing: models.Listing) -> schemas.ListingDetail:
    review_count, average_rating = crud.get_rating_summary(db, db_listing.id)
    return schemas.ListingDetail.model_validate(db_listing).model_copy(
        update={"review_count": review_count, "average_rating": average_rating}
    )


@router.post("/", response_model=schemas.Envelope[schemas.ListingRead], status_code=status.HTTP_201_CREATED)
def create_listing(listing: schemas.ListingCreate, current_user: CurrentUser, db: Session = Depends(get_db)):
    db_listing = crud.create_listing(db=db, listing=listing, owner_id=current_user.id)
    return created_response(schemas.ListingRead.model_validate(db_listing))


@router.get("/", response_model=schemas.Envelope[List[schemas.ListingRead]])
def search_listings(
        filters: Annotated[schemas.ListingFilters, Query()],
        db: Session = Depends(get_db),
):
    """
    Search listings. A start_date/end_date pair only keeps listings free for that whole stay.
    """
    listings = crud.get_listings(db, filters=filters)
    return success_response([schemas.ListingRead.model_validate(listing) for listing in listings])


@router.get("/{listing_id}", response_model=schemas.Envelope[schemas.ListingDetail])
def read_listing(db_listing: models.Listing = Depends(get_listing_or_404), db: Session = Depends(get_db)):
    return success_response(listing_detail(db, db_listing))


@router.patch("/{listing_id}", response_model=schemas.Envelope[schemas.ListingRead])
def update_listing(
        update: schemas.ListingUpdate,
        db_listing: models.Listing = Depends(get_owned_listing),
        db: Session = Depends(get_db),
):
    db_listing = crud.update_listing(db=db, db_listing=db_listing, update=update)
    return success_response(schemas.ListingRead.model_validate(db_listing))


@router.delete("/{listing_id}", response_model=schemas.Envelope[None])
def delete_listing(db_listing: models.Listing = Depends(get_owned_listing), db: Session = Depends(get_db)):
    crud.delete_listing(db=db, db_listing=db_listing)
    return success_response()


@router.get("/{listing_id}/availability", response_model=schemas.Envelope[schemas.AvailabilityRead])
def read_availability(
        start_date: datetime.date,
        end_date: datetime.date,
        db_listing: models.Listing = Depends(get_listing_or_404),
        db: Session = Depends(get_db),
):
    result = availability.check_availability(db, db_listing.id, start_date, end_date)
    return success_response(schemas.AvailabilityRead(
        listing_id=db_listing.id,
        start_date=start_date,
        end_date=end_date,
        available=result.available,
        conflicts=[schemas.BookedRange.model_validate(r) for r in result.conflicts],
    ))


@router.get("/{listing_id}/reservations", response_model=schemas.Envelope[List[schemas.BookedRange]])
def read_booked_ranges(
        from_date: Optional[datetime.date] = None,
        db_listing: models.Listing = Depends(get_listing_or_404),
        db: Session = Depends(get_db),
):
    """
    Date ranges already taken on this listing, for greying out a calendar.
    """
    reservations = crud.get_booked_ranges(db, db_listing.id, from_date=from_date)
    return success_response([schemas.BookedRange.model_validate(r) for r in reservations])
