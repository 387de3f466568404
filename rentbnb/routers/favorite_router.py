from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import schemas, crud, models
from ..auth import CurrentUser
from ..database import get_db
from ..responses import success_response
from .listing_router import get_listing_or_404

router = APIRouter(prefix="/favorites", tags=["Favorites"])


def favorites_payload(listings: List[models.Listing]) -> List[schemas.ListingRead]:
    return [schemas.ListingRead.model_validate(listing) for listing in listings]


@router.get("/", response_model=schemas.Envelope[List[schemas.ListingRead]])
def read_favorites(current_user: CurrentUser):
    return success_response(favorites_payload(crud.get_favorites(current_user)))


@router.post("/{listing_id}", response_model=schemas.Envelope[List[schemas.ListingRead]])
def add_favorite(
        current_user: CurrentUser,
        db_listing: models.Listing = Depends(get_listing_or_404),
        db: Session = Depends(get_db),
):
    """
    Mark a listing as favorite. Adding it twice changes nothing.
    """
    return success_response(favorites_payload(crud.add_favorite(db, current_user, db_listing)))


@router.delete("/{listing_id}", response_model=schemas.Envelope[List[schemas.ListingRead]])
def remove_favorite(
        current_user: CurrentUser,
        db_listing: models.Listing = Depends(get_listing_or_404),
        db: Session = Depends(get_db),
):
    return success_response(favorites_payload(crud.remove_favorite(db, current_user, db_listing)))
