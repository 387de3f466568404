from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import schemas, crud, models
from ..auth import CurrentUser
from ..database import get_db
from ..exceptions import ForbiddenError, NotFoundError
from ..responses import created_response, success_response
from .listing_router import get_listing_or_404

router = APIRouter(tags=["Reviews"])


def get_own_review(
        review_id: int,
        current_user: CurrentUser,
        db: Session = Depends(get_db),
) -> models.Review:
    db_review = crud.get_review(db, review_id)
    if db_review is None:
        raise NotFoundError("Review not found")
    if db_review.user_id != current_user.id:
        raise ForbiddenError("Only the author can modify this review")
    return db_review


@router.post(
    "/listings/{listing_id}/reviews",
    response_model=schemas.Envelope[schemas.ReviewRead],
    status_code=status.HTTP_201_CREATED,
)
def create_review(
        review: schemas.ReviewCreate,
        current_user: CurrentUser,
        db_listing: models.Listing = Depends(get_listing_or_404),
        db: Session = Depends(get_db),
):
    db_review = crud.create_review(db=db, listing_id=db_listing.id, user_id=current_user.id, review=review)
    return created_response(schemas.ReviewRead.model_validate(db_review))


@router.get("/listings/{listing_id}/reviews", response_model=schemas.Envelope[List[schemas.ReviewRead]])
def read_reviews(
        db_listing: models.Listing = Depends(get_listing_or_404),
        db: Session = Depends(get_db),
        skip: int = Query(default=0, ge=0),
        limit: int = Query(default=100, ge=1, le=100),
):
    reviews = crud.get_reviews_for_listing(db, db_listing.id, skip=skip, limit=limit)
    return success_response([schemas.ReviewRead.model_validate(r) for r in reviews])


@router.patch("/reviews/{review_id}", response_model=schemas.Envelope[schemas.ReviewRead])
def update_review(
        update: schemas.ReviewUpdate,
        db_review: models.Review = Depends(get_own_review),
        db: Session = Depends(get_db),
):
    db_review = crud.update_review(db=db, db_review=db_review, update=update)
    return success_response(schemas.ReviewRead.model_validate(db_review))


@router.delete("/reviews/{review_id}", response_model=schemas.Envelope[None])
def delete_review(db_review: models.Review = Depends(get_own_review), db: Session = Depends(get_db)):
    crud.delete_review(db=db, db_review=db_review)
    return success_response()
