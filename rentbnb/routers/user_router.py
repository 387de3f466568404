from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import schemas, crud
from ..auth import CurrentUser
from ..database import get_db
from ..exceptions import NotFoundError
from ..responses import success_response

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=schemas.Envelope[schemas.UserRead])
def read_me(current_user: CurrentUser):
    return success_response(schemas.UserRead.model_validate(current_user))


@router.patch("/me", response_model=schemas.Envelope[schemas.UserRead])
def update_me(update: schemas.UserUpdate, current_user: CurrentUser, db: Session = Depends(get_db)):
    db_user = crud.update_user(db=db, db_user=current_user, update=update)
    return success_response(schemas.UserRead.model_validate(db_user))


@router.delete("/me", response_model=schemas.Envelope[None])
def delete_me(current_user: CurrentUser, db: Session = Depends(get_db)):
    """
    Delete the account along with its listings, reservations and reviews.
    """
    crud.delete_user(db=db, db_user=current_user)
    return success_response()


@router.get("/{user_id}", response_model=schemas.Envelope[schemas.UserPublic])
def read_user(user_id: int, db: Session = Depends(get_db)):
    db_user = crud.get_user(db, user_id)
    if db_user is None:
        raise NotFoundError("User not found")
    return success_response(schemas.UserPublic.model_validate(db_user))
