from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from .. import schemas, crud, auth
from ..database import get_db
from ..exceptions import UnauthorizedError
from ..rate_limit import rate_limit
from ..responses import created_response, success_response

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", response_model=schemas.Envelope[schemas.UserRead], status_code=status.HTTP_201_CREATED)
def register(user: schemas.UserCreate, db: Session = Depends(get_db)):
    """
    Create an account with e-mail and password.
    """
    db_user = crud.create_user(db=db, user=user)
    return created_response(schemas.UserRead.model_validate(db_user))


@router.post("/token", response_model=schemas.Envelope[schemas.Token])
def login(
        form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
        db: Session = Depends(get_db),
        limit: None = Depends(rate_limit(times=10, minutes=1)),
):
    """
    Exchange e-mail (as `username`) and password for a bearer token.
    """
    user = auth.authenticate_user(db, form_data.username, form_data.password)
    if user is None:
        raise UnauthorizedError("Incorrect email or password")
    return success_response(schemas.Token(access_token=auth.create_access_token(user.id)))
