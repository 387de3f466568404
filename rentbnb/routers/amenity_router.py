from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import schemas, crud
from ..auth import CurrentUser
from ..database import get_db
from ..responses import created_response, success_response

router = APIRouter(prefix="/amenities", tags=["Amenities"])


@router.post("/", response_model=schemas.Envelope[schemas.AmenityRead], status_code=status.HTTP_201_CREATED)
def create_amenity(amenity: schemas.AmenityCreate, current_user: CurrentUser, db: Session = Depends(get_db)):
    db_amenity = crud.create_amenity(db=db, amenity=amenity)
    return created_response(schemas.AmenityRead.model_validate(db_amenity))


@router.get("/", response_model=schemas.Envelope[List[schemas.AmenityRead]])
def read_amenities(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    amenities = crud.get_amenities(db, skip=skip, limit=limit)
    return success_response([schemas.AmenityRead.model_validate(a) for a in amenities])
