from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Generic, List, Optional, TypeVar
import datetime

from .models import ReservationStatus

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Shape of every response body."""
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None


# --- Users & auth ---

class UserCreate(BaseModel):
    email: EmailStr
    name: Optional[str] = Field(default=None, max_length=100)
    password: str = Field(min_length=8)

class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=100)
    image: Optional[str] = Field(default=None, max_length=500)

class UserPublic(BaseModel):
    id: int
    name: Optional[str] = None
    image: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class UserRead(UserPublic):
    email: EmailStr
    created_at: datetime.datetime

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


# --- Amenities ---

class AmenityCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    category: str = Field(min_length=1, max_length=100)

class AmenityRead(AmenityCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)


# --- Listings ---

class ListingBase(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(max_length=5000)
    image_src: List[str] = Field(default_factory=list)
    category: str = Field(min_length=1, max_length=100)
    room_count: int = Field(ge=1)
    bathroom_count: int = Field(ge=0)
    guest_count: int = Field(ge=1)
    location_value: str = Field(min_length=1, max_length=100)
    price: int = Field(ge=1)

class ListingCreate(ListingBase):
    amenity_ids: List[int] = Field(default_factory=list)

class ListingUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    image_src: Optional[List[str]] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    room_count: Optional[int] = Field(default=None, ge=1)
    bathroom_count: Optional[int] = Field(default=None, ge=0)
    guest_count: Optional[int] = Field(default=None, ge=1)
    location_value: Optional[str] = Field(default=None, min_length=1, max_length=100)
    price: Optional[int] = Field(default=None, ge=1)
    amenity_ids: Optional[List[int]] = None

class ListingRead(ListingBase):
    id: int
    user_id: int
    created_at: datetime.datetime
    amenities: List[AmenityRead] = []

    model_config = ConfigDict(from_attributes=True)

class ListingDetail(ListingRead):
    owner: UserPublic
    review_count: int = 0
    average_rating: Optional[float] = None


class ListingFilters(BaseModel):
    """Search parameters for one listings query."""
    user_id: Optional[int] = None
    category: Optional[str] = None
    location_value: Optional[str] = None
    guest_count: Optional[int] = Field(default=None, ge=1)
    room_count: Optional[int] = Field(default=None, ge=1)
    bathroom_count: Optional[int] = Field(default=None, ge=0)
    min_price: Optional[int] = Field(default=None, ge=0)
    max_price: Optional[int] = Field(default=None, ge=0)
    start_date: Optional[datetime.date] = None
    end_date: Optional[datetime.date] = None
    skip: int = Field(default=0, ge=0)
    limit: int = Field(default=100, ge=1, le=100)


# --- Reservations ---

class ReservationBase(BaseModel):
    listing_id: int
    start_date: datetime.date
    end_date: datetime.date

class ReservationCreate(ReservationBase):
    # user_id comes from the token
    pass

class ReservationRead(ReservationBase):
    id: int
    user_id: int
    total_price: int
    status: ReservationStatus
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)

class ReservationStatusUpdate(BaseModel):
    status: ReservationStatus

class BookedRange(BaseModel):
    start_date: datetime.date
    end_date: datetime.date

    model_config = ConfigDict(from_attributes=True)

class AvailabilityRead(BaseModel):
    listing_id: int
    start_date: datetime.date
    end_date: datetime.date
    available: bool
    conflicts: List[BookedRange] = []


# --- Reviews ---

class ReviewCreate(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=2000)

class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=2000)

class ReviewRead(ReviewCreate):
    id: int
    user_id: int
    listing_id: int
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)
