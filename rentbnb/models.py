from sqlalchemy import (
    Column, Integer, String, Text, Date, ForeignKey, TIMESTAMP, JSON, Table, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship
from enum import Enum as PyEnum
from sqlalchemy import Enum as SQLEnum
import datetime

from .database import Base


def _utcnow():
    return datetime.datetime.now(datetime.timezone.utc)


# --- ENUM for Reservation Status ---
class ReservationStatus(PyEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# A user's favorite listings, one row per (user, listing)
favorites = Table(
    "favorites",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("listing_id", Integer, ForeignKey("listings.id", ondelete="CASCADE"), primary_key=True),
)

listing_amenities = Table(
    "listing_amenities",
    Base.metadata,
    Column("listing_id", Integer, ForeignKey("listings.id", ondelete="CASCADE"), primary_key=True),
    Column("amenity_id", Integer, ForeignKey("amenities.id", ondelete="CASCADE"), primary_key=True),
)


# --- User Model ---
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=True)
    image = Column(String(500), nullable=True)

    # Accounts created through a federated provider have no password
    hashed_password = Column(String, nullable=True)

    created_at = Column(TIMESTAMP, default=_utcnow)
    updated_at = Column(TIMESTAMP, default=_utcnow, onupdate=_utcnow)

    listings = relationship("Listing", back_populates="owner", cascade="all, delete-orphan")
    reservations = relationship("Reservation", back_populates="user", cascade="all, delete-orphan")
    reviews = relationship("Review", back_populates="user", cascade="all, delete-orphan")
    favorite_listings = relationship("Listing", secondary=favorites, back_populates="favorited_by")


# --- Listing Model (a rentable unit) ---
class Listing(Base):
    __tablename__ = "listings"

    id = Column(Integer, primary_key=True, index=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    image_src = Column(JSON, nullable=False, default=list)
    category = Column(String(100), index=True, nullable=False)
    room_count = Column(Integer, nullable=False)
    bathroom_count = Column(Integer, nullable=False)
    guest_count = Column(Integer, nullable=False)
    location_value = Column(String(100), index=True, nullable=False)

    # Smallest currency unit, per night
    price = Column(Integer, nullable=False)

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    created_at = Column(TIMESTAMP, default=_utcnow)

    owner = relationship("User", back_populates="listings")
    amenities = relationship("Amenity", secondary=listing_amenities, back_populates="listings")
    reservations = relationship("Reservation", back_populates="listing", cascade="all, delete-orphan")
    reviews = relationship("Review", back_populates="listing", cascade="all, delete-orphan")
    favorited_by = relationship("User", secondary=favorites, back_populates="favorite_listings")


class Amenity(Base):
    __tablename__ = "amenities"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    category = Column(String(100), nullable=False)

    listings = relationship("Listing", secondary=listing_amenities, back_populates="amenities")


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    listing_id = Column(Integer, ForeignKey("listings.id", ondelete="CASCADE"), nullable=False)

    # Half-open interval: the guest leaves on end_date
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    total_price = Column(Integer, nullable=False)
    status = Column(SQLEnum(ReservationStatus), default=ReservationStatus.PENDING, nullable=False)

    created_at = Column(TIMESTAMP, default=_utcnow)

    user = relationship("User", back_populates="reservations")
    listing = relationship("Listing", back_populates="reservations")

    # The availability check filters on listing and date range
    __table_args__ = (
        Index("ix_reservations_listing_dates", "listing_id", "start_date", "end_date"),
    )


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    listing_id = Column(Integer, ForeignKey("listings.id", ondelete="CASCADE"), index=True, nullable=False)

    rating = Column(Integer, nullable=False)  # 1..5
    comment = Column(Text, nullable=True)

    created_at = Column(TIMESTAMP, default=_utcnow)

    user = relationship("User", back_populates="reviews")
    listing = relationship("Listing", back_populates="reviews")

    __table_args__ = (
        UniqueConstraint("user_id", "listing_id", name="uq_reviews_user_listing"),
    )
