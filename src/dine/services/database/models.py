"""Pydantic models for database entities."""

from datetime import datetime

from pydantic import BaseModel, Field


class User(BaseModel):
    """User record as stored in the users table."""

    id: str
    email: str
    password_hash: str
    created_at: datetime | None = None


class Restaurant(BaseModel):
    """
    Restaurant record as stored in the restaurants table.

    images holds storage keys. They are swapped for signed URLs before
    anything leaves the service layer.
    """

    id: str
    name: str
    categories: list[str] = Field(min_length=1)
    description: str | None = None
    address: str
    city: str
    pin_code: str
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    phone_number: str
    website: str | None = None
    opening_time: str
    closing_time: str
    images: list[str] = Field(default_factory=list)
    offers_delivery: bool = False
    offers_dine_in: bool = False
    offers_pickup: bool = False
    user_id: str
    created_at: datetime
    updated_at: datetime


class Page(BaseModel):
    """One page of restaurants plus the total match count."""

    items: list[Restaurant]
    total: int
