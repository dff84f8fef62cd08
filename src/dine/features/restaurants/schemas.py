"""Request and response schemas for restaurant endpoints."""

from datetime import datetime

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

# [0-9] rather than \d: pydantic patterns match any Unicode digit with \d.
PIN_CODE_PATTERN = r"^[0-9]{5,10}$"
PHONE_NUMBER_PATTERN = r"^\+?[0-9]{10,15}$"
TIME_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"

_http_url = TypeAdapter(HttpUrl)


def _clean_categories(value: list[str] | None) -> list[str] | None:
    if value is None:
        return None
    cleaned = [item.strip() for item in value]
    if any(not item for item in cleaned):
        raise ValueError("Categories must be non-empty strings")
    return cleaned


def _check_website(value: str | None) -> str | None:
    if value is None:
        return None
    try:
        _http_url.validate_python(value)
    except ValidationError as e:
        raise ValueError("Invalid URL") from e
    return value


def _check_coordinate_pair(latitude: float | None, longitude: float | None) -> None:
    if (latitude is None) != (longitude is None):
        raise ValueError("Latitude and longitude must be provided together")


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True
    )


class RestaurantInput(_CamelModel):
    """
    Fields for creating a restaurant.

    latitude/longitude are optional: when both are given (e.g. from a map
    picker) they are used as-is, otherwise the address is geocoded.
    """

    name: str = Field(min_length=3)
    categories: list[str] = Field(min_length=1)
    description: str | None = None
    address: str = Field(min_length=5)
    city: str = Field(min_length=2)
    pin_code: str = Field(pattern=PIN_CODE_PATTERN)
    phone_number: str = Field(pattern=PHONE_NUMBER_PATTERN)
    website: str | None = None
    opening_time: str = Field(pattern=TIME_PATTERN)
    closing_time: str = Field(pattern=TIME_PATTERN)
    offers_delivery: bool = False
    offers_dine_in: bool = False
    offers_pickup: bool = False
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)

    @field_validator("categories")
    @classmethod
    def validate_categories(cls, value: list[str] | None) -> list[str] | None:
        return _clean_categories(value)

    @field_validator("website")
    @classmethod
    def validate_website(cls, value: str | None) -> str | None:
        return _check_website(value)

    @model_validator(mode="after")
    def check_coordinates_together(self) -> "RestaurantInput":
        _check_coordinate_pair(self.latitude, self.longitude)
        return self


class RestaurantUpdate(_CamelModel):
    """Partial update. Only fields that were explicitly set are applied."""

    name: str | None = Field(default=None, min_length=3)
    categories: list[str] | None = Field(default=None, min_length=1)
    description: str | None = None
    address: str | None = Field(default=None, min_length=5)
    city: str | None = Field(default=None, min_length=2)
    pin_code: str | None = Field(default=None, pattern=PIN_CODE_PATTERN)
    phone_number: str | None = Field(default=None, pattern=PHONE_NUMBER_PATTERN)
    website: str | None = None
    opening_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    closing_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    offers_delivery: bool | None = None
    offers_dine_in: bool | None = None
    offers_pickup: bool | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)

    @field_validator("categories")
    @classmethod
    def validate_categories(cls, value: list[str] | None) -> list[str] | None:
        return _clean_categories(value)

    @field_validator("website")
    @classmethod
    def validate_website(cls, value: str | None) -> str | None:
        return _check_website(value)

    @model_validator(mode="after")
    def check_coordinates_together(self) -> "RestaurantUpdate":
        _check_coordinate_pair(self.latitude, self.longitude)
        return self

    @model_validator(mode="after")
    def check_required_fields_not_null(self) -> "RestaurantUpdate":
        clearable = {"description", "website", "latitude", "longitude"}
        for field in self.model_fields_set - clearable:
            if getattr(self, field) is None:
                raise ValueError(f"{to_camel(field)} cannot be null")
        return self


class RestaurantResponse(BaseModel):
    """Restaurant as returned to clients; images are signed URLs."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    categories: list[str]
    description: str | None = None
    address: str
    city: str
    pin_code: str
    latitude: float
    longitude: float
    phone_number: str
    website: str | None = None
    opening_time: str
    closing_time: str
    images: list[str]
    offers_delivery: bool
    offers_dine_in: bool
    offers_pickup: bool
    user_id: str
    created_at: datetime
    updated_at: datetime


class Pagination(BaseModel):
    """Pagination metadata."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int


class RestaurantListResponse(BaseModel):
    """Response model for restaurant listings."""

    restaurants: list[RestaurantResponse]
    pagination: Pagination


class RestaurantDetailResponse(BaseModel):
    """Response model for a single restaurant."""

    restaurant: RestaurantResponse


class RestaurantMutationResponse(BaseModel):
    """Response model for create/update."""

    message: str
    restaurant: RestaurantResponse


class MessageResponse(BaseModel):
    """Response model carrying only a message."""

    message: str
