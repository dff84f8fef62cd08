"""API handlers for restaurant endpoints."""

import logging

from fastapi import APIRouter, Depends, Query, Request, status

from src.dine.config import settings
from src.dine.features.restaurants.forms import parse_create_form, parse_update_form
from src.dine.features.restaurants.schemas import (
    MessageResponse,
    Pagination,
    RestaurantDetailResponse,
    RestaurantListResponse,
    RestaurantMutationResponse,
    RestaurantResponse,
)
from src.dine.features.restaurants.service import RestaurantPage
from src.dine.services.auth.dependencies import get_current_user, get_optional_user
from src.dine.services.auth.models import AuthenticatedUser
from src.dine.services.container import ServiceContainer, get_services
from src.dine.services.rate_limiter import default_rate_limit, write_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/restaurants", tags=["restaurants"])


def _to_list_response(result: RestaurantPage) -> RestaurantListResponse:
    return RestaurantListResponse(
        restaurants=[RestaurantResponse.model_validate(r.model_dump()) for r in result.restaurants],
        pagination=Pagination(
            page=result.page,
            limit=result.limit,
            total=result.total,
            total_pages=result.total_pages,
        ),
    )


@router.get("", response_model=RestaurantListResponse)
@default_rate_limit
async def list_restaurants(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = Query(None, max_length=100),
    current_user: AuthenticatedUser | None = Depends(get_optional_user),
    services: ServiceContainer = Depends(get_services),
) -> RestaurantListResponse:
    """
    List restaurants from all owners, newest first.

    Anonymous access is allowed. An access cookie, when valid, only changes
    the rate-limit key from IP to user.

    Args:
        page: 1-based page number
        limit: Page size (1-100, default 10)
        search: Case-insensitive substring match on name, city, and categories

    Returns:
        Restaurants with signed image URLs plus pagination metadata

    Example Response:
        {
            "restaurants": [{"id": "...", "name": "Trattoria", "images": ["https://..."]}],
            "pagination": {"page": 1, "limit": 10, "total": 25, "totalPages": 3}
        }
    """
    result = await services.restaurants.list_public(page, limit, search)
    return _to_list_response(result)


@router.get("/mine", response_model=RestaurantListResponse)
@default_rate_limit
async def list_my_restaurants(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = Query(None, max_length=100),
    current_user: AuthenticatedUser = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
) -> RestaurantListResponse:
    """List restaurants owned by the caller, newest first."""
    result = await services.restaurants.list_for_owner(current_user.id, page, limit, search)
    return _to_list_response(result)


@router.get("/{restaurant_id}", response_model=RestaurantDetailResponse)
@default_rate_limit
async def get_restaurant(
    request: Request,
    restaurant_id: str,
    services: ServiceContainer = Depends(get_services),
) -> RestaurantDetailResponse:
    """
    Get one restaurant.

    Raises:
        RestaurantNotFoundError: 404 if the id does not resolve (including malformed ids)
    """
    restaurant = await services.restaurants.get(restaurant_id)
    return RestaurantDetailResponse(
        restaurant=RestaurantResponse.model_validate(restaurant.model_dump())
    )


@router.post("", response_model=RestaurantMutationResponse, status_code=status.HTTP_201_CREATED)
@write_rate_limit
async def create_restaurant(
    request: Request,
    current_user: AuthenticatedUser = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
) -> RestaurantMutationResponse:
    """
    Create a restaurant from a multipart form.

    Form fields use camelCase names (pinCode, phoneNumber, offersDelivery, ...).
    At least 3 files must be sent under ``images``.

    Raises:
        ValidationError: 400 on invalid fields or fewer than 3 images
        GeocodingError: 400/500 if the address cannot be geocoded
        StorageError: 500 if an image cannot be stored
    """
    form = await request.form()
    parsed = await parse_create_form(
        form,
        max_size_bytes=settings.max_image_size_bytes,
        max_count=settings.max_images_per_request,
    )

    restaurant = await services.restaurants.create(current_user.id, parsed.fields, parsed.images)
    services.analytics.capture(
        distinct_id=current_user.id,
        event="restaurant_created",
        properties={"restaurant_id": restaurant.id, "images": len(parsed.images)},
    )
    return RestaurantMutationResponse(
        message="Restaurant created successfully",
        restaurant=RestaurantResponse.model_validate(restaurant.model_dump()),
    )


@router.api_route(
    "/{restaurant_id}",
    methods=["PATCH", "PUT"],
    response_model=RestaurantMutationResponse,
)
@write_rate_limit
async def update_restaurant(
    request: Request,
    restaurant_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
) -> RestaurantMutationResponse:
    """
    Partially update a restaurant the caller owns.

    Only fields present in the form are changed. Existing images are managed
    with ``imagesToKeep`` / ``imagesToRemove`` (signed URLs as returned by
    this API); new files under ``images`` are appended.

    Raises:
        RestaurantNotFoundError: 404 if the id does not resolve
        NotRestaurantOwnerError: 403 if the caller is not the owner
        ValidationError: 400 on invalid fields or if fewer than 3 images would remain
    """
    form = await request.form()
    parsed = await parse_update_form(
        form,
        max_size_bytes=settings.max_image_size_bytes,
        max_count=settings.max_images_per_request,
    )

    restaurant = await services.restaurants.update(
        restaurant_id,
        current_user.id,
        parsed.fields,
        new_images=parsed.images,
        images_to_keep=parsed.images_to_keep,
        images_to_remove=parsed.images_to_remove,
    )
    return RestaurantMutationResponse(
        message="Restaurant updated successfully",
        restaurant=RestaurantResponse.model_validate(restaurant.model_dump()),
    )


@router.delete("/{restaurant_id}", response_model=MessageResponse)
@write_rate_limit
async def delete_restaurant(
    request: Request,
    restaurant_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
) -> MessageResponse:
    """
    Delete a restaurant the caller owns, along with its images.

    Raises:
        RestaurantNotFoundError: 404 if the id does not resolve
        NotRestaurantOwnerError: 403 if the caller is not the owner
    """
    await services.restaurants.delete(restaurant_id, current_user.id)
    services.analytics.capture(
        distinct_id=current_user.id,
        event="restaurant_deleted",
        properties={"restaurant_id": restaurant_id},
    )
    return MessageResponse(message="Restaurant deleted successfully")
