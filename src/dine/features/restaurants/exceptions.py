"""Custom exceptions for the restaurant workflow."""

from src.dine.exceptions import ForbiddenError, NotFoundError, ValidationError

MIN_RESTAURANT_IMAGES = 3


class InsufficientImagesError(ValidationError):
    """Raised when a restaurant would end up with fewer than the minimum images."""

    default_message = f"At least {MIN_RESTAURANT_IMAGES} images are required"


class RestaurantNotFoundError(NotFoundError):
    """Raised when a restaurant id does not resolve."""

    default_message = "Restaurant not found"


class NotRestaurantOwnerError(ForbiddenError):
    """Raised when a user tries to mutate a restaurant they do not own."""

    default_message = "You do not have permission to modify this restaurant"


class ImageReferenceError(ValidationError):
    """Raised when kept/removed images do not belong to the restaurant."""

    default_message = "Image does not belong to this restaurant"
