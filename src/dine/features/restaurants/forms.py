"""Multipart form parsing for restaurant create/update requests.

Browsers and mobile clients send restaurant data as multipart/form-data, so
every value arrives as a string. This module turns that form into the typed
schemas the service layer works with. Nothing below this module sees raw form
values.
"""

import json
import logging
from dataclasses import dataclass, field

import pydantic
from starlette.datastructures import FormData, UploadFile

from src.dine.exceptions import ValidationError
from src.dine.features.restaurants.schemas import RestaurantInput, RestaurantUpdate

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/webp"})

FIELD_NAMES = (
    "name",
    "description",
    "address",
    "city",
    "pinCode",
    "phoneNumber",
    "website",
    "openingTime",
    "closingTime",
    "offersDelivery",
    "offersDineIn",
    "offersPickup",
    "latitude",
    "longitude",
)

# Fields where an empty value on update means "clear it"
CLEARABLE_FIELDS = frozenset({"description", "website"})

BOOLEAN_FIELDS = frozenset({"offersDelivery", "offersDineIn", "offersPickup"})
TRUE_VALUES = frozenset({"true", "1", "on", "yes"})
FALSE_VALUES = frozenset({"false", "0", "off", "no"})


@dataclass
class RestaurantCreateForm:
    """Parsed body of a create request."""

    fields: RestaurantInput
    images: list[bytes]


@dataclass
class RestaurantUpdateForm:
    """Parsed body of an update request."""

    fields: RestaurantUpdate
    images: list[bytes] = field(default_factory=list)
    images_to_keep: list[str] | None = None
    images_to_remove: list[str] | None = None


def _text_values(form: FormData, name: str) -> list[str]:
    values = form.getlist(name) + form.getlist(f"{name}[]")
    return [value for value in values if isinstance(value, str)]


def _parse_boolean(value: str) -> bool | str:
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    # Left as-is so the schema reports it
    return value


def parse_string_list(values: list[str]) -> list[str] | None:
    """
    Flatten list-valued form input.

    Each value may be a JSON array string, a comma-separated string, or a
    single item (clients that repeat the field). Blank entries are dropped.

    Returns:
        The flattened items, or None if nothing non-blank was supplied
    """
    items: list[str] = []
    for value in values:
        stripped = value.strip()
        if not stripped:
            continue
        if stripped.startswith("["):
            try:
                decoded = json.loads(stripped)
            except json.JSONDecodeError as e:
                raise ValidationError(
                    issues=[{"field": "form", "message": f"Malformed JSON array: {e.msg}"}]
                ) from e
            if not isinstance(decoded, list):
                raise ValidationError(
                    issues=[{"field": "form", "message": "Expected a JSON array"}]
                )
            items.extend(str(item).strip() for item in decoded)
        else:
            items.extend(part.strip() for part in stripped.split(","))
    items = [item for item in items if item]
    return items or None


def _collect_fields(form: FormData, *, partial: bool) -> dict:
    data: dict = {}
    for name in FIELD_NAMES:
        if name not in form:
            continue
        raw = form.get(name)
        if not isinstance(raw, str):
            continue
        value = raw.strip()
        if not value:
            if partial and name in CLEARABLE_FIELDS:
                data[name] = None
            continue
        data[name] = _parse_boolean(value) if name in BOOLEAN_FIELDS else value

    categories = parse_string_list(_text_values(form, "categories"))
    if categories is not None:
        data["categories"] = categories
    elif not partial:
        data["categories"] = []
    return data


def _reference_list(form: FormData, name: str) -> list[str] | None:
    # Signed URLs may contain commas, so only JSON arrays are split
    values = _text_values(form, name)
    items: list[str] = []
    for value in values:
        parsed = parse_string_list([value]) if value.strip().startswith("[") else [value.strip()]
        items.extend(item for item in parsed or [] if item)
    return items or None


async def read_images(
    form: FormData, *, max_size_bytes: int, max_count: int
) -> list[bytes]:
    """
    Read uploaded images from the ``images`` (or ``images[]``) field.

    Raises:
        ValidationError: On a disallowed content type, an oversized file, or too many files
    """
    uploads = [
        value
        for value in form.getlist("images") + form.getlist("images[]")
        if isinstance(value, UploadFile)
    ]
    if len(uploads) > max_count:
        raise ValidationError(
            f"Too many images (maximum {max_count})",
            issues=[{"field": "images", "message": f"At most {max_count} files per request"}],
        )

    images: list[bytes] = []
    for upload in uploads:
        # Never buffer more than one byte past the limit.
        data = await upload.read(max_size_bytes + 1)
        if not data:
            # Empty file inputs are submitted as zero-byte parts
            continue
        content_type = (upload.content_type or "").lower()
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise ValidationError(
                "Only JPEG, PNG, and WebP images are allowed",
                issues=[
                    {
                        "field": "images",
                        "message": f"{upload.filename}: {content_type or 'unknown type'}",
                    }
                ],
            )
        if len(data) > max_size_bytes:
            raise ValidationError(
                "Image too large",
                issues=[
                    {
                        "field": "images",
                        "message": f"{upload.filename} exceeds {max_size_bytes // (1024 * 1024)} MB",
                    }
                ],
            )
        images.append(data)
    return images


async def parse_create_form(
    form: FormData, *, max_size_bytes: int, max_count: int
) -> RestaurantCreateForm:
    """Parse and validate a create request."""
    data = _collect_fields(form, partial=False)
    try:
        fields = RestaurantInput.model_validate(data)
    except pydantic.ValidationError as e:
        logger.info(f"Restaurant create rejected: {e.error_count()} invalid fields")
        raise ValidationError.from_errors(e.errors()) from e

    images = await read_images(form, max_size_bytes=max_size_bytes, max_count=max_count)
    return RestaurantCreateForm(fields=fields, images=images)


async def parse_update_form(
    form: FormData, *, max_size_bytes: int, max_count: int
) -> RestaurantUpdateForm:
    """Parse and validate a partial update request."""
    data = _collect_fields(form, partial=True)
    try:
        fields = RestaurantUpdate.model_validate(data)
    except pydantic.ValidationError as e:
        logger.info(f"Restaurant update rejected: {e.error_count()} invalid fields")
        raise ValidationError.from_errors(e.errors()) from e

    images = await read_images(form, max_size_bytes=max_size_bytes, max_count=max_count)
    return RestaurantUpdateForm(
        fields=fields,
        images=images,
        images_to_keep=_reference_list(form, "imagesToKeep"),
        images_to_remove=_reference_list(form, "imagesToRemove"),
    )
