"""Image normalization before storage."""

import io

from PIL import Image, ImageOps, UnidentifiedImageError

JPEG_CONTENT_TYPE = "image/jpeg"


class ImageDecodeError(ValueError):
    """Raised when the uploaded bytes are not a decodable image."""


def normalize_image(data: bytes, max_dimension: int = 800, quality: int = 80) -> bytes:
    """
    Re-encode an uploaded image as a bounded-size JPEG.

    Applies EXIF orientation, flattens transparency onto white, shrinks the
    image to fit inside max_dimension x max_dimension (never enlarges), and
    encodes at the given JPEG quality.

    Args:
        data: Raw uploaded bytes (JPEG, PNG, WebP, ...)
        max_dimension: Bounding box edge in pixels
        quality: JPEG quality (1-95)

    Returns:
        JPEG bytes

    Raises:
        ImageDecodeError: If data is not a readable image
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            image = ImageOps.exif_transpose(img)
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
        ValueError,
    ) as e:
        raise ImageDecodeError(f"Unreadable image: {e}") from e

    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        image = background
    elif image.mode != "RGB":
        image = image.convert("RGB")

    # thumbnail() keeps aspect ratio and only ever shrinks.
    image.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)

    output = io.BytesIO()
    image.save(output, format="JPEG", quality=quality, optimize=True)
    return output.getvalue()
