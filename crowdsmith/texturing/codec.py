"""
Pixel codec.

Decodes embedded texture payloads to RGBA numpy rasters and encodes rasters
back, via Pillow.
"""

from io import BytesIO
from typing import Optional, Tuple

import numpy as np
from PIL import Image

JPEG_QUALITY = 95

MIME_FORMATS = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/webp": "WEBP",
}


def decode(data: bytes, mime_type: Optional[str] = None) -> np.ndarray:
    """
    Decode an image payload to an RGBA raster.

    Args:
        data: Encoded image bytes
        mime_type: Declared mime type (Pillow sniffs the actual format)

    Returns:
        uint8 array of shape (height, width, 4)
    """
    with Image.open(BytesIO(data)) as image:
        return np.asarray(image.convert('RGBA'), dtype=np.uint8).copy()


def encode(raster: np.ndarray, mime_type: str = "image/png") -> bytes:
    """
    Encode an RGBA raster.

    JPEG drops the alpha channel.

    Raises:
        ValueError: If the mime type has no encoder
    """
    image_format = MIME_FORMATS.get(mime_type)
    if image_format is None:
        raise ValueError(f"Unsupported image mime type: {mime_type}")

    image = Image.fromarray(np.ascontiguousarray(raster, dtype=np.uint8))
    buffer = BytesIO()
    if image_format == "JPEG":
        image.convert('RGB').save(buffer, format=image_format, quality=JPEG_QUALITY)
    else:
        image.save(buffer, format=image_format)
    return buffer.getvalue()


def image_size(data: bytes) -> Tuple[int, int]:
    """Return (width, height) without decoding pixel data."""
    with Image.open(BytesIO(data)) as image:
        return image.size


def resize(data: bytes, mime_type: str, size: Tuple[int, int]) -> bytes:
    """Resample an encoded image to ``size`` (width, height), keeping its format."""
    with Image.open(BytesIO(data)) as image:
        resized = image.resize(size, Image.LANCZOS)
    buffer = BytesIO()
    image_format = MIME_FORMATS.get(mime_type, "PNG")
    if image_format == "JPEG":
        resized.convert('RGB').save(buffer, format=image_format, quality=JPEG_QUALITY)
    else:
        resized.save(buffer, format=image_format)
    return buffer.getvalue()
