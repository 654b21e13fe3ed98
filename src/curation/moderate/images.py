# src/curation/moderate/images.py
"""Structural checks on uploaded listing photos."""

import io
import logging
from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageLimits:
    """Upload bounds for listing photos."""

    min_bytes: int = 1024                       # Blocks tracking pixels
    max_bytes: int = 10 * 1024 * 1024
    allowed_extensions: FrozenSet[str] = frozenset({'jpg', 'jpeg', 'png', 'heic'})
    min_dimension: int = 100
    max_dimension: int = 4096


DEFAULT_IMAGE_LIMITS = ImageLimits()


def load_image_limits(config: dict) -> ImageLimits:
    """Load ImageLimits from the `images` section of config.yml, falling back to defaults."""
    section = (config or {}).get('images') or {}
    if not section:
        return DEFAULT_IMAGE_LIMITS

    extensions = section.get('allowed_extensions')
    return ImageLimits(
        min_bytes=int(section.get('min_bytes', DEFAULT_IMAGE_LIMITS.min_bytes)),
        max_bytes=int(section.get('max_bytes', DEFAULT_IMAGE_LIMITS.max_bytes)),
        allowed_extensions=(
            frozenset(e.lower().lstrip('.') for e in extensions)
            if extensions else DEFAULT_IMAGE_LIMITS.allowed_extensions
        ),
        min_dimension=int(section.get('min_dimension', DEFAULT_IMAGE_LIMITS.min_dimension)),
        max_dimension=int(section.get('max_dimension', DEFAULT_IMAGE_LIMITS.max_dimension)),
    )


def get_dimensions(data: bytes) -> Optional[Tuple[int, int]]:
    """Read (width, height) from image bytes, or None if Pillow can't decode them."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        logger.debug(f"Could not decode image: {e}")
        return None


def validate_image(
    data: bytes,
    filename: Optional[str] = None,
    limits: ImageLimits = DEFAULT_IMAGE_LIMITS,
) -> Tuple[bool, Optional[str]]:
    """
    Validate an image before upload.

    Args:
        data: Raw image bytes
        filename: Original filename, if known (extension is checked)
        limits: Size/extension/dimension bounds

    Returns:
        Tuple of (is_valid, error)
        - is_valid: True if the image can be uploaded
        - error: Human-readable reason for rejection, or None if valid
    """
    if len(data) > limits.max_bytes:
        return False, f"Image size exceeds {limits.max_bytes // (1024 * 1024)}MB limit"

    if len(data) < limits.min_bytes:
        return False, "Image file is too small"

    if filename is not None:
        extension = filename.lower().rsplit('.', 1)[-1] if '.' in filename else ''
        if extension not in limits.allowed_extensions:
            return False, "Only JPEG, PNG, and HEIC images are allowed"

    dimensions = get_dimensions(data)
    if dimensions is None:
        return False, "Invalid image file"

    width, height = dimensions
    if width < limits.min_dimension or height < limits.min_dimension:
        return False, (
            f"Image dimensions too small "
            f"(minimum {limits.min_dimension}x{limits.min_dimension})"
        )

    if width > limits.max_dimension or height > limits.max_dimension:
        return False, (
            f"Image dimensions too large "
            f"(maximum {limits.max_dimension}x{limits.max_dimension})"
        )

    return True, None
