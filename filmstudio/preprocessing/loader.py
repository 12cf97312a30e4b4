"""Image loading for templates and photos: paths, data URLs, raw bytes, HEIC."""

import base64
import binascii
import io
import logging
from pathlib import Path
from typing import Tuple, Union

import numpy as np
from PIL import Image, ExifTags, UnidentifiedImageError

from filmstudio.errors import ResourceDecodeFailure

logger = logging.getLogger(__name__)

ImageReference = Union[str, bytes, Path]

_HEIC_SUFFIXES = ('.heic', '.heif')
_STANDARD_SUFFIXES = ('.jpg', '.jpeg', '.png', '.tiff', '.tif', '.webp', '.bmp', '.gif')


class ImageMetadata:
    """Metadata extracted from a decoded image."""

    def __init__(
        self,
        original_size: Tuple[int, int],
        format: str,
        orientation: int = 1,
        has_alpha: bool = False
    ) -> None:
        self.original_size = original_size  # (width, height)
        self.format = format
        self.orientation = orientation
        self.has_alpha = has_alpha


def _apply_exif_orientation(img: Image.Image) -> Tuple[Image.Image, int]:
    """Apply EXIF orientation to a PIL Image, returning the tag value used."""
    try:
        exif = img.getexif()
    except (AttributeError, OSError) as e:
        logger.debug(f"Could not read EXIF data: {e}")
        return img, 1

    orientation_key = None
    for tag, name in ExifTags.TAGS.items():
        if name == 'Orientation':
            orientation_key = tag
            break

    orientation = exif.get(orientation_key, 1) if orientation_key is not None else 1

    if orientation == 2:
        img = img.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
    elif orientation == 3:
        img = img.rotate(180, expand=True)
    elif orientation == 4:
        img = img.rotate(180, expand=True).transpose(Image.Transpose.FLIP_LEFT_RIGHT)
    elif orientation == 5:
        img = img.rotate(-90, expand=True).transpose(Image.Transpose.FLIP_LEFT_RIGHT)
    elif orientation == 6:
        img = img.rotate(-90, expand=True)
    elif orientation == 7:
        img = img.rotate(90, expand=True).transpose(Image.Transpose.FLIP_LEFT_RIGHT)
    elif orientation == 8:
        img = img.rotate(90, expand=True)

    if orientation != 1:
        logger.debug(f"Applied EXIF orientation: {orientation}")

    return img, orientation


def _register_heic_support() -> None:
    """Enable HEIC/HEIF decoding through pillow-heif."""
    try:
        from pillow_heif import register_heif_opener
        register_heif_opener()
    except ImportError as e:
        raise ImportError(
            "pillow-heif is required for HEIC support. "
            "Install with: pip install pillow-heif"
        ) from e


def _describe(reference: ImageReference) -> str:
    """Short printable form of a reference for logs and errors."""
    if isinstance(reference, bytes):
        return f"<{len(reference)} bytes>"
    text = str(reference)
    if text.startswith('data:'):
        return text[:40] + '...'
    return text


def _read_reference(reference: ImageReference) -> Tuple[bytes, str]:
    """Resolve a reference into encoded bytes and a format hint."""
    if isinstance(reference, bytes):
        return reference, ''

    text = str(reference)

    if text.startswith('data:'):
        header, _, payload = text.partition(',')
        if not payload:
            raise ValueError("Malformed data URL")
        mime = header[5:].split(';')[0]
        hint = mime.split('/')[-1].upper() if mime else ''
        if header.endswith(';base64'):
            try:
                return base64.b64decode(payload, validate=True), hint
            except binascii.Error as e:
                raise ValueError(f"Invalid base64 payload: {e}") from e
        return payload.encode('latin-1'), hint

    path = Path(text)
    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {text}")

    ext = path.suffix.lower()
    if ext in _HEIC_SUFFIXES:
        _register_heic_support()
    elif ext and ext not in _STANDARD_SUFFIXES:
        raise ValueError(f"Unsupported image format: {ext}")

    return path.read_bytes(), ext.lstrip('.').upper()


def to_rgba(image: np.ndarray) -> np.ndarray:
    """Coerce a pixel buffer to uint8 RGBA with shape (H, W, 4).

    Accepts grayscale, RGB or RGBA arrays, either uint8 [0, 255] or float
    [0, 1]. RGB inputs are treated as fully opaque. Always returns a new array.
    """
    if image.ndim == 2:
        image = np.stack([image, image, image], axis=-1)
    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise ValueError(f"Unsupported pixel buffer shape: {image.shape}")

    if image.dtype != np.uint8:
        if np.issubdtype(image.dtype, np.floating):
            image = np.clip(image * 255.0 + 0.5, 0, 255).astype(np.uint8)
        else:
            image = np.clip(image, 0, 255).astype(np.uint8)

    if image.shape[2] == 3:
        alpha = np.full(image.shape[:2] + (1,), 255, dtype=np.uint8)
        return np.concatenate([image, alpha], axis=-1)

    return image.copy()


def load_image(reference: ImageReference) -> Tuple[np.ndarray, ImageMetadata]:
    """Decode an image reference into an RGBA pixel buffer.

    Supports filesystem paths (JPEG, PNG, TIFF, WebP, HEIC), ``data:`` URLs
    and raw encoded bytes.

    Args:
        reference: Path, data URL or encoded bytes

    Returns:
        Tuple of (uint8 RGBA array with shape (H, W, 4), metadata)

    Raises:
        ResourceDecodeFailure: If the reference cannot be read or decoded
    """
    description = _describe(reference)

    try:
        data, hint = _read_reference(reference)
        img = Image.open(io.BytesIO(data))
        img.load()

        original_size = img.size
        format_name = img.format or hint or 'UNKNOWN'
        has_alpha = img.mode in ('RGBA', 'LA', 'PA') or 'transparency' in img.info

        img, orientation = _apply_exif_orientation(img)
        arr = np.array(img.convert('RGBA'), dtype=np.uint8)
    except ImportError as e:
        # Optional HEIC decoder not installed
        raise ResourceDecodeFailure(description, str(e)) from e
    except (OSError, ValueError, UnidentifiedImageError, Image.DecompressionBombError) as e:
        raise ResourceDecodeFailure(description, str(e)) from e

    metadata = ImageMetadata(
        original_size=original_size,
        format=format_name,
        orientation=orientation,
        has_alpha=has_alpha
    )

    logger.debug(f"Loaded {format_name}: {description} ({arr.shape[1]}x{arr.shape[0]})")

    return arr, metadata


def decode_image(reference: ImageReference) -> np.ndarray:
    """Decode a reference to an RGBA buffer, discarding metadata."""
    image, _ = load_image(reference)
    return image
