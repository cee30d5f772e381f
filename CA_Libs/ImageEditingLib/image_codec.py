"""
Decode and encode helpers for Cartoon Avatar.

This module is the only place that talks to Pillow's codecs. It turns
uploaded bytes, data URLs, file paths and PIL images into SourceImage
objects, and serializes RGBA buffers back into a raster format.

Functions:
    decode_image: Convert any supported input into a SourceImage
    decode_bytes: Decode compressed image bytes
    parse_data_url: Split a ``data:`` URL into MIME type and payload
    normalize_format: Map user-facing format names onto Pillow's
    encode_pixels: Serialize an (H, W, 4) buffer into a raster format
"""

import base64
import binascii
import io
import logging
from pathlib import Path
from typing import Any, Tuple, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from CA_Libs.constants import (
    BYTES_PER_PIXEL,
    DEFAULT_OUTPUT_FORMAT,
    LOSSLESS_SAVE_OPTIONS,
    PIXEL_MODE,
)
from CA_Libs.errors import DecodeError, EncodeError
from CA_Libs.ImageEditingLib.image_models import SourceImage

logger = logging.getLogger(__name__)

ImageInput = Union[SourceImage, bytes, bytearray, str, Path, Any]

DATA_URL_PREFIX = "data:"


def parse_data_url(url: str) -> Tuple[str, bytes]:
    """
    Split a base64 ``data:`` URL into its MIME type and decoded payload.

    Args:
        url: String such as ``data:image/png;base64,iVBOR...``

    Returns:
        Tuple of (mime_type, payload_bytes)

    Raises:
        DecodeError: If the URL is malformed or not base64-encoded
    """
    if not url.startswith(DATA_URL_PREFIX) or "," not in url:
        raise DecodeError("Not a data URL")

    header, payload = url[len(DATA_URL_PREFIX):].split(",", 1)
    parts = header.split(";")
    mime_type = parts[0] or "text/plain"
    if "base64" not in parts[1:]:
        raise DecodeError("Only base64-encoded data URLs are supported")

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"Invalid base64 payload in data URL: {exc}") from exc

    return mime_type, data


def _first_frame_rgba(image: Any) -> Any:
    n_frames = getattr(image, "n_frames", 1)
    if n_frames <= 1:
        return image.convert(PIXEL_MODE)

    logger.warning(f"Animated image with {n_frames} frames; using the first frame only")
    current = image.tell()
    try:
        image.seek(0)
        return image.convert(PIXEL_MODE)
    finally:
        image.seek(current)


def decode_bytes(data: bytes) -> SourceImage:
    """
    Decode compressed image bytes (PNG, JPEG, GIF, ...) into a SourceImage.

    Raises:
        DecodeError: If the bytes are empty, corrupt or not an image
    """
    if not data:
        raise DecodeError("Image data is empty")

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            rgba = _first_frame_rgba(img)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise DecodeError(f"Cannot decode image data: {exc}") from exc

    return SourceImage.from_pil(rgba)


def decode_image(source: ImageInput) -> SourceImage:
    """
    Convert any supported input into a SourceImage.

    Accepted inputs:
        - SourceImage (returned unchanged)
        - PIL Image (any mode, converted to RGBA)
        - bytes / bytearray of a compressed image
        - ``data:`` URL string
        - file path (str or Path)

    Raises:
        DecodeError: If the input cannot be interpreted as a raster image
    """
    if isinstance(source, SourceImage):
        return source

    if isinstance(source, (bytes, bytearray)):
        return decode_bytes(bytes(source))

    if isinstance(source, str) and source.startswith(DATA_URL_PREFIX):
        mime_type, data = parse_data_url(source)
        if not mime_type.startswith("image/"):
            raise DecodeError(f"Data URL is not an image: {mime_type}")
        return decode_bytes(data)

    if isinstance(source, (str, Path)):
        path = Path(source)
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise DecodeError(f"Cannot read image file {path}: {exc}") from exc
        return decode_bytes(data)

    if hasattr(source, "tobytes") and hasattr(source, "convert"):
        try:
            return SourceImage.from_pil(_first_frame_rgba(source))
        except (OSError, ValueError) as exc:
            raise DecodeError(f"Cannot convert PIL image: {exc}") from exc

    raise DecodeError(f"Unsupported image input type: {type(source).__name__}")


def normalize_format(fmt: str) -> str:
    """Map a user-facing format name onto Pillow's (``jpg`` -> ``JPEG``)."""
    save_format = str(fmt).strip().upper()
    if save_format == "JPG":
        save_format = "JPEG"
    return save_format


def encode_pixels(buffer: np.ndarray, fmt: str = DEFAULT_OUTPUT_FORMAT) -> bytes:
    """
    Serialize an RGBA buffer into a lossless raster format.

    Only formats that hold every RGBA value exactly are accepted (PNG,
    lossless WEBP, TIFF), so the encoded bytes decode back to ``buffer``.

    Args:
        buffer: (H, W, 4) uint8 array
        fmt: PNG (default), WEBP or TIFF

    Returns:
        The encoded bytes

    Raises:
        EncodeError: If the format is not lossless for RGBA or this Pillow
            build cannot write it
    """
    save_format = normalize_format(fmt)
    if save_format not in LOSSLESS_SAVE_OPTIONS:
        raise EncodeError(
            f"Unsupported output format: {fmt} "
            f"(lossless RGBA formats: {', '.join(LOSSLESS_SAVE_OPTIONS)})"
        )

    Image.init()
    if save_format not in Image.SAVE:
        raise EncodeError(f"This Pillow build cannot write {save_format}")

    if buffer.ndim != 3 or buffer.shape[2] != BYTES_PER_PIXEL:
        raise EncodeError(f"Expected (H, W, 4) buffer, got shape {buffer.shape}")

    height, width = buffer.shape[:2]
    image = Image.frombytes(PIXEL_MODE, (width, height), np.ascontiguousarray(buffer).tobytes())

    out = io.BytesIO()
    try:
        image.save(out, format=save_format, **LOSSLESS_SAVE_OPTIONS[save_format])
    except (OSError, KeyError, ValueError) as exc:
        raise EncodeError(f"Cannot encode {width}x{height} RGBA image as {save_format}: {exc}") from exc

    return out.getvalue()
