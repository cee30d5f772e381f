"""
Image data models for Cartoon Avatar.

This module defines the raster containers passed in and out of the
cartoon filter.

Classes:
    SourceImage: Decoded input raster (width, height, RGBA bytes)
    StylizedImage: Filter output with its encoded representation

Type Aliases:
    RgbaColor: A tuple of 4 integers representing RGBA color values (0-255)
"""

import base64
from dataclasses import dataclass, field
from typing import Any, Tuple

import numpy as np
from PIL import Image

from CA_Libs.constants import BYTES_PER_PIXEL, FORMAT_MIME_TYPES, PIXEL_MODE
from CA_Libs.errors import DecodeError

RgbaColor = Tuple[int, int, int, int]


@dataclass(frozen=True)
class SourceImage:
    """Decoded input raster.

    Attributes:
        width: Width in pixels (positive)
        height: Height in pixels (positive)
        pixels: Flat RGBA buffer, 4 bytes per pixel, row-major
    """
    width: int
    height: int
    pixels: bytes = field(repr=False)

    def __post_init__(self):
        """Validate the buffer shape."""
        if not isinstance(self.width, int) or not isinstance(self.height, int):
            raise DecodeError(
                f"Image dimensions must be integers, got {self.width!r}x{self.height!r}"
            )
        if self.width <= 0 or self.height <= 0:
            raise DecodeError(f"Image dimensions must be positive, got {self.width}x{self.height}")

        pixels = self.pixels
        if isinstance(pixels, (bytearray, memoryview)):
            pixels = bytes(pixels)
            object.__setattr__(self, "pixels", pixels)
        if not isinstance(pixels, bytes):
            raise DecodeError(f"Pixel buffer must be bytes, got {type(pixels).__name__}")

        expected = self.width * self.height * BYTES_PER_PIXEL
        if len(pixels) != expected:
            raise DecodeError(
                f"Pixel buffer length {len(pixels)} does not match "
                f"{self.width}x{self.height} RGBA ({expected} bytes)"
            )

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @classmethod
    def from_pil(cls, image: Any) -> "SourceImage":
        """Build a SourceImage from a PIL Image of any mode."""
        if not hasattr(image, "tobytes") or not hasattr(image, "convert"):
            raise DecodeError(f"Expected PIL Image, got {type(image).__name__}")
        if image.mode != PIXEL_MODE:
            image = image.convert(PIXEL_MODE)
        width, height = image.size
        return cls(width=width, height=height, pixels=image.tobytes())

    @classmethod
    def from_array(cls, array: np.ndarray) -> "SourceImage":
        """Build a SourceImage from an (H, W, 4) uint8 array."""
        if array.ndim != 3 or array.shape[2] != BYTES_PER_PIXEL:
            raise DecodeError(f"Expected (H, W, 4) array, got shape {array.shape}")
        height, width = array.shape[:2]
        data = np.ascontiguousarray(array, dtype=np.uint8).tobytes()
        return cls(width=int(width), height=int(height), pixels=data)

    def to_array(self) -> np.ndarray:
        """Return a read-only (H, W, 4) uint8 view of the pixels."""
        return np.frombuffer(self.pixels, dtype=np.uint8).reshape(
            self.height, self.width, BYTES_PER_PIXEL
        )

    def to_pil(self) -> Any:
        return Image.frombytes(PIXEL_MODE, self.size, self.pixels)


@dataclass(frozen=True)
class StylizedImage:
    """Output of the cartoon filter.

    Attributes:
        width: Scaled width in pixels
        height: Scaled height in pixels
        pixels: Flat RGBA buffer of the edge-composited result
        encoded: The pixels serialized in ``format``
        format: Pillow format name used for ``encoded`` (e.g. "PNG")
    """
    width: int
    height: int
    pixels: bytes = field(repr=False)
    encoded: bytes = field(repr=False)
    format: str = "PNG"

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def mime_type(self) -> str:
        return FORMAT_MIME_TYPES.get(self.format.upper(), "application/octet-stream")

    def to_array(self) -> np.ndarray:
        """Return a read-only (H, W, 4) uint8 view of the pixels."""
        return np.frombuffer(self.pixels, dtype=np.uint8).reshape(
            self.height, self.width, BYTES_PER_PIXEL
        )

    def to_pil(self) -> Any:
        return Image.frombytes(PIXEL_MODE, self.size, self.pixels)

    def to_data_url(self) -> str:
        """
        Encode the result as a ``data:`` URL.

        Returns:
            String of the form ``data:image/png;base64,...``
        """
        payload = base64.b64encode(self.encoded).decode("ascii")
        return f"data:{self.mime_type};base64,{payload}"
