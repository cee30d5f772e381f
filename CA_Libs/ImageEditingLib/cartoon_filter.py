"""
Cartoon Filter Operations.

Turns a photo into a flat-shaded, outlined cartoon avatar in four passes
over an RGBA working buffer:

1. Resize: proportional bilinear downscale so the longer side fits
   ``max_dimension``
2. Posterize: snap R, G, B onto ``levels`` bands per channel
3. Enhance: contrast stretch around 128, then saturation boost around the
   per-pixel channel mean
4. Edges: 3x3 Sobel on the red channel; interior pixels whose gradient
   magnitude exceeds ``edge_threshold`` are darkened into a separate edge
   buffer

The edge buffer is then encoded (PNG by default).

Every call allocates its own buffers, so ``stylize`` is reentrant and safe
to run from several threads at once.

Example:
    >>> from PIL import Image
    >>> img = Image.open("photo.jpg")
    >>> result = stylize(img, CartoonFilterOptions(levels=6))
    >>> result.size
    (512, 384)
    >>> avatar_url = result.to_data_url()
"""

import json
import logging
import math
from dataclasses import asdict, dataclass
from enum import Enum
from numbers import Real
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, Union

import numpy as np
from PIL import Image

from CA_Libs.constants import (
    CHANNEL_MAX,
    CHANNEL_MIDPOINT,
    CHANNEL_MIN,
    CHANNEL_VALUES,
    DEFAULT_CONTRAST_FACTOR,
    DEFAULT_EDGE_DARKENING,
    DEFAULT_EDGE_THRESHOLD,
    DEFAULT_LEVELS,
    DEFAULT_MAX_DIMENSION,
    DEFAULT_OUTPUT_FORMAT,
    DEFAULT_SATURATION_FACTOR,
    MAX_LEVELS,
    PIXEL_MODE,
    SOBEL_X,
    SOBEL_Y,
)
from CA_Libs.errors import InvalidOptions
from CA_Libs.ImageEditingLib.image_codec import decode_image, encode_pixels, normalize_format
from CA_Libs.ImageEditingLib.image_models import SourceImage, StylizedImage

logger = logging.getLogger(__name__)


class StylizeStage(Enum):
    """Stages a single stylize() call moves through, in order."""
    IDLE = "idle"
    RESIZING = "resizing"
    QUANTIZING = "quantizing"
    ENHANCING = "enhancing"
    EDGE_DETECTING = "edge_detecting"
    ENCODING = "encoding"
    DONE = "done"


StageCallback = Callable[[StylizeStage], None]


# ============================================================================
# Options
# ============================================================================

@dataclass(frozen=True)
class CartoonFilterOptions:
    """Configuration for the cartoon filter.

    Attributes:
        max_dimension: Upper bound for the longer output side (pixels, >= 1)
        levels: Posterization bands per channel (1-256)
        contrast_factor: Contrast multiplier around mid-gray (>= 0)
        saturation_factor: Saturation multiplier around the channel mean (>= 0)
        edge_threshold: Sobel magnitude above which a pixel counts as edge (>= 0)
        edge_darkening: Amount subtracted from R, G, B on edge pixels (0-255)
        output_format: Lossless format for the encoded result (PNG, WEBP or TIFF)
    """
    max_dimension: int = DEFAULT_MAX_DIMENSION
    levels: int = DEFAULT_LEVELS
    contrast_factor: float = DEFAULT_CONTRAST_FACTOR
    saturation_factor: float = DEFAULT_SATURATION_FACTOR
    edge_threshold: float = DEFAULT_EDGE_THRESHOLD
    edge_darkening: int = DEFAULT_EDGE_DARKENING
    output_format: str = DEFAULT_OUTPUT_FORMAT

    def validate(self) -> None:
        """
        Check every option is in range.

        Raises:
            InvalidOptions: On the first out-of-range option
        """
        _require_int("max_dimension", self.max_dimension, minimum=1)
        _require_int("levels", self.levels, minimum=1, maximum=MAX_LEVELS)
        _require_real("contrast_factor", self.contrast_factor)
        _require_real("saturation_factor", self.saturation_factor)
        _require_real("edge_threshold", self.edge_threshold)
        _require_int("edge_darkening", self.edge_darkening, minimum=0, maximum=CHANNEL_MAX)

        if not isinstance(self.output_format, str) or not self.output_format.strip():
            raise InvalidOptions(f"output_format must be a non-empty string, got {self.output_format!r}")

    @property
    def step(self) -> int:
        """Posterization step, ``floor(256 / levels)``."""
        return CHANNEL_VALUES // self.levels

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartoonFilterOptions":
        """Create from dictionary, ignoring unknown keys."""
        filtered = {k: v for k, v in data.items()
                    if k in cls.__dataclass_fields__ and v is not None}
        return cls(**filtered)


def _require_int(name: str, value: Any, minimum: int, maximum: Optional[int] = None) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidOptions(f"{name} must be an integer, got {value!r}")
    if value < minimum or (maximum is not None and value > maximum):
        upper = f"..{maximum}" if maximum is not None else " or more"
        raise InvalidOptions(f"{name} must be {minimum}{upper}, got {value}")


def _require_real(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidOptions(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value) or value < 0:
        raise InvalidOptions(f"{name} must be finite and >= 0, got {value}")


def resolve_options(
    options: Union[CartoonFilterOptions, Dict[str, Any], None],
) -> CartoonFilterOptions:
    """Turn ``None``, a dict, or an options object into validated options."""
    if options is None:
        resolved = CartoonFilterOptions()
    elif isinstance(options, CartoonFilterOptions):
        resolved = options
    elif isinstance(options, dict):
        try:
            resolved = CartoonFilterOptions.from_dict(options)
        except TypeError as exc:
            raise InvalidOptions(str(exc)) from exc
    else:
        raise InvalidOptions(f"Unsupported options type: {type(options).__name__}")

    resolved.validate()
    return resolved


def load_options_file(path: Union[str, Path]) -> CartoonFilterOptions:
    """
    Load filter options from a JSON file.

    The file holds a single object whose keys match CartoonFilterOptions
    fields; unknown keys are ignored.

    Raises:
        InvalidOptions: If the file is unreadable, not a JSON object, or
            holds out-of-range values
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise InvalidOptions(f"Cannot read options file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise InvalidOptions(f"Options file {path} must contain a JSON object")

    return resolve_options(data)


# ============================================================================
# Stage 1: Resize
# ============================================================================

def compute_scaled_size(width: int, height: int, max_dimension: int) -> Tuple[int, int]:
    """
    Compute output dimensions that fit ``max_dimension`` on the longer side.

    Images already within bound are returned unchanged (never upscaled).
    The shorter side is scaled by the same ratio and rounded to the nearest
    integer, at least 1.

    Example:
        >>> compute_scaled_size(600, 300, 512)
        (512, 256)
        >>> compute_scaled_size(256, 256, 256)
        (256, 256)
    """
    longest = max(width, height)
    if longest <= max_dimension:
        return width, height

    if width >= height:
        scaled_height = max(1, int(math.floor(height * max_dimension / width + 0.5)))
        return max_dimension, scaled_height

    scaled_width = max(1, int(math.floor(width * max_dimension / height + 0.5)))
    return scaled_width, max_dimension


def resize_to_working_buffer(source: SourceImage, size: Tuple[int, int]) -> np.ndarray:
    """
    Resample the source into a fresh, writable (H, W, 4) working buffer.

    Uses bilinear filtering when the size changes; otherwise copies.
    """
    if size == source.size:
        return source.to_array().copy()

    image = Image.frombytes(PIXEL_MODE, source.size, source.pixels)
    resized = image.resize(size, resample=Image.Resampling.BILINEAR)
    return np.array(resized, dtype=np.uint8)


# ============================================================================
# Stage 2: Posterize
# ============================================================================

def posterize(buffer: np.ndarray, levels: int) -> np.ndarray:
    """
    Snap R, G, B onto ``levels`` bands in place; alpha is untouched.

    Each channel becomes ``floor(value / step) * step`` with
    ``step = floor(256 / levels)``.

    Returns:
        The same buffer, for chaining
    """
    step = CHANNEL_VALUES // levels
    rgb = buffer[..., :3]
    # step reaches 256 at levels=1, outside uint8
    rgb[...] = ((rgb.astype(np.int32) // step) * step).astype(np.uint8)
    return buffer


# ============================================================================
# Stage 3: Contrast and saturation
# ============================================================================

def _clamp_round(values: np.ndarray) -> np.ndarray:
    # Round half away from zero; values are non-negative after clipping.
    clipped = np.clip(values, CHANNEL_MIN, CHANNEL_MAX)
    return np.floor(clipped + 0.5).astype(np.uint8)


def enhance_contrast_saturation(
    buffer: np.ndarray,
    contrast_factor: float = DEFAULT_CONTRAST_FACTOR,
    saturation_factor: float = DEFAULT_SATURATION_FACTOR,
) -> np.ndarray:
    """
    Apply contrast then saturation to R, G, B in place.

    Contrast: ``clamp((v - 128) * contrast_factor + 128)``, stored as 8-bit.
    Saturation: ``clamp(avg + (v - avg) * saturation_factor)`` where ``avg`` is
    the mean of the stored contrast-adjusted channels.

    Returns:
        The same buffer, for chaining
    """
    rgb = buffer[..., :3]

    contrasted = (rgb.astype(np.float64) - CHANNEL_MIDPOINT) * contrast_factor + CHANNEL_MIDPOINT
    rgb[...] = _clamp_round(contrasted)

    values = rgb.astype(np.float64)
    avg = values.sum(axis=2, keepdims=True) / 3.0
    saturated = avg + (values - avg) * saturation_factor
    rgb[...] = _clamp_round(saturated)

    return buffer


# ============================================================================
# Stage 4: Edge detection and composite
# ============================================================================

def sobel_magnitude(buffer: np.ndarray) -> np.ndarray:
    """
    Sobel gradient magnitude of the red channel for interior pixels.

    The red channel stands in for luminance.

    Returns:
        Float array of shape (H - 2, W - 2); empty when either side < 3
    """
    height, width = buffer.shape[:2]
    if height < 3 or width < 3:
        return np.zeros((max(height - 2, 0), max(width - 2, 0)), dtype=np.float64)

    red = buffer[..., 0].astype(np.int32)
    gx = np.zeros((height - 2, width - 2), dtype=np.int32)
    gy = np.zeros_like(gx)

    for ky in range(3):
        for kx in range(3):
            window = red[ky:height - 2 + ky, kx:width - 2 + kx]
            gx += SOBEL_X[ky][kx] * window
            gy += SOBEL_Y[ky][kx] * window

    return np.sqrt((gx * gx + gy * gy).astype(np.float64))


def compute_edge_mask(buffer: np.ndarray, threshold: float = DEFAULT_EDGE_THRESHOLD) -> np.ndarray:
    """
    Boolean (H, W) mask of pixels whose Sobel magnitude exceeds ``threshold``.

    Border pixels are always False.
    """
    height, width = buffer.shape[:2]
    mask = np.zeros((height, width), dtype=bool)
    if height >= 3 and width >= 3:
        mask[1:-1, 1:-1] = sobel_magnitude(buffer) > threshold
    return mask


def apply_edge_darkening(
    working: np.ndarray,
    threshold: float = DEFAULT_EDGE_THRESHOLD,
    darkening: int = DEFAULT_EDGE_DARKENING,
) -> np.ndarray:
    """
    Composite darkened edges into a new buffer.

    Reads only from ``working`` and writes only to the returned edge buffer,
    so every gradient sees pre-edge neighbour values. Edge pixels get
    ``max(0, c - darkening)`` on R, G, B; all other pixels (border included)
    are copied unchanged.

    Returns:
        The edge buffer, a new (H, W, 4) uint8 array
    """
    edge_buffer = working.copy()
    mask = compute_edge_mask(working, threshold)

    if mask.any():
        darkened = np.maximum(working[..., :3].astype(np.int16) - darkening, 0).astype(np.uint8)
        edge_buffer[mask, :3] = darkened[mask]

    logger.debug(f"Edge pass darkened {int(mask.sum())} of {mask.size} pixels")
    return edge_buffer


# ============================================================================
# Full pipeline
# ============================================================================

def stylize(
    image: Any,
    options: Union[CartoonFilterOptions, Dict[str, Any], None] = None,
    on_stage: Optional[StageCallback] = None,
) -> StylizedImage:
    """
    Convert an image into a cartoon-style avatar.

    Args:
        image: SourceImage, PIL Image, compressed bytes, data URL or path
        options: CartoonFilterOptions, a dict of option fields, or None for
                 defaults
        on_stage: Optional callback invoked with each StylizeStage as the
                  pipeline advances

    Returns:
        StylizedImage at the scaled dimensions, encoded in
        ``options.output_format``

    Raises:
        InvalidOptions: If any option is out of range (before decoding)
        DecodeError: If the input cannot be interpreted as a raster image
        EncodeError: If the output format is unsupported
    """
    opts = resolve_options(options)

    def enter(stage: StylizeStage) -> None:
        logger.debug(f"Stylize stage: {stage.value}")
        if on_stage is not None:
            on_stage(stage)

    enter(StylizeStage.IDLE)
    source = decode_image(image)

    enter(StylizeStage.RESIZING)
    scaled_size = compute_scaled_size(source.width, source.height, opts.max_dimension)
    working = resize_to_working_buffer(source, scaled_size)

    enter(StylizeStage.QUANTIZING)
    posterize(working, opts.levels)

    enter(StylizeStage.ENHANCING)
    enhance_contrast_saturation(working, opts.contrast_factor, opts.saturation_factor)

    enter(StylizeStage.EDGE_DETECTING)
    edge_buffer = apply_edge_darkening(working, opts.edge_threshold, opts.edge_darkening)

    enter(StylizeStage.ENCODING)
    output_format = normalize_format(opts.output_format)
    encoded = encode_pixels(edge_buffer, output_format)

    width, height = scaled_size
    result = StylizedImage(
        width=width,
        height=height,
        pixels=edge_buffer.tobytes(),
        encoded=encoded,
        format=output_format,
    )

    enter(StylizeStage.DONE)
    logger.info(
        f"Stylized {source.width}x{source.height} -> {width}x{height} "
        f"({output_format}, {len(encoded)} bytes)"
    )
    return result
