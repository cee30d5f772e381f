"""
ImageEditingLib - Core image processing functionality

This module provides the cartoon filter, its image models, and the
decode/encode helpers for the Cartoon Avatar project.
"""

from CA_Libs.ImageEditingLib.image_models import RgbaColor, SourceImage, StylizedImage
from CA_Libs.ImageEditingLib.image_codec import (
    decode_bytes,
    decode_image,
    encode_pixels,
    normalize_format,
    parse_data_url,
)
from CA_Libs.ImageEditingLib.cartoon_filter import (
    CartoonFilterOptions,
    StylizeStage,
    apply_edge_darkening,
    compute_edge_mask,
    compute_scaled_size,
    enhance_contrast_saturation,
    load_options_file,
    posterize,
    resize_to_working_buffer,
    resolve_options,
    sobel_magnitude,
    stylize,
)

__all__ = [
    "RgbaColor",
    "SourceImage",
    "StylizedImage",
    "decode_bytes",
    "decode_image",
    "encode_pixels",
    "normalize_format",
    "parse_data_url",
    "CartoonFilterOptions",
    "StylizeStage",
    "apply_edge_darkening",
    "compute_edge_mask",
    "compute_scaled_size",
    "enhance_contrast_saturation",
    "load_options_file",
    "posterize",
    "resize_to_working_buffer",
    "resolve_options",
    "sobel_magnitude",
    "stylize",
]
