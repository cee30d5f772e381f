"""
Constants and configuration values for Cartoon Avatar.

This module centralizes all default values, magic numbers, and
configuration settings used throughout the library.
"""

# Cartoon filter defaults
DEFAULT_MAX_DIMENSION = 512
DEFAULT_LEVELS = 8
DEFAULT_CONTRAST_FACTOR = 1.3
DEFAULT_SATURATION_FACTOR = 1.4
DEFAULT_EDGE_THRESHOLD = 30.0
DEFAULT_EDGE_DARKENING = 100

# Channel math
CHANNEL_MIN = 0
CHANNEL_MAX = 255
CHANNEL_MIDPOINT = 128
CHANNEL_VALUES = 256
MAX_LEVELS = 256

# Sobel kernels (row-major, applied to the red channel)
SOBEL_X = (
    (-1, 0, 1),
    (-2, 0, 2),
    (-1, 0, 1),
)
SOBEL_Y = (
    (-1, -2, -1),
    (0, 0, 0),
    (1, 2, 1),
)

# Encoding
DEFAULT_OUTPUT_FORMAT = "PNG"
PIXEL_MODE = "RGBA"
BYTES_PER_PIXEL = 4
FORMAT_MIME_TYPES = {
    "PNG": "image/png",
    "WEBP": "image/webp",
    "TIFF": "image/tiff",
}
# Formats that store RGBA without changing a pixel, with their save arguments
LOSSLESS_SAVE_OPTIONS = {
    "PNG": {},
    "WEBP": {"lossless": True, "exact": True},
    "TIFF": {},
}

# Upload rules
MAX_UPLOAD_BYTES = 5 * 1024 * 1024
SUPPORTED_UPLOAD_IMAGES = {".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp", ".tiff"}
IMAGE_MIME_PREFIX = "image/"

# File naming
OUTPUT_FILE_PREFIX = "cartoon_"

# Node types
NODE_TYPE_IMAGE_IMPORT = "Image Import"
NODE_TYPE_CARTOONIZE = "Cartoonize"
NODE_TYPE_OUTPUT = "Output"
