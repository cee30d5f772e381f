"""
CA_Libs - Cartoon Avatar Library Modules

This package turns photos into cartoon-style avatars, organized into
specialized sub-packages:

- ImageEditingLib: Cartoon filter, image models, decode/encode helpers
- NodesLib: Import, cartoonize and output nodes
- PipelineLib: Node executor registry and batch conversion
"""

from CA_Libs.errors import (
    CartoonizeError,
    DecodeError,
    EncodeError,
    InvalidOptions,
    NodeExecutionError,
    UploadTooLargeError,
)
from CA_Libs.ImageEditingLib import (
    CartoonFilterOptions,
    SourceImage,
    StylizedImage,
    StylizeStage,
    stylize,
)

__version__ = "0.1.0"

__all__ = [
    "CartoonizeError",
    "DecodeError",
    "EncodeError",
    "InvalidOptions",
    "NodeExecutionError",
    "UploadTooLargeError",
    "CartoonFilterOptions",
    "SourceImage",
    "StylizedImage",
    "StylizeStage",
    "stylize",
]
