"""
Cartoon Avatar Nodes Library.

Nodes are the steps of an avatar conversion: import a photo, cartoonize
it, and write the result.

Modules:
    image_import_node: Upload validation and image import
    cartoonize_node: Cartoon filter node
    output_node: Output node for saving encoded avatars
"""

from CA_Libs.NodesLib.image_import_node import (
    ImageImportNode,
    execute_import_image_node,
    get_supported_image_formats,
    is_supported_format,
    load_upload,
    validate_upload,
)
from CA_Libs.NodesLib.cartoonize_node import (
    CartoonizeNodeConfig,
    create_cartoonize_node,
    execute_cartoonize_node,
)
from CA_Libs.NodesLib.output_node import (
    OutputNodeConfig,
    OutputNodeHandler,
    create_output_node,
    execute_output_node,
)

__all__ = [
    "ImageImportNode",
    "execute_import_image_node",
    "get_supported_image_formats",
    "is_supported_format",
    "load_upload",
    "validate_upload",
    "CartoonizeNodeConfig",
    "create_cartoonize_node",
    "execute_cartoonize_node",
    "OutputNodeConfig",
    "OutputNodeHandler",
    "create_output_node",
    "execute_output_node",
]
