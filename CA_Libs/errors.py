"""
Exception types raised by Cartoon Avatar.

Classes:
    CartoonizeError: Base class for every error raised by the library
    DecodeError: Input could not be interpreted as a raster image
    EncodeError: Output could not be produced in the requested format
    InvalidOptions: Filter options are out of range
    UploadTooLargeError: Uploaded file exceeds the size limit
    NodeExecutionError: A node in an avatar chain failed
"""


class CartoonizeError(Exception):
    """Base class for Cartoon Avatar errors."""


class DecodeError(CartoonizeError):
    """Raised when the input cannot be interpreted as a raster image."""


class EncodeError(CartoonizeError):
    """Raised when the host cannot encode the result in the requested format."""


class InvalidOptions(CartoonizeError, ValueError):
    """Raised before any processing when an option is out of range."""


class UploadTooLargeError(CartoonizeError, ValueError):
    """Raised when an uploaded file is larger than the configured limit."""


class NodeExecutionError(CartoonizeError):
    """Raised when a node in an avatar chain fails; wraps the cause."""

    def __init__(self, node_id: str, message: str):
        super().__init__(f"Error executing node {node_id}: {message}")
        self.node_id = node_id
