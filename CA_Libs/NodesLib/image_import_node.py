"""
Image Import Node for Cartoon Avatar.

This module loads avatar uploads from disk or memory and applies the upload
rules: image files only (PNG, JPG, GIF, ...), at most 5 MB, and the first
frame of animated images.

Classes:
    ImageImportNode: Data model for image import node

Functions:
    execute_import_image_node: Pipeline executor for image import nodes
    get_supported_image_formats: Get list of supported upload extensions
    is_supported_format: Check a path's extension against the upload list
    validate_upload: Apply the upload rules to in-memory bytes
    load_upload: Validate and decode in-memory upload bytes
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from CA_Libs.constants import IMAGE_MIME_PREFIX, MAX_UPLOAD_BYTES, SUPPORTED_UPLOAD_IMAGES
from CA_Libs.errors import DecodeError, UploadTooLargeError
from CA_Libs.ImageEditingLib.image_codec import decode_bytes
from CA_Libs.ImageEditingLib.image_models import SourceImage

logger = logging.getLogger(__name__)

NOT_AN_IMAGE_MESSAGE = "Please select an image file"


def get_supported_image_formats() -> List[str]:
    """
    Get list of supported upload image formats.

    Returns:
        Sorted list of file extensions (e.g., ['.bmp', '.gif', ...])
    """
    return sorted(SUPPORTED_UPLOAD_IMAGES)


def is_supported_format(file_path: Path) -> bool:
    """Return True if the path has a supported image extension."""
    return Path(file_path).suffix.lower() in SUPPORTED_UPLOAD_IMAGES


def validate_upload(
    data: bytes,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> None:
    """
    Apply the upload rules to raw upload bytes.

    Args:
        data: The uploaded file contents
        filename: Original filename, checked against supported extensions
        content_type: MIME type reported by the client, must be ``image/*``
        max_bytes: Size limit in bytes

    Raises:
        DecodeError: If the upload is empty or not an image file
        UploadTooLargeError: If the upload exceeds ``max_bytes``
    """
    if content_type is not None and not content_type.lower().startswith(IMAGE_MIME_PREFIX):
        raise DecodeError(f"{NOT_AN_IMAGE_MESSAGE} (got {content_type})")

    if filename is not None and not is_supported_format(Path(filename)):
        raise DecodeError(f"{NOT_AN_IMAGE_MESSAGE} (got {filename})")

    if not data:
        raise DecodeError("Uploaded file is empty")

    if len(data) > max_bytes:
        raise UploadTooLargeError(
            f"Upload is {len(data)} bytes; the limit is {max_bytes} bytes"
        )


def load_upload(
    data: bytes,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> SourceImage:
    """Validate in-memory upload bytes and decode them into a SourceImage."""
    validate_upload(data, filename=filename, content_type=content_type, max_bytes=max_bytes)
    return decode_bytes(data)


@dataclass
class ImageImportNode:
    """Data model for an image import node.

    An image import node loads an avatar photo from disk and provides it as
    a SourceImage to downstream nodes.

    Attributes:
        node_id: Unique identifier for this node
        file_path: Path to the image file to import
        max_bytes: Upload size limit in bytes (default 5 MB)
        cache_image: Whether to cache the decoded image (default True)
        cached_image: Cached SourceImage
    """

    node_id: str
    file_path: Path
    max_bytes: int = MAX_UPLOAD_BYTES
    cache_image: bool = True
    cached_image: Optional[SourceImage] = field(default=None, init=False)

    def __post_init__(self):
        """Validate input parameters."""
        self.file_path = Path(self.file_path)

        if not self.file_path.exists():
            raise FileNotFoundError(f"Image file not found: {self.file_path}")

        if not self.file_path.is_file():
            raise ValueError(f"Path is not a file: {self.file_path}")

        if not is_supported_format(self.file_path):
            raise DecodeError(f"{NOT_AN_IMAGE_MESSAGE} (got {self.file_path.name})")

        if self.max_bytes <= 0:
            raise ValueError(f"max_bytes must be > 0, got {self.max_bytes}")

    def load_image(self) -> SourceImage:
        """
        Load and decode the image from disk.

        Returns:
            SourceImage in RGBA

        Raises:
            UploadTooLargeError: If the file exceeds max_bytes
            DecodeError: If the file cannot be decoded
        """
        if self.cached_image is not None and self.cache_image:
            return self.cached_image

        size = self.file_path.stat().st_size
        if size > self.max_bytes:
            raise UploadTooLargeError(
                f"{self.file_path.name} is {size} bytes; the limit is {self.max_bytes} bytes"
            )

        try:
            data = self.file_path.read_bytes()
        except OSError as exc:
            raise DecodeError(f"Cannot read image file {self.file_path}: {exc}") from exc

        image = load_upload(data, filename=self.file_path.name, max_bytes=self.max_bytes)
        logger.debug(f"Imported {self.file_path.name} ({image.width}x{image.height})")

        if self.cache_image:
            self.cached_image = image

        return image

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation for serialization."""
        return {
            "node_id": self.node_id,
            "file_path": str(self.file_path),
            "max_bytes": self.max_bytes,
            "cache_image": self.cache_image,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImageImportNode":
        """Create from dictionary representation."""
        return cls(
            node_id=data.get("node_id", ""),
            file_path=Path(data.get("file_path", "")),
            max_bytes=data.get("max_bytes", MAX_UPLOAD_BYTES),
            cache_image=data.get("cache_image", True),
        )


def execute_import_image_node(node: Dict[str, Any], inputs: List[Any]) -> SourceImage:
    """
    Pipeline executor for image import nodes.

    Args:
        node: Node dictionary containing:
            - 'file_path': Path to image file (required)
            - 'max_bytes': Upload size limit (default 5 MB)
        inputs: Should be empty list (import nodes have no inputs)

    Returns:
        SourceImage

    Raises:
        KeyError: If 'file_path' is missing
        FileNotFoundError: If image file not found
        DecodeError: If the file is not a decodable image
        UploadTooLargeError: If the file exceeds the size limit
    """
    file_path = node.get("file_path")
    if not file_path:
        raise KeyError("Image import node missing required 'file_path' field")

    node_id = node.get("id", node.get("node_id", "unknown"))

    import_node = ImageImportNode(
        node_id=node_id,
        file_path=Path(file_path),
        max_bytes=int(node.get("max_bytes", MAX_UPLOAD_BYTES)),
        cache_image=False,
    )

    return import_node.load_image()
