"""
Output Node for Cartoon Avatar.

This node writes a StylizedImage's encoded bytes to disk. The output path may
contain tags that are filled in at save time:

- {STEM} - stem of the source file name (e.g. "portrait" for "portrait.jpg")
- {EXT}  - file extension for the encoded format (e.g. "png")

Classes:
    OutputNodeConfig: Configuration for output node
    OutputNodeHandler: Resolves paths and writes files

Functions:
    execute_output_node: Pipeline executor for output nodes
    create_output_node: Helper to create output node dictionary
"""

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from CA_Libs.constants import NODE_TYPE_OUTPUT, OUTPUT_FILE_PREFIX
from CA_Libs.ImageEditingLib.image_models import StylizedImage

logger = logging.getLogger(__name__)

FORMAT_EXTENSIONS = {
    "TIFF": "tif",
}


@dataclass
class OutputNodeConfig:
    """Configuration for output node execution.

    Attributes:
        output_path: Target path, may contain {STEM} and {EXT} tags
        stem: Value substituted for {STEM}
        create_directories: Create missing parent directories (default: True)
        overwrite: Overwrite existing files (default: False)
        base_directory: Optional absolute directory outputs must stay inside
    """
    output_path: str = OUTPUT_FILE_PREFIX + "{STEM}.{EXT}"
    stem: str = "avatar"
    create_directories: bool = True
    overwrite: bool = False
    base_directory: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OutputNodeConfig":
        """Create from dictionary."""
        filtered = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**filtered)


def extension_for_format(fmt: str) -> str:
    """File extension (without dot) for a Pillow format name."""
    fmt = fmt.upper()
    return FORMAT_EXTENSIONS.get(fmt, fmt.lower())


class OutputNodeHandler:
    """Resolves output filenames and writes encoded images."""

    def __init__(self, config: OutputNodeConfig):
        """Initialize handler with configuration."""
        self.config = config
        self._base_dir = None
        if config.base_directory:
            base_path = Path(config.base_directory)
            if not base_path.is_absolute():
                raise ValueError(f"base_directory must be an absolute path: {config.base_directory}")
            self._base_dir = base_path.resolve()

    def resolve_filename(self, fmt: str) -> Path:
        """
        Substitute tags and validate the output path.

        Raises:
            ValueError: If the path contains '..' or leaves base_directory
        """
        filename = self.config.output_path
        filename = filename.replace("{STEM}", self.config.stem)
        filename = filename.replace("{EXT}", extension_for_format(fmt))
        return self._validate_output_path(filename)

    def _validate_output_path(self, path_str: str) -> Path:
        path = Path(path_str)

        if ".." in path.parts:
            raise ValueError(f"Path traversal detected: output_path contains '..': {path_str}")

        if path.is_absolute():
            resolved_path = path.resolve()
        elif self._base_dir:
            resolved_path = (self._base_dir / path).resolve()
        else:
            resolved_path = path.resolve()

        if self._base_dir:
            try:
                resolved_path.relative_to(self._base_dir)
            except ValueError:
                raise ValueError(
                    f"output_path '{path_str}' resolves to '{resolved_path}' "
                    f"which is outside the allowed base directory '{self._base_dir}'"
                )

        return resolved_path

    def save(self, result: StylizedImage) -> Path:
        """
        Write the encoded image.

        Returns:
            Path where the image was written

        Raises:
            ValueError: If the file exists and overwrite is False
            OSError: If the file cannot be written
        """
        target = self.resolve_filename(result.format)

        if target.exists() and not self.config.overwrite:
            raise ValueError(f"Output file already exists: {target}")

        if self.config.create_directories:
            target.parent.mkdir(parents=True, exist_ok=True)

        target.write_bytes(result.encoded)
        logger.info(f"Saved {result.width}x{result.height} avatar to {target}")
        return target


def execute_output_node(node: Dict[str, Any], inputs: List[Any]) -> Path:
    """
    Pipeline executor for output nodes.

    Inputs:
        - [0]: StylizedImage to save

    Returns:
        Path of the written file

    Raises:
        ValueError: If no input is connected or the path is rejected
        TypeError: If the input is not a StylizedImage
    """
    if not inputs:
        raise ValueError("Output node requires an image input")

    result = inputs[0]
    if not isinstance(result, StylizedImage):
        raise TypeError(f"Expected StylizedImage, got {type(result).__name__}")

    handler = OutputNodeHandler(OutputNodeConfig.from_dict(node))
    return handler.save(result)


def create_output_node(node_id: str, output_path: str, **kwargs: Any) -> Dict[str, Any]:
    """
    Create output node dictionary.

    Args:
        node_id: Unique node identifier
        output_path: Target path, may contain {STEM} and {EXT}
        **kwargs: Other OutputNodeConfig fields (stem, overwrite, ...)
    """
    node = {
        "id": node_id,
        "type": NODE_TYPE_OUTPUT,
        "output_path": output_path,
    }
    node.update(kwargs)
    return node
