"""
Cartoonize Node for Cartoon Avatar Pipelines.

Wraps the cartoon filter for use with the node executor registry.

Example:
    >>> from CA_Libs.NodesLib.cartoonize_node import create_cartoonize_node
    >>> from CA_Libs.PipelineLib.node_executors import get_default_registry
    >>>
    >>> node = create_cartoonize_node("toon-1", levels=6, edge_threshold=40)
    >>> registry = get_default_registry()
    >>> result = registry.get_executor("Cartoonize")(node, [source_image])
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, List

from CA_Libs.constants import (
    DEFAULT_CONTRAST_FACTOR,
    DEFAULT_EDGE_DARKENING,
    DEFAULT_EDGE_THRESHOLD,
    DEFAULT_LEVELS,
    DEFAULT_MAX_DIMENSION,
    DEFAULT_OUTPUT_FORMAT,
    DEFAULT_SATURATION_FACTOR,
    NODE_TYPE_CARTOONIZE,
)
from CA_Libs.ImageEditingLib.cartoon_filter import CartoonFilterOptions, stylize
from CA_Libs.ImageEditingLib.image_models import StylizedImage


@dataclass
class CartoonizeNodeConfig:
    """Configuration for cartoonize node.

    Attributes mirror CartoonFilterOptions so a node dict can be persisted
    and edited field by field.
    """
    max_dimension: int = DEFAULT_MAX_DIMENSION
    levels: int = DEFAULT_LEVELS
    contrast_factor: float = DEFAULT_CONTRAST_FACTOR
    saturation_factor: float = DEFAULT_SATURATION_FACTOR
    edge_threshold: float = DEFAULT_EDGE_THRESHOLD
    edge_darkening: int = DEFAULT_EDGE_DARKENING
    output_format: str = DEFAULT_OUTPUT_FORMAT

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartoonizeNodeConfig":
        """Create from dictionary."""
        filtered = {k: v for k, v in data.items()
                    if k in cls.__dataclass_fields__}
        return cls(**filtered)

    def to_options(self) -> CartoonFilterOptions:
        return CartoonFilterOptions(**self.to_dict())


def execute_cartoonize_node(node: Dict[str, Any], inputs: List[Any]) -> StylizedImage:
    """
    Execute cartoonize node in pipeline.

    Node dict may contain any CartoonFilterOptions field; missing fields
    take their defaults.

    Inputs:
        - [0]: Image to stylize (SourceImage, PIL Image, bytes or path)

    Returns:
        StylizedImage

    Raises:
        ValueError: If no input is connected, or options are out of range
        DecodeError: If the input is not a raster image
        EncodeError: If the output format is unsupported
    """
    if not inputs or len(inputs) < 1:
        raise ValueError("Cartoonize node requires image input")

    config = CartoonizeNodeConfig.from_dict(node)
    return stylize(inputs[0], config.to_options())


def create_cartoonize_node(node_id: str, **filter_params: Any) -> Dict[str, Any]:
    """
    Create cartoonize node for a pipeline.

    Args:
        node_id: Unique node identifier
        **filter_params: Any CartoonFilterOptions field, e.g. levels=6,
                         edge_threshold=40, max_dimension=256

    Returns:
        Node dict

    Raises:
        ValueError: If a parameter is not a filter option
    """
    unknown = set(filter_params) - set(CartoonizeNodeConfig.__dataclass_fields__)
    if unknown:
        raise ValueError(f"Unknown cartoonize parameters: {', '.join(sorted(unknown))}")

    node = {
        "id": node_id,
        "type": NODE_TYPE_CARTOONIZE,
    }
    node.update(filter_params)
    return node
