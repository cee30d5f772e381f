"""
Node Executors Registry.

This module provides a centralized registry mapping node types to the
executor functions that run them in an avatar chain.

Classes:
    NodeExecutorRegistry: Registry for node executors

Functions:
    get_default_registry: Get the global default registry (singleton)
    register_default_executors: Register all built-in node executors
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from CA_Libs.constants import NODE_TYPE_CARTOONIZE, NODE_TYPE_IMAGE_IMPORT, NODE_TYPE_OUTPUT

logger = logging.getLogger(__name__)

# Type alias for executor function
ExecutorFunction = Callable[[Dict[str, Any], List[Any]], Any]


class NodeExecutorRegistry:
    """
    Registry for node type executors.

    Example:
        >>> registry = NodeExecutorRegistry()
        >>> registry.register("Cartoonize", execute_cartoonize_node)
        >>> executor = registry.get_executor("Cartoonize")
        >>> result = executor(node_dict, [source_image])
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._executors: Dict[str, ExecutorFunction] = {}

    def register(self, node_type: str, executor: ExecutorFunction) -> None:
        """
        Register a node executor.

        Args:
            node_type: Unique identifier for the node type (e.g., "Cartoonize")
            executor: Callable accepting (node_dict, inputs)

        Raises:
            ValueError: If node_type is empty or executor is not callable
            RuntimeError: If node_type is already registered
        """
        node_type = str(node_type).strip()

        if not node_type:
            raise ValueError("node_type cannot be empty")

        if not callable(executor):
            raise ValueError(f"executor must be callable, got {type(executor)}")

        if node_type in self._executors:
            raise RuntimeError(f"Node type '{node_type}' is already registered")

        self._executors[node_type] = executor
        logger.debug(f"Registered executor for node type: {node_type}")

    def get_executor(self, node_type: str) -> ExecutorFunction:
        """
        Get an executor for a node type.

        Raises:
            KeyError: If node_type is not registered
        """
        node_type = str(node_type).strip()

        if node_type not in self._executors:
            available = ", ".join(self.list_node_types())
            raise KeyError(
                f"No executor registered for node type '{node_type}'. "
                f"Available types: {available}"
            )

        return self._executors[node_type]

    def list_node_types(self) -> List[str]:
        """Sorted list of all registered node type names."""
        return sorted(self._executors.keys())


# Global singleton registry
_default_registry: Optional[NodeExecutorRegistry] = None
_default_registry_lock = threading.Lock()


def get_default_registry() -> NodeExecutorRegistry:
    """
    Get the global default registry (singleton).

    Creates the registry on first call and registers default executors.
    """
    global _default_registry

    with _default_registry_lock:
        if _default_registry is None:
            registry = NodeExecutorRegistry()
            register_default_executors(registry)
            _default_registry = registry

    return _default_registry


def register_default_executors(registry: NodeExecutorRegistry) -> None:
    """
    Register all built-in node executors.

    This function registers:
    - Image Import node (source, no inputs)
    - Cartoonize node
    - Output node (sink, writes the encoded avatar)
    """
    from CA_Libs.NodesLib.image_import_node import execute_import_image_node
    from CA_Libs.NodesLib.cartoonize_node import execute_cartoonize_node
    from CA_Libs.NodesLib.output_node import execute_output_node

    registry.register(NODE_TYPE_IMAGE_IMPORT, execute_import_image_node)
    registry.register(NODE_TYPE_CARTOONIZE, execute_cartoonize_node)
    registry.register(NODE_TYPE_OUTPUT, execute_output_node)

    logger.info("Registered default node executors")
