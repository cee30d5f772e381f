"""
PipelineLib - Node execution for avatar conversion

This module holds the node executor registry and the runner that pushes
files through the Image Import -> Cartoonize -> Output chain.
"""

from CA_Libs.PipelineLib.node_executors import (
    NodeExecutorRegistry,
    get_default_registry,
    register_default_executors,
)
from CA_Libs.PipelineLib.batch_runner import (
    BatchItemResult,
    build_avatar_chain,
    cartoonize_batch,
    execute_chain,
)

__all__ = [
    "NodeExecutorRegistry",
    "get_default_registry",
    "register_default_executors",
    "BatchItemResult",
    "build_avatar_chain",
    "cartoonize_batch",
    "execute_chain",
]
