"""
Avatar chain execution and batch conversion.

An avatar chain is a list of node dicts executed in order, each node
receiving the previous node's result as its only input:

    Image Import -> Cartoonize -> Output

``cartoonize_batch`` builds one chain per input file and runs them,
optionally in a ThreadPoolExecutor. Chains share no state, so results are
identical with or without threading.
"""

import concurrent.futures
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from CA_Libs.constants import (
    NODE_TYPE_CARTOONIZE,
    NODE_TYPE_IMAGE_IMPORT,
    NODE_TYPE_OUTPUT,
    OUTPUT_FILE_PREFIX,
)
from CA_Libs.errors import CartoonizeError, NodeExecutionError
from CA_Libs.ImageEditingLib.cartoon_filter import CartoonFilterOptions, resolve_options
from CA_Libs.PipelineLib.node_executors import NodeExecutorRegistry, get_default_registry

logger = logging.getLogger(__name__)


@dataclass
class BatchItemResult:
    """Outcome of converting one file.

    Attributes:
        input_path: The source file
        output_path: Where the avatar was written (None on failure)
        error: Error message (None on success)
    """
    input_path: Path
    output_path: Optional[Path] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def execute_chain(
    nodes: List[Dict[str, Any]],
    registry: Optional[NodeExecutorRegistry] = None,
) -> List[Any]:
    """
    Execute nodes in order, feeding each result into the next node.

    Args:
        nodes: Node dicts with 'id' and 'type' keys
        registry: Executor registry (default: global registry)

    Returns:
        List of per-node results, in node order

    Raises:
        KeyError: If a node type has no registered executor
        NodeExecutionError: If any executor fails (wraps the cause)
    """
    registry = registry or get_default_registry()
    results: List[Any] = []

    for node in nodes:
        node_type = node.get("type", "")
        node_id = str(node.get("id", ""))
        executor = registry.get_executor(node_type)
        inputs = results[-1:]

        try:
            results.append(executor(node, inputs))
        except Exception as e:
            raise NodeExecutionError(node_id, str(e)) from e

    return results


def build_avatar_chain(
    input_path: Union[str, Path],
    output_dir: Union[str, Path],
    options: Optional[CartoonFilterOptions] = None,
    overwrite: bool = False,
) -> List[Dict[str, Any]]:
    """
    Build the Image Import -> Cartoonize -> Output chain for one file.

    The output is named ``cartoon_<stem>.<ext>`` inside ``output_dir``.
    """
    input_path = Path(input_path)
    output_dir = Path(output_dir)
    options = options or CartoonFilterOptions()
    stem = input_path.stem

    cartoonize = {"id": f"{stem}-cartoonize", "type": NODE_TYPE_CARTOONIZE}
    cartoonize.update(options.to_dict())

    return [
        {"id": f"{stem}-import", "type": NODE_TYPE_IMAGE_IMPORT, "file_path": str(input_path)},
        cartoonize,
        {
            "id": f"{stem}-output",
            "type": NODE_TYPE_OUTPUT,
            "output_path": str(output_dir / f"{OUTPUT_FILE_PREFIX}{{STEM}}.{{EXT}}"),
            "stem": stem,
            "overwrite": overwrite,
        },
    ]


def _convert_one(
    input_path: Path,
    output_dir: Path,
    options: CartoonFilterOptions,
    overwrite: bool,
    registry: NodeExecutorRegistry,
) -> BatchItemResult:
    chain = build_avatar_chain(input_path, output_dir, options, overwrite)
    results = execute_chain(chain, registry)
    return BatchItemResult(input_path=input_path, output_path=results[-1])


def cartoonize_batch(
    input_paths: Iterable[Union[str, Path]],
    output_dir: Union[str, Path],
    options: Union[CartoonFilterOptions, Dict[str, Any], None] = None,
    use_threading: bool = True,
    max_workers: Optional[int] = None,
    overwrite: bool = False,
    fail_fast: bool = False,
    registry: Optional[NodeExecutorRegistry] = None,
) -> List[BatchItemResult]:
    """
    Convert many files into cartoon avatars.

    Args:
        input_paths: Source image files
        output_dir: Directory for the results (created if missing)
        options: Filter options shared by every file
        use_threading: Convert files in parallel threads (default: True)
        max_workers: Maximum number of files converted at once
            (default: None = ThreadPoolExecutor default)
        overwrite: Replace existing output files
        fail_fast: Re-raise the first failure instead of recording it
        registry: Executor registry (default: global registry)

    Returns:
        One BatchItemResult per input, in input order

    Raises:
        InvalidOptions: If options are out of range (before any file is read)
        NodeExecutionError: On the first failure when fail_fast is True
    """
    opts = resolve_options(options)
    paths = [Path(p) for p in input_paths]
    output_dir = Path(output_dir)
    registry = registry or get_default_registry()

    results: List[Optional[BatchItemResult]] = [None] * len(paths)

    def record_failure(index: int, exc: CartoonizeError) -> None:
        if fail_fast:
            raise exc
        logger.warning(f"Failed to convert {paths[index]}: {exc}")
        results[index] = BatchItemResult(input_path=paths[index], error=str(exc))

    if use_threading and len(paths) > 1:
        workers = max_workers or min(32, (os.cpu_count() or 1) + 4)
        queue = iter(enumerate(paths))

        # At most `workers` files in flight; a fail_fast raise stops new submissions
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            running: Dict[concurrent.futures.Future, int] = {}

            def submit_next() -> None:
                item = next(queue, None)
                if item is not None:
                    index, path = item
                    future = executor.submit(_convert_one, path, output_dir, opts, overwrite, registry)
                    running[future] = index

            for _ in range(workers):
                submit_next()

            while running:
                done, _ = concurrent.futures.wait(
                    running, return_when=concurrent.futures.FIRST_COMPLETED
                )
                for future in done:
                    index = running.pop(future)
                    try:
                        results[index] = future.result()
                    except NodeExecutionError as e:
                        record_failure(index, e)
                    submit_next()
    else:
        for index, path in enumerate(paths):
            try:
                results[index] = _convert_one(path, output_dir, opts, overwrite, registry)
            except NodeExecutionError as e:
                record_failure(index, e)

    converted = sum(1 for r in results if r is not None and r.ok)
    logger.info(f"Converted {converted} of {len(paths)} images into {output_dir}")
    return [r for r in results if r is not None]
