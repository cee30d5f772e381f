"""
Command line entry point for Cartoon Avatar.

Examples:
    cartoon-avatar portrait.jpg -o avatars/
    cartoon-avatar *.png -o avatars/ --levels 6 --edge-threshold 40 --workers 4
    cartoon-avatar portrait.jpg --data-url > avatar.txt
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from CA_Libs.errors import CartoonizeError, InvalidOptions
from CA_Libs.ImageEditingLib.cartoon_filter import (
    CartoonFilterOptions,
    load_options_file,
    resolve_options,
    stylize,
)
from CA_Libs.NodesLib.image_import_node import ImageImportNode
from CA_Libs.PipelineLib.batch_runner import cartoonize_batch

logger = logging.getLogger("cartoon_avatar")

# argparse dest -> CartoonFilterOptions field
OPTION_FLAGS = {
    "max_dimension": "max_dimension",
    "levels": "levels",
    "contrast": "contrast_factor",
    "saturation": "saturation_factor",
    "edge_threshold": "edge_threshold",
    "edge_darkening": "edge_darkening",
    "format": "output_format",
}


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Convert photos into cartoon avatars")
    parser.add_argument("inputs", nargs="+", type=Path, help="Image files to convert")
    parser.add_argument("-o", "--output-dir", type=Path, default=Path("."), help="Directory for results")
    parser.add_argument("--config", type=Path, help="JSON file with filter options")
    parser.add_argument("--max-dimension", type=int, help="Longest output side in pixels (default 512)")
    parser.add_argument("--levels", type=int, help="Posterization levels per channel (default 8)")
    parser.add_argument("--contrast", type=float, help="Contrast factor (default 1.3)")
    parser.add_argument("--saturation", type=float, help="Saturation factor (default 1.4)")
    parser.add_argument("--edge-threshold", type=float, help="Sobel edge threshold (default 30)")
    parser.add_argument("--edge-darkening", type=int, help="Darkening applied to edges (default 100)")
    parser.add_argument("--format", help="Output format: PNG, WEBP or TIFF, all lossless (default PNG)")
    parser.add_argument("--data-url", action="store_true", help="Print data URLs instead of writing files")
    parser.add_argument("--workers", type=int, help="Thread count for batch conversion")
    parser.add_argument("--no-threads", action="store_true", help="Convert files one at a time")
    parser.add_argument("--overwrite", action="store_true", help="Replace existing output files")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default INFO)")
    return parser.parse_args(argv)


def build_options(args: argparse.Namespace) -> CartoonFilterOptions:
    """Merge the optional config file with command line overrides."""
    base = load_options_file(args.config) if args.config else CartoonFilterOptions()
    merged = base.to_dict()
    for dest, field_name in OPTION_FLAGS.items():
        value = getattr(args, dest)
        if value is not None:
            merged[field_name] = value
    return resolve_options(merged)


def _print_data_urls(inputs: List[Path], options: CartoonFilterOptions) -> int:
    failures = 0
    for path in inputs:
        try:
            source = ImageImportNode(node_id=path.stem, file_path=path).load_image()
            print(stylize(source, options).to_data_url())
        except (CartoonizeError, OSError, ValueError) as exc:
            logger.error(f"{path}: {exc}")
            failures += 1
    return 1 if failures else 0


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        options = build_options(args)
    except InvalidOptions as exc:
        logger.error(f"Invalid options: {exc}")
        return 2

    if args.data_url:
        return _print_data_urls(args.inputs, options)

    results = cartoonize_batch(
        args.inputs,
        args.output_dir,
        options,
        use_threading=not args.no_threads,
        max_workers=args.workers,
        overwrite=args.overwrite,
    )
    for result in results:
        if result.ok:
            logger.info(f"{result.input_path} -> {result.output_path}")
        else:
            logger.error(f"{result.input_path}: {result.error}")

    return 0 if all(r.ok for r in results) else 1


if __name__ == "__main__":
    sys.exit(main())
