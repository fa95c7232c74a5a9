from __future__ import annotations

import argparse
import logging
import sys
from collections import Counter
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Sequence

from .convert import to_dxf
from .dimension import DimensionConfig
from .document import DecodeError, read
from .logging_config import setup_logging

_CATEGORY_NAMES = ("linear", "angular", "radius", "bounding")


def _package_version() -> str:
    try:
        return version("ezdim")
    except PackageNotFoundError:
        return "0.0.0"


def _add_category_arguments(parser: argparse.ArgumentParser) -> None:
    for name in _CATEGORY_NAMES:
        parser.add_argument(
            f"--no-{name}",
            action="store_true",
            help=f"Skip {name} dimensions.",
        )
    parser.add_argument(
        "--only",
        default=None,
        help='Generate only these dimension categories, e.g. "linear radius".',
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ezdim",
        description="Inspect DXF drawings and annotate them with generated dimensions.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_package_version()}",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write log output to this file.",
    )
    subparsers = parser.add_subparsers(dest="command")

    inspect_parser = subparsers.add_parser("inspect", help="Show basic DXF information.")
    inspect_parser.add_argument("path", help="Path to DXF file.")
    inspect_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show decoder diagnostics.",
    )

    annotate_parser = subparsers.add_parser(
        "annotate",
        help="Write the drawing plus generated dimensions to a new DXF file.",
    )
    annotate_parser.add_argument("input_path", help="Path to input DXF file.")
    annotate_parser.add_argument("output_path", help="Path to output DXF file.")
    annotate_parser.add_argument(
        "--dxf-version",
        default="R12",
        help="Output DXF version. R12 uses the built-in writer, newer versions use ezdxf.",
    )
    annotate_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail if the drawing has no supported entities.",
    )
    annotate_parser.add_argument("--verbose", action="store_true", help="Show debug logging.")
    _add_category_arguments(annotate_parser)

    dims_parser = subparsers.add_parser("dimensions", help="List generated dimensions.")
    dims_parser.add_argument("path", help="Path to DXF file.")
    dims_parser.add_argument("--verbose", action="store_true", help="Show debug logging.")
    _add_category_arguments(dims_parser)
    return parser


def _config_from_args(args: argparse.Namespace) -> DimensionConfig:
    if args.only:
        return DimensionConfig.from_names(args.only)
    return DimensionConfig(
        linear=not args.no_linear,
        angular=not args.no_angular,
        radius=not args.no_radius,
        bounding=not args.no_bounding,
    )


def _read_or_report(path: str):
    file_path = Path(path)
    if not file_path.exists():
        print(f"error: file not found: {file_path}", file=sys.stderr)
        return None
    try:
        return read(str(file_path))
    except (DecodeError, OSError) as exc:
        print(f"error: failed to read DXF: {exc}", file=sys.stderr)
        return None


def _run_inspect(path: str) -> int:
    drawing = _read_or_report(path)
    if drawing is None:
        return 2

    bbox = drawing.bounding_box()
    dimensions = drawing.dimensions()
    print(f"file: {drawing.path}")
    print(f"total_entities: {len(drawing.entities)}")
    for dxftype, count in drawing.counts().items():
        if count > 0:
            print(f"{dxftype}: {count}")
    print(f"bounding_box: ({bbox.min.x:g}, {bbox.min.y:g}) - ({bbox.max.x:g}, {bbox.max.y:g})")
    print(f"size: {bbox.width:g} x {bbox.height:g}")
    print(f"total_dimensions: {len(dimensions)}")
    for kind, count in sorted(Counter(dim.kind for dim in dimensions).items()):
        print(f"dimensions[{kind}]: {count}")
    return 0


def _run_annotate(
    input_path: str,
    output_path: str,
    *,
    config: DimensionConfig,
    dxf_version: str = "R12",
    strict: bool = False,
) -> int:
    drawing = _read_or_report(input_path)
    if drawing is None:
        return 2

    try:
        result = to_dxf(
            drawing,
            output_path,
            config=config,
            dxf_version=dxf_version,
            strict=strict,
        )
    except Exception as exc:
        print(f"error: failed to write DXF: {exc}", file=sys.stderr)
        return 2

    print(f"input: {result.source_path}")
    print(f"output: {result.output_path}")
    print(f"dxf_version: {result.dxf_version}")
    print(f"total_entities: {result.total_entities}")
    print(f"written_entities: {result.written_entities}")
    print(f"dimensions: {result.dimension_count}")
    for kind, count in result.dimensions_by_kind.items():
        print(f"dimensions[{kind}]: {count}")
    return 0


def _run_dimensions(path: str, *, config: DimensionConfig) -> int:
    drawing = _read_or_report(path)
    if drawing is None:
        return 2
    for dim in drawing.with_config(config).dimensions():
        print(f"{dim.kind}\t{dim.label}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    verbose = bool(getattr(args, "verbose", False))
    setup_logging(logging.DEBUG if verbose else logging.WARNING, args.log_file)

    if args.command == "inspect":
        return _run_inspect(args.path)
    if args.command in ("annotate", "dimensions"):
        try:
            config = _config_from_args(args)
        except ValueError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 2
        if args.command == "dimensions":
            return _run_dimensions(args.path, config=config)
        return _run_annotate(
            args.input_path,
            args.output_path,
            config=config,
            dxf_version=args.dxf_version,
            strict=bool(args.strict),
        )

    parser.print_help()
    return 0
