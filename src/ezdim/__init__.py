from typing import Sequence

from .convert import ConvertResult, encode, to_dxf
from .dimension import (
    AngularDimension,
    BoundingBox,
    BoundingDimension,
    Dimension,
    DimensionConfig,
    LinearDimension,
    RadiusDimension,
)
from .document import DecodeError, Drawing, decode, read
from .entity import Circle, Entity, Point, Polyline, Segment
from .geometry import bounding_box, generate_dimensions

__all__ = [
    "read",
    "decode",
    "encode",
    "to_dxf",
    "bounding_box",
    "generate_dimensions",
    "Drawing",
    "DecodeError",
    "ConvertResult",
    "Point",
    "Segment",
    "Polyline",
    "Circle",
    "Entity",
    "DimensionConfig",
    "BoundingBox",
    "Dimension",
    "LinearDimension",
    "BoundingDimension",
    "RadiusDimension",
    "AngularDimension",
]


def main(argv: Sequence[str] | None = None) -> int:
    from ezdim.cli import main as cli_main

    return cli_main(argv)
