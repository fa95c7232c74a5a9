from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Iterable, Union

from .entity import Point

_CONFIG_NAMES = ("linear", "bounding", "angular", "radius")


@dataclass(frozen=True)
class DimensionConfig:
    linear: bool = True
    angular: bool = True
    radius: bool = True
    bounding: bool = True

    @classmethod
    def from_names(cls, enabled: str | Iterable[str]) -> "DimensionConfig":
        if isinstance(enabled, str):
            enabled = enabled.replace(",", " ").split()
        names = {name.strip().lower() for name in enabled if name.strip()}
        unknown = names.difference(_CONFIG_NAMES)
        if unknown:
            raise ValueError(f"unknown dimension categories: {', '.join(sorted(unknown))}")
        return cls(**{field.name: field.name in names for field in fields(cls)})

    def enabled_names(self) -> list[str]:
        return [name for name in _CONFIG_NAMES if getattr(self, name)]


@dataclass(frozen=True)
class BoundingBox:
    min: Point
    max: Point
    width: float
    height: float
    center: Point


DEFAULT_BOUNDING_BOX = BoundingBox(
    min=Point(0.0, 0.0),
    max=Point(100.0, 100.0),
    width=100.0,
    height=100.0,
    center=Point(50.0, 50.0),
)


@dataclass(frozen=True)
class LinearDimension:
    start: Point
    end: Point
    midpoint: Point
    normal: Point
    value: float
    label: str

    kind = "LINEAR"


@dataclass(frozen=True)
class BoundingDimension:
    start: Point
    end: Point
    midpoint: Point
    normal: Point
    value: float
    label: str

    kind = "BOUNDING"


@dataclass(frozen=True)
class RadiusDimension:
    start: Point
    end: Point
    midpoint: Point
    value: float
    label: str

    kind = "RADIUS"


@dataclass(frozen=True)
class AngularDimension:
    start: Point
    end: Point
    # Vertex of the angle, not the middle of start/end. Label placement
    # downstream anchors on it.
    midpoint: Point
    value: float
    label: str

    kind = "ANGULAR"

    @property
    def vertex(self) -> Point:
        return self.midpoint


Dimension = Union[LinearDimension, BoundingDimension, RadiusDimension, AngularDimension]
