from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Union


@dataclass(frozen=True)
class Point:
    x: float
    y: float
    z: float = 0.0

    def distance(self, other: "Point") -> float:
        return math.hypot(other.x - self.x, other.y - self.y)

    def midpoint(self, other: "Point") -> "Point":
        return Point(
            (self.x + other.x) / 2.0,
            (self.y + other.y) / 2.0,
            (self.z + other.z) / 2.0,
        )


def points_match(p1: Point, p2: Point, tol: float = 1e-3) -> bool:
    return abs(p1.x - p2.x) < tol and abs(p1.y - p2.y) < tol


@dataclass(frozen=True)
class Segment:
    start: Point
    end: Point

    dxftype = "LINE"

    def to_points(self) -> list[Point]:
        return [self.start, self.end]


@dataclass(frozen=True)
class Polyline:
    vertices: tuple[Point, ...]
    closed: bool = False

    dxftype = "LWPOLYLINE"

    def edges(self) -> Iterator[tuple[Point, Point]]:
        """Consecutive vertex pairs, plus the closing pair for closed polylines."""
        for i in range(len(self.vertices) - 1):
            yield self.vertices[i], self.vertices[i + 1]
        if self.closed and len(self.vertices) > 1:
            yield self.vertices[-1], self.vertices[0]

    def to_points(self) -> list[Point]:
        return list(self.vertices)


@dataclass(frozen=True)
class Circle:
    center: Point
    radius: float

    dxftype = "CIRCLE"

    def to_points(self) -> list[Point]:
        cx, cy, r = self.center.x, self.center.y, self.radius
        return [Point(cx - r, cy - r), Point(cx + r, cy + r)]


Entity = Union[Segment, Polyline, Circle]

ENTITY_TYPES = (Segment.dxftype, Polyline.dxftype, Circle.dxftype)
