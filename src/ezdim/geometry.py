from __future__ import annotations

import logging
import math
from typing import Iterator, Sequence

from .dimension import (
    DEFAULT_BOUNDING_BOX,
    AngularDimension,
    BoundingBox,
    BoundingDimension,
    Dimension,
    DimensionConfig,
    LinearDimension,
    RadiusDimension,
)
from .entity import Circle, Entity, Point, Polyline, Segment, points_match

logger = logging.getLogger(__name__)

LINEAR_TOLERANCE = 0.01
POINT_TOLERANCE = 0.001
ANGLE_NOISE_DEG = 1.0
COLLINEAR_TOLERANCE_DEG = 1e-6
RADIUS_PROBE_ANGLE = math.pi / 4


def bounding_box(entities: Sequence[Entity]) -> BoundingBox:
    min_x = min_y = math.inf
    max_x = max_y = -math.inf
    for entity in entities:
        for point in entity.to_points():
            min_x = min(min_x, point.x)
            min_y = min(min_y, point.y)
            max_x = max(max_x, point.x)
            max_y = max(max_y, point.y)

    if min_x == math.inf:
        return DEFAULT_BOUNDING_BOX

    return BoundingBox(
        min=Point(min_x, min_y),
        max=Point(max_x, max_y),
        width=max_x - min_x,
        height=max_y - min_y,
        center=Point((min_x + max_x) / 2.0, (min_y + max_y) / 2.0),
    )


def generate_dimensions(
    entities: Sequence[Entity],
    config: DimensionConfig | None = None,
) -> list[Dimension]:
    config = config or DimensionConfig()
    dims: list[Dimension] = []
    if config.linear:
        dims.extend(linear_dimensions(entities))
    if config.bounding:
        dims.extend(bounding_dimensions(bounding_box(entities)))
    if config.angular:
        dims.extend(angular_dimensions(entities))
    if config.radius:
        dims.extend(radius_dimensions(entities))
    logger.debug("generated %d dimensions for %d entities", len(dims), len(entities))
    return dims


def _edge_normal(p1: Point, p2: Point, length: float) -> Point:
    return Point(-(p2.y - p1.y) / length, (p2.x - p1.x) / length)


def _linear_dimension(p1: Point, p2: Point) -> LinearDimension | None:
    length = p1.distance(p2)
    if not length > LINEAR_TOLERANCE:
        return None
    return LinearDimension(
        start=p1,
        end=p2,
        midpoint=p1.midpoint(p2),
        normal=_edge_normal(p1, p2, length),
        value=length,
        label=f"{length:.2f}",
    )


def linear_dimensions(entities: Sequence[Entity]) -> Iterator[LinearDimension]:
    for entity in entities:
        if isinstance(entity, Segment):
            edges = [(entity.start, entity.end)]
        elif isinstance(entity, Polyline):
            edges = list(entity.edges())
        else:
            continue
        for p1, p2 in edges:
            dim = _linear_dimension(p1, p2)
            if dim is not None:
                yield dim


def bounding_dimensions(bbox: BoundingBox) -> list[BoundingDimension]:
    width = BoundingDimension(
        start=Point(bbox.min.x, bbox.min.y),
        end=Point(bbox.max.x, bbox.min.y),
        midpoint=Point(bbox.center.x, bbox.min.y),
        normal=Point(0.0, -1.0),
        value=bbox.width,
        label=f"W: {bbox.width:.2f}",
    )
    height = BoundingDimension(
        start=Point(bbox.min.x, bbox.min.y),
        end=Point(bbox.min.x, bbox.max.y),
        midpoint=Point(bbox.min.x, bbox.center.y),
        normal=Point(-1.0, 0.0),
        value=bbox.height,
        label=f"H: {bbox.height:.2f}",
    )
    return [width, height]


def angle_between(p1: Point, vertex: Point, p3: Point) -> float | None:
    """Unsigned angle at ``vertex`` in degrees, folded into [0, 180].

    Returns None when either ray has no length.
    """
    v1 = (p1.x - vertex.x, p1.y - vertex.y)
    v2 = (p3.x - vertex.x, p3.y - vertex.y)
    if math.hypot(*v1) < POINT_TOLERANCE or math.hypot(*v2) < POINT_TOLERANCE:
        return None
    angle = abs(math.degrees(math.atan2(v2[1], v2[0]) - math.atan2(v1[1], v1[0])))
    if angle > 180.0:
        angle = 360.0 - angle
    return angle


def _angular_dimension(p1: Point, vertex: Point, p3: Point) -> AngularDimension | None:
    angle = angle_between(p1, vertex, p3)
    if angle is None:
        return None
    # A straight run measures 180; only float noise separates it from that.
    if angle <= ANGLE_NOISE_DEG or 180.0 - angle < COLLINEAR_TOLERANCE_DEG:
        return None
    return AngularDimension(
        start=p1,
        end=p3,
        midpoint=vertex,
        value=angle,
        label=f"{angle:.1f}\N{DEGREE SIGN}",
    )


def connected_segment_pairs(
    segments: Sequence[Segment],
    tol: float = POINT_TOLERANCE,
) -> Iterator[tuple[Point, Point, Point]]:
    """Yield ``(other1, shared, other2)`` for segments meeting at exactly one endpoint.

    Checks every unordered pair, which is fine at drawing scale.
    """
    for i, s1 in enumerate(segments):
        for s2 in segments[i + 1 :]:
            matches = [
                (a, b, o1, o2)
                for a, o1 in ((s1.end, s1.start), (s1.start, s1.end))
                for b, o2 in ((s2.start, s2.end), (s2.end, s2.start))
                if points_match(a, b, tol)
            ]
            if len(matches) != 1:
                continue
            shared, _, other1, other2 = matches[0]
            yield other1, shared, other2


def angular_dimensions(entities: Sequence[Entity]) -> Iterator[AngularDimension]:
    triples: list[tuple[Point, Point, Point]] = []
    for entity in entities:
        if isinstance(entity, Polyline) and len(entity.vertices) > 2:
            vertices = entity.vertices
            triples.extend(
                (vertices[i], vertices[i + 1], vertices[i + 2])
                for i in range(len(vertices) - 2)
            )

    segments = [entity for entity in entities if isinstance(entity, Segment)]
    triples.extend(connected_segment_pairs(segments))

    for p1, vertex, p3 in triples:
        dim = _angular_dimension(p1, vertex, p3)
        if dim is not None:
            yield dim


def radius_dimensions(entities: Sequence[Entity]) -> Iterator[RadiusDimension]:
    for entity in entities:
        if not isinstance(entity, Circle):
            continue
        center = entity.center
        edge = Point(
            center.x + math.cos(RADIUS_PROBE_ANGLE) * entity.radius,
            center.y + math.sin(RADIUS_PROBE_ANGLE) * entity.radius,
        )
        yield RadiusDimension(
            start=center,
            end=edge,
            midpoint=Point((center.x + edge.x) / 2.0, (center.y + edge.y) / 2.0),
            value=entity.radius,
            label=f"R{entity.radius:.2f}",
        )
