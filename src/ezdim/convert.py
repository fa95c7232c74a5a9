from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Sequence, Union

from .dimension import (
    AngularDimension,
    BoundingDimension,
    Dimension,
    DimensionConfig,
    LinearDimension,
    RadiusDimension,
)
from .document import Drawing, read
from .entity import Circle, Entity, Polyline, Segment

logger = logging.getLogger(__name__)

R12_VERSION = "AC1009"
R12_CODEPAGE = "ANSI_1252"
R12_ENCODING = "cp1252"
_NATIVE_VERSIONS = {"R12", R12_VERSION}

DEFAULT_LAYER = "0"
DIMENSION_LAYER = "DIMENSIONS"
DIMENSION_OFFSET = 2.0
TEXT_HEIGHT = 1.0
LINEAR_COLOR = 3
RADIUS_COLOR = 1
BYLAYER = 256


@dataclass(frozen=True)
class ConvertResult:
    source_path: str | None
    output_path: str
    dxf_version: str
    total_entities: int
    written_entities: int
    dimension_count: int
    dimensions_by_kind: dict[str, int]


@dataclass(frozen=True)
class DimLine:
    start: tuple[float, float]
    end: tuple[float, float]
    color: int = BYLAYER


@dataclass(frozen=True)
class DimText:
    insert: tuple[float, float]
    text: str
    rotation: float = 0.0
    height: float = TEXT_HEIGHT


DimGraphic = Union[DimLine, DimText]


def _upright_rotation(dx: float, dy: float) -> float:
    """Text angle for a line direction, kept within (-90, 90] so it never reads upside down."""
    angle = math.degrees(math.atan2(dy, dx))
    if angle > 90.0:
        angle -= 180.0
    elif angle <= -90.0:
        angle += 180.0
    return angle


def dimension_graphics(dim: Dimension) -> list[DimGraphic]:
    """Lines and labels that draw ``dim`` on the dimension layer."""
    if isinstance(dim, (LinearDimension, BoundingDimension)):
        normal = getattr(dim, "normal", None)
        nx = normal.x if normal is not None else 0.0
        ny = normal.y if normal is not None else 0.0
        p1 = (dim.start.x + nx * DIMENSION_OFFSET, dim.start.y + ny * DIMENSION_OFFSET)
        p2 = (dim.end.x + nx * DIMENSION_OFFSET, dim.end.y + ny * DIMENSION_OFFSET)
        label_at = ((p1[0] + p2[0]) / 2.0 + nx, (p1[1] + p2[1]) / 2.0 + ny)
        return [
            DimLine(p1, p2, LINEAR_COLOR),
            DimLine((dim.start.x, dim.start.y), p1, LINEAR_COLOR),
            DimLine((dim.end.x, dim.end.y), p2, LINEAR_COLOR),
            DimText(label_at, dim.label, _upright_rotation(p2[0] - p1[0], p2[1] - p1[1])),
        ]

    if isinstance(dim, RadiusDimension):
        return [
            DimLine((dim.start.x, dim.start.y), (dim.end.x, dim.end.y), RADIUS_COLOR),
            DimText((dim.midpoint.x, dim.midpoint.y + 1.0), dim.label),
        ]

    if isinstance(dim, AngularDimension) and dim.midpoint is not None:
        return [DimText((dim.midpoint.x, dim.midpoint.y), dim.label)]

    return []


def _num(value: float) -> str:
    # Adding 0.0 folds -0.0 into 0.0.
    return repr(float(value) + 0.0)


class _R12Writer:
    def __init__(self) -> None:
        self._lines: list[str] = []

    def tag(self, code: int, value: Any) -> None:
        self._lines.append(str(code))
        self._lines.append(value if isinstance(value, str) else _num(value))

    def tags(self, *pairs: tuple[int, Any]) -> None:
        for code, value in pairs:
            self.tag(code, value)

    def point(self, x: float, y: float, z: float = 0.0, *, base: int = 10) -> None:
        self.tags((base, x), (base + 10, y), (base + 20, z))

    def line(
        self,
        start: tuple[float, float],
        end: tuple[float, float],
        layer: str = DEFAULT_LAYER,
        color: int = BYLAYER,
    ) -> None:
        self.tags((0, "LINE"), (8, layer))
        if color != BYLAYER:
            self.tag(62, str(color))
        self.point(start[0], start[1])
        self.point(end[0], end[1], base=11)

    def text(self, text: DimText, layer: str) -> None:
        self.tags((0, "TEXT"), (8, layer))
        self.point(text.insert[0], text.insert[1])
        self.tags((40, text.height), (1, text.text), (50, text.rotation))

    def getvalue(self) -> str:
        return "\n".join(self._lines) + "\n"


def _write_header(writer: _R12Writer) -> None:
    writer.tags((0, "SECTION"), (2, "HEADER"))
    writer.tags((9, "$ACADVER"), (1, R12_VERSION))
    writer.tags((9, "$DWGCODEPAGE"), (3, R12_CODEPAGE))
    writer.tag(9, "$INSBASE")
    writer.point(0.0, 0.0)
    writer.tag(9, "$EXTMIN")
    writer.point(0.0, 0.0)
    writer.tag(9, "$EXTMAX")
    writer.point(1000.0, 1000.0)
    writer.tag(0, "ENDSEC")


def _write_tables(writer: _R12Writer) -> None:
    writer.tags((0, "SECTION"), (2, "TABLES"))

    writer.tags((0, "TABLE"), (2, "LTYPE"), (70, "1"))
    writer.tags(
        (0, "LTYPE"),
        (2, "CONTINUOUS"),
        (70, "64"),
        (3, "Solid line"),
        (72, "65"),
        (73, "0"),
        (40, 0.0),
    )
    writer.tag(0, "ENDTAB")

    writer.tags((0, "TABLE"), (2, "LAYER"), (70, "6"))
    for name, color in ((DEFAULT_LAYER, "7"), (DIMENSION_LAYER, str(LINEAR_COLOR))):
        writer.tags((0, "LAYER"), (2, name), (70, "0"), (62, color), (6, "CONTINUOUS"))
    writer.tag(0, "ENDTAB")

    writer.tag(0, "ENDSEC")


def _write_entity(writer: _R12Writer, entity: Entity) -> bool:
    if isinstance(entity, Segment):
        writer.line((entity.start.x, entity.start.y), (entity.end.x, entity.end.y))
        return True

    if isinstance(entity, Polyline):
        # R12 has no LWPOLYLINE: write the POLYLINE/VERTEX/SEQEND form.
        writer.tags((0, "POLYLINE"), (8, DEFAULT_LAYER), (66, "1"))
        writer.tag(70, "1" if entity.closed else "0")
        writer.point(0.0, 0.0)
        for vertex in entity.vertices:
            writer.tags((0, "VERTEX"), (8, DEFAULT_LAYER))
            writer.point(vertex.x, vertex.y)
        writer.tags((0, "SEQEND"), (8, DEFAULT_LAYER))
        return True

    if isinstance(entity, Circle):
        writer.tags((0, "CIRCLE"), (8, DEFAULT_LAYER))
        writer.point(entity.center.x, entity.center.y)
        writer.tag(40, entity.radius)
        return True

    return False


def encode(entities: Iterable[Entity], dimensions: Iterable[Dimension]) -> str:
    writer = _R12Writer()
    _write_header(writer)
    _write_tables(writer)

    writer.tags((0, "SECTION"), (2, "ENTITIES"))
    for entity in entities:
        _write_entity(writer, entity)
    for dim in dimensions:
        for graphic in dimension_graphics(dim):
            if isinstance(graphic, DimLine):
                writer.line(graphic.start, graphic.end, DIMENSION_LAYER, graphic.color)
            else:
                writer.text(graphic, DIMENSION_LAYER)
    writer.tag(0, "ENDSEC")

    writer.tag(0, "EOF")
    return writer.getvalue()


def to_dxf(
    source: str | Path | Drawing | Sequence[Entity],
    output_path: str,
    *,
    config: DimensionConfig | None = None,
    dxf_version: str = "R12",
    strict: bool = False,
    encoding: str | None = None,
) -> ConvertResult:
    drawing = _resolve_drawing(source)
    if config is not None:
        drawing = drawing.with_config(config)
    if strict and not drawing.entities:
        raise ValueError("no entities to write")

    dimensions = drawing.dimensions()
    out_path = Path(output_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    if dxf_version.upper() in _NATIVE_VERSIONS:
        version = R12_VERSION
        out_path.write_text(
            encode(drawing.entities, dimensions),
            encoding=encoding or R12_ENCODING,
            errors="replace",
        )
        written = len(drawing.entities)
    else:
        dxf_doc, written = _build_ezdxf_document(drawing.entities, dimensions, dxf_version)
        version = dxf_doc.dxfversion
        dxf_doc.saveas(str(out_path), encoding=encoding)

    by_kind = Counter(dim.kind for dim in dimensions)
    logger.info(
        "wrote %s (%s): %d entities, %d dimensions",
        out_path,
        version,
        written,
        len(dimensions),
    )
    return ConvertResult(
        source_path=drawing.path,
        output_path=str(out_path),
        dxf_version=version,
        total_entities=len(drawing.entities),
        written_entities=written,
        dimension_count=len(dimensions),
        dimensions_by_kind=dict(sorted(by_kind.items())),
    )


def _require_ezdxf():
    try:
        import ezdxf
    except Exception as exc:
        raise ImportError(
            "ezdxf is required to write DXF versions newer than R12. "
            'Install it with `pip install "ezdim[dxf]"`.'
        ) from exc
    return ezdxf


def _resolve_drawing(source: str | Path | Drawing | Sequence[Entity]) -> Drawing:
    if isinstance(source, Drawing):
        return source
    if isinstance(source, (str, Path)):
        return read(str(source))
    return Drawing(path=None, entities=tuple(source))


def _build_ezdxf_document(
    entities: Sequence[Entity],
    dimensions: Sequence[Dimension],
    dxf_version: str,
) -> tuple[Any, int]:
    ezdxf = _require_ezdxf()
    dxf_doc = ezdxf.new(dxfversion=dxf_version)
    dxf_doc.layers.add(DIMENSION_LAYER, color=LINEAR_COLOR)
    modelspace = dxf_doc.modelspace()

    written = 0
    for entity in entities:
        if _write_entity_to_modelspace(modelspace, entity):
            written += 1

    for dim in dimensions:
        for graphic in dimension_graphics(dim):
            _write_graphic_to_modelspace(modelspace, graphic)
    return dxf_doc, written


def _write_entity_to_modelspace(modelspace: Any, entity: Entity) -> bool:
    dxfattribs = {"layer": DEFAULT_LAYER}

    if isinstance(entity, Segment):
        modelspace.add_line(
            (entity.start.x, entity.start.y, entity.start.z),
            (entity.end.x, entity.end.y, entity.end.z),
            dxfattribs=dxfattribs,
        )
        return True

    if isinstance(entity, Polyline):
        modelspace.add_lwpolyline(
            [(vertex.x, vertex.y) for vertex in entity.vertices],
            format="xy",
            close=entity.closed,
            dxfattribs=dxfattribs,
        )
        return True

    if isinstance(entity, Circle):
        modelspace.add_circle(
            (entity.center.x, entity.center.y, entity.center.z),
            entity.radius,
            dxfattribs=dxfattribs,
        )
        return True

    return False


def _write_graphic_to_modelspace(modelspace: Any, graphic: DimGraphic) -> None:
    dxfattribs: dict[str, Any] = {"layer": DIMENSION_LAYER}
    if isinstance(graphic, DimLine):
        if graphic.color != BYLAYER:
            dxfattribs["color"] = graphic.color
        modelspace.add_line(graphic.start, graphic.end, dxfattribs=dxfattribs)
        return
    dxfattribs.update(
        insert=graphic.insert,
        height=graphic.height,
        rotation=graphic.rotation,
    )
    modelspace.add_text(graphic.text, dxfattribs=dxfattribs)
