from __future__ import annotations

import codecs
import logging
import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Union

from .dimension import BoundingBox, Dimension, DimensionConfig
from .entity import ENTITY_TYPES, Circle, Entity, Point, Polyline, Segment

logger = logging.getLogger(__name__)

_LINE_SPLIT = re.compile(r"\r\n|\r|\n")
_BINARY_DXF_SENTINEL = "AutoCAD Binary DXF"
_ACADVER = re.compile(rb"\$ACADVER\s*\r?\n\s*1\s*\r?\n\s*(AC\d+)")
_DWGCODEPAGE = re.compile(rb"\$DWGCODEPAGE\s*\r?\n\s*3\s*\r?\n\s*(\S+)")

# group code -> (point slot, axis index)
_POINT_CODES = {
    "10": (0, 0),
    "20": (0, 1),
    "30": (0, 2),
    "11": (1, 0),
    "21": (1, 1),
    "31": (1, 2),
}


class DecodeError(ValueError):
    """Raised when the input cannot be read as a text DXF at all."""


def parse_float(value: str) -> float | None:
    try:
        return float(value)
    except ValueError:
        return None


def parse_int(value: str) -> int | None:
    try:
        return int(value)
    except ValueError:
        number = parse_float(value)
    if number is None or not math.isfinite(number):
        return None
    return int(number)


class _PointDraft:
    __slots__ = ("coords", "seen")

    def __init__(self) -> None:
        self.coords = [0.0, 0.0, 0.0]
        self.seen = False

    def set_axis(self, axis: int, value: str) -> None:
        number = parse_float(value)
        self.coords[axis] = 0.0 if number is None else number
        self.seen = True

    def build(self) -> Point:
        return Point(*self.coords)


class _LineDraft:
    def __init__(self) -> None:
        self.points = (_PointDraft(), _PointDraft())

    def apply(self, code: str, value: str) -> None:
        slot = _POINT_CODES.get(code)
        if slot is not None:
            self.points[slot[0]].set_axis(slot[1], value)

    def build(self) -> Segment | None:
        start, end = self.points
        if not (start.seen and end.seen):
            return None
        return Segment(start.build(), end.build())


class _CircleDraft:
    def __init__(self) -> None:
        self.center = _PointDraft()
        self.radius: float | None = None

    def apply(self, code: str, value: str) -> None:
        if code in ("10", "20", "30"):
            self.center.set_axis(_POINT_CODES[code][1], value)
        elif code == "40":
            self.radius = parse_float(value)

    def build(self) -> Circle | None:
        if not self.center.seen or self.radius is None or not self.radius > 0.0:
            return None
        return Circle(self.center.build(), self.radius)


class _PolylineDraft:
    """Vertex accumulator shared by LWPOLYLINE and POLYLINE/VERTEX/SEQEND.

    Legacy polylines carry a dummy anchor point on their header record, so
    coordinates only count once a VERTEX record has started, and the header's
    flags are the only ones that decide closure.
    """

    def __init__(self, *, legacy: bool = False) -> None:
        self.legacy = legacy
        self.in_vertex = False
        self.vertices: list[list[float]] = []
        self.closed = False

    def begin_vertex(self) -> None:
        self.in_vertex = True

    def apply(self, code: str, value: str) -> None:
        takes_coords = not self.legacy or self.in_vertex
        if code == "10" and takes_coords:
            x = parse_float(value)
            self.vertices.append([0.0 if x is None else x, 0.0])
        elif code == "20" and takes_coords:
            if self.vertices:
                y = parse_float(value)
                self.vertices[-1][1] = 0.0 if y is None else y
        elif code == "70" and not self.in_vertex:
            flags = parse_int(value) or 0
            if self.legacy:
                if flags & 1:
                    self.closed = True
            else:
                self.closed = bool(flags & 1)

    def build(self) -> Polyline | None:
        if not self.vertices:
            return None
        return Polyline(tuple(Point(x, y) for x, y in self.vertices), self.closed)


_Draft = Union[_LineDraft, _CircleDraft, _PolylineDraft]


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class BuildingSimple:
    draft: _Draft


@dataclass(frozen=True)
class BuildingLegacyPolyline:
    draft: _PolylineDraft


ParserState = Union[Idle, BuildingSimple, BuildingLegacyPolyline]

IDLE = Idle()


def _start_entity(keyword: str) -> ParserState:
    if keyword == "LINE":
        return BuildingSimple(_LineDraft())
    if keyword == "LWPOLYLINE":
        return BuildingSimple(_PolylineDraft())
    if keyword == "POLYLINE":
        return BuildingLegacyPolyline(_PolylineDraft(legacy=True))
    if keyword == "CIRCLE":
        return BuildingSimple(_CircleDraft())
    logger.debug("dropping unsupported entity type %s", keyword)
    return IDLE


def finish(state: ParserState) -> Entity | None:
    """Close the draft held by ``state`` at a section end or end of input.

    Legacy polylines only ever close on SEQEND; an unterminated one is dropped.
    """
    if isinstance(state, BuildingSimple):
        entity = state.draft.build()
        if entity is None:
            logger.debug("rejecting incomplete %s", type(state.draft).__name__)
        return entity
    if isinstance(state, BuildingLegacyPolyline):
        logger.debug("dropping POLYLINE without SEQEND")
    return None


def step(state: ParserState, code: str, value: str) -> tuple[ParserState, Entity | None]:
    """Apply one (code, value) pair from the ENTITIES section.

    Returns the next state and the entity committed by this pair, if any.
    """
    if code != "0":
        if not isinstance(state, Idle):
            state.draft.apply(code, value)
        return state, None

    if isinstance(state, BuildingLegacyPolyline):
        if value == "VERTEX":
            state.draft.begin_vertex()
            return state, None
        if value == "SEQEND":
            return IDLE, state.draft.build()
        # Missing SEQEND: the vertices read so far still form a polyline.
        return _start_entity(value), state.draft.build()

    committed = finish(state)
    return _start_entity(value), committed


def sniff_encoding(data: bytes) -> str:
    """Text encoding declared by a DXF header.

    R2007 and later are always UTF-8. Older files name an ANSI code page in
    $DWGCODEPAGE; files without a header are assumed to be UTF-8.
    """
    version = _ACADVER.search(data)
    if version is not None and version.group(1).upper() >= b"AC1021":
        return "utf-8"
    codepage = _DWGCODEPAGE.search(data)
    if codepage is None:
        return "utf-8"
    name = codepage.group(1).decode("ascii", errors="replace").upper()
    if not name.startswith("ANSI_"):
        return "utf-8"
    candidate = "cp" + name[len("ANSI_"):]
    try:
        codecs.lookup(candidate)
    except LookupError:
        logger.debug("unknown code page %s, falling back to utf-8", name)
        return "utf-8"
    return candidate


def _split_lines(text: str | bytes, encoding: str | None) -> list[str]:
    if isinstance(text, (bytes, bytearray)):
        data = bytes(text)
        encoding = encoding or sniff_encoding(data)
        try:
            # Undecodable bytes become U+FFFD instead of failing the whole file.
            text = data.decode(encoding, errors="replace")
        except LookupError as exc:
            raise DecodeError(f"unknown text encoding {encoding!r}") from exc
    if not isinstance(text, str):
        raise DecodeError(f"expected DXF text, got {type(text).__name__}")
    if text.startswith(_BINARY_DXF_SENTINEL):
        raise DecodeError("binary DXF is not supported")
    return _LINE_SPLIT.split(text)


def decode(text: str | bytes, *, encoding: str | None = None) -> list[Entity]:
    lines = _split_lines(text, encoding)
    line_count = len(lines)
    entities: list[Entity] = []
    state: ParserState = IDLE
    in_entities = False
    skipped = 0

    def commit(entity: Entity | None) -> None:
        if entity is not None:
            entities.append(entity)

    i = 0
    while i < line_count:
        code = lines[i].strip()
        value = lines[i + 1].strip() if i + 1 < line_count else ""
        if not code or not value:
            skipped += 1
            i += 2
            continue

        if code == "0" and value == "SECTION":
            if (
                i + 3 < line_count
                and lines[i + 2].strip() == "2"
                and lines[i + 3].strip() == "ENTITIES"
            ):
                in_entities = True
                i += 4
                continue

        if code == "0" and value == "ENDSEC":
            if in_entities:
                commit(finish(state))
                state = IDLE
            in_entities = False
            i += 2
            continue

        if in_entities:
            state, entity = step(state, code, value)
            commit(entity)
        i += 2

    commit(finish(state))
    logger.debug(
        "decoded %d entities from %d lines (%d incomplete pairs skipped)",
        len(entities),
        line_count,
        skipped,
    )
    return entities


def read(path: str, *, encoding: str | None = None) -> "Drawing":
    file_path = Path(path)
    entities = decode(file_path.read_bytes(), encoding=encoding)
    logger.info("read %s: %d entities", file_path, len(entities))
    return Drawing(path=str(file_path), entities=tuple(entities))


@dataclass(frozen=True)
class Drawing:
    path: str | None
    entities: tuple[Entity, ...]
    config: DimensionConfig = field(default_factory=DimensionConfig)

    @classmethod
    def from_text(cls, text: str | bytes, *, path: str | None = None) -> "Drawing":
        return cls(path=path, entities=tuple(decode(text)))

    def with_config(self, config: DimensionConfig) -> "Drawing":
        return Drawing(path=self.path, entities=self.entities, config=config)

    def bounding_box(self) -> BoundingBox:
        from .geometry import bounding_box

        return bounding_box(self.entities)

    def dimensions(self) -> list[Dimension]:
        from .geometry import generate_dimensions

        return generate_dimensions(self.entities, self.config)

    def counts(self) -> dict[str, int]:
        return count_entities(self.entities)

    def summary(self) -> str:
        from .services import drawing_summary

        return drawing_summary(self.entities)

    def to_text(self) -> str:
        from .convert import encode

        return encode(self.entities, self.dimensions())

    def export_dxf(self, output_path: str, **kwargs):
        from .convert import to_dxf

        return to_dxf(self, output_path, **kwargs)


def count_entities(entities: Iterable[Entity]) -> dict[str, int]:
    counts = {dxftype: 0 for dxftype in ENTITY_TYPES}
    for entity in entities:
        counts[entity.dxftype] += 1
    return counts
