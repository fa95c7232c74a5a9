"""Contracts for the collaborators around the pipeline.

The viewer consumes a :class:`Theme`; the analysis and theme-generation
services are plain callables supplied by the caller. Neither can affect
decoding, dimension generation or encoding.
"""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass, fields
from typing import Callable, Iterable, Mapping, Optional

from .entity import Circle, Entity, Polyline, Segment

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

Analyzer = Callable[[str], Optional[str]]
ThemeGenerator = Callable[[str], Optional[Mapping[str, object]]]


@dataclass(frozen=True)
class Theme:
    background: str
    lines: str
    dimensions: str
    text: str
    grid: str
    accent: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


THEME_KEYS = tuple(field.name for field in fields(Theme))

PRESET_THEMES: dict[str, Theme] = {
    "Cyber Dark": Theme(
        background="#0a0a0a",
        lines="#e2e8f0",
        dimensions="#06b6d4",
        text="#ffffff",
        grid="#262626",
        accent="#d946ef",
    ),
    "Deep Ocean": Theme(
        background="#020617",
        lines="#94a3b8",
        dimensions="#fbbf24",
        text="#f8fafc",
        grid="#1e293b",
        accent="#38bdf8",
    ),
    "Neon Nights": Theme(
        background="#2e0225",
        lines="#f5d0fe",
        dimensions="#22d3ee",
        text="#fae8ff",
        grid="#4a044e",
        accent="#f0abfc",
    ),
    "Matrix Code": Theme(
        background="#000000",
        lines="#22c55e",
        dimensions="#15803d",
        text="#4ade80",
        grid="#052e16",
        accent="#86efac",
    ),
    "Obsidian Red": Theme(
        background="#000000",
        lines="#d1d5db",
        dimensions="#ef4444",
        text="#ffffff",
        grid="#374151",
        accent="#dc2626",
    ),
}
DEFAULT_THEME_NAME = "Cyber Dark"


def theme_from_mapping(data: Mapping[str, object]) -> Theme:
    missing = [key for key in THEME_KEYS if key not in data]
    if missing:
        raise ValueError(f"theme is missing keys: {', '.join(missing)}")
    values: dict[str, str] = {}
    for key in THEME_KEYS:
        value = str(data[key]).strip()
        if not _HEX_COLOR.match(value):
            raise ValueError(f"invalid color for {key}: {value!r}")
        values[key] = value
    return Theme(**values)


def apply_generated_theme(current: Theme, generator: ThemeGenerator, prompt: str) -> Theme:
    """Ask ``generator`` for a theme, keeping ``current`` when it has nothing usable."""
    try:
        data = generator(prompt)
    except Exception:
        logger.warning("theme generation failed for prompt %r", prompt, exc_info=True)
        return current
    if data is None:
        return current
    try:
        return theme_from_mapping(data)
    except ValueError as exc:
        logger.warning("ignoring generated theme: %s", exc)
        return current


def drawing_summary(entities: Iterable[Entity]) -> str:
    entities = list(entities)
    lines = sum(1 for entity in entities if isinstance(entity, Segment))
    polylines = sum(1 for entity in entities if isinstance(entity, Polyline))
    circles = sum(1 for entity in entities if isinstance(entity, Circle))
    return (
        f"Drawing contains {lines} lines, {polylines} polylines and {circles} circles. "
        "It has a mix of linear, angular, and radial geometry."
    )


def analyze_drawing(entities: Iterable[Entity], analyzer: Analyzer) -> str | None:
    try:
        return analyzer(drawing_summary(entities))
    except Exception:
        logger.warning("drawing analysis unavailable", exc_info=True)
        return None
