from __future__ import annotations

from pathlib import Path

import pytest

import ezdim
import ezdim.convert as convert_module
from ezdim.dimension import DimensionConfig
from ezdim.entity import Circle, Point, Polyline, Segment
from tests._dxf_helpers import circle_pairs, entities_of_type, entities_section, line_pairs


def _write_sample(path: Path) -> Path:
    path.write_text(
        entities_section(
            *line_pairs(0.0, 0.0, 5.0, 0.0),
            *line_pairs(5.0, 0.0, 5.0, 5.0),
            (0, "LWPOLYLINE"),
            (70, 1),
            (10, 10.0),
            (20, 0.0),
            (10, 14.0),
            (20, 0.0),
            (10, 14.0),
            (20, 3.0),
            *circle_pairs(20.0, 20.0, 2.5),
            (0, "ARC"),
            (10, 0.0),
            (20, 0.0),
            (40, 1.0),
        ),
        encoding="utf-8",
    )
    return path


def test_to_dxf_writes_r12_file(tmp_path: Path) -> None:
    source = _write_sample(tmp_path / "part.dxf")
    output = tmp_path / "out" / "annotated.dxf"

    result = ezdim.to_dxf(str(source), str(output))

    assert output.exists()
    assert result.source_path == str(source)
    assert result.output_path == str(output)
    assert result.dxf_version == "AC1009"
    assert result.total_entities == 4
    assert result.written_entities == 4
    assert result.dimension_count == 10
    assert result.dimensions_by_kind == {"ANGULAR": 2, "BOUNDING": 2, "LINEAR": 5, "RADIUS": 1}

    text = output.read_text(encoding="cp1252")
    assert text == ezdim.read(str(source)).to_text()
    assert len(entities_of_type(text, "POLYLINE")) == 1
    assert len(entities_of_type(text, "TEXT")) == 10


def test_to_dxf_writes_r12_labels_in_declared_code_page(tmp_path: Path) -> None:
    source = _write_sample(tmp_path / "part.dxf")
    output = tmp_path / "annotated.dxf"

    ezdim.to_dxf(str(source), str(output), config=DimensionConfig.from_names("angular"))

    data = output.read_bytes()
    assert b"$DWGCODEPAGE\n3\nANSI_1252\n" in data
    assert b"90.0\xb0" in data
    assert "\N{DEGREE SIGN}".encode("utf-8") not in data
    assert ezdim.read(str(output)).entities == ezdim.read(str(source)).entities


def test_to_dxf_respects_config(tmp_path: Path) -> None:
    source = _write_sample(tmp_path / "part.dxf")
    output = tmp_path / "radius_only.dxf"

    result = ezdim.to_dxf(str(source), str(output), config=DimensionConfig.from_names("radius"))

    assert result.dimensions_by_kind == {"RADIUS": 1}
    text = output.read_text(encoding="cp1252")
    assert len(entities_of_type(text, "TEXT")) == 1


def test_to_dxf_accepts_entity_sequence(tmp_path: Path) -> None:
    output = tmp_path / "seq.dxf"

    result = ezdim.to_dxf([Circle(Point(0.0, 0.0), 4.0)], str(output))

    assert result.source_path is None
    assert result.total_entities == 1
    decoded = ezdim.read(str(output)).entities
    assert decoded[0] == Circle(Point(0.0, 0.0), 4.0)


def test_drawing_export_dxf(tmp_path: Path) -> None:
    drawing = ezdim.Drawing(path="memory", entities=(Segment(Point(0.0, 0.0), Point(1.0, 0.0)),))
    output = tmp_path / "drawing.dxf"

    result = drawing.export_dxf(str(output))

    assert result.source_path == "memory"
    assert result.dimensions_by_kind == {"BOUNDING": 2, "LINEAR": 1}


def test_to_dxf_strict_rejects_empty_drawing(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="no entities"):
        ezdim.to_dxf([], str(tmp_path / "empty.dxf"), strict=True)
    assert not (tmp_path / "empty.dxf").exists()


def test_to_dxf_empty_drawing_still_writes_bounding_dimensions(tmp_path: Path) -> None:
    output = tmp_path / "empty.dxf"

    result = ezdim.to_dxf([], str(output))

    assert result.total_entities == 0
    assert result.dimensions_by_kind == {"BOUNDING": 2}


def test_to_dxf_modern_version_uses_ezdxf(tmp_path: Path) -> None:
    ezdxf = pytest.importorskip("ezdxf")

    entities = [
        Segment(Point(0.0, 0.0), Point(5.0, 0.0)),
        Polyline((Point(0.0, 0.0), Point(4.0, 0.0), Point(4.0, 3.0)), closed=True),
        Circle(Point(5.0, 5.0), 2.0),
    ]
    output = tmp_path / "modern.dxf"

    result = ezdim.to_dxf(entities, str(output), dxf_version="R2010")

    assert result.dxf_version == "AC1024"
    assert result.written_entities == 3
    doc = ezdxf.readfile(str(output))
    msp = doc.modelspace()
    assert doc.layers.has_entry("DIMENSIONS")
    lwpolylines = list(msp.query("LWPOLYLINE"))
    assert len(lwpolylines) == 1
    assert lwpolylines[0].closed
    assert len(msp.query("POLYLINE")) == 0
    assert len(msp.query('LINE[layer=="0"]')) == 1
    assert len(msp.query('TEXT[layer=="DIMENSIONS"]')) == result.dimension_count
    radius_lines = [
        line for line in msp.query("LINE") if line.dxf.layer == "DIMENSIONS" and line.dxf.color == 1
    ]
    assert len(radius_lines) == 1


def test_to_dxf_modern_version_requires_ezdxf(monkeypatch, tmp_path: Path) -> None:
    def _missing():
        raise ImportError("ezdxf is required")

    monkeypatch.setattr(convert_module, "_require_ezdxf", _missing)

    with pytest.raises(ImportError, match="ezdxf"):
        ezdim.to_dxf([Circle(Point(0.0, 0.0), 1.0)], str(tmp_path / "x.dxf"), dxf_version="R2010")


def test_to_dxf_r12_does_not_need_ezdxf(monkeypatch, tmp_path: Path) -> None:
    def _missing():
        raise ImportError("ezdxf is required")

    monkeypatch.setattr(convert_module, "_require_ezdxf", _missing)

    result = ezdim.to_dxf([Circle(Point(0.0, 0.0), 1.0)], str(tmp_path / "x.dxf"), dxf_version="ac1009")

    assert result.dxf_version == "AC1009"
