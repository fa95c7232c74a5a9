from __future__ import annotations

from pathlib import Path

import pytest

import ezdim
import ezdim.cli as cli_module
from tests._dxf_helpers import circle_pairs, entities_of_type, entities_section, line_pairs


def _write_sample(path: Path) -> Path:
    path.write_text(
        entities_section(
            *line_pairs(0.0, 0.0, 5.0, 0.0),
            *line_pairs(5.0, 0.0, 5.0, 5.0),
            *circle_pairs(10.0, 10.0, 1.0),
        ),
        encoding="utf-8",
    )
    return path


def test_cli_inspect_reports_counts(tmp_path: Path, capsys) -> None:
    source = _write_sample(tmp_path / "sample.dxf")

    code = cli_module.main(["inspect", str(source)])

    assert code == 0
    out = capsys.readouterr().out
    assert f"file: {source}" in out
    assert "total_entities: 3" in out
    assert "LINE: 2" in out
    assert "CIRCLE: 1" in out
    assert "LWPOLYLINE" not in out
    assert "bounding_box: (0, 0) - (11, 11)" in out
    assert "size: 11 x 11" in out
    assert "total_dimensions: 6" in out
    assert "dimensions[ANGULAR]: 1" in out
    assert "dimensions[LINEAR]: 2" in out


def test_cli_inspect_missing_file(tmp_path: Path, capsys) -> None:
    code = cli_module.main(["inspect", str(tmp_path / "missing.dxf")])

    assert code == 2
    assert "error: file not found" in capsys.readouterr().err


def test_cli_inspect_reports_decode_error(tmp_path: Path, capsys) -> None:
    source = tmp_path / "binary.dxf"
    source.write_bytes(b"AutoCAD Binary DXF\r\n\x1a\x00")

    code = cli_module.main(["inspect", str(source)])

    assert code == 2
    assert "error: failed to read DXF: binary DXF is not supported" in capsys.readouterr().err


def test_cli_annotate_writes_output(tmp_path: Path, capsys) -> None:
    source = _write_sample(tmp_path / "sample.dxf")
    output = tmp_path / "annotated.dxf"

    code = cli_module.main(["annotate", str(source), str(output), "--no-bounding"])

    assert code == 0
    out = capsys.readouterr().out
    assert f"output: {output}" in out
    assert "dxf_version: AC1009" in out
    assert "written_entities: 3" in out
    assert "dimensions: 4" in out
    assert "dimensions[BOUNDING]" not in out
    text = output.read_text(encoding="cp1252")
    assert len(entities_of_type(text, "TEXT")) == 4


def test_cli_annotate_strict_fails_without_entities(tmp_path: Path, capsys) -> None:
    source = tmp_path / "empty.dxf"
    source.write_text(entities_section((0, "ARC"), (40, 1.0)), encoding="utf-8")

    code = cli_module.main(["annotate", str(source), str(tmp_path / "out.dxf"), "--strict"])

    assert code == 2
    assert "error: failed to write DXF: no entities to write" in capsys.readouterr().err


def test_cli_annotate_passes_options_to_to_dxf(monkeypatch, tmp_path: Path) -> None:
    source = _write_sample(tmp_path / "sample.dxf")
    captured = {}

    def _fake_to_dxf(drawing, output_path, **kwargs):  # noqa: ANN001
        captured["output_path"] = output_path
        captured.update(kwargs)
        return ezdim.ConvertResult(
            source_path=drawing.path,
            output_path=output_path,
            dxf_version="AC1024",
            total_entities=len(drawing.entities),
            written_entities=len(drawing.entities),
            dimension_count=0,
            dimensions_by_kind={},
        )

    monkeypatch.setattr(cli_module, "to_dxf", _fake_to_dxf)

    code = cli_module.main(
        [
            "annotate",
            str(source),
            str(tmp_path / "out.dxf"),
            "--dxf-version",
            "R2010",
            "--only",
            "linear,angular",
        ]
    )

    assert code == 0
    assert captured["dxf_version"] == "R2010"
    assert captured["strict"] is False
    assert captured["config"] == ezdim.DimensionConfig(
        linear=True, angular=True, radius=False, bounding=False
    )


def test_cli_dimensions_lists_labels(tmp_path: Path, capsys) -> None:
    source = _write_sample(tmp_path / "sample.dxf")

    code = cli_module.main(["dimensions", str(source), "--only", "angular radius"])

    assert code == 0
    assert capsys.readouterr().out.splitlines() == [
        "ANGULAR\t90.0\N{DEGREE SIGN}",
        "RADIUS\tR1.00",
    ]


def test_cli_rejects_unknown_category(tmp_path: Path, capsys) -> None:
    source = _write_sample(tmp_path / "sample.dxf")

    code = cli_module.main(["dimensions", str(source), "--only", "diameter"])

    assert code == 2
    assert "unknown dimension categories: diameter" in capsys.readouterr().err


def test_cli_without_command_prints_help(capsys) -> None:
    assert cli_module.main([]) == 0
    assert "usage: ezdim" in capsys.readouterr().out


def test_cli_version(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["--version"])

    assert excinfo.value.code == 0
    assert capsys.readouterr().out.startswith("ezdim ")
