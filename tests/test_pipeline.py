from __future__ import annotations

import json
from pathlib import Path

import pytest

from polyview import load_mesh
from polyview.cli import main
from polyview.core.diagnostics import MeshBuildError, MeshNotFoundError

ROOT = Path(__file__).resolve().parents[1]


def test_load_triangle_example():
    result = load_mesh(ROOT / "examples" / "triangle.dae")
    mesh = result.mesh
    assert [v.position for v in mesh.vertices] == [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)]
    assert all(v.normal == (0.0, 0.0, 1.0) for v in mesh.vertices)
    assert mesh.indices == (0, 1, 2)
    assert not result.diagnostics.items


def test_load_is_deterministic():
    path = ROOT / "examples" / "triangle.dae"
    assert load_mesh(path).mesh.canonical_bytes() == load_mesh(path).mesh.canonical_bytes()


def test_quad_is_forwarded_then_rejected_by_builder():
    with pytest.raises(MeshBuildError) as excinfo:
        load_mesh(ROOT / "examples" / "quad.dae")
    assert excinfo.value.diagnostic.data == {"index_count": 4}


def test_quad_rejected_upfront_with_reject_policy():
    with pytest.raises(MeshBuildError) as excinfo:
        load_mesh(ROOT / "examples" / "quad.dae", {"polygon_policy": "reject"})
    assert excinfo.value.diagnostic.data == {"polygon": 0, "corners": 4}


def test_document_without_geometry():
    with pytest.raises(MeshNotFoundError):
        load_mesh(ROOT / "examples" / "empty.dae")


def test_cli_validate_reports_each_document(capsys, tmp_path):
    paths = [str(ROOT / "examples" / "triangle.dae"), str(ROOT / "examples" / "empty.dae")]
    with pytest.raises(SystemExit) as excinfo:
        main(["--logs-dir", str(tmp_path / "logs"), "validate", *paths])
    assert excinfo.value.code == 1

    results = json.loads(capsys.readouterr().out)
    assert [r["status"] for r in results] == ["ok", "error"]
    assert results[0]["vertices"] == 3
    assert results[1]["diagnostics"][0]["code"] == "E-MESH-NOT-FOUND"

    events = (tmp_path / "logs" / "events.jsonl").read_text(encoding="utf-8").splitlines()
    assert len(events) == 2


def test_cli_export_and_report(capsys, tmp_path):
    output = tmp_path / "triangle.json"
    main(["export", str(ROOT / "examples" / "triangle.dae"), "-o", str(output)])
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["format"] == "polyview.mesh"
    assert payload["indices"] == [0, 1, 2]
    capsys.readouterr()

    main(["report", str(output)])
    summary = json.loads(capsys.readouterr().out)
    assert summary["triangles"] == 1
    assert summary["has_normals"] is True
    assert summary["diagnostics"] == []


def test_cli_report_rejects_malformed_mesh_file(capsys, tmp_path):
    bad = tmp_path / "bad.json"
    payload = {"format": "polyview.mesh", "version": "1.0.0", "vertices": [7], "indices": []}
    bad.write_text(json.dumps(payload), encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        main(["report", str(bad)])
    assert excinfo.value.code == 1
    summary = json.loads(capsys.readouterr().out)
    assert "triangles" not in summary
    assert summary["diagnostics"][0]["code"] == "E-MESH-SCHEMA"
