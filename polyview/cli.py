from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .api import default_schema_dir, load_mesh
from .core.config import LoaderConfig, load_config, normalize_config
from .core.diagnostics import Diagnostics, PolyviewError
from .core.logging import get_event_logger
from .core.mesh import validate_mesh_schema


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="polyview")
    parser.add_argument("-c", "--config", required=False)
    parser.add_argument("--logs-dir", required=False)
    sub = parser.add_subparsers(dest="command", required=True)

    validate = sub.add_parser("validate")
    validate.add_argument("paths", nargs="+")

    export = sub.add_parser("export")
    export.add_argument("path")
    export.add_argument("-o", "--output", required=True)

    report = sub.add_parser("report")
    report.add_argument("mesh")

    args = parser.parse_args(argv)

    if args.command == "report":
        _report(Path(args.mesh))
        return

    config = _config(args)

    if args.command == "validate":
        results = [_validate_one(Path(path), config) for path in args.paths]
        print(json.dumps(results, indent=2, sort_keys=True))
        if any(result["status"] != "ok" for result in results):
            raise SystemExit(1)
        return

    if args.command == "export":
        _export(Path(args.path), Path(args.output), config)
        return


def _config(args) -> LoaderConfig:
    config = load_config(Path(args.config)) if args.config else normalize_config()
    if args.logs_dir:
        config = config.model_copy(update={"logs_dir": Path(args.logs_dir)})
    return config


def _validate_one(path: Path, config: LoaderConfig) -> Dict[str, Any]:
    diagnostics = Diagnostics()
    summary: Dict[str, Any] = {"path": str(path)}
    try:
        result = load_mesh(path, config)
    except PolyviewError as exc:
        diagnostics.add(exc.diagnostic)
    else:
        diagnostics.extend(result.diagnostics)
        summary["vertices"] = result.mesh.vertex_count
        summary["triangles"] = result.mesh.triangle_count
    summary["status"] = "error" if diagnostics.has_errors() else "ok"
    summary["diagnostics"] = diagnostics.to_list()
    _record_event(config, {"event": "validate", **summary})
    return summary


def _export(path: Path, output: Path, config: LoaderConfig) -> None:
    try:
        result = load_mesh(path, config)
    except PolyviewError as exc:
        _record_event(config, {"event": "export", "path": str(path), "status": "error", "code": exc.code})
        print(json.dumps([exc.diagnostic.to_dict()], indent=2, sort_keys=True), file=sys.stderr)
        raise SystemExit(1)

    payload = result.mesh.to_dict()
    schema_diag = validate_mesh_schema(payload, default_schema_dir() / "mesh.schema.json")
    schema_diag.raise_for_errors()

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(result.mesh.canonical_bytes())
    _record_event(
        config,
        {
            "event": "export",
            "path": str(path),
            "output": str(output),
            "status": "ok",
            "vertices": result.mesh.vertex_count,
        },
    )
    print(json.dumps({"status": "ok", "output": str(output)}))


def _report(mesh_path: Path) -> None:
    if not mesh_path.exists():
        raise FileNotFoundError(f"mesh file not found: {mesh_path}")
    payload = json.loads(mesh_path.read_text(encoding="utf-8"))
    diagnostics = validate_mesh_schema(payload, default_schema_dir() / "mesh.schema.json")
    summary: Dict[str, Any] = {"path": str(mesh_path), "diagnostics": diagnostics.to_list()}
    if diagnostics.has_errors():
        print(json.dumps(summary, indent=2, sort_keys=True))
        raise SystemExit(1)

    vertices = payload["vertices"]
    indices = payload["indices"]
    summary.update(
        {
            "vertices": len(vertices),
            "indices": len(indices),
            "triangles": len(indices) // 3,
            "has_normals": bool(vertices) and all(v["normal"] is not None for v in vertices),
        }
    )
    print(json.dumps(summary, indent=2, sort_keys=True))


def _record_event(config: LoaderConfig, event: Dict[str, Any]) -> None:
    if config.logs_dir is None:
        return
    get_event_logger(config.logs_dir).record(event)


if __name__ == "__main__":
    main()
