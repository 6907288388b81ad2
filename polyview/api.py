from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Union

from .core.config import LoaderConfig, normalize_config
from .core.decoder import decode_to_mesh
from .core.diagnostics import Diagnostics
from .core.document import Collada
from .core.locator import find_polylist
from .core.logging import configure_logging, get_logger
from .core.mesh import Mesh
from .core.reader import read_document


@dataclass(frozen=True)
class LoadResult:
    mesh: Mesh
    diagnostics: Diagnostics


ConfigLike = Union[LoaderConfig, Dict[str, Any], None]


def load_mesh(path: Union[Path, str], config: ConfigLike = None) -> LoadResult:
    cfg = _resolve_config(config)
    configure_logging(cfg.log_level, cfg.logs_dir)
    get_logger("api").info("Loading mesh from %s", path)
    document = read_document(path)
    return _load(document, cfg)


def load_mesh_from_document(document: Collada, config: ConfigLike = None) -> LoadResult:
    cfg = _resolve_config(config)
    configure_logging(cfg.log_level, cfg.logs_dir)
    return _load(document, cfg)


def _load(document: Collada, cfg: LoaderConfig) -> LoadResult:
    mesh_el, polylist = find_polylist(document)
    mesh, diagnostics = decode_to_mesh(mesh_el, polylist, polygon_policy=cfg.polygon_policy)
    get_logger("api").info(
        "Built mesh with %d vertices and %d triangle(s)", mesh.vertex_count, mesh.triangle_count
    )
    return LoadResult(mesh=mesh, diagnostics=diagnostics)


def _resolve_config(config: ConfigLike) -> LoaderConfig:
    if isinstance(config, LoaderConfig):
        return config
    return normalize_config(config)


def default_schema_dir() -> Path:
    return Path(__file__).resolve().parent.parent / "schemas"
