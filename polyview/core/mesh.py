from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import jsonschema

from .canonical import canonical_json_bytes
from .diagnostics import Diagnostic, Diagnostics, MeshBuildError

MESH_FORMAT = "polyview.mesh"
MESH_FORMAT_VERSION = "1.0.0"
MAX_INDEX = 0xFFFFFFFF

Vector3 = Tuple[float, float, float]


@dataclass(frozen=True)
class Vertex:
    position: Vector3
    normal: Optional[Vector3] = None
    texcoord: Tuple[float, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": list(self.position),
            "normal": list(self.normal) if self.normal is not None else None,
            "texcoord": list(self.texcoord),
        }


@dataclass(frozen=True)
class Mesh:
    vertices: Tuple[Vertex, ...]
    indices: Tuple[int, ...]

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    @property
    def has_normals(self) -> bool:
        return bool(self.vertices) and self.vertices[0].normal is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": MESH_FORMAT,
            "version": MESH_FORMAT_VERSION,
            "vertices": [vertex.to_dict() for vertex in self.vertices],
            "indices": list(self.indices),
        }

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.to_dict())


@dataclass
class MeshBuilder:
    vertices: List[Vertex] = field(default_factory=list)
    indices: List[int] = field(default_factory=list)

    def add_vertex(self, vertex: Vertex) -> "MeshBuilder":
        self.vertices.append(vertex)
        return self

    def add_vertices(self, vertices: Iterable[Vertex]) -> "MeshBuilder":
        self.vertices.extend(vertices)
        return self

    def set_indices(self, indices: Iterable[int]) -> "MeshBuilder":
        self.indices = list(indices)
        return self

    def build(self) -> Mesh:
        vertex_count = len(self.vertices)
        for position, index in enumerate(self.indices):
            if index < 0 or index > MAX_INDEX:
                raise MeshBuildError(
                    f"index {index} at {position} does not fit in an unsigned 32-bit integer",
                    data={"position": position, "index": index},
                )
            if index >= vertex_count:
                raise MeshBuildError(
                    f"index {index} at {position} out of bounds for {vertex_count} vertices",
                    data={"position": position, "index": index, "vertex_count": vertex_count},
                )

        if len(self.indices) % 3 != 0:
            raise MeshBuildError(
                f"index count {len(self.indices)} is not a multiple of three",
                data={"index_count": len(self.indices)},
            )

        if self.vertices:
            with_normals = sum(1 for vertex in self.vertices if vertex.normal is not None)
            if with_normals not in (0, vertex_count):
                raise MeshBuildError(
                    f"{with_normals} of {vertex_count} vertices have normals",
                    data={"with_normals": with_normals, "vertex_count": vertex_count},
                )
            texcoord_lengths = {len(vertex.texcoord) for vertex in self.vertices}
            if len(texcoord_lengths) > 1:
                raise MeshBuildError(
                    "vertices have inconsistent texcoord lengths",
                    data={"texcoord_lengths": sorted(texcoord_lengths)},
                )

        return Mesh(vertices=tuple(self.vertices), indices=tuple(self.indices))


def validate_mesh_schema(payload: Dict[str, Any], schema_path: Path) -> Diagnostics:
    diagnostics = Diagnostics()
    with schema_path.open("r", encoding="utf-8") as handle:
        schema = json.load(handle)
    schema["$id"] = schema_path.resolve().as_uri()
    validator = jsonschema.Draft202012Validator(schema)
    for error in sorted(validator.iter_errors(payload), key=str):
        diagnostics.add(
            Diagnostic(
                code="E-MESH-SCHEMA",
                message=error.message,
                location="/".join(str(x) for x in error.path),
            )
        )
    return diagnostics
