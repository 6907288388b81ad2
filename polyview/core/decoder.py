from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple, Union

from .diagnostics import (
    Diagnostic,
    Diagnostics,
    DocumentMalformedError,
    MalformedKind,
    MeshBuildError,
    MissingPositionError,
)
from .document import Mesh, Polylist, SharedInput, Source, as_float_array
from .logging import get_logger
from .mesh import Mesh as RenderMesh
from .mesh import MeshBuilder, Vector3, Vertex

POSITION = "POSITION"
COMPONENT_NAMES = ("X", "Y", "Z")


class Semantic(str, Enum):
    VERTEX = "VERTEX"
    NORMAL = "NORMAL"


@dataclass(frozen=True)
class OtherSemantic:
    name: str


def parse_semantic(value: str) -> Union[Semantic, OtherSemantic]:
    try:
        return Semantic(value)
    except ValueError:
        return OtherSemantic(value)


@dataclass
class DecodedPolylist:
    vertices: List[Vertex] = field(default_factory=list)
    indices: List[int] = field(default_factory=list)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    def build(self) -> RenderMesh:
        return MeshBuilder().add_vertices(self.vertices).set_indices(self.indices).build()


def decode_polylist(
    mesh: Mesh, polylist: Polylist, *, polygon_policy: str = "forward"
) -> DecodedPolylist:
    logger = get_logger("decoder")
    sources = mesh.source_table()
    result = DecodedPolylist()
    ignored: Set[str] = set()

    for polygon_index, polygon in enumerate(polylist):
        if polygon_policy == "reject" and len(polygon) != 3:
            raise MeshBuildError(
                f"polygon {polygon_index} has {len(polygon)} corners, only triangles are accepted",
                data={"polygon": polygon_index, "corners": len(polygon)},
            )
        for corner_index, corner in enumerate(polygon):
            position: Optional[Vector3] = None
            normal: Optional[Vector3] = None

            for attribute in corner:
                for inp in polylist.inputs_for_offset(attribute.offset):
                    semantic = parse_semantic(inp.semantic)
                    if semantic is Semantic.VERTEX:
                        position = _resolve_vertex(mesh, sources, inp, attribute.index)
                    elif semantic is Semantic.NORMAL:
                        normal = _read_vector3(
                            sources, inp.source_id(), attribute.index, semantic=inp.semantic
                        )
                    elif semantic.name not in ignored:
                        ignored.add(semantic.name)
                        logger.warning("Ignoring unknown semantic %r", semantic.name)
                        result.diagnostics.add(
                            Diagnostic(
                                code="W-SEMANTIC-IGNORED",
                                message=f"Ignoring unknown semantic {semantic.name!r}",
                                severity="WARNING",
                                location=f"polylist.input[offset={inp.offset}]",
                                data={"semantic": semantic.name, "source": inp.source_id()},
                            )
                        )

            if position is None:
                raise MissingPositionError(polygon_index, corner_index)
            result.vertices.append(Vertex(position=position, normal=normal))
            result.indices.append(len(result.indices))

    logger.info("Decoded %d vertices from %d polygon(s)", len(result.vertices), len(polylist.vcount))
    return result


def _resolve_vertex(
    mesh: Mesh, sources: Dict[str, Source], inp: SharedInput, index: int
) -> Vector3:
    vertices = mesh.vertices
    if inp.source_id() != vertices.id:
        raise DocumentMalformedError(
            MalformedKind.FOREIGN_VERTICES,
            f"Input targets vertices {inp.source_id()!r}, but the mesh's vertices are {vertices.id!r}",
            location="polylist.input",
            semantic=inp.semantic,
            expected=vertices.id,
            actual=inp.source_id(),
        )

    position_input = next((i for i in vertices.inputs if i.semantic == POSITION), None)
    if position_input is None:
        raise DocumentMalformedError(
            MalformedKind.MISSING_POSITION_INPUT,
            f"Vertices {vertices.id!r} had no input with the \"POSITION\" semantic",
            location=f"vertices.{vertices.id}",
            vertices=vertices.id,
        )
    return _read_vector3(sources, position_input.source_id(), index, semantic=POSITION)


def _read_vector3(sources: Dict[str, Source], source_id: str, index: int, *, semantic: str) -> Vector3:
    source = sources.get(source_id)
    if source is None:
        raise DocumentMalformedError(
            MalformedKind.UNRESOLVED_SOURCE,
            f"No source with id {source_id!r} in the parent mesh",
            location="mesh.source",
            semantic=semantic,
            source=source_id,
        )

    accessor = source.common_accessor()
    if accessor is None:
        raise DocumentMalformedError(
            MalformedKind.MISSING_ACCESSOR,
            f"Source {source_id!r} has no common accessor",
            location=f"source.{source_id}",
            semantic=semantic,
            source=source_id,
        )
    # Only float arrays carry position and normal data.
    array = as_float_array(source.array)
    if array is None:
        kind = getattr(source.array, "tag", None)
        raise DocumentMalformedError(
            MalformedKind.UNSUPPORTED_ARRAY,
            f"Source {source_id!r} is not a float array (found {kind or 'no array'})",
            location=f"source.{source_id}",
            semantic=semantic,
            source=source_id,
            array=kind,
        )

    element = accessor.access(array.data, index)
    components: Dict[str, float] = {}
    for param, value in zip(accessor.params, element):
        if param.name in COMPONENT_NAMES:
            components[param.name] = value

    missing = [name for name in COMPONENT_NAMES if name not in components]
    if missing:
        raise DocumentMalformedError(
            MalformedKind.MISSING_COMPONENT,
            f"{semantic} source {source_id!r} has no {', '.join(missing)} component",
            location=f"source.{source_id}.accessor",
            semantic=semantic,
            source=source_id,
            missing=missing,
        )
    return (components["X"], components["Y"], components["Z"])


def decode_to_mesh(
    mesh: Mesh, polylist: Polylist, *, polygon_policy: str = "forward"
) -> Tuple[RenderMesh, Diagnostics]:
    decoded = decode_polylist(mesh, polylist, polygon_policy=polygon_policy)
    return decoded.build(), decoded.diagnostics
