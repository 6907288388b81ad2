from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from .diagnostics import DocumentMalformedError, MalformedKind


def uri_id(ref: str) -> str:
    return ref[1:] if ref.startswith("#") else ref


@dataclass(frozen=True)
class Param:
    name: Optional[str]
    type: str = "float"


@dataclass(frozen=True)
class Accessor:
    source: str
    count: int
    stride: int = 1
    offset: int = 0
    params: Tuple[Param, ...] = ()

    def access(self, data: Sequence[float], index: int) -> Sequence[float]:
        if index < 0 or index >= self.count:
            raise DocumentMalformedError(
                MalformedKind.INDEX_OUT_OF_RANGE,
                f"Accessor index {index} out of range for count {self.count}",
                location="accessor",
                source=uri_id(self.source),
                index=index,
                count=self.count,
            )
        start = self.offset + index * self.stride
        end = start + self.stride
        if end > len(data):
            raise DocumentMalformedError(
                MalformedKind.INDEX_OUT_OF_RANGE,
                f"Accessor element {index} reads past the end of its array ({end} > {len(data)})",
                location="accessor",
                source=uri_id(self.source),
                index=index,
                length=len(data),
            )
        return data[start:end]


@dataclass(frozen=True)
class FloatArray:
    id: Optional[str]
    data: Tuple[float, ...]


@dataclass(frozen=True)
class OtherArray:
    tag: str
    id: Optional[str] = None


Array = Union[FloatArray, OtherArray]


def as_float_array(array: Optional[Array]) -> Optional[FloatArray]:
    return array if isinstance(array, FloatArray) else None


@dataclass(frozen=True)
class Source:
    id: str
    array: Optional[Array] = None
    technique_common: Optional[Accessor] = None

    def common_accessor(self) -> Optional[Accessor]:
        return self.technique_common


@dataclass(frozen=True)
class UnsharedInput:
    semantic: str
    source: str

    def source_id(self) -> str:
        return uri_id(self.source)


@dataclass(frozen=True)
class SharedInput:
    offset: int
    semantic: str
    source: str
    set: Optional[int] = None

    def source_id(self) -> str:
        return uri_id(self.source)


@dataclass(frozen=True)
class Vertices:
    id: str
    inputs: Tuple[UnsharedInput, ...] = ()


@dataclass(frozen=True)
class Attribute:
    offset: int
    index: int


@dataclass(frozen=True)
class PolygonVertex:
    attributes: Tuple[Attribute, ...]

    def __iter__(self) -> Iterator[Attribute]:
        return iter(self.attributes)


@dataclass(frozen=True)
class Polygon:
    vertices: Tuple[PolygonVertex, ...]

    def __iter__(self) -> Iterator[PolygonVertex]:
        return iter(self.vertices)

    def __len__(self) -> int:
        return len(self.vertices)


@dataclass(frozen=True)
class Polylist:
    inputs: Tuple[SharedInput, ...]
    vcount: Tuple[int, ...]
    p: Tuple[int, ...]
    count: Optional[int] = None
    material: Optional[str] = None

    @property
    def stride(self) -> int:
        if not self.inputs:
            return 0
        return max(inp.offset for inp in self.inputs) + 1

    def offsets(self) -> List[int]:
        return sorted({inp.offset for inp in self.inputs})

    def inputs_for_offset(self, offset: int) -> List[SharedInput]:
        return [inp for inp in self.inputs if inp.offset == offset]

    def __iter__(self) -> Iterator[Polygon]:
        for inp in self.inputs:
            if inp.offset < 0:
                raise DocumentMalformedError(
                    MalformedKind.INVALID_CONTENT,
                    f"Polylist input {inp.semantic!r} has negative offset {inp.offset}",
                    location="polylist.input@offset",
                    semantic=inp.semantic,
                    offset=inp.offset,
                )
        for position, corners in enumerate(self.vcount):
            if corners < 0:
                raise DocumentMalformedError(
                    MalformedKind.INVALID_CONTENT,
                    f"Polylist vcount entry {position} is negative ({corners})",
                    location=f"polylist.vcount[{position}]",
                    polygon=position,
                    corners=corners,
                )
        stride = self.stride
        offsets = self.offsets()
        required = sum(self.vcount) * stride
        if required > len(self.p):
            raise DocumentMalformedError(
                MalformedKind.TRUNCATED_INDEX_STREAM,
                f"Polylist index stream has {len(self.p)} entries, vcount requires {required}",
                location="polylist.p",
                expected=required,
                actual=len(self.p),
            )
        cursor = 0
        for corners in self.vcount:
            vertices = []
            for _ in range(corners):
                base = cursor * stride
                vertices.append(
                    PolygonVertex(
                        tuple(Attribute(offset, self.p[base + offset]) for offset in offsets)
                    )
                )
                cursor += 1
            yield Polygon(tuple(vertices))


@dataclass(frozen=True)
class OtherPrimitive:
    tag: str


Primitive = Union[Polylist, OtherPrimitive]


def as_polylist(primitive: Primitive) -> Optional[Polylist]:
    return primitive if isinstance(primitive, Polylist) else None


@dataclass(frozen=True)
class Mesh:
    vertices: Vertices
    primitive_list: Tuple[Primitive, ...] = ()
    sources: Tuple[Source, ...] = ()

    def primitives(self) -> Iterator[Primitive]:
        return iter(self.primitive_list)

    def find_source(self, source_id: str) -> Optional[Source]:
        for source in self.sources:
            if source.id == source_id:
                return source
        return None

    def source_table(self) -> Dict[str, Source]:
        table: Dict[str, Source] = {}
        for source in self.sources:
            # First declaration wins, same as find_source.
            table.setdefault(source.id, source)
        return table


@dataclass(frozen=True)
class OtherGeometricElement:
    tag: str


GeometricElement = Union[Mesh, OtherGeometricElement]


@dataclass(frozen=True)
class Geometry:
    id: Optional[str]
    geometric_element: GeometricElement
    name: Optional[str] = None

    def as_mesh(self) -> Optional[Mesh]:
        element = self.geometric_element
        return element if isinstance(element, Mesh) else None


@dataclass(frozen=True)
class LibraryGeometries:
    geometry_list: Tuple[Geometry, ...] = ()
    id: Optional[str] = None

    def geometries(self) -> Iterator[Geometry]:
        return iter(self.geometry_list)


@dataclass(frozen=True)
class OtherLibrary:
    tag: str


Library = Union[LibraryGeometries, OtherLibrary]


def as_library_geometries(library: Library) -> Optional[LibraryGeometries]:
    return library if isinstance(library, LibraryGeometries) else None


@dataclass(frozen=True)
class Collada:
    version: str = "1.4.1"
    library_list: Tuple[Library, ...] = field(default_factory=tuple)

    def libraries(self) -> Iterator[Library]:
        return iter(self.library_list)
