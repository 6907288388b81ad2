"""Build a :class:`~polyview.core.document.Collada` tree from a ``.dae`` file.

Only the subset of COLLADA 1.4 the loader consumes is read: geometry
libraries, meshes, vertices, float-array sources with their common accessor,
and polylists. Everything else is kept as a tagged placeholder so document
order is preserved.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .diagnostics import DocumentMalformedError, DocumentReadError, MalformedKind
from .document import (
    Accessor,
    Array,
    Collada,
    FloatArray,
    Geometry,
    Library,
    LibraryGeometries,
    Mesh,
    OtherArray,
    OtherGeometricElement,
    OtherLibrary,
    OtherPrimitive,
    Param,
    Polylist,
    Primitive,
    SharedInput,
    Source,
    UnsharedInput,
    Vertices,
)
from .logging import get_logger

ARRAY_TAGS = {"float_array", "int_array", "bool_array", "Name_array", "IDREF_array", "SIDREF_array"}


def read_document(path: Union[Path, str]) -> Collada:
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise DocumentReadError(f"Failed to open file: {exc}", location=str(path)) from exc
    return parse_document(raw, location=str(path))


def parse_document(content: Union[str, bytes], *, location: Optional[str] = None) -> Collada:
    try:
        root = ET.fromstring(content)
    except ET.ParseError as exc:
        raise DocumentReadError(
            f"Failed to parse COLLADA document: {exc}", location=location
        ) from exc
    if _tag(root) != "COLLADA":
        raise DocumentReadError(
            f"Root element is <{_tag(root)}>, expected <COLLADA>", location=location
        )

    libraries: List[Library] = []
    for child in root:
        tag = _tag(child)
        if tag == "library_geometries":
            libraries.append(_library_geometries(child))
        elif tag.startswith("library_"):
            libraries.append(OtherLibrary(tag))
    get_logger("reader").debug("Read %d librar(ies) from %s", len(libraries), location or "<memory>")
    return Collada(version=root.get("version", "1.4.1"), library_list=tuple(libraries))


def _library_geometries(element: ET.Element) -> LibraryGeometries:
    geometries = tuple(_geometry(child) for child in element.findall("{*}geometry"))
    return LibraryGeometries(geometry_list=geometries, id=element.get("id"))


def _geometry(element: ET.Element) -> Geometry:
    for child in element:
        tag = _tag(child)
        if tag == "mesh":
            return Geometry(id=element.get("id"), name=element.get("name"), geometric_element=_mesh(child))
        if tag in {"convex_mesh", "spline", "brep"}:
            return Geometry(
                id=element.get("id"),
                name=element.get("name"),
                geometric_element=OtherGeometricElement(tag),
            )
    raise DocumentMalformedError(
        MalformedKind.INVALID_CONTENT,
        f"Geometry {element.get('id')!r} has no geometric element",
        location=f"geometry.{element.get('id')}",
    )


def _mesh(element: ET.Element) -> Mesh:
    vertices_el = element.find("{*}vertices")
    if vertices_el is None:
        raise DocumentMalformedError(
            MalformedKind.INVALID_CONTENT, "Mesh has no <vertices> element", location="mesh"
        )
    vertices = Vertices(
        id=_required(vertices_el, "id"),
        inputs=tuple(
            UnsharedInput(semantic=_required(inp, "semantic"), source=_required(inp, "source"))
            for inp in vertices_el.findall("{*}input")
        ),
    )
    sources = tuple(_source(child) for child in element.findall("{*}source"))

    primitives: List[Primitive] = []
    for child in element:
        tag = _tag(child)
        if tag == "polylist":
            primitives.append(_polylist(child))
        elif tag in {"lines", "linestrips", "polygons", "triangles", "trifans", "tristrips"}:
            primitives.append(OtherPrimitive(tag))
    return Mesh(vertices=vertices, primitive_list=tuple(primitives), sources=sources)


def _source(element: ET.Element) -> Source:
    source_id = _required(element, "id")
    array: Optional[Array] = None
    for child in element:
        tag = _tag(child)
        if tag == "float_array":
            data = _floats(child.text, f"source.{source_id}.float_array")
            declared = child.get("count")
            if declared is not None and _int(declared, f"source.{source_id}.float_array@count") != len(data):
                raise DocumentMalformedError(
                    MalformedKind.INVALID_CONTENT,
                    f"float_array in {source_id!r} declares {declared} values but holds {len(data)}",
                    location=f"source.{source_id}.float_array",
                    source=source_id,
                )
            array = FloatArray(id=child.get("id"), data=data)
            break
        if tag in ARRAY_TAGS:
            array = OtherArray(tag=tag, id=child.get("id"))
            break

    accessor: Optional[Accessor] = None
    accessor_el = element.find("{*}technique_common/{*}accessor")
    if accessor_el is not None:
        location = f"source.{source_id}.accessor"
        accessor = Accessor(
            source=_required(accessor_el, "source"),
            count=_int(_required(accessor_el, "count"), location),
            stride=_int(accessor_el.get("stride", "1"), location),
            offset=_int(accessor_el.get("offset", "0"), location),
            params=tuple(
                Param(name=param.get("name"), type=param.get("type", "float"))
                for param in accessor_el.findall("{*}param")
            ),
        )
    return Source(id=source_id, array=array, technique_common=accessor)


def _polylist(element: ET.Element) -> Polylist:
    inputs = tuple(
        SharedInput(
            offset=_int(_required(inp, "offset"), "polylist.input@offset"),
            semantic=_required(inp, "semantic"),
            source=_required(inp, "source"),
            set=_int(inp.get("set"), "polylist.input@set") if inp.get("set") is not None else None,
        )
        for inp in element.findall("{*}input")
    )
    vcount_el = element.find("{*}vcount")
    p_el = element.find("{*}p")
    vcount = _ints(vcount_el.text if vcount_el is not None else None, "polylist.vcount")
    p = _ints(p_el.text if p_el is not None else None, "polylist.p")
    count = element.get("count")
    declared = _int(count, "polylist@count") if count is not None else None
    if declared is not None and declared != len(vcount):
        raise DocumentMalformedError(
            MalformedKind.INVALID_CONTENT,
            f"Polylist declares {declared} polygon(s) but vcount lists {len(vcount)}",
            location="polylist@count",
            expected=declared,
            actual=len(vcount),
        )
    return Polylist(
        inputs=inputs,
        vcount=vcount,
        p=p,
        count=declared,
        material=element.get("material"),
    )


def _tag(element: ET.Element) -> str:
    return element.tag.rsplit("}", 1)[-1]


def _required(element: ET.Element, name: str) -> str:
    value = element.get(name)
    if value is None:
        raise DocumentMalformedError(
            MalformedKind.INVALID_CONTENT,
            f"<{_tag(element)}> is missing required attribute {name!r}",
            location=_tag(element),
            attribute=name,
        )
    return value


def _int(value: str, location: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise DocumentMalformedError(
            MalformedKind.INVALID_CONTENT,
            f"Expected an integer, got {value!r}",
            location=location,
        ) from exc


def _ints(text: Optional[str], location: str) -> Tuple[int, ...]:
    return tuple(_int(token, location) for token in (text or "").split())


def _floats(text: Optional[str], location: str) -> Tuple[float, ...]:
    values = []
    for token in (text or "").split():
        try:
            values.append(float(token))
        except ValueError as exc:
            raise DocumentMalformedError(
                MalformedKind.INVALID_CONTENT,
                f"Expected a float, got {token!r}",
                location=location,
            ) from exc
    return tuple(values)
