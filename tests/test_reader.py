from __future__ import annotations

from pathlib import Path

import pytest

from polyview import load_mesh_from_document
from polyview.core.diagnostics import DocumentMalformedError, DocumentReadError, MalformedKind
from polyview.core.document import FloatArray, LibraryGeometries, OtherLibrary
from polyview.core.reader import parse_document, read_document

ROOT = Path(__file__).resolve().parents[1]


def test_read_triangle_document():
    document = read_document(ROOT / "examples" / "triangle.dae")
    libraries = list(document.libraries())
    assert isinstance(libraries[0], OtherLibrary)
    geometries = libraries[1]
    assert isinstance(geometries, LibraryGeometries)

    geometry = next(geometries.geometries())
    assert geometry.name == "Triangle"
    mesh = geometry.as_mesh()
    assert mesh.vertices.id == "Triangle-mesh-vertices"
    assert mesh.vertices.inputs[0].source_id() == "Triangle-mesh-positions"

    positions = mesh.find_source("Triangle-mesh-positions")
    assert isinstance(positions.array, FloatArray)
    assert positions.array.data == (0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 1.0, 0.0)
    accessor = positions.common_accessor()
    assert accessor.stride == 3 and accessor.count == 3
    assert [param.name for param in accessor.params] == ["X", "Y", "Z"]

    polylist = next(mesh.primitives())
    assert polylist.vcount == (3,)
    assert polylist.p == (0, 0, 1, 1, 2, 2)
    assert [(i.offset, i.semantic) for i in polylist.inputs] == [(0, "VERTEX"), (1, "NORMAL")]


def test_missing_file_is_read_error(tmp_path):
    with pytest.raises(DocumentReadError) as excinfo:
        read_document(tmp_path / "missing.dae")
    assert excinfo.value.code == "E-DOC-READ"


def test_invalid_xml_is_read_error():
    with pytest.raises(DocumentReadError):
        parse_document("<COLLADA><library_geometries>")


def test_non_collada_root_is_read_error():
    with pytest.raises(DocumentReadError):
        parse_document("<scene/>")


def test_non_numeric_float_array_is_malformed():
    content = """
    <COLLADA version="1.4.1">
      <library_geometries>
        <geometry id="g">
          <mesh>
            <source id="s"><float_array id="a" count="3">0 one 2</float_array></source>
            <vertices id="v"><input semantic="POSITION" source="#s"/></vertices>
          </mesh>
        </geometry>
      </library_geometries>
    </COLLADA>
    """
    with pytest.raises(DocumentMalformedError) as excinfo:
        parse_document(content)
    assert excinfo.value.kind is MalformedKind.INVALID_CONTENT


def test_other_array_and_primitive_are_tagged():
    content = """
    <COLLADA xmlns="http://www.collada.org/2005/11/COLLADASchema" version="1.4.1">
      <library_geometries>
        <geometry id="g">
          <mesh>
            <source id="s"><int_array id="a" count="1">4</int_array></source>
            <vertices id="v"><input semantic="POSITION" source="#s"/></vertices>
            <triangles count="0"><input semantic="VERTEX" source="#v" offset="0"/></triangles>
          </mesh>
        </geometry>
      </library_geometries>
    </COLLADA>
    """
    document = parse_document(content)
    mesh = next(next(document.libraries()).geometries()).as_mesh()
    assert mesh.find_source("s").array.tag == "int_array"
    assert mesh.find_source("s").common_accessor() is None
    assert next(mesh.primitives()).tag == "triangles"


def _triangle_with(polylist_attrs: str, offset: str = "0") -> str:
    return f"""
    <COLLADA version="1.4.1">
      <library_geometries>
        <geometry id="g">
          <mesh>
            <source id="s">
              <float_array id="a" count="9">0 0 0 1 0 0 0 1 0</float_array>
              <technique_common>
                <accessor source="#a" count="3" stride="3">
                  <param name="X" type="float"/>
                  <param name="Y" type="float"/>
                  <param name="Z" type="float"/>
                </accessor>
              </technique_common>
            </source>
            <vertices id="v"><input semantic="POSITION" source="#s"/></vertices>
            <polylist {polylist_attrs}>
              <input semantic="VERTEX" source="#v" offset="{offset}"/>
              <vcount>3</vcount>
              <p>0 1 2</p>
            </polylist>
          </mesh>
        </geometry>
      </library_geometries>
    </COLLADA>
    """


def test_polylist_count_must_match_vcount():
    with pytest.raises(DocumentMalformedError) as excinfo:
        parse_document(_triangle_with('count="2"'))
    assert excinfo.value.kind is MalformedKind.INVALID_CONTENT
    assert excinfo.value.context == {"expected": 2, "actual": 1}


def test_negative_input_offset_fails_decoding():
    document = parse_document(_triangle_with('count="1"', offset="-1"))
    with pytest.raises(DocumentMalformedError) as excinfo:
        load_mesh_from_document(document)
    assert excinfo.value.kind is MalformedKind.INVALID_CONTENT
