from __future__ import annotations

from typing import Iterator, Tuple

from .diagnostics import MeshNotFoundError
from .document import Collada, Mesh, Polylist, as_library_geometries, as_polylist
from .logging import get_logger


def iter_polylists(document: Collada) -> Iterator[Tuple[Mesh, Polylist]]:
    for library in document.libraries():
        geometries = as_library_geometries(library)
        if geometries is None:
            continue
        for geometry in geometries.geometries():
            mesh = geometry.as_mesh()
            if mesh is None:
                continue
            for primitive in mesh.primitives():
                polylist = as_polylist(primitive)
                if polylist is not None:
                    yield mesh, polylist


def find_polylist(document: Collada) -> Tuple[Mesh, Polylist]:
    logger = get_logger("locator")
    matches = iter_polylists(document)
    first = next(matches, None)
    if first is None:
        raise MeshNotFoundError()

    # Only one mesh per document is loaded.
    skipped = sum(1 for _ in matches)
    if skipped:
        logger.debug("Ignoring %d additional polylist(s) after the first", skipped)
    mesh, polylist = first
    logger.info(
        "Located polylist with %d polygon(s) in mesh with vertices %s",
        len(polylist.vcount),
        mesh.vertices.id,
    )
    return first
