from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


@dataclass
class Diagnostic:
    code: str
    message: str
    severity: str = "ERROR"
    location: Optional[str] = None
    hints: List[str] = field(default_factory=list)
    data: Optional[dict] = None

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "severity": self.severity,
            "location": self.location,
            "hints": self.hints,
            "data": self.data,
        }


class PolyviewError(Exception):
    def __init__(self, diagnostic: Diagnostic):
        super().__init__(diagnostic.message)
        self.diagnostic = diagnostic

    @property
    def code(self) -> str:
        return self.diagnostic.code


class ConfigError(PolyviewError):
    def __init__(self, message: str, *, location: Optional[str] = None):
        super().__init__(Diagnostic(code="E-CONFIG", message=message, location=location))


class MeshLoadError(PolyviewError):
    """A load failure the caller is expected to handle."""


class MeshNotFoundError(MeshLoadError):
    def __init__(self, message: str = "No polylist mesh found in the document"):
        super().__init__(
            Diagnostic(
                code="E-MESH-NOT-FOUND",
                message=message,
                location="library_geometries",
                hints=["Only <polylist> primitives inside <library_geometries> are loaded"],
            )
        )


class MissingPositionError(MeshLoadError):
    def __init__(self, polygon: int, corner: int):
        super().__init__(
            Diagnostic(
                code="E-VERTEX-NO-POSITION",
                message=f"Vertex missing position attribute (polygon {polygon}, corner {corner})",
                location=f"polylist.p[{polygon}][{corner}]",
                hints=["Bind an input with semantic VERTEX to the polylist"],
                data={"polygon": polygon, "corner": corner},
            )
        )


class MeshBuildError(MeshLoadError):
    def __init__(self, message: str, *, data: Optional[dict] = None):
        super().__init__(
            Diagnostic(
                code="E-MESH-BUILD",
                message=f"Failed to build mesh: {message}",
                location="mesh",
                data=data,
            )
        )


class DocumentReadError(MeshLoadError):
    def __init__(self, message: str, *, location: Optional[str] = None):
        super().__init__(Diagnostic(code="E-DOC-READ", message=message, location=location))


class MalformedKind(str, Enum):
    FOREIGN_VERTICES = "FOREIGN_VERTICES"
    MISSING_POSITION_INPUT = "MISSING_POSITION_INPUT"
    UNRESOLVED_SOURCE = "UNRESOLVED_SOURCE"
    UNSUPPORTED_ARRAY = "UNSUPPORTED_ARRAY"
    MISSING_ACCESSOR = "MISSING_ACCESSOR"
    MISSING_COMPONENT = "MISSING_COMPONENT"
    INDEX_OUT_OF_RANGE = "INDEX_OUT_OF_RANGE"
    TRUNCATED_INDEX_STREAM = "TRUNCATED_INDEX_STREAM"
    INVALID_CONTENT = "INVALID_CONTENT"


_MALFORMED_CODES = {
    MalformedKind.FOREIGN_VERTICES: "E-DOC-FOREIGN-VERTICES",
    MalformedKind.MISSING_POSITION_INPUT: "E-DOC-NO-POSITION-INPUT",
    MalformedKind.UNRESOLVED_SOURCE: "E-DOC-SOURCE",
    MalformedKind.UNSUPPORTED_ARRAY: "E-DOC-ARRAY",
    MalformedKind.MISSING_ACCESSOR: "E-DOC-ACCESSOR",
    MalformedKind.MISSING_COMPONENT: "E-DOC-COMPONENT",
    MalformedKind.INDEX_OUT_OF_RANGE: "E-DOC-INDEX",
    MalformedKind.TRUNCATED_INDEX_STREAM: "E-DOC-INDEX-STREAM",
    MalformedKind.INVALID_CONTENT: "E-DOC-CONTENT",
}


class DocumentMalformedError(PolyviewError):
    """The document violates COLLADA structure; retrying will not help.

    ``kind`` says which rule was broken and ``context`` names the ids,
    semantic or source involved.
    """

    def __init__(
        self,
        kind: MalformedKind,
        message: str,
        *,
        location: Optional[str] = None,
        **context: Any,
    ):
        super().__init__(
            Diagnostic(
                code=_MALFORMED_CODES[kind],
                message=message,
                location=location,
                data={"kind": kind.value, **context},
            )
        )
        self.kind = kind
        self.context: Dict[str, Any] = dict(context)


class Diagnostics:
    def __init__(self) -> None:
        self.items: List[Diagnostic] = []

    def add(self, diagnostic: Diagnostic) -> None:
        self.items.append(diagnostic)

    def extend(self, diagnostics: Iterable[Diagnostic] | "Diagnostics") -> None:
        if isinstance(diagnostics, Diagnostics):
            self.items.extend(diagnostics.items)
        else:
            self.items.extend(diagnostics)

    def has_errors(self) -> bool:
        return any(d.severity == "ERROR" for d in self.items)

    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.items if d.severity == "WARNING"]

    def raise_for_errors(self) -> None:
        if self.has_errors():
            # Raise the first error; callers can access the rest via diagnostics
            first = next(d for d in self.items if d.severity == "ERROR")
            raise PolyviewError(first)

    def to_list(self) -> List[dict]:
        return [d.to_dict() for d in self.items]
