"""polyview package."""

from .api import LoadResult, load_mesh, load_mesh_from_document
from .core.version import __version__

__all__ = ["LoadResult", "load_mesh", "load_mesh_from_document", "__version__"]
