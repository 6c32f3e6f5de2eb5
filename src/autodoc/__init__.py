"""
AutoDoc

OpenAPI schema export service:
- Persist submitted OpenAPI documents by title
- Render static HTML documentation with external tools (Scalar or Redoc)
- Return CDN URLs for the rendered artifacts
- Dereference stored schemas into their fully expanded form
"""

from typing import TYPE_CHECKING

__version__ = "0.1.0"

from autodoc.catalog import ArtifactCatalog, build_artifact_url
from autodoc.config import (
    AutodocSettings,
    configure,
    get_settings,
    reset_settings,
    set_settings,
)
from autodoc.dereference import CommandDereferencer, Dereferencer, SchemaExpander
from autodoc.errors import (
    AutodocError,
    DecodeError,
    DereferenceError,
    RenderError,
    SchemaNotFoundError,
    SchemaValidationError,
    StorageError,
)
from autodoc.export import ExportCoordinator, ExportResult
from autodoc.renderers import RedocRenderer, Renderer, ScalarRenderer, get_renderer
from autodoc.schema import SchemaDocument, decode_schema_document, validate_title
from autodoc.store import SchemaStore

# Lazy imports for the HTTP server (pulls in FastAPI)
if TYPE_CHECKING:
    from autodoc.server.app import app as server_app

__all__ = [
    # Version
    "__version__",
    # Schema
    "SchemaDocument",
    "decode_schema_document",
    "validate_title",
    # Pipeline
    "SchemaStore",
    "ExportCoordinator",
    "ExportResult",
    "ArtifactCatalog",
    "build_artifact_url",
    "Renderer",
    "ScalarRenderer",
    "RedocRenderer",
    "get_renderer",
    "Dereferencer",
    "CommandDereferencer",
    "SchemaExpander",
    # Errors
    "AutodocError",
    "DecodeError",
    "SchemaValidationError",
    "StorageError",
    "SchemaNotFoundError",
    "RenderError",
    "DereferenceError",
    # Config
    "get_settings",
    "set_settings",
    "reset_settings",
    "configure",
    "AutodocSettings",
    # Server
    "server_app",
]


def __getattr__(name: str):
    """Lazy import for the server app."""
    if name == "server_app":
        from autodoc.server.app import app

        return app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
