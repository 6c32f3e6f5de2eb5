"""
Process-wide service objects built from the global settings.

The HTTP routes and the CLI share one coordinator, expander and catalog,
and therefore one per-title lock registry.
"""

from dataclasses import dataclass

from autodoc.catalog import ArtifactCatalog
from autodoc.config import AutodocSettings, get_settings
from autodoc.dereference import SchemaExpander, get_dereferencer
from autodoc.export import ExportCoordinator, build_catalog
from autodoc.locks import TitleLocks
from autodoc.renderers import get_renderer
from autodoc.store import SchemaStore


@dataclass
class Services:
    coordinator: ExportCoordinator
    expander: SchemaExpander
    catalog: ArtifactCatalog


# Global services instance
_services: Services | None = None


def build_services(settings: AutodocSettings | None = None) -> Services:
    """Wire store, renderer, dereferencer and catalog for the given settings."""
    s = settings or get_settings()
    locks = TitleLocks()
    store = SchemaStore(s.schemas_dir)
    renderer = get_renderer(s)
    catalog = build_catalog(renderer, s)
    return Services(
        coordinator=ExportCoordinator(
            store,
            renderer,
            catalog,
            locks=locks,
            verify_artifacts=s.verify_artifacts,
        ),
        expander=SchemaExpander(store, get_dereferencer(s), locks=locks),
        catalog=catalog,
    )


def get_services() -> Services:
    """Get the global services instance."""
    global _services
    if _services is None:
        _services = build_services()
    return _services


def reset_services() -> None:
    """Drop the global services so the next get_services() re-reads settings."""
    global _services
    _services = None


def get_coordinator() -> ExportCoordinator:
    return get_services().coordinator


def get_expander() -> SchemaExpander:
    return get_services().expander


def get_catalog() -> ArtifactCatalog:
    return get_services().catalog
