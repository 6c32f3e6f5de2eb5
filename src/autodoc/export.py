"""
Export coordinator: schema document in, CDN artifact URLs out.

Pipeline per request:
    1. validate the title (the storage and artifact identity)
    2. write ``schemas/<title>.json``, replacing any earlier export
    3. ensure ``<artifact root>/<title>/`` exists and clear old entrypoints
    4. run the renderer with both absolute paths
    5. optionally check the entrypoint files were produced
    6. compose the CDN URLs

Steps 2-5 run under a per-title lock. There is no rollback: a render
failure leaves the new schema stored and no entrypoint files.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from autodoc.catalog import ArtifactCatalog
from autodoc.config import AutodocSettings, get_settings
from autodoc.errors import AutodocError, RenderError, StorageError
from autodoc.locks import TitleLocks
from autodoc.metrics import ExportMetrics, get_metrics
from autodoc.renderers import Renderer
from autodoc.schema import SchemaDocument, validate_title
from autodoc.store import SchemaStore

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    """Outcome of a successful export."""

    title: str
    schema_path: Path
    artifact_dir: Path
    urls: dict[str, str] = field(default_factory=dict)  # entrypoint -> CDN URL

    @property
    def url(self) -> str:
        """URL of the renderer's primary entrypoint."""
        return next(iter(self.urls.values()))


class ExportCoordinator:
    """
    Mediates between the schema store, the renderer and the artifact catalog.

    Supports dependency injection of every collaborator for testing.
    """

    def __init__(
        self,
        store: SchemaStore,
        renderer: Renderer,
        catalog: ArtifactCatalog,
        *,
        locks: TitleLocks | None = None,
        verify_artifacts: bool = True,
        metrics: ExportMetrics | None = None,
    ) -> None:
        self.store = store
        self.renderer = renderer
        self.catalog = catalog
        self.locks = locks or TitleLocks()
        self.verify_artifacts = verify_artifacts
        self._metrics = metrics

    @property
    def metrics(self) -> ExportMetrics:
        return self._metrics or get_metrics()

    async def export(self, document: SchemaDocument) -> ExportResult:
        """
        Store a schema and render its documentation.

        Args:
            document: Decoded schema; ``info.title`` is its identity

        Returns:
            ExportResult with the stored path, output directory and URLs

        Raises:
            SchemaValidationError: If the title cannot be used as a path segment
            StorageError: If the schema or artifact directory cannot be written
            RenderError: If the renderer fails or leaves entrypoints missing
        """
        try:
            result = await self._export(document)
        except AutodocError as exc:
            self.metrics.record_export(self.renderer.name, type(exc).__name__)
            raise
        self.metrics.record_export(self.renderer.name, "success")
        return result

    async def _export(self, document: SchemaDocument) -> ExportResult:
        title = validate_title(document.title)
        logger.info("Accepted a new schema: %s", title)

        async with self.locks.hold(title):
            schema_path = self.store.write(document)
            artifact_dir = self.catalog.prepare_directory(title, self.renderer.entrypoints)

            try:
                await self._render(schema_path, artifact_dir)
            except RenderError:
                # a multi-step renderer may have written some pages before failing
                try:
                    self.catalog.discard_entrypoints(title, self.renderer.entrypoints)
                except StorageError as cleanup_exc:
                    logger.error("Cleanup after failed render of %s failed: %s", title, cleanup_exc)
                raise

        urls = {name: self.catalog.url_for(title, name) for name in self.renderer.entrypoints}
        logger.info("Exported: %s", title)
        logger.info("URL: %s", urls[self.renderer.primary_entrypoint])
        return ExportResult(
            title=title,
            schema_path=schema_path,
            artifact_dir=artifact_dir,
            urls=urls,
        )

    async def _render(self, schema_path: Path, artifact_dir: Path) -> None:
        started = time.perf_counter()
        try:
            await self.renderer.render(schema_path, artifact_dir)
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            self.metrics.record_render_duration(self.renderer.name, elapsed_ms)

        if self.verify_artifacts:
            missing = self.renderer.missing_entrypoints(artifact_dir)
            if missing:
                raise RenderError(
                    f"renderer {self.renderer.name!r} did not produce {', '.join(missing)} "
                    f"in {artifact_dir}"
                )


def build_catalog(renderer: Renderer, settings: AutodocSettings | None = None) -> ArtifactCatalog:
    """Artifact catalog for the renderer's root under the configured storage root."""
    s = settings or get_settings()
    return ArtifactCatalog(
        s.storage_root / renderer.artifact_root,
        base_url=s.cdn_url,
        entrypoint=renderer.primary_entrypoint,
    )
