"""Tests for the export coordinator."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from autodoc.catalog import ArtifactCatalog
from autodoc.config import AutodocSettings
from autodoc.errors import RenderError, SchemaValidationError, StorageError
from autodoc.export import ExportCoordinator, build_catalog
from autodoc.locks import TitleLocks
from autodoc.renderers import RedocRenderer, RenderStep, ScalarRenderer
from autodoc.schema import SchemaDocument
from autodoc.store import SchemaStore

CDN = "https://cdn.example.com/"


def _doc(title: str = "orders-service", **extra) -> SchemaDocument:
    return SchemaDocument.model_validate(
        {"openapi": "3.0.0", "info": {"title": title, "version": "1.0.0"}, **extra}
    )


def _coordinator(tmp_path, renderer, verify_artifacts: bool = True) -> ExportCoordinator:
    return ExportCoordinator(
        SchemaStore(tmp_path / "schemas"),
        renderer,
        ArtifactCatalog(tmp_path / renderer.artifact_root, CDN, renderer.primary_entrypoint),
        verify_artifacts=verify_artifacts,
    )


class TestScalarExport:
    """Exports through the scalar renderer."""

    @pytest.mark.asyncio
    async def test_orders_service_scenario(self, tmp_path, scalar_command):
        """Scalar export stores the schema and returns the index URL."""
        coordinator = _coordinator(tmp_path, ScalarRenderer([RenderStep(scalar_command)]))

        result = await coordinator.export(_doc())

        assert result.url == "https://cdn.example.com/orders-service/index.html"
        assert result.schema_path == (tmp_path / "schemas" / "orders-service.json").resolve()
        assert result.artifact_dir == (tmp_path / "scalar" / "orders-service").resolve()
        # Renderer received the absolute stored-schema path
        index = (result.artifact_dir / "index.html").read_text()
        assert index == f"<html>{result.schema_path}</html>"

    @pytest.mark.asyncio
    async def test_reexport_overwrites(self, tmp_path, scalar_command):
        """Exporting a title again replaces the stored schema."""
        coordinator = _coordinator(tmp_path, ScalarRenderer([RenderStep(scalar_command)]))
        first = {"openapi": "3.0.0", "info": {"title": "orders-service", "version": "1.0.0"}}
        second = {
            "openapi": "3.1.0",
            "info": {"title": "orders-service", "version": "2.0.0"},
            "paths": {"/orders": {}},
        }

        await coordinator.export(SchemaDocument.model_validate(first))
        result = await coordinator.export(SchemaDocument.model_validate(second))

        assert json.loads(result.schema_path.read_text()) == second

    @pytest.mark.asyncio
    async def test_distinct_titles_are_listed(self, tmp_path, scalar_command):
        """Each exported title appears once in the listing."""
        coordinator = _coordinator(tmp_path, ScalarRenderer([RenderStep(scalar_command)]))
        titles = ["billing", "orders-service", "users"]
        for title in titles:
            await coordinator.export(_doc(title))

        urls = coordinator.catalog.list_urls()

        assert len(urls) == len(titles)
        for title, url in zip(titles, urls, strict=True):
            assert f"/{title}/" in url

    @pytest.mark.asyncio
    async def test_braces_in_title_reach_renderer_verbatim(self, tmp_path, scalar_command):
        """A title containing a placeholder name is passed through unchanged."""
        coordinator = _coordinator(tmp_path, ScalarRenderer([RenderStep(scalar_command)]))

        result = await coordinator.export(_doc("svc-{output}"))

        assert result.schema_path.name == "svc-{output}.json"
        assert result.artifact_dir.name == "svc-{output}"
        index = (result.artifact_dir / "index.html").read_text()
        assert index == f"<html>{result.schema_path}</html>"


class TestRedocExport:
    """Exports through the redoc renderer."""

    @pytest.mark.asyncio
    async def test_returns_both_urls(self, tmp_path, swagger_command, redoc_command):
        """The redoc strategy returns swagger and redoc URLs."""
        renderer = RedocRenderer([RenderStep(swagger_command), RenderStep(redoc_command)])
        coordinator = _coordinator(tmp_path, renderer)

        result = await coordinator.export(_doc())

        assert result.url == f"{CDN}orders-service/swagger.html"
        assert result.urls == {
            "swagger.html": f"{CDN}orders-service/swagger.html",
            "redoc.html": f"{CDN}orders-service/redoc.html",
        }
        assert result.artifact_dir.parent.name == "exported"

    @pytest.mark.asyncio
    async def test_partial_render_is_discarded(self, tmp_path, swagger_command, failing_command):
        """Pages from earlier steps are removed when a later step fails."""
        renderer = RedocRenderer([RenderStep(swagger_command), RenderStep(failing_command)])
        coordinator = _coordinator(tmp_path, renderer)

        with pytest.raises(RenderError):
            await coordinator.export(_doc())

        artifact_dir = tmp_path / "exported" / "orders-service"
        assert artifact_dir.is_dir()
        assert list(artifact_dir.iterdir()) == []


class TestFailures:
    """Failure paths of ExportCoordinator.export()."""

    @pytest.mark.asyncio
    async def test_render_failure_keeps_schema(self, tmp_path, failing_command):
        """A failed render leaves the schema stored and no page."""
        coordinator = _coordinator(tmp_path, ScalarRenderer([RenderStep(failing_command)]))

        with pytest.raises(RenderError) as exc_info:
            await coordinator.export(_doc())

        assert "boom: unsupported schema" in str(exc_info.value)
        assert (tmp_path / "schemas" / "orders-service.json").is_file()
        assert not (tmp_path / "scalar" / "orders-service" / "index.html").exists()

    @pytest.mark.asyncio
    async def test_cleanup_failure_keeps_render_error(self, tmp_path, failing_command):
        """A failing cleanup is logged and the render error is still raised."""
        metrics = MagicMock()
        coordinator = ExportCoordinator(
            SchemaStore(tmp_path / "schemas"),
            ScalarRenderer([RenderStep(failing_command)]),
            ArtifactCatalog(tmp_path / "scalar", CDN, "index.html"),
            metrics=metrics,
        )

        with (
            patch.object(
                coordinator.catalog,
                "discard_entrypoints",
                side_effect=[None, StorageError("error removing index.html")],
            ),
            patch("autodoc.export.logger") as mock_logger,
            pytest.raises(RenderError, match="boom: unsupported schema"),
        ):
            await coordinator.export(_doc())

        mock_logger.error.assert_called_once()
        metrics.record_export.assert_called_once_with("scalar", "RenderError")

    @pytest.mark.asyncio
    async def test_failed_reexport_removes_old_page(self, tmp_path, scalar_command, failing_command):
        """A failed re-export does not leave the previous page."""
        good = _coordinator(tmp_path, ScalarRenderer([RenderStep(scalar_command)]))
        await good.export(_doc())
        bad = _coordinator(tmp_path, ScalarRenderer([RenderStep(failing_command)]))

        with pytest.raises(RenderError):
            await bad.export(_doc())

        assert not (tmp_path / "scalar" / "orders-service" / "index.html").exists()

    @pytest.mark.asyncio
    async def test_missing_output_is_render_error(self, tmp_path, silent_command):
        """A renderer that writes nothing fails verification."""
        coordinator = _coordinator(tmp_path, ScalarRenderer([RenderStep(silent_command)]))
        with pytest.raises(RenderError, match="did not produce index.html"):
            await coordinator.export(_doc())

    @pytest.mark.asyncio
    async def test_speculative_urls_without_verification(self, tmp_path, silent_command):
        """With verification off, URLs are returned unchecked."""
        coordinator = _coordinator(
            tmp_path, ScalarRenderer([RenderStep(silent_command)]), verify_artifacts=False
        )
        result = await coordinator.export(_doc())
        assert result.url == f"{CDN}orders-service/index.html"
        assert not (result.artifact_dir / "index.html").exists()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("title", ["", "..", "../../etc", "a/b"])
    async def test_invalid_title_writes_nothing(self, tmp_path, title):
        """Unusable titles fail before any file is written."""
        renderer = AsyncMock(spec=ScalarRenderer)
        renderer.name = "scalar"
        renderer.artifact_root = "scalar"
        renderer.entrypoints = ("index.html",)
        renderer.primary_entrypoint = "index.html"
        coordinator = _coordinator(tmp_path, renderer)

        with pytest.raises(SchemaValidationError):
            await coordinator.export(_doc(title))

        renderer.render.assert_not_awaited()
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_storage_failure(self, tmp_path, scalar_command):
        """Store write failures surface as StorageError."""
        (tmp_path / "schemas").write_text("file in the way")
        coordinator = _coordinator(tmp_path, ScalarRenderer([RenderStep(scalar_command)]))
        with pytest.raises(StorageError):
            await coordinator.export(_doc())


class TestConcurrency:
    """Per-title serialization of exports."""

    @pytest.mark.asyncio
    async def test_same_title_exports_are_serialized(self, tmp_path):
        """Exports of one title never render at the same time."""
        active = 0
        peak = 0

        class SlowRenderer(ScalarRenderer):
            async def render(self, source, output):
                nonlocal active, peak
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.02)
                (output / "index.html").write_text(source.read_text())
                active -= 1

        coordinator = _coordinator(tmp_path, SlowRenderer([]))
        docs = [_doc(paths={f"/v{i}": {}}) for i in range(3)]

        await asyncio.gather(*(coordinator.export(doc) for doc in docs))

        assert peak == 1
        # Schema file and rendered page come from the same (last) export
        stored = (tmp_path / "schemas" / "orders-service.json").read_text()
        page = (tmp_path / "scalar" / "orders-service" / "index.html").read_text()
        assert stored == page
        assert len(coordinator.locks) == 0

    @pytest.mark.asyncio
    async def test_different_titles_overlap(self, tmp_path):
        """Exports of different titles render concurrently."""
        active = 0
        peak = 0

        class SlowRenderer(ScalarRenderer):
            async def render(self, source, output):
                nonlocal active, peak
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.02)
                (output / "index.html").write_text("ok")
                active -= 1

        coordinator = _coordinator(tmp_path, SlowRenderer([]))
        await asyncio.gather(*(coordinator.export(_doc(t)) for t in ("a", "b", "c")))
        assert peak == 3

    def test_shared_lock_registry(self, tmp_path, scalar_command):
        """An injected lock registry is used as is."""
        locks = TitleLocks()
        renderer = ScalarRenderer([RenderStep(scalar_command)])
        coordinator = ExportCoordinator(
            SchemaStore(tmp_path),
            renderer,
            build_catalog(renderer, _settings_for(tmp_path)),
            locks=locks,
        )
        assert coordinator.locks is locks


def _settings_for(tmp_path):
    return AutodocSettings(storage_root=tmp_path, cdn_url=CDN)


def test_build_catalog_uses_renderer_root(tmp_path):
    """The catalog is rooted at the renderer's artifact root."""
    renderer = RedocRenderer([])
    catalog = build_catalog(renderer, _settings_for(tmp_path))
    assert catalog.root == tmp_path / "exported"
    assert catalog.entrypoint == "swagger.html"
    assert catalog.base_url == CDN


class TestExportMetrics:
    """Metrics recorded by the coordinator."""

    @pytest.mark.asyncio
    async def test_records_success(self, tmp_path, scalar_command):
        """Successful exports record outcome and render time."""
        metrics = MagicMock()
        coordinator = ExportCoordinator(
            SchemaStore(tmp_path / "schemas"),
            ScalarRenderer([RenderStep(scalar_command)]),
            ArtifactCatalog(tmp_path / "scalar", CDN, "index.html"),
            metrics=metrics,
        )

        await coordinator.export(_doc())

        metrics.record_export.assert_called_once_with("scalar", "success")
        metrics.record_render_duration.assert_called_once()
        assert metrics.record_render_duration.call_args.args[0] == "scalar"

    @pytest.mark.asyncio
    async def test_records_failure_class(self, tmp_path, failing_command):
        """Failures record the error class as outcome."""
        metrics = MagicMock()
        coordinator = ExportCoordinator(
            SchemaStore(tmp_path / "schemas"),
            ScalarRenderer([RenderStep(failing_command)]),
            ArtifactCatalog(tmp_path / "scalar", CDN, "index.html"),
            metrics=metrics,
        )

        with pytest.raises(RenderError):
            await coordinator.export(_doc())

        metrics.record_export.assert_called_once_with("scalar", "RenderError")
        # The renderer ran, so its duration is still recorded
        metrics.record_render_duration.assert_called_once()
