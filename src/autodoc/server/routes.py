"""API route handlers for the documentation exporter."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response

from autodoc.catalog import ArtifactCatalog
from autodoc.dereference import SchemaExpander
from autodoc.export import ExportCoordinator
from autodoc.schema import SchemaDocument
from autodoc.server.models import ArtifactListResponse, ErrorResponse, ExportResponse
from autodoc.services import get_catalog, get_coordinator, get_expander

REDOC_ENTRYPOINT = "redoc.html"

router = APIRouter()
api_router = APIRouter(
    prefix="/api/v1",
    tags=["openapi"],
    responses={400: {"model": ErrorResponse}},
)


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@api_router.post(
    "/openapi-export",
    response_model=ExportResponse,
    summary="Export OpenAPI schema to static documentation",
)
async def openapi_export(
    schema: SchemaDocument,
    coordinator: Annotated[ExportCoordinator, Depends(get_coordinator)],
) -> JSONResponse:
    """Store a full OpenAPI document, render its documentation and return the CDN URL."""
    result = await coordinator.export(schema)
    response = ExportResponse(url=result.url, redoc_url=result.urls.get(REDOC_ENTRYPOINT))
    return JSONResponse(content=response.model_dump(by_alias=True, exclude_none=True))


@api_router.get(
    "/all",
    response_model=ArtifactListResponse,
    summary="List every exported artifact",
)
async def list_all(
    catalog: Annotated[ArtifactCatalog, Depends(get_catalog)],
) -> JSONResponse:
    """CDN URL of the entry page of every exported documentation directory."""
    response = ArtifactListResponse(all_files=catalog.list_urls())
    return JSONResponse(content=response.model_dump(by_alias=True))


@api_router.get(
    "/expand/{name}",
    summary="Return the dereferenced OpenAPI schema",
    responses={200: {"content": {"application/json": {}}}},
)
async def expand(
    name: str,
    expander: Annotated[SchemaExpander, Depends(get_expander)],
) -> Response:
    """The stored schema ``name`` with every ``$ref`` inlined, exactly as the dereferencer printed it."""
    expanded = await expander.dereference(name)
    return Response(content=expanded, media_type="application/json")
