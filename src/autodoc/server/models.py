"""Pydantic request/response models for the HTTP API."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that serializes to camelCase for API responses."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ExportResponse(CamelModel):
    """Returned when the schema has been stored and rendered."""

    url: str = Field(examples=["https://cdn.example.com/example-service/index.html"])
    # Only the redoc strategy renders a second page
    redoc_url: str | None = Field(
        default=None, examples=["https://cdn.example.com/example-service/redoc.html"]
    )


class ArtifactListResponse(CamelModel):
    all_files: list[str]


class ErrorResponse(CamelModel):
    """Returned when a request fails; details are only in server logs."""

    error: str = Field(examples=["invalid JSON body"])
