"""OpenAPI schema document model and identity rules."""

import json
import unicodedata
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ModelWrapValidatorHandler,
    PrivateAttr,
    ValidationError,
    model_validator,
)
from pydantic_core import to_jsonable_python

from autodoc.errors import DecodeError, SchemaValidationError


class SchemaInfo(BaseModel):
    """The ``info`` object. Unknown members (contact, license, x-*) are kept."""

    model_config = ConfigDict(extra="allow")

    title: str = Field(examples=["example-service"])
    version: str = Field(examples=["1.0.0"])
    description: str | None = None
    terms_of_service: str | None = Field(default=None, alias="termsOfService")


class SchemaDocument(BaseModel):
    """Full OpenAPI schema body accepted for export.

    Only the shape is checked; no OpenAPI semantics are validated.
    """

    model_config = ConfigDict(extra="allow")

    openapi: str = Field(examples=["3.0.0"])
    info: SchemaInfo
    paths: dict[str, Any] | None = None
    components: dict[str, Any] | None = None
    servers: list[dict[str, Any]] | None = None
    tags: list[dict[str, Any]] | None = None
    security: list[dict[str, Any]] | None = None

    # The decoded body, kept so the stored file uses the client's own keys
    _body: dict[str, Any] | None = PrivateAttr(default=None)

    @model_validator(mode="wrap")
    @classmethod
    def _keep_body(cls, data: Any, handler: ModelWrapValidatorHandler["SchemaDocument"]):
        document = handler(data)
        if isinstance(data, dict):
            document._body = data
        return document

    @property
    def title(self) -> str:
        return self.info.title

    def to_json(self) -> str:
        """Serialize exactly the members the client sent, under the keys it used."""
        if self._body is not None:
            data = to_jsonable_python(self._body, by_alias=True)
        else:
            data = self.model_dump(mode="json", by_alias=True, exclude_unset=True)
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def decode_schema_document(raw: bytes | str) -> SchemaDocument:
    """
    Decode a request body into a SchemaDocument.

    Raises:
        DecodeError: If the body is not JSON or lacks the required members
    """
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise DecodeError(f"error decoding JSON: {exc}") from exc
    try:
        return SchemaDocument.model_validate(data)
    except ValidationError as exc:
        raise DecodeError(f"error decoding schema document: {exc}") from exc


def validate_title(title: str) -> str:
    """
    Check that a title can be used as a single filesystem path segment.

    Returns the title unchanged.

    Raises:
        SchemaValidationError: For empty titles, ``.``/``..``, path
            separators and control characters
    """
    if not title or not title.strip():
        raise SchemaValidationError("info.title must be a non-empty string")
    if title in (".", ".."):
        raise SchemaValidationError(f"info.title {title!r} is reserved")
    if "/" in title or "\\" in title:
        raise SchemaValidationError(f"info.title {title!r} must not contain path separators")
    if any(unicodedata.category(ch) == "Cc" for ch in title):
        raise SchemaValidationError(f"info.title {title!r} must not contain control characters")
    return title
