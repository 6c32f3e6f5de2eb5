"""Exception hierarchy for the export pipeline.

Every error carries a short ``public_message`` that is safe to return to
HTTP clients. Operational detail (stderr, tool output, filesystem paths)
stays on the exception and in ``str(exc)`` for server-side logs.
"""


class AutodocError(Exception):
    """Base class for all export pipeline failures."""

    public_message = "request failed"

    def __init__(self, message: str, *, public_message: str | None = None) -> None:
        super().__init__(message)
        if public_message is not None:
            self.public_message = public_message


class DecodeError(AutodocError):
    """The request body is not a decodable schema document."""

    public_message = "invalid JSON body"


class SchemaValidationError(AutodocError):
    """The schema's identity field (``info.title``) cannot be used."""

    def __init__(self, message: str) -> None:
        # the reason names only the offending title, so clients may see it
        super().__init__(message, public_message=message)


class StorageError(AutodocError):
    """A filesystem read, write or mkdir failed."""

    public_message = "storage failure"


class SchemaNotFoundError(StorageError):
    """No schema has been stored under the requested title."""

    def __init__(self, title: str) -> None:
        super().__init__(
            f"no stored schema for title {title!r}",
            public_message=f"schema {title!r} not found",
        )
        self.title = title


class RenderError(AutodocError):
    """The documentation renderer failed to spawn, exited non-zero or produced no output."""

    public_message = "documentation rendering failed"

    def __init__(self, message: str, *, stderr: str = "", returncode: int | None = None) -> None:
        detail = f"{message}, stderr: {stderr}" if stderr else message
        super().__init__(detail)
        self.stderr = stderr
        self.returncode = returncode


class DereferenceError(AutodocError):
    """The dereferencer failed or emitted output that is not JSON."""

    public_message = "schema dereference failed"

    def __init__(self, message: str, *, output: str = "", returncode: int | None = None) -> None:
        detail = f"{message}; output: {output}" if output else message
        super().__init__(detail)
        self.output = output
        self.returncode = returncode
