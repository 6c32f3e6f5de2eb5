"""File-based schema store: one JSON document per title under ``schemas/``."""

import logging
import os
import tempfile
from pathlib import Path

from autodoc.errors import SchemaNotFoundError, SchemaValidationError, StorageError
from autodoc.schema import SchemaDocument, validate_title

logger = logging.getLogger(__name__)

SCHEMA_SUFFIX = ".json"


class SchemaStore:
    """Persist schema documents at ``<root>/<title>.json``, overwriting on rewrite."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def path_for(self, title: str) -> Path:
        """
        Absolute path of the stored schema for a title.

        Raises:
            SchemaValidationError: If the title is not a safe path segment
        """
        validate_title(title)
        root = self.root.resolve()
        path = (root / f"{title}{SCHEMA_SUFFIX}").resolve()
        if path.parent != root:
            raise SchemaValidationError(f"title {title!r} escapes the schema store")
        return path

    def exists(self, title: str) -> bool:
        return self.path_for(title).is_file()

    def write(self, document: SchemaDocument) -> Path:
        """
        Store a document under its title, replacing any earlier version.

        The content is written to a temporary file and renamed into place,
        so readers see either the old or the new document.

        Returns:
            Absolute path of the stored file

        Raises:
            SchemaValidationError: If the title is unusable
            StorageError: If the directory or file cannot be written
        """
        path = self.path_for(document.title)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"error creating directory {path.parent}: {exc}") from exc

        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as fh:
                tmp_name = fh.name
                fh.write(document.to_json())
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"error writing file {path}: {exc}") from exc

        logger.info("Wrote schema %r to %s", document.title, path)
        return path

    def read(self, title: str) -> str:
        """
        Return the stored JSON text for a title.

        Raises:
            SchemaNotFoundError: If nothing is stored under the title
            StorageError: If the file cannot be read
        """
        path = self.path_for(title)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise SchemaNotFoundError(title) from exc
        except OSError as exc:
            raise StorageError(f"error reading file {path}: {exc}") from exc


def strip_schema_suffix(name: str) -> str:
    """Drop one trailing ``.json`` so ``orders.json`` and ``orders`` name the same schema."""
    return name.removesuffix(SCHEMA_SUFFIX)
