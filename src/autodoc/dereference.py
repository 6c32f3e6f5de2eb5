"""Dereferencer integration: expand every ``$ref`` of a stored schema."""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from autodoc.config import AutodocSettings, get_settings
from autodoc.errors import AutodocError, DereferenceError, SchemaNotFoundError
from autodoc.locks import TitleLocks
from autodoc.metrics import ExportMetrics, get_metrics
from autodoc.process import ProcessTimeoutError, fill_command, run_process
from autodoc.store import SchemaStore, strip_schema_suffix

logger = logging.getLogger(__name__)


class Dereferencer(ABC):
    """Capability interface for producing the fully expanded form of a schema file."""

    @abstractmethod
    async def expand(self, source: Path) -> str:
        """
        Return the expanded document for ``source`` as JSON text.

        Raises:
            DereferenceError: If the tool fails or its output is not JSON
        """


class CommandDereferencer(Dereferencer):
    """Runs an external tool that prints the expanded schema on stdout."""

    def __init__(
        self,
        command: list[str],
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> None:
        self.command = command
        self.cwd = cwd
        self.timeout = timeout

    async def expand(self, source: Path) -> str:
        command = fill_command(self.command, source=str(source))
        try:
            result = await run_process(
                command, cwd=self.cwd, merge_stderr=True, timeout=self.timeout
            )
        except ProcessTimeoutError as exc:
            raise DereferenceError(f"error running command: {exc}") from exc
        except OSError as exc:
            raise DereferenceError(f"error running command {command[0]!r}: {exc}") from exc

        if result.returncode != 0:
            raise DereferenceError(
                f"error running command: {command[0]!r} exited with status {result.returncode}",
                output=result.stdout,
                returncode=result.returncode,
            )
        try:
            json.loads(result.stdout)
        except ValueError as exc:
            raise DereferenceError("failed to parse JSON", output=result.stdout) from exc
        return result.stdout


class SchemaExpander:
    """Resolves a stored schema by name and runs it through a Dereferencer."""

    def __init__(
        self,
        store: SchemaStore,
        dereferencer: Dereferencer,
        locks: TitleLocks | None = None,
        metrics: ExportMetrics | None = None,
    ) -> None:
        self.store = store
        self.dereferencer = dereferencer
        self.locks = locks or TitleLocks()
        self._metrics = metrics

    @property
    def metrics(self) -> ExportMetrics:
        return self._metrics or get_metrics()

    async def dereference(self, name: str) -> str:
        """
        Expand the stored schema called ``name`` (a trailing ``.json`` is ignored).

        Raises:
            SchemaValidationError: If the name is not a usable title
            SchemaNotFoundError: If no schema is stored under the name
            DereferenceError: If the dereferencer fails
        """
        try:
            expanded = await self._dereference(strip_schema_suffix(name))
        except AutodocError as exc:
            self.metrics.record_dereference(type(exc).__name__)
            raise
        self.metrics.record_dereference("success")
        return expanded

    async def _dereference(self, title: str) -> str:
        source = self.store.path_for(title)
        logger.info("Received request for schema: %s", title)
        async with self.locks.hold(title):
            if not source.is_file():
                raise SchemaNotFoundError(title)
            return await self.dereferencer.expand(source)


def get_dereferencer(settings: AutodocSettings | None = None) -> Dereferencer:
    """Build the configured dereferencer."""
    s = settings or get_settings()
    return CommandDereferencer(s.dereference_command, cwd=s.node_workdir, timeout=s.process_timeout)
