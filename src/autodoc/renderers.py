"""
Documentation renderer strategies.

A renderer turns a stored schema file into static HTML inside an output
directory by running external tools. Two strategies exist:

- ``scalar``: one step writing ``index.html`` under ``scalar/``
- ``redoc``: the legacy pair writing ``swagger.html`` and ``redoc.html``
  under ``exported/``

Both are selected by ``AutodocSettings.renderer`` through get_renderer().
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from autodoc.config import AutodocSettings, get_settings
from autodoc.errors import RenderError
from autodoc.process import ProcessTimeoutError, fill_command, run_process

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderStep:
    """One external command of a rendering strategy."""

    command: list[str]
    cwd: Path | None = None


class Renderer(ABC):
    """Capability interface for producing static documentation."""

    name: str
    artifact_root: str
    entrypoints: tuple[str, ...]

    @property
    def primary_entrypoint(self) -> str:
        return self.entrypoints[0]

    @abstractmethod
    async def render(self, source: Path, output: Path) -> None:
        """
        Render ``source`` into the ``output`` directory.

        Raises:
            RenderError: If any tool fails to spawn or exits non-zero
        """

    def missing_entrypoints(self, output: Path) -> list[str]:
        """Entrypoint files that are absent from ``output``."""
        return [name for name in self.entrypoints if not (output / name).is_file()]


class CommandRenderer(Renderer):
    """Renderer that runs a fixed sequence of command steps, stopping at the first failure."""

    def __init__(self, steps: list[RenderStep], timeout: float | None = None) -> None:
        self.steps = steps
        self.timeout = timeout

    async def render(self, source: Path, output: Path) -> None:
        for step in self.steps:
            await self._run_step(step, source, output)

    async def _run_step(self, step: RenderStep, source: Path, output: Path) -> None:
        command = fill_command(step.command, source=str(source), output=str(output))
        try:
            result = await run_process(command, cwd=step.cwd, timeout=self.timeout)
        except ProcessTimeoutError as exc:
            raise RenderError(f"error running command: {exc}") from exc
        except OSError as exc:
            raise RenderError(f"error running command {command[0]!r}: {exc}") from exc

        if result.returncode != 0:
            raise RenderError(
                f"error running command: {command[0]!r} exited with status {result.returncode}",
                stderr=result.stderr,
                returncode=result.returncode,
            )


class ScalarRenderer(CommandRenderer):
    name = "scalar"
    artifact_root = "scalar"
    entrypoints = ("index.html",)


class RedocRenderer(CommandRenderer):
    """Legacy dual-file pipeline: Swagger UI page first, then Redoc."""

    name = "redoc"
    artifact_root = "exported"
    entrypoints = ("swagger.html", "redoc.html")


def get_renderer(settings: AutodocSettings | None = None) -> Renderer:
    """Build the renderer strategy selected by configuration."""
    s = settings or get_settings()
    if s.renderer == "scalar":
        return ScalarRenderer(
            [RenderStep(s.scalar_command, s.node_workdir)],
            timeout=s.process_timeout,
        )
    if s.renderer == "redoc":
        return RedocRenderer(
            [
                RenderStep(s.swagger_command),
                RenderStep(s.redoc_command, s.node_workdir),
            ],
            timeout=s.process_timeout,
        )
    raise ValueError(f"Unknown renderer: {s.renderer!r}")
