"""Artifact catalog: exported documentation directories as CDN URLs."""

import logging
from pathlib import Path

from autodoc.errors import StorageError

logger = logging.getLogger(__name__)


def build_artifact_url(base_url: str, title: str, entrypoint: str) -> str:
    """Compose ``<base><title>/<entrypoint>``; the base is used exactly as configured."""
    return f"{base_url}{title}/{entrypoint}"


class ArtifactCatalog:
    """One directory per exported title under a renderer's artifact root."""

    def __init__(self, root: Path | str, base_url: str, entrypoint: str) -> None:
        self.root = Path(root)
        self.base_url = base_url
        self.entrypoint = entrypoint

    def directory_for(self, title: str) -> Path:
        return (self.root / title).resolve()

    def prepare_directory(self, title: str, entrypoints: tuple[str, ...] = ()) -> Path:
        """
        Create the artifact directory for a title and drop stale entrypoint files.

        No entrypoint file from an earlier render survives this call.

        Raises:
            StorageError: If the directory cannot be created
        """
        path = self.directory_for(title)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"error creating directory {path}: {exc}") from exc
        self.discard_entrypoints(title, entrypoints)
        return path

    def discard_entrypoints(self, title: str, entrypoints: tuple[str, ...]) -> None:
        """
        Delete rendered entrypoint files of a title, keeping the directory.

        Raises:
            StorageError: If a file cannot be removed
        """
        path = self.directory_for(title)
        for name in entrypoints:
            try:
                (path / name).unlink(missing_ok=True)
            except OSError as exc:
                raise StorageError(f"error removing {path / name}: {exc}") from exc

    def url_for(self, title: str, entrypoint: str | None = None) -> str:
        return build_artifact_url(self.base_url, title, entrypoint or self.entrypoint)

    def list_titles(self) -> list[str]:
        """
        Names of the immediate subdirectories of the artifact root, sorted.

        Raises:
            StorageError: If the root does not exist or cannot be read
        """
        try:
            entries = list(self.root.iterdir())
        except OSError as exc:
            raise StorageError(f"error reading directory {self.root}: {exc}") from exc
        return sorted(entry.name for entry in entries if entry.is_dir())

    def list_urls(self) -> list[str]:
        """CDN URL of every artifact directory, whether or not it holds rendered files."""
        urls = [self.url_for(title) for title in self.list_titles()]
        logger.debug("Listed %d artifacts under %s", len(urls), self.root)
        return urls
