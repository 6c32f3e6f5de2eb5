"""
Configuration for the autodoc service.

Uses pydantic-settings to load from environment variables.
Supports dependency injection for testing flexibility.
"""

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

RendererName = Literal["scalar", "redoc"]


class AutodocSettings(BaseSettings):
    """Service configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    # Public base of the CDN serving the artifact roots (read from CDN_URL)
    cdn_url: str = ""

    # Storage layout: <storage_root>/schemas and <storage_root>/<artifact root>
    storage_root: Path = Path(".")

    # Renderer strategy and the external commands behind it.
    # {source} and {output} are replaced with absolute paths.
    renderer: RendererName = "scalar"
    node_workdir: Path | None = Path("node_js")
    scalar_command: list[str] = ["node", "scalar.js", "{source}", "{output}"]
    swagger_command: list[str] = ["/bin/bash", "html-swagger.sh", "{source}", "{output}/swagger.html"]
    redoc_command: list[str] = [
        "npx",
        "--no-install",
        "@redocly/cli",
        "build-docs",
        "{source}",
        "--output={output}/redoc.html",
    ]
    dereference_command: list[str] = ["node", "deref.js", "{source}"]

    # None waits for external tools forever
    process_timeout: float | None = None
    verify_artifacts: bool = True

    # HTTP
    cors_origins: str = "*"
    host: str = "0.0.0.0"
    port: int = 9090

    # OTLP Configuration (for metrics export)
    metrics_enabled: bool = False
    otlp_endpoint: str = "http://localhost:4317"
    is_otlp_insecure: bool = True
    service_name: str = "autodoc"
    service_environment: str = "development"

    @property
    def schemas_dir(self) -> Path:
        return self.storage_root / "schemas"


# Global settings instance
_settings: AutodocSettings | None = None


def get_settings() -> AutodocSettings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = AutodocSettings()
    return _settings


def configure(**kwargs: object) -> None:
    """
    Configure settings programmatically.

    Args:
        **kwargs: Settings to override

    Example:
        >>> configure(cdn_url="https://cdn.example.com/", renderer="redoc")
    """
    global _settings
    current = get_settings().model_dump()
    current.update({k: v for k, v in kwargs.items() if v is not None})
    _settings = AutodocSettings(**current)


def reset_settings() -> None:
    """
    Reset the global settings instance.

    The next call to get_settings() will read the environment again.
    """
    global _settings
    _settings = None


def set_settings(settings: AutodocSettings) -> None:
    """
    Set a custom settings instance.

    Example:
        >>> set_settings(AutodocSettings(storage_root=tmp_path))
        >>> get_settings().schemas_dir
        PosixPath('.../schemas')
    """
    global _settings
    _settings = settings
