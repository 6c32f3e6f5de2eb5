"""Shared test configuration and fixtures.

External tools are replaced by small ``python -c`` programs so the real
subprocess path is exercised without node.
"""

import sys

import pytest

from autodoc.config import AutodocSettings, reset_settings, set_settings
from autodoc.metrics import shutdown_metrics
from autodoc.services import reset_services

CDN_URL = "https://cdn.example.com/"

# argv: -c <source> <output>
WRITE_PAGES = (
    "import pathlib, sys\n"
    "source, output = sys.argv[1], sys.argv[2]\n"
    "for name in sys.argv[3:]:\n"
    "    pathlib.Path(output, name).write_text('<html>' + source + '</html>')\n"
)
FAIL_WITH_STDERR = "import sys\nsys.stderr.write('boom: unsupported schema')\nsys.exit(3)\n"
# argv: -c <source>
EXPAND = (
    "import json, sys\n"
    "doc = json.load(open(sys.argv[1]))\n"
    "doc['expanded'] = True\n"
    "print(json.dumps(doc))\n"
)


def python_command(code: str, *args: str) -> list[str]:
    return [sys.executable, "-c", code, *args]


@pytest.fixture
def scalar_command() -> list[str]:
    return python_command(WRITE_PAGES, "{source}", "{output}", "index.html")


@pytest.fixture
def swagger_command() -> list[str]:
    return python_command(WRITE_PAGES, "{source}", "{output}", "swagger.html")


@pytest.fixture
def redoc_command() -> list[str]:
    return python_command(WRITE_PAGES, "{source}", "{output}", "redoc.html")


@pytest.fixture
def failing_command() -> list[str]:
    return python_command(FAIL_WITH_STDERR, "{source}", "{output}")


@pytest.fixture
def silent_command() -> list[str]:
    """Exits 0 without writing anything."""
    return python_command("pass", "{source}", "{output}")


@pytest.fixture
def expand_command() -> list[str]:
    return python_command(EXPAND, "{source}")


@pytest.fixture
def settings(tmp_path, scalar_command, expand_command):
    """Global settings pointing storage at tmp_path and the tools at python fakes."""
    custom = AutodocSettings(
        cdn_url=CDN_URL,
        storage_root=tmp_path,
        renderer="scalar",
        node_workdir=None,
        scalar_command=scalar_command,
        dereference_command=expand_command,
    )
    set_settings(custom)
    reset_services()
    yield custom
    reset_services()
    reset_settings()


@pytest.fixture(autouse=True)
def _reset_metrics():
    yield
    shutdown_metrics()


@pytest.fixture
def orders_schema() -> dict:
    return {
        "openapi": "3.0.0",
        "info": {"title": "orders-service", "version": "1.0.0"},
    }
