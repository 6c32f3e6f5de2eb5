"""Command-line entry point: run the server or drive the export pipeline directly."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from autodoc.errors import AutodocError
from autodoc.schema import decode_schema_document
from autodoc.services import get_services

logger = logging.getLogger(__name__)


async def export(schema_file: str) -> int:
    """Export a schema file and print the same JSON the HTTP API returns."""
    services = get_services()
    try:
        document = decode_schema_document(Path(schema_file).read_bytes())
        result = await services.coordinator.export(document)
    except OSError as exc:
        print(json.dumps({"error": f"cannot read {schema_file}: {exc.strerror}"}))
        return 1
    except AutodocError as exc:
        logger.error("Export failed: %s", exc)
        print(json.dumps({"error": exc.public_message}))
        return 1

    output = {"url": result.url}
    if "redoc.html" in result.urls:
        output["redocUrl"] = result.urls["redoc.html"]
    print(json.dumps(output))
    return 0


def list_artifacts() -> int:
    try:
        urls = get_services().catalog.list_urls()
    except AutodocError as exc:
        logger.error("Listing failed: %s", exc)
        print(json.dumps({"error": exc.public_message}))
        return 1
    print(json.dumps({"allFiles": urls}))
    return 0


async def expand(name: str) -> int:
    try:
        expanded = await get_services().expander.dereference(name)
    except AutodocError as exc:
        logger.error("Dereference failed: %s", exc)
        print(json.dumps({"error": exc.public_message}))
        return 1
    sys.stdout.write(expanded)
    return 0


def serve(host: str | None, port: int | None) -> int:
    import uvicorn

    from autodoc.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "autodoc.server.app:app",
        host=host or settings.host,
        port=port or settings.port,
        log_level="info",
    )
    return 0


def cli():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="autodoc", description="Export OpenAPI schemas to static documentation"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", help="Bind address (default: settings.host)")
    serve_parser.add_argument("--port", type=int, help="Bind port (default: settings.port)")

    export_parser = subparsers.add_parser("export", help="Export a schema file")
    export_parser.add_argument("schema_file", help="Path to an OpenAPI JSON document")

    subparsers.add_parser("list", help="List exported artifact URLs")

    expand_parser = subparsers.add_parser("expand", help="Print a stored schema dereferenced")
    expand_parser.add_argument("name", help="Schema title, with or without .json")

    args = parser.parse_args()
    logging.basicConfig(level=logging.WARNING, stream=sys.stderr)

    if args.command == "serve":
        exit_code = serve(args.host, args.port)
    elif args.command == "export":
        exit_code = asyncio.run(export(args.schema_file))
    elif args.command == "list":
        exit_code = list_artifacts()
    else:
        exit_code = asyncio.run(expand(args.name))
    sys.exit(exit_code)


if __name__ == "__main__":
    cli()
