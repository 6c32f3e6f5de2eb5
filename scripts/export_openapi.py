"""Write the autodoc API's own OpenAPI document (default: ./openapi.json at the repo root)."""

import json
import sys
from pathlib import Path

from autodoc.server.app import app


def main(argv: list[str]) -> None:
    if argv:
        output = Path(argv[0])
    else:
        output = Path(__file__).resolve().parent.parent / "openapi.json"
    output.write_text(json.dumps(app.openapi(), indent=2) + "\n")
    print(f"OpenAPI document written to {output}")


if __name__ == "__main__":
    main(sys.argv[1:])
