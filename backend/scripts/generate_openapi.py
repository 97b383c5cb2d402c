"""Export the ledger OpenAPI schema.

Usage: ``python scripts/generate_openapi.py [output.json]``. Without an output
path the schema is printed to stdout.
"""

import json
import sys
from pathlib import Path
from typing import Any

from ledger.main import app


def build_schema() -> dict[str, Any]:
    return app.openapi()


def main(argv: list[str]) -> None:
    document = json.dumps(build_schema(), indent=2, sort_keys=True)
    if len(argv) > 1:
        Path(argv[1]).write_text(document + "\n")
    else:
        print(document)


if __name__ == "__main__":
    main(sys.argv)
