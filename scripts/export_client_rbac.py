"""Write the display-only role catalog for the presentation layer.

Usage:
    python scripts/export_client_rbac.py [output.json]

The file is derived from dkn.kernel.permissions.catalog and must not be
edited by hand; rerun this script after changing the catalog.
"""
import json
import sys
from pathlib import Path

from dkn.kernel.permissions.catalog import CATALOG

DEFAULT_OUTPUT = Path("client_rbac.json")


def export(output: Path) -> Path:
    payload = {"roles": CATALOG.client_projection()}
    output.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    return output


if __name__ == "__main__":
    target = Path(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_OUTPUT
    path = export(target)
    print(f"Wrote {len(CATALOG.roles())} roles to {path}")
