#!/usr/bin/env python3
"""
Export the OpenAPI specification of the Club Events Platform API.
"""

import json
import sys

from club_events_platform.main import app


def export_openapi_spec(output_file: str = "openapi.json") -> None:
    """Write the OpenAPI schema to a JSON file and summarize its paths."""
    openapi_schema = app.openapi()

    with open(output_file, "w", encoding="utf-8") as f:
        json.dump(openapi_schema, f, indent=2, ensure_ascii=False)

    paths = openapi_schema.get("paths", {})
    endpoint_count = sum(len(methods) for methods in paths.values())

    print(f"OpenAPI specification exported to: {output_file}")
    print(f"API title: {openapi_schema.get('info', {}).get('title', 'unknown')}")
    print(f"API version: {openapi_schema.get('info', {}).get('version', 'unknown')}")
    print(f"Total endpoints: {endpoint_count}")

    for path in sorted(paths):
        print(f"  {path}: {', '.join(method.upper() for method in paths[path])}")


def main():
    output_file = sys.argv[1] if len(sys.argv) > 1 else "openapi.json"
    try:
        export_openapi_spec(output_file)
    except OSError as e:
        print(f"Failed to export OpenAPI specification: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
