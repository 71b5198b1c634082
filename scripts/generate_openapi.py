"""Write the OpenAPI document of the CineStream API to ``docs/``.

Usage (module mode):
    python -m scripts.generate_openapi [--output docs/cinestream_openapi.yaml]
"""

import argparse
import pathlib

import yaml
from fastapi import FastAPI

DEFAULT_OUTPUT = pathlib.Path("docs/cinestream_openapi.yaml")


def write_openapi(app: FastAPI, output_path: pathlib.Path = DEFAULT_OUTPUT) -> pathlib.Path:
    """Dump ``app.openapi()`` as YAML to *output_path*."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(yaml.safe_dump(app.openapi(), sort_keys=False))
    return output_path


def main() -> None:  # Entry-point for the project script
    """Generate docs/cinestream_openapi.yaml from the FastAPI app."""

    parser = argparse.ArgumentParser(description="Export the OpenAPI document")
    parser.add_argument("--output", type=pathlib.Path, default=DEFAULT_OUTPUT)
    args = parser.parse_args()

    from cinestream.main import app

    path = write_openapi(app, args.output)
    print(f"✔ OpenAPI spec written to {path}")


if __name__ == "__main__":
    main()
