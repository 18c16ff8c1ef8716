"""CLI interface."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer

from archcode.errors import BuildError
from archcode.utils.config import settings
from archcode.utils.file_utils import write_text_file
from archcode.workspace import build_workspace_file

app = typer.Typer(add_completion=False)


def _configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _error_exit(exc: BuildError) -> typer.Exit:
    typer.echo(json.dumps({"error": exc.to_dict()}, indent=2, sort_keys=True))
    return typer.Exit(code=1)


def _output_path(output: str) -> Path:
    """Bare file names land in the configured output directory."""
    path = Path(output)
    if path.is_absolute() or path.parent != Path("."):
        return path
    return Path(settings.output_dir) / path


@app.command()
def build(
    source: str = typer.Argument(..., help="Path to a workspace JSON document."),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write the payload here instead of stdout."),
    identifiers: Optional[str] = typer.Option(None, "--identifiers", help="flat or hierarchical."),
):
    """Build a workspace and emit its render payload."""
    _configure_logging()
    if identifiers not in (None, "flat", "hierarchical"):
        raise typer.BadParameter("--identifiers must be 'flat' or 'hierarchical'")
    try:
        payload = build_workspace_file(source, identifiers)
    except BuildError as exc:
        raise _error_exit(exc) from exc
    if output:
        path = write_text_file(str(_output_path(output)), payload.to_json() + "\n")
        typer.echo(f"Wrote {path}")
    else:
        typer.echo(payload.to_json())


@app.command()
def validate(
    source: str = typer.Argument(..., help="Path to a workspace JSON document."),
):
    """Build a workspace without emitting the payload."""
    _configure_logging()
    try:
        payload = build_workspace_file(source)
    except BuildError as exc:
        raise _error_exit(exc) from exc
    typer.echo(
        f"OK: {len(payload.model.elements)} elements, "
        f"{len(payload.model.relationships)} relationships, {len(payload.views)} views"
    )


if __name__ == "__main__":
    app()
