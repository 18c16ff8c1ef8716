"""Load a workspace declaration document into the declaration AST."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List

from pydantic import ValidationError

from archcode.dsl.ast import WorkspaceDecl
from archcode.errors import InvalidSource
from archcode.utils.file_utils import read_text_file


logger = logging.getLogger(__name__)


def _error_paths(exc: ValidationError) -> List[str]:
    return [".".join(str(part) for part in err["loc"]) for err in exc.errors()]


def parse_workspace(data: Dict[str, Any]) -> WorkspaceDecl:
    """Validate a decoded document; a top-level ``workspace`` key is optional."""
    if not isinstance(data, dict):
        raise InvalidSource("Workspace source must be a JSON object", phase="source")
    if set(data.keys()) == {"workspace"}:
        data = data["workspace"]
    try:
        return WorkspaceDecl.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        raise InvalidSource(
            f"{first['msg']} ({exc.error_count()} validation error(s))",
            scope=[str(part) for part in first["loc"]],
            identifiers=_error_paths(exc),
            phase="source",
        ) from exc


def loads_workspace(text: str) -> WorkspaceDecl:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidSource(
            f"Invalid JSON at line {exc.lineno} column {exc.colno}: {exc.msg}",
            phase="source",
            line=exc.lineno,
        ) from exc
    return parse_workspace(data)


def load_workspace(path: str) -> WorkspaceDecl:
    try:
        text = read_text_file(path)
    except (FileNotFoundError, ValueError) as exc:
        raise InvalidSource(str(exc), identifiers=[path], phase="source") from exc
    logger.info("loaded workspace source %s", path)
    return loads_workspace(text)
