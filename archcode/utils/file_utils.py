"""File utilities."""
from __future__ import annotations

from pathlib import Path


def ensure_dir(path: str) -> Path:
    """Ensure directory exists and return Path."""
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def read_text_file(path: str) -> str:
    """Read a workspace or theme document as UTF-8.

    - Raises FileNotFoundError when the path does not exist.
    - Raises ValueError for directories and undecodable content.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Missing file: {path}")
    if not p.is_file():
        raise ValueError(f"Not a file: {p.name}")
    try:
        return p.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ValueError(f"Unable to read text file: {p.name}") from exc


def write_text_file(path: str, text: str) -> Path:
    p = Path(path)
    if p.parent != Path("."):
        ensure_dir(str(p.parent))
    p.write_text(text, encoding="utf-8")
    return p
