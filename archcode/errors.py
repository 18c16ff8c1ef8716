"""Build error kinds.

Every error aborts the current workspace build. Each carries enough context
(declaring scope path and offending identifiers) to locate the faulty
declaration.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Sequence


class BuildError(Exception):
    kind = "BuildError"

    def __init__(
        self,
        message: str,
        *,
        scope: Sequence[str] = (),
        identifiers: Iterable[str] = (),
        phase: Optional[str] = None,
        line: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.scope = tuple(scope)
        self.identifiers = tuple(identifiers)
        self.phase = phase
        self.line = line

    @property
    def location(self) -> str:
        return ".".join(self.scope) or "<workspace>"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "phase": self.phase,
            "scope": list(self.scope),
            "location": self.location,
            "line": self.line,
            "identifiers": list(self.identifiers),
        }

    def __str__(self) -> str:
        return f"{self.kind} at {self.location}: {self.message}"


class DuplicateIdentifier(BuildError):
    kind = "DuplicateIdentifier"


class DuplicateRelationship(DuplicateIdentifier):
    kind = "DuplicateRelationship"


class AmbiguousReference(BuildError):
    kind = "AmbiguousReference"


class UnresolvedElement(BuildError):
    kind = "UnresolvedElement"


class CyclicScopeReference(BuildError):
    kind = "CyclicScopeReference"


class EmptyView(BuildError):
    kind = "EmptyView"


class InvalidAnimationStep(BuildError):
    kind = "InvalidAnimationStep"


class ThemeLoadFailure(BuildError):
    kind = "ThemeLoadFailure"


class InvalidSource(BuildError):
    kind = "InvalidSource"
