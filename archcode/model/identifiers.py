"""Identifier registry: allocates and resolves element identifiers.

Two resolution modes are supported:

- ``flat``: every identifier lives in one namespace.
- ``hierarchical``: an identifier is the dot-joined path of the scopes that
  enclose its declaration, so ``live.aws.region.route53`` and
  ``staging.aws.region.route53`` can coexist.

Regardless of mode, each declaration also records its *qualified path*
(the local names of its enclosing scopes plus its own), which is what
dotted references such as ``spring_pet_clinic.web_application`` match
against.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Literal, Optional, Sequence, Tuple

from archcode.errors import AmbiguousReference, DuplicateIdentifier, InvalidSource, UnresolvedElement


logger = logging.getLogger(__name__)

IdentifierMode = Literal["flat", "hierarchical"]
Scope = Tuple[str, ...]

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    slug = _SLUG_RE.sub("_", (name or "").strip().lower()).strip("_")
    return slug or "element"


@dataclass(frozen=True)
class Declaration:
    id: str
    local: str
    scope: Scope
    sequence: int

    @property
    def qualified(self) -> Scope:
        return self.scope + (self.local,)


class IdentifierRegistry:
    def __init__(self, mode: IdentifierMode = "flat") -> None:
        if mode not in ("flat", "hierarchical"):
            raise ValueError(f"Unknown identifier mode: {mode}")
        self.mode: IdentifierMode = mode
        self._declarations: Dict[str, Declaration] = {}
        self._sequence = 0

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._declarations

    def __len__(self) -> int:
        return len(self._declarations)

    def _compose(self, name: str, scope: Scope) -> str:
        if self.mode == "hierarchical":
            return ".".join(scope + (name,))
        return name

    def _next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    @property
    def sequence(self) -> int:
        """Sequence number of the most recent declaration."""
        return self._sequence

    def declare(self, name: str, scope_path: Sequence[str] = ()) -> str:
        scope = tuple(scope_path)
        if not name or "." in name:
            raise InvalidSource(
                f"Invalid identifier: {name!r}",
                scope=scope,
                identifiers=[name],
            )
        identifier = self._compose(name, scope)
        if identifier in self._declarations:
            raise DuplicateIdentifier(
                f"Identifier '{identifier}' is already declared",
                scope=scope,
                identifiers=[identifier],
            )
        self._declarations[identifier] = Declaration(
            id=identifier,
            local=name,
            scope=scope,
            sequence=self._next_sequence(),
        )
        logger.debug("declared %s (%s mode)", identifier, self.mode)
        return identifier

    def allocate(self, display_name: str, scope_path: Sequence[str] = ()) -> str:
        """Declare an identifier derived from a display name, never colliding."""
        scope = tuple(scope_path)
        base = slugify(display_name)
        candidate = base
        counter = 2
        while self._compose(candidate, scope) in self._declarations:
            candidate = f"{base}_{counter}"
            counter += 1
        return self.declare(candidate, scope)

    def sequence_of(self, identifier: str) -> int:
        return self._declarations[identifier].sequence

    def local_name(self, identifier: str) -> str:
        return self._declarations[identifier].local

    def frame_path(self, identifier: str) -> Scope:
        """Scope path for a block opened by the given declaration."""
        return self._declarations[identifier].qualified

    def resolve(self, reference: str, current_scope: Sequence[str] = ()) -> str:
        """Resolve a reference through the lookup chain of the current scope."""
        scope = tuple(current_scope)
        if not reference:
            raise UnresolvedElement("Empty reference", scope=scope)
        if self.mode == "flat" and reference in self._declarations:
            return reference

        parts = tuple(reference.split("."))
        matches: List[str] = []
        for depth in range(len(scope), -1, -1):
            match = self._find_qualified(scope[:depth] + parts)
            if match is not None and match not in matches:
                matches.append(match)

        if len(matches) > 1:
            raise AmbiguousReference(
                f"Reference '{reference}' matches {', '.join(matches)}",
                scope=scope,
                identifiers=[reference, *matches],
            )
        if not matches:
            raise UnresolvedElement(
                f"Reference '{reference}' does not resolve in scope",
                scope=scope,
                identifiers=[reference],
            )
        return matches[0]

    def lookup(self, reference: str, accept: Optional[Callable[[str], bool]] = None) -> str:
        """Resolve a reference across the whole workspace, independent of scope.

        ``accept`` narrows the candidates, e.g. to container definitions when
        linking an instance.
        """
        accept = accept or (lambda _identifier: True)
        if reference in self._declarations and accept(reference):
            return reference
        parts = tuple(reference.split("."))
        matches = [
            d.id
            for d in self._declarations.values()
            if d.qualified[-len(parts):] == parts and accept(d.id)
        ]
        if len(matches) > 1:
            raise AmbiguousReference(
                f"Reference '{reference}' matches {', '.join(matches)}",
                identifiers=[reference, *matches],
            )
        if not matches:
            raise UnresolvedElement(
                f"Reference '{reference}' is not declared",
                identifiers=[reference],
            )
        return matches[0]

    def _find_qualified(self, qualified: Scope) -> Optional[str]:
        if self.mode == "hierarchical":
            identifier = ".".join(qualified)
            return identifier if identifier in self._declarations else None
        for declaration in self._declarations.values():
            if declaration.qualified == qualified:
                return declaration.id
        return None
