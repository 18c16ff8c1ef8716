"""Scope stack for nested declaration blocks."""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple


@dataclass
class ScopeFrame:
    path: Tuple[str, ...]
    element: Optional[str] = None  # element owning the block, if any
    environment: Optional[str] = None
    declared: List[str] = field(default_factory=list)


class ScopeStack:
    def __init__(self) -> None:
        self._frames: List[ScopeFrame] = [ScopeFrame(path=())]

    def __len__(self) -> int:
        return len(self._frames)

    @property
    def current(self) -> ScopeFrame:
        return self._frames[-1]

    @property
    def path(self) -> Tuple[str, ...]:
        return self.current.path

    @property
    def element(self) -> Optional[str]:
        return self.current.element

    @property
    def environment(self) -> Optional[str]:
        for frame in reversed(self._frames):
            if frame.environment is not None:
                return frame.environment
        return None

    def chain(self) -> List[ScopeFrame]:
        """Frames from the innermost outward."""
        return list(reversed(self._frames))

    def record(self, identifier: str) -> None:
        self.current.declared.append(identifier)

    @contextmanager
    def enter(
        self,
        path: Tuple[str, ...],
        *,
        element: Optional[str] = None,
        environment: Optional[str] = None,
    ) -> Iterator[ScopeFrame]:
        frame = ScopeFrame(path=path, element=element, environment=environment)
        self._frames.append(frame)
        try:
            yield frame
        finally:
            self._frames.pop()
