"""Render payload: the fully resolved, renderer-agnostic output of a build."""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class Position(BaseModel):
    rank: int
    order: int
    x: int
    y: int
    group: Optional[str] = None


class RenderElement(BaseModel):
    id: str
    type: str
    name: str
    description: str = ""
    technology: str = ""
    parent: Optional[str] = None
    tags: List[str] = []
    position: Position
    style: Dict[str, Any] = {}


class RenderRelationship(BaseModel):
    id: str
    source: str
    destination: str
    label: str = ""
    technology: str = ""
    tags: List[str] = []
    implied: bool = False
    style: Dict[str, Any] = {}


class RenderAnimationStep(BaseModel):
    order: int
    elements: List[str]
    relationships: List[str] = []


class RenderLayout(BaseModel):
    strategy: str
    rank_separation: int
    node_separation: int


class RenderView(BaseModel):
    key: str
    kind: str
    title: str
    description: str = ""
    subject: str
    environment: Optional[str] = None
    layout: RenderLayout
    elements: List[RenderElement] = []
    relationships: List[RenderRelationship] = []
    animation: List[RenderAnimationStep] = []


class RenderModel(BaseModel):
    elements: List[Dict[str, Any]] = []
    relationships: List[Dict[str, Any]] = []
    environments: List[Dict[str, str]] = []


class RenderPayload(BaseModel):
    name: str
    description: str = ""
    identifiers: str = "flat"
    themes: List[str] = []
    model: RenderModel = RenderModel()
    views: List[RenderView] = []

    model_config = {
        "protected_namespaces": (),
    }

    def view(self, key: str) -> RenderView:
        for view in self.views:
            if view.key == key:
                return view
        raise KeyError(key)

    def to_dict(self) -> dict:
        return self.model_dump()

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, indent=2)
