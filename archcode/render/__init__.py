"""Render payload models."""
from archcode.render.payload import (
    Position,
    RenderAnimationStep,
    RenderElement,
    RenderLayout,
    RenderModel,
    RenderPayload,
    RenderRelationship,
    RenderView,
)

__all__ = [
    "Position",
    "RenderAnimationStep",
    "RenderElement",
    "RenderLayout",
    "RenderModel",
    "RenderPayload",
    "RenderRelationship",
    "RenderView",
]
