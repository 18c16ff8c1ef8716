"""View definitions and the view registry."""
from archcode.views.registry import ViewRegistry
from archcode.views.view import AnimationStep, LayoutDirective, View, ViewFilter, ViewKind

__all__ = ["AnimationStep", "LayoutDirective", "View", "ViewFilter", "ViewKind", "ViewRegistry"]
