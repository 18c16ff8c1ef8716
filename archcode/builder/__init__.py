"""Scoped model builder."""
from archcode.builder.context import BuildContext
from archcode.builder.scoped_builder import ScopedBuilder

__all__ = ["BuildContext", "ScopedBuilder"]
