"""Layout resolution over a view's included set."""
from archcode.layout.resolver import LayoutResolver, Placement, available_strategies, register_strategy

__all__ = ["LayoutResolver", "Placement", "available_strategies", "register_strategy"]
