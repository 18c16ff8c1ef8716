"""Style rules, themes and the style cascade."""
from archcode.styles.cascade import StyleCascade, apply_styles
from archcode.styles.rules import StyleRule, element_rule, relationship_rule
from archcode.styles.themes import load_theme

__all__ = ["StyleCascade", "StyleRule", "apply_styles", "element_rule", "load_theme", "relationship_rule"]
