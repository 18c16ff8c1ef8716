"""Declaration AST and workspace source loading."""
from archcode.dsl.ast import WorkspaceDecl
from archcode.dsl.loader import load_workspace, loads_workspace, parse_workspace

__all__ = ["WorkspaceDecl", "load_workspace", "loads_workspace", "parse_workspace"]
