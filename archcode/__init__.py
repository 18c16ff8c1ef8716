"""Architecture-as-code workspace builder."""
from archcode.errors import BuildError
from archcode.workspace import build_workspace, build_workspace_file

__all__ = ["BuildError", "build_workspace", "build_workspace_file"]
