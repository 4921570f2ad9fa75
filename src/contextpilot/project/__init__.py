"""Project files, ignore rules and workspace state."""

from .files import (
    FileReadResult,
    is_text_file,
    list_project_files,
    normalize_path,
    read_code_file,
    relative_path,
)
from .ignore import IgnoreRules
from .workspace import LocalWorkspace, Workspace

__all__ = [
    "FileReadResult",
    "IgnoreRules",
    "LocalWorkspace",
    "Workspace",
    "is_text_file",
    "list_project_files",
    "normalize_path",
    "read_code_file",
    "relative_path",
]
