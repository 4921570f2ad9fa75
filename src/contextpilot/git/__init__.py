"""Git history access and co-edit analysis."""

from .base import Commit, GitReader, GitReaderError, RepositoryNotFoundError
from .coedit import CoEditAnalyzer, compute_co_edit_weights, rank_co_edited
from .reader import GitPythonReader

__all__ = [
    "CoEditAnalyzer",
    "Commit",
    "GitPythonReader",
    "GitReader",
    "GitReaderError",
    "RepositoryNotFoundError",
    "compute_co_edit_weights",
    "rank_co_edited",
]
