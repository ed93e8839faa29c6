"""Shared plumbing: exception taxonomy."""
from tagmirror.core.errors import (
    GitOperationError,
    PathNotFoundError,
    RefreshError,
    ResolutionError,
    TagMirrorError,
)

__all__ = [
    "TagMirrorError",
    "GitOperationError",
    "RefreshError",
    "ResolutionError",
    "PathNotFoundError",
]
