"""Core exception types for tagmirror."""


class TagMirrorError(Exception):
    """Base exception for all tagmirror errors."""
    pass


class GitOperationError(TagMirrorError):
    """Raised when a git command fails, times out, or cannot be started."""
    pass


class RefreshError(GitOperationError):
    """Raised when cloning or fetching the mirror fails."""
    pass


class ResolutionError(TagMirrorError):
    """Raised when a tag does not exist in the mirror."""
    pass


class PathNotFoundError(TagMirrorError, FileNotFoundError):
    """Raised when a path does not exist at an otherwise valid tag."""
    pass
