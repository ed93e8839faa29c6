"""tagmirror: read files at historical tags from a TTL-refreshed git mirror."""
from tagmirror.config import MirrorSettings
from tagmirror.core.errors import (
    GitOperationError,
    PathNotFoundError,
    RefreshError,
    ResolutionError,
    TagMirrorError,
)
from tagmirror.mirror import DEFAULT_CACHE_TTL, CacheManager, MirrorStatus
from tagmirror.repository import RepositoryReader
from tagmirror.vcs import GitClient, VersionControlClient

__version__ = "0.1.0"

__all__ = [
    "CacheManager",
    "RepositoryReader",
    "MirrorSettings",
    "MirrorStatus",
    "GitClient",
    "VersionControlClient",
    "DEFAULT_CACHE_TTL",
    "TagMirrorError",
    "GitOperationError",
    "RefreshError",
    "ResolutionError",
    "PathNotFoundError",
]
