"""Version control engines the mirror cache can drive."""
from tagmirror.vcs.base import VersionControlClient
from tagmirror.vcs.git import DEFAULT_GIT_TIMEOUT, GitClient

__all__ = [
    "VersionControlClient",
    "GitClient",
    "DEFAULT_GIT_TIMEOUT",
]
