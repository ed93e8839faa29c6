"""Tag resolution and file extraction over a mirror."""
from tagmirror.repository.reader import RepositoryReader

__all__ = ["RepositoryReader"]
