"""Read files as they were at a given tag."""
import logging
import shutil
import tempfile
from contextlib import contextmanager
from datetime import timedelta
from pathlib import Path
from typing import Callable, Iterator, Optional, Set, TypeVar, Union

from tagmirror.core.errors import PathNotFoundError, ResolutionError
from tagmirror.mirror.manager import DEFAULT_CACHE_TTL, CacheManager
from tagmirror.vcs.base import VersionControlClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RepositoryReader:
    """Resolve tags against a freshened mirror and extract their files.

    Every public operation calls CacheManager.ensure_fresh() first, so reads
    never see a mirror older than the cache's TTL.

    Example:
        reader = RepositoryReader.from_remote(repo_url, cache_dir)
        modulefile = reader.read_file("Modulefile", "1.0.0")
    """

    def __init__(self, cache: CacheManager, client: Optional[VersionControlClient] = None):
        self.cache = cache
        self.client = client if client is not None else cache.client

    @classmethod
    def from_remote(
        cls,
        remote: Union[str, Path],
        cache_dir: Union[str, Path],
        ttl: Union[float, timedelta] = DEFAULT_CACHE_TTL,
        client: Optional[VersionControlClient] = None,
    ) -> "RepositoryReader":
        """Build a reader and its CacheManager in one step."""
        return cls(CacheManager(remote, cache_dir, ttl=ttl, client=client))

    @property
    def mirror(self) -> Path:
        return self.cache.cache_dir

    def tags(self) -> Set[str]:
        """Return every tag in the remote, refreshing the mirror if stale."""
        self.cache.ensure_fresh()
        return self.client.list_tags(self.mirror)

    def _resolve(self, tag: str) -> str:
        self.cache.ensure_fresh()
        commit = self.client.resolve_ref(self.mirror, f"refs/tags/{tag}")
        if commit is None:
            raise ResolutionError(f"Tag '{tag}' not found in {self.cache.remote}")
        logger.debug(f"Resolved tag {tag} → {commit[:12]}")
        return commit

    @contextmanager
    def checkout(self, tag: str) -> Iterator[Path]:
        """Materialize tag into a temporary directory for the with-block.

        The directory is deleted when the block exits, whether it returns
        or raises.

        Raises:
            ResolutionError: If tag does not exist
        """
        commit = self._resolve(tag)
        tmpdir = Path(tempfile.mkdtemp(prefix=f"tagmirror-{self.mirror.name}-"))
        try:
            self.client.checkout(self.mirror, commit, tmpdir)
            logger.debug(f"Checked out {tag} into {tmpdir}")
            yield tmpdir
        finally:
            shutil.rmtree(tmpdir, ignore_errors=True)

    def with_tag(self, tag: str, operation: Callable[[Path], T]) -> T:
        """Call operation with a directory holding tag's tree; return its result."""
        with self.checkout(tag) as tag_path:
            return operation(tag_path)

    def read_bytes(self, path: str, tag: str) -> bytes:
        """Return the raw content of path as it was at tag.

        Raises:
            ResolutionError: If tag does not exist
            PathNotFoundError: If path does not exist at tag
        """
        commit = self._resolve(tag)
        try:
            return self.client.show_file(self.mirror, commit, path)
        except PathNotFoundError as e:
            raise PathNotFoundError(f"{e} (tag '{tag}')") from e

    def read_file(self, path: str, tag: str, encoding: str = "utf-8") -> str:
        """Return the text of path as it was at tag."""
        return self.read_bytes(path, tag).decode(encoding)

    def file_exists(self, path: str, tag: str) -> bool:
        """Check whether path exists at tag. Unknown tags still raise."""
        try:
            self.read_bytes(path, tag)
        except PathNotFoundError:
            return False
        return True

    def update_cache(self, force: bool = False) -> bool:
        return self.cache.ensure_fresh(force=force)

    def clear_cache(self) -> None:
        self.cache.clear()
