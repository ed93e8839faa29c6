"""Mirror cache manager: keep a local clone of one remote fresh."""
import logging
import os
import shutil
import tempfile
import time
from contextlib import contextmanager
from datetime import timedelta
from pathlib import Path
from typing import Callable, Iterator, Optional, Union

from filelock import FileLock, Timeout

from tagmirror.core.errors import GitOperationError, RefreshError
from tagmirror.mirror.status import MirrorStatus
from tagmirror.vcs.base import VersionControlClient
from tagmirror.vcs.git import GitClient

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 300.0
DEFAULT_LOCK_TIMEOUT = 600.0

_STAGING_SUFFIX = ".partial"


class CacheManager:
    """Own one mirror directory and refresh it when it is older than its TTL.

    The last refresh time is the modification time of the client's marker
    file inside the mirror, so any CacheManager pointed at the same directory
    sees the same staleness clock, across processes and restarts.

    Example:
        cache = CacheManager("https://github.com/puppetlabs/puppetlabs-apache.git",
                             Path("~/.cache/tagmirror/apache").expanduser())
        cache.ensure_fresh()
    """

    def __init__(
        self,
        remote: Union[str, Path],
        cache_dir: Union[str, Path],
        ttl: Union[float, timedelta] = DEFAULT_CACHE_TTL,
        client: Optional[VersionControlClient] = None,
        clock: Callable[[], float] = time.time,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT,
    ):
        """
        Args:
            remote: Repository URL or local path to mirror
            cache_dir: Directory holding the mirror (created on first refresh)
            ttl: Maximum mirror age in seconds; 0 refreshes on every call
            client: Version control engine (default: GitClient)
            clock: Source of the current Unix time
            lock_timeout: Seconds to wait for another process's refresh
        """
        if isinstance(ttl, timedelta):
            ttl = ttl.total_seconds()
        if ttl < 0:
            raise ValueError(f"ttl must be >= 0; got {ttl}")

        self.remote = str(remote)
        self.cache_dir = Path(cache_dir)
        self.ttl = float(ttl)
        self.client = client if client is not None else GitClient()
        self.clock = clock
        self.last_refresh: Optional[float] = None
        self._lock = FileLock(str(self.lock_path), timeout=lock_timeout)

    @property
    def lock_path(self) -> Path:
        return self.cache_dir.with_name(f"{self.cache_dir.name}.lock")

    @property
    def marker_path(self) -> Path:
        return self.client.marker_path(self.cache_dir)

    @property
    def exists(self) -> bool:
        """True if the cache directory holds a usable mirror."""
        return self.cache_dir.is_dir() and self.client.is_mirror(self.cache_dir)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        self.cache_dir.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._lock.acquire()
        except Timeout as e:
            raise RefreshError(
                f"Timed out waiting for lock {self.lock_path} held by another refresh"
            ) from e
        try:
            yield
        finally:
            self._lock.release()

    def _read_marker(self) -> Optional[float]:
        try:
            return self.marker_path.stat().st_mtime
        except FileNotFoundError:
            return None

    def _is_expired(self, last_refresh: Optional[float]) -> bool:
        if last_refresh is None:
            return True
        return self.clock() - last_refresh >= self.ttl

    def is_stale(self) -> bool:
        """Check whether the next ensure_fresh() would clone or fetch."""
        return not self.exists or self._is_expired(self._read_marker())

    def ensure_fresh(self, force: bool = False) -> bool:
        """Make sure the mirror exists and is no older than the TTL.

        Args:
            force: Fetch even if the mirror is within its TTL

        Returns:
            True if a clone or fetch ran, False if the mirror was fresh.

        Raises:
            RefreshError: If the clone or fetch fails. An existing mirror
                and its marker are left as they were.
        """
        with self._locked():
            self._remove_staging_dirs()

            if not self.exists:
                self._discard_unusable()
                self._clone()
                self._mark_refreshed()
                return True

            self.last_refresh = self._read_marker()
            if self.last_refresh is None:
                logger.info(f"No refresh marker in {self.cache_dir}; treating mirror as stale")
            elif not force and not self._is_expired(self.last_refresh):
                logger.debug(
                    f"Mirror {self.cache_dir} is fresh "
                    f"(age {self.clock() - self.last_refresh:.1f}s < ttl {self.ttl:g}s)"
                )
                return False

            self._fetch()
            self._mark_refreshed()
            return True

    def clear(self) -> None:
        """Delete the mirror directory. Missing directories are ignored."""
        with self._locked():
            self._remove_staging_dirs()
            if self.cache_dir.exists() or self.cache_dir.is_symlink():
                logger.info(f"Clearing mirror at {self.cache_dir}")
                self._remove_cache_path()
            self.last_refresh = None

    def status(self) -> MirrorStatus:
        """Describe the mirror without touching the remote."""
        exists = self.exists
        last_refresh = self._read_marker() if exists else None
        age = self.clock() - last_refresh if last_refresh is not None else None
        return MirrorStatus(
            remote=self.remote,
            cache_dir=str(self.cache_dir),
            exists=exists,
            ttl_seconds=self.ttl,
            last_refresh=last_refresh,
            age_seconds=age,
            fresh=exists and not self._is_expired(last_refresh),
        )

    def _clone(self) -> None:
        # Clone beside the target and rename on success, so a failed or
        # killed clone never leaves a half-written mirror at cache_dir
        staging = Path(
            tempfile.mkdtemp(
                prefix=f".{self.cache_dir.name}-",
                suffix=_STAGING_SUFFIX,
                dir=self.cache_dir.parent,
            )
        )
        try:
            self.client.clone(self.remote, staging)
            staging.rename(self.cache_dir)
            logger.info(f"Mirrored {self.remote} into {self.cache_dir}")
        except RefreshError:
            raise
        except GitOperationError as e:
            raise RefreshError(str(e)) from e
        finally:
            if staging.exists():
                shutil.rmtree(staging, ignore_errors=True)

    def _fetch(self) -> None:
        try:
            self.client.fetch(self.cache_dir)
        except RefreshError:
            raise
        except GitOperationError as e:
            raise RefreshError(str(e)) from e
        logger.info(f"Refreshed mirror {self.cache_dir} from {self.remote}")

    def _mark_refreshed(self) -> None:
        now = self.clock()
        marker = self.marker_path
        marker.parent.mkdir(parents=True, exist_ok=True)
        marker.touch(exist_ok=True)
        os.utime(marker, (now, now))
        self.last_refresh = now

    def _discard_unusable(self) -> None:
        if self.cache_dir.exists() or self.cache_dir.is_symlink():
            logger.warning(f"{self.cache_dir} is not a usable mirror; removing it")
            self._remove_cache_path()

    def _remove_cache_path(self) -> None:
        try:
            if self.cache_dir.is_dir() and not self.cache_dir.is_symlink():
                shutil.rmtree(self.cache_dir)
            else:
                self.cache_dir.unlink()
        except FileNotFoundError:
            pass

    def _remove_staging_dirs(self) -> None:
        """Delete staging clones left behind by an interrupted refresh."""
        if not self.cache_dir.parent.is_dir():
            return
        pattern = f".{self.cache_dir.name}-*{_STAGING_SUFFIX}"
        for leftover in self.cache_dir.parent.glob(pattern):
            logger.warning(f"Removing interrupted clone {leftover}")
            shutil.rmtree(leftover, ignore_errors=True)
