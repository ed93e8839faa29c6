"""Git client: run git subprocesses against a local mirror."""
import logging
import os
import shlex
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional, Set

from tagmirror.core.errors import GitOperationError, PathNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_GIT_TIMEOUT = 300


def _format_command(cmd: List[str]) -> str:
    return shlex.join(cmd)


class GitClient:
    """VersionControlClient backed by the git command line.

    Example:
        client = GitClient(timeout=60)
        client.clone("https://github.com/puppetlabs/puppetlabs-apache.git", path)
        print(client.list_tags(path))
    """

    def __init__(self, git_binary: str = "git", timeout: float = DEFAULT_GIT_TIMEOUT):
        """
        Args:
            git_binary: Executable to invoke (default: "git" on PATH)
            timeout: Per-command timeout in seconds
        """
        self.git_binary = git_binary
        self.timeout = timeout

    def _run(
        self,
        args: List[str],
        cwd: Optional[Path] = None,
        text: bool = True,
        env: Optional[dict] = None,
    ) -> subprocess.CompletedProcess:
        """Run git with args and return the completed process.

        Raises:
            GitOperationError: If git cannot be started or times out.
                Non-zero exits are left to the caller.
        """
        cmd = [self.git_binary, *args]
        if cwd is not None:
            cmd = [self.git_binary, "-C", str(cwd), *args]
        logger.debug(f"Running {_format_command(cmd)}")

        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=text,
                timeout=self.timeout,
                env=env,
            )
        except subprocess.TimeoutExpired:
            raise GitOperationError(
                f"Error running Git command `{_format_command(cmd)}`: "
                f"timed out after {self.timeout}s"
            )
        except OSError as e:
            raise GitOperationError(
                f"Error running Git command `{_format_command(cmd)}`: {e}"
            ) from e

    def _check(self, result: subprocess.CompletedProcess) -> subprocess.CompletedProcess:
        """Raise GitOperationError if result has a non-zero exit code."""
        if result.returncode != 0:
            stderr = result.stderr
            if isinstance(stderr, bytes):
                stderr = stderr.decode("utf-8", errors="replace")
            raise GitOperationError(
                f"Error running Git command `{_format_command(result.args)}` "
                f"(exit {result.returncode}): {stderr.strip()}"
            )
        return result

    def clone(self, remote: str, destination: Path) -> None:
        logger.info(f"Cloning {remote} to {destination}")
        self._check(self._run(["clone", "--quiet", "--", remote, str(destination)]))

    def fetch(self, mirror: Path) -> None:
        logger.info(f"Fetching into {mirror}")
        self._check(
            self._run(["fetch", "--quiet", "--tags", "--force", "origin"], cwd=mirror)
        )
        # Keep HEAD in step with the remote's default branch
        self._check(
            self._run(["reset", "--quiet", "--hard", "origin/HEAD"], cwd=mirror)
        )

    def list_tags(self, mirror: Path) -> Set[str]:
        result = self._check(self._run(["tag", "--list"], cwd=mirror))
        return {line.strip() for line in result.stdout.splitlines() if line.strip()}

    def resolve_ref(self, mirror: Path, ref: str) -> Optional[str]:
        result = self._run(
            ["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"],
            cwd=mirror,
        )
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def show_file(self, mirror: Path, ref: str, path: str) -> bytes:
        # Git object paths are always posix and relative to the tree root
        tree_path = path.replace("\\", "/").lstrip("/")
        object_name = f"{ref}:{tree_path}"

        # Directories and submodules exist as objects too; only blobs are files
        kind = self._run(["cat-file", "-t", object_name], cwd=mirror)
        if kind.returncode != 0 or kind.stdout.strip() != "blob":
            raise PathNotFoundError(
                f"Error running Git command `{_format_command(kind.args)}`: "
                f"'{path}' does not exist at {ref}"
            )

        result = self._check(
            self._run(["cat-file", "blob", object_name], cwd=mirror, text=False)
        )
        return result.stdout

    def checkout(self, mirror: Path, ref: str, destination: Path) -> None:
        # A real checkout (not git archive) so export-ignore and export-subst
        # attributes don't alter the tree. The mirror's own index and
        # working tree stay untouched by using a throwaway index file.
        destination.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(prefix="tagmirror-index-") as index_dir:
            env = dict(os.environ, GIT_INDEX_FILE=str(Path(index_dir).absolute() / "index"))
            self._check(
                self._run(
                    [
                        f"--git-dir={mirror.absolute() / '.git'}",
                        f"--work-tree={destination.absolute()}",
                        "checkout",
                        "--quiet",
                        ref,
                        "--",
                        ".",
                    ],
                    env=env,
                )
            )
        logger.debug(f"Checked out {ref} into {destination}")

    def is_mirror(self, path: Path) -> bool:
        # Checked on every read, so stay on the filesystem rather than spawn git
        git_dir = path / ".git"
        return (git_dir / "HEAD").is_file() and (git_dir / "objects").is_dir()

    def marker_path(self, mirror: Path) -> Path:
        return mirror / ".git" / "FETCH_HEAD"
