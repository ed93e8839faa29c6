"""Pytest fixtures for tagmirror tests."""
import json
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Set

import pytest

from tagmirror.core.errors import GitOperationError, PathNotFoundError

TAGS = ["0.9.0", "1.0.0-rc1", "1.0.0", "xxx"]

MODULEFILE_TEMPLATE = """name 'puppetlabs-apache'
version '{version}'
author 'puppetlabs'
"""


def git(repo_path: Path, *args: str) -> str:
    """Run a git command in repo_path and return its stripped stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=repo_path,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def commit_file(repo_path: Path, name: str, content: str, message: str) -> str:
    """Write a file, commit it, and return the new HEAD SHA."""
    (repo_path / name).write_text(content)
    git(repo_path, "add", name)
    git(repo_path, "commit", "--quiet", "-m", message)
    return git(repo_path, "rev-parse", "HEAD")


def mirror_head(cache_dir: Path) -> str:
    return git(cache_dir, "--git-dir", str(cache_dir / ".git"), "rev-parse", "HEAD")


@pytest.fixture
def tagged_repo_fixture(tmp_path: Path) -> Dict[str, any]:
    """Create a git repository with one Modulefile commit per tag.

    Tags: 0.9.0, 1.0.0-rc1, 1.0.0, xxx. Each Modulefile's version matches
    its tag.

    Returns dict with:
        - path: Path to repo
        - tags: list of tag names
        - tag_shas: {tag: commit SHA}
        - head_sha: SHA of HEAD
    """
    repo_path = tmp_path / "test_repo"
    repo_path.mkdir()

    git(repo_path, "init", "--quiet")
    git(repo_path, "config", "user.email", "tester@example.com")
    git(repo_path, "config", "user.name", "tester")
    git(repo_path, "config", "commit.gpgsign", "false")
    git(repo_path, "config", "tag.gpgsign", "false")

    tag_shas = {}
    for tag in TAGS:
        tag_shas[tag] = commit_file(
            repo_path,
            "Modulefile",
            MODULEFILE_TEMPLATE.format(version=tag),
            f"Tagging {tag}",
        )
        git(repo_path, "tag", tag)

    return {
        "path": repo_path,
        "tags": list(TAGS),
        "tag_shas": tag_shas,
        "head_sha": git(repo_path, "rev-parse", "HEAD"),
    }


class FakeClock:
    """Manually advanced stand-in for time.time."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRemote:
    """In-memory remote: a head commit and tagged file snapshots."""

    def __init__(self):
        self.head: Optional[str] = None
        self.tags: Dict[str, Dict[str, any]] = {}
        self._commits = 0

    def commit(self, files: Dict[str, str], tag: Optional[str] = None) -> str:
        self._commits += 1
        sha = f"{self._commits:040x}"
        self.head = sha
        if tag is not None:
            self.tags[tag] = {"commit": sha, "files": dict(files)}
        return sha

    def to_dict(self) -> dict:
        return {"head": self.head, "tags": json.loads(json.dumps(self.tags))}


class FakeVcsClient:
    """VersionControlClient that mirrors FakeRemotes into a JSON file.

    Records every clone/fetch in calls; operations named in fail_on raise
    GitOperationError instead of running.
    """

    STATE_FILE = "mirror.json"

    def __init__(self, remotes: Dict[str, FakeRemote]):
        self.remotes = remotes
        self.calls: List[str] = []
        self.fail_on: Set[str] = set()

    def _maybe_fail(self, operation: str, target: Path) -> None:
        if operation in self.fail_on:
            raise GitOperationError(
                f"Error running Git command `fake {operation} {target}`: simulated failure"
            )

    def _state(self, mirror: Path) -> dict:
        return json.loads((mirror / self.STATE_FILE).read_text())

    def _write_state(self, mirror: Path, remote: str) -> None:
        state = self.remotes[remote].to_dict()
        state["remote"] = remote
        (mirror / self.STATE_FILE).write_text(json.dumps(state))

    def clone(self, remote: str, destination: Path) -> None:
        self.calls.append("clone")
        self._maybe_fail("clone", destination)
        destination.mkdir(parents=True, exist_ok=True)
        self._write_state(destination, remote)

    def fetch(self, mirror: Path) -> None:
        self.calls.append("fetch")
        self._maybe_fail("fetch", mirror)
        self._write_state(mirror, self._state(mirror)["remote"])

    def list_tags(self, mirror: Path) -> Set[str]:
        return set(self._state(mirror)["tags"])

    def resolve_ref(self, mirror: Path, ref: str) -> Optional[str]:
        tag = self._state(mirror)["tags"].get(ref.replace("refs/tags/", "", 1))
        return tag["commit"] if tag else None

    def _files_at(self, mirror: Path, ref: str) -> Dict[str, str]:
        for tag in self._state(mirror)["tags"].values():
            if tag["commit"] == ref:
                return tag["files"]
        raise GitOperationError(f"Error running Git command `fake show {ref}`: bad revision")

    def show_file(self, mirror: Path, ref: str, path: str) -> bytes:
        files = self._files_at(mirror, ref)
        if path not in files:
            raise PathNotFoundError(
                f"Error running Git command `fake show {ref}:{path}`: no such path"
            )
        return files[path].encode("utf-8")

    def checkout(self, mirror: Path, ref: str, destination: Path) -> None:
        for name, content in self._files_at(mirror, ref).items():
            target = destination / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)

    def is_mirror(self, path: Path) -> bool:
        return (path / self.STATE_FILE).is_file()

    def marker_path(self, mirror: Path) -> Path:
        return mirror / "FETCH_HEAD"


REMOTE_URL = "fake://puppetlabs/apache"


@pytest.fixture
def fake_remote() -> FakeRemote:
    remote = FakeRemote()
    for tag in ["0.9.0", "1.0.0"]:
        remote.commit({"Modulefile": MODULEFILE_TEMPLATE.format(version=tag)}, tag=tag)
    return remote


@pytest.fixture
def fake_client(fake_remote: FakeRemote) -> FakeVcsClient:
    return FakeVcsClient({REMOTE_URL: fake_remote})


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
