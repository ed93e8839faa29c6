"""Settings for building a mirror reader."""
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tagmirror.mirror.manager import DEFAULT_CACHE_TTL, CacheManager
from tagmirror.repository.reader import RepositoryReader
from tagmirror.vcs.git import DEFAULT_GIT_TIMEOUT, GitClient

ENV_PREFIX = "TAGMIRROR_"


class MirrorSettings(BaseModel):
    """Configuration for one mirrored remote.

    Environment variables (read by from_env):
        TAGMIRROR_REMOTE:      Repository URL or local path.
        TAGMIRROR_CACHE_DIR:   Mirror directory.
        TAGMIRROR_CACHE_TTL:   Mirror TTL in seconds. Default 300; 0 always refreshes.
        TAGMIRROR_GIT_TIMEOUT: Timeout for each git command in seconds. Default 300.
    """

    model_config = ConfigDict(extra="forbid")

    remote: str = Field(..., description="Repository URL or local path")
    cache_dir: Path = Field(..., description="Local mirror directory")
    ttl_seconds: float = Field(default=DEFAULT_CACHE_TTL, ge=0)
    git_timeout: float = Field(default=DEFAULT_GIT_TIMEOUT, gt=0)

    @field_validator("remote")
    @classmethod
    def validate_remote(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("remote must not be empty")
        return normalized

    @field_validator("cache_dir")
    @classmethod
    def expand_cache_dir(cls, value: Path) -> Path:
        return value.expanduser()

    @classmethod
    def from_env(
        cls,
        *,
        remote: Optional[str] = None,
        cache_dir: Optional[Path] = None,
        ttl_seconds: Optional[float] = None,
        git_timeout: Optional[float] = None,
    ) -> "MirrorSettings":
        """Build settings from environment variables + explicit overrides."""
        values = {
            "remote": remote if remote is not None else os.environ.get(f"{ENV_PREFIX}REMOTE"),
            "cache_dir": (
                cache_dir if cache_dir is not None else os.environ.get(f"{ENV_PREFIX}CACHE_DIR")
            ),
            "ttl_seconds": (
                ttl_seconds
                if ttl_seconds is not None
                else os.environ.get(f"{ENV_PREFIX}CACHE_TTL")
            ),
            "git_timeout": (
                git_timeout
                if git_timeout is not None
                else os.environ.get(f"{ENV_PREFIX}GIT_TIMEOUT")
            ),
        }
        return cls.model_validate({k: v for k, v in values.items() if v is not None})

    def build_cache(self) -> CacheManager:
        return CacheManager(
            self.remote,
            self.cache_dir,
            ttl=self.ttl_seconds,
            client=GitClient(timeout=self.git_timeout),
        )

    def build_reader(self) -> RepositoryReader:
        return RepositoryReader(self.build_cache())
