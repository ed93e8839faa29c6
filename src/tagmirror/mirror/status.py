"""Status model describing a mirror's freshness."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MirrorStatus(BaseModel):
    """Snapshot of a mirror's state, for diagnostics.

    Captures:
    - Which remote the mirror tracks (remote)
    - Where it lives locally (cache_dir)
    - When it was last refreshed (last_refresh, age_seconds)
    - Whether a read right now would trigger a refresh (fresh)
    """

    remote: str = Field(..., description="Remote repository path or URL")
    cache_dir: str = Field(..., description="Local mirror directory")
    exists: bool = Field(..., description="True if the mirror directory holds a usable mirror")
    ttl_seconds: float = Field(..., ge=0, description="Maximum mirror age before a refresh")
    last_refresh: Optional[float] = Field(
        default=None, description="Unix timestamp of the last successful refresh"
    )
    age_seconds: Optional[float] = Field(
        default=None, description="Seconds since the last successful refresh"
    )
    fresh: bool = Field(..., description="True if no refresh is needed before reading")

    @field_validator("age_seconds")
    @classmethod
    def clamp_age(cls, v: Optional[float]) -> Optional[float]:
        """Clock skew can make a marker look newer than now; report zero age."""
        if v is not None and v < 0:
            return 0.0
        return v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "remote": "https://github.com/puppetlabs/puppetlabs-apache.git",
                "cache_dir": "/home/user/.cache/tagmirror/puppetlabs-apache",
                "exists": True,
                "ttl_seconds": 300.0,
                "last_refresh": 1792300000.0,
                "age_seconds": 42.5,
                "fresh": True,
            }
        }
    )
