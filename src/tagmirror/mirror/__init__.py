"""Mirror management: cloning, freshness tracking, and clearing."""
from tagmirror.mirror.manager import DEFAULT_CACHE_TTL, CacheManager
from tagmirror.mirror.status import MirrorStatus

__all__ = [
    "CacheManager",
    "MirrorStatus",
    "DEFAULT_CACHE_TTL",
]
