"""
Projection cache service for memoizing derived task views of one scope
"""

from typing import Any, Callable, Dict, Hashable, Optional
from skillsprint.utils.logger import logger


class ProjectionCache:
    """Cache of computed projections, cleared whenever the scope changes"""

    def __init__(self, name: str = "scope"):
        """
        Initialize projection cache

        Args:
            name: Scope label used in log messages
        """
        self.name = name
        self.logger = logger
        self._projections: Dict[Hashable, Any] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable) -> Optional[Any]:
        """Get a cached projection or None"""
        return self._projections.get(key)

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        """
        Get a projection, computing and caching it on a miss

        Args:
            key: Hashable description of the projection (view, filter, sort...)
            compute: Zero-argument function producing the projection

        Returns:
            Cached or freshly computed projection
        """
        if key in self._projections:
            self.hits += 1
            return self._projections[key]

        self.misses += 1
        value = compute()
        self._projections[key] = value
        self.logger.debug(f"[ProjectionCache] Computed {key!r} for {self.name}")
        return value

    def clear_cache(self):
        """Clear cached projections"""
        if self._projections:
            self.logger.debug(f"[ProjectionCache] Invalidated {len(self._projections)} projections for {self.name}")
        self._projections = {}

    def __len__(self) -> int:
        return len(self._projections)
