from dataclasses import dataclass


@dataclass
class CacheMetrics:
    """Track outcomes of cache operations."""

    total_gets: int = 0
    cache_hits: int = 0
    refreshes: int = 0
    refresh_failures: int = 0
    failures: int = 0
    decode_failures: int = 0
    sets: int = 0
    total_refresh_time_ms: float = 0.0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        if self.total_gets == 0:
            return 0.0
        return self.cache_hits / self.total_gets

    @property
    def avg_refresh_time_ms(self) -> float:
        """Calculate average refresh duration."""
        if self.refreshes == 0:
            return 0.0
        return self.total_refresh_time_ms / self.refreshes

    def record_hit(self) -> None:
        """Record a get served from the store."""
        self.total_gets += 1
        self.cache_hits += 1

    def record_refresh(self, duration_ms: float) -> None:
        """Record a get served by a successful refresh."""
        self.total_gets += 1
        self.refreshes += 1
        self.total_refresh_time_ms += duration_ms

    def record_failure(self, refresh_failed: bool = False) -> None:
        """Record a get that ended on the failure path."""
        self.total_gets += 1
        self.failures += 1
        if refresh_failed:
            self.refresh_failures += 1

    def record_decode_failure(self) -> None:
        self.decode_failures += 1

    def record_set(self) -> None:
        self.sets += 1

    def to_dict(self) -> dict[str, float | int]:
        """Convert metrics to dictionary."""
        return {
            "total_gets": self.total_gets,
            "cache_hits": self.cache_hits,
            "hit_rate": self.hit_rate,
            "refreshes": self.refreshes,
            "refresh_failures": self.refresh_failures,
            "failures": self.failures,
            "decode_failures": self.decode_failures,
            "sets": self.sets,
            "avg_refresh_time_ms": self.avg_refresh_time_ms,
        }
