"""rate_limit.py - sliding-window posting limiter.

burst, hourly and daily windows over one timestamp history, pruned
to the last day. checked in that order; the first window that is
full answers, along with when its oldest post falls out.
"""

import time
from dataclasses import dataclass, replace
from typing import Callable, Optional

from kairos import log
from kairos.config import RateLimitConfig


HOUR = 3600.0
DAY = 86400.0


@dataclass
class RateLimitStatus:
    can_post: bool
    posts_in_last_hour: int
    posts_in_last_day: int
    posts_in_burst_window: int
    reason: str = ""
    next_available: Optional[float] = None

    def to_dict(self) -> dict:
        return dict(vars(self))


class PostingRateLimiter:

    def __init__(self, config: RateLimitConfig = None, clock: Callable[[], float] = None):
        self.config = config or RateLimitConfig()
        self.clock = clock or time.time
        self.history: list[float] = []

    def _prune(self, now: float):
        cutoff = now - DAY
        self.history = [ts for ts in self.history if ts > cutoff]

    def count_in_window(self, now: float, window: float) -> int:
        return sum(1 for ts in self.history if ts > now - window)

    def _oldest_in_window(self, now: float, window: float) -> Optional[float]:
        for ts in self.history:
            if ts > now - window:
                return ts
        return None

    def check_limit(self) -> RateLimitStatus:
        now = self.clock()
        self._prune(now)
        cfg = self.config
        hour = self.count_in_window(now, HOUR)
        day = self.count_in_window(now, DAY)
        burst = self.count_in_window(now, cfg.burst_window_seconds)

        def blocked(reason: str, next_available: float) -> RateLimitStatus:
            return RateLimitStatus(False, hour, day, burst, reason, next_available)

        if burst >= cfg.burst_limit:
            oldest = self.history[-cfg.burst_limit]
            return blocked(
                f"Burst limit reached ({cfg.burst_limit} posts in {cfg.burst_window_seconds:.0f}s)",
                oldest + cfg.burst_window_seconds,
            )
        if hour >= cfg.max_posts_per_hour:
            oldest = self._oldest_in_window(now, HOUR)
            return blocked(
                f"Hourly limit reached ({cfg.max_posts_per_hour} posts/hour)",
                oldest + HOUR if oldest is not None else now,
            )
        if day >= cfg.max_posts_per_day:
            oldest = self._oldest_in_window(now, DAY)
            return blocked(
                f"Daily limit reached ({cfg.max_posts_per_day} posts/day)",
                oldest + DAY if oldest is not None else now,
            )
        return RateLimitStatus(True, hour, day, burst)

    def record_post(self):
        now = self.clock()
        self.history.append(now)
        self._prune(now)
        log.debug("rate_limit", f"post recorded ({len(self.history)} in the last day)")

    def statistics(self) -> dict:
        now = self.clock()
        return {
            "posts_in_last_hour": self.count_in_window(now, HOUR),
            "posts_in_last_day": self.count_in_window(now, DAY),
            "posts_in_burst_window": self.count_in_window(now, self.config.burst_window_seconds),
            "total_recorded": len(self.history),
            "config": vars(self.config),
        }

    def reset(self):
        log.info("rate_limit", "posting history cleared")
        self.history = []

    def update_config(self, **changes):
        """change settings in place. unknown keys raise AttributeError, non-positive values ValueError."""
        for key in changes:
            if not hasattr(self.config, key):
                raise AttributeError(f"unknown rate limit setting: {key}")
        self.config = replace(self.config, **changes)
