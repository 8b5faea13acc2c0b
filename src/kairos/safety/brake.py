"""brake.py - the coherence brake.

four levels keyed only on coherence. the brake engages the moment
coherence drops under a threshold, but it only lets go once coherence
climbs past the soft threshold plus a buffer. between the two it holds
whatever level it was at.

    coherence   <0.20   HARD    nothing posts
                <0.25   MEDIUM  manual posts only
                <0.30   SOFT    autonomous posts, at reduced frequency
                >=0.35  NONE    (0.30..0.35 holds the current level)

in the world: the handbrake. easy to pull, takes a deliberate
push to release.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from kairos import log


class BrakeLevel(Enum):
    NONE = "NONE"
    SOFT = "SOFT"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


SOFT_THRESHOLD = 0.30
MEDIUM_THRESHOLD = 0.25
HARD_THRESHOLD = 0.20
RECOVERY_BUFFER = 0.05
HISTORY_SIZE = 100


@dataclass
class BrakeStatus:
    level: BrakeLevel
    can_post: bool
    can_auto_post: bool
    frequency_modifier: float
    reason: str
    coherence: float

    def to_dict(self) -> dict:
        return {
            "level": self.level.value,
            "can_post": self.can_post,
            "can_auto_post": self.can_auto_post,
            "frequency_modifier": self.frequency_modifier,
            "reason": self.reason,
            "coherence": self.coherence,
        }


@dataclass
class BrakeChange:
    level: BrakeLevel
    previous: BrakeLevel
    timestamp: float
    coherence: float
    duration: float  # seconds since the brake engaged; 0 when it engages

    def to_dict(self) -> dict:
        return {
            "level": self.level.value,
            "previous": self.previous.value,
            "timestamp": self.timestamp,
            "coherence": self.coherence,
            "duration": self.duration,
        }


def can_post(level: BrakeLevel) -> bool:
    return level != BrakeLevel.HARD


def can_auto_post(level: BrakeLevel) -> bool:
    return level in (BrakeLevel.NONE, BrakeLevel.SOFT)


def frequency_modifier(level: BrakeLevel, coherence: float) -> float:
    """1.0 when free, sliding to 0.5 across the SOFT band, 0 when auto-posting stops."""
    if level == BrakeLevel.NONE:
        return 1.0
    if level == BrakeLevel.SOFT:
        span = SOFT_THRESHOLD - MEDIUM_THRESHOLD
        return min(1.0, max(0.5, (coherence - MEDIUM_THRESHOLD) / span))
    return 0.0


def brake_reason(level: BrakeLevel, coherence: float) -> str:
    if level == BrakeLevel.NONE:
        return "Coherence normal, no restrictions"
    if level == BrakeLevel.SOFT:
        return f"Coherence degrading ({coherence:.2f}), reducing posting frequency"
    if level == BrakeLevel.MEDIUM:
        return f"Coherence low ({coherence:.2f}), auto-posting paused - manual posts only"
    return f"Coherence critical ({coherence:.2f}), all posting blocked"


class CoherenceBrake:
    """Posting gate keyed on coherence, with hysteresis on release."""

    def __init__(self, clock: Callable[[], float] = None):
        self.clock = clock or time.time
        self.level = BrakeLevel.NONE
        self.activated_at: Optional[float] = None
        self.total_activations = 0
        self.history: list[BrakeChange] = []

    def _determine(self, coherence: float) -> BrakeLevel:
        buffer = RECOVERY_BUFFER if self.level != BrakeLevel.NONE else 0.0
        if coherence < HARD_THRESHOLD:
            return BrakeLevel.HARD
        if coherence < MEDIUM_THRESHOLD:
            return BrakeLevel.MEDIUM
        if coherence < SOFT_THRESHOLD:
            return BrakeLevel.SOFT
        if coherence >= SOFT_THRESHOLD + buffer:
            return BrakeLevel.NONE
        return self.level

    def evaluate(self, coherence: float) -> BrakeStatus:
        """update the level from coherence and report what is allowed."""
        level = self._determine(coherence)
        if level != self.level:
            self._change(level, coherence)
        return self.status(coherence)

    def status(self, coherence: float) -> BrakeStatus:
        return BrakeStatus(
            level=self.level,
            can_post=can_post(self.level),
            can_auto_post=can_auto_post(self.level),
            frequency_modifier=frequency_modifier(self.level, coherence),
            reason=brake_reason(self.level, coherence),
            coherence=coherence,
        )

    def _change(self, level: BrakeLevel, coherence: float):
        now = self.clock()
        previous = self.level
        duration = now - self.activated_at if self.activated_at is not None else 0.0

        if previous == BrakeLevel.NONE and level != BrakeLevel.NONE:
            self.activated_at = now
            self.total_activations += 1
            duration = 0.0
            log.warn("brake", f"coherence brake engaged: {level.value} (coherence {coherence:.3f})")
        elif level == BrakeLevel.NONE:
            log.info("brake", f"coherence brake released after {duration:.1f}s (coherence {coherence:.3f})")
            self.activated_at = None
        else:
            log.warn("brake", f"coherence brake {previous.value} -> {level.value} (coherence {coherence:.3f})")

        self.level = level
        self.history.append(BrakeChange(level, previous, now, coherence, duration))
        if len(self.history) > HISTORY_SIZE:
            self.history = self.history[-HISTORY_SIZE:]

    def force_level(self, level: BrakeLevel, coherence: float):
        log.warn("brake", f"forcing brake level {level.value}")
        if level != self.level:
            self._change(level, coherence)

    def reset(self):
        self.level = BrakeLevel.NONE
        self.activated_at = None
        self.history = []

    def statistics(self) -> dict:
        return {
            "level": self.level.value,
            "total_activations": self.total_activations,
            "current_duration": self.clock() - self.activated_at if self.activated_at is not None else 0.0,
            "recent_history": [c.to_dict() for c in self.history[-10:]],
        }
