"""
Rate-Limit Types

Policy, stored window entry and per-call decision of the rate limiter.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RateLimitPolicy:
    """
    Attempt cap per window plus escalation block.

    Business Rules:
    - Exceeding max_attempts inside the window blocks the key for
      block_seconds, which must be strictly longer than the window
    """

    max_attempts: int
    window_seconds: int
    block_seconds: int
    name: str = "default"

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if self.block_seconds <= self.window_seconds:
            raise ValueError(
                f"block_seconds ({self.block_seconds}) must exceed "
                f"window_seconds ({self.window_seconds})"
            )


@dataclass
class RateLimitEntry:
    key: str
    count: int
    reset_at: float
    first_attempt_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: Optional[int] = None
    blocked_until: Optional[float] = None
