from abc import ABC, abstractmethod

from src.domain.entities import RateLimitDecision, RateLimitPolicy


class IRateLimitRepository(ABC):
    """
    Rate-limit store interface - application layer

    hit() is a single atomic get-increment-compare-set per key: two
    concurrent attempts for one key can never both slip under the cap.
    """

    @abstractmethod
    async def hit(self, key: str, policy: RateLimitPolicy, now: float) -> RateLimitDecision:
        """Count one attempt and return the resulting decision"""
        pass

    @abstractmethod
    async def peek(self, key: str, policy: RateLimitPolicy, now: float) -> RateLimitDecision:
        """Decision for the key without counting an attempt"""
        pass

    @abstractmethod
    async def clear(self, key: str) -> None:
        """Remove the window entry for key; no-op when absent"""
        pass

    @abstractmethod
    async def purge_expired(self, now: float) -> int:
        """Drop expired windows and blocks. Returns number of keys removed."""
        pass
