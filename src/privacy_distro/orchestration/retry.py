"""Bounded fixed-interval polling."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

logger = logging.getLogger("privacy_distro.retry")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """
    Poll a condition up to `max_attempts` times, `interval` seconds apart.

    Args:
        max_attempts: number of checks before giving up (>= 1)
        interval: seconds to wait between two checks
    """
    max_attempts: int = 10
    interval: float = 1.5

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.interval < 0:
            raise ValueError(f"interval must not be negative, got {self.interval}")

    async def poll(
        self,
        check: Callable[[], Awaitable[bool]],
        sleep: Sleep = asyncio.sleep,
    ) -> bool:
        """
        Run `check` until it returns True or the attempts run out.

        Returns:
            True if the condition was met, False on exhaustion.
        """
        for attempt in range(1, self.max_attempts + 1):
            if await check():
                return True
            logger.debug(f"Condition not met (attempt {attempt}/{self.max_attempts})")
            if attempt < self.max_attempts:
                await sleep(self.interval)
        return False
