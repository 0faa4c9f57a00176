"""
Request pacing for rate-limited providers.

Jikan enforces a requests-per-second ceiling shared by every endpoint, so
detail enrichment waits a fixed delay before each request. Pacers are plain
async callables injected into adapters; tests pass no_pacing (or a recorder)
to run without wall-clock delay.
"""

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

# An awaitable called immediately before a paced request
Pacer = Callable[[], Awaitable[None]]

# Jikan allows roughly 3 requests/second
DEFAULT_PACING_SECONDS = 0.3


class FixedDelayPacer:
    """Sleep a fixed delay before every paced request."""

    def __init__(self, delay: float = DEFAULT_PACING_SECONDS):
        """
        Args:
            delay: Seconds to wait before each request
        """
        self.delay = max(0.0, delay)

    async def __call__(self) -> None:
        if self.delay:
            logger.debug(f"Pacing: waiting {self.delay:.2f}s")
            await asyncio.sleep(self.delay)

    def __repr__(self):
        return f"<FixedDelayPacer(delay={self.delay})>"


async def no_pacing() -> None:
    """Pacer that never waits."""
    return None
