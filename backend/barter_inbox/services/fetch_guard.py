"""
Generation guard for list-level fetches.

WHAT: Monotonic token tagging every conversation-list fetch
WHY: Only the most recently initiated fetch may commit (last-initiated-wins);
     the transport offers no cancellation
HOW: begin() bumps and returns the counter; is_current() compares at commit time
"""

from ..utils.logger import get_logger

logger = get_logger(__name__)


class FetchGenerationGuard:
    """Opaque incrementing handle compared at commit time."""

    def __init__(self):
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def begin(self) -> int:
        """Start a new fetch generation and return its token."""
        self._generation += 1
        logger.debug(f"Fetch generation {self._generation} started")
        return self._generation

    def is_current(self, token: int) -> bool:
        """True when no fetch has been started since `token` was issued."""
        current = token == self._generation
        if not current:
            logger.debug(f"Fetch generation {token} superseded by {self._generation}")
        return current
