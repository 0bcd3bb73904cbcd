"""
Circuit breaker for game lookups against the canonical games table.

When the store keeps failing, the breaker opens and lookups fail fast with
``CircuitBreakerError``; the resolver treats that like any other lookup
failure ("no match"). No retries are attempted.

States:
- CLOSED: lookups pass through normally
- OPEN: lookups fail immediately (after fail_max consecutive failures)
- HALF_OPEN: one lookup allowed to test whether the store recovered
"""
from pybreaker import CircuitBreaker, CircuitBreakerError

from betsettle.core.config import settings
from betsettle.core.logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "CircuitBreakerError",
    "game_lookup_breaker",
    "get_breaker_state",
    "reset_breaker",
]


game_lookup_breaker = CircuitBreaker(
    fail_max=settings.LOOKUP_BREAKER_FAIL_MAX,
    reset_timeout=settings.LOOKUP_BREAKER_RESET_TIMEOUT,
    name="game_lookup",
)


def get_breaker_state(breaker: CircuitBreaker = game_lookup_breaker) -> str:
    """Current state string: 'closed', 'open', or 'half-open'."""
    return breaker.current_state


def reset_breaker(breaker: CircuitBreaker = game_lookup_breaker) -> None:
    """
    Manually reset a circuit breaker to closed state.

    Only reset if you know the store has recovered.
    """
    breaker.close()
    logger.warning(f"Circuit breaker '{breaker.name}' manually reset to CLOSED state")
