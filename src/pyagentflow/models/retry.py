"""
Retry policy configuration for step execution.

Design Pattern: Strategy Pattern
RetryPolicy encapsulates retry behavior, allowing different retry strategies
without modifying the executor's attempt loop.

Design Rationale:
- Default: 3 retries (4 attempts) with 1s base delay, doubling each time
- NONE: a single attempt, used for tests and for idempotency-sensitive tools
- Policies are immutable and built fresh per executor call
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, cast


@dataclass(frozen=True)
class RetryPolicy:
    """
    Configuration for step retry behavior.

    Controls how many times a failed attempt is repeated and how long the
    executor waits between attempts.

    Examples:
        # Named policy: predefined sensible defaults
        policy = RetryPolicy.DEFAULT

        # Flat backoff
        policy = RetryPolicy(max_retries=2, backoff_ms=500, exponential_backoff=False)

        # Shorthand
        policy = RetryPolicy.with_max_retries(5)
    """

    max_retries: int = 3
    """Number of retries after the first attempt.

    max_retries = 3 means at most 4 attempts in total.
    """

    backoff_ms: int = 1000
    """Base delay between attempts in milliseconds."""

    exponential_backoff: bool = True
    """Double the delay after every failed attempt when True."""

    # =========================================================================
    # Predefined Policies
    # =========================================================================

    if TYPE_CHECKING:
        DEFAULT: RetryPolicy
        NONE: RetryPolicy
    else:
        DEFAULT = cast("RetryPolicy", None)
        NONE = cast("RetryPolicy", None)

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.backoff_ms < 0:
            raise ValueError(f"backoff_ms must be >= 0, got {self.backoff_ms}")

    @classmethod
    def with_max_retries(cls, max_retries: int) -> RetryPolicy:
        """
        Create a policy with custom max_retries (uses default delays).

        Args:
            max_retries: Number of retries after the first attempt

        Returns:
            RetryPolicy with default exponential backoff
        """
        return cls(max_retries=max_retries, backoff_ms=1000, exponential_backoff=True)

    @property
    def max_attempts(self) -> int:
        """Total number of attempts, including the first one."""
        return self.max_retries + 1

    def delay_for_attempt(self, attempt: int) -> int | None:
        """
        Calculate the delay after a failed attempt.

        Args:
            attempt: Index of the attempt that just failed (0-indexed)

        Returns:
            Delay in milliseconds before the next attempt, or None if the
            failed attempt was the last one.

        Example:
            policy = RetryPolicy.DEFAULT
            policy.delay_for_attempt(0)  # 1000
            policy.delay_for_attempt(1)  # 2000
            policy.delay_for_attempt(3)  # None (no attempts left)
        """
        if attempt >= self.max_retries:
            return None

        if not self.exponential_backoff:
            return self.backoff_ms

        return self.backoff_ms * (2**attempt)

    def __repr__(self) -> str:
        """Readable representation for debugging."""
        return (
            f"RetryPolicy(max_retries={self.max_retries}, "
            f"backoff_ms={self.backoff_ms}, "
            f"exponential_backoff={self.exponential_backoff})"
        )


# Initialize predefined policies after class definition
RetryPolicy.DEFAULT = RetryPolicy(max_retries=3, backoff_ms=1000, exponential_backoff=True)

RetryPolicy.NONE = RetryPolicy(max_retries=0, backoff_ms=0, exponential_backoff=False)
