"""
Configuration derived from loaded settings plus chain constants.

Chain constants (thread count, operation validity periods) are not part of
any settings block; subsystems that need them together with their block get
a derived config built here.
"""

from dataclasses import dataclass

from .sections import NodeSettings, PoolSettings


@dataclass(frozen=True)
class PoolConfig:
    """Operation and endorsement pool policy."""
    settings: PoolSettings
    thread_count: int
    operation_validity_periods: int

    @property
    def max_pool_size(self) -> int:
        """Operations kept across all threads."""
        return self.settings.max_pool_size_per_thread * self.thread_count

    @property
    def max_operation_start_period_lead(self) -> int:
        """Furthest period ahead an operation may start and still be pooled."""
        return self.settings.max_operation_future_validity_start_periods

    def is_operation_expired(self, expire_period: int, current_period: int) -> bool:
        return expire_period < current_period

    def is_operation_too_far(self, expire_period: int, current_period: int) -> bool:
        """True when an operation's validity window starts beyond the accepted lead."""
        start_period = expire_period - self.operation_validity_periods
        return start_period > current_period + self.max_operation_start_period_lead


def derive_pool_config(settings: NodeSettings, thread_count: int, validity_periods: int) -> PoolConfig:
    """
    Build the pool policy. Pure: equal inputs give equal outputs.

    Raises:
        ValueError: if a constant is not a positive integer
    """
    if thread_count < 1:
        raise ValueError(f"thread_count must be >= 1, got {thread_count}")
    if validity_periods < 1:
        raise ValueError(f"validity_periods must be >= 1, got {validity_periods}")
    return PoolConfig(
        settings=settings.pool,
        thread_count=thread_count,
        operation_validity_periods=validity_periods,
    )
