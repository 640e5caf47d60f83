"""
Process-wide access to the loaded settings.

Preferred: build a ``NodeContext`` once in the node's entry point and hand
each subsystem its block. ``get_settings()`` exists for code that cannot be
given the context; it loads lazily, exactly once, even under concurrent
first access.
"""

import threading
from dataclasses import dataclass
from typing import Callable, Optional

from ..constants import OPERATION_VALIDITY_PERIODS, THREAD_COUNT
from ..logger import apply_node_level, get_logger
from .derived import PoolConfig, derive_pool_config
from .loader import load_settings
from .sections import NodeSettings

logger = get_logger(__name__)


@dataclass(frozen=True)
class NodeContext:
    """Settings plus the configs derived from them, built once at startup."""
    settings: NodeSettings
    pool: PoolConfig

    @classmethod
    def build(
        cls,
        settings: NodeSettings,
        thread_count: int = THREAD_COUNT,
        validity_periods: int = OPERATION_VALIDITY_PERIODS,
    ) -> "NodeContext":
        apply_node_level(settings.logging.level)
        ctx = cls(
            settings=settings,
            pool=derive_pool_config(settings, thread_count, validity_periods),
        )
        logger.info(
            "Node context ready: network %s, %d bootstrap server(s), pool capacity %d",
            settings.network.bind, len(settings.bootstrap.bootstrap_list), ctx.pool.max_pool_size,
        )
        return ctx


class SettingsHolder:
    """
    Single-flight lazy holder.

    The first ``get()`` runs the factory while holding the lock; concurrent
    callers block until it returns and then share the same instance. A failed
    factory call caches nothing and the error propagates to the caller.
    """

    def __init__(self, factory: Callable[[], NodeSettings]) -> None:
        self._factory = factory
        self._lock = threading.Lock()
        self._value: Optional[NodeSettings] = None

    def get(self) -> NodeSettings:
        # Double-checked locking; reads after construction take no lock
        value = self._value
        if value is None:
            with self._lock:
                if self._value is None:
                    self._value = self._factory()
                value = self._value
        return value

    @property
    def is_loaded(self) -> bool:
        return self._value is not None


_holder = SettingsHolder(load_settings)


def get_settings() -> NodeSettings:
    """The process-wide settings, loaded on first call."""
    return _holder.get()
