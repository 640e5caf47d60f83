"""
Time and throughput primitives used throughout the settings schema.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import total_ordering
from typing import Optional


@total_ordering
@dataclass(frozen=True)
class Duration:
    """
    Non-negative time interval with millisecond resolution.

    Written in configuration files as an integer number of milliseconds.
    """
    millis: int

    def __post_init__(self):
        if isinstance(self.millis, bool) or not isinstance(self.millis, int):
            raise TypeError(f"Duration requires int milliseconds, got {type(self.millis).__name__}")
        if self.millis < 0:
            raise ValueError(f"Duration must not be negative, got {self.millis}")

    @classmethod
    def from_millis(cls, millis: int) -> "Duration":
        return cls(millis)

    @classmethod
    def from_seconds(cls, seconds: float) -> "Duration":
        return cls(int(round(seconds * 1000)))

    @property
    def seconds(self) -> float:
        return self.millis / 1000

    def __add__(self, other: "Duration") -> "Duration":
        if not isinstance(other, Duration):
            return NotImplemented
        return Duration(self.millis + other.millis)

    def __mul__(self, factor: int) -> "Duration":
        if isinstance(factor, bool) or not isinstance(factor, int):
            return NotImplemented
        return Duration(self.millis * factor)

    __rmul__ = __mul__

    def __lt__(self, other: "Duration") -> bool:
        if not isinstance(other, Duration):
            return NotImplemented
        return self.millis < other.millis

    def __str__(self) -> str:
        return f"{self.millis}ms"


@dataclass(frozen=True)
class ByteRate:
    """
    Non-negative throughput bound in bytes per second.

    A value of zero has a per-field meaning: when ``unbounded_when_zero`` is
    set, zero removes the limit; otherwise zero disables the transfer.
    """
    bytes_per_second: float
    unbounded_when_zero: bool = False

    def __post_init__(self):
        if self.bytes_per_second < 0:
            raise ValueError(f"ByteRate must not be negative, got {self.bytes_per_second}")

    @property
    def is_unbounded(self) -> bool:
        return self.bytes_per_second == 0 and self.unbounded_when_zero

    @property
    def is_disabled(self) -> bool:
        return self.bytes_per_second == 0 and not self.unbounded_when_zero

    @property
    def limit(self) -> Optional[float]:
        """Bytes per second, or None when unbounded."""
        if self.is_unbounded:
            return None
        return self.bytes_per_second

    def __float__(self) -> float:
        return float(self.bytes_per_second)

    def __str__(self) -> str:
        if self.is_unbounded:
            return "unbounded"
        return f"{self.bytes_per_second:g}B/s"
