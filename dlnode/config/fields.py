"""
Field kinds for settings blocks.

Each block field is declared with one of the helpers below (``duration()``,
``count()``, ``rate()``...). The helper stores a ``FieldSpec`` in the dataclass
field metadata; ``coerce_field`` turns a raw value from any layer into the
typed value or raises the matching ``FieldError``.

Raw values may be strings when they come from the environment layer, so every
scalar kind also accepts its textual form.
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from ..exceptions import (
    InvalidAddress,
    NegativeDuration,
    NegativeRate,
    OutOfRangeCount,
    TypeMismatch,
)
from .addresses import parse_ip_addr, parse_socket_addr
from .units import ByteRate, Duration

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


@dataclass(frozen=True)
class FieldSpec:
    kind: str
    min: Optional[int] = None
    max: Optional[int] = None
    optional: bool = False
    unbounded_when_zero: bool = False
    # Collections are parsed by their own type and never overridden from env
    parser: Optional[Callable[..., Any]] = None

    @property
    def is_collection(self) -> bool:
        return self.kind == "collection"


def _field(spec: FieldSpec):
    return dataclasses.field(metadata={"spec": spec})


def duration():
    return _field(FieldSpec("duration"))


def count(min: int = 0, max: Optional[int] = None):
    """Integer count. ``min=1`` marks fields where zero would disable the subsystem."""
    return _field(FieldSpec("count", min=min, max=max))


def rate(*, unbounded_when_zero: bool):
    """Byte rate. The meaning of zero must be stated for every field."""
    return _field(FieldSpec("rate", unbounded_when_zero=unbounded_when_zero))


def flag():
    return _field(FieldSpec("bool"))


def socket_addr(optional: bool = False):
    return _field(FieldSpec("socket_addr", optional=optional))


def ip_addr(optional: bool = False):
    return _field(FieldSpec("ip_addr", optional=optional))


def path():
    return _field(FieldSpec("path"))


def collection(parser: Callable[..., Any]):
    return _field(FieldSpec("collection", parser=parser))


def spec_of(f: dataclasses.Field) -> FieldSpec:
    return f.metadata["spec"]


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------

def _as_int(raw: Any, path: str, source: str) -> int:
    if isinstance(raw, bool):
        raise TypeMismatch(path, raw, source, "expected an integer")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            pass
    raise TypeMismatch(path, raw, source, "expected an integer")


def _as_float(raw: Any, path: str, source: str) -> float:
    if isinstance(raw, bool):
        raise TypeMismatch(path, raw, source, "expected a number")
    value: Optional[float] = None
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError:
            value = None
    if value is None or math.isnan(value) or math.isinf(value):
        raise TypeMismatch(path, raw, source, "expected a finite number")
    return value


def _as_bool(raw: Any, path: str, source: str) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
    raise TypeMismatch(path, raw, source, "expected a boolean")


def _as_path(raw: Any, path: str, source: str) -> Path:
    # Existence and permissions are checked by the owning subsystem at open time
    if not isinstance(raw, str) or not raw.strip() or "\x00" in raw:
        raise TypeMismatch(path, raw, source, "expected a filesystem path string")
    return Path(raw)


def coerce_field(spec: FieldSpec, raw: Any, path: str, source: str) -> Any:
    """
    Convert a raw layer value into the typed field value.

    Raises:
        FieldError: the subclass matching the defect
        ConfigurationError: from a collection parser
    """
    if spec.optional and (raw is None or (isinstance(raw, str) and not raw.strip())):
        return None

    if spec.kind == "duration":
        millis = _as_int(raw, path, source)
        if millis < 0:
            raise NegativeDuration(path, raw, source)
        return Duration(millis)

    if spec.kind == "rate":
        value = _as_float(raw, path, source)
        if value < 0:
            raise NegativeRate(path, raw, source)
        return ByteRate(value, unbounded_when_zero=spec.unbounded_when_zero)

    if spec.kind == "count":
        value = _as_int(raw, path, source)
        if spec.min is not None and value < spec.min:
            detail = "must be at least 1" if spec.min == 1 else f"must be >= {spec.min}"
            raise OutOfRangeCount(path, raw, source, detail)
        if spec.max is not None and value > spec.max:
            raise OutOfRangeCount(path, raw, source, f"must be <= {spec.max}")
        return value

    if spec.kind == "bool":
        return _as_bool(raw, path, source)

    if spec.kind == "socket_addr":
        try:
            return parse_socket_addr(raw)
        except ValueError as e:
            raise InvalidAddress(path, raw, source, str(e)) from e

    if spec.kind == "ip_addr":
        try:
            return parse_ip_addr(raw)
        except ValueError as e:
            raise InvalidAddress(path, raw, source, "expected a bare IP address without port") from e

    if spec.kind == "path":
        return _as_path(raw, path, source)

    if spec.kind == "collection":
        return spec.parser(raw, path=path, source=source)

    raise ValueError(f"Unknown field kind: {spec.kind}")
