"""
Peer categories and their connection-admission policies.

The network layer classifies every remote peer into one ``PeerCategory`` and
applies the matching ``PeerCategoryPolicy``. The table is total: every
category has exactly one policy, and a partial table in the settings file is
rejected instead of being filled with defaults.

Settings file layout:

    [network.peer_types_config.standard]
    max_in_connections = 5
    target_out_connections = 10
    max_out_attempts = 10
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Iterator, List, Mapping, Tuple

from ..exceptions import (
    ConfigurationError,
    MissingCategory,
    MissingField,
    TypeMismatch,
    UnknownCategory,
    raise_for_errors,
)
from .fields import coerce_field, count, spec_of


class PeerCategory(IntEnum):
    """Closed set of peer classifications. Values are table indices."""
    STANDARD = 0
    BOOTSTRAP = 1
    WHITELISTED = 2

    @property
    def key(self) -> str:
        """Name used in the settings file."""
        return self.name.lower()

    @classmethod
    def from_key(cls, key: str) -> "PeerCategory":
        """Exact lowercase lookup; ``STANDARD`` is not a category key."""
        if key != key.lower():
            raise KeyError(key)
        return cls[key.upper()]


# Table storage relies on dense ordinals 0..n-1
assert [int(c) for c in PeerCategory] == list(range(len(PeerCategory))), \
    "PeerCategory values must be dense table indices"


@dataclass(frozen=True)
class PeerCategoryPolicy:
    """Connection limits for one peer category. Zero means none for that category."""
    max_in_connections: int = count()
    target_out_connections: int = count()
    max_out_attempts: int = count()

    @classmethod
    def from_dict(cls, raw: Any, path: str, source: str = "") -> "PeerCategoryPolicy":
        if not isinstance(raw, Mapping):
            raise TypeMismatch(path, raw, source, "expected a table")

        errors: List[ConfigurationError] = []
        values: Dict[str, Any] = {}
        for f in dataclasses.fields(cls):
            field_path = f"{path}.{f.name}"
            if f.name not in raw:
                errors.append(MissingField(field_path, source=source))
                continue
            try:
                values[f.name] = coerce_field(spec_of(f), raw[f.name], field_path, source)
            except ConfigurationError as e:
                errors.append(e)

        raise_for_errors(errors)
        return cls(**values)

    def to_dict(self) -> Dict[str, int]:
        return dataclasses.asdict(self)


class PeerCategoryTable:
    """
    Immutable total mapping PeerCategory -> PeerCategoryPolicy.

    Lookup is a tuple index by category ordinal.
    """

    __slots__ = ("_policies",)

    def __init__(self, policies: Mapping[PeerCategory, PeerCategoryPolicy]):
        missing = [c for c in PeerCategory if c not in policies]
        if missing:
            raise MissingCategory("peer_types_config", [c.key for c in missing])
        self._policies: Tuple[PeerCategoryPolicy, ...] = tuple(
            policies[c] for c in PeerCategory
        )

    @classmethod
    def from_dict(cls, raw: Any, path: str = "peer_types_config", source: str = "") -> "PeerCategoryTable":
        """
        Build the table from a parsed settings mapping.

        Policy errors come first, followed by coverage errors. A category
        whose policy is invalid still counts as present.

        Raises:
            MissingCategory: naming every category absent from *raw*
            UnknownCategory: naming every key of *raw* that is not a category
            SettingsError: when several defects were found
        """
        if not isinstance(raw, Mapping):
            raise TypeMismatch(path, raw, source, "expected a table of peer categories")

        errors: List[ConfigurationError] = []
        policies: Dict[PeerCategory, PeerCategoryPolicy] = {}
        present = set()
        unknown: List[str] = []

        for key, value in raw.items():
            try:
                category = PeerCategory.from_key(str(key))
            except KeyError:
                unknown.append(str(key))
                continue
            present.add(category)
            try:
                policies[category] = PeerCategoryPolicy.from_dict(value, f"{path}.{key}", source)
            except ConfigurationError as e:
                errors.append(e)

        missing = [c.key for c in PeerCategory if c not in present]
        if missing:
            errors.append(MissingCategory(path, missing, source))
        if unknown:
            errors.append(UnknownCategory(path, unknown, source))
        raise_for_errors(errors)

        return cls(policies)

    def __getitem__(self, category: PeerCategory) -> PeerCategoryPolicy:
        return self._policies[category]

    def __iter__(self) -> Iterator[Tuple[PeerCategory, PeerCategoryPolicy]]:
        return iter(zip(PeerCategory, self._policies))

    def __len__(self) -> int:
        return len(self._policies)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PeerCategoryTable):
            return NotImplemented
        return self._policies == other._policies

    def __hash__(self) -> int:
        return hash(self._policies)

    def __repr__(self) -> str:
        inner = ", ".join(f"{c.key}={p!r}" for c, p in self)
        return f"PeerCategoryTable({inner})"

    @property
    def total_max_in_connections(self) -> int:
        return sum(p.max_in_connections for p in self._policies)

    @property
    def total_target_out_connections(self) -> int:
        return sum(p.target_out_connections for p in self._policies)

    def to_dict(self) -> Dict[str, Dict[str, int]]:
        return {c.key: p.to_dict() for c, p in self}
