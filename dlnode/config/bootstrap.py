"""
Bootstrap trust list.

The node contacts bootstrap servers in list order and only accepts state from
a server that proves ownership of the public key configured next to its
address. Signature verification itself happens in the bootstrap client; this
module only parses and sanity-checks the list.

Settings file layout:

    [bootstrap]
    bootstrap_list = [
        ["149.202.86.103:31245", "<base58check public key>"],
        ["[2001:db8::1]:31245", "<base58check public key>"],
    ]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Sequence, Tuple

import base58

from ..constants import PUBLIC_KEY_SIZE
from ..exceptions import (
    AmbiguousTrustEntry,
    ConfigurationError,
    InvalidAddress,
    InvalidIdentity,
    TypeMismatch,
    raise_for_errors,
)
from ..logger import get_logger
from .addresses import SocketAddr, parse_socket_addr

logger = get_logger(__name__)


@dataclass(frozen=True)
class Identity:
    """Public key of a bootstrap server. Equality is byte-exact."""
    public_key: bytes

    def __post_init__(self):
        if len(self.public_key) != PUBLIC_KEY_SIZE:
            raise ValueError(f"public key must be {PUBLIC_KEY_SIZE} bytes, got {len(self.public_key)}")

    @classmethod
    def from_b58check(cls, text: str) -> "Identity":
        """
        Decode a base58check public key.

        Raises:
            ValueError: on bad characters, bad checksum or wrong length
        """
        if not isinstance(text, str):
            raise ValueError(f"expected a string, got {type(text).__name__}")
        return cls(base58.b58decode_check(text.strip()))

    def to_b58check(self) -> str:
        return base58.b58encode_check(self.public_key).decode("ascii")

    def __str__(self) -> str:
        return self.to_b58check()

    def __repr__(self) -> str:
        return f"Identity({self.to_b58check()})"


@dataclass(frozen=True)
class BootstrapEntry:
    address: SocketAddr
    identity: Identity

    def to_list(self) -> List[str]:
        return [str(self.address), str(self.identity)]


class BootstrapTrustList:
    """
    Ordered, immutable list of trusted bootstrap servers.

    Order is the attempt order. Addresses are unique.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Sequence[BootstrapEntry] = ()):
        self._entries: Tuple[BootstrapEntry, ...] = tuple(entries)

    @classmethod
    def from_entries(cls, raw: Any, path: str = "bootstrap_list", source: str = "") -> "BootstrapTrustList":
        """
        Parse ``[[address, public_key], ...]``.

        Every entry is parsed before failing so one run reports all bad entries.
        Exact duplicates are dropped (first occurrence kept); the same address
        with a different key is rejected.

        Raises:
            InvalidAddress / InvalidIdentity / TypeMismatch: naming the entry index
            AmbiguousTrustEntry: naming the conflicting address
            SettingsError: when several defects were found
        """
        if not isinstance(raw, (list, tuple)):
            raise TypeMismatch(path, raw, source, "expected a list of [address, public_key] pairs")

        errors: List[ConfigurationError] = []
        parsed: List[BootstrapEntry] = []

        for index, item in enumerate(raw):
            entry_path = f"{path}[{index}]"
            if not isinstance(item, (list, tuple)) or len(item) != 2:
                errors.append(TypeMismatch(entry_path, item, source, "expected an [address, public_key] pair"))
                continue

            raw_addr, raw_key = item
            address = identity = None
            try:
                address = parse_socket_addr(raw_addr)
            except ValueError as e:
                errors.append(InvalidAddress(entry_path, raw_addr, source, str(e)))
            try:
                identity = Identity.from_b58check(raw_key)
            except ValueError as e:
                errors.append(InvalidIdentity(entry_path, raw_key, source, str(e)))

            if address is not None and identity is not None:
                parsed.append(BootstrapEntry(address, identity))

        raise_for_errors(errors)

        seen: Dict[SocketAddr, Identity] = {}
        entries: List[BootstrapEntry] = []
        for entry in parsed:
            known = seen.get(entry.address)
            if known is None:
                seen[entry.address] = entry.identity
                entries.append(entry)
            elif known == entry.identity:
                logger.debug("Dropping duplicate bootstrap entry %s", entry.address)
            else:
                errors.append(AmbiguousTrustEntry(path, str(entry.address), source))

        raise_for_errors(errors)
        return cls(entries)

    def __iter__(self) -> Iterator[BootstrapEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> BootstrapEntry:
        return self._entries[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BootstrapTrustList):
            return NotImplemented
        return self._entries == other._entries

    def __hash__(self) -> int:
        return hash(self._entries)

    def __repr__(self) -> str:
        return f"BootstrapTrustList({list(self._entries)!r})"

    @property
    def addresses(self) -> List[SocketAddr]:
        return [e.address for e in self._entries]

    def identity_for(self, address: SocketAddr) -> Identity:
        """Key expected from the server at *address*."""
        for entry in self._entries:
            if entry.address == address:
                return entry.identity
        raise KeyError(str(address))

    def to_list(self) -> List[List[str]]:
        return [e.to_list() for e in self._entries]
