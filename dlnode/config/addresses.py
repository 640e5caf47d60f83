"""
Socket and IP address parsing for settings fields.

Accepted forms:
    127.0.0.1:31244
    [::1]:31244
    ::1                (bare IP, routable address fields only)
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


@dataclass(frozen=True)
class SocketAddr:
    """An IP address and TCP port."""
    ip: IPAddress
    port: int

    @property
    def endpoint(self):
        return (str(self.ip), self.port)

    def __str__(self) -> str:
        if self.ip.version == 6:
            return f"[{self.ip}]:{self.port}"
        return f"{self.ip}:{self.port}"


def parse_ip_addr(raw: str) -> IPAddress:
    """
    Parse a bare IPv4 or IPv6 address.

    Raises:
        ValueError: if *raw* is not a bare IP (a port or brackets are rejected)
    """
    if not isinstance(raw, str):
        raise ValueError(f"expected a string, got {type(raw).__name__}")
    return ipaddress.ip_address(raw.strip())


def parse_socket_addr(raw: str) -> SocketAddr:
    """
    Parse ``ip:port`` (IPv6 must be bracketed).

    Raises:
        ValueError: on a missing/invalid port or an invalid IP
    """
    if not isinstance(raw, str):
        raise ValueError(f"expected a string, got {type(raw).__name__}")
    text = raw.strip()

    if text.startswith("["):
        host, sep, port_str = text[1:].partition("]:")
        if not sep:
            raise ValueError("bracketed IPv6 address must be followed by :port")
        ip = ipaddress.IPv6Address(host)
    else:
        host, sep, port_str = text.rpartition(":")
        if not sep or not host:
            raise ValueError("expected ip:port")
        ip = ipaddress.IPv4Address(host)

    if not (port_str.isascii() and port_str.isdigit()):
        raise ValueError(f"invalid port {port_str!r}")
    port = int(port_str)
    if not 0 < port < 65536:
        raise ValueError(f"port {port} out of range 1-65535")
    return SocketAddr(ip=ip, port=port)
