"""
dlnode Node Settings

Loads every section of the settings file at startup.
Environment variables override TOML values.
"""

from .addresses import SocketAddr, parse_ip_addr, parse_socket_addr
from .bootstrap import BootstrapEntry, BootstrapTrustList, Identity
from .context import NodeContext, SettingsHolder, get_settings
from .defaults import DEFAULT_SETTINGS, default_settings
from .derived import PoolConfig, derive_pool_config
from .loader import load, load_settings
from .peers import PeerCategory, PeerCategoryPolicy, PeerCategoryTable
from .sections import (
    APISettings,
    BootstrapSettings,
    ConsensusSettings,
    ExecutionSettings,
    LedgerSettings,
    LoggingSettings,
    NetworkSettings,
    NodeSettings,
    PoolSettings,
    ProtocolSettings,
    SelectionSettings,
)
from .units import ByteRate, Duration

__all__ = [
    "APISettings",
    "BootstrapEntry",
    "BootstrapSettings",
    "BootstrapTrustList",
    "ByteRate",
    "ConsensusSettings",
    "DEFAULT_SETTINGS",
    "Duration",
    "ExecutionSettings",
    "Identity",
    "LedgerSettings",
    "LoggingSettings",
    "NetworkSettings",
    "NodeContext",
    "NodeSettings",
    "PeerCategory",
    "PeerCategoryPolicy",
    "PeerCategoryTable",
    "PoolConfig",
    "PoolSettings",
    "ProtocolSettings",
    "SelectionSettings",
    "SettingsHolder",
    "SocketAddr",
    "default_settings",
    "derive_pool_config",
    "get_settings",
    "load",
    "load_settings",
    "parse_ip_addr",
    "parse_socket_addr",
]
