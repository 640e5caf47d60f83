"""
Subsystem settings blocks and the NodeSettings aggregate.

Every block mirrors one top-level table of the settings file. Blocks are
frozen, are parsed and validated independently, and never reference another
block: values that combine a block with chain constants are built in
``dlnode.config.derived``.

Durations are integer milliseconds. Count fields declared with ``min=1``
reject zero because the owning subsystem cannot work without at least one
slot; the other counts accept zero as "disabled".
"""

import dataclasses
import ipaddress
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Type, TypeVar

from ..exceptions import (
    ConfigurationError,
    InvalidAddress,
    MissingField,
    SettingsError,
    TypeMismatch,
    raise_for_errors,
)
from ..logger import NODE_LEVELS, get_logger
from .addresses import IPAddress, SocketAddr
from .bootstrap import BootstrapTrustList
from .fields import (
    collection,
    coerce_field,
    count,
    duration,
    flag,
    ip_addr,
    path,
    rate,
    socket_addr,
    spec_of,
)
from .peers import PeerCategoryTable
from .units import ByteRate, Duration

logger = get_logger(__name__)

B = TypeVar("B", bound="SettingsBlock")


def _plain(value: Any) -> Any:
    """Typed field value to a TOML/JSON-compatible value."""
    if isinstance(value, Duration):
        return value.millis
    if isinstance(value, ByteRate):
        return value.bytes_per_second
    if isinstance(value, (SocketAddr, Path, ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return str(value)
    if isinstance(value, PeerCategoryTable):
        return value.to_dict()
    if isinstance(value, BootstrapTrustList):
        return value.to_list()
    return value


class SettingsBlock:
    """Shared parsing for the subsystem blocks. Subclasses are frozen dataclasses."""

    section: ClassVar[str] = ""

    @classmethod
    def parse(
        cls: Type[B],
        raw: Any,
        sources: Optional[Mapping[str, str]] = None,
    ) -> Tuple[Optional[B], List[ConfigurationError]]:
        """
        Coerce and validate one block, collecting every defect.

        Args:
            raw: The merged mapping for this block.
            sources: Dotted field path -> layer name, used in error messages.

        Returns:
            (block, []) on success, (None, errors) otherwise
        """
        sources = sources or {}
        if not isinstance(raw, Mapping):
            return None, [TypeMismatch(cls.section, raw, sources.get(cls.section, ""), "expected a table")]

        errors: List[ConfigurationError] = []
        values: Dict[str, Any] = {}
        names = set()

        for f in dataclasses.fields(cls):
            names.add(f.name)
            spec = spec_of(f)
            field_path = f"{cls.section}.{f.name}"
            if f.name not in raw:
                if spec.optional:
                    values[f.name] = None
                else:
                    errors.append(MissingField(field_path))
                continue
            try:
                values[f.name] = coerce_field(spec, raw[f.name], field_path, sources.get(field_path, ""))
            except ConfigurationError as e:
                errors.append(e)

        unknown = sorted(str(k) for k in raw if k not in names)
        if unknown:
            logger.warning("Ignoring unknown keys in [%s]: %s", cls.section, ", ".join(unknown))

        if errors:
            return None, errors

        block = cls(**values)
        errors = block.check(sources)
        if errors:
            return None, errors
        return block, []

    @classmethod
    def from_dict(cls: Type[B], raw: Any, sources: Optional[Mapping[str, str]] = None) -> B:
        block, errors = cls.parse(raw, sources)
        raise_for_errors(errors)
        return block

    def check(self, sources: Mapping[str, str]) -> List[ConfigurationError]:
        """Constraints between fields of the same block."""
        return []

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: _plain(getattr(self, f.name)) for f in dataclasses.fields(self)}


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LoggingSettings(SettingsBlock):
    """[logging] section."""
    section: ClassVar[str] = "logging"

    # 0 error, 1 warning, 2 info, 3 debug, 4 trace
    level: int = count(max=4)

    @property
    def python_level(self) -> int:
        return NODE_LEVELS[self.level]


@dataclass(frozen=True)
class ProtocolSettings(SettingsBlock):
    """[protocol] section."""
    section: ClassVar[str] = "protocol"

    ask_block_timeout: Duration = duration()
    max_known_blocks_size: int = count(min=1)
    max_node_known_blocks_size: int = count(min=1)
    max_node_wanted_blocks_size: int = count(min=1)
    max_simultaneous_ask_blocks_per_node: int = count(min=1)
    max_send_wait: Duration = duration()
    max_known_ops_size: int = count(min=1)
    max_known_endorsements_size: int = count(min=1)
    # 0 sends every operation batch immediately
    operation_batch_buffer_capacity: int = count()
    operation_batch_proc_period: Duration = duration()


@dataclass(frozen=True)
class NetworkSettings(SettingsBlock):
    """[network] section."""
    section: ClassVar[str] = "network"

    bind: SocketAddr = socket_addr()
    # Advertised to peers; absent for nodes behind NAT without a public IP
    routable_ip: Optional[IPAddress] = ip_addr(optional=True)
    protocol_port: int = count(min=1, max=65535)
    connect_timeout: Duration = duration()
    wakeup_interval: Duration = duration()
    initial_peers_file: Path = path()
    peers_file: Path = path()
    keypair_file: Path = path()
    peer_types_config: PeerCategoryTable = collection(PeerCategoryTable.from_dict)
    # 0 refuses all inbound connections
    max_in_connections_per_ip: int = count()
    max_idle_peers: int = count()
    max_banned_peers: int = count()
    peers_file_dump_interval: Duration = duration()
    message_timeout: Duration = duration()
    ask_peer_list_interval: Duration = duration()
    max_send_wait: Duration = duration()
    ban_timeout: Duration = duration()
    peer_list_send_timeout: Duration = duration()
    max_in_connection_overflow: int = count()
    max_operations_per_message: int = count(min=1)
    # 0 disables throttling
    max_bytes_read: ByteRate = rate(unbounded_when_zero=True)
    max_bytes_write: ByteRate = rate(unbounded_when_zero=True)

    def check(self, sources: Mapping[str, str]) -> List[ConfigurationError]:
        errors: List[ConfigurationError] = []
        if self.routable_ip is not None and self.routable_ip.is_unspecified:
            errors.append(InvalidAddress(
                "network.routable_ip", str(self.routable_ip),
                sources.get("network.routable_ip", ""), "unspecified address is not routable",
            ))
        return errors


@dataclass(frozen=True)
class BootstrapSettings(SettingsBlock):
    """[bootstrap] section."""
    section: ClassVar[str] = "bootstrap"

    bootstrap_list: BootstrapTrustList = collection(BootstrapTrustList.from_entries)
    # Absent when this node does not serve bootstraps
    bind: Optional[SocketAddr] = socket_addr(optional=True)
    connect_timeout: Duration = duration()
    read_timeout: Duration = duration()
    write_timeout: Duration = duration()
    read_error_timeout: Duration = duration()
    write_error_timeout: Duration = duration()
    retry_delay: Duration = duration()
    max_ping: Duration = duration()
    enable_clock_synchronization: bool = flag()
    cache_duration: Duration = duration()
    # 0 serves no bootstrap
    max_simultaneous_bootstraps: int = count()
    per_ip_min_interval: Duration = duration()
    ip_list_max_size: int = count(min=1)
    # 0 disables throttling
    max_bytes_read_write: ByteRate = rate(unbounded_when_zero=True)


@dataclass(frozen=True)
class ConsensusSettings(SettingsBlock):
    """[consensus] section."""
    section: ClassVar[str] = "consensus"

    max_discarded_blocks: int = count()
    future_block_processing_max_periods: int = count()
    max_dependency_blocks: int = count(min=1)
    max_future_processing_blocks: int = count(min=1)
    staking_keys_path: Path = path()
    max_send_wait: Duration = duration()
    stats_timespan: Duration = duration()
    block_db_prune_interval: Duration = duration()
    max_item_return_count: int = count(min=1)
    force_keep_final_periods: int = count()


@dataclass(frozen=True)
class APISettings(SettingsBlock):
    """[api] section."""
    section: ClassVar[str] = "api"

    draw_lookahead_period_count: int = count()
    bind_private: SocketAddr = socket_addr()
    bind_public: SocketAddr = socket_addr()
    max_arguments: int = count(min=1)

    def check(self, sources: Mapping[str, str]) -> List[ConfigurationError]:
        if self.bind_private == self.bind_public:
            return [InvalidAddress(
                "api.bind_public", str(self.bind_public),
                sources.get("api.bind_public", ""), "must differ from api.bind_private",
            )]
        return []


@dataclass(frozen=True)
class PoolSettings(SettingsBlock):
    """[pool] section."""
    section: ClassVar[str] = "pool"

    max_pool_size_per_thread: int = count(min=1)
    max_operation_future_validity_start_periods: int = count()
    max_endorsement_count: int = count(min=1)
    max_item_return_count: int = count(min=1)


@dataclass(frozen=True)
class ExecutionSettings(SettingsBlock):
    """[execution] section."""
    section: ClassVar[str] = "execution"

    max_final_events: int = count(min=1)
    readonly_queue_length: int = count(min=1)
    cursor_delay: Duration = duration()


@dataclass(frozen=True)
class LedgerSettings(SettingsBlock):
    """[ledger] section."""
    section: ClassVar[str] = "ledger"

    initial_sce_ledger_path: Path = path()
    disk_ledger_path: Path = path()
    final_history_length: int = count(min=1)


@dataclass(frozen=True)
class SelectionSettings(SettingsBlock):
    """[selector] section."""
    section: ClassVar[str] = "selector"

    max_draw_cache: int = count(min=1)


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NodeSettings:
    """
    Every subsystem block of the node.

    Built once at startup and never mutated. Each subsystem is handed its
    own block (or a derived config), not the aggregate.
    """
    logging: LoggingSettings
    protocol: ProtocolSettings
    network: NetworkSettings
    bootstrap: BootstrapSettings
    consensus: ConsensusSettings
    api: APISettings
    pool: PoolSettings
    execution: ExecutionSettings
    ledger: LedgerSettings
    selector: SelectionSettings

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any], sources: Optional[Mapping[str, str]] = None) -> "NodeSettings":
        """
        Build every block from a fully merged mapping.

        Raises:
            SettingsError: listing the defects of all blocks
        """
        errors: List[ConfigurationError] = []
        blocks: Dict[str, SettingsBlock] = {}

        for name, block_cls in BLOCKS.items():
            if name not in raw:
                errors.append(MissingField(name))
                continue
            block, block_errors = block_cls.parse(raw[name], sources)
            if block_errors:
                errors.extend(block_errors)
            else:
                blocks[name] = block

        if errors:
            raise SettingsError(errors)
        return cls(**blocks)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Serialize to a nested dict (diagnostics and equality checks)."""
        return {name: getattr(self, name).to_dict() for name in BLOCKS}


BLOCKS: Dict[str, Type[SettingsBlock]] = {
    cls.section: cls
    for cls in (
        LoggingSettings,
        ProtocolSettings,
        NetworkSettings,
        BootstrapSettings,
        ConsensusSettings,
        APISettings,
        PoolSettings,
        ExecutionSettings,
        LedgerSettings,
        SelectionSettings,
    )
}
