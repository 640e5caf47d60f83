"""
dlnode Settings Block Tests

Covers:
  - Duration / ByteRate primitives
  - Socket and bare IP address parsing
  - Per-block validation: negative values, zero counts, addresses, paths
  - Every violation in a block reported in one pass
"""

import copy
from pathlib import Path

import pytest

from dlnode.config import (
    APISettings,
    ByteRate,
    DEFAULT_SETTINGS,
    Duration,
    ExecutionSettings,
    LedgerSettings,
    LoggingSettings,
    NetworkSettings,
    PoolSettings,
    SocketAddr,
    parse_ip_addr,
    parse_socket_addr,
)
from dlnode.config.sections import BLOCKS
from dlnode.exceptions import (
    InvalidAddress,
    MissingField,
    NegativeDuration,
    NegativeRate,
    OutOfRangeCount,
    SettingsError,
    TypeMismatch,
)


def block_defaults(name):
    return copy.deepcopy(DEFAULT_SETTINGS[name])


# ===================================================================
# SECTION 1: Primitives
# ===================================================================

class TestDuration:

    def test_arithmetic_and_ordering(self):
        assert Duration(1500) + Duration(500) == Duration(2000)
        assert Duration(100) * 3 == Duration(300)
        assert Duration(1) < Duration(2)
        assert max(Duration(5), Duration(3)) == Duration(5)

    def test_seconds(self):
        assert Duration(2500).seconds == 2.5
        assert Duration.from_seconds(1.25) == Duration(1250)

    def test_rejects_negative(self):
        with pytest.raises(ValueError):
            Duration(-1)

    def test_rejects_non_integer(self):
        with pytest.raises(TypeError):
            Duration(1.5)
        with pytest.raises(TypeError):
            Duration(True)

    def test_str(self):
        assert str(Duration(30)) == "30ms"


class TestByteRate:

    def test_zero_unbounded(self):
        r = ByteRate(0, unbounded_when_zero=True)
        assert r.is_unbounded
        assert not r.is_disabled
        assert r.limit is None
        assert str(r) == "unbounded"

    def test_zero_disabled(self):
        r = ByteRate(0)
        assert r.is_disabled
        assert r.limit == 0

    def test_positive(self):
        r = ByteRate(1024.0, unbounded_when_zero=True)
        assert r.limit == 1024.0
        assert float(r) == 1024.0

    def test_rejects_negative(self):
        with pytest.raises(ValueError):
            ByteRate(-0.5)


class TestAddresses:

    @pytest.mark.parametrize("raw, ip, port", [
        ("127.0.0.1:31244", "127.0.0.1", 31244),
        (" 0.0.0.0:1 ", "0.0.0.0", 1),
        ("[::1]:33035", "::1", 33035),
    ])
    def test_parse_socket_addr(self, raw, ip, port):
        addr = parse_socket_addr(raw)
        assert isinstance(addr, SocketAddr)
        assert str(addr.ip) == ip
        assert addr.port == port

    @pytest.mark.parametrize("raw", [
        "127.0.0.1",
        "127.0.0.1:",
        "127.0.0.1:http",
        "127.0.0.1:0",
        "127.0.0.1:65536",
        "999.0.0.1:80",
        "::1:80",
        "[::1]80",
        "1.2.3.4:\u0663",
        "[::1]:\u0661\u0662",
        "localhost:80",
        "",
    ])
    def test_parse_socket_addr_rejects(self, raw):
        with pytest.raises(ValueError):
            parse_socket_addr(raw)

    def test_socket_addr_str(self):
        assert str(parse_socket_addr("[2001:db8::1]:80")) == "[2001:db8::1]:80"
        assert parse_socket_addr("10.0.0.1:80").endpoint == ("10.0.0.1", 80)

    def test_parse_ip_addr(self):
        assert str(parse_ip_addr("203.0.113.7")) == "203.0.113.7"
        assert str(parse_ip_addr("2001:db8::7")) == "2001:db8::7"

    @pytest.mark.parametrize("raw", ["203.0.113.7:80", "[::1]", "host"])
    def test_parse_ip_addr_rejects(self, raw):
        with pytest.raises(ValueError):
            parse_ip_addr(raw)


# ===================================================================
# SECTION 2: Blocks
# ===================================================================

class TestBlockDefaults:

    @pytest.mark.parametrize("name", sorted(BLOCKS))
    def test_defaults_are_valid(self, name):
        block = BLOCKS[name].from_dict(block_defaults(name))
        assert block.section == name

    @pytest.mark.parametrize("name", sorted(BLOCKS))
    def test_to_dict_round_trip(self, name):
        block = BLOCKS[name].from_dict(block_defaults(name))
        assert BLOCKS[name].from_dict(block.to_dict()) == block


class TestNetworkSettings:

    def test_types(self):
        net = NetworkSettings.from_dict(block_defaults("network"))
        assert isinstance(net.bind, SocketAddr)
        assert isinstance(net.connect_timeout, Duration)
        assert isinstance(net.keypair_file, Path)
        assert net.routable_ip is None
        assert net.max_bytes_read.unbounded_when_zero

    def test_negative_duration(self):
        raw = block_defaults("network")
        raw["ban_timeout"] = -5
        with pytest.raises(NegativeDuration) as exc_info:
            NetworkSettings.from_dict(raw)
        assert exc_info.value.path == "network.ban_timeout"

    def test_negative_rate(self):
        raw = block_defaults("network")
        raw["max_bytes_write"] = -1.0
        with pytest.raises(NegativeRate, match="network.max_bytes_write"):
            NetworkSettings.from_dict(raw)

    def test_zero_rate_is_unbounded(self):
        raw = block_defaults("network")
        raw["max_bytes_read"] = 0
        net = NetworkSettings.from_dict(raw)
        assert net.max_bytes_read.is_unbounded

    def test_routable_ip_must_be_bare(self):
        raw = block_defaults("network")
        raw["routable_ip"] = "203.0.113.7:31244"
        with pytest.raises(InvalidAddress, match="without port"):
            NetworkSettings.from_dict(raw)

    def test_routable_ip_not_unspecified(self):
        raw = block_defaults("network")
        raw["routable_ip"] = "0.0.0.0"
        with pytest.raises(InvalidAddress, match="not routable"):
            NetworkSettings.from_dict(raw)

    def test_routable_ip_accepted(self):
        raw = block_defaults("network")
        raw["routable_ip"] = "2001:db8::7"
        assert str(NetworkSettings.from_dict(raw).routable_ip) == "2001:db8::7"

    def test_port_range(self):
        raw = block_defaults("network")
        raw["protocol_port"] = 70000
        with pytest.raises(OutOfRangeCount, match="<= 65535"):
            NetworkSettings.from_dict(raw)

    def test_zero_rejected_where_required(self):
        raw = block_defaults("network")
        raw["max_operations_per_message"] = 0
        with pytest.raises(OutOfRangeCount, match="at least 1"):
            NetworkSettings.from_dict(raw)

    def test_zero_permitted_where_disabling(self):
        raw = block_defaults("network")
        raw["max_in_connections_per_ip"] = 0
        assert NetworkSettings.from_dict(raw).max_in_connections_per_ip == 0

    def test_path_must_be_string(self):
        raw = block_defaults("network")
        raw["peers_file"] = 12
        with pytest.raises(TypeMismatch, match="filesystem path"):
            NetworkSettings.from_dict(raw)

    def test_path_not_checked_on_disk(self):
        raw = block_defaults("network")
        raw["keypair_file"] = "/nonexistent/dir/node.key"
        net = NetworkSettings.from_dict(raw)
        assert net.keypair_file == Path("/nonexistent/dir/node.key")

    def test_all_violations_reported(self):
        raw = block_defaults("network")
        raw["connect_timeout"] = -1
        raw["bind"] = "nowhere"
        raw["max_operations_per_message"] = 0
        del raw["peers_file"]
        with pytest.raises(SettingsError) as exc_info:
            NetworkSettings.from_dict(raw)
        paths = sorted(e.path for e in exc_info.value.errors)
        assert paths == [
            "network.bind",
            "network.connect_timeout",
            "network.max_operations_per_message",
            "network.peers_file",
        ]
        assert any(isinstance(e, MissingField) for e in exc_info.value.errors)

    def test_sources_in_errors(self):
        raw = block_defaults("network")
        raw["wakeup_interval"] = "-3"
        with pytest.raises(NegativeDuration) as exc_info:
            NetworkSettings.from_dict(raw, {"network.wakeup_interval": "env"})
        assert exc_info.value.source == "env"


class TestOtherBlocks:

    def test_logging_level_range(self):
        with pytest.raises(OutOfRangeCount):
            LoggingSettings.from_dict({"level": 5})
        assert LoggingSettings.from_dict({"level": 4}).level == 4

    def test_logging_python_level(self):
        import logging
        assert LoggingSettings.from_dict({"level": 0}).python_level == logging.ERROR
        assert LoggingSettings.from_dict({"level": 2}).python_level == logging.INFO

    def test_api_binds_must_differ(self):
        raw = block_defaults("api")
        raw["bind_public"] = raw["bind_private"]
        with pytest.raises(InvalidAddress, match="must differ"):
            APISettings.from_dict(raw)

    def test_pool_zero_size_rejected(self):
        raw = block_defaults("pool")
        raw["max_pool_size_per_thread"] = 0
        with pytest.raises(OutOfRangeCount):
            PoolSettings.from_dict(raw)

    def test_execution_zero_cursor_delay(self):
        raw = block_defaults("execution")
        raw["cursor_delay"] = 0
        assert ExecutionSettings.from_dict(raw).cursor_delay == Duration(0)

    def test_bool_rejected_as_count(self):
        raw = block_defaults("ledger")
        raw["final_history_length"] = True
        with pytest.raises(TypeMismatch):
            LedgerSettings.from_dict(raw)

    def test_bootstrap_bind_optional(self):
        from dlnode.config import BootstrapSettings
        raw = block_defaults("bootstrap")
        assert BootstrapSettings.from_dict(raw).bind is None
        raw["bind"] = "0.0.0.0:31245"
        assert BootstrapSettings.from_dict(raw).bind.port == 31245
