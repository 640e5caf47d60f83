"""
Built-in default settings.

Lowest-precedence layer of the loader. Mirrors the settings file layout.
Durations are in milliseconds, rates in bytes per second.
"""

import copy
from typing import Any, Dict

DEFAULT_SETTINGS: Dict[str, Dict[str, Any]] = {
    "logging": {
        "level": 2,
    },
    "protocol": {
        "ask_block_timeout": 10000,
        "max_known_blocks_size": 1024,
        "max_node_known_blocks_size": 1024,
        "max_node_wanted_blocks_size": 1024,
        "max_simultaneous_ask_blocks_per_node": 128,
        "max_send_wait": 0,
        "max_known_ops_size": 1_000_000,
        "max_known_endorsements_size": 1000,
        "operation_batch_buffer_capacity": 10000,
        "operation_batch_proc_period": 500,
    },
    "network": {
        "bind": "0.0.0.0:31244",
        "protocol_port": 31244,
        "connect_timeout": 3000,
        "wakeup_interval": 10000,
        "initial_peers_file": "base_config/initial_peers.json",
        "peers_file": "config/peers.json",
        "keypair_file": "config/node_privkey.key",
        "peer_types_config": {
            "standard": {
                "max_in_connections": 5,
                "target_out_connections": 10,
                "max_out_attempts": 10,
            },
            "bootstrap": {
                "max_in_connections": 1,
                "target_out_connections": 1,
                "max_out_attempts": 1,
            },
            "whitelisted": {
                "max_in_connections": 3,
                "target_out_connections": 2,
                "max_out_attempts": 2,
            },
        },
        "max_in_connections_per_ip": 2,
        "max_idle_peers": 10000,
        "max_banned_peers": 100,
        "peers_file_dump_interval": 30000,
        "message_timeout": 5000,
        "ask_peer_list_interval": 30000,
        "max_send_wait": 0,
        "ban_timeout": 3_600_000,
        "peer_list_send_timeout": 500,
        "max_in_connection_overflow": 2,
        "max_operations_per_message": 1024,
        "max_bytes_read": 20_000_000.0,
        "max_bytes_write": 20_000_000.0,
    },
    "bootstrap": {
        "bootstrap_list": [],
        "connect_timeout": 15000,
        "read_timeout": 300000,
        "write_timeout": 300000,
        "read_error_timeout": 200,
        "write_error_timeout": 200,
        "retry_delay": 15000,
        "max_ping": 10000,
        "enable_clock_synchronization": False,
        "cache_duration": 15000,
        "max_simultaneous_bootstraps": 2,
        "per_ip_min_interval": 180000,
        "ip_list_max_size": 10000,
        "max_bytes_read_write": 20_000_000.0,
    },
    "consensus": {
        "max_discarded_blocks": 100,
        "future_block_processing_max_periods": 100,
        "max_dependency_blocks": 2048,
        "max_future_processing_blocks": 400,
        "staking_keys_path": "config/staking_keys.json",
        "max_send_wait": 500,
        "stats_timespan": 60000,
        "block_db_prune_interval": 5000,
        "max_item_return_count": 100,
        "force_keep_final_periods": 20,
    },
    "api": {
        "draw_lookahead_period_count": 10,
        "bind_private": "127.0.0.1:33034",
        "bind_public": "0.0.0.0:33035",
        "max_arguments": 128,
    },
    "pool": {
        "max_pool_size_per_thread": 25000,
        "max_operation_future_validity_start_periods": 100,
        "max_endorsement_count": 10000,
        "max_item_return_count": 100,
    },
    "execution": {
        "max_final_events": 10000,
        "readonly_queue_length": 10,
        "cursor_delay": 0,
    },
    "ledger": {
        "initial_sce_ledger_path": "base_config/initial_sce_ledger.json",
        "disk_ledger_path": "storage/ledger/rocks_db",
        "final_history_length": 100,
    },
    "selector": {
        "max_draw_cache": 10,
    },
}


def default_settings() -> Dict[str, Dict[str, Any]]:
    """A private copy of the built-in defaults."""
    return copy.deepcopy(DEFAULT_SETTINGS)
