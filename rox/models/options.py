"""
Option mappings for the database, column families, reads and writes.

Sanitization and read-directive extraction happen here, before any
option reaches the native engine.
"""

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Path-valued options the engine expects as raw bytes
PATH_OPTIONS = ("db_log_dir", "wal_dir")

# Read option handled by the binding itself, never forwarded
DECODE_FLAG = "decode"

Options = Mapping[str, Any] | Iterable[tuple[str, Any]]


class CompactionStyle(str, Enum):
    LEVEL = "level"
    UNIVERSAL = "universal"
    FIFO = "fifo"
    NONE = "none"


class CompressionType(str, Enum):
    SNAPPY = "snappy"
    ZLIB = "zlib"
    BZIP2 = "bzip2"
    LZ4 = "lz4"
    LZ4H = "lz4h"
    NONE = "none"


class AccessHint(str, Enum):
    NORMAL = "normal"
    SEQUENTIAL = "sequential"
    WILLNEED = "willneed"
    NONE = "none"


class WalRecoveryMode(str, Enum):
    TOLERATE_CORRUPTED_TAIL_RECORDS = "tolerate_corrupted_tail_records"
    ABSOLUTE_CONSISTENCY = "absolute_consistency"
    POINT_IN_TIME_RECOVERY = "point_in_time_recovery"
    SKIP_ANY_CORRUPTED_RECORDS = "skip_any_corrupted_records"


DB_OPTION_NAMES = frozenset({
    "total_threads",
    "create_if_missing",
    "create_missing_column_families",
    "error_if_exists",
    "paranoid_checks",
    "max_open_files",
    "max_total_wal_size",
    "disable_data_sync",
    "use_fsync",
    "db_paths",
    "db_log_dir",
    "wal_dir",
    "delete_obsolete_files_period_micros",
    "max_background_compactions",
    "max_background_flushes",
    "max_log_file_size",
    "log_file_time_to_roll",
    "keep_log_file_num",
    "max_manifest_file_size",
    "table_cache_numshardbits",
    "wal_ttl_seconds",
    "wal_size_limit_mb",
    "manifest_preallocation_size",
    "allow_os_buffer",
    "allow_mmap_reads",
    "allow_mmap_writes",
    "is_fd_close_on_exec",
    "skip_log_error_on_recovery",
    "stats_dump_period_sec",
    "advise_random_on_open",
    "access_hint",
    "compaction_readahead_size",
    "use_adaptive_mutex",
    "bytes_per_sync",
    "skip_stats_update_on_db_open",
    "wal_recovery_mode",
})

CF_OPTION_NAMES = frozenset({
    "block_cache_size_mb_for_point_lookup",
    "memtable_memory_budget",
    "write_buffer_size",
    "max_write_buffer_number",
    "min_write_buffer_number_to_merge",
    "compression",
    "num_levels",
    "level0_file_num_compaction_trigger",
    "level0_slowdown_writes_trigger",
    "level0_stop_writes_trigger",
    "max_mem_compaction_level",
    "target_file_size_base",
    "target_file_size_multiplier",
    "max_bytes_for_level_base",
    "max_bytes_for_level_multiplier",
    "expanded_compaction_factor",
    "source_compaction_factor",
    "max_grandparent_overlap_factor",
    "soft_rate_limit",
    "hard_rate_limit",
    "arena_block_size",
    "disable_auto_compactions",
    "purge_redundant_kvs_while_flush",
    "compaction_style",
    "verify_checksums_in_compaction",
    "filter_deletes",
    "max_sequential_skip_in_iterations",
    "inplace_update_support",
    "inplace_update_num_locks",
    "table_factory_block_cache_size",
    "in_memory_mode",
    "block_based_table_options",
})

BLOCK_BASED_TABLE_OPTION_NAMES = frozenset({
    "no_block_cache",
    "block_size",
    "block_cache_size",
    "bloom_filter_policy",
    "format_version",
    "skip_table_builder_flush",
    "cache_index_and_filter_blocks",
})

READ_OPTION_NAMES = frozenset({
    "verify_checksums",
    "fill_cache",
    "iterate_upper_bound",
    "tailing",
    "total_order_seek",
    "snapshot",
    DECODE_FLAG,
})

WRITE_OPTION_NAMES = frozenset({
    "sync",
    "disable_wal",
    "timeout_hint_us",
    "ignore_missing_column_families",
})


@dataclass(frozen=True)
class ReadDirectives:
    """
    Read options split into binding-level and engine-level parts.

    Attributes:
        decode: Whether stored bytes should be deserialized on read.
        options: Remaining read options, forwarded to the engine.
    """

    decode: bool = False
    options: dict[str, Any] = field(default_factory=dict)


def as_dict(opts: Options | None) -> dict[str, Any]:
    """
    Normalize an options argument to a fresh dict.

    Later pairs override earlier pairs with the same name.
    """
    if opts is None:
        return {}
    if isinstance(opts, Mapping):
        items = opts.items()
    else:
        items = opts

    result: dict[str, Any] = {}
    for name, value in items:
        if not isinstance(name, str):
            raise TypeError(f"option names must be strings, got {type(name).__name__}")
        result[name] = value
    return result


def sanitize_opts(opts: Options | None) -> dict[str, Any]:
    """
    Prepare db or column-family options for the engine.

    Path-valued options are converted to bytes with ``os.fsencode``;
    every other option passes through unchanged.

    Args:
        opts: Mapping or iterable of (name, value) pairs.

    Returns:
        A new dict with exactly one entry per option name.
    """
    rest = as_dict(opts)
    converted = {
        name: os.fsencode(rest.pop(name)) for name in PATH_OPTIONS if name in rest
    }
    rest.update(converted)
    return rest


def split_read_opts(opts: Options | None) -> ReadDirectives:
    """
    Pop the decode flag off read options.

    Args:
        opts: Read options, possibly carrying ``decode``.

    Returns:
        ReadDirectives with the flag and the options left for the engine.
    """
    rest = as_dict(opts)
    decode = bool(rest.pop(DECODE_FLAG, False))
    return ReadDirectives(decode=decode, options=rest)
