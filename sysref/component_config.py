"""Configuration of the framework services used by the deployment."""

from __future__ import annotations

from dataclasses import dataclass, fields

from sysref.fpconfig import FW_COM_BUFFER_MAX_SIZE, TYPE_SIZES, type_limits

# Active logger
TELEM_ID_FILTER_SIZE = 25


@dataclass(frozen=True)
class EventFilterDefaults:
    """Which event severities the active logger filters at input by default."""

    warning_hi: bool = True
    warning_lo: bool = True
    command: bool = True
    activity_hi: bool = True
    activity_lo: bool = True
    diagnostic: bool = False


# Active rate group
ACTIVE_RATE_GROUP_OVERRUN_THROTTLE = 5

# Buffer manager
BUFFERMGR_MAX_NUM_BINS = 10

# Command dispatcher
CMD_DISPATCHER_DISPATCH_TABLE_SIZE = 100
CMD_DISPATCHER_SEQUENCER_TABLE_SIZE = 25

# Deframer
DEFRAMER_RING_BUFFER_SIZE = 1024
DEFRAMER_POLL_BUFFER_SIZE = 1024

# File downlink
FILEDOWNLINK_PACKETS_BY_RUN = False
FILEDOWNLINK_COMMAND_FAILURES_DISABLED = True
FILEDOWNLINK_INTERNAL_BUFFER_SIZE = FW_COM_BUFFER_MAX_SIZE - TYPE_SIZES["FwPacketDescriptorType"]

# Polymorphic database
POLYDB_NUM_DB_ENTRIES = 25

# Parameter database
PRMDB_NUM_DB_ENTRIES = 25
PRMDB_ENTRY_DELIMITER = 0xA5

# Static memory
STATIC_MEMORY_ALLOCATION_SIZE = 2048

# Telemetry channel database hashing
TLMCHAN_NUM_TLM_HASH_SLOTS = 15
TLMCHAN_HASH_MOD_VALUE = 99
TLMCHAN_HASH_BUCKETS = 50

# UDP components
UDP_RECEIVER_MSG_SIZE = 256
UDP_SENDER_MSG_SIZE = 256


def _check_non_negative(config: object) -> None:
    for f in fields(config):
        value = getattr(config, f.name)
        if isinstance(value, int) and not isinstance(value, bool) and value < 0:
            raise ValueError(f"{f.name} must not be negative: {value}")


@dataclass(frozen=True)
class IpConfig:
    """Settings of the IP socket drivers."""

    send_timeout_seconds: int = 1
    send_timeout_microseconds: int = 0
    send_flags: int = 0
    recv_flags: int = 0
    max_iterations: int = 0xFFFF
    retry_interval_ms: int = 1000
    max_hostname_size: int = 256

    def __post_init__(self) -> None:
        _check_non_negative(self)


@dataclass(frozen=True)
class SocketIpConfig:
    """Settings of the socket IP driver component."""

    keepalive_data: str = "sitting well"
    timeout_seconds: int = 1
    timeout_microseconds: int = 0
    send_udp: bool = True
    send_flags: int = 0
    recv_flags: int = 0
    reconnect_automatically: bool = True
    max_send_iterations: int = 0xFFFF
    max_recv_buffer_size: int = 2048
    pre_connection_retry_interval_ms: int = 1000
    max_hostname_size: int = 256

    def __post_init__(self) -> None:
        _check_non_negative(self)


def tlm_hash_slot(channel_id: int) -> int:
    """Return the telemetry database hash slot a channel id lands in."""
    low, high = type_limits("FwChanIdType")
    if not low <= channel_id <= high:
        raise ValueError(f"channel id out of range: {channel_id}")
    return (channel_id % TLMCHAN_HASH_MOD_VALUE) % TLMCHAN_NUM_TLM_HASH_SLOTS