"""Topology construction state and health ping thresholds."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from sysref.fpconfig import type_limits


@dataclass(frozen=True)
class TopologyState:
    """Settings the topology is built with: ground host and port."""

    host_name: str | None = ""
    port_number: int = 0

    def __post_init__(self) -> None:
        low, high = type_limits("U32")
        if not low <= self.port_number <= high:
            raise ValueError(f"port number out of range: {self.port_number}")


@dataclass(frozen=True)
class PingEntry:
    """Health ping thresholds: missed pings before a warning and a fatal."""

    warn: int = 3
    fatal: int = 5


_COMPONENTS = (
    "blockDrv",
    "chanTlm",
    "cmdDisp",
    "cmdSeq",
    "eventLogger",
    "fileDownlink",
    "fileManager",
    "fileUplink",
    "prmDb",
    "rateGroup1Comp",
    "rateGroup2Comp",
    "rateGroup3Comp",
    "saveImageBufferLogger",
    "imageProcessor",
    "processedImageBufferLogger",
)

PING_ENTRIES = MappingProxyType({name: PingEntry(warn=3, fatal=5) for name in _COMPONENTS})


def ping_entry(name: str) -> PingEntry:
    """Return the ping thresholds of the named component instance."""
    try:
        return PING_ENTRIES[name]
    except KeyError:
        raise KeyError(f"no ping entry for component: {name!r}") from None