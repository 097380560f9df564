"""Port data types and the event, telemetry and command-response sinks of components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sysref.fpconfig import type_limits


class CmdResponse(Enum):
    """Completion status of a command."""

    OK = 0
    INVALID_OPCODE = 1
    VALIDATION_ERROR = 2
    FORMAT_ERROR = 3
    EXECUTION_ERROR = 4
    BUSY = 5


class SendStatus(Enum):
    """Outcome of handing data to a driver."""

    SEND_OK = 0
    SEND_RETRY = 1
    SEND_ERROR = 2


class RecvStatus(Enum):
    """Outcome of a driver receive."""

    RECV_OK = 0
    RECV_ERROR = 1


class ComSendStatus(Enum):
    """Readiness of a communications link for more data."""

    READY = 0
    FAIL = 1


class I2cStatus(Enum):
    """Outcome of an I2C transaction."""

    I2C_OK = 0
    I2C_ADDRESS_ERR = 1
    I2C_WRITE_ERR = 2
    I2C_READ_ERR = 3
    I2C_OTHER_ERR = 4
    I2C_OPEN_ERR = 5


@dataclass
class Buffer:
    """A block of bytes passed between components, with a user context."""

    data: bytearray = field(default_factory=bytearray)
    context: int = 0

    def __post_init__(self) -> None:
        self.data = bytearray(self.data)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class Event:
    """An event logged by a component."""

    name: str
    args: tuple[Any, ...] = ()


class ComponentBase:
    """Records the events, telemetry and command responses a component emits."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.events: list[Event] = []
        self.telemetry: list[tuple[str, Any]] = []
        self.responses: list[tuple[int, int, CmdResponse]] = []

    def log_event(self, name: str, *args: Any) -> Event:
        """Log an event with its arguments and return it."""
        event = Event(name, tuple(args))
        self.events.append(event)
        return event

    def write_telemetry(self, channel: str, value: Any) -> None:
        """Record a value on a telemetry channel."""
        self.telemetry.append((channel, value))

    def respond(self, opcode: int, cmd_seq: int, response: CmdResponse) -> None:
        """Report the completion of a command."""
        if not isinstance(response, CmdResponse):
            raise TypeError(f"not a command response: {response!r}")
        low, high = type_limits("FwOpcodeType")
        if not low <= opcode <= high:
            raise ValueError(f"opcode out of range: {opcode}")
        low, high = type_limits("U32")
        if not low <= cmd_seq <= high:
            raise ValueError(f"command sequence out of range: {cmd_seq}")
        self.responses.append((opcode, cmd_seq, response))