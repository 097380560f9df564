"""XBee radio component: passes data through and runs AT command-mode exchanges."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Callable, Optional

from sysref.framework import (
    Buffer,
    CmdResponse,
    ComponentBase,
    ComSendStatus,
    RecvStatus,
    SendStatus,
)
from sysref.fpconfig import FW_LOG_STRING_MAX_SIZE


class ComState(IntEnum):
    """States of the exchange with the radio.

    Data is sent only in PASSTHROUGH; ERROR_TIMEOUT waits for the command-mode timeout.
    """

    ERROR_TIMEOUT = -1
    QUIET_RADIO = 0
    AWAIT_COMMAND_MODE = 1
    AWAIT_COMMAND_RESPONSE = 2
    AWAIT_PASSTHROUGH = 3
    PASSTHROUGH = 4


class ProcessResponse(Enum):
    """Result of processing received command-mode data."""

    PROCESSED_GOOD = 0
    PROCESSED_ERROR = 1
    MORE_NEEDED = 2


@dataclass(frozen=True)
class RadioCommand:
    """An AT command: its text, length and maximum response length."""

    command: bytes
    length: int
    response_length: int


ENTER_COMMAND_MODE = RadioCommand(b"+++", 3, 2)
NODE_IDENTIFIER = RadioCommand(b"ATNI\r", 5, 20)
ENERGY_DENSITY = RadioCommand(b"ATED\r", 5, 3 * 16)
EXIT_COMMAND_MODE = RadioCommand(b"ATCN\r", 5, 2)

ENERGY_DENSITY_SIZE = 16


def _convert_char(value: int) -> int:
    """Convert an ASCII hex digit to its value, wrapping as an unsigned byte."""
    if value >= ord("A"):
        return (value - ord("A") + 0x0A) & 0xFF
    return (value - ord("0")) & 0xFF


def _default_allocate(size: int) -> Buffer:
    return Buffer(bytearray(size))


class XBee(ComponentBase):
    """Drives an XBee radio over a byte driver."""

    RETRY_LIMIT = 10
    QUIESCENT_TIME_MS = 1000
    MAX_COMMAND_DATA = 48
    TIMEOUT_TICKS_1HZ = 10
    QUIET_TICKS_1HZ = QUIESCENT_TIME_MS // 1000 + 1

    ENTER_COMMAND_MODE = ENTER_COMMAND_MODE
    NODE_IDENTIFIER = NODE_IDENTIFIER
    ENERGY_DENSITY = ENERGY_DENSITY
    EXIT_COMMAND_MODE = EXIT_COMMAND_MODE

    def __init__(
        self,
        name: str,
        drv_data_out: Callable[[Buffer], SendStatus],
        allocate: Optional[Callable[[int], Buffer]] = None,
        deallocate: Optional[Callable[[Buffer], None]] = None,
        com_data_out: Optional[Callable[[Buffer, RecvStatus], None]] = None,
        com_status: Optional[Callable[[ComSendStatus], None]] = None,
    ) -> None:
        super().__init__(name)
        self._drv_data_out = drv_data_out
        self._allocate = allocate or _default_allocate
        self._deallocate = deallocate
        self._com_data_out = com_data_out
        self._com_status = com_status
        self._capacity = self.MAX_COMMAND_DATA + 1
        self._circular = bytearray()
        self._lock = threading.RLock()
        self._state = ComState.PASSTHROUGH
        self._current: Optional[RadioCommand] = None
        self._opcode = 0
        self._cmd_seq = 0
        self._timeout_count = 0
        self._reinit = True

    @property
    def state(self) -> ComState:
        """Current state of the radio exchange."""
        with self._lock:
            return self._state

    # Port handlers

    def drv_connected(self) -> None:
        """Handle the driver reporting a connection."""
        self._report_ready()

    def drv_data_in(self, buffer: Buffer, status: RecvStatus) -> None:
        """Handle data received from the driver."""
        with self._lock:
            current = self._state
        processing = current not in (
            ComState.PASSTHROUGH,
            ComState.ERROR_TIMEOUT,
            ComState.QUIET_RADIO,
        )
        if status is RecvStatus.RECV_OK and processing:
            self._store(bytes(buffer.data))
            self._release(buffer)
            self._state_machine()
        elif current in (ComState.PASSTHROUGH, ComState.QUIET_RADIO):
            if self._com_data_out is not None:
                self._com_data_out(buffer, status)
        else:
            self._release(buffer)

    def com_data_in(self, buffer: Buffer) -> SendStatus:
        """Send data out the radio; only possible while passing data through."""
        radio_ready = ComSendStatus.FAIL
        with self._lock:
            if self._state is ComState.PASSTHROUGH:
                driver_status = self._send_with_retry(buffer)
                radio_ready = (
                    ComSendStatus.READY if driver_status is SendStatus.SEND_OK else ComSendStatus.FAIL
                )
            else:
                self._reinit = True
        if self._com_status is not None:
            self._com_status(radio_ready)
        return SendStatus.SEND_OK

    def run(self, context: int = 0) -> None:
        """Advance the 1 Hz command-mode timers."""
        with self._lock:
            if self._state is ComState.PASSTHROUGH:
                return
            self._timeout_count += 1
            if self._timeout_count > self.QUIET_TICKS_1HZ and self._state is ComState.QUIET_RADIO:
                self._initiate_command()
            elif self._timeout_count > self.TIMEOUT_TICKS_1HZ:
                self._deinitiate_command(CmdResponse.EXECUTION_ERROR)
                self._state = ComState.PASSTHROUGH

    # Commands

    def report_node_identifier(self, opcode: int, cmd_seq: int) -> None:
        """Ask the radio for its node identifier."""
        with self._lock:
            self._stage_command(NODE_IDENTIFIER, opcode, cmd_seq)

    def energy_density_scan(self, opcode: int, cmd_seq: int) -> None:
        """Ask the radio for the energy density of each channel."""
        with self._lock:
            self._stage_command(ENERGY_DENSITY, opcode, cmd_seq)

    # Helpers

    def _release(self, buffer: Buffer) -> None:
        if self._deallocate is not None:
            self._deallocate(buffer)

    def _store(self, data: bytes) -> None:
        # Data that does not fit is dropped whole.
        if len(self._circular) + len(data) <= self._capacity:
            self._circular.extend(data)

    def _send_with_retry(self, buffer: Buffer) -> SendStatus:
        status = SendStatus.SEND_RETRY
        for _ in range(self.RETRY_LIMIT):
            status = self._drv_data_out(buffer)
            if status is not SendStatus.SEND_RETRY:
                break
        return status

    def _stage_command(self, command: RadioCommand, opcode: int, cmd_seq: int) -> None:
        if self._current is not None or self._state is not ComState.PASSTHROUGH:
            self.respond(opcode, cmd_seq, CmdResponse.BUSY)
            return
        self._state = ComState.QUIET_RADIO
        self._opcode = opcode
        self._cmd_seq = cmd_seq
        self._current = command

    def _initiate_command(self) -> None:
        if self._send_radio_command(ENTER_COMMAND_MODE):
            self._state = ComState.AWAIT_COMMAND_MODE
        else:
            self._deinitiate_command(CmdResponse.EXECUTION_ERROR)

    def _deinitiate_command(self, response: CmdResponse) -> bool:
        self._report_ready()
        self.respond(self._opcode, self._cmd_seq, response)
        self._current = None
        self._timeout_count = 0
        self._opcode = 0
        self._cmd_seq = 0
        return True

    def _send_radio_command(self, command: RadioCommand) -> bool:
        driver_status = SendStatus.SEND_RETRY
        buffer = self._allocate(command.length)
        fits = buffer.size >= command.length
        if fits:
            buffer.data[: command.length] = command.command[: command.length]
            driver_status = self._send_with_retry(buffer)
        if driver_status is not SendStatus.SEND_OK:
            self._timeout_count = 0
        return fits and driver_status is SendStatus.SEND_OK

    def _state_machine(self) -> None:
        with self._lock:
            response = self._process_response()
            if response is ProcessResponse.PROCESSED_ERROR:
                self._state = ComState.ERROR_TIMEOUT
                return
            if response is not ProcessResponse.PROCESSED_GOOD:
                return
            if self._state is ComState.AWAIT_COMMAND_MODE:
                if self._current is None:
                    raise AssertionError("no staged command in command mode")
                success = self._send_radio_command(self._current)
            elif self._state is ComState.AWAIT_COMMAND_RESPONSE:
                success = self._send_radio_command(EXIT_COMMAND_MODE)
            elif self._state is ComState.AWAIT_PASSTHROUGH:
                success = self._deinitiate_command(CmdResponse.OK)
            else:
                raise AssertionError(f"unexpected state: {self._state!r}")
            self._state = ComState(self._state + 1) if success else ComState.ERROR_TIMEOUT

    def _report_ready(self) -> None:
        if self._reinit:
            if self._com_status is not None:
                self._com_status(ComSendStatus.READY)
            self._reinit = False

    def _process_response(self) -> ProcessResponse:
        response = ProcessResponse.MORE_NEEDED
        if self._circular and self._circular[-1] == ord("\r"):
            if self._state is not ComState.AWAIT_COMMAND_RESPONSE:
                response = self._process_ok_or_error()
            elif self._current is NODE_IDENTIFIER:
                response = self._process_node_identifier()
            elif self._current is ENERGY_DENSITY:
                response = self._process_energy_density()
            self._circular.clear()
        return response

    def _process_ok_or_error(self) -> ProcessResponse:
        if bytes(self._circular[-3:]) == b"OK\r":
            return ProcessResponse.PROCESSED_GOOD
        return ProcessResponse.PROCESSED_ERROR

    def _process_node_identifier(self) -> ProcessResponse:
        assert self._current is not None
        peek_size = min(FW_LOG_STRING_MAX_SIZE, self._current.response_length + 1, len(self._circular))
        raw = bytes(self._circular[len(self._circular) - peek_size :])[:-1]
        identifier = raw.split(b"\0", 1)[0].decode("ascii", errors="replace")
        self.log_event("RadioNodeIdentifier", identifier)
        return ProcessResponse.PROCESSED_GOOD

    def _process_energy_density(self) -> ProcessResponse:
        density: list[int] = []
        data = bytes(self._circular)
        for offset in range(0, ENERGY_DENSITY_SIZE * 3, 3):
            reading = data[offset : offset + 3]
            if len(reading) < 3 or reading[2] != ord(","):
                return ProcessResponse.PROCESSED_ERROR
            density.append(((_convert_char(reading[0]) << 4) | _convert_char(reading[1])) & 0xFF)
        self.write_telemetry("EnergyDensity", density)
        return ProcessResponse.PROCESSED_GOOD