"""Six-axis IMU component reading accelerometer and gyroscope over I2C."""

from __future__ import annotations

import struct
from enum import Enum, IntEnum
from typing import Callable, Optional

import numpy as np

from sysref.framework import Buffer, CmdResponse, ComponentBase, I2cStatus

I2cPort = Callable[[int, Buffer], I2cStatus]

POWER_MGMT_ADDR = 0x6B
IMU_MAX_DATA_SIZE_BYTES = 6
IMU_REG_SIZE_BYTES = 1
IMU_RAW_ACCEL_ADDR = 0x3B
IMU_RAW_GYRO_ADDR = 0x43
GYRO_CONFIG_ADDR = 0x1B
ACCEL_CONFIG_ADDR = 0x1C
POWER_ON_VALUE = 0
POWER_OFF_VALUE = 0x40
ACCEL_SCALE_FACTOR = 16384.0
GYRO_SCALE_FACTOR = 131.072


class I2cDevAddr(IntEnum):
    """I2C addresses of the device, chosen by the AD0 pin."""

    AD0_0 = 0x68
    AD0_1 = 0x69


class PowerState(Enum):
    """Power state of the device."""

    OFF = 0
    ON = 1


Vector = tuple[float, float, float]


def deserialize_vector(data: bytes, scale_factor: float) -> Vector:
    """Unpack three big-endian signed 16-bit values, each divided by the scale factor.

    The division is done in single precision.
    """
    if len(data) < 6:
        raise ValueError(f"need at least 6 bytes, got {len(data)}")
    scale = np.float32(scale_factor)
    values = struct.unpack(">3h", bytes(data[:6]))
    x, y, z = (float(np.float32(value) / scale) for value in values)
    return (x, y, z)


class Imu(ComponentBase):
    """Reads and telemeters IMU data while powered on."""

    ACCEL_SCALE_FACTOR = ACCEL_SCALE_FACTOR
    GYRO_SCALE_FACTOR = GYRO_SCALE_FACTOR

    def __init__(self, name: str, read: I2cPort, write: I2cPort) -> None:
        super().__init__(name)
        self._read = read
        self._write = write
        self._address: Optional[I2cDevAddr] = None
        self._power = PowerState.OFF

    @property
    def power_state(self) -> PowerState:
        """Current power state of the device."""
        return self._power

    def setup(self, dev_address: I2cDevAddr) -> None:
        """Set the I2C address the device answers on."""
        self._address = I2cDevAddr(dev_address)

    def run(self, context: int = 0) -> None:
        """Read and telemeter accelerometer and gyroscope data if powered on."""
        if self._power is PowerState.ON:
            self._update("accelerometer", IMU_RAW_ACCEL_ADDR, ACCEL_SCALE_FACTOR)
            self._update("gyroscope", IMU_RAW_GYRO_ADDR, GYRO_SCALE_FACTOR)

    def power_switch(self, opcode: int, cmd_seq: int, power_state: PowerState) -> None:
        """Command: turn the device on or off."""
        power_state = PowerState(power_state)
        self._set_power(power_state)
        self.log_event("PowerStatus", power_state)
        self.respond(opcode, cmd_seq, CmdResponse.OK)

    # Helpers

    def _device(self) -> int:
        if self._address is None:
            raise RuntimeError("device address not set up")
        return int(self._address)

    def _write_bytes(self, payload: bytes) -> I2cStatus:
        return self._write(self._device(), Buffer(bytearray(payload)))

    def _read_register_block(self, start_register: int, buffer: Buffer) -> I2cStatus:
        status = self._write_bytes(bytes([start_register]))
        if status is I2cStatus.I2C_OK:
            status = self._read(self._device(), buffer)
        return status

    def _config(self) -> None:
        # Gyro range +-250 deg/s, then accel range +-2g.
        for register in (GYRO_CONFIG_ADDR, ACCEL_CONFIG_ADDR):
            status = self._write_bytes(bytes([register, 0]))
            if status is not I2cStatus.I2C_OK:
                self.log_event("SetUpConfigError", status)

    def _set_power(self, power_state: PowerState) -> None:
        if power_state is self._power:
            return
        value = POWER_ON_VALUE if power_state is PowerState.ON else POWER_OFF_VALUE
        status = self._write_bytes(bytes([POWER_MGMT_ADDR, value]))
        if status is not I2cStatus.I2C_OK:
            self.log_event("PowerModeError", status)
            return
        self._power = power_state
        if self._power is PowerState.ON:
            self._config()

    def _update(self, channel: str, register: int, scale_factor: float) -> None:
        buffer = Buffer(bytearray(IMU_MAX_DATA_SIZE_BYTES))
        status = self._read_register_block(register, buffer)
        if status is I2cStatus.I2C_OK and buffer.size == IMU_MAX_DATA_SIZE_BYTES:
            self.write_telemetry(channel, deserialize_vector(buffer.data, scale_factor))
        else:
            self.log_event("TelemetryError", status)