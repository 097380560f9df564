# sysref

Components for a small spacecraft-style system: a radio link manager, an
inertial measurement unit reader, a camera front end and an image encoder.
Each component is wired to the outside world through plain callables. Drivers,
buffer pools and downstream consumers can therefore be real code or test
doubles. Every component records what it reports, so you can read it back:
`events`, `telemetry` and command `responses`.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

- `sysref.fpconfig` holds the framework-wide settings. It has the `TimeBase`
  enum and the `FW_*` constants. `type_limits(type_name)` returns the
  `(min, max)` of an integer type such as `"U16"`, `"I32"` or
  `"FwOpcodeType"`. `buffer_max_size(kind)` returns the largest size of a
  buffer for `"com"`, `"cmd"`, `"log"`, `"tlm"`, `"param"` or `"file"`. An
  unknown name raises `ValueError`.
- `sysref.component_config` holds the service settings. It has the
  `EventFilterDefaults`, `IpConfig` and `SocketIpConfig` frozen dataclasses, which
  reject negative integers. It also has constants for the logger, rate group,
  buffer manager, dispatcher, deframer, file downlink, parameter database and
  UDP components. `tlm_hash_slot(channel_id)` gives the slot of a channel in
  the telemetry table.
- `sysref.topology` has `TopologyState`, the ground host name and port. The port
  is checked against the `U32` range. `ping_entry(name)` returns the
  `PingEntry` warn and fatal thresholds of a component instance, such as
  `"cmdDisp"` or `"imageProcessor"`.
- `sysref.framework` holds the shared types:
  - `Buffer`, which wraps a `bytearray` with a `size` and a `context`.
  - `Event`.
  - The status enums `CmdResponse`, `SendStatus`, `RecvStatus`,
    `ComSendStatus` and `I2cStatus`.
  - `ComponentBase`, with `log_event`, `write_telemetry` and `respond`.
- `sysref.xbee` has `XBee`. It passes frames through to the radio and retries
  a send up to `RETRY_LIMIT` times. On command it enters AT command mode to
  read the node identifier or run an energy-density scan. Its `state` is a
  `ComState`.
- `sysref.imu` has `Imu`. It powers an MPU-6050-class sensor over I2C,
  configures it and turns register blocks into scaled accelerometer and
  gyroscope vectors. `deserialize_vector(data, scale_factor)` does this
  scaling.
- `sysref.camera` has `Camera`. It reads a frame from a capture object and
  either saves it or hands it on as `RawImageData` for processing. It also sets
  the frame resolution (`ImgResolution`).
- `sysref.image_processor` has `ImageProcessor`. It encodes raw frames as PNG
  or JPEG (`FileFormat`) with Pillow and posts the encoded bytes onward.

## Examples

### Radio command mode

```python
from sysref.framework import Buffer, RecvStatus, SendStatus
from sysref.xbee import XBee

sent = []

def driver(buffer):
    sent.append(bytes(buffer.data))
    return SendStatus.SEND_OK

radio = XBee("radio", drv_data_out=driver, com_status=lambda s: print("link:", s))
radio.drv_connected()                    # link: ComSendStatus.READY
radio.com_data_in(Buffer(b"hello"))      # link: ComSendStatus.READY

radio.report_node_identifier(opcode=0x100, cmd_seq=1)
for _ in range(3):                       # quiet the radio, then send "+++"
    radio.run()
radio.drv_data_in(Buffer(b"OK\r"), RecvStatus.RECV_OK)         # sends ATNI
radio.drv_data_in(Buffer(b"radio-one\r"), RecvStatus.RECV_OK)  # sends ATCN
radio.drv_data_in(Buffer(b"OK\r"), RecvStatus.RECV_OK)         # back to passthrough

print(sent)             # [b'hello', b'+++', b'ATNI\r', b'ATCN\r']
print(radio.events)     # [Event(name='RadioNodeIdentifier', args=('radio-one',))]
print(radio.responses)  # [(256, 1, <CmdResponse.OK: 0>)]
```

### IMU sampling

```python
from sysref.framework import I2cStatus
from sysref.imu import I2cDevAddr, Imu, PowerState

def write(address, buffer):
    return I2cStatus.I2C_OK

def read(address, buffer):
    buffer.data[:] = bytes([0x40, 0x00, 0x00, 0x00, 0xC0, 0x00])
    return I2cStatus.I2C_OK

imu = Imu("imu", read=read, write=write)
imu.setup(I2cDevAddr.AD0_0)
imu.power_switch(1, 1, PowerState.ON)
imu.run()
print(imu.telemetry[0])  # ('accelerometer', (1.0, 0.0, -1.0))
```

### Encoding a frame

```python
import numpy as np
from sysref.camera import RawImageData
from sysref.framework import Buffer
from sysref.image_processor import FileFormat, ImageProcessor

encoded = []
processor = ImageProcessor("proc", post_process=encoded.append)
processor.set_format(1, 1, FileFormat.JPG)

frame = np.zeros((480, 640, 3), dtype=np.uint8)  # 8-bit, 3 channels, BGR order
processor.image_data(RawImageData(480, 640, 16, Buffer(frame.tobytes())))
print(bytes(encoded[0].data[:3]))  # b'\xff\xd8\xff'
```

`pixel_format` encodes the element depth (0 for `uint8`) plus 8 for each
channel after the first.

## What the package does not do

The package provides components only. It has no command-line program and no
topology that connects the components and drives them from a clock. It has no
drivers either: no serial or socket link for the radio, no I2C bus for the IMU
and no video device access. You supply these as callables.

`Camera` only reads frames from a capture object you pass in. That object must
provide `isOpened()`, `open(index)`, `read() -> (ok, frame)` and
`set(prop, value)`. Without one, `Camera` just counts the pictures it is
commanded to take.