"""Camera component: captures frames and hands them on for saving or processing."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

import numpy as np

from sysref.framework import Buffer, CmdResponse, ComponentBase

# Capture property identifiers understood by video-capture objects.
CAP_PROP_FRAME_WIDTH = 3
CAP_PROP_FRAME_HEIGHT = 4

# Element depth codes of the pixel-format value carried with raw images.
DEPTH_CODES: dict[np.dtype, int] = {
    np.dtype(np.uint8): 0,
    np.dtype(np.int8): 1,
    np.dtype(np.uint16): 2,
    np.dtype(np.int16): 3,
    np.dtype(np.int32): 4,
    np.dtype(np.float32): 5,
    np.dtype(np.float64): 6,
}


class CameraAction(Enum):
    """What to do with a captured frame."""

    PROCESS = 0
    SAVE = 1


class ImgResolution(Enum):
    """Frame resolutions the camera can be set to, as (width, height)."""

    SIZE_640x480 = (640, 480)
    SIZE_800x600 = (800, 600)

    @property
    def width(self) -> int:
        return self.value[0]

    @property
    def height(self) -> int:
        return self.value[1]


@dataclass
class RawImageData:
    """An uncompressed frame: its size, pixel format and pixel bytes."""

    height: int
    width: int
    pixel_format: int
    img_data: Buffer


def _channels(frame: np.ndarray) -> int:
    return frame.shape[2] if frame.ndim == 3 else 1


def _pixel_format(frame: np.ndarray) -> int:
    try:
        depth = DEPTH_CODES[frame.dtype]
    except KeyError:
        raise ValueError(f"unsupported pixel type: {frame.dtype}") from None
    return depth + (_channels(frame) - 1) * 8


class Camera(ComponentBase):
    """Takes pictures through a video-capture object.

    The capture object is duck-typed: ``isOpened()``, ``open(index)``,
    ``read() -> (ok, frame)`` and ``set(prop, value) -> bool``. Without one
    the camera only counts the pictures it is commanded to take.
    """

    def __init__(
        self,
        name: str,
        capture: Any = None,
        allocate: Optional[Callable[[int], Buffer]] = None,
        deallocate: Optional[Callable[[Buffer], None]] = None,
        process: Optional[Callable[[RawImageData], None]] = None,
        save: Optional[Callable[[Buffer], None]] = None,
    ) -> None:
        super().__init__(name)
        self._capture = capture
        self._allocate = allocate or (lambda size: Buffer(bytearray(size)))
        self._deallocate = deallocate
        self._process = process
        self._save = save
        self._photo_count = 0

    @property
    def photos_taken(self) -> int:
        """Number of pictures taken so far."""
        return self._photo_count

    def open(self, device_index: int = 0) -> bool:
        """Open the capture device; return whether it is open."""
        if self._capture is None:
            return True
        if self._capture.isOpened():
            self.log_event("CameraAlreadyOpen")
            return True
        self._capture.open(device_index)
        if not self._capture.isOpened():
            self.log_event("CameraOpenError")
            return False
        return True

    def take_action(self, opcode: int, cmd_seq: int, action: CameraAction) -> None:
        """Command: take a picture and either save or process it."""
        action = CameraAction(action)
        if self._capture is not None and not self._capture_frame(action):
            return
        self._photo_count += 1
        self.write_telemetry("photosTaken", self._photo_count)
        self.respond(opcode, cmd_seq, CmdResponse.OK)

    def config_img(self, opcode: int, cmd_seq: int, resolution: ImgResolution) -> None:
        """Command: set the resolution of captured frames."""
        resolution = ImgResolution(resolution)
        if self._capture is not None:
            width_ok = self._capture.set(CAP_PROP_FRAME_WIDTH, resolution.width)
            height_ok = self._capture.set(CAP_PROP_FRAME_HEIGHT, resolution.height)
            if not width_ok or not height_ok:
                self.log_event("ImgConfigSetFail", resolution)
                return
        self.log_event("SetImgConfig", resolution)
        self.respond(opcode, cmd_seq, CmdResponse.OK)

    def _capture_frame(self, action: CameraAction) -> bool:
        _, frame = self._capture.read()
        if frame is None or np.asarray(frame).size == 0:
            self.log_event("BlankFrame")
            return False
        frame = np.ascontiguousarray(frame)
        img_size = frame.nbytes
        buffer = self._allocate(img_size)
        if buffer.size < img_size:
            self.log_event("InvalidBufferSizeError", buffer.size, img_size)
            if self._deallocate is not None:
                self._deallocate(buffer)
            return False
        buffer.data[:img_size] = frame.tobytes()
        del buffer.data[img_size:]

        if action is CameraAction.PROCESS:
            raw = RawImageData(
                height=frame.shape[0],
                width=frame.shape[1],
                pixel_format=_pixel_format(frame),
                img_data=buffer,
            )
            self.log_event("CameraProcess")
            if self._process is not None:
                self._process(raw)
        else:
            if self._save is not None:
                self._save(buffer)
            self.log_event("CameraSave")
        return True