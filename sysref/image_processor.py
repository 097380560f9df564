"""Image processor component: encodes raw frames as PNG or JPEG."""

from __future__ import annotations

import io
from enum import Enum
from typing import Callable, Optional

import numpy as np
from PIL import Image

from sysref.camera import DEPTH_CODES, RawImageData
from sysref.framework import Buffer, CmdResponse, ComponentBase

BUFFER_SIZE = 10 * 1024 * 1024

_DTYPES = {code: dtype for dtype, code in DEPTH_CODES.items()}


class FileFormat(Enum):
    """File formats frames can be encoded to, by extension."""

    JPG = ".jpg"
    PNG = ".png"

    @property
    def pil_format(self) -> str:
        return "JPEG" if self is FileFormat.JPG else "PNG"


def _to_image(raw: RawImageData) -> Image.Image:
    """Build an image from raw pixel bytes; missing bytes read as zero."""
    depth = raw.pixel_format & 7
    channels = (raw.pixel_format >> 3) + 1
    try:
        dtype = _DTYPES[depth]
    except KeyError:
        raise ValueError(f"unsupported pixel format: {raw.pixel_format}") from None
    need = raw.height * raw.width * channels * dtype.itemsize
    data = bytes(raw.img_data.data[:need]).ljust(need, b"\0")
    pixels = np.frombuffer(data, dtype=dtype).reshape(raw.height, raw.width, channels)
    if dtype == np.int8:
        pixels = pixels.view(np.uint8)
    if pixels.dtype == np.uint8:
        if channels == 1:
            return Image.fromarray(np.ascontiguousarray(pixels[:, :, 0]))
        if channels == 3:
            return Image.fromarray(np.ascontiguousarray(pixels[:, :, ::-1]))
        if channels == 4:
            return Image.fromarray(np.ascontiguousarray(pixels[:, :, [2, 1, 0, 3]]))
    if pixels.dtype == np.uint16 and channels == 1:
        return Image.fromarray(np.ascontiguousarray(pixels[:, :, 0]))
    raise ValueError(f"unsupported pixel format: {raw.pixel_format}")


def _encode(image: Image.Image, file_format: FileFormat) -> bytes:
    if file_format is FileFormat.JPG:
        if image.mode == "I;16":
            image = Image.fromarray((np.asarray(image) >> 8).astype(np.uint8))
        elif image.mode == "RGBA":
            image = image.convert("RGB")
    out = io.BytesIO()
    image.save(out, format=file_format.pil_format)
    return out.getvalue()


class ImageProcessor(ComponentBase):
    """Encodes raw frames in the selected file format and passes them on."""

    def __init__(
        self,
        name: str,
        buffer_allocate: Optional[Callable[[int], Buffer]] = None,
        buffer_deallocate: Optional[Callable[[Buffer], None]] = None,
        post_process: Optional[Callable[[Buffer], None]] = None,
    ) -> None:
        super().__init__(name)
        self._allocate = buffer_allocate or (lambda size: Buffer(bytearray(size)))
        self._deallocate = buffer_deallocate
        self._post_process = post_process
        self._file_format = FileFormat.PNG

    @property
    def file_format(self) -> FileFormat:
        """Format frames are currently encoded to."""
        return self._file_format

    def image_data(self, image: RawImageData) -> None:
        """Encode a raw frame and send the result on; the raw buffer is released."""
        if image.height == 0 or image.width == 0:
            self._release(image.img_data)
            self.log_event("NoImgData")
            return
        encoded = _encode(_to_image(image), self._file_format)
        out = self._allocate(len(encoded))
        if out.size == 0:
            self.log_event("BadBufferSize", out.size, len(encoded))
            self._release(image.img_data)
            return
        if out.size < len(encoded):
            raise AssertionError(f"encode buffer too small: {out.size} < {len(encoded)}")
        out.data[: len(encoded)] = encoded
        del out.data[len(encoded):]
        if self._post_process is not None:
            self._post_process(out)
        self._release(image.img_data)

    def set_format(self, opcode: int, cmd_seq: int, file_format: FileFormat) -> None:
        """Command: choose the format frames are encoded to."""
        file_format = FileFormat(file_format)
        self._file_format = file_format
        self.log_event("SetFileFormat", file_format)
        self.respond(opcode, cmd_seq, CmdResponse.OK)

    def _release(self, buffer: Buffer) -> None:
        if self._deallocate is not None:
            self._deallocate(buffer)