import numpy as np
import pytest

from sysref.camera import (
    CAP_PROP_FRAME_HEIGHT,
    CAP_PROP_FRAME_WIDTH,
    Camera,
    CameraAction,
    ImgResolution,
    RawImageData,
)
from sysref.framework import Buffer, CmdResponse, Event


class FakeCapture:
    def __init__(self, frames=(), opened=True, can_open=True, settable=True):
        self.frames = list(frames)
        self.opened = opened
        self.can_open = can_open
        self.settable = settable
        self.opened_with = []
        self.settings = []

    def isOpened(self):
        return self.opened

    def open(self, index):
        self.opened_with.append(index)
        self.opened = self.can_open

    def read(self):
        if not self.frames:
            return False, None
        return True, self.frames.pop(0)

    def set(self, prop, value):
        self.settings.append((prop, value))
        return self.settable


class Recorder:
    def __init__(self, alloc_size=None):
        self.alloc_size = alloc_size
        self.allocated = []
        self.deallocated = []
        self.processed = []
        self.saved = []
        self.camera = None

    def allocate(self, size):
        self.allocated.append(size)
        n = size if self.alloc_size is None else self.alloc_size
        return Buffer(bytearray(n))


def make_harness(capture, alloc_size=None):
    rec = Recorder(alloc_size)
    rec.camera = Camera(
        "Camera",
        capture,
        allocate=rec.allocate,
        deallocate=rec.deallocated.append,
        process=rec.processed.append,
        save=rec.saved.append,
    )
    return rec


def frame():
    return np.arange(2 * 3 * 3, dtype=np.uint8).reshape(2, 3, 3)


def test_camera_action_save():
    h = make_harness(FakeCapture([frame()]))
    h.camera.take_action(0, 0, CameraAction.SAVE)
    assert h.camera.events == [Event("CameraSave")]
    assert h.camera.telemetry == [("photosTaken", 1)]
    assert h.camera.responses == [(0, 0, CmdResponse.OK)]
    assert len(h.saved) == 1
    assert bytes(h.saved[0].data) == frame().tobytes()


def test_camera_action_process():
    h = make_harness(FakeCapture([frame()]))
    h.camera.take_action(0, 0, CameraAction.PROCESS)
    assert h.camera.events == [Event("CameraProcess")]
    assert h.camera.telemetry == [("photosTaken", 1)]
    assert h.camera.responses == [(0, 0, CmdResponse.OK)]
    assert len(h.processed) == 1
    raw = h.processed[0]
    assert isinstance(raw, RawImageData)
    assert (raw.height, raw.width, raw.pixel_format) == (2, 3, 16)
    assert bytes(raw.img_data.data) == frame().tobytes()


def test_blank_frame():
    h = make_harness(FakeCapture([]))
    h.camera.take_action(0, 0, CameraAction.PROCESS)
    assert h.camera.events == [Event("BlankFrame")]
    assert h.camera.responses == []
    assert h.camera.photos_taken == 0


def test_bad_buffer_raw_img():
    h = make_harness(FakeCapture([frame()]), alloc_size=0)
    h.camera.take_action(0, 0, CameraAction.PROCESS)
    assert h.camera.events == [Event("InvalidBufferSizeError", (0, 18))]
    assert h.allocated == [18]
    assert len(h.deallocated) == 1
    assert h.processed == []
    assert h.camera.responses == []


def test_larger_buffer_is_trimmed_to_image():
    h = make_harness(FakeCapture([frame()]), alloc_size=100)
    h.camera.take_action(3, 7, CameraAction.SAVE)
    assert h.saved[0].size == 18
    assert h.camera.responses == [(3, 7, CmdResponse.OK)]


def test_photo_count_increments():
    h = make_harness(FakeCapture([frame(), frame()]))
    h.camera.take_action(0, 1, CameraAction.SAVE)
    h.camera.take_action(0, 2, CameraAction.SAVE)
    assert h.camera.telemetry == [("photosTaken", 1), ("photosTaken", 2)]


def test_grayscale_pixel_format():
    gray = np.zeros((4, 5), dtype=np.uint8)
    h = make_harness(FakeCapture([gray]))
    h.camera.take_action(0, 0, CameraAction.PROCESS)
    assert h.processed[0].pixel_format == 0


def test_without_capture_counts_pictures():
    camera = Camera("Camera")
    camera.take_action(1, 2, CameraAction.SAVE)
    assert camera.photos_taken == 1
    assert camera.responses == [(1, 2, CmdResponse.OK)]


def test_open_already_open():
    h = make_harness(FakeCapture(opened=True))
    assert h.camera.open() is True
    assert h.camera.events == [Event("CameraAlreadyOpen")]


def test_open_success_and_failure():
    good = make_harness(FakeCapture(opened=False, can_open=True))
    assert good.camera.open(2) is True
    assert good.camera._capture.opened_with == [2]
    assert good.camera.events == []

    bad = make_harness(FakeCapture(opened=False, can_open=False))
    assert bad.camera.open() is False
    assert bad.camera.events == [Event("CameraOpenError")]


def test_config_img_success():
    capture = FakeCapture()
    h = make_harness(capture)
    h.camera.config_img(0, 0, ImgResolution.SIZE_800x600)
    assert capture.settings == [(CAP_PROP_FRAME_WIDTH, 800), (CAP_PROP_FRAME_HEIGHT, 600)]
    assert h.camera.events == [Event("SetImgConfig", (ImgResolution.SIZE_800x600,))]
    assert h.camera.responses == [(0, 0, CmdResponse.OK)]


def test_config_img_failure():
    h = make_harness(FakeCapture(settable=False))
    h.camera.config_img(0, 0, ImgResolution.SIZE_640x480)
    assert h.camera.events == [Event("ImgConfigSetFail", (ImgResolution.SIZE_640x480,))]
    assert h.camera.responses == []


def test_invalid_action_rejected():
    h = make_harness(FakeCapture([frame()]))
    with pytest.raises(ValueError):
        h.camera.take_action(0, 0, 42)