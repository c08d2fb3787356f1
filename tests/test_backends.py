import pytest
import serial
from keycustody.scanner import camera, handheld
from keycustody.scanner.camera import CameraDecodeBackend
from keycustody.scanner.factory import get_decode_backend
from keycustody.scanner.handheld import HandheldScannerBackend
from keycustody.utils.exceptions import CaptureDeviceError


class FakePort:
    def __init__(self, backend, lines):
        self.backend = backend
        self.lines = list(lines)
        self.closed = False

    def readline(self):
        if not self.lines:
            self.backend.stop()
            return b""
        return self.lines.pop(0)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True


def test_factory_selects_backend():
    assert isinstance(get_decode_backend("camera"), CameraDecodeBackend)
    assert isinstance(get_decode_backend("HANDHELD"), HandheldScannerBackend)
    with pytest.raises(ValueError):
        get_decode_backend("laser")


def test_handheld_yields_one_scan_per_line(monkeypatch):
    backend = HandheldScannerBackend(baud=9600, timeout=0)
    ports = []

    def open_port(device, baud, timeout):
        ports.append(FakePort(backend, [b"S1234567A\r\n", b"\r\n", b"A-OFC1-03\n"]))
        return ports[-1]

    monkeypatch.setattr(handheld.serial, "Serial", open_port)
    assert list(backend.start_capture("/dev/ttyACM0")) == ["S1234567A", "A-OFC1-03"]
    assert ports[0].closed


def test_handheld_open_failure(monkeypatch):
    def open_port(device, baud, timeout):
        raise serial.SerialException("no such port")

    monkeypatch.setattr(handheld.serial, "Serial", open_port)
    with pytest.raises(CaptureDeviceError):
        HandheldScannerBackend().start_capture("/dev/missing")


class FakeCapture:
    def __init__(self, frames):
        self.frames = list(frames)
        self.released = False

    def isOpened(self):
        return True

    def read(self):
        if not self.frames:
            return False, None
        return True, self.frames.pop(0)

    def release(self):
        self.released = True


class FakeCv2:
    COLOR_BGR2GRAY = 6

    def __init__(self, capture):
        self.capture = capture

    def VideoCapture(self, source):
        return self.capture

    def cvtColor(self, frame, code):
        return frame


class FakeSymbol:
    def __init__(self, text):
        self.data = text.encode()


class FakePyzbar:
    @staticmethod
    def decode(frame):
        if frame == "corrupt":
            raise RuntimeError("bad frame")
        return [FakeSymbol(frame)]


def _camera(monkeypatch, frames, **kwargs):
    capture = FakeCapture(frames)
    monkeypatch.setattr(camera, "_camera_deps", lambda: (FakeCv2(capture), FakePyzbar))
    return CameraDecodeBackend(probe_limit=1, frame_interval=0, **kwargs), capture


def test_camera_skips_undecodable_frames(monkeypatch):
    backend, capture = _camera(monkeypatch, ["corrupt", "A-OFC1-03"])
    stream = backend.start_capture("0")
    assert next(stream) == "A-OFC1-03"

    backend.stop()
    assert list(stream) == []
    assert capture.released


def test_camera_gives_up_after_repeated_read_failures(monkeypatch):
    backend, capture = _camera(monkeypatch, [], max_read_failures=3)
    with pytest.raises(CaptureDeviceError):
        list(backend.start_capture("0"))
    assert capture.released
