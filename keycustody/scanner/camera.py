# =======================================================================================
# keycustody/scanner/camera.py - Local Camera Frame Decoding
# =======================================================================================
import logging
import threading
import time
from typing import Iterator, List, Optional
from ..config import config
from ..models.schemas import DeviceInfo
from ..utils.exceptions import CaptureDeviceError
from .base import DecodeBackend

logger = logging.getLogger(__name__)


def _camera_deps():
    """OpenCV and pyzbar are only loaded when a camera is actually used."""
    try:
        import cv2
        from pyzbar import pyzbar
    except ImportError as e:
        raise CaptureDeviceError(
            f"Camera capture requires opencv-python and pyzbar ({e})"
        ) from e
    return cv2, pyzbar


def _device_source(device: str):
    return int(device) if device.isdigit() else device


class CameraDecodeBackend(DecodeBackend):
    """Reads frames from a local video device and decodes them with pyzbar."""

    name = "camera"

    def __init__(self, probe_limit: Optional[int] = None, frame_interval: float = 0.03,
                 max_read_failures: int = 50):
        self.probe_limit = probe_limit if probe_limit is not None else config.CAMERA_PROBE_LIMIT
        self.frame_interval = frame_interval
        self.max_read_failures = max_read_failures
        self._stopped = threading.Event()

    def list_devices(self) -> List[DeviceInfo]:
        cv2, _ = _camera_deps()
        devices: List[DeviceInfo] = []
        for index in range(self.probe_limit):
            capture = cv2.VideoCapture(index)
            try:
                if capture.isOpened():
                    devices.append(DeviceInfo(id=str(index), label=f"Camera {index}"))
            finally:
                capture.release()
        return devices

    def start_capture(self, device: str) -> Iterator[str]:
        cv2, pyzbar = _camera_deps()
        capture = cv2.VideoCapture(_device_source(device))
        if not capture.isOpened():
            capture.release()
            raise CaptureDeviceError(f"Cannot open camera device {device}")

        logger.info("Camera %s opened", device)
        self._stopped.clear()
        return self._frames(cv2, pyzbar, capture, device)

    def _frames(self, cv2, pyzbar, capture, device: str) -> Iterator[str]:
        failures = 0
        try:
            while not self._stopped.is_set():
                ok, frame = capture.read()
                if not ok:
                    failures += 1
                    if failures >= self.max_read_failures:
                        raise CaptureDeviceError(f"Camera {device} stopped delivering frames")
                    time.sleep(self.frame_interval)
                    continue
                failures = 0

                decoded: List[str] = []
                try:
                    gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
                    for symbol in pyzbar.decode(gray):
                        decoded.append(symbol.data.decode("utf-8", errors="replace"))
                except Exception as e:
                    # a bad frame is not a failed scan
                    logger.debug("Frame decode error on camera %s: %s", device, e)

                for text in decoded:
                    yield text
                time.sleep(self.frame_interval)
        finally:
            capture.release()
            logger.info("Camera %s released", device)

    def stop(self):
        self._stopped.set()
