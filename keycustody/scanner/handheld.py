# =======================================================================================
# keycustody/scanner/handheld.py - Vendor Handheld Scanner (serial)
# =======================================================================================
import logging
import threading
from typing import Iterator, List, Optional
import serial
from serial.tools import list_ports
from ..config import config
from ..models.schemas import DeviceInfo
from ..utils.exceptions import CaptureDeviceError
from .base import DecodeBackend

logger = logging.getLogger(__name__)


class HandheldScannerBackend(DecodeBackend):
    """
    Vendor handheld scanner in serial (USB-CDC) mode. The scanner does its own
    decoding and sends one line of text per successful read.
    """

    name = "handheld"

    def __init__(self, baud: Optional[int] = None, timeout: Optional[int] = None):
        self.baud = baud or config.SERIAL_BAUD
        self.timeout = timeout if timeout is not None else config.SERIAL_TIMEOUT
        self._stopped = threading.Event()

    def list_devices(self) -> List[DeviceInfo]:
        return [
            DeviceInfo(id=port.device, label=port.description or port.device)
            for port in list_ports.comports()
        ]

    def start_capture(self, device: str) -> Iterator[str]:
        try:
            port = serial.Serial(device, self.baud, timeout=self.timeout)
        except serial.SerialException as e:
            raise CaptureDeviceError(f"Cannot open scanner on {device}: {e}") from e

        logger.info("Scanner port %s open @ %s", device, self.baud)
        self._stopped.clear()
        return self._lines(port, device)

    def _lines(self, port, device: str) -> Iterator[str]:
        with port:
            while not self._stopped.is_set():
                try:
                    line = port.readline().decode(errors="ignore").strip()
                except serial.SerialException as e:
                    raise CaptureDeviceError(f"Scanner on {device} disconnected: {e}") from e
                if line:
                    yield line
        logger.info("Scanner port %s closed", device)

    def stop(self):
        self._stopped.set()
