# =======================================================================================
# keycustody/scanner/base.py - Decode Backend Interface
# =======================================================================================
import io
import logging
from abc import ABC, abstractmethod
from typing import Iterator, List, Optional
from ..models.schemas import DeviceInfo
from ..utils.exceptions import CaptureDeviceError

logger = logging.getLogger(__name__)


class DecodeBackend(ABC):
    """
    A source of decoded barcode text.

    start_capture() opens the device eagerly, raising CaptureDeviceError when
    it cannot, and returns an iterator that yields decoded text until stop()
    is called. Per-frame decode failures never end the iterator.
    """

    name: str = "base"

    @abstractmethod
    def list_devices(self) -> List[DeviceInfo]:
        pass

    @abstractmethod
    def start_capture(self, device: str) -> Iterator[str]:
        pass

    @abstractmethod
    def stop(self):
        pass

    def decode_image(self, data: bytes) -> Optional[str]:
        """Decode the first barcode in a still image, or None when nothing is found."""
        try:
            from PIL import Image, UnidentifiedImageError
            from pyzbar import pyzbar
        except ImportError as e:
            raise CaptureDeviceError(f"Still image decoding requires Pillow and pyzbar ({e})") from e

        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            logger.debug("Unreadable still image: %s", e)
            return None

        for symbol in pyzbar.decode(image.convert("L")):
            text = symbol.data.decode("utf-8", errors="replace").strip()
            if text:
                return text
        return None
