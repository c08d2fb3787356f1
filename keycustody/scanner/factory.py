# =======================================================================================
# keycustody/scanner/factory.py - Decode Backend Selection
# =======================================================================================
from typing import Optional
from ..config import config
from .base import DecodeBackend
from .camera import CameraDecodeBackend
from .handheld import HandheldScannerBackend


def get_decode_backend(name: Optional[str] = None) -> DecodeBackend:
    name = (name or config.SCANNER_BACKEND).strip().lower()
    if name == "handheld":
        return HandheldScannerBackend()
    if name == "camera":
        return CameraDecodeBackend()
    raise ValueError(f"Unknown scanner backend: {name}")
