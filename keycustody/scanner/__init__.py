# =======================================================================================
# keycustody/scanner/__init__.py - Barcode Capture Package
# =======================================================================================
from .base import DecodeBackend
from .factory import get_decode_backend
from .session import ScanSession

__all__ = ["DecodeBackend", "get_decode_backend", "ScanSession"]
