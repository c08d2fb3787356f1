# =======================================================================================
# keycustody/utils/__init__.py - Utils Package
# =======================================================================================
from .exceptions import *
from .validators import *

__all__ = [
    "KeyCustodyError", "InvalidIdentityTokenError", "KeyRecordNotFoundError",
    "InvalidKeyRecordError", "DuplicateKeyRecordError", "StoreWriteError",
    "ActivityLogWriteError", "CaptureDeviceError", "DeviceBusyError",
    "EmptySelectionError", "IdentityValidator", "KeyRecordValidator",
]
