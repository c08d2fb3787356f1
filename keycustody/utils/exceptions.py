# =======================================================================================
# keycustody/utils/exceptions.py - Custom Exceptions
# =======================================================================================
class KeyCustodyError(Exception):
    """Base exception for the key custody system."""
    pass

class InvalidIdentityTokenError(KeyCustodyError):
    """Raised when a scanned identity token does not match the expected format."""
    pass

class KeyRecordNotFoundError(KeyCustodyError):
    """Raised when no key record matches a scanned barcode or id."""
    pass

class InvalidKeyRecordError(KeyCustodyError):
    """Raised when registration input is incomplete or unusable."""
    pass

class DuplicateKeyRecordError(KeyCustodyError):
    """Raised when a barcode code is already registered."""
    pass

class StoreWriteError(KeyCustodyError):
    """Raised when the backing store rejects a write."""
    pass

class ActivityLogWriteError(StoreWriteError):
    """Raised when the key record was updated but its activity log entry was not written."""

    def __init__(self, message: str, record_id: str):
        super().__init__(message)
        self.record_id = record_id

class CaptureDeviceError(KeyCustodyError):
    """Raised when a capture device cannot be listed, opened or read."""
    pass

class DeviceBusyError(CaptureDeviceError):
    """Raised when a capture device is already held by another decode loop."""
    pass

class EmptySelectionError(KeyCustodyError):
    """Raised when printing is requested for no records."""
    pass
