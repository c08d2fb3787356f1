# =======================================================================================
# keycustody/api/errors.py - Exception to HTTP Status Translation
# =======================================================================================
import logging
from fastapi import HTTPException
from ..utils.exceptions import (
    ActivityLogWriteError, CaptureDeviceError, DeviceBusyError, DuplicateKeyRecordError,
    EmptySelectionError, InvalidIdentityTokenError, InvalidKeyRecordError, KeyCustodyError,
    KeyRecordNotFoundError, StoreWriteError,
)

logger = logging.getLogger(__name__)

# most specific first
STATUS_CODES = (
    (InvalidIdentityTokenError, 422),
    (InvalidKeyRecordError, 422),
    (EmptySelectionError, 400),
    (KeyRecordNotFoundError, 404),
    (DuplicateKeyRecordError, 409),
    (DeviceBusyError, 409),
    (CaptureDeviceError, 503),
    (ActivityLogWriteError, 502),
    (StoreWriteError, 502),
)


def to_http_exception(error: KeyCustodyError) -> HTTPException:
    for error_type, status_code in STATUS_CODES:
        if isinstance(error, error_type):
            break
    else:
        status_code = 500
    if status_code >= 500:
        logger.error("Request failed: %s", error)
    detail = {"message": str(error), "error": type(error).__name__}
    if isinstance(error, ActivityLogWriteError):
        detail["recordId"] = error.record_id
    return HTTPException(status_code=status_code, detail=detail)
