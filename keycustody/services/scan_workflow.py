# =======================================================================================
# keycustody/services/scan_workflow.py - Core Business Logic
# =======================================================================================
import logging
from datetime import datetime
from typing import Callable, Optional
from sqlalchemy.exc import SQLAlchemyError
from ..config import config
from ..models.enums import ScanAction
from ..models.schemas import ActorMetadata, ScanSubmitResponse
from ..utils.exceptions import ActivityLogWriteError, KeyRecordNotFoundError, StoreWriteError
from ..utils.timeutil import as_utc_naive, utcnow
from ..utils.validators import IdentityValidator
from .activity_log_service import ActivityLogStore
from .key_record_service import KeyRecordStore

logger = logging.getLogger(__name__)


class ScanWorkflowService:
    """Turns a completed identity + key scan into a custody update and an audit entry."""

    def __init__(
        self,
        records: Optional[KeyRecordStore] = None,
        logs: Optional[ActivityLogStore] = None,
        atomic: Optional[bool] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.records = records or KeyRecordStore()
        self.logs = logs or ActivityLogStore(self.records.db, self.records.feed)
        self.atomic = config.SCAN_ATOMIC_WRITES if atomic is None else atomic
        self.clock = clock

    @staticmethod
    def describe(action: ScanAction) -> str:
        return "signed in" if action == "sign-in" else "signed out"

    def submit(self, identity_token: str, key_barcode: str, action: ScanAction,
               actor: Optional[ActorMetadata] = None,
               timestamp: Optional[datetime] = None) -> ScanSubmitResponse:
        """
        Validate the identity token, look up the key by barcode, stamp the
        record, then append the activity log entry.

        Raises InvalidIdentityTokenError / KeyRecordNotFoundError before any
        write, StoreWriteError when the record update fails (no log entry is
        written) and ActivityLogWriteError when only the log append fails.
        """
        IdentityValidator.validate_token(identity_token)
        at = as_utc_naive(timestamp) or self.clock()
        masked = IdentityValidator.mask(identity_token)

        if self.atomic:
            return self._submit_atomic(masked, key_barcode, action, actor, at)

        try:
            record = self.records.find_by_barcode(key_barcode)
        except SQLAlchemyError as e:
            logger.error("Lookup of key %s failed: %s", key_barcode, e)
            raise StoreWriteError("Failed to look up key record") from e
        if record is None:
            logger.warning("Scan rejected: barcode %s not found", key_barcode)
            raise KeyRecordNotFoundError(f"Key barcode {key_barcode} not found")

        updated = self.records.apply_scan(record, action, at)

        try:
            entry = self.logs.append(masked, updated, action, at, actor)
        except StoreWriteError as e:
            # record is already stamped; nothing rolls it back
            logger.error(
                "Key %s (record %s) %s at %s but its activity log entry was not written",
                updated.barcodeCode, updated.id, self.describe(action), at.isoformat(),
            )
            raise ActivityLogWriteError(
                "Key updated but the activity log entry could not be written", updated.id
            ) from e

        logger.info("Key %s %s by %s", updated.barcodeCode, self.describe(action), masked)
        return ScanSubmitResponse(
            success=True,
            message=f"Key {self.describe(action)} successfully",
            record=updated,
            log=entry,
        )

    def _submit_atomic(self, masked: str, key_barcode: str, action: ScanAction,
                       actor: Optional[ActorMetadata], at: datetime) -> ScanSubmitResponse:
        """Both writes in one transaction; either both land or neither does."""
        try:
            with self.records.db.get_connection() as conn:
                record = self.records.find_by_barcode(key_barcode, conn=conn)
                if record is None:
                    logger.warning("Scan rejected: barcode %s not found", key_barcode)
                    raise KeyRecordNotFoundError(f"Key barcode {key_barcode} not found")

                updated = self.records.apply_scan(record, action, at, conn=conn)
                entry = self.logs.append(masked, updated, action, at, actor, conn=conn)
        except SQLAlchemyError as e:
            logger.error("Scan transaction for %s failed: %s", key_barcode, e)
            raise StoreWriteError("Failed to record scan") from e

        self.records.publish_modified(updated.id)
        self.logs.publish_added(entry.id)

        logger.info("Key %s %s by %s", updated.barcodeCode, self.describe(action), masked)
        return ScanSubmitResponse(
            success=True,
            message=f"Key {self.describe(action)} successfully",
            record=updated,
            log=entry,
        )
