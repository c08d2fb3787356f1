# =======================================================================================
# keycustody/services/key_record_service.py - Key Record Store
# =======================================================================================
import logging
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Optional, List, Dict, Any
from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from ..database import DatabaseManager, db_manager, key_records
from ..models.enums import CollectionName, ScanAction
from ..models.schemas import KeyRecord
from ..utils.exceptions import DuplicateKeyRecordError, KeyRecordNotFoundError, StoreWriteError
from ..utils.timeutil import utcnow
from .change_feed import ChangeFeed, change_feed

logger = logging.getLogger(__name__)


def row_to_record(row) -> KeyRecord:
    return KeyRecord(
        id=row["id"],
        company=row["company"],
        location=row["location"],
        keyNo=row["key_no"],
        barcodeCode=row["barcode_code"],
        noOfKeys=row.get("no_of_keys") or "1",
        createdAt=row["created_at"],
        lastUpdate=row.get("last_update"),
        lastReturn=row.get("last_return"),
        lastDraw=row.get("last_draw"),
    )


class KeyRecordStore:
    """Reads and writes the key_records collection."""

    def __init__(self, db: Optional[DatabaseManager] = None, feed: Optional[ChangeFeed] = None):
        self.db = db or db_manager
        self.feed = feed or change_feed

    @contextmanager
    def _connection(self, conn: Optional[Connection]):
        if conn is not None:
            yield conn
        else:
            with self.db.get_connection() as owned:
                yield owned

    # ---------- reads ----------

    def list_records(self) -> List[KeyRecord]:
        """All key records, newest first."""
        with self.db.get_connection() as conn:
            rows = conn.execute(
                select(key_records).order_by(key_records.c.created_at.desc())
            ).mappings().all()
        return [row_to_record(r) for r in rows]

    def get(self, record_id: str) -> Optional[KeyRecord]:
        with self.db.get_connection() as conn:
            row = conn.execute(
                select(key_records).where(key_records.c.id == record_id)
            ).mappings().first()
        return row_to_record(row) if row else None

    def find_by_barcode(self, barcode_code: str, conn: Optional[Connection] = None) -> Optional[KeyRecord]:
        with self._connection(conn) as c:
            row = c.execute(
                select(key_records).where(key_records.c.barcode_code == barcode_code)
            ).mappings().first()
        return row_to_record(row) if row else None

    # ---------- writes ----------

    def create(self, company: str, location: str, key_no: str, barcode_code: str,
               no_of_keys: str, created_at: Optional[datetime] = None) -> KeyRecord:
        """Insert an already-normalized key record."""
        values: Dict[str, Any] = {
            "id": uuid.uuid4().hex,
            "company": company,
            "location": location,
            "key_no": key_no,
            "barcode_code": barcode_code,
            "no_of_keys": no_of_keys,
            "created_at": created_at or utcnow(),
        }
        try:
            with self.db.get_connection() as conn:
                conn.execute(insert(key_records).values(**values))
        except IntegrityError:
            raise DuplicateKeyRecordError(f"Barcode {barcode_code} is already registered")
        except SQLAlchemyError as e:
            logger.error("Create key record %s failed: %s", barcode_code, e)
            raise StoreWriteError("Failed to save key record") from e

        logger.info("Registered key %s (%s)", barcode_code, values["id"])
        self.feed.publish(CollectionName.KEY_RECORDS, "added", values["id"])
        return row_to_record(values)

    def delete(self, record_id: str):
        """Hard delete. Raises KeyRecordNotFoundError when nothing matched."""
        try:
            with self.db.get_connection() as conn:
                result = conn.execute(delete(key_records).where(key_records.c.id == record_id))
        except SQLAlchemyError as e:
            logger.error("Delete key record %s failed: %s", record_id, e)
            raise StoreWriteError("Failed to delete key record") from e

        if result.rowcount == 0:
            raise KeyRecordNotFoundError(f"Key record {record_id} not found")

        logger.info("Deleted key record %s", record_id)
        self.feed.publish(CollectionName.KEY_RECORDS, "removed", record_id)

    def apply_scan(self, record: KeyRecord, action: ScanAction, at: datetime,
                   conn: Optional[Connection] = None) -> KeyRecord:
        """
        Stamp lastUpdate and either lastReturn (sign-in) or lastDraw (sign-out).

        With an external connection the caller owns the transaction and must
        call publish_modified() once it commits.
        """
        values: Dict[str, Any] = {"last_update": at}
        if action == "sign-in":
            values["last_return"] = at
        else:
            values["last_draw"] = at

        try:
            with self._connection(conn) as c:
                result = c.execute(
                    update(key_records).where(key_records.c.id == record.id).values(**values)
                )
        except SQLAlchemyError as e:
            logger.error("Update key record %s failed: %s", record.barcodeCode, e)
            raise StoreWriteError("Failed to update key record") from e

        if result.rowcount == 0:
            raise KeyRecordNotFoundError(f"Key record {record.barcodeCode} not found")

        if conn is None:
            self.publish_modified(record.id)

        changes = {"lastUpdate": at}
        if action == "sign-in":
            changes["lastReturn"] = at
        else:
            changes["lastDraw"] = at
        return record.model_copy(update=changes)

    def publish_modified(self, record_id: str):
        self.feed.publish(CollectionName.KEY_RECORDS, "modified", record_id)
