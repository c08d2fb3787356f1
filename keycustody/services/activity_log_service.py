# =======================================================================================
# keycustody/services/activity_log_service.py - Activity Log Store
# =======================================================================================
import logging
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Optional, List, Dict, Any
from sqlalchemy import insert, select
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError
from ..database import DatabaseManager, db_manager, activity_logs
from ..models.enums import CollectionName, ScanAction
from ..models.schemas import ActivityLogEntry, ActorMetadata, KeyRecord
from ..utils.exceptions import StoreWriteError
from ..utils.timeutil import utcnow
from .change_feed import ChangeFeed, change_feed

logger = logging.getLogger(__name__)


def row_to_entry(row) -> ActivityLogEntry:
    return ActivityLogEntry(
        id=row["id"],
        maskedIdentity=row["masked_identity"],
        barcodeCode=row["barcode_code"],
        company=row["company"],
        location=row["location"],
        keyNo=row["key_no"],
        action=row["action"],
        rank=row["rank"],
        name=row["name"],
        number=row["number"],
        timestamp=row["timestamp"],
        createdAt=row["created_at"],
    )


class ActivityLogStore:
    """
    Append-only access to the activity_logs collection.
    Entries are never updated or deleted.
    """

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

    def append(self, masked_identity: str, record: KeyRecord, action: ScanAction,
               timestamp: datetime, actor: Optional[ActorMetadata] = None,
               conn: Optional[Connection] = None) -> ActivityLogEntry:
        """Write one entry, copying the record's company/location/keyNo for display."""
        actor = actor or ActorMetadata()
        values: Dict[str, Any] = {
            "id": uuid.uuid4().hex,
            "masked_identity": masked_identity,
            "barcode_code": record.barcodeCode,
            "company": record.company,
            "location": record.location,
            "key_no": record.keyNo,
            "action": action,
            "rank": actor.rank,
            "name": actor.name,
            "number": actor.number,
            "timestamp": timestamp,
            "created_at": utcnow(),
        }
        try:
            with self._connection(conn) as c:
                c.execute(insert(activity_logs).values(**values))
        except SQLAlchemyError as e:
            logger.error("Append activity log for %s failed: %s", record.barcodeCode, e)
            raise StoreWriteError("Failed to write activity log") from e

        if conn is None:
            self.publish_added(values["id"])
        return row_to_entry(values)

    def publish_added(self, entry_id: str):
        self.feed.publish(CollectionName.ACTIVITY_LOGS, "added", entry_id)

    def list_entries(self, limit: Optional[int] = None) -> List[ActivityLogEntry]:
        """Entries ordered by event time, newest first."""
        query = select(activity_logs).order_by(
            activity_logs.c.timestamp.desc(), activity_logs.c.created_at.desc()
        )
        if limit:
            query = query.limit(limit)
        with self.db.get_connection() as conn:
            rows = conn.execute(query).mappings().all()
        return [row_to_entry(r) for r in rows]
