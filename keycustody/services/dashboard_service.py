# =======================================================================================
# keycustody/services/dashboard_service.py
# =======================================================================================

from datetime import datetime
from typing import Iterable, List, Optional
from ..config import config
from ..models.schemas import (
    ActivityLogEntry, DashboardFilters, DashboardResponse, DashboardSummary,
    KeyRecord, LogFilters, LogsResponse, LogsSummary,
)
from .activity_log_service import ActivityLogStore
from .key_record_service import KeyRecordStore


def _contains(value: Optional[str], term: str) -> bool:
    return bool(value) and term in value.lower()


class DashboardService:
    """Client-side style projections for the dashboard and logs views."""

    def __init__(self, records: Optional[KeyRecordStore] = None, logs: Optional[ActivityLogStore] = None):
        self.records = records or KeyRecordStore()
        self.logs = logs or ActivityLogStore(self.records.db, self.records.feed)

    # ---------- helpers ----------

    @staticmethod
    def companies(rows: Iterable) -> List[str]:
        return sorted({row.company for row in rows})

    # ---------- key records ----------

    @staticmethod
    def filter_records(records: Iterable[KeyRecord], filters: DashboardFilters) -> List[KeyRecord]:
        """Pure: never mutates the input, same filters give the same rows."""
        term = filters.search.strip().lower()
        result = []
        for record in records:
            if term and not (
                _contains(record.location, term)
                or term in record.keyNo
                or _contains(record.barcodeCode, term)
            ):
                continue
            if filters.company != "all" and record.company != filters.company:
                continue
            if filters.status != "all" and record.status != filters.status:
                continue
            result.append(record)
        return result

    @staticmethod
    def summarize_records(records: List[KeyRecord]) -> DashboardSummary:
        drawn = sum(1 for r in records if r.is_drawn)
        return DashboardSummary(
            total=len(records),
            available=len(records) - drawn,
            drawn=drawn,
            companies=len({r.company for r in records}),
        )

    def build_dashboard(self, records: List[KeyRecord], filters: DashboardFilters) -> DashboardResponse:
        return DashboardResponse(
            summary=self.summarize_records(records),
            companies=self.companies(records),
            filters=filters,
            records=self.filter_records(records, filters),
        )

    def get_dashboard(self, filters: DashboardFilters) -> DashboardResponse:
        return self.build_dashboard(self.records.list_records(), filters)

    # ---------- activity logs ----------

    @staticmethod
    def filter_logs(entries: Iterable[ActivityLogEntry], filters: LogFilters) -> List[ActivityLogEntry]:
        term = filters.search.strip().lower()
        start = datetime.combine(filters.dateFrom, datetime.min.time()) if filters.dateFrom else None
        end = datetime.combine(filters.dateTo, datetime.max.time()) if filters.dateTo else None

        result = []
        for entry in entries:
            if term and not (
                _contains(entry.location, term)
                or term in entry.keyNo
                or _contains(entry.barcodeCode, term)
                or _contains(entry.maskedIdentity, term)
                or _contains(entry.name, term)
                or _contains(entry.rank, term)
                or _contains(entry.number, term)
            ):
                continue
            if filters.company != "all" and entry.company != filters.company:
                continue
            if filters.action != "all" and entry.action != filters.action:
                continue
            if start and entry.timestamp < start:
                continue
            if end and entry.timestamp > end:
                continue
            result.append(entry)
        return result

    @staticmethod
    def summarize_logs(entries: List[ActivityLogEntry]) -> LogsSummary:
        sign_ins = sum(1 for e in entries if e.action == "sign-in")
        return LogsSummary(
            total=len(entries),
            signIns=sign_ins,
            signOuts=len(entries) - sign_ins,
            uniqueIdentities=len({e.maskedIdentity for e in entries}),
        )

    def build_logs(self, entries: List[ActivityLogEntry], filters: LogFilters) -> LogsResponse:
        return LogsResponse(
            summary=self.summarize_logs(entries),
            companies=self.companies(entries),
            filters=filters,
            logs=self.filter_logs(entries, filters),
        )

    def load_logs(self, limit: Optional[int] = None) -> List[ActivityLogEntry]:
        return self.logs.list_entries(limit or config.LOGS_LIMIT)

    def get_logs(self, filters: LogFilters, limit: Optional[int] = None) -> LogsResponse:
        return self.build_logs(self.load_logs(limit), filters)
