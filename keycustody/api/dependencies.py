# =======================================================================================
# keycustody/api/dependencies.py - FastAPI Dependencies
# =======================================================================================
from fastapi import Depends
from ..database import DatabaseManager, db_manager
from ..services.activity_log_service import ActivityLogStore
from ..services.change_feed import ChangeFeed, change_feed
from ..services.dashboard_service import DashboardService
from ..services.key_record_service import KeyRecordStore
from ..services.preference_service import PreferenceService
from ..services.registration_service import RegistrationService
from ..services.scan_workflow import ScanWorkflowService
from ..workers.scan_worker import ScanStation, get_scan_station as _get_scan_station

# Tests swap these out through app.dependency_overrides


def get_database() -> DatabaseManager:
    return db_manager


def get_change_feed() -> ChangeFeed:
    return change_feed


def get_key_record_store(
    db: DatabaseManager = Depends(get_database),
    feed: ChangeFeed = Depends(get_change_feed),
) -> KeyRecordStore:
    return KeyRecordStore(db, feed)


def get_activity_log_store(
    db: DatabaseManager = Depends(get_database),
    feed: ChangeFeed = Depends(get_change_feed),
) -> ActivityLogStore:
    return ActivityLogStore(db, feed)


def get_scan_workflow(
    records: KeyRecordStore = Depends(get_key_record_store),
    logs: ActivityLogStore = Depends(get_activity_log_store),
) -> ScanWorkflowService:
    return ScanWorkflowService(records, logs)


def get_dashboard_service(
    records: KeyRecordStore = Depends(get_key_record_store),
    logs: ActivityLogStore = Depends(get_activity_log_store),
) -> DashboardService:
    return DashboardService(records, logs)


def get_registration_service(
    records: KeyRecordStore = Depends(get_key_record_store),
) -> RegistrationService:
    return RegistrationService(records)


def get_preference_service() -> PreferenceService:
    return PreferenceService()


def get_scan_station() -> ScanStation:
    return _get_scan_station()
