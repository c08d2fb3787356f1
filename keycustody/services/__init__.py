# =======================================================================================
# keycustody/services/__init__.py - Services Package
# =======================================================================================
from .change_feed import ChangeFeed, change_feed
from .key_record_service import KeyRecordStore
from .activity_log_service import ActivityLogStore
from .scan_workflow import ScanWorkflowService
from .dashboard_service import DashboardService
from .registration_service import RegistrationService
from .print_service import PrintService
from .preference_service import PreferenceService

__all__ = [
    "ChangeFeed", "change_feed", "KeyRecordStore", "ActivityLogStore", "ScanWorkflowService",
    "DashboardService", "RegistrationService", "PrintService", "PreferenceService",
]
