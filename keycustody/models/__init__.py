# =======================================================================================
# keycustody/models/__init__.py - Models Package
# =======================================================================================
from .schemas import *
from .enums import *

__all__ = [
    "ActorMetadata", "KeyRecord", "KeyRecordCreate", "ActivityLogEntry",
    "ScanSubmitRequest", "ScanSubmitResponse", "DashboardFilters", "LogFilters",
    "DashboardResponse", "LogsResponse", "Notice", "ChangeEvent",
    "ScanAction", "KeyStatus", "NoticeLevel", "CaptureState", "CollectionName", "RANKS",
]
