# =======================================================================================
# keycustody/models/enums.py - Enums and Constants
# =======================================================================================
from enum import Enum
from typing import Literal

# Type aliases for better type hints
ScanAction = Literal["sign-in", "sign-out"]
KeyStatus = Literal["available", "drawn"]
StatusFilter = Literal["all", "available", "drawn"]
ActionFilter = Literal["all", "sign-in", "sign-out"]
NoticeLevel = Literal["info", "success", "warning", "error"]
ChangeKind = Literal["added", "modified", "removed"]
ScannerBackendName = Literal["camera", "handheld"]

class CaptureState(str, Enum):
    """States of the two-step scan capture."""
    IDLE = "idle"
    AWAITING_IDENTITY = "awaiting-identity"
    AWAITING_KEY_ITEM = "awaiting-key-item"
    COMPLETE = "complete"

class CollectionName(str, Enum):
    """Collections that publish change events."""
    KEY_RECORDS = "key_records"
    ACTIVITY_LOGS = "activity_logs"

# Ranks offered for actor metadata
RANKS = (
    "PTE", "LCP", "CPL", "CFC", "SCT", "3SG", "2SG", "1SG", "SSG", "MSG",
    "3WO", "2WO", "1WO", "MWO", "SWO", "CWO", "OCT", "2LT", "LTA", "CPT",
    "MID", "MAJ", "LTC", "SLTC", "COL", "BG", "MG", "LG",
    "ME1(T)", "ME1", "ME2", "ME3", "ME4T", "ME4A", "ME4", "ME5", "ME6",
    "ME7", "ME8", "ME9", "OTHERS",
)
