
# =======================================================================================
# keycustody/models/schemas.py - Pydantic Models
# =======================================================================================
from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, Field, computed_field, field_validator
from .enums import (
    ScanAction, KeyStatus, StatusFilter, ActionFilter, NoticeLevel, ChangeKind,
    CaptureState, RANKS,
)
from ..utils.validators import KeyRecordValidator

# ========== Actor ==========

class ActorMetadata(BaseModel):
    """Who is signing a key in or out."""
    rank: Optional[str] = Field(None, description="Service rank, see RANKS")
    name: Optional[str] = Field(None, max_length=100)
    number: Optional[str] = Field(None, max_length=32, description="Contact number")

    @field_validator("rank")
    @classmethod
    def rank_must_be_known(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        value = value.strip().upper()
        if value not in RANKS:
            raise ValueError(f"Unknown rank {value}")
        return value


# ========== Key Records ==========

class KeyRecord(BaseModel):
    """One physical key and its custody timestamps."""
    id: str
    company: str
    location: str
    keyNo: str
    barcodeCode: str
    noOfKeys: str = "1"
    createdAt: datetime
    lastUpdate: Optional[datetime] = None
    lastReturn: Optional[datetime] = None
    lastDraw: Optional[datetime] = None

    @property
    def is_drawn(self) -> bool:
        return KeyRecordValidator.is_drawn(self.lastDraw, self.lastReturn)

    @computed_field
    @property
    def status(self) -> KeyStatus:
        return KeyRecordValidator.key_status(self.lastDraw, self.lastReturn)


class KeyRecordCreate(BaseModel):
    """Registration form input. Empty fields are rejected by the service."""
    company: str = ""
    location: str = ""
    keyNo: str = ""
    noOfKeys: str = ""


class DeleteResponse(BaseModel):
    success: bool
    message: str


class PrintRequest(BaseModel):
    ids: List[str] = Field(..., min_length=1)


# ========== Activity Log ==========

class ActivityLogEntry(BaseModel):
    """Immutable audit record of one sign-in/sign-out event."""
    id: str
    maskedIdentity: str
    barcodeCode: str
    company: str
    location: str
    keyNo: str
    action: ScanAction
    rank: Optional[str] = None
    name: Optional[str] = None
    number: Optional[str] = None
    timestamp: datetime
    createdAt: datetime


# ========== Scan Workflow ==========

class ScanSubmitRequest(BaseModel):
    identityToken: str = Field(..., min_length=1, max_length=32, description="Scanned identity barcode")
    keyBarcode: str = Field(..., min_length=1, max_length=64, description="Scanned key-tag barcode")
    action: ScanAction
    actor: Optional[ActorMetadata] = None
    timestamp: Optional[datetime] = Field(None, description="Event time, defaults to now")


class ScanSubmitResponse(BaseModel):
    success: bool
    message: str
    record: KeyRecord
    log: ActivityLogEntry


# ========== Dashboard / Logs ==========

class DashboardFilters(BaseModel):
    search: str = ""
    company: str = "all"
    status: StatusFilter = "all"


class LogFilters(BaseModel):
    search: str = ""
    company: str = "all"
    action: ActionFilter = "all"
    dateFrom: Optional[date] = None
    dateTo: Optional[date] = None


class DashboardSummary(BaseModel):
    total: int
    available: int
    drawn: int
    companies: int


class DashboardResponse(BaseModel):
    summary: DashboardSummary
    companies: List[str]
    filters: DashboardFilters
    records: List[KeyRecord]


class LogsSummary(BaseModel):
    total: int
    signIns: int
    signOuts: int
    uniqueIdentities: int


class LogsResponse(BaseModel):
    summary: LogsSummary
    companies: List[str]
    filters: LogFilters
    logs: List[ActivityLogEntry]


class ChangeEvent(BaseModel):
    """A committed write on one collection."""
    collection: str
    kind: ChangeKind
    docId: str
    at: datetime


# ========== Scanner ==========

class Notice(BaseModel):
    """Transient user-facing notification."""
    level: NoticeLevel
    message: str
    at: datetime


class DeviceInfo(BaseModel):
    id: str
    label: str


class DevicesResponse(BaseModel):
    backend: str
    devices: List[DeviceInfo]


class CaptureStartRequest(BaseModel):
    device: Optional[str] = Field(None, description="Device id, defaults to the configured/first device")
    action: Optional[ScanAction] = None
    actor: Optional[ActorMetadata] = None
    frames: bool = Field(False, description="Decode still frames posted by the client instead of a local device")


class RescanRequest(BaseModel):
    frames: bool = False


class CaptureOptionsRequest(BaseModel):
    action: Optional[ScanAction] = None
    actor: Optional[ActorMetadata] = None


class CaptureStateResponse(BaseModel):
    state: CaptureState
    device: Optional[str] = None
    maskedIdentity: Optional[str] = None
    keyBarcode: Optional[str] = None
    action: ScanAction
    actor: Optional[ActorMetadata] = None
    notices: List[Notice] = []
    lastResult: Optional[ScanSubmitResponse] = None


class FrameDecodeResponse(BaseModel):
    decoded: Optional[str] = None
    accepted: bool
    state: CaptureState


# ========== Preferences ==========

class ActorPreference(BaseModel):
    remember: bool = False
    actor: ActorMetadata = Field(default_factory=ActorMetadata)


# ========== Health ==========

class HealthResponse(BaseModel):
    status: str                 # "ok" | "error"
    dataAvailable: bool
    message: Optional[str] = None
