# =======================================================================================
# tests/conftest.py - Shared Fixtures
# =======================================================================================
import threading
from datetime import datetime, timedelta
from typing import Iterator, List, Optional
import pytest
from fastapi.testclient import TestClient
from keycustody.api import dependencies
from keycustody.database import DatabaseManager
from keycustody.main import create_app
from keycustody.models.schemas import DeviceInfo, KeyRecordCreate
from keycustody.scanner.base import DecodeBackend
from keycustody.services.activity_log_service import ActivityLogStore
from keycustody.services.change_feed import ChangeFeed
from keycustody.services.dashboard_service import DashboardService
from keycustody.services.key_record_service import KeyRecordStore
from keycustody.services.preference_service import PreferenceService
from keycustody.services.registration_service import RegistrationService
from keycustody.services.scan_workflow import ScanWorkflowService
from keycustody.utils.exceptions import CaptureDeviceError
from keycustody.workers.scan_worker import ScanStation

IDENTITY = "S1234567A"
FIXED_NOW = datetime(2024, 3, 1, 9, 30, 0)


class FixedClock:
    """Returns the same instant until advanced."""

    def __init__(self, start: datetime = FIXED_NOW):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class FakeBackend(DecodeBackend):
    """Replays scripted texts as if they were decoded from a device."""

    name = "fake"

    def __init__(self, texts: Optional[List[str]] = None, devices: Optional[List[str]] = None,
                 fail_open: bool = False):
        self.texts = list(texts or [])
        self.devices = devices if devices is not None else ["cam0"]
        self.fail_open = fail_open
        self.opened: List[str] = []
        self._stop = threading.Event()

    def list_devices(self) -> List[DeviceInfo]:
        return [DeviceInfo(id=d, label=f"Fake {d}") for d in self.devices]

    def start_capture(self, device: str) -> Iterator[str]:
        if self.fail_open:
            raise CaptureDeviceError(f"Cannot open capture device {device}")
        self.opened.append(device)
        self._stop.clear()
        return self._replay(list(self.texts))

    def _replay(self, texts: List[str]) -> Iterator[str]:
        for text in texts:
            if self._stop.is_set():
                return
            yield text

    def stop(self):
        self._stop.set()

    def decode_image(self, data: bytes) -> Optional[str]:
        return data.decode("utf-8").strip() or None


@pytest.fixture
def db():
    manager = DatabaseManager("sqlite://")
    manager.create_schema()
    yield manager
    manager.dispose()


@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def records(db, feed):
    return KeyRecordStore(db, feed)


@pytest.fixture
def logs(db, feed):
    return ActivityLogStore(db, feed)


@pytest.fixture
def workflow(records, logs, clock):
    return ScanWorkflowService(records, logs, atomic=False, clock=clock)


@pytest.fixture
def dashboard(records, logs):
    return DashboardService(records, logs)


@pytest.fixture
def registration(records):
    return RegistrationService(records, companies=["SP", "A", "B", "C", "HQ"])


@pytest.fixture
def preferences(tmp_path):
    return PreferenceService(str(tmp_path / "actor.json"))


@pytest.fixture
def key_record(registration):
    """A-OFC1-03, never drawn."""
    return registration.add_record(KeyRecordCreate(company="A", location="ofc1", keyNo="3", noOfKeys="2"))


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def station(backend, workflow, preferences):
    station = ScanStation(backend, workflow, preferences, duplicate_window=0)
    yield station
    station.shutdown()


@pytest.fixture
def client(db, feed, preferences, station):
    app = create_app(init_resources=False)
    app.dependency_overrides[dependencies.get_database] = lambda: db
    app.dependency_overrides[dependencies.get_change_feed] = lambda: feed
    app.dependency_overrides[dependencies.get_preference_service] = lambda: preferences
    app.dependency_overrides[dependencies.get_scan_station] = lambda: station
    with TestClient(app) as test_client:
        yield test_client
