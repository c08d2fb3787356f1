from datetime import datetime, timezone
import pytest
from sqlalchemy.exc import OperationalError
from keycustody.models.schemas import ActorMetadata
from keycustody.services.activity_log_service import ActivityLogStore
from keycustody.services.key_record_service import KeyRecordStore
from keycustody.services.scan_workflow import ScanWorkflowService
from keycustody.utils.exceptions import (
    ActivityLogWriteError, InvalidIdentityTokenError, KeyRecordNotFoundError, StoreWriteError,
)
from .conftest import FIXED_NOW, IDENTITY


class FailingLogStore(ActivityLogStore):
    def append(self, *args, **kwargs):
        raise StoreWriteError("disk full")


def test_sign_out_stamps_record_and_logs(workflow, key_record, records, logs):
    actor = ActorMetadata(rank="CPT", name="Tan", number="91234567")
    result = workflow.submit(IDENTITY, "A-OFC1-03", "sign-out", actor)

    assert result.success
    assert result.message == "Key signed out successfully"
    assert result.record.lastDraw == FIXED_NOW
    assert result.record.lastUpdate == FIXED_NOW
    assert result.record.status == "drawn"

    stored = records.get(key_record.id)
    assert stored.lastDraw == FIXED_NOW
    assert stored.lastReturn is None

    entries = logs.list_entries()
    assert len(entries) == 1
    entry = entries[0]
    assert entry.maskedIdentity == "*****567A"
    assert (entry.company, entry.location, entry.keyNo) == ("A", "OFC1", "03")
    assert entry.action == "sign-out"
    assert (entry.rank, entry.name, entry.number) == ("CPT", "Tan", "91234567")
    assert entry.timestamp == FIXED_NOW


def test_sign_out_then_sign_in_leaves_key_available(workflow, key_record, records, clock):
    workflow.submit(IDENTITY, "A-OFC1-03", "sign-out")
    clock.advance(minutes=5)
    result = workflow.submit(IDENTITY, "A-OFC1-03", "sign-in")

    assert result.message == "Key signed in successfully"
    stored = records.get(key_record.id)
    assert stored.lastReturn > stored.lastDraw
    assert not stored.is_drawn


def test_invalid_identity_writes_nothing(workflow, key_record, records, logs):
    with pytest.raises(InvalidIdentityTokenError):
        workflow.submit("BADTOKEN", "A-OFC1-03", "sign-out")
    assert records.get(key_record.id).lastUpdate is None
    assert logs.list_entries() == []


def test_unknown_barcode_writes_nothing(workflow, key_record, records, logs):
    with pytest.raises(KeyRecordNotFoundError):
        workflow.submit(IDENTITY, "B-NOPE-01", "sign-out")
    assert records.get(key_record.id).lastUpdate is None
    assert logs.list_entries() == []


def test_log_failure_keeps_record_update(records, db, feed, key_record, clock):
    workflow = ScanWorkflowService(records, FailingLogStore(db, feed), atomic=False, clock=clock)
    with pytest.raises(ActivityLogWriteError) as excinfo:
        workflow.submit(IDENTITY, "A-OFC1-03", "sign-out")

    assert excinfo.value.record_id == key_record.id
    assert records.get(key_record.id).lastDraw == FIXED_NOW


def test_atomic_mode_writes_both(records, logs, key_record, clock, feed):
    events = []
    feed.listen("key_records", events.append)
    feed.listen("activity_logs", events.append)
    workflow = ScanWorkflowService(records, logs, atomic=True, clock=clock)

    result = workflow.submit(IDENTITY, "A-OFC1-03", "sign-out")

    assert records.get(key_record.id).lastDraw == FIXED_NOW
    assert [e.id for e in logs.list_entries()] == [result.log.id]
    assert [(e.collection, e.kind) for e in events] == [
        ("key_records", "modified"), ("activity_logs", "added"),
    ]


def test_atomic_mode_unknown_barcode(records, logs, key_record, clock):
    workflow = ScanWorkflowService(records, logs, atomic=True, clock=clock)
    with pytest.raises(KeyRecordNotFoundError):
        workflow.submit(IDENTITY, "A-OFC1-99", "sign-in")
    assert logs.list_entries() == []


def test_explicit_timestamp_is_used(workflow, key_record):
    at = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    result = workflow.submit(IDENTITY, "A-OFC1-03", "sign-in", timestamp=at)
    assert result.log.timestamp == datetime(2024, 5, 1, 12, 0)


def test_atomic_mode_log_failure_rolls_back_record(records, db, feed, key_record, clock):
    events = []
    feed.listen("key_records", events.append)
    feed.listen("activity_logs", events.append)
    workflow = ScanWorkflowService(records, FailingLogStore(db, feed), atomic=True, clock=clock)

    with pytest.raises(StoreWriteError):
        workflow.submit(IDENTITY, "A-OFC1-03", "sign-out")

    assert records.get(key_record.id).lastDraw is None
    assert records.get(key_record.id).lastUpdate is None
    assert events == []


class UnreachableRecordStore(KeyRecordStore):
    def find_by_barcode(self, barcode_code, conn=None):
        raise OperationalError("SELECT", {}, Exception("connection lost"))


def test_lookup_failure_is_a_store_error(db, feed, logs, key_record, clock):
    workflow = ScanWorkflowService(UnreachableRecordStore(db, feed), logs, atomic=False, clock=clock)
    with pytest.raises(StoreWriteError):
        workflow.submit(IDENTITY, "A-OFC1-03", "sign-out")
    assert logs.list_entries() == []
