from datetime import datetime
import pytest
from keycustody.models.schemas import ActorMetadata, KeyRecord
from keycustody.utils.exceptions import InvalidIdentityTokenError
from keycustody.utils.validators import IdentityValidator, KeyRecordValidator


@pytest.mark.parametrize("token", ["S1234567A", "T0000000Z", "F9876543K", "G1111111B"])
def test_identity_pattern_accepts(token):
    assert IdentityValidator.is_valid_token(token)


@pytest.mark.parametrize("token", ["", None, "X1234567A", "S123456A", "s1234567a", "S1234567AB", "S12345678"])
def test_identity_pattern_rejects(token):
    assert not IdentityValidator.is_valid_token(token)


def test_validate_token_raises():
    with pytest.raises(InvalidIdentityTokenError):
        IdentityValidator.validate_token("bogus")


def test_mask_keeps_last_four():
    assert IdentityValidator.mask("S1234567A") == "*****567A"


@pytest.mark.parametrize("token", ["", "abc"])
def test_mask_short_tokens(token):
    assert IdentityValidator.mask(token) == "*****"


@pytest.mark.parametrize("raw, expected", [
    ("3", "03"), ("12", "12"), ("999", "999"), ("1500", "999"),
    ("-4", "00"), ("abc", "00"), ("7b", "07"), ("", "00"),
])
def test_normalize_key_no(raw, expected):
    assert KeyRecordValidator.normalize_key_no(raw) == expected


def test_normalize_location_uppercases_and_truncates():
    assert KeyRecordValidator.normalize_location(" ofc1 ") == "OFC1"
    assert KeyRecordValidator.normalize_location("warehouse12") == "WAREHOUS"


def test_barcode_code():
    assert KeyRecordValidator.build_barcode_code("A", "OFC1", "03") == "A-OFC1-03"


def test_is_drawn():
    earlier, later = datetime(2024, 1, 1, 8), datetime(2024, 1, 1, 9)
    assert not KeyRecordValidator.is_drawn(None, None)
    assert not KeyRecordValidator.is_drawn(None, later)
    assert KeyRecordValidator.is_drawn(later, None)
    assert KeyRecordValidator.is_drawn(later, earlier)
    assert not KeyRecordValidator.is_drawn(earlier, later)
    assert not KeyRecordValidator.is_drawn(later, later)


def test_key_record_status_is_derived():
    record = KeyRecord(
        id="1", company="A", location="OFC1", keyNo="03", barcodeCode="A-OFC1-03",
        createdAt=datetime(2024, 1, 1), lastDraw=datetime(2024, 1, 2),
    )
    assert record.is_drawn
    assert record.model_dump()["status"] == "drawn"


def test_actor_rank_is_normalized():
    assert ActorMetadata(rank="cpt").rank == "CPT"
    assert ActorMetadata(rank="").rank is None
    with pytest.raises(ValueError):
        ActorMetadata(rank="WIZARD")
