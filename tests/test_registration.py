import pytest
from keycustody.models.schemas import KeyRecordCreate
from keycustody.services.print_service import PrintService
from keycustody.utils.exceptions import (
    DuplicateKeyRecordError, EmptySelectionError, InvalidKeyRecordError, KeyRecordNotFoundError,
)
from keycustody.views.registration import RegistrationView


def _form(company="A", location="ofc1", key_no="3", no_of_keys="2"):
    return KeyRecordCreate(company=company, location=location, keyNo=key_no, noOfKeys=no_of_keys)


def test_add_normalizes_and_derives_barcode(registration):
    record = registration.add_record(_form(location=" store room ", key_no="1500"))
    assert record.location == "STORE RO"
    assert record.keyNo == "999"
    assert record.barcodeCode == "A-STORE RO-999"
    assert record.status == "available"


def test_incomplete_form_is_rejected(registration):
    assert not registration.is_complete(_form(location=""))
    with pytest.raises(InvalidKeyRecordError):
        registration.add_record(_form(no_of_keys=" "))


def test_unknown_company_is_rejected(registration):
    with pytest.raises(InvalidKeyRecordError):
        registration.add_record(_form(company="ZZ"))


def test_duplicate_barcode_is_rejected(registration, key_record):
    with pytest.raises(DuplicateKeyRecordError):
        registration.add_record(_form(key_no="03"))


def test_delete_unknown_record(registration):
    with pytest.raises(KeyRecordNotFoundError):
        registration.delete_record("missing")


def test_print_requires_selection(registration, key_record):
    with pytest.raises(EmptySelectionError):
        registration.print_selected([])
    with pytest.raises(EmptySelectionError):
        registration.print_selected(["missing"])


def test_print_renders_pdf(registration, key_record):
    pdf = registration.print_selected([key_record.id])
    assert pdf.startswith(b"%PDF")


def test_print_service_paginates(registration):
    records = [registration.add_record(_form(key_no=str(n))) for n in range(1, 6)]
    printer = PrintService()
    assert printer.labels_per_page() > 4
    assert printer.render_labels(records).startswith(b"%PDF")


def test_view_selection(registration):
    view = RegistrationView(registration)
    a = view.add_record(_form(company="A"))
    hq = view.add_record(_form(company="HQ"))
    assert {r.id for r in view.visible} == {a.id, hq.id}

    view.set_company_filter("HQ")
    view.toggle_select_all()
    assert view.state.selected == frozenset({hq.id})
    view.toggle_select_all()
    assert view.state.selected == frozenset()

    view.set_company_filter("all")
    view.toggle(a.id)
    view.toggle(hq.id)
    assert view.print_selected().startswith(b"%PDF")

    view.delete_record(a.id)
    assert view.state.selected == frozenset({hq.id})
    assert [r.id for r in view.visible] == [hq.id]


def test_view_can_add(registration):
    view = RegistrationView(registration)
    assert view.can_add(_form())
    assert not view.can_add(KeyRecordCreate())


def test_no_of_keys_is_only_trimmed(registration):
    record = registration.add_record(_form(no_of_keys=" 2 sets "))
    assert record.noOfKeys == "2 sets"
