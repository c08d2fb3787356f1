# =======================================================================================
# keycustody/services/registration_service.py - Key Registration Service
# =======================================================================================
import logging
from typing import Iterable, List, Optional
from ..config import config
from ..models.schemas import KeyRecord, KeyRecordCreate
from ..utils.exceptions import EmptySelectionError, InvalidKeyRecordError
from ..utils.validators import KeyRecordValidator
from .key_record_service import KeyRecordStore
from .print_service import PrintService

logger = logging.getLogger(__name__)


class RegistrationService:
    """Creates, deletes and prints key records."""

    def __init__(self, records: Optional[KeyRecordStore] = None,
                 printer: Optional[PrintService] = None,
                 companies: Optional[List[str]] = None):
        self.records = records or KeyRecordStore()
        self.printer = printer or PrintService()
        self.companies = companies if companies is not None else config.KEY_COMPANIES

    @staticmethod
    def is_complete(form: KeyRecordCreate) -> bool:
        """The add button is only enabled when every field has a value."""
        return all(
            (value or "").strip()
            for value in (form.company, form.location, form.keyNo, form.noOfKeys)
        )

    def normalize(self, form: KeyRecordCreate) -> KeyRecordCreate:
        if not self.is_complete(form):
            raise InvalidKeyRecordError("Company, location, key no and no of keys are required")

        company = form.company.strip()
        if self.companies and company not in self.companies:
            raise InvalidKeyRecordError(f"Unknown company {company}")

        return KeyRecordCreate(
            company=company,
            location=KeyRecordValidator.normalize_location(form.location),
            keyNo=KeyRecordValidator.normalize_key_no(form.keyNo),
            noOfKeys=form.noOfKeys.strip(),
        )

    def add_record(self, form: KeyRecordCreate) -> KeyRecord:
        clean = self.normalize(form)
        barcode_code = KeyRecordValidator.build_barcode_code(clean.company, clean.location, clean.keyNo)
        return self.records.create(
            company=clean.company,
            location=clean.location,
            key_no=clean.keyNo,
            barcode_code=barcode_code,
            no_of_keys=clean.noOfKeys,
        )

    def delete_record(self, record_id: str):
        self.records.delete(record_id)

    def list_records(self) -> List[KeyRecord]:
        return self.records.list_records()

    def print_selected(self, ids: Iterable[str]) -> bytes:
        """PDF with one label per selected record, in registration list order."""
        wanted = set(ids)
        selected = [r for r in self.records.list_records() if r.id in wanted]
        if not selected:
            raise EmptySelectionError("No key records selected for printing")

        logger.info("Printing %d barcode label(s)", len(selected))
        return self.printer.render_labels(selected)
