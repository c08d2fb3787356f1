# =======================================================================================
# keycustody/views/registration.py - Registration View Model
# =======================================================================================
from dataclasses import dataclass, replace
from typing import FrozenSet, List, Tuple
from ..models.schemas import KeyRecord, KeyRecordCreate
from ..services.registration_service import RegistrationService


@dataclass(frozen=True)
class RegistrationState:
    records: Tuple[KeyRecord, ...] = ()
    company_filter: str = "all"
    selected: FrozenSet[str] = frozenset()


# ---------- reducers ----------

def with_records(state: RegistrationState, records: List[KeyRecord]) -> RegistrationState:
    # drop selections whose record no longer exists
    ids = {r.id for r in records}
    return replace(state, records=tuple(records), selected=state.selected & ids)


def toggled(state: RegistrationState, record_id: str) -> RegistrationState:
    return replace(state, selected=state.selected ^ {record_id})


def without(state: RegistrationState, record_id: str) -> RegistrationState:
    return replace(
        state,
        records=tuple(r for r in state.records if r.id != record_id),
        selected=state.selected - {record_id},
    )


class RegistrationView:
    """Register keys, pick some of them and print their labels."""

    def __init__(self, service: RegistrationService):
        self.service = service
        self.state = RegistrationState()

    @property
    def visible(self) -> List[KeyRecord]:
        if self.state.company_filter == "all":
            return list(self.state.records)
        return [r for r in self.state.records if r.company == self.state.company_filter]

    @property
    def companies(self) -> List[str]:
        return sorted({r.company for r in self.state.records})

    def refresh(self):
        self.state = with_records(self.state, self.service.list_records())

    def can_add(self, form: KeyRecordCreate) -> bool:
        return self.service.is_complete(form)

    def add_record(self, form: KeyRecordCreate) -> KeyRecord:
        record = self.service.add_record(form)
        self.refresh()
        return record

    def delete_record(self, record_id: str):
        self.service.delete_record(record_id)
        self.state = without(self.state, record_id)
        self.refresh()

    def set_company_filter(self, company: str):
        self.state = replace(self.state, company_filter=company or "all")

    def toggle(self, record_id: str):
        self.state = toggled(self.state, record_id)

    def toggle_select_all(self):
        """Select every visible record, or clear when they already are."""
        visible_ids = frozenset(r.id for r in self.visible)
        if visible_ids and visible_ids <= self.state.selected and len(self.state.selected) == len(visible_ids):
            self.state = replace(self.state, selected=frozenset())
        else:
            self.state = replace(self.state, selected=visible_ids)

    def selected_records(self) -> List[KeyRecord]:
        return [r for r in self.visible if r.id in self.state.selected]

    def print_selected(self) -> bytes:
        return self.service.print_selected(r.id for r in self.selected_records())
