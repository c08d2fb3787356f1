# =======================================================================================
# keycustody/views/dashboard.py - Dashboard View Model
# =======================================================================================
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Tuple
from ..models.enums import CollectionName
from ..models.schemas import DashboardFilters, DashboardResponse, KeyRecord
from ..services.dashboard_service import DashboardService
from .live import LiveView


@dataclass(frozen=True)
class DashboardState:
    records: Tuple[KeyRecord, ...] = ()
    filters: DashboardFilters = field(default_factory=DashboardFilters)
    loading: bool = True


# ---------- reducers ----------

def with_snapshot(state: DashboardState, records: List[KeyRecord]) -> DashboardState:
    return replace(state, records=tuple(records), loading=False)


def with_filters(state: DashboardState, changes: Dict[str, Any]) -> DashboardState:
    merged = {**state.filters.model_dump(), **changes}
    return replace(state, filters=DashboardFilters.model_validate(merged))


class DashboardView(LiveView):
    """Live key custody overview."""

    collection = CollectionName.KEY_RECORDS

    def __init__(self, service: DashboardService, filters: DashboardFilters = None):
        self.service = service
        self.state = DashboardState(filters=filters or DashboardFilters())

    @property
    def visible(self) -> List[KeyRecord]:
        return self.service.filter_records(self.state.records, self.state.filters)

    def refresh(self):
        self.state = with_snapshot(self.state, self.service.records.list_records())

    def apply_filters(self, changes: Dict[str, Any]):
        self.state = with_filters(self.state, changes)

    def render(self) -> DashboardResponse:
        return self.service.build_dashboard(list(self.state.records), self.state.filters)
