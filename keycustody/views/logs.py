# =======================================================================================
# keycustody/views/logs.py - Activity Logs View Model
# =======================================================================================
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Tuple
from ..models.enums import CollectionName
from ..models.schemas import ActivityLogEntry, LogFilters, LogsResponse
from ..services.dashboard_service import DashboardService
from .live import LiveView


@dataclass(frozen=True)
class LogsState:
    entries: Tuple[ActivityLogEntry, ...] = ()
    filters: LogFilters = field(default_factory=LogFilters)
    loading: bool = True


def with_snapshot(state: LogsState, entries: List[ActivityLogEntry]) -> LogsState:
    return replace(state, entries=tuple(entries), loading=False)


def with_filters(state: LogsState, changes: Dict[str, Any]) -> LogsState:
    merged = {**state.filters.model_dump(), **changes}
    return replace(state, filters=LogFilters.model_validate(merged))


class LogsView(LiveView):
    """Live activity history, newest first."""

    collection = CollectionName.ACTIVITY_LOGS

    def __init__(self, service: DashboardService, filters: LogFilters = None):
        self.service = service
        self.state = LogsState(filters=filters or LogFilters())

    @property
    def visible(self) -> List[ActivityLogEntry]:
        return self.service.filter_logs(self.state.entries, self.state.filters)

    def refresh(self):
        self.state = with_snapshot(self.state, self.service.load_logs())

    def apply_filters(self, changes: Dict[str, Any]):
        self.state = with_filters(self.state, changes)

    def render(self) -> LogsResponse:
        return self.service.build_logs(list(self.state.entries), self.state.filters)
