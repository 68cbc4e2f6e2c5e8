"""Employee list screen logic.

The controller owns the query state, the status filter and the records on
display. Any change to those re-issues a fetch. Every fetch is stamped with a
generation number and only the most recently issued one may update the
displayed records.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .core.logging import get_logger
from .core.monitoring import report_exception
from .documents import resolve_document_url
from .errors import NetworkOrServerError
from .models import DocumentType, EmployeeRecord, EmployeeStatus, Site
from .pagination import PaginationMeta
from .query_state import QueryParams, QueryState, QueryStateManager, SortOrder, build_query_params
from .services import EmployeeDataService, EmployeePage, SiteDataService

logger = get_logger(__name__)

ALL_STATUSES = "ALL"


@dataclass(frozen=True)
class FetchTicket:
    generation: int
    params: QueryParams


def build_list_params(state: QueryState, status_filter: str) -> QueryParams:
    params = build_query_params(state)
    if status_filter and status_filter != ALL_STATUSES:
        params["status"] = status_filter
    return params


def _default_confirm(message: str) -> bool:
    return True


def normalize_status(status: Union[EmployeeStatus, str, None]) -> Optional[str]:
    """Canonical status value, ``ALL`` for an empty filter, or None when unknown."""
    if isinstance(status, EmployeeStatus):
        return status.value
    text = (status or ALL_STATUSES).strip().upper()
    if text == ALL_STATUSES:
        return ALL_STATUSES
    try:
        return EmployeeStatus(text).value
    except ValueError:
        return None


class EmployeeListController:
    def __init__(
        self,
        employees: EmployeeDataService,
        sites: Optional[SiteDataService] = None,
        *,
        notify: Callable[[str], None],
        confirm: Callable[[str], bool] = _default_confirm,
        open_editor: Optional[Callable[[int], None]] = None,
        uploads_base_url: str = "http://localhost:5000",
        query: Optional[QueryStateManager] = None,
        auto_fetch: bool = True,
    ):
        self.employees = employees
        self.sites_service = sites
        self.notify = notify
        self.confirm = confirm
        self.open_editor = open_editor
        self.uploads_base_url = uploads_base_url
        self.query = query or QueryStateManager()
        self.auto_fetch = auto_fetch

        self.status_filter = ALL_STATUSES
        self.records: List[EmployeeRecord] = []
        self.pagination: Optional[PaginationMeta] = None
        self.loading = False
        self.last_error: Optional[str] = None
        self.sites: Dict[int, Site] = {}
        self._generation = 0

        self.query.subscribe(self._on_query_change)

    # -- fetch pipeline -------------------------------------------------

    def begin_fetch(self) -> FetchTicket:
        self._generation += 1
        self.loading = True
        ticket = FetchTicket(
            generation=self._generation,
            params=build_list_params(self.query.state, self.status_filter),
        )
        logger.debug("employees_fetch_started", generation=ticket.generation, params=ticket.params)
        return ticket

    def is_current(self, ticket: FetchTicket) -> bool:
        return ticket.generation == self._generation

    def complete_fetch(self, ticket: FetchTicket, page: EmployeePage) -> bool:
        if not self.is_current(ticket):
            logger.info("stale_response_dropped", generation=ticket.generation, latest=self._generation)
            return False
        self.records = list(page.records)
        self.pagination = page.pagination
        self.loading = False
        self.last_error = None
        return True

    def fail_fetch(self, ticket: FetchTicket, exc: NetworkOrServerError) -> bool:
        if not self.is_current(ticket):
            logger.info("stale_failure_dropped", generation=ticket.generation, latest=self._generation)
            return False
        self.loading = False
        self.last_error = exc.message
        logger.warning("employees_fetch_failed", status=exc.status, error=exc.message)
        report_exception(exc)
        self.notify(f"Failed to load employees: {exc.message}")
        return True

    def refresh(self) -> bool:
        """Fetch the current page. Returns True when the response was applied."""
        ticket = self.begin_fetch()
        try:
            page = self.employees.list(ticket.params)
        except NetworkOrServerError as exc:
            self.fail_fetch(ticket, exc)
            return False
        return self.complete_fetch(ticket, page)

    def start(self) -> None:
        self.load_sites()
        self.refresh()

    def _on_query_change(self, old: QueryState, new: QueryState) -> None:
        if self.auto_fetch:
            self.refresh()

    # -- query state ----------------------------------------------------

    @property
    def state(self) -> QueryState:
        return self.query.state

    def go_to_page(self, page: Any) -> None:
        self.query.set_page(page)

    def next_page(self) -> None:
        if self.pagination and self.pagination.has_next_page:
            self.query.set_page(self.pagination.current_page + 1)

    def prev_page(self) -> None:
        if self.pagination and self.pagination.has_prev_page:
            self.query.set_page(self.pagination.current_page - 1)

    def set_limit(self, limit: Any) -> None:
        self.query.set_limit(limit)

    def search(self, term: Optional[str]) -> None:
        self.query.set_search(term)

    def sort(self, field_name: str, order: Union[SortOrder, str] = SortOrder.DESC) -> None:
        self.query.set_sort(field_name, order)

    def toggle_sort(self, field_name: str) -> None:
        self.query.toggle_sort(field_name)

    def set_filters(self, filters: Mapping[str, Any]) -> None:
        self.query.set_filters(filters)

    def set_status_filter(self, status: Union[EmployeeStatus, str]) -> None:
        value = normalize_status(status)
        if value is None:
            logger.warning("unknown_status_filter_ignored", status=status)
            return
        if value == self.status_filter:
            return
        self.status_filter = value
        if self.query.state.page != 1:
            # the page reset triggers the refetch
            self.query.set_page(1)
        elif self.auto_fetch:
            self.refresh()

    def reset(self) -> None:
        status_changed = self.status_filter != ALL_STATUSES
        self.status_filter = ALL_STATUSES
        before = self.query.state
        if self.query.reset() == before and status_changed and self.auto_fetch:
            self.refresh()

    # -- row actions ----------------------------------------------------

    def edit(self, employee_id: int) -> None:
        if self.open_editor is not None:
            self.open_editor(employee_id)

    def delete(self, record: EmployeeRecord) -> bool:
        if not self.confirm(f"Are you sure you want to mark {record.full_name} as resigned?"):
            return False
        try:
            response = self.employees.soft_delete(record.employee_id)
        except NetworkOrServerError as exc:
            logger.warning("employee_delete_failed", employee_id=record.employee_id, error=exc.message)
            report_exception(exc)
            self.notify(f"Failed to delete employee: {exc.message}")
            return False
        logger.info("employee_resigned", employee_id=record.employee_id)
        self.notify(response.message or "Employee marked as resigned successfully")
        self.refresh()
        return True

    def change_status(self, record: EmployeeRecord, status: Union[EmployeeStatus, str]) -> bool:
        value = normalize_status(status)
        if value is None or value == ALL_STATUSES:
            logger.warning("unknown_status_rejected", employee_id=record.employee_id, status=status)
            self.notify(f"Unknown status: {status}")
            return False
        new_status = EmployeeStatus(value)
        if new_status == record.status:
            return False
        if not self.confirm(f"Change status of {record.full_name} to {new_status.value}?"):
            return False
        try:
            response = self.employees.update(record.employee_id, {"status": new_status.value})
        except NetworkOrServerError as exc:
            logger.warning(
                "employee_status_update_failed",
                employee_id=record.employee_id,
                status=new_status.value,
                error=exc.message,
            )
            report_exception(exc)
            self.notify(f"Failed to update status: {exc.message}")
            return False
        logger.info("employee_status_changed", employee_id=record.employee_id, status=new_status.value)
        self.notify(response.message or "Employee status updated successfully")
        self.refresh()
        return True

    def document_url(self, record: EmployeeRecord, document_type: Union[DocumentType, str]) -> Optional[str]:
        return resolve_document_url(record.document_path(document_type), document_type, self.uploads_base_url)

    # -- sites ----------------------------------------------------------

    def load_sites(self) -> None:
        if self.sites_service is None:
            return
        try:
            sites = self.sites_service.list()
        except NetworkOrServerError as exc:
            logger.warning("sites_load_failed", error=exc.message)
            return
        self.sites = {site.site_id: site for site in sites}

    def site_label(self, site_id: Optional[int]) -> str:
        if not site_id:
            return "-"
        site = self.sites.get(site_id)
        return site.label if site else "-"
