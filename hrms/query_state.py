"""Pagination, search, sort and filter state for list screens.

``QueryState`` is an immutable value. The module level functions are pure
transitions returning a new state; ``QueryStateManager`` wraps them for
callers that want a single mutable handle with change notifications.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import httpx

ALLOWED_LIMITS = (5, 10, 20, 50, 100)
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

QueryParams = Dict[str, Union[int, str]]


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def coerce(cls, value: Any) -> "SortOrder":
        if isinstance(value, SortOrder):
            return value
        if isinstance(value, str) and value.strip().upper() == "ASC":
            return cls.ASC
        return cls.DESC

    def flipped(self) -> "SortOrder":
        return SortOrder.DESC if self is SortOrder.ASC else SortOrder.ASC


def _to_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


def sanitize_page(value: Any) -> int:
    page = _to_int(value)
    if page is None or page < 1:
        return DEFAULT_PAGE
    return page


def sanitize_limit(value: Any, fallback: int = DEFAULT_LIMIT) -> int:
    """Snap ``value`` to the nearest allowed page size; ties go to the smaller one."""
    limit = _to_int(value)
    if limit is None:
        limit = fallback
    if limit in ALLOWED_LIMITS:
        return limit
    return min(ALLOWED_LIMITS, key=lambda allowed: (abs(allowed - limit), allowed))


def _freeze(filters: Optional[Mapping[Any, Any]]) -> Mapping[str, str]:
    cleaned = {}
    for key, value in (filters or {}).items():
        # falsy values stay in state as "" so they are never sent
        cleaned[str(key)] = str(value) if value else ""
    return MappingProxyType(cleaned)


@dataclass(frozen=True)
class QueryState:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    search: str = ""
    sort_by: Optional[str] = None
    sort_order: SortOrder = SortOrder.DESC
    filters: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "page", sanitize_page(self.page))
        object.__setattr__(self, "limit", sanitize_limit(self.limit))
        object.__setattr__(self, "search", (self.search or "").strip())
        object.__setattr__(self, "sort_by", (self.sort_by or "").strip() or None)
        object.__setattr__(self, "sort_order", SortOrder.coerce(self.sort_order))
        object.__setattr__(self, "filters", _freeze(self.filters))

    @classmethod
    def initial(cls, page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> "QueryState":
        return cls(page=page, limit=limit)


def set_page(state: QueryState, page: Any) -> QueryState:
    return replace(state, page=sanitize_page(page))


def set_limit(state: QueryState, limit: Any, fallback: Optional[int] = None) -> QueryState:
    fallback = state.limit if fallback is None else fallback
    return replace(state, limit=sanitize_limit(limit, fallback=fallback), page=DEFAULT_PAGE)


def set_search(state: QueryState, search: Optional[str]) -> QueryState:
    return replace(state, search=search or "", page=DEFAULT_PAGE)


def set_sort(state: QueryState, field_name: Optional[str], order: Any = SortOrder.DESC) -> QueryState:
    return replace(state, sort_by=field_name, sort_order=SortOrder.coerce(order), page=DEFAULT_PAGE)


def toggle_sort(state: QueryState, field_name: str) -> QueryState:
    """Flip the order when ``field_name`` is already the sort field, otherwise
    sort by it descending."""
    if state.sort_by is not None and state.sort_by == (field_name or "").strip():
        return replace(state, sort_order=state.sort_order.flipped(), page=DEFAULT_PAGE)
    return replace(state, sort_by=field_name, sort_order=SortOrder.DESC, page=DEFAULT_PAGE)


def set_filters(state: QueryState, filters: Optional[Mapping[str, Any]]) -> QueryState:
    return replace(state, filters=filters or {}, page=DEFAULT_PAGE)


def reset(state: QueryState, initial_page: int = DEFAULT_PAGE, initial_limit: int = DEFAULT_LIMIT) -> QueryState:
    return QueryState.initial(page=initial_page, limit=initial_limit)


def build_query_params(state: QueryState) -> QueryParams:
    params: QueryParams = {"page": state.page, "limit": state.limit}
    if state.search:
        params["search"] = state.search
    if state.sort_by:
        params["sortBy"] = state.sort_by
        params["sortOrder"] = state.sort_order.value
    for key, value in state.filters.items():
        if value:
            params[key] = value
    return params


def build_query_string(state: QueryState) -> str:
    return str(httpx.QueryParams(build_query_params(state)))


Listener = Callable[[QueryState, QueryState], None]


class QueryStateManager:
    """Mutable handle over a ``QueryState``.

    Listeners are called with ``(old, new)`` after every transition that
    actually changes the state.
    """

    def __init__(self, initial_page: int = DEFAULT_PAGE, initial_limit: int = DEFAULT_LIMIT):
        self.initial_page = sanitize_page(initial_page)
        self.initial_limit = sanitize_limit(initial_limit)
        self._state = QueryState.initial(self.initial_page, self.initial_limit)
        self._listeners: List[Listener] = []

    @property
    def state(self) -> QueryState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _apply(self, new_state: QueryState) -> QueryState:
        old_state = self._state
        if new_state == old_state:
            return old_state
        self._state = new_state
        for listener in list(self._listeners):
            listener(old_state, new_state)
        return new_state

    def set_page(self, page: Any) -> QueryState:
        return self._apply(set_page(self._state, page))

    def set_limit(self, limit: Any) -> QueryState:
        return self._apply(set_limit(self._state, limit, fallback=self.initial_limit))

    def set_search(self, search: Optional[str]) -> QueryState:
        return self._apply(set_search(self._state, search))

    def set_sort(self, field_name: Optional[str], order: Any = SortOrder.DESC) -> QueryState:
        return self._apply(set_sort(self._state, field_name, order))

    def toggle_sort(self, field_name: str) -> QueryState:
        return self._apply(toggle_sort(self._state, field_name))

    def set_filters(self, filters: Optional[Mapping[str, Any]]) -> QueryState:
        return self._apply(set_filters(self._state, filters))

    def reset(self) -> QueryState:
        return self._apply(reset(self._state, self.initial_page, self.initial_limit))

    def build_query_params(self) -> QueryParams:
        return build_query_params(self._state)

    def build_query_string(self) -> str:
        return build_query_string(self._state)
