"""Contracts the controllers depend on.

The HTTP implementations live in ``hrms.client``; tests and other front ends
may supply any object with the same methods.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol

from .models import ApiResponse, EmployeeRecord, Site
from .pagination import PaginationMeta


@dataclass
class EmployeePage:
    records: List[EmployeeRecord]
    pagination: PaginationMeta
    message: str = ""


@dataclass
class SalaryEnvelope:
    message: str = ""
    data: Optional[Dict[str, Any]] = field(default=None)


class EmployeeDataService(Protocol):
    def list(self, params: Mapping[str, Any]) -> EmployeePage: ...

    def update(self, employee_id: int, fields: Mapping[str, Any]) -> ApiResponse: ...

    def soft_delete(self, employee_id: int) -> ApiResponse: ...


class SiteDataService(Protocol):
    def list(self) -> List[Site]: ...


class SalaryDataService(Protocol):
    def get_by_id(self, salary_id: int) -> SalaryEnvelope: ...

    def create(self, payload: Mapping[str, Any]) -> SalaryEnvelope: ...

    def update(self, salary_id: int, payload: Mapping[str, Any]) -> SalaryEnvelope: ...
