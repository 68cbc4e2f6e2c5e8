from .client import HRMSClient
from .employees import EmployeeListController
from .errors import HRMSError, NetworkOrServerError, ValidationError
from .models import DocumentType, EmployeeRecord, EmployeeStatus, Site
from .pagination import PaginationMeta
from .query_state import QueryState, QueryStateManager, SortOrder
from .salary import SalaryForm, SalaryFormController, calculate_totals, validate

__all__ = [
    "HRMSClient",
    "EmployeeListController",
    "HRMSError",
    "NetworkOrServerError",
    "ValidationError",
    "DocumentType",
    "EmployeeRecord",
    "EmployeeStatus",
    "Site",
    "PaginationMeta",
    "QueryState",
    "QueryStateManager",
    "SortOrder",
    "SalaryForm",
    "SalaryFormController",
    "calculate_totals",
    "validate",
]
