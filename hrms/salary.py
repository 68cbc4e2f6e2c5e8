"""Salary structure form: totals, validation and the basic-salary defaults.

Changing the basic salary always recomputes PF at 12 %. HRA (40 %) and DA
(20 %) are filled in only while their current value is zero, so a nonzero
amount typed by the user is never overwritten. A manually entered zero is
indistinguishable from an untouched field under that rule and gets replaced
on the next basic-salary change; ``hra_origin``/``da_origin`` record which
case applies without changing the rule.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from .core.logging import get_logger
from .core.monitoring import report_exception
from .errors import NetworkOrServerError, ValidationError
from .models import EmployeeRecord
from .services import SalaryDataService

logger = get_logger(__name__)

PF_RATE = 0.12
HRA_RATE = 0.4
DA_RATE = 0.2
DEFAULT_PROFESSIONAL_TAX = 200

EARNING_FIELDS = (
    "basic_salary",
    "hra",
    "da",
    "conveyance_allowance",
    "medical_allowance",
    "special_allowance",
    "other_allowances",
)
DEDUCTION_FIELDS = (
    "pf_deduction",
    "esi_deduction",
    "professional_tax",
    "tds",
    "loan_deduction",
    "other_deductions",
)
AMOUNT_FIELDS = EARNING_FIELDS + DEDUCTION_FIELDS

_CAMEL_NAMES = {
    "employeeId": "employee_id",
    "employeeCode": "employee_code",
    "employeeName": "employee_name",
    "effectiveFrom": "effective_from",
    "basicSalary": "basic_salary",
    "conveyanceAllowance": "conveyance_allowance",
    "medicalAllowance": "medical_allowance",
    "specialAllowance": "special_allowance",
    "otherAllowances": "other_allowances",
    "pfDeduction": "pf_deduction",
    "esiDeduction": "esi_deduction",
    "professionalTax": "professional_tax",
    "loanDeduction": "loan_deduction",
    "otherDeductions": "other_deductions",
}
_WIRE_NAMES = {snake: camel for camel, snake in _CAMEL_NAMES.items()}


class FieldOrigin(str, Enum):
    UNSET = "unset"
    AUTO = "auto"
    MANUAL = "manual"


def round_amount(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_amount(value: Any) -> float:
    """Parse user or wire input as an amount; anything unparseable or non-finite is 0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    return amount if math.isfinite(amount) else 0.0


def to_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return date.fromisoformat(str(value).split("T")[0])
    except ValueError:
        return None


def field_name(name: str) -> str:
    return _CAMEL_NAMES.get(name, name)


@dataclass
class SalaryForm:
    employee_id: Optional[int] = None
    employee_code: str = ""
    employee_name: str = ""
    effective_from: Optional[date] = field(default_factory=date.today)
    basic_salary: float = 0
    hra: float = 0
    da: float = 0
    conveyance_allowance: float = 0
    medical_allowance: float = 0
    special_allowance: float = 0
    other_allowances: float = 0
    pf_deduction: float = 0
    esi_deduction: float = 0
    professional_tax: float = DEFAULT_PROFESSIONAL_TAX
    tds: float = 0
    loan_deduction: float = 0
    other_deductions: float = 0
    hra_origin: FieldOrigin = FieldOrigin.UNSET
    da_origin: FieldOrigin = FieldOrigin.UNSET

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "SalaryForm":
        """Build a form from an API record, snake_case or camelCase."""
        values = {field_name(key): value for key, value in data.items()}
        form = cls(
            employee_id=int(values["employee_id"]) if values.get("employee_id") else None,
            employee_code=values.get("employee_code") or "",
            employee_name=values.get("employee_name") or _joined_name(values),
            effective_from=to_date(values.get("effective_from")) or date.today(),
            **{name: to_amount(values.get(name)) for name in AMOUNT_FIELDS},
        )
        form.hra_origin = FieldOrigin.MANUAL if form.hra else FieldOrigin.UNSET
        form.da_origin = FieldOrigin.MANUAL if form.da else FieldOrigin.UNSET
        return form

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "employeeId": self.employee_id,
            "employeeCode": self.employee_code,
            "employeeName": self.employee_name,
            "effectiveFrom": self.effective_from.isoformat() if self.effective_from else None,
        }
        for name in AMOUNT_FIELDS:
            payload[_WIRE_NAMES.get(name, name)] = getattr(self, name)
        return payload


def _joined_name(values: Mapping[str, Any]) -> str:
    return f"{values.get('first_name') or values.get('firstName') or ''} {values.get('last_name') or values.get('lastName') or ''}".strip()


@dataclass(frozen=True)
class SalaryTotals:
    gross_salary: float
    total_deductions: float
    net_salary: float


def calculate_totals(form: SalaryForm) -> SalaryTotals:
    gross = sum(getattr(form, name) for name in EARNING_FIELDS)
    deductions = sum(getattr(form, name) for name in DEDUCTION_FIELDS)
    return SalaryTotals(gross_salary=gross, total_deductions=deductions, net_salary=gross - deductions)


def collect_errors(form: SalaryForm) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not form.employee_id:
        errors["employee_id"] = "Please select an employee"
    if not form.effective_from:
        errors["effective_from"] = "Effective date is required"
    if form.basic_salary <= 0:
        errors["basic_salary"] = "Basic salary must be greater than 0"
    return errors


def validate(form: SalaryForm) -> None:
    errors = collect_errors(form)
    if errors:
        raise ValidationError(errors)


def apply_basic_salary(form: SalaryForm, basic_salary: float) -> SalaryForm:
    changes: Dict[str, Any] = {
        "basic_salary": basic_salary,
        "pf_deduction": round_amount(basic_salary * PF_RATE),
    }
    if not form.hra:
        changes["hra"] = round_amount(basic_salary * HRA_RATE)
        changes["hra_origin"] = FieldOrigin.AUTO
    if not form.da:
        changes["da"] = round_amount(basic_salary * DA_RATE)
        changes["da_origin"] = FieldOrigin.AUTO
    return replace(form, **changes)


def set_field(form: SalaryForm, name: str, value: Any) -> SalaryForm:
    """Apply one edit the way the form's inputs do."""
    name = field_name(name)
    if name == "effective_from":
        return replace(form, effective_from=to_date(value))
    if name not in AMOUNT_FIELDS:
        raise KeyError(name)
    amount = to_amount(value)
    if name == "basic_salary":
        return apply_basic_salary(form, amount)
    if name == "hra":
        return replace(form, hra=amount, hra_origin=FieldOrigin.MANUAL)
    if name == "da":
        return replace(form, da=amount, da_origin=FieldOrigin.MANUAL)
    return replace(form, **{name: amount})


def select_employee(form: SalaryForm, employee: EmployeeRecord) -> SalaryForm:
    return replace(
        form,
        employee_id=employee.employee_id,
        employee_code=employee.employee_code,
        employee_name=employee.full_name,
    )


@dataclass(frozen=True)
class SalarySummary:
    total_employees: int
    total_salary_burden: int
    avg_salary: int
    max_salary: float
    min_salary: float


def summarize_salaries(structures: Iterable[Mapping[str, Any]]) -> SalarySummary:
    """Headline numbers over the ACTIVE salary structures."""
    net_salaries = [
        to_amount(item.get("net_salary", item.get("netSalary")))
        for item in structures
        if (item.get("status") or "ACTIVE") == "ACTIVE"
    ]
    if not net_salaries:
        return SalarySummary(0, 0, 0, 0, 0)
    total = sum(net_salaries)
    return SalarySummary(
        total_employees=len(net_salaries),
        total_salary_burden=round_amount(total),
        avg_salary=round_amount(total / len(net_salaries)),
        max_salary=max(net_salaries),
        min_salary=min(net_salaries),
    )


class SalaryFormController:
    """Create/edit flow for one salary structure."""

    def __init__(
        self,
        service: SalaryDataService,
        *,
        notify: Callable[[str], None],
        salary_id: Optional[int] = None,
        on_success: Optional[Callable[[], None]] = None,
    ):
        self.service = service
        self.notify = notify
        self.salary_id = salary_id
        self.on_success = on_success
        self.form = SalaryForm()
        self.errors: Dict[str, str] = {}
        self.loading = False

    @property
    def totals(self) -> SalaryTotals:
        return calculate_totals(self.form)

    def load(self) -> bool:
        if self.salary_id is None:
            return False
        self.loading = True
        try:
            envelope = self.service.get_by_id(self.salary_id)
        except NetworkOrServerError as exc:
            logger.warning("salary_load_failed", salary_id=self.salary_id, error=exc.message)
            self.notify("Failed to load salary data")
            return False
        finally:
            self.loading = False
        if envelope.data:
            self.form = SalaryForm.from_payload(envelope.data)
        return True

    def select_employee(self, employee: EmployeeRecord) -> None:
        self.form = select_employee(self.form, employee)
        self.errors.pop("employee_id", None)

    def change(self, name: str, value: Any) -> None:
        self.form = set_field(self.form, name, value)
        self.errors.pop(field_name(name), None)

    def submit(self) -> bool:
        errors = collect_errors(self.form)
        if errors:
            self.errors = errors
            return False

        self.loading = True
        try:
            if self.salary_id is not None:
                envelope = self.service.update(self.salary_id, self.form.to_payload())
            else:
                envelope = self.service.create(self.form.to_payload())
        except NetworkOrServerError as exc:
            logger.warning("salary_save_failed", salary_id=self.salary_id, status=exc.status, error=exc.message)
            report_exception(exc)
            if exc.field_errors:
                self.errors = {field_name(k): v for k, v in exc.field_errors.items()}
            self.notify(exc.message or "Failed to save salary structure")
            return False
        finally:
            self.loading = False

        logger.info("salary_saved", salary_id=self.salary_id, employee_id=self.form.employee_id)
        self.notify(envelope.message or "Salary structure saved successfully")
        if self.on_success is not None:
            self.on_success()
        return True
