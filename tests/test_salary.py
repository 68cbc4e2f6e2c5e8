from datetime import date

import pytest

from hrms.errors import NetworkOrServerError, ValidationError
from hrms.models import EmployeeRecord
from hrms.salary import (
    FieldOrigin,
    SalaryForm,
    SalaryFormController,
    apply_basic_salary,
    calculate_totals,
    collect_errors,
    round_amount,
    set_field,
    summarize_salaries,
    validate,
)
from hrms.services import SalaryEnvelope


def test_calculate_totals_sums_without_rounding():
    form = SalaryForm(
        basic_salary=10000.25,
        hra=4000.1,
        da=2000,
        conveyance_allowance=1600,
        medical_allowance=1250,
        special_allowance=500.5,
        other_allowances=100,
        pf_deduction=1200,
        esi_deduction=0,
        professional_tax=200,
        tds=300.75,
        loan_deduction=0,
        other_deductions=50,
    )

    totals = calculate_totals(form)

    assert totals.gross_salary == pytest.approx(19450.85)
    assert totals.total_deductions == pytest.approx(1750.75)
    assert totals.net_salary == pytest.approx(totals.gross_salary - totals.total_deductions)


def test_net_salary_may_be_negative():
    form = SalaryForm(basic_salary=1000, professional_tax=200, loan_deduction=5000)

    assert calculate_totals(form).net_salary == -4200


def test_basic_salary_derives_pf_hra_and_da():
    form = set_field(SalaryForm(), "basicSalary", "10000")

    assert form.basic_salary == 10000
    assert form.pf_deduction == 1200
    assert form.hra == 4000
    assert form.da == 2000
    assert form.hra_origin is FieldOrigin.AUTO
    assert form.da_origin is FieldOrigin.AUTO


def test_manual_hra_is_never_overwritten():
    form = set_field(SalaryForm(), "hra", 5000)

    form = set_field(form, "basic_salary", 10000)
    form = set_field(form, "basic_salary", 20000)

    assert form.hra == 5000
    assert form.hra_origin is FieldOrigin.MANUAL
    assert form.pf_deduction == 2400
    assert form.da == 2000  # set on the first change, nonzero afterwards


def test_manual_zero_still_gets_auto_filled():
    form = set_field(SalaryForm(), "da", 0)
    assert form.da_origin is FieldOrigin.MANUAL

    form = apply_basic_salary(form, 15000)

    assert form.da == 3000
    assert form.da_origin is FieldOrigin.AUTO


def test_pf_is_always_recomputed():
    form = set_field(SalaryForm(), "pf_deduction", 999)

    form = set_field(form, "basic_salary", 12345)

    assert form.pf_deduction == round_amount(12345 * 0.12) == 1481


def test_round_amount_rounds_half_up():
    assert round_amount(0.5) == 1
    assert round_amount(2.5) == 3
    assert round_amount(2.49) == 2


def test_professional_tax_defaults_to_200_and_is_editable():
    form = SalaryForm()
    assert form.professional_tax == 200

    form = set_field(set_field(form, "professionalTax", "175"), "basic_salary", 9000)

    assert form.professional_tax == 175


def test_non_numeric_input_becomes_zero():
    form = set_field(SalaryForm(tds=100), "tds", "abc")

    assert form.tds == 0


def test_unknown_field_is_rejected():
    with pytest.raises(KeyError):
        set_field(SalaryForm(), "bonus", 10)


def test_validate_reports_every_missing_field():
    form = SalaryForm(employee_id=None, basic_salary=0, effective_from=date(2024, 4, 1))

    with pytest.raises(ValidationError) as excinfo:
        validate(form)

    assert set(excinfo.value.errors) == {"employee_id", "basic_salary"}


def test_validate_requires_effective_date():
    errors = collect_errors(SalaryForm(employee_id=4, basic_salary=100, effective_from=None))

    assert list(errors) == ["effective_from"]


def test_valid_form_passes():
    validate(SalaryForm(employee_id=4, basic_salary=100))


def test_form_round_trips_snake_case_payload():
    form = SalaryForm.from_payload(
        {
            "employee_id": 1,
            "employee_code": "EMP001",
            "first_name": "Asha",
            "last_name": "Rao",
            "effective_from": "2024-04-01T00:00:00.000Z",
            "basic_salary": "10000.00",
            "hra": "4000.00",
            "da": None,
        }
    )

    assert form.employee_name == "Asha Rao"
    assert form.effective_from == date(2024, 4, 1)
    assert form.basic_salary == 10000
    assert form.hra_origin is FieldOrigin.MANUAL
    assert form.da_origin is FieldOrigin.UNSET
    assert form.professional_tax == 0
    assert form.to_payload()["basicSalary"] == 10000
    assert form.to_payload()["effectiveFrom"] == "2024-04-01"


def test_summarize_salaries_ignores_inactive():
    summary = summarize_salaries(
        [
            {"net_salary": 10000, "status": "ACTIVE"},
            {"netSalary": "15001", "status": "ACTIVE"},
            {"net_salary": 99999, "status": "INACTIVE"},
        ]
    )

    assert summary.total_employees == 2
    assert summary.total_salary_burden == 25001
    assert summary.avg_salary == 12501
    assert summary.max_salary == 15001
    assert summary.min_salary == 10000
    assert summarize_salaries([]).total_employees == 0


class FakeSalaryService:
    def __init__(self, error=None, data=None):
        self.error = error
        self.data = data
        self.calls = []

    def get_by_id(self, salary_id):
        self.calls.append(("get", salary_id))
        if self.error:
            raise self.error
        return SalaryEnvelope(data=self.data)

    def create(self, payload):
        self.calls.append(("create", payload))
        if self.error:
            raise self.error
        return SalaryEnvelope(message="Salary structure created successfully", data=dict(payload))

    def update(self, salary_id, payload):
        self.calls.append(("update", salary_id, payload))
        if self.error:
            raise self.error
        return SalaryEnvelope(message="Salary structure updated successfully", data=dict(payload))


def employee():
    return EmployeeRecord(employeeId=3, employeeCode="EMP003", firstName="Meera", lastName="Iyer")


def test_submit_blocks_invalid_form_without_network_call():
    service = FakeSalaryService()
    messages = []
    controller = SalaryFormController(service, notify=messages.append)

    assert controller.submit() is False
    assert set(controller.errors) == {"employee_id", "basic_salary"}
    assert service.calls == []
    assert messages == []


def test_editing_a_field_clears_its_error():
    controller = SalaryFormController(FakeSalaryService(), notify=lambda m: None)
    controller.submit()

    controller.change("basicSalary", 8000)
    controller.select_employee(employee())

    assert controller.errors == {}


def test_submit_creates_and_calls_on_success():
    service = FakeSalaryService()
    messages = []
    done = []
    controller = SalaryFormController(service, notify=messages.append, on_success=lambda: done.append(True))
    controller.select_employee(employee())
    controller.change("basic_salary", 10000)

    assert controller.submit() is True
    kind, payload = service.calls[0]
    assert kind == "create"
    assert payload["employeeId"] == 3
    assert payload["employeeName"] == "Meera Iyer"
    assert payload["hra"] == 4000
    assert messages == ["Salary structure created successfully"]
    assert done == [True]
    assert controller.loading is False


def test_submit_updates_existing_structure():
    service = FakeSalaryService(data={"employeeId": 1, "basicSalary": 9000, "effectiveFrom": "2024-01-01"})
    controller = SalaryFormController(service, notify=lambda m: None, salary_id=7)

    assert controller.load() is True
    controller.change("tds", 250)

    assert controller.submit() is True
    assert service.calls[-1][0] == "update"
    assert service.calls[-1][1] == 7


def test_server_field_errors_are_shown_per_field():
    error = NetworkOrServerError("Validation failed", status=400, errors={"basicSalary": "Too high"})
    messages = []
    controller = SalaryFormController(FakeSalaryService(error=error), notify=messages.append)
    controller.select_employee(employee())
    controller.change("basic_salary", 90000)

    assert controller.submit() is False
    assert controller.errors == {"basic_salary": "Too high"}
    assert messages == ["Validation failed"]


def test_load_failure_notifies_and_keeps_form():
    messages = []
    controller = SalaryFormController(
        FakeSalaryService(error=NetworkOrServerError(status=0)), notify=messages.append, salary_id=9
    )

    assert controller.load() is False
    assert messages == ["Failed to load salary data"]
    assert controller.form.employee_id is None
    assert controller.loading is False


@pytest.mark.parametrize("value", ["nan", "inf", "-inf", float("nan"), float("inf")])
def test_non_finite_amounts_become_zero(value):
    form = set_field(SalaryForm(), "basic_salary", value)

    assert form.basic_salary == 0
    assert form.pf_deduction == 0
    assert form.hra == 0
