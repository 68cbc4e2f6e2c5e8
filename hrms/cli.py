from __future__ import annotations

import argparse
import sys
from typing import Callable, List

from .client import HRMSClient
from .core.config import get_settings
from .core.logging import configure_logging
from .core.monitoring import configure_error_monitoring
from .core.observability import configure_tracing
from .ctc import DEFAULT_PT_STATE, DEFAULT_SPLIT, PT_RULES, SPLIT_OPTIONS, apply_breakdown, breakdown_from_ctc
from .documents import resolve_document_url
from .employees import ALL_STATUSES, EmployeeListController
from .errors import NetworkOrServerError
from .models import DocumentType, EmployeeStatus
from .query_state import ALLOWED_LIMITS, QueryStateManager, SortOrder
from .salary import AMOUNT_FIELDS, SalaryForm, SalaryFormController, calculate_totals, set_field
from .views import format_breakdown, format_employee_table, format_pagination, format_totals


def build_client() -> HRMSClient:
    return HRMSClient(settings=get_settings())


def parse_filter(value: str) -> tuple[str, str]:
    key, sep, filter_value = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"filters must look like key=value, got {value!r}")
    return key, filter_value


def prompt_confirm(args: argparse.Namespace) -> Callable[[str], bool]:
    def confirm(message: str) -> bool:
        if args.yes:
            return True
        return input(f"{message} [y/N] ").strip().lower() in {"y", "yes"}

    return confirm


def list_controller(client: HRMSClient, args: argparse.Namespace, **kwargs) -> EmployeeListController:
    settings = get_settings()
    return EmployeeListController(
        client.employees,
        client.sites,
        notify=print,
        uploads_base_url=settings.uploads_base_url,
        query=QueryStateManager(initial_limit=settings.default_limit),
        auto_fetch=False,
        **kwargs,
    )


def cmd_list_employees(args: argparse.Namespace) -> int:
    with build_client() as client:
        controller = list_controller(client, args)
        query = controller.query
        if args.limit is not None:
            query.set_limit(args.limit)
        if args.search:
            query.set_search(args.search)
        if args.sort:
            query.set_sort(args.sort, args.order)
        if args.filter:
            query.set_filters(dict(args.filter))
        controller.status_filter = args.status
        query.set_page(args.page)

        controller.load_sites()
        if not controller.refresh():
            return 1
        print(format_employee_table(controller.records, controller.site_label))
        summary = format_pagination(controller.pagination)
        if summary:
            print(summary)
    return 0


def cmd_delete_employee(args: argparse.Namespace) -> int:
    with build_client() as client:
        controller = list_controller(client, args, confirm=prompt_confirm(args))
        try:
            record = client.employees.get(args.id)
        except NetworkOrServerError as exc:
            print(f"Failed to load employee: {exc.message}")
            return 1
        return 0 if controller.delete(record) else 1


def cmd_set_status(args: argparse.Namespace) -> int:
    with build_client() as client:
        controller = list_controller(client, args, confirm=prompt_confirm(args))
        try:
            record = client.employees.get(args.id)
        except NetworkOrServerError as exc:
            print(f"Failed to load employee: {exc.message}")
            return 1
        return 0 if controller.change_status(record, args.status) else 1


def cmd_document_url(args: argparse.Namespace) -> int:
    url = resolve_document_url(args.path, args.type, get_settings().uploads_base_url)
    if url is None:
        print("No document on file")
        return 1
    print(url)
    return 0


def form_from_args(args: argparse.Namespace) -> SalaryForm:
    form = SalaryForm(employee_id=getattr(args, "employee", None))
    if getattr(args, "effective_from", None):
        form = set_field(form, "effective_from", args.effective_from)
    # basic first so explicit hra/da/pf values win over the derived ones
    if args.basic_salary is not None:
        form = set_field(form, "basic_salary", args.basic_salary)
    for name in AMOUNT_FIELDS:
        value = getattr(args, name, None)
        if name != "basic_salary" and value is not None:
            form = set_field(form, name, value)
    return form


def cmd_salary_totals(args: argparse.Namespace) -> int:
    print(format_totals(calculate_totals(form_from_args(args))))
    return 0


def cmd_salary_ctc(args: argparse.Namespace) -> int:
    breakdown = breakdown_from_ctc(args.ctc, args.split, args.state)
    if breakdown is None:
        print("CTC must be greater than 0")
        return 1
    print(format_breakdown(breakdown))
    print(format_totals(calculate_totals(apply_breakdown(SalaryForm(), breakdown))))
    return 0


def cmd_salary_submit(args: argparse.Namespace) -> int:
    with build_client() as client:
        controller = SalaryFormController(client.salaries, notify=print, salary_id=args.salary_id)
        if args.salary_id is not None:
            controller.load()
        if args.employee is not None:
            controller.form.employee_id = args.employee
        if args.effective_from:
            controller.change("effective_from", args.effective_from)
        if args.basic_salary is not None:
            controller.change("basic_salary", args.basic_salary)
        for name in AMOUNT_FIELDS:
            if name != "basic_salary" and getattr(args, name, None) is not None:
                controller.change(name, getattr(args, name))
        if controller.submit():
            return 0
        for name, message in controller.errors.items():
            print(f"{name}: {message}")
        return 1


def add_amount_arguments(parser: argparse.ArgumentParser) -> None:
    for name in AMOUNT_FIELDS:
        parser.add_argument(f"--{name.replace('_', '-')}", dest=name, type=float)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="HRMS employee and salary client")
    sub = parser.add_subparsers(dest="command", required=True)

    employees = sub.add_parser("employees", help="Employee list and row actions")
    employee_sub = employees.add_subparsers(dest="action", required=True)

    listing = employee_sub.add_parser("list", help="List employees page by page")
    listing.add_argument("--page", type=int, default=1)
    listing.add_argument("--limit", type=int, choices=ALLOWED_LIMITS)
    listing.add_argument("--search")
    listing.add_argument("--sort")
    listing.add_argument("--order", choices=[o.value for o in SortOrder], default=SortOrder.DESC.value)
    listing.add_argument(
        "--status", choices=[ALL_STATUSES] + [s.value for s in EmployeeStatus], default=ALL_STATUSES
    )
    listing.add_argument("--filter", action="append", type=parse_filter, help="Extra filter as key=value")
    listing.set_defaults(func=cmd_list_employees)

    delete = employee_sub.add_parser("delete", help="Mark an employee as resigned")
    delete.add_argument("id", type=int)
    delete.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    delete.set_defaults(func=cmd_delete_employee)

    status = employee_sub.add_parser("set-status", help="Change an employee's status")
    status.add_argument("id", type=int)
    status.add_argument("status", choices=[s.value for s in EmployeeStatus])
    status.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    status.set_defaults(func=cmd_set_status)

    document = employee_sub.add_parser("document", help="Print the URL of an uploaded document")
    document.add_argument("path")
    document.add_argument("type", choices=[d.value for d in DocumentType])
    document.set_defaults(func=cmd_document_url)

    salary = sub.add_parser("salary", help="Salary structure calculations")
    salary_sub = salary.add_subparsers(dest="action", required=True)

    totals = salary_sub.add_parser("totals", help="Compute gross, deductions and net salary")
    add_amount_arguments(totals)
    totals.set_defaults(func=cmd_salary_totals)

    ctc = salary_sub.add_parser("ctc", help="Split a monthly CTC into salary components")
    ctc.add_argument("ctc", type=float)
    ctc.add_argument("--split", choices=sorted(SPLIT_OPTIONS), default=DEFAULT_SPLIT)
    ctc.add_argument("--state", choices=sorted(PT_RULES), default=DEFAULT_PT_STATE)
    ctc.set_defaults(func=cmd_salary_ctc)

    submit = salary_sub.add_parser("submit", help="Create or update a salary structure")
    submit.add_argument("--salary-id", type=int)
    submit.add_argument("--employee", type=int)
    submit.add_argument("--effective-from")
    add_amount_arguments(submit)
    submit.set_defaults(func=cmd_salary_submit)

    return parser


def main(argv: List[str] | None = None) -> int:
    settings = get_settings()
    configure_logging(settings.log_level, json_output=settings.env != "dev")
    configure_error_monitoring(settings)
    configure_tracing(settings.otlp_endpoint)
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
