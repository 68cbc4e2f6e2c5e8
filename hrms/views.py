from __future__ import annotations

from typing import Callable, Iterable, Optional

from .ctc import CtcBreakdown
from .models import EmployeeRecord
from .pagination import PaginationMeta, item_range, page_numbers
from .salary import SalaryTotals


def format_employee_table(
    records: Iterable[EmployeeRecord], site_label: Optional[Callable[[Optional[int]], str]] = None
) -> str:
    rows = ["Emp Code    Name                      Mobile        Site                  Status"]
    for record in records:
        site = site_label(record.site_id) if site_label else "-"
        rows.append(
            f"{record.employee_code:<10}  {record.full_name:<24}  {record.mobile_no or '-':<12}  {site:<20}  {record.status_label}"
        )
    if len(rows) == 1:
        rows.append("No employees found")
    return "\n".join(rows)


def format_pagination(meta: Optional[PaginationMeta]) -> str:
    if meta is None or meta.total_items == 0:
        return ""
    start, end = item_range(meta)
    pages = " ".join(f"[{p}]" if p == meta.current_page else str(p) for p in page_numbers(meta))
    return f"Showing {start} to {end} of {meta.total_items} results  |  Page {meta.current_page} of {meta.total_pages}  {pages}"


def format_totals(totals: SalaryTotals) -> str:
    return "\n".join(
        [
            f"Gross salary:      {totals.gross_salary:>12,.2f}",
            f"Total deductions:  {totals.total_deductions:>12,.2f}",
            f"Net salary:        {totals.net_salary:>12,.2f}",
        ]
    )


def format_breakdown(breakdown: CtcBreakdown) -> str:
    return "\n".join(
        [
            f"Gross (CTC):        {breakdown.gross:>12,.2f}",
            f"Basic salary:       {breakdown.basic_salary:>12,.2f}",
            f"HRA:                {breakdown.hra:>12,.2f}",
            f"Special allowance:  {breakdown.special_allowance:>12,.2f}",
            f"PF deduction:       {breakdown.pf_deduction:>12,.2f}",
            f"ESI deduction:      {breakdown.esi_deduction:>12,.2f}",
            f"Professional tax:   {breakdown.professional_tax:>12,.2f}",
        ]
    )
