from __future__ import annotations

import sys
from copy import deepcopy
from pathlib import Path

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from hrms.client import HRMSClient
from hrms.core.config import Settings
from hrms.pagination import build_pagination_meta

EMPLOYEES = [
    {
        "employeeId": 1,
        "employeeCode": "EMP001",
        "firstName": "Asha",
        "lastName": "Rao",
        "mobileNo": "9876500001",
        "email": "asha@example.com",
        "dateOfJoining": "2022-04-01T00:00:00.000Z",
        "siteId": 10,
        "offerLetterUrl": "offer-asha.pdf",
        "aadhaarCardUrl": "/uploads/aadhaar-cards/asha.pdf",
        "status": "ACTIVE",
    },
    {
        "employeeId": 2,
        "employeeCode": "EMP002",
        "firstName": "Vikram",
        "lastName": "Shah",
        "mobileNo": "9876500002",
        "dateOfJoining": "2021-01-15",
        "siteId": 11,
        "status": "ON_LEAVE",
    },
    {
        "employeeId": 3,
        "employeeCode": "EMP003",
        "firstName": "Meera",
        "lastName": "Iyer",
        "mobileNo": "9876500003",
        "dateOfJoining": "2023-07-10",
        "status": "ACTIVE",
    },
]

SITES = [
    {"site_id": 10, "site_code": "MUM01", "site_name": "Andheri Plant", "status": "ACTIVE"},
    {"site_id": 11, "site_code": "PUN01", "site_name": "Hinjewadi Office", "status": "ACTIVE"},
]

SALARIES = [
    {
        "salary_id": 7,
        "employee_id": 1,
        "employee_code": "EMP001",
        "first_name": "Asha",
        "last_name": "Rao",
        "effective_from": "2024-04-01T00:00:00.000Z",
        "basic_salary": "10000.00",
        "hra": "4000.00",
        "da": "2000.00",
        "pf_deduction": "1200.00",
        "professional_tax": "200.00",
        "net_salary": 14600,
        "status": "ACTIVE",
    }
]

PAGING_KEYS = {"page", "limit", "search", "sortBy", "sortOrder", "status"}


def build_fake_api() -> FastAPI:
    app = FastAPI()
    app.state.employees = deepcopy(EMPLOYEES)
    app.state.salaries = deepcopy(SALARIES)
    app.state.fail_employees = False
    app.state.requests = []

    def not_found(message: str) -> JSONResponse:
        return JSONResponse(status_code=404, content={"success": False, "message": message})

    def find_employee(employee_id: int):
        return next((e for e in app.state.employees if e["employeeId"] == employee_id), None)

    @app.get("/employees")
    def list_employees(request: Request):
        params = dict(request.query_params)
        app.state.requests.append(params)
        if app.state.fail_employees:
            return JSONResponse(status_code=500, content={"success": False, "message": "Database unavailable"})
        page = int(params.get("page", 1))
        limit = int(params.get("limit", 10))
        rows = app.state.employees
        if params.get("status"):
            rows = [e for e in rows if e["status"] == params["status"]]
        if params.get("search"):
            keyword = params["search"].lower()
            rows = [
                e
                for e in rows
                if keyword in e["firstName"].lower()
                or keyword in e["lastName"].lower()
                or keyword in e["employeeCode"].lower()
            ]
        for key, value in params.items():
            if key not in PAGING_KEYS:
                rows = [e for e in rows if str(e.get(key)) == value]
        if params.get("sortBy"):
            rows = sorted(rows, key=lambda e: e.get(params["sortBy"]) or "", reverse=params.get("sortOrder") != "ASC")
        start = (page - 1) * limit
        meta = build_pagination_meta(len(rows), page, limit)
        return {
            "success": True,
            "data": rows[start : start + limit],
            "pagination": meta.model_dump(by_alias=True),
        }

    @app.get("/employees/active")
    def active_employees():
        return {"success": True, "data": [e for e in app.state.employees if e["status"] == "ACTIVE"]}

    @app.get("/employees/{employee_id}")
    def get_employee(employee_id: int):
        employee = find_employee(employee_id)
        if employee is None:
            return not_found("Employee not found")
        return {"success": True, "data": employee}

    @app.put("/employees/{employee_id}")
    async def update_employee(employee_id: int, request: Request):
        employee = find_employee(employee_id)
        if employee is None:
            return not_found("Employee not found")
        employee.update(await request.json())
        return {"success": True, "message": "Employee updated successfully", "data": employee}

    @app.delete("/employees/{employee_id}")
    def delete_employee(employee_id: int):
        employee = find_employee(employee_id)
        if employee is None:
            return not_found("Employee not found")
        employee["status"] = "RESIGNED"
        return {"success": True, "message": "Employee marked as resigned successfully"}

    @app.get("/sites")
    def list_sites():
        return {"success": True, "data": SITES}

    @app.get("/salaries")
    def list_salaries():
        return {"success": True, "data": app.state.salaries}

    @app.get("/salaries/{salary_id}")
    def get_salary(salary_id: int):
        salary = next((s for s in app.state.salaries if s["salary_id"] == salary_id), None)
        if salary is None:
            return not_found("Salary structure not found")
        return {"success": True, "data": salary}

    @app.post("/salaries")
    async def create_salary(request: Request):
        body = await request.json()
        if body.get("basicSalary", 0) > 50000:
            return JSONResponse(
                status_code=400,
                content={
                    "success": False,
                    "message": "Validation failed",
                    "errors": {"basicSalary": "Basic salary exceeds the allowed maximum"},
                },
            )
        created = {"salary_id": len(app.state.salaries) + 100, **body}
        app.state.salaries.append(created)
        return JSONResponse(
            status_code=201,
            content={"success": True, "message": "Salary structure created successfully", "data": created},
        )

    @app.put("/salaries/{salary_id}")
    async def update_salary(salary_id: int, request: Request):
        salary = next((s for s in app.state.salaries if s["salary_id"] == salary_id), None)
        if salary is None:
            return not_found("Salary structure not found")
        salary.update(await request.json())
        return {"success": True, "message": "Salary structure updated successfully", "data": salary}

    return app


@pytest.fixture
def fake_api() -> FastAPI:
    return build_fake_api()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        api_base_url="http://testserver",
        uploads_base_url="http://files.example.com",
    )


@pytest.fixture
def hrms_client(fake_api, settings):
    with TestClient(fake_api) as http:
        with HRMSClient(settings=settings, http=http) as client:
            yield client
