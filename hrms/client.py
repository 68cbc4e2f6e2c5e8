"""HTTP implementations of the HRMS data services."""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from .core.config import Settings, get_settings
from .core.logging import get_logger
from .core.observability import get_tracer
from .errors import NetworkOrServerError
from .models import ApiResponse, EmployeeRecord, Site
from .pagination import PaginationMeta
from .services import EmployeePage, SalaryEnvelope

logger = get_logger(__name__)
tracer = get_tracer(__name__)

EMPLOYEE_ENDPOINT = "/employees"
SITE_ENDPOINT = "/sites"
SALARY_ENDPOINT = "/salaries"

MALFORMED_RESPONSE = "Malformed response from server"


class ApiClient:
    """Thin wrapper over ``httpx.Client`` that unwraps the HRMS response envelope.

    Every failure, transport or HTTP or ``success: false``, is raised as
    ``NetworkOrServerError``. Nothing is retried.
    """

    def __init__(self, settings: Optional[Settings] = None, http: Optional[httpx.Client] = None):
        self.settings = settings or get_settings()
        self._owns_http = http is None
        self.http = http or httpx.Client(
            base_url=self.settings.api_base_url,
            timeout=self.settings.request_timeout,
            headers=self._default_headers(),
        )

    def _default_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.settings.api_token:
            headers["Authorization"] = f"Bearer {self.settings.api_token}"
        return headers

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
    ) -> ApiResponse:
        with tracer.start_as_current_span(f"{method} {path}") as span:
            try:
                response = self.http.request(method, path, params=params, json=json)
            except httpx.RequestError as exc:
                span.record_exception(exc)
                logger.warning("api_request_failed", method=method, path=path, error=str(exc))
                raise NetworkOrServerError(status=0) from exc
            span.set_attribute("http.status_code", response.status_code)
            return self._unwrap(method, path, response)

    def _unwrap(self, method: str, path: str, response: httpx.Response) -> ApiResponse:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"success": response.is_success, "data": body}

        if response.is_error:
            logger.warning(
                "api_error_response",
                method=method,
                path=path,
                status=response.status_code,
                message=body.get("message"),
            )
            raise NetworkOrServerError(
                body.get("message"), status=response.status_code, errors=body.get("errors")
            )

        try:
            envelope = ApiResponse.model_validate(body)
        except PydanticValidationError as exc:
            raise NetworkOrServerError(MALFORMED_RESPONSE, status=response.status_code) from exc
        if not envelope.success:
            raise NetworkOrServerError(
                envelope.message or "Request failed", status=response.status_code, errors=envelope.errors
            )
        return envelope


class EmployeeClient:
    def __init__(self, api: ApiClient):
        self.api = api

    def list(self, params: Mapping[str, Any]) -> EmployeePage:
        envelope = self.api.request("GET", EMPLOYEE_ENDPOINT, params=dict(params))
        records = _parse_records(envelope.data)
        try:
            if envelope.pagination:
                pagination = PaginationMeta.model_validate(envelope.pagination)
            else:
                pagination = PaginationMeta.single_page(len(records))
        except PydanticValidationError as exc:
            raise NetworkOrServerError(MALFORMED_RESPONSE, status=200) from exc
        return EmployeePage(records=records, pagination=pagination, message=envelope.message)

    def list_active(self) -> List[EmployeeRecord]:
        envelope = self.api.request("GET", f"{EMPLOYEE_ENDPOINT}/active")
        return _parse_records(envelope.data)

    def get(self, employee_id: int) -> EmployeeRecord:
        envelope = self.api.request("GET", f"{EMPLOYEE_ENDPOINT}/{employee_id}")
        try:
            return EmployeeRecord.model_validate(envelope.data)
        except PydanticValidationError as exc:
            raise NetworkOrServerError(MALFORMED_RESPONSE, status=200) from exc

    def update(self, employee_id: int, fields: Mapping[str, Any]) -> ApiResponse:
        return self.api.request("PUT", f"{EMPLOYEE_ENDPOINT}/{employee_id}", json=dict(fields))

    def soft_delete(self, employee_id: int) -> ApiResponse:
        return self.api.request("DELETE", f"{EMPLOYEE_ENDPOINT}/{employee_id}")


class SiteClient:
    def __init__(self, api: ApiClient):
        self.api = api

    def list(self) -> List[Site]:
        envelope = self.api.request("GET", SITE_ENDPOINT)
        try:
            return [Site.model_validate(item) for item in envelope.data or []]
        except PydanticValidationError as exc:
            raise NetworkOrServerError(MALFORMED_RESPONSE, status=200) from exc


class SalaryClient:
    def __init__(self, api: ApiClient):
        self.api = api

    def list(self) -> List[Dict[str, Any]]:
        envelope = self.api.request("GET", SALARY_ENDPOINT)
        return list(envelope.data or [])

    def get_by_id(self, salary_id: int) -> SalaryEnvelope:
        return _salary_envelope(self.api.request("GET", f"{SALARY_ENDPOINT}/{salary_id}"))

    def create(self, payload: Mapping[str, Any]) -> SalaryEnvelope:
        return _salary_envelope(self.api.request("POST", SALARY_ENDPOINT, json=dict(payload)))

    def update(self, salary_id: int, payload: Mapping[str, Any]) -> SalaryEnvelope:
        return _salary_envelope(self.api.request("PUT", f"{SALARY_ENDPOINT}/{salary_id}", json=dict(payload)))

    def delete(self, salary_id: int) -> SalaryEnvelope:
        return _salary_envelope(self.api.request("DELETE", f"{SALARY_ENDPOINT}/{salary_id}"))


class HRMSClient:
    """One shared HTTP connection exposing every data service."""

    def __init__(self, settings: Optional[Settings] = None, http: Optional[httpx.Client] = None):
        self.api = ApiClient(settings=settings, http=http)
        self.employees = EmployeeClient(self.api)
        self.sites = SiteClient(self.api)
        self.salaries = SalaryClient(self.api)

    def close(self) -> None:
        self.api.close()

    def __enter__(self) -> "HRMSClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _parse_records(data: Any) -> List[EmployeeRecord]:
    try:
        return [EmployeeRecord.model_validate(item) for item in data or []]
    except PydanticValidationError as exc:
        raise NetworkOrServerError(MALFORMED_RESPONSE, status=200) from exc


def _salary_envelope(envelope: ApiResponse) -> SalaryEnvelope:
    data = envelope.data if isinstance(envelope.data, dict) else None
    return SalaryEnvelope(message=envelope.message, data=data)
