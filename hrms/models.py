from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class EmployeeStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ON_LEAVE = "ON_LEAVE"
    RESIGNED = "RESIGNED"
    TERMINATED = "TERMINATED"


class DocumentType(str, Enum):
    OFFER_LETTER = "offer-letter"
    AADHAAR = "aadhaar"
    PAN = "pan"


class WireModel(BaseModel):
    """Accepts both the camelCase and snake_case keys the backend emits."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def _date_part(value: Any) -> Any:
    # the API serializes DATE columns as midnight timestamps
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        return value.split("T")[0]
    return value


class EmployeeRecord(WireModel):
    employee_id: int
    employee_code: str = ""
    first_name: str = ""
    last_name: str = ""
    mobile_no: Optional[str] = None
    email: Optional[str] = None
    dob: Optional[date] = None
    date_of_joining: Optional[date] = None
    date_of_leaving: Optional[date] = None
    designation: Optional[str] = None
    department: Optional[str] = None
    site_id: Optional[int] = None
    aadhaar_no: Optional[str] = None
    pan_no: Optional[str] = None
    account_number: Optional[str] = None
    ifsc_code: Optional[str] = None
    bank_name: Optional[str] = None
    uan_no: Optional[str] = None
    pf_no: Optional[str] = None
    offer_letter_url: Optional[str] = None
    aadhaar_card_url: Optional[str] = None
    pan_card_url: Optional[str] = None
    # statuses outside the enum (e.g. INACTIVE from older soft deletes) are kept as text
    status: Union[EmployeeStatus, str] = Field(default=EmployeeStatus.ACTIVE, union_mode="left_to_right")

    @field_validator("dob", "date_of_joining", "date_of_leaving", mode="before")
    @classmethod
    def strip_time(cls, value: Any) -> Any:
        return _date_part(value)

    @field_validator("mobile_no", mode="before")
    @classmethod
    def mobile_as_text(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def status_label(self) -> str:
        return self.status.value if isinstance(self.status, EmployeeStatus) else str(self.status)

    def document_path(self, document_type: Union[DocumentType, str]) -> Optional[str]:
        try:
            document_type = DocumentType(document_type)
        except ValueError:
            return None
        return {
            DocumentType.OFFER_LETTER: self.offer_letter_url,
            DocumentType.AADHAAR: self.aadhaar_card_url,
            DocumentType.PAN: self.pan_card_url,
        }[document_type]


class Site(WireModel):
    site_id: int
    site_code: str = ""
    site_name: str = ""
    status: str = "ACTIVE"

    @property
    def label(self) -> str:
        return f"{self.site_code} - {self.site_name}"


class ApiResponse(WireModel):
    """Envelope returned by every HRMS endpoint."""

    success: bool = False
    message: str = ""
    data: Any = None
    pagination: Optional[dict] = None
    errors: Any = None
