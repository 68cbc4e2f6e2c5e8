from __future__ import annotations

from typing import Dict, List, Optional, Union

NETWORK_ERROR_MESSAGE = "No response from server. Please check your connection."

_STATUS_MESSAGES = {
    403: "Access forbidden. You do not have permission to perform this action.",
    404: "The requested resource was not found.",
    409: "A conflict occurred with the current state.",
    422: "Validation failed. Please check your input.",
    429: "Too many requests. Please slow down and try again later.",
}


def default_message_for_status(status: int) -> str:
    if status == 0:
        return NETWORK_ERROR_MESSAGE
    if status in _STATUS_MESSAGES:
        return _STATUS_MESSAGES[status]
    if status >= 500:
        return "Server error. Please try again later."
    if 400 <= status < 500:
        return "An error occurred processing your request."
    return "An unexpected error occurred"


class HRMSError(Exception):
    """Base class for every error raised by the HRMS client."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NetworkOrServerError(HRMSError):
    """A fetch, update or delete that did not complete.

    ``status`` is the HTTP status code, or 0 when no response arrived.
    ``errors`` carries server-side field errors when the body includes them.
    """

    def __init__(
        self,
        message: Optional[str] = None,
        status: int = 0,
        errors: Optional[Union[Dict[str, str], List[str]]] = None,
    ):
        super().__init__(message or default_message_for_status(status))
        self.status = status
        self.errors = errors

    @property
    def is_network_error(self) -> bool:
        return self.status == 0

    @property
    def field_errors(self) -> Dict[str, str]:
        if isinstance(self.errors, dict):
            return {str(k): str(v) for k, v in self.errors.items()}
        return {}


class ValidationError(HRMSError):
    """Client-side form check failure, keyed by field name."""

    def __init__(self, errors: Dict[str, str]):
        super().__init__("; ".join(errors.values()) or "Validation failed")
        self.errors = dict(errors)

    @property
    def fields(self) -> List[str]:
        return list(self.errors)
