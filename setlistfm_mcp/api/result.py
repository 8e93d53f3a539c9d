"""Result type returned by the API clients.

Clients never raise for upstream failures. They return an ApiResult so a
tool can tell "not found" from "transport failure" from "not authenticated"
and pick the sentence to show the user.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ApiErrorKind(str, Enum):
    """Why an upstream call produced no data."""

    NOT_FOUND = "not_found"
    UNAUTHENTICATED = "unauthenticated"
    HTTP_ERROR = "http_error"
    TRANSPORT_ERROR = "transport_error"
    INVALID_RESPONSE = "invalid_response"


@dataclass
class ApiResult:
    """Parsed JSON body of a successful call, or the reason for failure."""

    data: Any = None
    error: ApiErrorKind | None = None
    status_code: int | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: Any, status_code: int = 200) -> "ApiResult":
        return cls(data=data, status_code=status_code)

    @classmethod
    def failure(
        cls,
        error: ApiErrorKind,
        message: str,
        status_code: int | None = None,
    ) -> "ApiResult":
        return cls(error=error, status_code=status_code, message=message)

    @classmethod
    def from_status(cls, status_code: int, message: str) -> "ApiResult":
        """Classify a non-success HTTP status."""
        if status_code == 404:
            kind = ApiErrorKind.NOT_FOUND
        elif status_code == 401:
            kind = ApiErrorKind.UNAUTHENTICATED
        else:
            kind = ApiErrorKind.HTTP_ERROR
        return cls.failure(kind, message, status_code)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a key in a JSON object body; default for anything else."""
        if isinstance(self.data, dict):
            return self.data.get(key, default)
        return default
