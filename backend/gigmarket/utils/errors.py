"""
Application error taxonomy.

Every domain failure is raised as an AppError tagged with an ErrorKind. The
handlers in middleware/error_handlers.py turn it into the JSON envelope.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    INVALID = "invalid"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    BAD_REQUEST = "bad_request"
    INTERNAL = "internal"

    @property
    def default_status(self) -> int:
        return _DEFAULT_STATUS[self]


_DEFAULT_STATUS = {
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.EXPIRED: 400,
    ErrorKind.INVALID: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.INTERNAL: 500,
}


class AppError(Exception):
    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code or kind.default_status
        self.details = details or {}

    def __repr__(self) -> str:
        return f"AppError({self.kind.value}, {self.status_code}, {self.message!r})"
