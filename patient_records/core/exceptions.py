"""Business-rule errors raised by the service layer.

Each error is an ``HTTPException`` so it reaches the client with its status
code untouched, and carries an ``ErrorKind`` so callers can branch on what
went wrong without depending on the concrete class.
"""
from enum import Enum

from fastapi import HTTPException, status


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"
    CONFLICT = "conflict"


class ServiceError(HTTPException):
    kind: ErrorKind
    status_code_for_kind = {
        ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
        ErrorKind.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
        ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    }

    def __init__(self, kind: ErrorKind, detail: str):
        self.kind = kind
        super().__init__(status_code=self.status_code_for_kind[kind], detail=detail)


class NotFoundError(ServiceError):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(ErrorKind.NOT_FOUND, detail)


class BadRequestError(ServiceError):
    def __init__(self, detail: str = "Bad request"):
        super().__init__(ErrorKind.BAD_REQUEST, detail)


class ConflictError(ServiceError):
    def __init__(self, detail: str = "Conflict"):
        super().__init__(ErrorKind.CONFLICT, detail)
