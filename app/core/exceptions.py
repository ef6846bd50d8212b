# app/core/exceptions.py
from typing import List, Optional, Dict

from fastapi import HTTPException, status


class QuotationError(HTTPException):
    """Base for errors raised by the quotation workflow.

    Carries the HTTP status the API boundary maps it to, a human readable
    message and, for validation failures, a field level breakdown.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(status_code=self.status_code, detail=message)
        self.message = message
        self.errors = errors or []


class ValidationError(QuotationError):
    status_code = status.HTTP_400_BAD_REQUEST

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, errors=[{"field": field, "message": message}])


class NotFoundError(QuotationError):
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(QuotationError):
    status_code = status.HTTP_403_FORBIDDEN


class InvalidOperationError(QuotationError):
    status_code = status.HTTP_400_BAD_REQUEST


class InternalError(QuotationError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "An unexpected error occurred"):
        super().__init__(message)


class UnauthorizedError(QuotationError):
    status_code = status.HTTP_401_UNAUTHORIZED
