# app/schemas/response_schemas.py
from datetime import datetime, timezone
from pydantic import BaseModel, Field
from typing import Generic, TypeVar, Optional, List

T = TypeVar("T")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ResponseMessage(BaseModel, Generic[T]):
    success: bool = True
    message: str
    data: Optional[T] = None
    timestamp: datetime = Field(default_factory=_now)


class FieldError(BaseModel):
    field: str
    message: str


class ErrorMessage(BaseModel):
    success: bool = False
    message: str
    errors: Optional[List[FieldError]] = None
    timestamp: datetime = Field(default_factory=_now)
