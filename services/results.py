"""Tagged results returned by the service layer.

Every service operation returns either ``Ok(value)`` or ``Err(kind, message)``.
Routes turn an ``Err`` into an HTTP error at the boundary, so the services
never build response bodies themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from http import HTTPStatus
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(Enum):
    USER_NOT_FOUND = ("UserNotFound", HTTPStatus.NOT_FOUND)
    INVALID_CREDENTIALS = ("InvalidCredentials", HTTPStatus.UNAUTHORIZED)
    EMAIL_NOT_VERIFIED = ("EmailNotVerified", HTTPStatus.FORBIDDEN)
    PENDING_APPROVAL = ("PendingApproval", HTTPStatus.FORBIDDEN)
    ACCOUNT_DEACTIVATED = ("AccountDeactivated", HTTPStatus.FORBIDDEN)
    INVALID_TOKEN = ("InvalidToken", HTTPStatus.NOT_FOUND)
    CONFLICT = ("Conflict", HTTPStatus.CONFLICT)
    FORBIDDEN = ("Forbidden", HTTPStatus.FORBIDDEN)
    INVALID_OPERATION = ("InvalidOperation", HTTPStatus.BAD_REQUEST)
    VALIDATION_ERROR = ("ValidationError", HTTPStatus.BAD_REQUEST)
    NOT_FOUND = ("NotFound", HTTPStatus.NOT_FOUND)
    UNREACHABLE = ("Unreachable", HTTPStatus.INTERNAL_SERVER_ERROR)

    def __init__(self, label: str, status: HTTPStatus):
        self.label = label
        self.status = status


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T = None  # type: ignore[assignment]

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]
