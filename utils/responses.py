"""Helpers for turning service results into HTTP responses."""

from __future__ import annotations

from flask import current_app
from werkzeug.exceptions import HTTPException

from services import Portal
from services.results import Err, ErrorKind, Result


class PortalError(HTTPException):
    """An ``Err`` result raised at the request boundary."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(description=message)
        self.code = int(kind.status)
        self.kind = kind

    @property
    def name(self) -> str:
        return self.kind.label


def unwrap(result: Result):
    """Return the value of an ``Ok`` or raise the ``Err`` as a ``PortalError``."""

    if isinstance(result, Err):
        raise PortalError(result.kind, result.message)
    return result.value


def get_portal() -> Portal:
    return current_app.extensions["portal"]
