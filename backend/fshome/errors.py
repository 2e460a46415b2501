from __future__ import annotations
from fastapi import HTTPException


class AdminError(Exception):
    """Base for errors a service raises to refuse an operation before any write sticks."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(AdminError):
    status_code = 404


class InvalidTransition(AdminError):
    """A lifecycle action that the entity's current state does not allow."""
    status_code = 400


class Conflict(AdminError):
    """Duplicate mode type, second active season, and similar uniqueness breaches."""
    status_code = 409


def to_http(exc: AdminError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)
