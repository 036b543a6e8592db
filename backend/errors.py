"""
Domain error taxonomy.

Services raise these; ``backend.app`` maps each one to an HTTP status code.
"""
from __future__ import annotations


class DomainError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """A required field is missing or malformed."""

    status_code = 400


class NotFoundError(DomainError):
    """A referenced entity does not exist."""

    status_code = 404


class ConflictError(DomainError):
    """The write would duplicate a record that must be unique."""

    status_code = 409


class ForbiddenError(DomainError):
    """The actor may not mutate this resource."""

    status_code = 403
