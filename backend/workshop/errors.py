# Overview: Domain error taxonomy shared by services, results and routes.

from __future__ import annotations


class WorkshopError(Exception):
    """
    Base class for every error a service may raise on purpose.

    `kind` is stable and machine-readable; `field` names the offending input
    (plate, vin, dni, email...) when there is one; `code` narrows the kind
    when callers must tell two failures of the same kind apart.
    """
    kind = "error"
    http_status = 400

    def __init__(self, message: str, *, field: str | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.code = code


class AuthenticationRequired(WorkshopError):
    """No actor identity present."""
    kind = "authentication_required"
    http_status = 401


class AuthorizationDenied(WorkshopError):
    """Actor lacks the role, or a self-protection rule triggered."""
    kind = "authorization_denied"
    http_status = 403


class ValidationError(WorkshopError, ValueError):
    """400-level input problem."""
    kind = "validation_error"
    http_status = 400


class NotFound(WorkshopError, LookupError):
    """Referenced entity id does not resolve."""
    kind = "not_found"
    http_status = 404


class ConflictError(WorkshopError):
    """409-level business rule conflict (duplicate plate, VIN, dni, email...)."""
    kind = "conflict"
    http_status = 409


class TransactionFailure(WorkshopError):
    """The store aborted the transaction."""
    kind = "transaction_failure"
    http_status = 500
