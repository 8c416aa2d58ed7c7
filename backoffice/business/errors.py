# ==== DOMAIN ERRORS ==== #

"""
Domain exceptions raised by services and translated to HTTP responses.

Each error carries an HTTP status and a stable machine-readable ``code`` used
in the JSON error envelope. Handlers live in ``backoffice.main``.
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base class for business rule violations."""

    status_code: int = 400
    code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, **context: Any):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context: Dict[str, Any] = context


class NotFoundError(DomainError):
    """Entity missing or owned by another tenant."""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any, **context: Any):
        super().__init__(f"{entity} {entity_id} not found", **context)
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(DomainError):
    """Operation conflicts with the current state of a record."""

    status_code = 409
    code = "CONFLICT"


class InvalidTransitionError(ConflictError):
    """Status change not allowed from the current status."""

    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, entity: str, current: str, target: str):
        super().__init__(
            f"Cannot change {entity} status from '{current}' to '{target}'",
            current_status=current,
            target_status=target,
        )


class BusinessRuleError(DomainError):
    """Request is well-formed but violates a business rule."""

    status_code = 422
    code = "BUSINESS_RULE_VIOLATION"


class PermissionDeniedError(DomainError):
    """Authenticated user lacks the role for this operation."""

    status_code = 403
    code = "FORBIDDEN"


class ExternalServiceError(DomainError):
    """A downstream provider (mail relay, mail API) rejected the request."""

    status_code = 502
    code = "EXTERNAL_SERVICE_ERROR"
