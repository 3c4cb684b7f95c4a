"""Settlement engine errors.

Every error carries a machine-checkable ``code`` and a ``details`` dict
(period, adjustment id, current vs required status, counts). Messages never
contain monetary amounts.
"""

from typing import Any, Dict, Optional


class SettlementError(Exception):
    """Base exception for settlement engine errors."""

    code = "settlement_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(SettlementError):
    """Bad period, date range or percent."""

    code = "validation_error"


class ConflictError(SettlementError):
    """Duplicate pending adjustment, duplicate finalize or lost concurrent write."""

    code = "conflict"


class PreconditionError(SettlementError):
    """Lifecycle guard not satisfied."""

    code = "precondition_failed"


class NotFoundError(SettlementError):
    """Raised when an adjustment or settlement does not exist."""

    code = "not_found"

    def __init__(self, entity: str, identifier: Any):
        self.entity = entity
        self.identifier = identifier
        super().__init__(
            f"{entity} not found: {identifier}",
            {"entity": entity, "id": identifier},
        )


class AuthorizationError(SettlementError):
    """Actor lacks the required permission level or identity."""

    code = "forbidden"


class UpstreamError(SettlementError):
    """Payment processor feed unreachable or returned malformed data."""

    code = "upstream_error"
