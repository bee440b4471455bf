# backend/workshop/core/errors.py
"""
Domain error taxonomy.

Services raise these before any mutation; the HTTP layer turns them into the
standard failure envelope using ``status_code``.
"""
from typing import Any, Dict, Optional


class ShopError(Exception):
    kind = "error"
    status_code = 400

    def __init__(self, message: str, meta: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.meta = meta


class ValidationError(ShopError):
    """Malformed or missing input."""
    kind = "validation"
    status_code = 422


class NotFound(ShopError):
    """Referenced entity is absent or inactive."""
    kind = "not_found"
    status_code = 404


class ConflictError(ShopError):
    """State-based refusal (slot collision, immutable record, ...)."""
    kind = "conflict"
    status_code = 409


class PreconditionFailed(ShopError):
    """Business gate not satisfied (e.g. delivery before costs are set)."""
    kind = "precondition_failed"
    status_code = 412


class InfrastructureError(ShopError):
    kind = "infrastructure"
    status_code = 500
