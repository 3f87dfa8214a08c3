"""
Domain error taxonomy.

The store, auth gate, access policy and blob stores raise these; only the HTTP
layer (see ``main.register_error_handlers``) turns them into status codes.
"""
from typing import Optional


class PermitHubError(Exception):
    default_detail = "Error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthenticated(PermitHubError):
    """No caller identity."""

    default_detail = "Not authenticated"


class Forbidden(PermitHubError):
    """Caller is authenticated but its role does not allow the operation."""

    default_detail = "Forbidden"


class NotFound(PermitHubError):
    default_detail = "Not found"


class InvalidInput(PermitHubError):
    """Malformed id or a payload that violates the schema."""

    default_detail = "Invalid input"


class Conflict(PermitHubError):
    default_detail = "Conflict"
