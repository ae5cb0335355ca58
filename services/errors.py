"""
Service-layer exceptions.

Interfaces translate these into their own error surfaces:
the REST API maps them to 404/400 responses, the dashboard to st.error.
"""


class RecordNotFoundError(LookupError):
    """Requested record does not exist for the portfolio owner."""

    def __init__(self, kind: str, record_id: int):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} not found")


class RecordValidationError(ValueError):
    """Input violates a business rule (duplicate, empty update, bad value)."""
