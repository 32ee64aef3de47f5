"""
Entitlement error hierarchy.

Provides:
- EntitlementError: base for all entitlement failures
- StorageReadError: a storage lookup failed (mapped to DENY, never surfaced)
"""

from typing import Optional

STORAGE_ERROR_CODE = "ENTITLEMENT_STORAGE_ERROR"


class EntitlementError(Exception):
    """Base exception for entitlement-related failures."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class StorageReadError(EntitlementError):
    """
    Raised by readers when a lookup fails.

    The evaluator converts it (and any other reader exception) into a
    denied decision carrying STORAGE_ERROR_CODE.
    """

    def __init__(self, lookup: str, cause: Optional[Exception] = None):
        self.lookup = lookup
        self.cause = cause
        self.error_code = STORAGE_ERROR_CODE
        super().__init__(f"Storage lookup failed: {lookup}")
