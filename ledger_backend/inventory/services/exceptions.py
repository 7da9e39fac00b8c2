# inventory/services/exceptions.py

"""
INVENTORY SERVICE ERRORS

InventoryValidationError is ALSO a Django ValidationError, so callers that
already handle model validation keep working.
"""

from django.core.exceptions import ValidationError


class InventoryError(Exception):
    """Base exception for inventory service failures."""

    code = "INVENTORY_ERROR"


class InventoryValidationError(InventoryError, ValidationError):
    code = "VALIDATION"

    def __init__(self, message):
        # ValidationError stores `code` on the instance.
        super().__init__(message, code=type(self).code)


class MovementNotFoundError(InventoryError):
    code = "NOT_FOUND"


class MovementAlreadyCanceledError(InventoryError):
    """Raised on a second cancellation of the same movement."""

    code = "ALREADY_CANCELED"
