# backend/giftbloom/core/errors.py

from fastapi import status


class GiftBloomError(Exception):
    """Base class for errors rendered by the centralized exception handlers."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class OrderValidationError(GiftBloomError):
    status_code = status.HTTP_400_BAD_REQUEST


class NoFieldsToUpdateError(OrderValidationError):
    def __init__(self, message: str = "No fields to update"):
        super().__init__(message)


class InvalidStatusTransitionError(GiftBloomError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot change order status from '{current}' to '{requested}'")
        self.current = current
        self.requested = requested


class PaymentError(GiftBloomError):
    status_code = status.HTTP_409_CONFLICT


class OrderPersistenceError(GiftBloomError):
    pass


class DatabaseUnavailableError(GiftBloomError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
