"""
Error kinds raised by the view-models and the API client.

    OrderAdminError
      ├── FetchError           remote call failed (transport, timeout, non-2xx, bad body)
      ├── ValidationError      product input rejected before any network call
      └── OrderSaveError
            ├── EmptyOrderError      save attempted with zero lines
            ├── SaveInProgressError  re-entrant save while one is in flight
            └── PartialSaveError     header persisted, one or more lines failed
"""

from __future__ import annotations

from typing import Optional


class OrderAdminError(Exception):
    """Base class for every error this package raises on purpose."""


class FetchError(OrderAdminError):
    def __init__(self, operation: str, message: str, status_code: Optional[int] = None):
        self.operation = operation
        self.message = message
        self.status_code = status_code
        super().__init__(f"{operation}: {message}")

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "message": self.message,
            "status_code": self.status_code,
        }


class ValidationError(OrderAdminError):
    """Field-by-field input errors: ``errors`` maps field name to message."""

    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


class OrderSaveError(OrderAdminError):
    pass


class EmptyOrderError(OrderSaveError):
    def __init__(self):
        super().__init__("Cannot save an order without line items")


class SaveInProgressError(OrderSaveError):
    def __init__(self):
        super().__init__("A save is already in progress for this order")


class PartialSaveError(OrderSaveError):
    """
    The order header was persisted but some line calls failed.

    ``failures`` is a list of ``(line, FetchError)`` pairs. Lines that were
    written successfully stay written; there is no rollback.
    """

    def __init__(self, order, failures: list):
        self.order = order
        self.failures = list(failures)
        ids = ", ".join(str(line.product_id) for line, _ in self.failures)
        super().__init__(
            f"Order {order.id} saved but {len(self.failures)} line(s) failed "
            f"(product ids: {ids})"
        )

    @property
    def failed_lines(self) -> list:
        return [line for line, _ in self.failures]
