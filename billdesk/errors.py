from typing import Iterable, List

from fastapi import HTTPException, status


class BillingError(HTTPException):
    """
    Base for every business error raised by the billing core.
    Being an HTTPException, it reaches API clients as-is.
    """
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)

    @property
    def message(self) -> str:
        return self.detail


class NotFound(BillingError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, detail: str, code: str | None = None):
        self.code = code
        super().__init__(detail)


class OutOfStock(BillingError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, code: str, name: str, available: int):
        self.code = code
        self.available = available
        if available <= 0:
            detail = f"{name} is out of stock"
        else:
            detail = f"Cannot add more {name}. Only {available} available in stock."
        super().__init__(detail)


class InsufficientStock(BillingError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, codes: Iterable[str]):
        self.codes: List[str] = list(codes)
        super().__init__(f"Insufficient stock for: {', '.join(self.codes)}")


class EmptyCart(BillingError):
    def __init__(self):
        super().__init__("Cart is empty")


class InvalidGstRate(BillingError):
    def __init__(self, rate):
        self.rate = rate
        super().__init__(f"GST percentage must be non-negative, got {rate}")


class InvalidReturn(BillingError):
    def __init__(self, detail: str = "Cannot return a return bill"):
        super().__init__(detail)


class NoItemsSelected(BillingError):
    def __init__(self):
        super().__init__("Please select items to return")


class QuantityOutOfRange(BillingError):
    def __init__(self, codes: Iterable[str], detail: str | None = None):
        self.codes: List[str] = list(codes)
        super().__init__(detail or f"Quantity out of range for: {', '.join(self.codes)}")


class DuplicateProduct(BillingError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Product code '{code}' already exists.")


class InvalidAdjustment(BillingError):
    pass


class PersistenceError(BillingError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class InvalidUpdate(BillingError):
    """An update would leave a stored record without a required field."""
