from __future__ import annotations


class CheckoutError(Exception):
    """Recoverable input failure. The session state is left unchanged."""

    code = "CHECKOUT_ERROR"

    def __init__(self, message: str, *, details: dict[str, object] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class InsufficientStockError(CheckoutError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, *, entry_id: str, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient stock: {available} available",
            details={"entry_id": entry_id, "requested": requested, "available": available},
        )
        self.entry_id = entry_id
        self.requested = requested
        self.available = available


class InvalidQuantityError(CheckoutError):
    code = "INVALID_QUANTITY"

    def __init__(self, value: object) -> None:
        super().__init__("Quantity must be a whole number greater than 0", details={"value": value})
        self.value = value


class EmptyCartOnCheckoutError(CheckoutError):
    code = "EMPTY_CART"

    def __init__(self) -> None:
        super().__init__("Add at least one item before checkout")


class NoCustomerSelectedError(CheckoutError):
    code = "NO_CUSTOMER"

    def __init__(self) -> None:
        super().__init__("Select a customer or continue as walk-in")


class InvalidQuickItemError(CheckoutError):
    code = "INVALID_QUICK_ITEM"


class LineItemNotFoundError(CheckoutError):
    code = "LINE_NOT_FOUND"

    def __init__(self, item_id: str) -> None:
        super().__init__(f"Cart line {item_id} not found", details={"item_id": item_id})
        self.item_id = item_id


class CheckoutInProgressError(CheckoutError):
    code = "CHECKOUT_IN_PROGRESS"

    def __init__(self) -> None:
        super().__init__("Checkout already in progress")


class InvalidPriceError(CheckoutError):
    code = "INVALID_PRICE"

    def __init__(self, value: object, *, field: str = "price") -> None:
        label = field.replace("_", " ").capitalize()
        super().__init__(f"{label} must be a number of 0 or more", details={"field": field, "value": value})
        self.value = value


class InvoiceRejectedError(CheckoutError):
    code = "SINK_REJECTED"

    def __init__(self, invoice_number: str) -> None:
        super().__init__(
            f"Invoice {invoice_number} was not saved, try again",
            details={"invoice_number": invoice_number},
        )
        self.invoice_number = invoice_number
