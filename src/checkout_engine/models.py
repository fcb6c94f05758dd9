from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class CustomerClass(str, Enum):
    RETAIL = "retail"
    WHOLESALE = "wholesale"


class CreditStatus(str, Enum):
    CLEAR = "clear"
    OUTSTANDING = "outstanding"
    OVERDUE = "overdue"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    CREDIT = "credit"


class InvoiceStatus(str, Enum):
    PAID = "paid"
    PENDING = "pending"


class CatalogEntry(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    name: str
    sku: str
    barcode: str | None = None
    name_alt: str | None = None
    category: str = "other"
    brand: str | None = None
    parent_id: str | None = None
    cost_price: Decimal = Decimal("0")
    wholesale_price: Decimal | None = None
    retail_price: Decimal
    stock: int = 0
    reorder_level: int = 5

    @property
    def is_out_of_stock(self) -> bool:
        return self.stock <= 0

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.reorder_level

    def matches_code(self, code: str) -> bool:
        """Exact barcode match, or case-insensitive SKU match."""
        return (self.barcode is not None and self.barcode == code) or self.sku.lower() == code.lower()


class Customer(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    name: str
    business_name: str = ""
    email: str = ""
    phone: str = ""
    customer_class: CustomerClass = CustomerClass.RETAIL
    credit_balance: Decimal = Decimal("0")
    loan_due_date: date | None = None

    def credit_status(self, today: date | None = None) -> CreditStatus:
        if self.credit_balance <= 0:
            return CreditStatus.CLEAR
        if self.loan_due_date is not None and self.loan_due_date < (today or date.today()):
            return CreditStatus.OVERDUE
        return CreditStatus.OUTSTANDING


class InvoiceLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    catalog_ref: str
    name: str
    quantity: int
    unit_price: Decimal
    original_price: Decimal
    total: Decimal
    price_label: str
    discount_type: str | None = None
    discount_value: Decimal | None = None
    is_custom_price: bool = False
    is_quick_add: bool = False


class Invoice(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    invoice_number: str
    source: str
    customer_id: str
    customer_name: str
    lines: tuple[InvoiceLine, ...] = Field(default_factory=tuple)
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal
    payment_method: PaymentMethod
    status: InvoiceStatus
    issue_date: date
    due_date: date
    notes: str = ""
    print_preview: bool = True
