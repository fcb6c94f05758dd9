from __future__ import annotations

import itertools
import uuid
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from .cart_ledger import CartLedger, CartTotals
from .models import Customer, Invoice, InvoiceLine, InvoiceStatus, PaymentMethod

CENT = Decimal("0.01")
WALK_IN_ID = "walk-in"
WALK_IN_NAME = "Walk-in Customer"


def round_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class InvoiceSink(Protocol):
    """Print/persistence collaborator. Returns False when it refuses the invoice."""

    def submit(self, invoice: Invoice) -> bool:
        ...


class MemoryInvoiceSink:
    def __init__(self, *, accept: bool = True) -> None:
        self.accept = accept
        self.invoices: list[Invoice] = []

    def submit(self, invoice: Invoice) -> bool:
        if not self.accept:
            return False
        self.invoices.append(invoice)
        return True


class InvoiceNumberSequence:
    def __init__(self, prefix: str, start: int = 146710) -> None:
        if not prefix:
            raise ValueError("invoice prefix is required")
        if start < 0:
            raise ValueError("invoice start must not be negative")
        self.prefix = prefix
        self._counter = itertools.count(start)
        self._peek = start

    def peek(self, year: int) -> str:
        return f"{self.prefix}-{year}-{self._peek}"

    def next(self, year: int) -> str:
        number = next(self._counter)
        self._peek = number + 1
        return f"{self.prefix}-{year}-{number}"


def build_invoice(
    *,
    invoice_number: str,
    source: str,
    cart: CartLedger,
    totals: CartTotals,
    payment_method: PaymentMethod,
    customer: Customer | None,
    issue_date: date,
    due_days: int = 30,
    notes: str = "",
    print_preview: bool = True,
) -> Invoice:
    """Snapshot the cart into an immutable invoice.

    Money values are rounded half-up to cents here and nowhere earlier. A
    missing customer is recorded as the walk-in placeholder. Credit sales
    stay pending and fall due after ``due_days``; every other method is
    paid on the issue date.
    """
    lines = tuple(
        InvoiceLine(
            id=line.id,
            catalog_ref=line.catalog_ref,
            name=line.name,
            quantity=line.quantity,
            unit_price=round_money(line.unit_price),
            original_price=round_money(line.original_price),
            total=round_money(line.total),
            price_label=line.price_label,
            discount_type=line.discount.kind.value if line.discount.is_active else None,
            discount_value=line.discount.value if line.discount.is_active else None,
            is_custom_price=line.is_custom_price,
            is_quick_add=line.is_quick_add,
        )
        for line in cart
    )
    is_credit = payment_method is PaymentMethod.CREDIT
    return Invoice(
        id=f"inv-{uuid.uuid4().hex[:12]}",
        invoice_number=invoice_number,
        source=source,
        customer_id=customer.id if customer else WALK_IN_ID,
        customer_name=customer.name if customer else WALK_IN_NAME,
        lines=lines,
        subtotal=round_money(totals.subtotal),
        discount=round_money(totals.discount_amount),
        tax=round_money(totals.tax_amount),
        total=round_money(totals.total),
        payment_method=payment_method,
        status=InvoiceStatus.PENDING if is_credit else InvoiceStatus.PAID,
        issue_date=issue_date,
        due_date=issue_date + timedelta(days=due_days) if is_credit else issue_date,
        notes=notes,
        print_preview=print_preview,
    )
