from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from checkout_engine.cart_ledger import CartLedger, OverallAdjustment
from checkout_engine.invoice import (
    WALK_IN_ID,
    WALK_IN_NAME,
    InvoiceNumberSequence,
    MemoryInvoiceSink,
    build_invoice,
    round_money,
)
from checkout_engine.models import InvoiceStatus, PaymentMethod

from conftest import TODAY


def test_sequence_peek_does_not_consume() -> None:
    sequence = InvoiceNumberSequence("QC", start=146710)

    assert sequence.peek(2026) == "QC-2026-146710"
    assert sequence.peek(2026) == "QC-2026-146710"
    assert sequence.next(2026) == "QC-2026-146710"
    assert sequence.next(2027) == "QC-2027-146711"
    assert sequence.peek(2027) == "QC-2027-146712"


def test_sequence_requires_prefix_and_non_negative_start() -> None:
    with pytest.raises(ValueError):
        InvoiceNumberSequence("")
    with pytest.raises(ValueError):
        InvoiceNumberSequence("INV", start=-1)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("0.125", "0.13"), ("0.124", "0.12"), ("2.675", "2.68"), ("10", "10.00")],
)
def test_round_money_half_up(raw: str, expected: str) -> None:
    assert round_money(Decimal(raw)) == Decimal(expected)


def test_walk_in_cash_sale_is_paid_on_issue_date(catalog) -> None:
    cart = CartLedger()
    cart.add_item(catalog.get("p-nails"), 3, Decimal("350"))

    invoice = build_invoice(
        invoice_number="QC-2026-146710",
        source="rapid",
        cart=cart,
        totals=cart.totals(),
        payment_method=PaymentMethod.CASH,
        customer=None,
        issue_date=TODAY,
    )

    assert invoice.customer_id == WALK_IN_ID
    assert invoice.customer_name == WALK_IN_NAME
    assert invoice.status is InvoiceStatus.PAID
    assert invoice.due_date == TODAY
    assert invoice.total == Decimal("1050.00")
    assert invoice.id.startswith("inv-")
    assert invoice.lines[0].price_label == "Retail"


def test_credit_sale_falls_due_later(catalog, customers) -> None:
    cart = CartLedger()
    cart.add_item(catalog.get("p-cement"), 2, Decimal("2100"), label="Wholesale")

    invoice = build_invoice(
        invoice_number="INV-2026-146710",
        source="wizard",
        cart=cart,
        totals=cart.totals(OverallAdjustment(tax_enabled=True, tax_rate=Decimal("15"))),
        payment_method=PaymentMethod.CREDIT,
        customer=customers.get("c-wholesale"),
        issue_date=TODAY,
        due_days=14,
    )

    assert invoice.customer_id == "c-wholesale"
    assert invoice.status is InvoiceStatus.PENDING
    assert invoice.due_date == TODAY + timedelta(days=14)
    assert invoice.tax == Decimal("630.00")
    assert invoice.total == Decimal("4830.00")


def test_invoice_is_a_snapshot(catalog) -> None:
    cart = CartLedger()
    line = cart.add_item(catalog.get("p-hammer"), 1, Decimal("1500"))
    invoice = build_invoice(
        invoice_number="QC-2026-1",
        source="rapid",
        cart=cart,
        totals=cart.totals(),
        payment_method=PaymentMethod.CARD,
        customer=None,
        issue_date=TODAY,
    )

    cart.set_quantity(line.id, 4)

    assert invoice.lines[0].quantity == 1
    assert invoice.subtotal == Decimal("1500.00")


def test_memory_sink_can_refuse() -> None:
    sink = MemoryInvoiceSink(accept=False)
    assert sink.submit(object()) is False
    assert sink.invoices == []
