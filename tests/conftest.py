from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

import pytest

SRC = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC))

from checkout_engine.catalog import Catalog, CustomerDirectory  # noqa: E402
from checkout_engine.config import EngineConfig  # noqa: E402
from checkout_engine.invoice import MemoryInvoiceSink  # noqa: E402
from checkout_engine.notifications import NotificationCenter  # noqa: E402
from checkout_engine.session import RAPID_PROFILE, WIZARD_PROFILE, CheckoutSession  # noqa: E402

TODAY = date(2026, 10, 18)

CATALOG_ROWS = [
    {
        "id": "p-hammer",
        "name": "Claw Hammer",
        "sku": "HAM001",
        "barcode": "4791234500011",
        "category": "tools",
        "brand": "Stanley",
        "cost_price": "900",
        "wholesale_price": "1200",
        "retail_price": "1500",
        "stock": 10,
    },
    {
        "id": "p-cement",
        "name": "Cement Bag 50kg",
        "sku": "CEM050",
        "barcode": "4791234500028",
        "category": "building",
        "wholesale_price": "2100",
        "retail_price": "2450",
        "stock": 3,
    },
    {
        "id": "p-nails",
        "name": "Wire Nails 2in",
        "sku": "NAI002",
        "category": "hardware",
        "retail_price": "350",
        "stock": 50,
    },
    {
        "id": "p-paint",
        "name": "Wall Paint 4L",
        "sku": "PNT004",
        "barcode": "4791234500042",
        "category": "paint",
        "wholesale_price": "0",
        "retail_price": "5200",
        "stock": 0,
    },
    {
        "id": "p-hammer-small",
        "name": "Hammer Small",
        "sku": "HAM002",
        "category": "tools",
        "wholesale_price": "800",
        "retail_price": "950",
        "stock": 4,
        "parent_id": "p-hammer",
    },
]

CUSTOMER_ROWS = [
    {
        "id": "c-retail",
        "name": "Nimal Perera",
        "phone": "0771234567",
        "email": "nimal@example.com",
        "customer_class": "retail",
    },
    {
        "id": "c-wholesale",
        "name": "Sunil Silva",
        "business_name": "Silva Hardware",
        "phone": "0719876543",
        "customer_class": "wholesale",
        "credit_balance": "5000",
        "loan_due_date": "2026-01-01",
    },
]


@pytest.fixture()
def catalog() -> Catalog:
    return Catalog(CATALOG_ROWS)


@pytest.fixture()
def customers() -> CustomerDirectory:
    return CustomerDirectory(CUSTOMER_ROWS)


@pytest.fixture()
def sink() -> MemoryInvoiceSink:
    return MemoryInvoiceSink()


@pytest.fixture()
def notifications() -> NotificationCenter:
    return NotificationCenter()


def make_session(profile, catalog, customers, sink, notifications, **overrides) -> CheckoutSession:
    return CheckoutSession(
        profile,
        catalog,
        customers,
        config=overrides.pop("config", EngineConfig()),
        sink=sink,
        notifications=notifications,
        today=lambda: TODAY,
        session_id="test-session",
        **overrides,
    )


@pytest.fixture()
def rapid(catalog, customers, sink, notifications) -> CheckoutSession:
    return make_session(RAPID_PROFILE, catalog, customers, sink, notifications)


@pytest.fixture()
def wizard(catalog, customers, sink, notifications) -> CheckoutSession:
    return make_session(WIZARD_PROFILE, catalog, customers, sink, notifications)
