from .cart_ledger import CartLedger, CartTotals, LineItem, OverallAdjustment, OverallDiscountType
from .catalog import Catalog, CustomerDirectory, SearchPolicy
from .config import ConfigError, EngineConfig, load_config
from .dispatcher import Command, DispatchResult, KeyDispatcher, KeyEvent, RoutingContext, route
from .exceptions import (
    CheckoutError,
    CheckoutInProgressError,
    EmptyCartOnCheckoutError,
    InsufficientStockError,
    InvalidPriceError,
    InvalidQuantityError,
    InvalidQuickItemError,
    InvoiceRejectedError,
    LineItemNotFoundError,
    NoCustomerSelectedError,
)
from .focus import FocusScheduler, FocusTarget, PendingFocusRequest, ScrollHint
from .invoice import InvoiceNumberSequence, InvoiceSink, MemoryInvoiceSink, build_invoice
from .models import CatalogEntry, Customer, CustomerClass, Invoice, InvoiceLine, InvoiceStatus, PaymentMethod
from .modes import Mode, ModeController
from .notifications import ErrorPresenter, Feedback, NotificationCenter, NotificationSink
from .pricing import DiscountKind, ItemDiscount, PriceMode, PriceSelection, ResolvedPrice, resolve_price
from .scan_tokenizer import ScanToken, tokenize
from .session import PROFILES, RAPID_PROFILE, WIZARD_PROFILE, CheckoutProfile, CheckoutSession, PendingScan
from .shortcuts import Shortcut, ShortcutGroup, ShortcutRegistry
from .steps import Step, StepController, StepSet

__all__ = [
    "Catalog",
    "CatalogEntry",
    "CartLedger",
    "CartTotals",
    "CheckoutError",
    "CheckoutInProgressError",
    "CheckoutProfile",
    "CheckoutSession",
    "Command",
    "ConfigError",
    "Customer",
    "CustomerClass",
    "CustomerDirectory",
    "DiscountKind",
    "DispatchResult",
    "EmptyCartOnCheckoutError",
    "EngineConfig",
    "ErrorPresenter",
    "Feedback",
    "FocusScheduler",
    "FocusTarget",
    "InsufficientStockError",
    "InvalidPriceError",
    "InvalidQuantityError",
    "InvalidQuickItemError",
    "Invoice",
    "InvoiceLine",
    "InvoiceNumberSequence",
    "InvoiceRejectedError",
    "InvoiceSink",
    "InvoiceStatus",
    "ItemDiscount",
    "KeyDispatcher",
    "KeyEvent",
    "LineItem",
    "LineItemNotFoundError",
    "MemoryInvoiceSink",
    "Mode",
    "ModeController",
    "NoCustomerSelectedError",
    "NotificationCenter",
    "NotificationSink",
    "OverallAdjustment",
    "OverallDiscountType",
    "PROFILES",
    "PaymentMethod",
    "PendingFocusRequest",
    "PendingScan",
    "PriceMode",
    "PriceSelection",
    "RAPID_PROFILE",
    "ResolvedPrice",
    "RoutingContext",
    "ScanToken",
    "ScrollHint",
    "SearchPolicy",
    "Shortcut",
    "ShortcutGroup",
    "ShortcutRegistry",
    "Step",
    "StepController",
    "StepSet",
    "WIZARD_PROFILE",
    "build_invoice",
    "load_config",
    "resolve_price",
    "route",
    "tokenize",
]
