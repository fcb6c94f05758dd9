from __future__ import annotations

import dataclasses
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Mapping

from .cart_ledger import CartLedger, CartTotals, LineItem, OverallAdjustment, OverallDiscountType
from .catalog import RAPID_SEARCH, WIZARD_SEARCH, Catalog, CustomerDirectory, SearchPolicy
from .config import EngineConfig
from .exceptions import (
    CheckoutError,
    CheckoutInProgressError,
    EmptyCartOnCheckoutError,
    InvalidPriceError,
    InvalidQuantityError,
    InvoiceRejectedError,
    NoCustomerSelectedError,
)
from .focus import FocusScheduler, FocusTarget, ScrollHint
from .invoice import InvoiceNumberSequence, InvoiceSink, MemoryInvoiceSink, build_invoice, round_money
from .models import CatalogEntry, Customer, CustomerClass, Invoice, PaymentMethod
from .modes import LIST_MODES, RAPID_MODES, STAGED_MODES, WIZARD_MODES, Mode, ModeController, ModeSet
from .notifications import Feedback, NotificationCenter, NotificationSink
from .observability import get_logger, log_action
from .pricing import (
    DISCOUNT_KIND_ORDER,
    PRICE_MODE_ORDER,
    ZERO,
    DiscountKind,
    ItemDiscount,
    PriceMode,
    PriceSelection,
    cycle,
    price_label_for,
    resolve_price,
)
from .scan_tokenizer import tokenize
from .shortcuts import ShortcutGroup, ShortcutRegistry
from .steps import RAPID_STEPS, WIZARD_STEPS, Direction, Step, StepController, StepSet
from .telemetry import EventCategory, Outcome, TelemetryLogger, build_event

logger = get_logger("checkout_engine.session")
_SHORTCUTS = ShortcutRegistry()

Effect = Feedback | ScrollHint


@dataclass(frozen=True)
class CheckoutProfile:
    name: str
    step_set: StepSet
    mode_sets: Mapping[Step, ModeSet]
    search_policy: SearchPolicy
    invoice_prefix: str
    overall_discount_type: OverallDiscountType
    stage_on_enter: bool
    auto_stage: bool
    tax_applies: bool
    requires_customer: bool
    reset_after_checkout: bool
    notes_label: str = ""
    payment_cycle: tuple[PaymentMethod, PaymentMethod] = (PaymentMethod.CASH, PaymentMethod.CREDIT)

    @property
    def is_rapid(self) -> bool:
        return not self.requires_customer


WIZARD_PROFILE = CheckoutProfile(
    name="wizard",
    step_set=WIZARD_STEPS,
    mode_sets=WIZARD_MODES,
    search_policy=WIZARD_SEARCH,
    invoice_prefix="INV",
    overall_discount_type=OverallDiscountType.PERCENTAGE,
    stage_on_enter=False,
    auto_stage=False,
    tax_applies=True,
    requires_customer=True,
    reset_after_checkout=False,
)

RAPID_PROFILE = CheckoutProfile(
    name="rapid",
    step_set=RAPID_STEPS,
    mode_sets=RAPID_MODES,
    search_policy=RAPID_SEARCH,
    invoice_prefix="QC",
    overall_discount_type=OverallDiscountType.FIXED,
    stage_on_enter=True,
    auto_stage=True,
    tax_applies=False,
    requires_customer=False,
    reset_after_checkout=True,
    notes_label="Quick sale",
)

PROFILES = {profile.name: profile for profile in (WIZARD_PROFILE, RAPID_PROFILE)}

_STEP_FOCUS = {
    Step.CUSTOMER: FocusTarget.CUSTOMER_SEARCH,
    Step.PRODUCTS: FocusTarget.SEARCH_FIELD,
    Step.REVIEW: FocusTarget.NONE,
}

_MODE_FOCUS = {
    Mode.QUANTITY: FocusTarget.QUANTITY_FIELD,
    Mode.CART: FocusTarget.CART_LIST,
    Mode.PAYMENT: FocusTarget.PAYMENT_OPTIONS,
    Mode.DISCOUNT: FocusTarget.DISCOUNT_FIELD,
    Mode.PRICE_MODE: FocusTarget.PRICE_MODE_OPTIONS,
    Mode.ITEM_DISCOUNT: FocusTarget.ITEM_DISCOUNT_OPTIONS,
}

_STAGED_FIELD_ORDER = (Mode.QUANTITY, Mode.PRICE_MODE, Mode.ITEM_DISCOUNT)


@dataclass(frozen=True)
class PendingScan:
    """A catalog entry waiting for quantity/price confirmation."""

    entry: CatalogEntry
    selection: PriceSelection = PriceSelection()
    discount: ItemDiscount = ItemDiscount()


def _parse_decimal(raw: Any, *, field: str) -> Decimal:
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError) as exc:
        raise InvalidPriceError(raw, field=field) from exc
    if not value.is_finite() or value < 0:
        raise InvalidPriceError(raw, field=field)
    return value


def parse_quantity(raw: Any) -> int:
    text = str(raw).strip()
    if not text.isdigit() or int(text) < 1:
        raise InvalidQuantityError(raw)
    return int(text)


class CheckoutSession:
    """One operator's checkout, from first scan to saved invoice.

    The session is the only owner of step, mode, cart, pending scan and
    focus state. Every operation either completes or raises a
    ``CheckoutError`` before mutating anything, so the caller can surface the
    error and carry on. Requests that are not reachable from the current
    step/mode return False and change nothing.
    """

    def __init__(
        self,
        profile: CheckoutProfile,
        catalog: Catalog,
        customers: CustomerDirectory | None = None,
        *,
        config: EngineConfig | None = None,
        sink: InvoiceSink | None = None,
        notifications: NotificationSink | None = None,
        telemetry: TelemetryLogger | None = None,
        sequence: InvoiceNumberSequence | None = None,
        today: Callable[[], date] = date.today,
        session_id: str | None = None,
    ) -> None:
        self.profile = profile
        self.catalog = catalog
        self.customers = customers or CustomerDirectory([])
        self.config = config or EngineConfig()
        self.sink: InvoiceSink = sink if sink is not None else MemoryInvoiceSink()
        self.notifications: NotificationSink = notifications if notifications is not None else NotificationCenter()
        self.telemetry = telemetry or TelemetryLogger.from_config(self.config)
        self.sequence = sequence or InvoiceNumberSequence(profile.invoice_prefix, self.config.invoice_start)
        self.today = today
        self.session_id = session_id or uuid.uuid4().hex[:12]

        self.search_policy = profile.search_policy
        if self.search_policy.limit is not None:
            self.search_policy = dataclasses.replace(self.search_policy, limit=self.config.search_limit)

        self.cart = CartLedger()
        self.steps = StepController(
            profile.step_set,
            guards={Step.CUSTOMER: self._customer_guard, Step.PRODUCTS: self._cart_guard},
        )
        self.steps.subscribe(self._on_step_change)
        self.modes = ModeController(profile.mode_sets)
        self.focus_scheduler = FocusScheduler()
        self.effects: list[Effect] = []

        self.search_text = ""
        self.search_results: list[CatalogEntry] = []
        self.highlight = -1
        self.customer_query = ""
        self.customer_results: list[Customer] = self.customers.search("")
        self.customer_highlight = -1
        self.customer: Customer | None = None
        self.walk_in = not profile.requires_customer

        self.pending: PendingScan | None = None
        self.quantity = 1
        self.cart_cursor = -1
        self.discount_value = ZERO
        self.tax_enabled = profile.tax_applies and self.config.tax_enabled
        self.payment_method = PaymentMethod.CASH
        self.notes = ""
        self.help_visible = False
        self.exit_requested = False
        self.is_processing = False
        self.last_invoice: Invoice | None = None

        self.focus = FocusTarget.NONE
        self._focus(_STEP_FOCUS[self.step])

    # -- derived state ---------------------------------------------------

    @property
    def step(self) -> Step:
        return self.steps.current

    @property
    def mode(self) -> Mode:
        return self.modes.current

    @property
    def customer_class(self) -> CustomerClass | None:
        return self.customer.customer_class if self.customer else None

    @property
    def adjustment(self) -> OverallAdjustment:
        return OverallAdjustment(
            discount_type=self.profile.overall_discount_type,
            discount_value=self.discount_value,
            tax_enabled=self.tax_enabled,
            tax_rate=self.config.tax_rate,
        )

    def totals(self) -> CartTotals:
        return self.cart.totals(self.adjustment)

    def allowed_modes(self) -> ModeSet:
        return self.modes.mode_sets.get(self.step, frozenset())

    def drain_effects(self) -> list[Effect]:
        drained, self.effects = self.effects, []
        return drained

    # -- search ------------------------------------------------------------

    def set_search_text(self, text: str) -> None:
        """Apply the search field's text (typed or scanned).

        ``qty<sep>code`` with an exact code match adds straight to the cart.
        A bare exact code is staged when the profile auto-stages. Anything
        else filters the result list.
        """
        token = tokenize(text)
        if token is not None and token.explicit_quantity:
            entry = self.catalog.find_by_code(token.code)
            if entry is not None:
                if token.quantity < 1:
                    raise InvalidQuantityError(token.quantity)
                self._add_entry(entry, token.quantity, PriceSelection(), None, action="scan_add")
                return

        self.search_text = text or ""
        self.highlight = -1
        self.search_results = self.catalog.search(self.search_text, self.search_policy)

        code = self.search_text.strip()
        if self.profile.auto_stage and token is not None and len(code) >= self.config.auto_stage_min_length:
            exact = self.catalog.find_by_code(code)
            if exact is not None and self.search_results == [exact]:
                self.stage(exact)

    def move_highlight(self, delta: int) -> bool:
        if self.step is Step.CUSTOMER:
            if not self.customer_results:
                return False
            self.customer_highlight = _clamp(self.customer_highlight + delta, len(self.customer_results))
            self.effects.append(ScrollHint("customers", self.customer_highlight))
            return True
        if not self.search_results:
            return False
        self.highlight = _clamp(self.highlight + delta, len(self.search_results))
        self.effects.append(ScrollHint("search_results", self.highlight))
        return True

    def highlighted_result(self) -> CatalogEntry | None:
        if not self.search_results:
            return None
        return self.search_results[self.highlight] if self.highlight >= 0 else self.search_results[0]

    def commit_search(self) -> bool:
        if self.step is Step.CUSTOMER:
            return self.commit_customer()
        entry = self.highlighted_result()
        if entry is None:
            return False
        if self.profile.stage_on_enter:
            self.stage(entry)
        else:
            self._add_entry(entry, self.quantity, PriceSelection(), None, action="search_add")
        return True

    def stage_result(self, index: int) -> bool:
        if not 0 <= index < len(self.search_results):
            return False
        self.stage(self.search_results[index])
        return True

    def stage(self, entry: CatalogEntry) -> None:
        self.pending = PendingScan(entry=entry)
        self._clear_search()
        self.cart_cursor = -1
        self.modes.enter(self.step, Mode.QUANTITY)
        self._focus(FocusTarget.QUANTITY_FIELD, select_text=True)
        self.effects.append(Feedback.ADD)
        self.notifications.push(
            level="info",
            title=entry.name,
            message="Enter quantity",
            details={"entry_id": entry.id, "stock": entry.stock},
        )
        self._record("stage", EventCategory.CART, entry_id=entry.id)

    # -- pending scan / quantity --------------------------------------------

    def adjust_quantity(self, delta: int) -> int:
        self.quantity = max(1, self.quantity + delta)
        return self.quantity

    def set_quantity_text(self, raw: Any) -> int:
        try:
            quantity = parse_quantity(raw)
        except InvalidQuantityError:
            self._focus(FocusTarget.QUANTITY_FIELD, select_text=True)
            raise
        self.quantity = quantity
        return quantity

    def confirm_pending(self) -> LineItem | None:
        if self.pending is None:
            return None
        pending = self.pending
        line = self._add_entry(pending.entry, self.quantity, pending.selection, pending.discount, action="confirm")
        return line

    def keep_quantity(self) -> bool:
        """Enter in quantity mode with nothing staged: back to search, quantity kept for the next add."""
        if self.pending is not None or self.mode is not Mode.QUANTITY:
            return False
        self.modes.enter(self.step, Mode.SEARCH)
        self._focus(_STEP_FOCUS[self.step], select_text=True)
        self._record("keep_quantity", EventCategory.CART, quantity=self.quantity)
        return True

    def clear_pending(self) -> bool:
        if self.pending is None:
            return False
        self.pending = None
        self.quantity = 1
        if self.mode is Mode.QUANTITY or self.mode in STAGED_MODES:
            self.modes.enter(self.step, Mode.SEARCH)
        self._focus(_STEP_FOCUS[Step.PRODUCTS])
        return True

    def pending_price(self) -> Decimal | None:
        if self.pending is None:
            return None
        return resolve_price(
            self.pending.entry, self.pending.selection, self.customer_class, self.pending.discount
        ).unit_price

    def cycle_price_mode(self, step: int) -> PriceMode | None:
        if self.pending is None:
            return None
        return self.select_price_mode(cycle(PRICE_MODE_ORDER, self.pending.selection.mode, step))

    def select_price_mode(self, mode: PriceMode) -> PriceMode | None:
        if self.pending is None:
            return None
        if mode is PriceMode.CUSTOM:
            current = self.pending.selection
            seed = current.custom_value
            if seed is None:
                seed = resolve_price(self.pending.entry, current, self.customer_class).unit_price
            selection = PriceSelection.custom(seed)
        else:
            selection = PriceSelection(mode=mode)
        self.pending = dataclasses.replace(self.pending, selection=selection)
        if mode is PriceMode.CUSTOM:
            self._focus(FocusTarget.CUSTOM_PRICE_FIELD, select_text=True)
        elif self.mode is Mode.PRICE_MODE:
            self._focus(FocusTarget.PRICE_MODE_OPTIONS)
        self._record("price_mode", EventCategory.PRICING, price_mode=mode.value)
        return mode

    def set_custom_price(self, raw: Any) -> Decimal:
        value = _parse_decimal(raw, field="custom_price")
        if self.pending is None:
            return value
        self.pending = dataclasses.replace(self.pending, selection=PriceSelection.custom(value))
        return value

    def cycle_discount_kind(self, step: int) -> DiscountKind | None:
        if self.pending is None:
            return None
        return self.select_discount_kind(cycle(DISCOUNT_KIND_ORDER, self.pending.discount.kind, step))

    def select_discount_kind(self, kind: DiscountKind) -> DiscountKind | None:
        if self.pending is None:
            return None
        value = ZERO if kind is DiscountKind.NONE else self.pending.discount.value
        self.pending = dataclasses.replace(self.pending, discount=ItemDiscount(kind=kind, value=value))
        self._record("discount_kind", EventCategory.PRICING, discount_kind=kind.value)
        return kind

    def set_item_discount_value(self, raw: Any) -> Decimal:
        value = _parse_decimal(raw, field="item_discount")
        if self.pending is not None:
            kind = self.pending.discount.kind
            self.pending = dataclasses.replace(self.pending, discount=ItemDiscount(kind=kind, value=value))
        return value

    def next_staged_field(self) -> Mode | None:
        """Tab through quantity, price mode and item discount of a staged line."""
        if self.pending is None or self.mode not in _STAGED_FIELD_ORDER:
            return None
        allowed = [mode for mode in _STAGED_FIELD_ORDER if self.modes.allowed(self.step, mode)]
        target = cycle(tuple(allowed), self.mode, 1)
        if target is self.mode:
            return None
        self.enter_mode(target)
        return target

    # -- customers ---------------------------------------------------------

    def set_customer_query(self, text: str) -> None:
        self.customer_query = text or ""
        self.customer_results = self.customers.search(self.customer_query)
        self.customer_highlight = -1

    def toggle_customer_focus(self) -> FocusTarget | None:
        if self.step is not Step.CUSTOMER:
            return None
        target = (
            FocusTarget.CUSTOMER_LIST if self.focus is FocusTarget.CUSTOMER_SEARCH else FocusTarget.CUSTOMER_SEARCH
        )
        self._focus(target, select_text=target.is_text_field)
        return target

    def select_customer(self, customer: Customer | str) -> Customer:
        if isinstance(customer, str):
            found = self.customers.get(customer)
            if found is None:
                raise NoCustomerSelectedError()
            customer = found
        self.customer = customer
        self.walk_in = False
        self._record("select_customer", EventCategory.NAVIGATION, customer_class=customer.customer_class.value)
        return customer

    def set_walk_in(self) -> None:
        self.customer = None
        self.walk_in = True
        self._record("walk_in", EventCategory.NAVIGATION)

    def commit_customer(self) -> bool:
        if self.step is not Step.CUSTOMER or not self.customer_results:
            return False
        index = self.customer_highlight if self.customer_highlight >= 0 else 0
        self.select_customer(self.customer_results[index])
        return self.advance()

    def choose_walk_in(self) -> bool:
        if self.step is not Step.CUSTOMER:
            return False
        self.set_walk_in()
        return self.advance()

    # -- modes ---------------------------------------------------------------

    def enter_mode(self, mode: Mode) -> bool:
        if not self.modes.allowed(self.step, mode):
            return False
        if mode is Mode.CART and self.cart.is_empty:
            return False
        if mode in STAGED_MODES and self.pending is None:
            return False

        if mode is Mode.SEARCH:
            # a preset quantity survives until the next add; a staged one does not
            if self.pending is not None:
                self.pending = None
                self.quantity = 1
            self.cart_cursor = -1
            self.modes.enter(self.step, mode)
            self._focus(_STEP_FOCUS[self.step], select_text=True)
        elif mode is Mode.QUANTITY:
            self.modes.enter(self.step, mode)
            self.cart_cursor = -1
            self._focus(FocusTarget.QUANTITY_FIELD, select_text=True)
        elif mode in STAGED_MODES:
            self.modes.enter(self.step, mode)
            self._focus(_MODE_FOCUS[mode])
        else:
            if self.pending is not None:
                self.pending = None
                self.quantity = 1
            self.modes.enter(self.step, mode)
            if mode is Mode.CART:
                self.cart_cursor = len(self.cart) - 1
                self.effects.append(ScrollHint("cart", self.cart_cursor))
            else:
                self.cart_cursor = -1
            self._focus(_MODE_FOCUS[mode], select_text=mode is Mode.DISCOUNT)
            if mode in LIST_MODES:
                self.effects.append(Feedback.ADD)
        self._record("enter_mode", EventCategory.NAVIGATION, target_mode=mode.value)
        return True

    def focus_search(self) -> bool:
        """F2: back to the search field of the current (or product) step."""
        if self.step is Step.REVIEW and Step.PRODUCTS in self.steps.step_set:
            self.steps.jump_to(Step.PRODUCTS)
            self._focus(FocusTarget.SEARCH_FIELD, select_text=True)
            return True
        return self.enter_mode(Mode.SEARCH)

    def stage_highlighted(self) -> bool:
        """F3 with a highlighted result stages it; otherwise just quantity mode."""
        if self.pending is None and self.mode is Mode.SEARCH and self.step is Step.PRODUCTS:
            entry = self.highlighted_result() if self.highlight >= 0 else None
            if entry is not None:
                self.stage(entry)
                return True
        return self.enter_mode(Mode.QUANTITY)

    # -- cart ----------------------------------------------------------------

    def add_quick_item(self, name: str, price: Any, quantity: int = 1) -> LineItem:
        line = self.cart.add_quick_item(name, price, quantity)
        self.effects.append(Feedback.ADD)
        self._record("quick_add", EventCategory.CART, quantity=quantity)
        return line

    def move_cart_cursor(self, delta: int) -> bool:
        if self.mode is not Mode.CART or self.cart.is_empty:
            return False
        self.cart_cursor = _clamp(self.cart_cursor + delta, len(self.cart))
        self.effects.append(ScrollHint("cart", self.cart_cursor))
        return True

    def selected_line(self) -> LineItem | None:
        if self.mode is not Mode.CART or not 0 <= self.cart_cursor < len(self.cart):
            return None
        return self.cart.lines[self.cart_cursor]

    def adjust_selected_quantity(self, delta: int) -> bool:
        line = self.selected_line()
        if line is None:
            return False
        if not self.cart.set_quantity(line.id, line.quantity + delta):
            return False
        self._record("set_quantity", EventCategory.CART, quantity=line.quantity)
        return True

    def set_line_quantity(self, item_id: str, quantity: int) -> bool:
        changed = self.cart.set_quantity(item_id, quantity)
        if changed:
            self._record("set_quantity", EventCategory.CART, quantity=quantity)
        return changed

    def remove_selected(self) -> LineItem | None:
        """Delete: the cursor line in cart mode, else the most recent line."""
        line = self.selected_line() or self.cart.last_line
        if line is None:
            return None
        return self.remove_line(line.id)

    def remove_line(self, item_id: str) -> LineItem:
        line = self.cart.remove_item(item_id)
        self.effects.append(Feedback.REMOVE)
        if self.mode is Mode.CART:
            if self.cart.is_empty:
                self.cart_cursor = -1
                self.modes.enter(self.step, Mode.SEARCH)
                self._focus(_STEP_FOCUS[self.step])
            else:
                self.cart_cursor = min(max(0, self.cart_cursor - 1), len(self.cart) - 1)
        self._record("remove", EventCategory.CART, entry_id=line.catalog_ref)
        return line

    def clear_cart(self) -> None:
        self.cart.clear()
        self.pending = None
        self.quantity = 1
        self.discount_value = ZERO
        self.cart_cursor = -1
        self._clear_search()
        self.modes.enter(self.step, Mode.SEARCH)
        self._focus(_STEP_FOCUS[self.step])
        self._record("clear_cart", EventCategory.CART)

    # -- review ----------------------------------------------------------------

    def set_overall_discount(self, raw: Any) -> Decimal:
        self.discount_value = _parse_decimal(raw, field="discount")
        self._record("overall_discount", EventCategory.PRICING, discount_type=self.profile.overall_discount_type.value)
        return self.discount_value

    def toggle_tax(self) -> bool:
        if not self.profile.tax_applies or self.step is not Step.REVIEW:
            return False
        self.tax_enabled = not self.tax_enabled
        self._record("toggle_tax", EventCategory.PRICING, tax_enabled=self.tax_enabled)
        return True

    def select_payment(self, method: PaymentMethod) -> PaymentMethod:
        self.payment_method = method
        self.effects.append(Feedback.ADD)
        self._record("payment", EventCategory.CHECKOUT, payment_method=method.value)
        return method

    def cycle_payment(self, step: int) -> PaymentMethod | None:
        """Left picks the first payment option, Right the second."""
        if self.mode is not Mode.PAYMENT:
            return None
        first, second = self.profile.payment_cycle
        return self.select_payment(first if step < 0 else second)

    def focus_notes(self) -> bool:
        if self.step is not Step.REVIEW:
            return False
        self._focus(FocusTarget.NOTES_FIELD)
        return True

    def set_notes(self, text: str) -> None:
        self.notes = text or ""

    # -- steps ------------------------------------------------------------------

    def advance(self) -> bool:
        moved = self.steps.advance()
        if moved:
            self.effects.append(Feedback.SUCCESS)
        return moved

    def retreat(self) -> bool:
        if self.steps.is_first:
            self.exit_requested = True
            self._record("exit", EventCategory.NAVIGATION)
            return False
        return self.steps.retreat()

    def jump_to(self, step: Step) -> bool:
        return self.steps.jump_to(step)

    def toggle_help(self) -> bool:
        self.help_visible = not self.help_visible
        return self.help_visible

    def escape(self) -> str | None:
        """Cancel in priority order. At most one thing is undone per press."""
        if self.help_visible:
            self.help_visible = False
            return "close_help"
        if self.mode in LIST_MODES:
            self.cart_cursor = -1
            self.modes.enter(self.step, Mode.SEARCH)
            self._focus(_STEP_FOCUS[self.step])
            return "leave_list"
        if self.pending is not None:
            self.clear_pending()
            self._clear_search()
            return "clear_pending"
        if self.mode is Mode.QUANTITY:
            self.keep_quantity()
            return "leave_quantity"
        if self.step is Step.CUSTOMER and self.customer_query:
            self.set_customer_query("")
            return "clear_search"
        if self.search_text:
            self._clear_search()
            return "clear_search"
        return None

    # -- checkout -----------------------------------------------------------------

    def finalize(self, print_preview: bool = True) -> Invoice | None:
        return self._checkout(print_preview=print_preview, action="finalize")

    def quick_save(self) -> Invoice | None:
        return self._checkout(print_preview=False, action="quick_save")

    def _checkout(self, *, print_preview: bool, action: str) -> Invoice | None:
        if self.step is not Step.REVIEW:
            return None
        if self.is_processing:
            raise CheckoutInProgressError()
        if self.cart.is_empty:
            raise EmptyCartOnCheckoutError()
        if self.profile.requires_customer and self.customer is None and not self.walk_in:
            raise NoCustomerSelectedError()

        self.is_processing = True
        try:
            issue_date = self.today()
            totals = self.totals()
            number = self.sequence.peek(issue_date.year)
            invoice = build_invoice(
                invoice_number=number,
                source=self.profile.name,
                cart=self.cart,
                totals=totals,
                payment_method=self.payment_method,
                customer=self.customer,
                issue_date=issue_date,
                due_days=self.config.due_days,
                notes=self._invoice_notes(totals),
                print_preview=print_preview,
            )
            if not self.sink.submit(invoice):
                self._record(action, EventCategory.CHECKOUT, outcome=Outcome.REJECTED)
                raise InvoiceRejectedError(number)
            self.sequence.next(issue_date.year)
        finally:
            self.is_processing = False

        self.last_invoice = invoice
        self.effects.append(Feedback.SUCCESS)
        self.notifications.push(
            level="success",
            title="Sale completed",
            message=f"Invoice {invoice.invoice_number} saved",
            details={"invoice_number": invoice.invoice_number, "total": str(invoice.total)},
        )
        self._record(
            action,
            EventCategory.CHECKOUT,
            line_count=len(invoice.lines),
            payment_method=invoice.payment_method.value,
        )
        if self.profile.reset_after_checkout:
            self._reset_for_next_sale()
        else:
            self.exit_requested = True
        return invoice

    def _invoice_notes(self, totals: CartTotals) -> str:
        parts = [part for part in (self.profile.notes_label, self.notes.strip()) if part]
        if self.profile.notes_label and totals.discount_amount > 0:
            parts.append(f"Discount: {self.config.currency} {round_money(totals.discount_amount)}")
        return " - ".join(parts)

    def _reset_for_next_sale(self) -> None:
        self.cart.clear()
        self.discount_value = ZERO
        self.payment_method = PaymentMethod.CASH
        self.notes = ""
        self.customer = None
        self.walk_in = not self.profile.requires_customer
        self.steps.reset()
        self._reset_step_state()
        self._focus(_STEP_FOCUS[self.step], select_text=True)

    # -- routing / rendering -------------------------------------------------------

    def render(self) -> dict[str, Any]:
        totals = self.totals()
        pending = None
        if self.pending is not None:
            entry = self.pending.entry
            pending = {
                "entry_id": entry.id,
                "name": entry.name,
                "stock": entry.stock,
                "price_mode": self.pending.selection.mode.value,
                "custom_price": self.pending.selection.custom_value,
                "discount_type": self.pending.discount.kind.value,
                "discount_value": self.pending.discount.value,
                "unit_price": self.pending_price(),
            }
        request = self.focus_scheduler.pending
        return {
            "profile": self.profile.name,
            "step": self.step.value,
            "mode": self.mode.value,
            "focus": self.focus.value,
            "pending_focus": request.target.value if request else None,
            "steps": [
                {
                    "number": info.number,
                    "step": info.step.value,
                    "is_completed": info.is_completed,
                    "is_current": info.is_current,
                    "is_accessible": info.is_accessible,
                }
                for info in self.steps.describe()
            ],
            "search": {
                "text": self.search_text,
                "highlight": self.highlight,
                "results": [self._render_result(entry) for entry in self.search_results],
            },
            "customer": {
                "query": self.customer_query,
                "highlight": self.customer_highlight,
                "selected": self.customer.id if self.customer else None,
                "walk_in": self.walk_in,
                "results": [
                    {
                        "id": item.id,
                        "name": item.name,
                        "class": item.customer_class.value,
                        "credit_status": item.credit_status(self.today()).value,
                    }
                    for item in self.customer_results
                ],
            },
            "pending": pending,
            "quantity": self.quantity,
            "cart": self.cart.render(),
            "cart_cursor": self.cart_cursor,
            "totals": totals.render(),
            "discount": {"type": self.profile.overall_discount_type.value, "value": self.discount_value},
            "tax_enabled": self.tax_enabled,
            "payment_method": self.payment_method.value,
            "notes": self.notes,
            "help_visible": self.help_visible,
            "help": [group.render() for group in self.shortcut_groups()] if self.help_visible else None,
            "hints": [{"key": hint.key, "label": hint.label} for hint in _SHORTCUTS.hint_bar(self.step, self.mode)],
            "exit_requested": self.exit_requested,
            "is_processing": self.is_processing,
            "last_invoice": self.last_invoice.invoice_number if self.last_invoice else None,
        }

    def shortcut_groups(self) -> list[ShortcutGroup]:
        return _SHORTCUTS.groups_for(self.step, self.mode, rapid=self.profile.is_rapid)

    def _render_result(self, entry: CatalogEntry) -> dict[str, Any]:
        price, label = price_label_for(entry, self.customer_class)
        return {
            "id": entry.id,
            "name": entry.name,
            "sku": entry.sku,
            "price": price,
            "price_label": label,
            "stock": entry.stock,
            "is_low_stock": entry.is_low_stock,
            "is_out_of_stock": entry.is_out_of_stock,
        }

    # -- internals ---------------------------------------------------------------

    def _add_entry(
        self,
        entry: CatalogEntry,
        quantity: int,
        selection: PriceSelection,
        discount: ItemDiscount | None,
        *,
        action: str,
    ) -> LineItem:
        resolved = resolve_price(entry, selection, self.customer_class, discount)
        line = self.cart.add_item(
            entry,
            quantity,
            resolved.unit_price,
            resolved.discount,
            original_price=resolved.base_price,
            label=resolved.label,
            is_custom_price=resolved.is_custom,
        )
        self.pending = None
        self.quantity = 1
        self._clear_search()
        if self.mode is not Mode.SEARCH:
            self.modes.enter(self.step, Mode.SEARCH)
        self._focus(FocusTarget.SEARCH_FIELD)
        self.effects.append(Feedback.ADD)
        self._record(action, EventCategory.CART, entry_id=entry.id, quantity=quantity, price_label=resolved.label)
        return line

    def _clear_search(self) -> None:
        self.search_text = ""
        self.search_results = []
        self.highlight = -1

    def _focus(self, target: FocusTarget, *, select_text: bool = False) -> None:
        self.focus = target
        if target is FocusTarget.NONE:
            self.focus_scheduler.cancel()
        else:
            self.focus_scheduler.schedule(target, select_text=select_text)

    def _reset_step_state(self) -> None:
        self.modes.reset()
        self.pending = None
        self.quantity = 1
        self.cart_cursor = -1
        self.customer_highlight = -1
        self._clear_search()

    def _on_step_change(self, previous: Step, current: Step, direction: Direction) -> None:
        self._reset_step_state()
        self._focus(_STEP_FOCUS[current], select_text=current is not Step.REVIEW)
        self._record(
            "step_change",
            EventCategory.NAVIGATION,
            from_step=previous.value,
            direction=direction.value,
        )

    def _customer_guard(self) -> CheckoutError | None:
        if self.customer is None and not self.walk_in:
            return NoCustomerSelectedError()
        return None

    def _cart_guard(self) -> CheckoutError | None:
        if self.cart.is_empty:
            return EmptyCartOnCheckoutError()
        return None

    def record_error(self, action: str, error: CheckoutError) -> None:
        self._record(action, EventCategory.ERROR, outcome=Outcome.ERROR, error_code=error.code)

    def _record(
        self,
        action: str,
        category: EventCategory,
        *,
        outcome: Outcome = Outcome.OK,
        error_code: str | None = None,
        **details: Any,
    ) -> None:
        extra = {"profile": self.profile.name, **details}
        if error_code:
            extra["code"] = error_code
        log_action(
            logger,
            "session",
            action,
            self.step.value,
            self.mode.value,
            self.session_id,
            outcome.value,
            **extra,
        )
        self.telemetry.emit(
            build_event(
                category,
                action,
                profile=self.profile.name,
                step=self.step,
                mode=self.mode,
                session_id=self.session_id,
                outcome=outcome,
                error_code=error_code,
                details=details,
            )
        )


def _clamp(index: int, size: int) -> int:
    return max(0, min(index, size - 1))
