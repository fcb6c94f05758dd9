from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from .exceptions import CheckoutError
from .focus import FocusTarget
from .models import PaymentMethod
from .modes import Mode, ModeSet
from .notifications import ErrorPresenter, Feedback, PresentedError
from .pricing import PRICE_MODE_ORDER, DiscountKind
from .session import CheckoutSession
from .steps import Step

PAYMENT_KEYS = {
    "1": PaymentMethod.CASH,
    "2": PaymentMethod.CARD,
    "3": PaymentMethod.BANK_TRANSFER,
    "4": PaymentMethod.CREDIT,
}
DISCOUNT_KIND_KEYS = {"0": DiscountKind.NONE, "p": DiscountKind.PERCENTAGE, "f": DiscountKind.FIXED}
MODE_KEYS = {"F4": Mode.CART, "F5": Mode.PAYMENT, "F6": Mode.DISCOUNT}
_ARROW_DELTA = {"ArrowUp": -1, "ArrowDown": 1, "ArrowLeft": -1, "ArrowRight": 1}
_SEARCH_FOCUS = frozenset({FocusTarget.SEARCH_FIELD, FocusTarget.CUSTOMER_SEARCH, FocusTarget.CUSTOMER_LIST})
_NO_DELETE_FOCUS = frozenset({FocusTarget.DISCOUNT_FIELD, FocusTarget.CUSTOM_PRICE_FIELD, FocusTarget.NOTES_FIELD})
_STAGED_MODES = frozenset({Mode.QUANTITY, Mode.PRICE_MODE, Mode.ITEM_DISCOUNT})


class Command(str, Enum):
    TOGGLE_HELP = "toggle_help"
    STEP_NEXT = "step_next"
    STEP_PREV = "step_prev"
    ESCAPE = "escape"
    FOCUS_SEARCH = "focus_search"
    STAGE_OR_QUANTITY = "stage_or_quantity"
    ENTER_MODE = "enter_mode"
    QUICK_SAVE = "quick_save"
    FINALIZE = "finalize"
    SELECT_PAYMENT = "select_payment"
    SELECT_PRICE_MODE = "select_price_mode"
    SELECT_DISCOUNT_KIND = "select_discount_kind"
    NEXT_FIELD = "next_field"
    TOGGLE_CUSTOMER_FOCUS = "toggle_customer_focus"
    WALK_IN = "walk_in"
    TOGGLE_TAX = "toggle_tax"
    FOCUS_NOTES = "focus_notes"
    REMOVE_LINE = "remove_line"
    MOVE_HIGHLIGHT = "move_highlight"
    MOVE_CART_CURSOR = "move_cart_cursor"
    ADJUST_LINE_QUANTITY = "adjust_line_quantity"
    ADJUST_QUANTITY = "adjust_quantity"
    CYCLE_PAYMENT = "cycle_payment"
    CYCLE_PRICE_MODE = "cycle_price_mode"
    CYCLE_DISCOUNT_KIND = "cycle_discount_kind"
    COMMIT_SEARCH = "commit_search"
    CONFIRM_PENDING = "confirm_pending"
    KEEP_QUANTITY = "keep_quantity"


@dataclass(frozen=True)
class KeyEvent:
    key: str
    ctrl: bool = False
    meta: bool = False
    shift: bool = False

    @classmethod
    def parse(cls, raw: str) -> KeyEvent:
        """``"Ctrl+ArrowRight"`` style names; a lone ``+`` is the plus key."""
        parts = raw.split("+") if raw != "+" else [raw]
        modifiers = {part.lower() for part in parts[:-1]}
        return cls(
            key=parts[-1],
            ctrl="ctrl" in modifiers,
            meta="meta" in modifiers or "cmd" in modifiers,
            shift="shift" in modifiers,
        )


@dataclass(frozen=True)
class RoutingContext:
    step: Step
    mode: Mode
    focus: FocusTarget
    allowed_modes: ModeSet
    help_visible: bool = False
    has_pending: bool = False
    cart_size: int = 0
    cart_cursor: int = -1
    result_count: int = 0
    tax_toggle: bool = False

    @classmethod
    def from_session(cls, session: CheckoutSession) -> RoutingContext:
        results = session.customer_results if session.step is Step.CUSTOMER else session.search_results
        return cls(
            step=session.step,
            mode=session.mode,
            focus=session.focus,
            allowed_modes=session.allowed_modes(),
            help_visible=session.help_visible,
            has_pending=session.pending is not None,
            cart_size=len(session.cart),
            cart_cursor=session.cart_cursor,
            result_count=len(results),
            tax_toggle=session.profile.tax_applies,
        )


@dataclass(frozen=True)
class Route:
    command: Command
    argument: Any = None


def route(ctx: RoutingContext, event: KeyEvent) -> Route | None:
    """Decide what a key press means in the given state. Pure."""
    key = event.key
    in_text = ctx.focus.is_text_field

    if key == "?" and not in_text:
        return Route(Command.TOGGLE_HELP)
    if event.ctrl or event.meta:
        if key == "ArrowLeft":
            return Route(Command.STEP_PREV)
        if key == "ArrowRight":
            return Route(Command.STEP_NEXT)
        return None
    if key == "PageUp":
        return Route(Command.STEP_PREV)
    if key == "PageDown":
        return Route(Command.STEP_NEXT)
    if key == "Escape":
        return Route(Command.ESCAPE)

    if key == "F2":
        return Route(Command.FOCUS_SEARCH)
    if key == "F3":
        return Route(Command.STAGE_OR_QUANTITY) if Mode.QUANTITY in ctx.allowed_modes else None
    if key in MODE_KEYS:
        mode = MODE_KEYS[key]
        if mode not in ctx.allowed_modes or (mode is Mode.CART and ctx.cart_size == 0):
            return None
        return Route(Command.ENTER_MODE, mode)
    if key in ("F9", "F12"):
        if ctx.step is not Step.REVIEW:
            return None
        return Route(Command.QUICK_SAVE if key == "F9" else Command.FINALIZE)

    if key in PAYMENT_KEYS and not in_text:
        if ctx.step is Step.REVIEW:
            return Route(Command.SELECT_PAYMENT, PAYMENT_KEYS[key])
        if ctx.mode is Mode.PRICE_MODE and ctx.has_pending:
            return Route(Command.SELECT_PRICE_MODE, PRICE_MODE_ORDER[int(key) - 1])
    if ctx.mode is Mode.ITEM_DISCOUNT and ctx.has_pending and key.lower() in DISCOUNT_KIND_KEYS:
        return Route(Command.SELECT_DISCOUNT_KIND, DISCOUNT_KIND_KEYS[key.lower()])

    if key == "Tab":
        if ctx.mode in _STAGED_MODES and ctx.has_pending:
            return Route(Command.NEXT_FIELD)
        if ctx.step is Step.CUSTOMER:
            return Route(Command.TOGGLE_CUSTOMER_FOCUS)
        return None

    if not in_text and len(key) == 1:
        letter = key.lower()
        if ctx.step is Step.CUSTOMER and letter == "w":
            return Route(Command.WALK_IN)
        if ctx.step is Step.REVIEW:
            if letter == "t" and ctx.tax_toggle:
                return Route(Command.TOGGLE_TAX)
            if letter == "d" and Mode.DISCOUNT in ctx.allowed_modes:
                return Route(Command.ENTER_MODE, Mode.DISCOUNT)
            if letter == "n":
                return Route(Command.FOCUS_NOTES)

    if key == "Delete":
        if ctx.cart_size > 0 and ctx.focus not in _NO_DELETE_FOCUS:
            return Route(Command.REMOVE_LINE)
        return None

    if key in ("ArrowUp", "ArrowDown"):
        delta = _ARROW_DELTA[key]
        if ctx.mode is Mode.CART and ctx.cart_size > 0:
            return Route(Command.MOVE_CART_CURSOR, delta)
        if ctx.mode is Mode.SEARCH and ctx.focus in _SEARCH_FOCUS and ctx.result_count > 0:
            return Route(Command.MOVE_HIGHLIGHT, delta)
        return None

    if key in ("ArrowLeft", "ArrowRight"):
        delta = _ARROW_DELTA[key]
        if ctx.mode is Mode.CART and ctx.cart_cursor >= 0:
            return Route(Command.ADJUST_LINE_QUANTITY, delta)
        if ctx.mode is Mode.QUANTITY:
            return Route(Command.ADJUST_QUANTITY, delta)
        if ctx.mode is Mode.PAYMENT:
            return Route(Command.CYCLE_PAYMENT, delta)
        if ctx.mode is Mode.PRICE_MODE and ctx.has_pending:
            return Route(Command.CYCLE_PRICE_MODE, delta)
        if ctx.mode is Mode.ITEM_DISCOUNT and ctx.has_pending:
            return Route(Command.CYCLE_DISCOUNT_KIND, delta)
        return None

    if key == "Enter":
        if ctx.mode in _STAGED_MODES and ctx.has_pending:
            return Route(Command.CONFIRM_PENDING)
        if ctx.mode is Mode.QUANTITY:
            return Route(Command.KEEP_QUANTITY)
        if ctx.mode is Mode.SEARCH and ctx.result_count > 0 and ctx.focus in _SEARCH_FOCUS:
            return Route(Command.COMMIT_SEARCH)
    return None


@dataclass(frozen=True)
class DispatchResult:
    handled: bool
    command: Command | None = None
    error: PresentedError | None = None


class KeyDispatcher:
    """Feeds key presses and field text into a session.

    Recoverable ``CheckoutError`` failures are turned into an error
    notification and an ERROR cue; the session state is left as it was.
    """

    def __init__(self, session: CheckoutSession, presenter: ErrorPresenter | None = None) -> None:
        self.session = session
        self.presenter = presenter or ErrorPresenter()

    def context(self) -> RoutingContext:
        return RoutingContext.from_session(self.session)

    def dispatch(self, event: KeyEvent | str) -> DispatchResult:
        if isinstance(event, str):
            event = KeyEvent.parse(event)
        target = route(self.context(), event)
        if target is None:
            return DispatchResult(handled=False)
        return self._run(target.command, lambda: self._handlers()[target.command](target.argument))

    def type_text(self, text: str) -> DispatchResult:
        """Apply text typed or scanned into the focused field."""
        session = self.session
        setters: dict[FocusTarget, Callable[[str], Any]] = {
            FocusTarget.SEARCH_FIELD: session.set_search_text,
            FocusTarget.CUSTOMER_SEARCH: session.set_customer_query,
            FocusTarget.QUANTITY_FIELD: session.set_quantity_text,
            FocusTarget.DISCOUNT_FIELD: session.set_overall_discount,
            FocusTarget.CUSTOM_PRICE_FIELD: session.set_custom_price,
            FocusTarget.ITEM_DISCOUNT_OPTIONS: session.set_item_discount_value,
            FocusTarget.NOTES_FIELD: session.set_notes,
        }
        setter = setters.get(session.focus)
        if setter is None:
            return DispatchResult(handled=False)
        return self._run(None, lambda: setter(text))

    def _run(self, command: Command | None, action: Callable[[], Any]) -> DispatchResult:
        session = self.session
        try:
            action()
        except CheckoutError as error:
            name = command.value if command else f"type:{session.focus.value}"
            presented = self.presenter.notify(session.notifications, error, action=name)
            session.effects.append(Feedback.ERROR)
            session.record_error(name, error)
            return DispatchResult(handled=True, command=command, error=presented)
        return DispatchResult(handled=True, command=command)

    def _handlers(self) -> dict[Command, Callable[[Any], Any]]:
        session = self.session
        return {
            Command.TOGGLE_HELP: lambda _: session.toggle_help(),
            Command.STEP_NEXT: lambda _: session.advance(),
            Command.STEP_PREV: lambda _: session.retreat(),
            Command.ESCAPE: lambda _: session.escape(),
            Command.FOCUS_SEARCH: lambda _: session.focus_search(),
            Command.STAGE_OR_QUANTITY: lambda _: session.stage_highlighted(),
            Command.ENTER_MODE: session.enter_mode,
            Command.QUICK_SAVE: lambda _: session.quick_save(),
            Command.FINALIZE: lambda _: session.finalize(),
            Command.SELECT_PAYMENT: session.select_payment,
            Command.SELECT_PRICE_MODE: session.select_price_mode,
            Command.SELECT_DISCOUNT_KIND: session.select_discount_kind,
            Command.NEXT_FIELD: lambda _: session.next_staged_field(),
            Command.TOGGLE_CUSTOMER_FOCUS: lambda _: session.toggle_customer_focus(),
            Command.WALK_IN: lambda _: session.choose_walk_in(),
            Command.TOGGLE_TAX: lambda _: session.toggle_tax(),
            Command.FOCUS_NOTES: lambda _: session.focus_notes(),
            Command.REMOVE_LINE: lambda _: session.remove_selected(),
            Command.MOVE_HIGHLIGHT: session.move_highlight,
            Command.MOVE_CART_CURSOR: session.move_cart_cursor,
            Command.ADJUST_LINE_QUANTITY: session.adjust_selected_quantity,
            Command.ADJUST_QUANTITY: session.adjust_quantity,
            Command.CYCLE_PAYMENT: session.cycle_payment,
            Command.CYCLE_PRICE_MODE: session.cycle_price_mode,
            Command.CYCLE_DISCOUNT_KIND: session.cycle_discount_kind,
            Command.COMMIT_SEARCH: lambda _: session.commit_search(),
            Command.CONFIRM_PENDING: lambda _: session.confirm_pending(),
            Command.KEEP_QUANTITY: lambda _: session.keep_quantity(),
        }
