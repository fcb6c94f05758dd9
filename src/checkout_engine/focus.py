from __future__ import annotations

import itertools
from dataclasses import dataclass
from enum import Enum


class FocusTarget(str, Enum):
    NONE = "none"
    CUSTOMER_SEARCH = "customer_search"
    CUSTOMER_LIST = "customer_list"
    SEARCH_FIELD = "search_field"
    QUANTITY_FIELD = "quantity_field"
    DISCOUNT_FIELD = "discount_field"
    CUSTOM_PRICE_FIELD = "custom_price_field"
    NOTES_FIELD = "notes_field"
    CART_LIST = "cart_list"
    PAYMENT_OPTIONS = "payment_options"
    PRICE_MODE_OPTIONS = "price_mode_options"
    ITEM_DISCOUNT_OPTIONS = "item_discount_options"

    @property
    def is_text_field(self) -> bool:
        return self in _TEXT_FIELDS


_TEXT_FIELDS = frozenset(
    {
        FocusTarget.CUSTOMER_SEARCH,
        FocusTarget.SEARCH_FIELD,
        FocusTarget.QUANTITY_FIELD,
        FocusTarget.DISCOUNT_FIELD,
        FocusTarget.CUSTOM_PRICE_FIELD,
        FocusTarget.NOTES_FIELD,
    }
)


@dataclass(frozen=True)
class PendingFocusRequest:
    target: FocusTarget
    select_text: bool
    sequence: int


class FocusScheduler:
    """Holds at most one deferred focus move for the UI to apply after rendering."""

    def __init__(self) -> None:
        self._pending: PendingFocusRequest | None = None
        self._sequence = itertools.count(1)

    @property
    def pending(self) -> PendingFocusRequest | None:
        return self._pending

    def schedule(self, target: FocusTarget, *, select_text: bool = False) -> PendingFocusRequest:
        self._pending = PendingFocusRequest(target=target, select_text=select_text, sequence=next(self._sequence))
        return self._pending

    def cancel(self) -> None:
        self._pending = None

    def consume(self) -> PendingFocusRequest | None:
        request, self._pending = self._pending, None
        return request


@dataclass(frozen=True)
class ScrollHint:
    """Scroll a list so the highlighted row is visible. UI-only."""

    list_name: str
    index: int
