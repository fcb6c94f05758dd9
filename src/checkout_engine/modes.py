from __future__ import annotations

from enum import Enum
from typing import Mapping

from .steps import Step


class Mode(str, Enum):
    SEARCH = "search"
    QUANTITY = "quantity"
    CART = "cart"
    PAYMENT = "payment"
    DISCOUNT = "discount"
    PRICE_MODE = "priceMode"
    ITEM_DISCOUNT = "itemDiscount"


ModeSet = frozenset[Mode]

WIZARD_MODES: Mapping[Step, ModeSet] = {
    Step.CUSTOMER: frozenset({Mode.SEARCH}),
    Step.PRODUCTS: frozenset({Mode.SEARCH, Mode.QUANTITY, Mode.CART, Mode.PRICE_MODE, Mode.ITEM_DISCOUNT}),
    Step.REVIEW: frozenset({Mode.SEARCH, Mode.CART, Mode.PAYMENT, Mode.DISCOUNT}),
}

RAPID_MODES: Mapping[Step, ModeSet] = {
    Step.PRODUCTS: frozenset({Mode.SEARCH, Mode.QUANTITY, Mode.CART, Mode.PAYMENT, Mode.DISCOUNT}),
    Step.REVIEW: frozenset({Mode.SEARCH, Mode.CART, Mode.PAYMENT, Mode.DISCOUNT}),
}

# Modes that need a staged product before they can be entered.
STAGED_MODES = frozenset({Mode.PRICE_MODE, Mode.ITEM_DISCOUNT})
# Modes that move focus off text fields onto a list.
LIST_MODES = frozenset({Mode.CART, Mode.PAYMENT})


class ModeController:
    """Tracks the single active mode; requests outside the step's mode set are ignored."""

    def __init__(self, mode_sets: Mapping[Step, ModeSet]) -> None:
        for step, modes in mode_sets.items():
            if Mode.SEARCH not in modes:
                raise ValueError(f"mode set for {step.value} must include search")
        self.mode_sets = dict(mode_sets)
        self._current = Mode.SEARCH

    @property
    def current(self) -> Mode:
        return self._current

    def allowed(self, step: Step, mode: Mode) -> bool:
        return mode in self.mode_sets.get(step, frozenset())

    def enter(self, step: Step, mode: Mode) -> bool:
        if not self.allowed(step, mode):
            return False
        self._current = mode
        return True

    def reset(self) -> None:
        self._current = Mode.SEARCH
