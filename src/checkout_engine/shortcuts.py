from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .modes import Mode
from .steps import Step


@dataclass(frozen=True)
class Shortcut:
    key: str
    label: str


@dataclass(frozen=True)
class ShortcutGroup:
    title: str
    shortcuts: tuple[Shortcut, ...]

    def render(self) -> dict[str, Any]:
        return {"title": self.title, "shortcuts": [{"key": s.key, "label": s.label} for s in self.shortcuts]}


def _group(title: str, *pairs: tuple[str, str]) -> ShortcutGroup:
    return ShortcutGroup(title=title, shortcuts=tuple(Shortcut(key, label) for key, label in pairs))


NAVIGATION = _group(
    "Navigation",
    ("Ctrl+← / PgUp", "Previous Step"),
    ("Ctrl+→ / PgDn", "Next Step"),
    ("Esc", "Cancel / Back"),
    ("?", "Shortcut Help"),
)

QUICK_ACTIONS = _group(
    "Quick Actions",
    ("F2", "Search / Barcode"),
    ("F3", "Quantity"),
    ("F4", "Cart"),
)
RAPID_QUICK_ACTIONS = _group(
    "Quick Actions",
    ("F2", "Search / Barcode"),
    ("F3", "Quantity"),
    ("F4", "Cart"),
    ("F5", "Payment"),
    ("F6", "Discount"),
)

MODE_GROUPS = {
    Mode.SEARCH: _group(
        "Search Mode",
        ("↑ / ↓", "Navigate Products"),
        ("Enter", "Add Selected Product"),
        ("qty*code", "Scan With Quantity"),
    ),
    Mode.QUANTITY: _group(
        "Quantity Mode",
        ("←", "Decrease Quantity"),
        ("→", "Increase Quantity"),
        ("Enter", "Confirm & Add to Cart"),
        ("Esc", "Cancel Selection"),
    ),
    Mode.CART: _group(
        "Cart Mode",
        ("↑ / ↓", "Navigate Items"),
        ("←", "Decrease Quantity"),
        ("→", "Increase Quantity"),
        ("Del", "Remove Item"),
    ),
    Mode.PAYMENT: _group(
        "Payment Mode",
        ("←", "Cash"),
        ("→", "Credit"),
        ("1", "Cash"),
        ("2", "Card"),
        ("3", "Bank Transfer"),
        ("4", "Credit"),
    ),
    Mode.PRICE_MODE: _group(
        "Price Mode",
        ("← / →", "Previous / Next Mode"),
        ("1", "Auto (Customer Type)"),
        ("2", "Retail"),
        ("3", "Wholesale"),
        ("4", "Custom Price"),
        ("Tab", "Next Field"),
    ),
    Mode.ITEM_DISCOUNT: _group(
        "Item Discount",
        ("← / →", "Previous / Next Option"),
        ("0", "No Discount"),
        ("P", "Percentage"),
        ("F", "Fixed Amount"),
        ("Tab", "Next Field"),
    ),
}

CUSTOMER_SELECTION = _group(
    "Customer Selection",
    ("↑ / ↓", "Navigate Customers"),
    ("Enter", "Select Customer"),
    ("W", "Walk-in Customer"),
    ("Tab", "Search / List"),
)

REVIEW_ACTIONS = _group(
    "Review & Pay",
    ("1-4", "Payment Method"),
    ("D", "Overall Discount"),
    ("T", "Toggle Tax"),
    ("N", "Notes Field"),
)
RAPID_REVIEW_ACTIONS = _group(
    "Review & Pay",
    ("1-4", "Payment Method"),
    ("F5", "Payment"),
    ("F6", "Discount"),
)

CHECKOUT_ACTIONS = _group(
    "Checkout",
    ("F12", "Complete & Print"),
    ("F9", "Quick Save"),
    ("Esc", "Leave List Mode"),
)

_HINTS = {
    (Step.CUSTOMER, Mode.SEARCH): (("↑↓", "Navigate"), ("Enter", "Select"), ("W", "Walk-in")),
    (Step.PRODUCTS, Mode.SEARCH): (("F2", "Search"), ("↑↓", "Navigate"), ("Enter", "Add"), ("PgDn", "Next Step")),
    (Step.PRODUCTS, Mode.QUANTITY): (("←→", "Adjust Qty"), ("Enter", "Confirm"), ("Esc", "Cancel")),
    (Step.PRODUCTS, Mode.CART): (("↑↓", "Navigate"), ("←→", "Adjust Qty"), ("Del", "Remove")),
    (Step.PRODUCTS, Mode.PRICE_MODE): (("←→", "Toggle Options"), ("Tab", "Next Field"), ("Enter", "Confirm")),
    (Step.PRODUCTS, Mode.ITEM_DISCOUNT): (("←→", "Toggle Options"), ("Tab", "Next Field"), ("Enter", "Confirm")),
    (Step.PRODUCTS, Mode.PAYMENT): (("←", "Cash"), ("→", "Credit"), ("Esc", "Back")),
    (Step.PRODUCTS, Mode.DISCOUNT): (("F2", "Search"), ("Esc", "Back")),
}
_REVIEW_HINTS = (("F12", "Complete"), ("1-4", "Payment"), ("D", "Discount"), ("PgUp", "Back"))


class ShortcutRegistry:
    """Shortcut groups for the help overlay and the one-line hint bar."""

    def groups_for(self, step: Step, mode: Mode, *, rapid: bool = False) -> list[ShortcutGroup]:
        groups = [NAVIGATION]
        if rapid or step is Step.PRODUCTS:
            groups.append(RAPID_QUICK_ACTIONS if rapid else QUICK_ACTIONS)
            if mode in MODE_GROUPS:
                groups.append(MODE_GROUPS[mode])
        if step is Step.CUSTOMER:
            groups.append(CUSTOMER_SELECTION)
        if step is Step.REVIEW:
            if not rapid and mode in (Mode.PAYMENT, Mode.CART):
                groups.append(MODE_GROUPS[mode])
            groups.append(RAPID_REVIEW_ACTIONS if rapid else REVIEW_ACTIONS)
            groups.append(CHECKOUT_ACTIONS)
        return groups

    def hint_bar(self, step: Step, mode: Mode) -> list[Shortcut]:
        if step is Step.REVIEW:
            pairs = _REVIEW_HINTS
        else:
            pairs = _HINTS.get((step, mode), (("?", "Shortcuts"),))
        return [Shortcut(key, label) for key, label in pairs]
