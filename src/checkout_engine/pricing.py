from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from .models import CatalogEntry, CustomerClass

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class PriceMode(str, Enum):
    AUTO = "auto"
    RETAIL = "retail"
    WHOLESALE = "wholesale"
    CUSTOM = "custom"


class DiscountKind(str, Enum):
    NONE = "none"
    PERCENTAGE = "percentage"
    FIXED = "fixed"


# Arrow-key cycling order
PRICE_MODE_ORDER: tuple[PriceMode, ...] = (PriceMode.AUTO, PriceMode.RETAIL, PriceMode.WHOLESALE, PriceMode.CUSTOM)
DISCOUNT_KIND_ORDER: tuple[DiscountKind, ...] = (DiscountKind.NONE, DiscountKind.PERCENTAGE, DiscountKind.FIXED)


@dataclass(frozen=True)
class PriceSelection:
    mode: PriceMode = PriceMode.AUTO
    custom_value: Decimal | None = None

    def __post_init__(self) -> None:
        if self.mode is PriceMode.CUSTOM:
            if self.custom_value is None:
                raise ValueError("custom price mode requires custom_value")
            if Decimal(self.custom_value) < 0:
                raise ValueError("custom_value must not be negative")

    @classmethod
    def custom(cls, value: Decimal | int | str) -> PriceSelection:
        return cls(mode=PriceMode.CUSTOM, custom_value=Decimal(str(value)))


@dataclass(frozen=True)
class ItemDiscount:
    kind: DiscountKind = DiscountKind.NONE
    value: Decimal = ZERO

    @property
    def is_active(self) -> bool:
        return self.kind is not DiscountKind.NONE and Decimal(self.value) > 0


NO_DISCOUNT = ItemDiscount()


@dataclass(frozen=True)
class ResolvedPrice:
    unit_price: Decimal
    base_price: Decimal
    label: str
    is_custom: bool = False
    discount: ItemDiscount = NO_DISCOUNT


def _wholesale_or_retail(entry: CatalogEntry) -> tuple[Decimal, str]:
    if entry.wholesale_price is not None and entry.wholesale_price > 0:
        return Decimal(entry.wholesale_price), "Wholesale"
    return Decimal(entry.retail_price), "Retail"


def base_price_for(
    entry: CatalogEntry,
    mode: PriceMode,
    customer_class: CustomerClass | None,
) -> tuple[Decimal, str]:
    if mode is PriceMode.WHOLESALE or (mode is PriceMode.AUTO and customer_class is CustomerClass.WHOLESALE):
        return _wholesale_or_retail(entry)
    return Decimal(entry.retail_price), "Retail"


def apply_item_discount(base_price: Decimal, discount: ItemDiscount | None) -> Decimal:
    if discount is None or not discount.is_active:
        return base_price
    value = Decimal(discount.value)
    if discount.kind is DiscountKind.PERCENTAGE:
        return max(base_price * (1 - value / HUNDRED), ZERO)
    return max(base_price - value, ZERO)


def resolve_price(
    entry: CatalogEntry,
    selection: PriceSelection | None = None,
    customer_class: CustomerClass | None = None,
    discount: ItemDiscount | None = None,
) -> ResolvedPrice:
    """Resolve a line's unit price.

    Custom overrides win and skip the item discount. Otherwise the tier is
    picked from the selection (AUTO follows the customer class), the item
    discount is applied and clamped at zero. No rounding happens here; the
    invoice rounds once when it is created.
    """
    selection = selection or PriceSelection()
    if selection.mode is PriceMode.CUSTOM:
        value = Decimal(selection.custom_value)
        return ResolvedPrice(unit_price=value, base_price=value, label="Custom", is_custom=True)

    base_price, label = base_price_for(entry, selection.mode, customer_class)
    applied = discount if discount is not None and discount.is_active else NO_DISCOUNT
    return ResolvedPrice(
        unit_price=apply_item_discount(base_price, applied),
        base_price=base_price,
        label=label,
        discount=applied,
    )


def cycle(options: tuple, current, step: int):
    """Next option with wraparound; step is +1 or -1."""
    index = options.index(current) if current in options else 0
    return options[(index + step) % len(options)]


def price_label_for(entry: CatalogEntry, customer_class: CustomerClass | None) -> tuple[Decimal, str]:
    """Display price for a search result under AUTO pricing."""
    return base_price_for(entry, PriceMode.AUTO, customer_class)
