from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Iterator

from .exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    InvalidQuickItemError,
    LineItemNotFoundError,
)
from .models import CatalogEntry
from .pricing import HUNDRED, NO_DISCOUNT, ZERO, ItemDiscount


@dataclass
class LineItem:
    id: str
    catalog_ref: str
    name: str
    quantity: int
    unit_price: Decimal
    original_price: Decimal
    price_label: str = "Retail"
    discount: ItemDiscount = NO_DISCOUNT
    is_custom_price: bool = False
    is_quick_add: bool = False
    entry: CatalogEntry | None = field(default=None, repr=False)

    @property
    def total(self) -> Decimal:
        return self.unit_price * self.quantity

    def render(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "catalog_ref": self.catalog_ref,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "original_price": self.original_price,
            "price_label": self.price_label,
            "discount_type": self.discount.kind.value if self.discount.is_active else None,
            "discount_value": self.discount.value if self.discount.is_active else None,
            "is_custom_price": self.is_custom_price,
            "is_quick_add": self.is_quick_add,
            "total": self.total,
        }


class OverallDiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@dataclass(frozen=True)
class OverallAdjustment:
    discount_type: OverallDiscountType = OverallDiscountType.PERCENTAGE
    discount_value: Decimal = ZERO
    tax_enabled: bool = False
    tax_rate: Decimal = ZERO


@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total: Decimal

    def render(self) -> dict[str, Any]:
        return {
            "subtotal": self.subtotal,
            "discount_amount": self.discount_amount,
            "tax_amount": self.tax_amount,
            "total": self.total,
        }


def _require_quantity(quantity: object) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidQuantityError(quantity)
    return quantity


class CartLedger:
    """Ordered cart lines for one checkout session.

    Lines for the same catalog entry at the same unit price are merged; the
    same entry at a different price (custom, discounted, other tier) stays a
    separate row. Totals are derived from the lines on every call.
    """

    def __init__(self) -> None:
        self._lines: list[LineItem] = []
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[LineItem]:
        return iter(tuple(self._lines))

    @property
    def lines(self) -> tuple[LineItem, ...]:
        return tuple(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def last_line(self) -> LineItem | None:
        return self._lines[-1] if self._lines else None

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    @property
    def subtotal(self) -> Decimal:
        return sum((line.total for line in self._lines), ZERO)

    def get(self, item_id: str) -> LineItem:
        for line in self._lines:
            if line.id == item_id:
                return line
        raise LineItemNotFoundError(item_id)

    def reserved_quantity(self, entry_id: str, *, excluding: str | None = None) -> int:
        return sum(
            line.quantity
            for line in self._lines
            if line.catalog_ref == entry_id and not line.is_quick_add and line.id != excluding
        )

    def add_item(
        self,
        entry: CatalogEntry,
        quantity: int,
        unit_price: Decimal,
        discount: ItemDiscount | None = None,
        *,
        original_price: Decimal | None = None,
        label: str = "Retail",
        is_custom_price: bool = False,
    ) -> LineItem:
        quantity = _require_quantity(quantity)
        reserved = self.reserved_quantity(entry.id)
        if reserved + quantity > entry.stock:
            raise InsufficientStockError(
                entry_id=entry.id,
                requested=quantity,
                available=max(entry.stock - reserved, 0),
            )

        unit_price = Decimal(unit_price)
        for line in self._lines:
            if line.catalog_ref == entry.id and not line.is_quick_add and line.unit_price == unit_price:
                line.quantity += quantity
                return line

        line = LineItem(
            id=f"item-{next(self._ids)}",
            catalog_ref=entry.id,
            name=entry.name,
            quantity=quantity,
            unit_price=unit_price,
            original_price=Decimal(original_price) if original_price is not None else unit_price,
            price_label=label,
            discount=discount if discount is not None and discount.is_active else NO_DISCOUNT,
            is_custom_price=is_custom_price,
            entry=entry,
        )
        self._lines.append(line)
        return line

    def add_quick_item(self, name: str, price: Decimal | int | str, quantity: int = 1) -> LineItem:
        if not name or not name.strip():
            raise InvalidQuickItemError("Quick item needs a name", details={"field": "name"})
        try:
            price = Decimal(str(price).strip())
        except InvalidOperation as exc:
            raise InvalidQuickItemError("Quick item price must be a number", details={"field": "price"}) from exc
        if not price.is_finite() or price <= 0:
            raise InvalidQuickItemError("Quick item price must be greater than 0", details={"field": "price"})
        quantity = _require_quantity(quantity)
        item_id = f"quick-{next(self._ids)}"
        line = LineItem(
            id=item_id,
            catalog_ref=item_id,
            name=name.strip(),
            quantity=quantity,
            unit_price=price,
            original_price=price,
            price_label="Quick",
            is_quick_add=True,
        )
        self._lines.append(line)
        return line

    def set_quantity(self, item_id: str, new_quantity: int) -> bool:
        """Returns False for non-positive quantities; removal is remove_item."""
        line = self.get(item_id)
        if isinstance(new_quantity, bool) or not isinstance(new_quantity, int):
            raise InvalidQuantityError(new_quantity)
        if new_quantity <= 0:
            return False
        if line.entry is not None:
            reserved = self.reserved_quantity(line.catalog_ref, excluding=line.id)
            if reserved + new_quantity > line.entry.stock:
                raise InsufficientStockError(
                    entry_id=line.catalog_ref,
                    requested=new_quantity,
                    available=max(line.entry.stock - reserved, 0),
                )
        line.quantity = new_quantity
        return True

    def remove_item(self, item_id: str) -> LineItem:
        line = self.get(item_id)
        self._lines.remove(line)
        return line

    def clear(self) -> None:
        self._lines.clear()

    def totals(self, adjustment: OverallAdjustment | None = None) -> CartTotals:
        adjustment = adjustment or OverallAdjustment()
        subtotal = self.subtotal
        value = max(Decimal(adjustment.discount_value), ZERO)
        if adjustment.discount_type == OverallDiscountType.FIXED:
            discount_amount = min(value, subtotal)
        else:
            discount_amount = subtotal * min(value, HUNDRED) / HUNDRED
        taxable = subtotal - discount_amount
        tax_amount = taxable * Decimal(adjustment.tax_rate) / HUNDRED if adjustment.tax_enabled else ZERO
        return CartTotals(
            subtotal=subtotal,
            discount_amount=discount_amount,
            tax_amount=tax_amount,
            total=taxable + tax_amount,
        )

    def render(self) -> dict[str, Any]:
        return {
            "count": len(self._lines),
            "item_count": self.item_count,
            "line_total": self.subtotal,
            "rows": [line.render() for line in self._lines],
        }
