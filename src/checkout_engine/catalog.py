from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from .models import CatalogEntry, Customer


@dataclass(frozen=True)
class SearchPolicy:
    limit: int | None = 8
    include_out_of_stock: bool = False
    in_stock_first: bool = False


RAPID_SEARCH = SearchPolicy(limit=8, include_out_of_stock=False)
WIZARD_SEARCH = SearchPolicy(limit=None, include_out_of_stock=True, in_stock_first=True)


def _coerce(items: Iterable[Any], model_type: type) -> list:
    return [item if isinstance(item, model_type) else model_type.model_validate(item) for item in items]


class Catalog:
    """Read-only product/variant catalog supplied whole by the host application."""

    def __init__(self, entries: Iterable[CatalogEntry | Mapping[str, Any]]) -> None:
        self._entries: list[CatalogEntry] = _coerce(entries, CatalogEntry)
        self._by_id = {entry.id: entry for entry in self._entries}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, entry_id: str) -> CatalogEntry | None:
        return self._by_id.get(entry_id)

    def find_by_code(self, code: str) -> CatalogEntry | None:
        """Exact barcode or SKU lookup; no partial matching."""
        if not code:
            return None
        return next((entry for entry in self._entries if entry.matches_code(code)), None)

    def variants_of(self, parent_id: str) -> list[CatalogEntry]:
        return [entry for entry in self._entries if entry.parent_id == parent_id]

    def search(self, query: str, policy: SearchPolicy = RAPID_SEARCH) -> list[CatalogEntry]:
        text = (query or "").strip()
        if not text:
            return []

        exact = self.find_by_code(text)
        if exact is not None and (policy.include_out_of_stock or not exact.is_out_of_stock):
            return [exact]

        needle = text.lower()
        matches = [
            entry
            for entry in self._entries
            if (policy.include_out_of_stock or not entry.is_out_of_stock) and _entry_matches(entry, needle)
        ]
        if policy.in_stock_first:
            matches.sort(key=lambda entry: (entry.is_out_of_stock, entry.name.lower()))
        if policy.limit is not None:
            matches = matches[: policy.limit]
        return matches


def _entry_matches(entry: CatalogEntry, needle: str) -> bool:
    fields = (entry.name, entry.sku, entry.name_alt, entry.barcode, entry.category, entry.brand)
    return any(value and needle in value.lower() for value in fields)


class CustomerDirectory:
    def __init__(self, customers: Iterable[Customer | Mapping[str, Any]]) -> None:
        self._customers: list[Customer] = _coerce(customers, Customer)
        self._by_id = {customer.id: customer for customer in self._customers}

    def __len__(self) -> int:
        return len(self._customers)

    def get(self, customer_id: str) -> Customer | None:
        return self._by_id.get(customer_id)

    def search(self, query: str) -> list[Customer]:
        text = (query or "").strip().lower()
        if not text:
            return list(self._customers)
        return [
            customer
            for customer in self._customers
            if text in customer.name.lower()
            or text in customer.business_name.lower()
            or text in customer.email.lower()
            or text in customer.phone
        ]
