from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol

from .exceptions import CheckoutError


class Feedback(str, Enum):
    """Audible cue the host plays after an action (scanner beeps)."""

    ADD = "add"
    REMOVE = "remove"
    ERROR = "error"
    SUCCESS = "success"


class NotificationSink(Protocol):
    def push(self, *, level: str, title: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
        ...


@dataclass
class NotificationCenter:
    messages: list[dict[str, Any]] = field(default_factory=list)

    def push(self, *, level: str, title: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
        payload = {
            "level": level,
            "title": title,
            "message": message,
            "details": details or {},
        }
        self.messages.append(payload)
        return payload

    @property
    def last(self) -> dict[str, Any] | None:
        return self.messages[-1] if self.messages else None

    def clear(self) -> None:
        self.messages.clear()

    def render(self) -> dict[str, Any]:
        return {"count": len(self.messages), "messages": list(self.messages)}


@dataclass(frozen=True)
class PresentedError:
    category: str
    title: str
    user_message: str
    code: str
    details: dict[str, Any]


class ErrorPresenter:
    """Maps checkout failures to operator-facing notification payloads."""

    _CATEGORY_BY_CODE = {
        "INSUFFICIENT_STOCK": "stock",
        "INVALID_QUANTITY": "validation",
        "INVALID_QUICK_ITEM": "validation",
        "INVALID_PRICE": "validation",
        "EMPTY_CART": "blocked",
        "NO_CUSTOMER": "blocked",
        "LINE_NOT_FOUND": "not_found",
        "CHECKOUT_IN_PROGRESS": "conflict",
        "SINK_REJECTED": "rejected",
    }
    _CATEGORY_TITLES = {
        "stock": "Insufficient stock",
        "validation": "Invalid input",
        "blocked": "Cannot continue",
        "not_found": "Item not found",
        "conflict": "Please wait",
        "rejected": "Checkout failed",
        "unknown": "Error",
    }

    def present(self, error: CheckoutError, *, action: str) -> PresentedError:
        category = self._CATEGORY_BY_CODE.get(error.code, "unknown")
        return PresentedError(
            category=category,
            title=self._CATEGORY_TITLES[category],
            user_message=error.message,
            code=error.code,
            details={
                "code": error.code,
                "action": action,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "raw_details": dict(error.details),
            },
        )

    def notify(self, sink: NotificationSink, error: CheckoutError, *, action: str) -> PresentedError:
        presented = self.present(error, action=action)
        sink.push(level="error", title=presented.title, message=presented.user_message, details=presented.details)
        return presented
