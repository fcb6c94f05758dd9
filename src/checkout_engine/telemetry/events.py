from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping

from ..modes import Mode
from ..steps import Step


class EventCategory(str, Enum):
    NAVIGATION = "navigation"
    CART = "cart"
    PRICING = "pricing"
    CHECKOUT = "checkout"
    ERROR = "error"


class Outcome(str, Enum):
    OK = "ok"
    REJECTED = "rejected"
    ERROR = "error"


# Customer identity never leaves the terminal through telemetry.
_IDENTITY_KEYS = frozenset(
    {"customer_name", "business_name", "full_name", "email", "phone", "address", "card_number", "token"}
)


@dataclass(frozen=True)
class TelemetryEvent:
    """One checkout action, stamped with where the session was when it happened."""

    category: EventCategory
    action: str
    profile: str
    step: Step
    mode: Mode
    session_id: str
    timestamp_utc: str
    outcome: Outcome = Outcome.OK
    error_code: str | None = None
    details: Mapping[str, Any] | None = None

    @property
    def name(self) -> str:
        return f"checkout.{self.action}"

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": self.name,
            "category": self.category.value,
            "action": self.action,
            "profile": self.profile,
            "step": self.step.value,
            "mode": self.mode.value,
            "session_id": self.session_id,
            "timestamp_utc": self.timestamp_utc,
            "outcome": self.outcome.value,
        }
        if self.error_code:
            payload["error_code"] = self.error_code
        if self.details:
            payload["details"] = dict(self.details)
        return payload


def build_event(
    category: EventCategory | str,
    action: str,
    *,
    profile: str,
    step: Step,
    mode: Mode,
    session_id: str,
    outcome: Outcome | str = Outcome.OK,
    error_code: str | None = None,
    details: Mapping[str, Any] | None = None,
    now: datetime | None = None,
) -> TelemetryEvent:
    """Raises ValueError for unknown categories/outcomes and identity keys in details."""
    details = {key: value for key, value in (details or {}).items() if value is not None}
    leaked = sorted(key for key in details if key.lower() in _IDENTITY_KEYS)
    if leaked:
        raise ValueError(f"Customer identity is not allowed in telemetry details: {leaked}")
    return TelemetryEvent(
        category=EventCategory(category),
        action=action,
        profile=profile,
        step=Step(step),
        mode=Mode(mode),
        session_id=session_id,
        timestamp_utc=(now or datetime.now(timezone.utc)).isoformat(),
        outcome=Outcome(outcome),
        error_code=error_code,
        details=details or None,
    )
