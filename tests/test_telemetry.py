from __future__ import annotations

import io
from datetime import datetime, timezone

import pytest

from checkout_engine.config import EngineConfig
from checkout_engine.dispatcher import KeyDispatcher
from checkout_engine.modes import Mode
from checkout_engine.session import RAPID_PROFILE, WIZARD_PROFILE
from checkout_engine.steps import Step
from checkout_engine.telemetry import EventCategory, Outcome, TelemetryLogger, build_event

from conftest import make_session


def _event(**overrides):
    fields = {
        "profile": "rapid",
        "step": Step.PRODUCTS,
        "mode": Mode.SEARCH,
        "session_id": "s-1",
    }
    fields.update(overrides)
    return build_event(fields.pop("category", "cart"), fields.pop("action", "scan_add"), **fields)


def test_build_event_types_step_and_mode() -> None:
    event = _event(step="review", mode="payment", now=datetime(2026, 10, 18, tzinfo=timezone.utc))

    assert event.category is EventCategory.CART
    assert event.step is Step.REVIEW
    assert event.mode is Mode.PAYMENT
    assert event.outcome is Outcome.OK
    assert event.name == "checkout.scan_add"
    assert event.to_dict()["timestamp_utc"] == "2026-10-18T00:00:00+00:00"


@pytest.mark.parametrize(
    "overrides",
    [{"category": "auth"}, {"step": "shipping"}, {"mode": "browse"}, {"outcome": "maybe"}],
)
def test_build_event_rejects_unknown_values(overrides) -> None:
    with pytest.raises(ValueError):
        _event(**overrides)


def test_build_event_blocks_customer_identity() -> None:
    with pytest.raises(ValueError):
        _event(category="checkout", action="finalize", details={"Customer_Name": "Nimal Perera"})


def test_event_dict_drops_empty_fields() -> None:
    payload = _event(details={"quantity": 2, "price_label": None}).to_dict()

    assert payload["details"] == {"quantity": 2}
    assert payload["step"] == "products"
    assert payload["outcome"] == "ok"
    assert "error_code" not in payload
    assert "details" not in _event().to_dict()


def test_logger_writes_file_and_mirror(tmp_path) -> None:
    mirror = io.StringIO()
    telemetry = TelemetryLogger(tmp_path / "telemetry.jsonl", enabled=True, mirror=mirror)

    assert telemetry.emit(_event()) is True

    events = telemetry.read()
    assert len(events) == 1
    assert events[0]["category"] == "cart"
    assert events[0]["session_id"] == "s-1"
    assert "checkout.scan_add" in mirror.getvalue()


def test_logger_disabled_writes_nothing(tmp_path) -> None:
    telemetry = TelemetryLogger(tmp_path / "telemetry.jsonl")

    assert telemetry.emit(_event(category="error", action="advance", outcome="error")) is False
    assert not (tmp_path / "telemetry.jsonl").exists()
    assert telemetry.read() == []


def test_logger_follows_engine_config(tmp_path) -> None:
    target = tmp_path / "events" / "checkout.jsonl"

    enabled = TelemetryLogger.from_config(EngineConfig(telemetry_enabled=True, telemetry_file=str(target)))
    assert enabled.enabled is True
    assert enabled.log_file == target
    assert TelemetryLogger.from_config(EngineConfig()).enabled is False


def test_session_events_carry_step_and_mode(tmp_path, catalog, customers, sink, notifications) -> None:
    telemetry = TelemetryLogger(tmp_path / "session.jsonl", enabled=True)
    session = make_session(RAPID_PROFILE, catalog, customers, sink, notifications, telemetry=telemetry)

    session.set_search_text("2*HAM001")
    session.advance()
    session.finalize()

    events = telemetry.read()
    by_action = {}
    for event in events:
        by_action.setdefault(event["action"], event)
    assert by_action["scan_add"]["step"] == "products"
    assert by_action["scan_add"]["details"] == {"entry_id": "p-hammer", "quantity": 2, "price_label": "Retail"}
    assert by_action["step_change"]["step"] == "review"
    assert by_action["step_change"]["details"]["from_step"] == "products"
    assert by_action["finalize"]["category"] == "checkout"
    assert {event["session_id"] for event in events} == {"test-session"}
    assert {event["profile"] for event in events} == {"rapid"}


def test_dispatch_errors_become_error_events(tmp_path, catalog, customers, sink, notifications) -> None:
    telemetry = TelemetryLogger(tmp_path / "errors.jsonl", enabled=True)
    session = make_session(WIZARD_PROFILE, catalog, customers, sink, notifications, telemetry=telemetry)

    KeyDispatcher(session).dispatch("PageDown")

    error = telemetry.read()[-1]
    assert error["category"] == "error"
    assert error["outcome"] == "error"
    assert error["error_code"] == "NO_CUSTOMER"
    assert (error["step"], error["mode"]) == ("customer", "search")
    assert "details" not in error
