from __future__ import annotations

import pytest

from checkout_engine.exceptions import EmptyCartOnCheckoutError
from checkout_engine.focus import FocusScheduler, FocusTarget
from checkout_engine.modes import RAPID_MODES, WIZARD_MODES, Mode, ModeController
from checkout_engine.steps import RAPID_STEPS, WIZARD_STEPS, Direction, Step, StepController, StepSet


def test_step_set_validation() -> None:
    with pytest.raises(ValueError):
        StepSet(())
    with pytest.raises(ValueError):
        StepSet((Step.PRODUCTS, Step.PRODUCTS))
    assert RAPID_STEPS.first is Step.PRODUCTS
    assert WIZARD_STEPS.last is Step.REVIEW


def test_guard_blocks_advance_and_keeps_step() -> None:
    cart_empty = True
    controller = StepController(
        RAPID_STEPS,
        guards={Step.PRODUCTS: lambda: EmptyCartOnCheckoutError() if cart_empty else None},
    )

    with pytest.raises(EmptyCartOnCheckoutError):
        controller.advance()
    assert controller.current is Step.PRODUCTS

    cart_empty = False
    assert controller.advance() is True
    assert controller.current is Step.REVIEW
    assert controller.advance() is False


def test_retreat_from_first_step_is_refused() -> None:
    controller = StepController(WIZARD_STEPS)
    assert controller.retreat() is False
    assert controller.current is Step.CUSTOMER


def test_jump_only_backward_or_to_adjacent_step() -> None:
    controller = StepController(WIZARD_STEPS)
    assert controller.jump_to(Step.REVIEW) is False
    assert controller.jump_to(Step.PRODUCTS) is True
    assert controller.jump_to(Step.REVIEW) is True
    assert controller.jump_to(Step.CUSTOMER) is True
    assert controller.current is Step.CUSTOMER


def test_listeners_receive_direction() -> None:
    seen: list[tuple[Step, Step, Direction]] = []
    controller = StepController(RAPID_STEPS)
    controller.subscribe(lambda prev, new, direction: seen.append((prev, new, direction)))

    controller.advance()
    controller.retreat()

    assert seen == [
        (Step.PRODUCTS, Step.REVIEW, Direction.FORWARD),
        (Step.REVIEW, Step.PRODUCTS, Direction.BACKWARD),
    ]


def test_describe_marks_next_step_accessible_only_when_guard_passes() -> None:
    controller = StepController(RAPID_STEPS, guards={Step.PRODUCTS: lambda: EmptyCartOnCheckoutError()})
    infos = controller.describe()
    assert [info.is_current for info in infos] == [True, False]
    assert infos[1].is_accessible is False


def test_mode_sets_must_include_search() -> None:
    with pytest.raises(ValueError):
        ModeController({Step.PRODUCTS: frozenset({Mode.CART})})


def test_mode_requests_outside_the_step_set_are_ignored() -> None:
    modes = ModeController(WIZARD_MODES)
    assert modes.enter(Step.CUSTOMER, Mode.CART) is False
    assert modes.current is Mode.SEARCH
    assert modes.enter(Step.PRODUCTS, Mode.PAYMENT) is False
    assert modes.enter(Step.REVIEW, Mode.PAYMENT) is True
    assert modes.current is Mode.PAYMENT
    modes.reset()
    assert modes.current is Mode.SEARCH


def test_rapid_products_step_allows_payment_and_discount() -> None:
    assert {Mode.PAYMENT, Mode.DISCOUNT} <= RAPID_MODES[Step.PRODUCTS]
    assert Mode.PRICE_MODE not in RAPID_MODES[Step.PRODUCTS]


def test_later_focus_request_supersedes_earlier() -> None:
    scheduler = FocusScheduler()
    first = scheduler.schedule(FocusTarget.QUANTITY_FIELD, select_text=True)
    second = scheduler.schedule(FocusTarget.SEARCH_FIELD)

    assert second.sequence > first.sequence
    assert scheduler.consume() == second
    assert scheduler.consume() is None


def test_focus_target_text_fields() -> None:
    assert FocusTarget.SEARCH_FIELD.is_text_field is True
    assert FocusTarget.CART_LIST.is_text_field is False
    assert FocusTarget.PAYMENT_OPTIONS.is_text_field is False
