from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .exceptions import CheckoutError


class Step(str, Enum):
    CUSTOMER = "customer"
    PRODUCTS = "products"
    REVIEW = "review"


class Direction(str, Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


@dataclass(frozen=True)
class StepSet:
    steps: tuple[Step, ...]

    def __post_init__(self) -> None:
        if not self.steps:
            raise ValueError("a step set needs at least one step")
        if len(set(self.steps)) != len(self.steps):
            raise ValueError("steps must be unique")

    @property
    def first(self) -> Step:
        return self.steps[0]

    @property
    def last(self) -> Step:
        return self.steps[-1]

    def index(self, step: Step) -> int:
        return self.steps.index(step)

    def __contains__(self, step: object) -> bool:
        return step in self.steps

    def __len__(self) -> int:
        return len(self.steps)


WIZARD_STEPS = StepSet((Step.CUSTOMER, Step.PRODUCTS, Step.REVIEW))
RAPID_STEPS = StepSet((Step.PRODUCTS, Step.REVIEW))

# A guard returns the error blocking an advance out of its step, or None.
StepGuard = Callable[[], "CheckoutError | None"]
StepListener = Callable[[Step, Step, Direction], None]


@dataclass(frozen=True)
class StepInfo:
    number: int
    step: Step
    is_completed: bool
    is_current: bool
    is_accessible: bool


class StepController:
    def __init__(self, step_set: StepSet, guards: dict[Step, StepGuard] | None = None) -> None:
        self.step_set = step_set
        self.guards: dict[Step, StepGuard] = dict(guards or {})
        self._current = step_set.first
        self._listeners: list[StepListener] = []

    @property
    def current(self) -> Step:
        return self._current

    @property
    def is_first(self) -> bool:
        return self._current == self.step_set.first

    @property
    def is_last(self) -> bool:
        return self._current == self.step_set.last

    def subscribe(self, listener: StepListener) -> None:
        self._listeners.append(listener)

    def blocking_error(self, step: Step | None = None) -> CheckoutError | None:
        guard = self.guards.get(step or self._current)
        return guard() if guard else None

    def can_advance(self) -> bool:
        return not self.is_last and self.blocking_error() is None

    def advance(self) -> bool:
        """Moves to the adjacent next step.

        Returns False on the last step. Raises the guard's error when the
        current step is not complete; the step is unchanged in both cases.
        """
        if self.is_last:
            return False
        error = self.blocking_error()
        if error is not None:
            raise error
        self._move(self.step_set.steps[self.step_set.index(self._current) + 1])
        return True

    def retreat(self) -> bool:
        if self.is_first:
            return False
        self._move(self.step_set.steps[self.step_set.index(self._current) - 1])
        return True

    def jump_to(self, step: Step) -> bool:
        if step not in self.step_set or step == self._current:
            return False
        target = self.step_set.index(step)
        current = self.step_set.index(self._current)
        if target < current:
            self._move(step)
            return True
        if target == current + 1:
            return self.advance()
        return False

    def reset(self) -> None:
        if self._current != self.step_set.first:
            self._move(self.step_set.first)

    def describe(self) -> list[StepInfo]:
        current = self.step_set.index(self._current)
        can_advance = self.can_advance()
        return [
            StepInfo(
                number=index + 1,
                step=step,
                is_completed=index < current,
                is_current=index == current,
                is_accessible=index <= current or (index == current + 1 and can_advance),
            )
            for index, step in enumerate(self.step_set.steps)
        ]

    def _move(self, step: Step) -> None:
        previous = self._current
        direction = (
            Direction.FORWARD
            if self.step_set.index(step) > self.step_set.index(previous)
            else Direction.BACKWARD
        )
        self._current = step
        for listener in list(self._listeners):
            listener(previous, step, direction)
