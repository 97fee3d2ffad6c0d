"""
NetWorth Pro - Step Flow
========================
Linear multi-step form navigation.

Steps move strictly one at a time: ``next()`` forward, ``back()`` backward.
There are no jumps; ``reset()`` returns to the first step.
"""

from enum import Enum
from typing import List, Tuple


class Step(str, Enum):
    ASSETS = "assets"
    LIABILITIES = "liabilities"
    MONTHLY_FINANCIALS = "monthly_financials"
    RESULTS = "results"


STEP_LABELS = {
    Step.ASSETS: "Assets",
    Step.LIABILITIES: "Liabilities",
    Step.MONTHLY_FINANCIALS: "Monthly",
    Step.RESULTS: "Results",
}

FULL_STEPS: Tuple[Step, ...] = (
    Step.ASSETS,
    Step.LIABILITIES,
    Step.MONTHLY_FINANCIALS,
    Step.RESULTS,
)

# Variant without the monthly income/expenses step
SHORT_STEPS: Tuple[Step, ...] = (
    Step.ASSETS,
    Step.LIABILITIES,
    Step.RESULTS,
)


class StepStatus(str, Enum):
    COMPLETED = "completed"
    ACTIVE = "active"
    PENDING = "pending"


class StepFlow:
    """
    Forward/back state machine over a fixed sequence of steps.

    Example:
        flow = StepFlow()
        flow.next()      # Step.LIABILITIES
        flow.back()      # Step.ASSETS
    """

    def __init__(self, include_monthly: bool = True, index: int = 0):
        self.steps = FULL_STEPS if include_monthly else SHORT_STEPS
        if not 0 <= index < len(self.steps):
            raise ValueError(f"Step index {index} out of range")
        self._index = index

    @property
    def current(self) -> Step:
        return self.steps[self._index]

    @property
    def step_number(self) -> int:
        """1-based position of the current step."""
        return self._index + 1

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def is_first(self) -> bool:
        return self._index == 0

    @property
    def is_last(self) -> bool:
        return self._index == len(self.steps) - 1

    def next(self) -> Step:
        """Advance one step. Stays put on the last step."""
        if not self.is_last:
            self._index += 1
        return self.current

    def back(self) -> Step:
        """Go back one step. Stays put on the first step."""
        if not self.is_first:
            self._index -= 1
        return self.current

    def reset(self) -> Step:
        self._index = 0
        return self.current

    def progress(self) -> List[Tuple[int, str, StepStatus]]:
        """(number, label, status) for each step, for the progress indicator."""
        result = []
        for i, step in enumerate(self.steps):
            if i < self._index:
                status = StepStatus.COMPLETED
            elif i == self._index:
                status = StepStatus.ACTIVE
            else:
                status = StepStatus.PENDING
            result.append((i + 1, STEP_LABELS[step], status))
        return result

    def __repr__(self) -> str:
        return f"StepFlow({self.current.value}, {self.step_number}/{self.total_steps})"
