import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from playwright.sync_api import Error as PlaywrightError

from popup_harness.errors import HarnessError
from popup_harness.models.results import ScenarioResult, StepResult, StepStatus

LOGGER = logging.getLogger("popup_harness.scenario")

_UNSET = object()

_TRANSITIONS = {
    StepStatus.PENDING: {StepStatus.RUNNING},
    StepStatus.RUNNING: {StepStatus.PASSED, StepStatus.FAILED},
    StepStatus.PASSED: set(),
    StepStatus.FAILED: set(),
}


@dataclass
class Step:
    """
    One operation plus what it should yield.
    With neither `expected` nor `predicate` the step passes as long as it does not raise.
    """
    name: str
    operation: Callable[[], Any]
    expected: Any = _UNSET
    predicate: Optional[Callable[[Any], bool]] = None
    kind: str = "mismatch"
    describe: Optional[str] = None

    def check(self, actual: Any) -> bool:
        if self.predicate is not None:
            return bool(self.predicate(actual))
        if self.expected is not _UNSET:
            return actual == self.expected
        return True

    @property
    def expectation(self) -> Any:
        if self.describe is not None:
            return self.describe
        if self.expected is not _UNSET:
            return self.expected
        return None


class Scenario:
    """
    Ordered steps, aborted on the first failure.

    `abort_on_mismatch=False` keeps iterating after an expectation mismatch
    (a raised failure still aborts); the scenario then fails with the first
    mismatch as its failing step.
    """

    def __init__(self, name: str, on_failure: Optional[Callable[[str], str]] = None, abort_on_mismatch: bool = True):
        self.name = name
        self.on_failure = on_failure
        self.abort_on_mismatch = abort_on_mismatch
        self.result = ScenarioResult(name=name)

    @property
    def status(self) -> StepStatus:
        return self.result.status

    def _transition(self, status: StepStatus):
        if status not in _TRANSITIONS[self.result.status]:
            raise RuntimeError(f"Scenario '{self.name}' cannot go from {self.result.status.value} to {status.value}")
        self.result.status = status

    def _capture(self, step_name: str) -> Optional[str]:
        if self.on_failure is None:
            return None
        return self.on_failure(f"{self.name}-{step_name}") or None

    def _raised(self, record: StepResult, error: Exception):
        record.status = StepStatus.FAILED
        record.kind = "error"
        record.actual = type(error).__name__
        record.message = str(error)
        record._error = error

    def run(self, steps: Iterable[Step]) -> ScenarioResult:
        self._transition(StepStatus.RUNNING)
        LOGGER.info("Scenario '%s' started", self.name)

        mismatched = False
        for step in steps:
            record = StepResult(name=step.name, status=StepStatus.RUNNING, expected=step.expectation)
            self.result.steps.append(record)
            try:
                actual = step.operation()
            except (HarnessError, PlaywrightError) as e:
                self._raised(record, e)
                record.artifact = self._capture(step.name)
                LOGGER.error("[%s] step '%s' raised: %s", self.name, step.name, e)
                self._transition(StepStatus.FAILED)
                return self.result
            except Exception as e:
                self._raised(record, e)
                self._transition(StepStatus.FAILED)
                raise

            record.actual = actual
            if step.check(actual):
                record.status = StepStatus.PASSED
                LOGGER.debug("[%s] step '%s' passed", self.name, step.name)
                continue

            record.status = StepStatus.FAILED
            record.kind = step.kind
            record.message = f"expected {step.expectation!r}, got {actual!r}"
            record.artifact = self._capture(step.name)
            LOGGER.error("[%s] step '%s' failed: %s", self.name, step.name, record.message)
            mismatched = True
            if self.abort_on_mismatch:
                break

        self._transition(StepStatus.FAILED if mismatched else StepStatus.PASSED)
        LOGGER.info("Scenario '%s' %s", self.name, self.result.status.value)
        return self.result


def run_composite(name: str, parts: Iterable[Callable[[], ScenarioResult]]) -> ScenarioResult:
    """Runs sub-scenarios in order and stops at the first one that fails."""
    result = ScenarioResult(name=name, status=StepStatus.RUNNING)
    for part in parts:
        child = part()
        result.children.append(child)
        result.steps.append(StepResult(
            name=child.name,
            status=child.status,
            expected=StepStatus.PASSED.value,
            actual=child.status.value,
        ))
        if not child.passed:
            result.status = StepStatus.FAILED
            LOGGER.error("Composite '%s' stopped at '%s'", name, child.name)
            return result
    result.status = StepStatus.PASSED
    return result

