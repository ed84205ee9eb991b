from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, PrivateAttr

from popup_harness.errors import AssertionMismatch, NotDisplayed


class ActionOutcome(BaseModel):
    action: str
    ok: bool
    kind: str = Field("ok", description="'ok', 'session_closed', 'not_visible' or 'error'")
    cause: Optional[str] = None
    artifact: Optional[str] = Field(None, description="Screenshot captured on failure, if any")


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"


class StepResult(BaseModel):
    name: str
    status: StepStatus = StepStatus.PENDING
    expected: Optional[Any] = None
    actual: Optional[Any] = None
    kind: str = Field("mismatch", description="'mismatch', 'not_displayed' or 'error' when failed")
    message: Optional[str] = None
    artifact: Optional[str] = None

    _error: Optional[BaseException] = PrivateAttr(default=None)

    @property
    def passed(self) -> bool:
        return self.status == StepStatus.PASSED


class ScenarioResult(BaseModel):
    name: str
    status: StepStatus = StepStatus.PENDING
    steps: List[StepResult] = Field(default_factory=list)
    children: List["ScenarioResult"] = Field(default_factory=list, description="Sub-scenarios of a composite")

    @property
    def passed(self) -> bool:
        return self.status == StepStatus.PASSED

    @property
    def failed_step(self) -> Optional[StepResult]:
        for step in self.steps:
            if step.status == StepStatus.FAILED:
                return step
        return None

    def raise_for_status(self) -> "ScenarioResult":
        """Raises AssertionMismatch (or NotDisplayed) for the first failing step."""
        if self.status != StepStatus.FAILED:
            return self

        for child in self.children:
            if child.status == StepStatus.FAILED:
                return child.raise_for_status()

        step = self.failed_step
        if step is None:
            raise AssertionMismatch(self.name, "<none>", "passed", self.status.value)

        error_cls = NotDisplayed if step.kind == "not_displayed" else AssertionMismatch
        error = error_cls(self.name, step.name, step.expected, step.actual, step.message or "")
        if step._error is not None:
            raise error from step._error
        raise error

    def summary(self) -> str:
        lines = [f"{self.name}: {self.status.value}"]
        for child in self.children:
            lines.extend("  " + line for line in child.summary().splitlines())
        if not self.children:
            failed = self.failed_step
            if failed is not None:
                lines.append(f"  x {failed.name}: expected {failed.expected!r}, got {failed.actual!r}")
                if failed.message:
                    lines.append(f"    {failed.message}")
        return "\n".join(lines)


ScenarioResult.model_rebuild()
