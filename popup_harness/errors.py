from typing import Any, Optional


class HarnessError(Exception):
    """Base class for every failure raised by the harness."""


class SessionClosed(HarnessError):
    def __init__(self, message: str = "Cannot perform action: Target page, context or browser has been closed"):
        super().__init__(message)


class ElementNotFound(HarnessError):
    pass


class ElementNotVisible(ElementNotFound):
    def __init__(self, locator: Any, timeout: Optional[float] = None, cause: str = ""):
        self.locator = locator
        self.timeout = timeout
        message = f"Element not visible: {locator}"
        if timeout is not None:
            message += f" (waited {timeout:.0f}ms)"
        if cause:
            message += f": {cause}"
        super().__init__(message)


class RetryExhausted(HarnessError):
    def __init__(self, attempts: int, last_error: Optional[BaseException]):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Action failed after {attempts} attempts. Last error: {last_error}")


class AssertionMismatch(HarnessError, AssertionError):
    """
    An observed value disagreed with the expected one.
    Always carries both values plus the scenario and step it came from.
    """

    def __init__(self, scenario: str, step: str, expected: Any, actual: Any, message: str = ""):
        self.scenario = scenario
        self.step = step
        self.expected = expected
        self.actual = actual
        text = f"[{scenario}] step '{step}' failed: expected {expected!r}, got {actual!r}"
        if message:
            text += f" ({message})"
        super().__init__(text)


class NotDisplayed(AssertionMismatch):
    pass
