import logging
import os
import re
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional, TypeVar

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator, Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from popup_harness.config import SCREENSHOT_DIR, Timeouts
from popup_harness.errors import (
    ElementNotFound,
    ElementNotVisible,
    HarnessError,
    RetryExhausted,
    SessionClosed,
)
from popup_harness.models.results import ActionOutcome

LOGGER = logging.getLogger("popup_harness.actions")

T = TypeVar("T")

CLOSED_MARKER = "has been closed"


def is_closed_error(exc: BaseException) -> bool:
    if isinstance(exc, SessionClosed):
        return True
    return isinstance(exc, PlaywrightError) and CLOSED_MARKER in str(exc)


def _translate(exc: BaseException, locator: Any = None, timeout: Optional[float] = None) -> BaseException:
    """Maps a raw engine error onto the harness error kinds. Unknown errors pass through."""
    if isinstance(exc, HarnessError):
        return exc
    if is_closed_error(exc):
        return SessionClosed(str(exc))
    if isinstance(exc, PlaywrightTimeoutError):
        return ElementNotVisible(locator, timeout, str(exc).splitlines()[0] if str(exc) else "")
    return exc


def artifact_name(label: str, now: Optional[datetime] = None) -> str:
    """`{label}-{ISO8601 with ':' and '.' replaced}.png`, e.g. click-error-2024-05-01T10-20-30-123Z.png"""
    now = now or datetime.now(timezone.utc)
    stamp = now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    safe_label = re.sub(r'[\\/:*?"<>|\s]+', "_", label)
    return f"{safe_label}-{re.sub(r'[:.]', '-', stamp)}.png"


class WebActions:
    """
    Resilient wrappers around Playwright locator actions.

    Every primitive refuses to run against a closed page, waits for the target
    before acting and leaves a screenshot behind when it fails. Nothing here is
    retried implicitly; wrap a call in `retry` when a caller wants that.
    """

    def __init__(self, page: Page, screenshot_dir: str = SCREENSHOT_DIR, timeouts: Optional[Timeouts] = None):
        self.page = page
        self.screenshot_dir = screenshot_dir
        self.timeouts = timeouts or Timeouts()
        if not os.path.exists(screenshot_dir):
            os.makedirs(screenshot_dir, exist_ok=True)

    def _ensure_open(self):
        if self.page.is_closed():
            raise SessionClosed()

    def _reraise(self, exc: BaseException, locator: Any, timeout: Optional[float]):
        translated = _translate(exc, locator, timeout)
        if translated is exc:
            raise exc
        raise translated from exc

    def safe_click(self, locator: Locator, timeout: Optional[float] = None, **options):
        timeout = self.timeouts.element if timeout is None else timeout
        try:
            self._ensure_open()
            locator.wait_for(state="visible", timeout=timeout)
            locator.click(**options)
            self.page.wait_for_timeout(self.timeouts.click_settle)
        except Exception as e:
            LOGGER.error("Failed to click element %s: %s", locator, e)
            self.take_screenshot("click-error")
            self._reraise(e, locator, timeout)

    def safe_fill(self, locator: Locator, value: str, timeout: Optional[float] = None):
        timeout = self.timeouts.element if timeout is None else timeout
        try:
            self._ensure_open()
            locator.wait_for(state="visible", timeout=timeout)
            locator.fill(value)
        except Exception as e:
            LOGGER.error("Failed to fill element %s: %s", locator, e)
            self.take_screenshot("fill-error")
            self._reraise(e, locator, timeout)

    def safe_clear(self, locator: Locator, timeout: Optional[float] = None):
        timeout = self.timeouts.element if timeout is None else timeout
        try:
            self._ensure_open()
            locator.wait_for(state="visible", timeout=timeout)
            locator.clear()
        except Exception as e:
            LOGGER.error("Failed to clear element %s: %s", locator, e)
            self.take_screenshot("clear-error")
            self._reraise(e, locator, timeout)

    def _wait_state(self, locator: Locator, state: str, timeout: float) -> bool:
        self._ensure_open()
        try:
            locator.wait_for(state=state, timeout=timeout)
            return True
        except PlaywrightTimeoutError as e:
            if is_closed_error(e):
                raise SessionClosed(str(e)) from e
            return False
        except PlaywrightError as e:
            # Strict-mode violations, detached or malformed targets are not "hidden".
            self._reraise(e, locator, timeout)

    def is_visible(self, locator: Locator, timeout: Optional[float] = None) -> bool:
        """False only when the wait times out; any other engine error is raised."""
        return self._wait_state(locator, "visible", self.timeouts.element if timeout is None else timeout)

    def is_hidden(self, locator: Locator, timeout: Optional[float] = None) -> bool:
        return self._wait_state(locator, "hidden", self.timeouts.popup if timeout is None else timeout)

    def is_disabled(self, locator: Locator) -> bool:
        self._ensure_open()
        try:
            return locator.is_disabled()
        except PlaywrightError as e:
            self._reraise(e, locator, None)

    def get_text(self, locator: Locator, timeout: Optional[float] = None) -> str:
        if not self.is_visible(locator, timeout):
            return ""
        try:
            return locator.text_content() or ""
        except PlaywrightError as e:
            LOGGER.error("Failed to get text from %s: %s", locator, e)
            self._reraise(e, locator, timeout)

    def take_screenshot(self, name: str) -> str:
        if self.page.is_closed():
            LOGGER.warning("Cannot take screenshot: page is closed")
            return ""

        file_path = os.path.join(self.screenshot_dir, artifact_name(name))
        try:
            self.page.screenshot(path=file_path, full_page=True)
        except (PlaywrightError, OSError) as e:
            LOGGER.error("Failed to take screenshot %s: %s", file_path, e)
            return ""
        LOGGER.info("Screenshot saved: %s", file_path)
        return file_path

    def wait(self, ms: float):
        self._ensure_open()
        self.page.wait_for_timeout(ms)

    def wait_for_navigation(self, timeout: Optional[float] = None):
        timeout = self.timeouts.navigation if timeout is None else timeout
        self._ensure_open()
        try:
            self.page.wait_for_load_state("networkidle", timeout=timeout)
        except PlaywrightTimeoutError as e:
            if is_closed_error(e):
                raise SessionClosed(str(e)) from e
            # Long-polling pages never go idle; the caller verifies the URL anyway.
            LOGGER.debug("wait_for_load_state timed out; continue.")
        except PlaywrightError as e:
            self._reraise(e, self.page, timeout)

    def retry(self, action: Callable[[], T], max_attempts: int = 3, delay_ms: float = 1000) -> T:
        """
        Runs `action` up to `max_attempts` times, sleeping `delay_ms` between attempts.
        A closed session is fatal and never retried.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        last_error: Optional[BaseException] = None
        for attempt in range(1, max_attempts + 1):
            try:
                return action()
            except Exception as e:
                if is_closed_error(e):
                    raise
                last_error = e
                LOGGER.warning("Attempt %s/%s failed: %s", attempt, max_attempts, e)
                if attempt < max_attempts and delay_ms > 0:
                    time.sleep(delay_ms / 1000.0)

        raise RetryExhausted(max_attempts, last_error) from last_error

    def select_option(
        self,
        dropdown: Locator,
        value: Optional[str] = None,
        *,
        index: Optional[int] = None,
        option_locator: Optional[Locator] = None,
        timeout: Optional[float] = None,
    ):
        """
        Selects by `value` or by zero-based `index`.
        Without `option_locator` the dropdown is treated as a native <select>;
        with it, the dropdown is opened and the matching option clicked.
        """
        if (value is None) == (index is None):
            raise ValueError("Pass exactly one of value or index")

        timeout = self.timeouts.select if timeout is None else timeout
        label = "dropdown-selection-error" if index is None else "dropdown-index-selection-error"
        try:
            self._ensure_open()
            dropdown.wait_for(state="visible", timeout=timeout)

            if option_locator is None:
                if index is None:
                    dropdown.select_option(value=value)
                else:
                    dropdown.select_option(index=index)
                return

            self.safe_click(dropdown)
            self.page.wait_for_timeout(self.timeouts.click_settle)

            if index is None:
                # has_text with a plain string is a case-insensitive substring match ("S" hits "XS").
                option = option_locator.filter(has_text=re.compile(rf"^\s*{re.escape(value)}\s*$")).first
            else:
                count = option_locator.count()
                if index < 0 or index >= count:
                    raise ElementNotFound(f"Index {index} is out of bounds. Available options: {count}")
                option = option_locator.nth(index)
            self.safe_click(option)
        except Exception as e:
            LOGGER.error("Failed to select dropdown option: %s", e)
            self.take_screenshot(label)
            self._reraise(e, dropdown, timeout)

    def run(self, label: str, operation: Callable[..., Any], *args, **kwargs) -> ActionOutcome:
        """Runs one operation and classifies the result instead of raising."""
        try:
            operation(*args, **kwargs)
        except Exception as e:
            if is_closed_error(e):
                kind = "session_closed"
            elif isinstance(e, (ElementNotFound, PlaywrightTimeoutError)):
                kind = "not_visible"
            elif isinstance(e, (HarnessError, PlaywrightError)):
                kind = "error"
            else:
                raise
            return ActionOutcome(action=label, ok=False, kind=kind, cause=str(e),
                                 artifact=self.take_screenshot(f"{label}-error") or None)
        return ActionOutcome(action=label, ok=True)
