import re

import pytest
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from popup_harness.actions.web_actions import WebActions
from popup_harness.components.locators import (
    INVALID_EMAIL_MESSAGE,
    LOCATOR_BUILDERS,
    LOGIN_FAILED_MESSAGE,
    PopupContext,
    PopupLocators,
)

ORIGIN = "https://www.example.test"
CLOSED_MESSAGE = "Target page, context or browser has been closed"
EMAIL_PATTERN = re.compile(r"^[^\s@<>]+@[^\s@.]+(\.[^\s@.]+)+$")

ACCOUNTS = {
    "monthly@example.com": ("aircloset", "/home"),
    "free@example.com": ("aircloset", "/top"),
}

POPUP_ROLES = {
    "title", "close_button", "email_input", "password_input", "submit_button",
    "trouble_link", "forgot_password_link", "register_link", "login_with_email_button",
}


class FakeElement:
    """A standalone element registered on a FakePage by locator key."""

    def __init__(self, visible=True, text="", disabled=False, count=None, fail_with=None, wait_error=None):
        self.visible = visible
        self.wait_error = wait_error
        self.text = text
        self.disabled = disabled
        self._count = count
        self.fail_with = fail_with
        self.clicks = 0
        self.value = ""
        self.selected = None
        self.on_click = None

    def is_visible_now(self):
        return self.visible

    def click(self):
        if self.fail_with is not None:
            raise self.fail_with
        self.clicks += 1
        if self.on_click is not None:
            self.on_click()

    def fill(self, value):
        self.value = value

    def clear(self):
        self.value = ""

    def text_content(self):
        return self.text

    def is_disabled(self):
        return self.disabled

    def select_option(self, value=None, index=None):
        self.selected = value if index is None else index

    def count(self):
        if self._count is not None:
            return self._count
        return 1 if self.visible else 0


MISSING = FakeElement(visible=False)


class AppElement:
    """An element of the simulated login popup, identified by its role names."""

    def __init__(self, app, roles):
        self.app = app
        self.roles = set(roles)

    def is_visible_now(self):
        return self.app.is_visible(self.roles)

    def click(self):
        self.app.click(self.roles)

    def fill(self, value):
        self.app.fill(self.roles, value)

    def clear(self):
        self.app.fill(self.roles, "")

    def text_content(self):
        return self.app.text(self.roles)

    def is_disabled(self):
        return "submit_button" in self.roles and not (self.app.email and self.app.password)

    def select_option(self, value=None, index=None):
        raise PlaywrightError("Element is not a <select> element")

    def count(self):
        return 1 if self.is_visible_now() else 0


class FakeLocator:
    def __init__(self, page, key):
        self.page = page
        self.key = key

    def __repr__(self):
        return f"<FakeLocator {self.key}>"

    def _chain(self, part):
        return FakeLocator(self.page, f"{self.key} >> {part}")

    def locator(self, selector):
        return self._chain(f"css={selector}")

    def get_by_role(self, role, name=None, exact=None):
        return self._chain(f"role={role}[{name}]")

    def get_by_text(self, text, exact=None):
        return self._chain(f"text={text}")

    def get_by_placeholder(self, text, exact=None):
        return self._chain(f"placeholder={text}")

    def get_by_label(self, text, exact=None):
        return self._chain(f"label={text}")

    def filter(self, has_text=None):
        if isinstance(has_text, re.Pattern):
            return self._chain(f"has-text=/{has_text.pattern}/")
        return self._chain(f"has-text={has_text}")

    @property
    def first(self):
        return self

    def nth(self, index):
        return self._chain(f"nth={index}")

    def _target(self):
        self.page.check_open()
        return self.page.resolve(self.key)

    def wait_for(self, state="visible", timeout=None):
        target = self._target()
        if getattr(target, "wait_error", None) is not None:
            raise target.wait_error
        if target.is_visible_now() != (state == "visible"):
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.\nwaiting for {self.key} to be {state}")

    def click(self, **options):
        self._target().click()

    def fill(self, value):
        self._target().fill(value)

    def clear(self):
        self._target().clear()

    def text_content(self):
        return self._target().text_content()

    def is_disabled(self):
        return self._target().is_disabled()

    def select_option(self, value=None, index=None):
        self._target().select_option(value=value, index=index)

    def count(self):
        return self._target().count()


class FakePage:
    """Just enough of playwright.sync_api.Page for the harness."""

    def __init__(self, url=ORIGIN + "/"):
        self.url = url
        self.closed = False
        self.elements = {}
        self.app = None
        self.waits = []
        self.load_states = []
        self.gotos = []
        self.goto_timeouts = []
        self.options = {}
        self.screenshots = []
        self.screenshot_error = None
        self._root = FakeLocator(self, "page")

    def check_open(self):
        if self.closed:
            raise PlaywrightError(f"Locator.wait_for: {CLOSED_MESSAGE}")

    def resolve(self, key):
        if key in self.elements:
            return self.elements[key]
        base, sep, pattern = key.rpartition(" >> has-text=/")
        if sep and base in self.options:
            # Text filter by regex, as Playwright applies it: first option whose text matches.
            regex = re.compile(pattern[:-1])
            for label, element in self.options[base].items():
                if regex.search(label):
                    return element
            return MISSING
        if self.app is not None and key in self.app.roles:
            return AppElement(self.app, self.app.roles[key])
        return MISSING

    def add(self, locator, **kwargs):
        element = FakeElement(**kwargs)
        self.elements[locator.key] = element
        return element

    def add_options(self, locator, labels):
        """Registers a list of options under `locator`, in document order."""
        options = {label: FakeElement(text=label) for label in labels}
        self.options[locator.key] = options
        self.elements[locator.key] = FakeElement(count=len(labels))
        for index, label in enumerate(labels):
            self.elements[locator.nth(index).key] = options[label]
        return options

    def locator(self, selector):
        return self._root.locator(selector)

    def get_by_role(self, role, name=None, exact=None):
        return self._root.get_by_role(role, name=name)

    def get_by_text(self, text, exact=None):
        return self._root.get_by_text(text)

    def get_by_placeholder(self, text, exact=None):
        return self._root.get_by_placeholder(text)

    def get_by_label(self, text, exact=None):
        return self._root.get_by_label(text)

    def is_closed(self):
        return self.closed

    def close(self):
        self.closed = True

    def wait_for_timeout(self, ms):
        self.check_open()
        self.waits.append(ms)

    def wait_for_load_state(self, state=None, timeout=None):
        self.check_open()
        self.load_states.append(state)

    def goto(self, url, timeout=None):
        self.check_open()
        self.gotos.append(url)
        self.goto_timeouts.append(timeout)
        self.url = url

    def screenshot(self, path=None, full_page=False):
        self.check_open()
        if self.screenshot_error is not None:
            raise self.screenshot_error
        with open(path, "wb") as f:
            f.write(b"\x89PNG")
        self.screenshots.append(path)


class FakeLoginApp:
    """
    Simulates the login popup behind the locators of one or more contexts:
    email format validation, submit gating, the trouble note and login.
    """

    def __init__(self, page, context=PopupContext.TOP_PAGE, accounts=None):
        self.page = page
        self.accounts = dict(ACCOUNTS if accounts is None else accounts)
        self.roles = {}
        self.open = True
        self.trouble_open = False
        self.email = ""
        self.password = ""
        self.login_failed = False
        page.app = self
        self.bind(context)

    def bind(self, context):
        locators = LOCATOR_BUILDERS[context](self.page)
        for name in PopupLocators.names():
            roles = self.roles.setdefault(getattr(locators, name).key, [])
            if name not in roles:
                roles.append(name)
        return self

    def navigate(self, path):
        self.page.url = ORIGIN + path
        self.open = False
        self.trouble_open = False

    def is_visible(self, roles):
        if roles & POPUP_ROLES and self.open:
            return True
        if roles & {"trouble_dialog", "close_trouble_button"} and self.trouble_open:
            return True
        if "error_message" in roles:
            return self.open and bool(self.email) and not EMAIL_PATTERN.match(self.email)
        if "login_fail_message" in roles:
            return self.open and self.login_failed
        return False

    def click(self, roles):
        if roles & {"close_button", "close_trouble_button"}:
            self.trouble_open = False
            self.open = False
        elif "trouble_link" in roles:
            self.trouble_open = True
        elif roles & {"submit_button", "login_with_email_button"}:
            account = self.accounts.get(self.email)
            if account is not None and account[0] == self.password:
                self.navigate(account[1])
            else:
                self.login_failed = True
        elif "forgot_password_link" in roles:
            self.navigate("/forget-password")
        elif "register_link" in roles:
            self.navigate("/fashion-type-diagnosis/")

    def fill(self, roles, value):
        if "email_input" in roles:
            self.email = value
        if "password_input" in roles:
            self.password = value
        self.login_failed = False

    def text(self, roles):
        if "error_message" in roles:
            return INVALID_EMAIL_MESSAGE
        if "login_fail_message" in roles:
            return LOGIN_FAILED_MESSAGE
        if "title" in roles:
            return "ログイン"
        return ""


@pytest.fixture
def page():
    return FakePage()


@pytest.fixture
def actions(page, tmp_path):
    return WebActions(page, screenshot_dir=str(tmp_path / "screenshots"))


@pytest.fixture
def app(page):
    return FakeLoginApp(page)
