import logging
from typing import Optional
from urllib.parse import urlsplit

from playwright.sync_api import Page

from popup_harness.actions.web_actions import WebActions
from popup_harness.components.locators import PopupContext, PopupLocators

LOGGER = logging.getLogger("popup_harness.components")


class LoginPopupComponent:
    """
    The login popup bound to one hosting context.

    Behavior is the same for every context; only the locators differ.
    Instances hold live locators for one page and are never reused across pages.
    """

    def __init__(self, page: Page, context: PopupContext, locators: PopupLocators, actions: Optional[WebActions] = None):
        self.page = page
        self._context = context
        self.locators = locators
        self.actions = actions or WebActions(page)

    @property
    def context(self) -> PopupContext:
        return self._context

    @property
    def timeouts(self):
        return self.actions.timeouts

    def is_displayed(self, timeout: Optional[float] = None) -> bool:
        return self.actions.is_visible(self.locators.title, timeout)

    def is_hidden(self, timeout: Optional[float] = None) -> bool:
        return self.actions.is_hidden(self.locators.title, timeout)

    def enter_email(self, email: str):
        self.actions.safe_fill(self.locators.email_input, email)

    def enter_password(self, password: str):
        self.actions.safe_fill(self.locators.password_input, password)

    def clear_email(self):
        self.actions.safe_clear(self.locators.email_input)

    def clear_password(self):
        self.actions.safe_clear(self.locators.password_input)

    def clear_all_fields(self):
        self.clear_email()
        self.clear_password()

    def click_login_trouble_link(self):
        self.actions.safe_click(self.locators.trouble_link)

    def is_login_trouble_popup_displayed(self, timeout: Optional[float] = None) -> bool:
        return self.actions.is_visible(self.locators.trouble_dialog, timeout)

    def close_login_trouble_popup(self):
        self.actions.safe_click(self.locators.close_trouble_button)
        self.actions.wait(self.timeouts.animation)

    def close_login_popup(self):
        # Already closed: nothing to click.
        if not self.actions.is_visible(self.locators.close_button, self.timeouts.close_probe):
            LOGGER.info("[%s] login popup already closed", self._context.value)
            return
        self.actions.safe_click(self.locators.close_button)
        self.actions.wait(self.timeouts.animation)

    def click_forgot_password_link(self):
        self.actions.safe_click(self.locators.forgot_password_link)

    def click_register_link(self):
        self.actions.safe_click(self.locators.register_link)

    def click_login_with_email(self):
        self.actions.safe_click(self.locators.login_with_email_button)
        self.actions.wait_for_navigation()

    def get_error_message(self, timeout: Optional[float] = None) -> str:
        return self.actions.get_text(self.locators.error_message, timeout)

    def get_login_fail_message(self, timeout: Optional[float] = None) -> str:
        return self.actions.get_text(self.locators.login_fail_message, timeout)

    def is_submit_button_disabled(self) -> bool:
        return self.actions.is_disabled(self.locators.submit_button)

    def wait(self, ms: float):
        self.actions.wait(ms)

    def take_screenshot(self, name: str) -> str:
        return self.actions.take_screenshot(name)

    def current_url(self) -> str:
        return self.page.url

    def current_path(self) -> str:
        return urlsplit(self.page.url).path or "/"

    def __repr__(self):
        return f"<LoginPopupComponent context={self._context.value}>"
