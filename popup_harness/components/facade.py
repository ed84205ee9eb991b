from typing import Optional, Union

from playwright.sync_api import Page

from popup_harness.actions.web_actions import WebActions
from popup_harness.components.locators import DEFAULT_CONTEXT, PopupContext
from popup_harness.components.login_popup import LoginPopupComponent
from popup_harness.resolver.resolver import PopupResolver


class LoginPopup:
    """
    Context-agnostic handle on the login popup.

    Every call goes to the current component. Call `reresolve_from_current_location`
    after navigating if the hosting page may have changed.
    """

    def __init__(self, page: Page, context: Union[PopupContext, str, None] = None, actions: Optional[WebActions] = None):
        self.page = page
        self.actions = actions or WebActions(page)
        self._popup: LoginPopupComponent = PopupResolver.create(page, context or DEFAULT_CONTEXT, self.actions)

    @property
    def context(self) -> PopupContext:
        return self._popup.context

    @property
    def component(self) -> LoginPopupComponent:
        return self._popup

    def reresolve_from_current_location(self) -> LoginPopupComponent:
        # Build fully before swapping so callers never see a half-updated popup.
        popup = PopupResolver.create_from_current_location(self.page, self.actions)
        self._popup = popup
        return popup

    def is_displayed(self, timeout: Optional[float] = None) -> bool:
        return self._popup.is_displayed(timeout)

    def is_hidden(self, timeout: Optional[float] = None) -> bool:
        return self._popup.is_hidden(timeout)

    def enter_email(self, email: str):
        self._popup.enter_email(email)

    def enter_password(self, password: str):
        self._popup.enter_password(password)

    def clear_email(self):
        self._popup.clear_email()

    def clear_password(self):
        self._popup.clear_password()

    def clear_all_fields(self):
        self._popup.clear_all_fields()

    def click_login_trouble_link(self):
        self._popup.click_login_trouble_link()

    def is_login_trouble_popup_displayed(self, timeout: Optional[float] = None) -> bool:
        return self._popup.is_login_trouble_popup_displayed(timeout)

    def close_login_trouble_popup(self):
        self._popup.close_login_trouble_popup()

    def close_login_popup(self):
        self._popup.close_login_popup()

    def click_forgot_password_link(self):
        self._popup.click_forgot_password_link()

    def click_register_link(self):
        self._popup.click_register_link()

    def click_login_with_email(self):
        self._popup.click_login_with_email()

    def get_error_message(self, timeout: Optional[float] = None) -> str:
        return self._popup.get_error_message(timeout)

    def get_login_fail_message(self, timeout: Optional[float] = None) -> str:
        return self._popup.get_login_fail_message(timeout)

    def is_submit_button_disabled(self) -> bool:
        return self._popup.is_submit_button_disabled()

    def wait(self, ms: float):
        self._popup.wait(ms)

    def take_screenshot(self, name: str) -> str:
        return self._popup.take_screenshot(name)

    def current_url(self) -> str:
        return self._popup.current_url()

    def current_path(self) -> str:
        return self._popup.current_path()
