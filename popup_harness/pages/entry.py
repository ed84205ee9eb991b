import logging
from typing import Callable, Dict, Optional, Union

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator, Page

from popup_harness.actions.web_actions import WebActions, is_closed_error
from popup_harness.components.locators import PopupContext
from popup_harness.errors import SessionClosed
from popup_harness.resolver.resolver import coerce_context

LOGGER = logging.getLogger("popup_harness.pages")

# Hosting page path and the control that opens the login popup on it.
ENTRY_PATHS: Dict[PopupContext, str] = {
    PopupContext.TOP_PAGE: "/",
    PopupContext.FASHION_TYPE_DIAGNOSIS: "/fashion-type-diagnosis/",
    PopupContext.FASHION_TYPE_DIAGNOSIS_GUIDE: "/fashion-type-diagnosis/guide/",
}

LOGIN_TRIGGERS: Dict[PopupContext, Callable[[Page], Locator]] = {
    PopupContext.TOP_PAGE: lambda page: page.get_by_role("img", name="ログイン"),
    PopupContext.FASHION_TYPE_DIAGNOSIS: lambda page: page.get_by_text("ログイン"),
    PopupContext.FASHION_TYPE_DIAGNOSIS_GUIDE: lambda page: page.get_by_role("button", name="ログイン"),
}

HEADER_BANNER = ".stgHeader"


def close_header_banner(page: Page, actions: WebActions, timeout: float = 5000):
    """The staging banner sometimes covers the login trigger; it is fine if it never shows."""
    banner = page.locator(HEADER_BANNER)
    if actions.is_visible(banner, timeout):
        actions.safe_click(banner)
    else:
        LOGGER.info("Header banner not visible or already closed")


def open_login_popup(page: Page, context: Union[PopupContext, str], base_url: str,
                     actions: Optional[WebActions] = None) -> PopupContext:
    """Navigates to the hosting page for `context` and opens its login popup."""
    if page.is_closed():
        raise SessionClosed("Cannot open login popup: Target page has been closed")

    context = coerce_context(context)
    actions = actions or WebActions(page)
    url = base_url.rstrip("/") + ENTRY_PATHS[context]

    LOGGER.info("Opening login popup from %s (%s)", context.value, url)
    try:
        page.goto(url, timeout=actions.timeouts.navigation)
    except PlaywrightError as e:
        LOGGER.error("Failed to open %s: %s", url, e)
        if is_closed_error(e):
            raise SessionClosed(str(e)) from e
        raise
    actions.wait_for_navigation()

    if context != PopupContext.TOP_PAGE:
        close_header_banner(page, actions)
    actions.safe_click(LOGIN_TRIGGERS[context](page).first)
    return context
