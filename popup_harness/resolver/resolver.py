import logging
from typing import List, Optional, Tuple, Union
from urllib.parse import urlsplit

from playwright.sync_api import Page

from popup_harness.actions.web_actions import WebActions
from popup_harness.components.locators import DEFAULT_CONTEXT, LOCATOR_BUILDERS, PopupContext
from popup_harness.components.login_popup import LoginPopupComponent

LOGGER = logging.getLogger("popup_harness.resolver")

# Path fragment -> context. The most specific (longest) fragment wins.
PATH_ROUTES: List[Tuple[str, PopupContext]] = [
    ("/fashion-type-diagnosis/guide", PopupContext.FASHION_TYPE_DIAGNOSIS_GUIDE),
    ("/fashion-type-diagnosis", PopupContext.FASHION_TYPE_DIAGNOSIS),
]


def coerce_context(context: Union[PopupContext, str, None]) -> PopupContext:
    """Unknown or missing tags fall back to the default context with a warning."""
    if isinstance(context, PopupContext):
        return context
    try:
        return PopupContext(context)
    except ValueError:
        LOGGER.warning("Unknown context '%s', defaulting to %s implementation", context, DEFAULT_CONTEXT.value)
        return DEFAULT_CONTEXT


def context_for_path(path: str) -> PopupContext:
    for fragment, context in sorted(PATH_ROUTES, key=lambda route: len(route[0]), reverse=True):
        if fragment in path:
            return context
    return DEFAULT_CONTEXT


class PopupResolver:
    """Builds the login popup component for a hosting context."""

    @staticmethod
    def create(page: Page, context: Union[PopupContext, str, None], actions: Optional[WebActions] = None) -> LoginPopupComponent:
        resolved = coerce_context(context)
        locators = LOCATOR_BUILDERS[resolved](page)
        LOGGER.debug("Resolved login popup for context '%s'", resolved.value)
        return LoginPopupComponent(page, resolved, locators, actions or WebActions(page))

    @staticmethod
    def create_from_current_location(page: Page, actions: Optional[WebActions] = None) -> LoginPopupComponent:
        path = urlsplit(page.url).path or "/"
        context = context_for_path(path)
        LOGGER.info("Detected context '%s' from path %s", context.value, path)
        return PopupResolver.create(page, context, actions)
