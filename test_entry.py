import pytest
from playwright.sync_api import Error as PlaywrightError

from conftest import ORIGIN
from popup_harness.actions.web_actions import WebActions
from popup_harness.components.locators import PopupContext
from popup_harness.config import Timeouts
from popup_harness.errors import ElementNotVisible, SessionClosed
from popup_harness.pages.entry import HEADER_BANNER, open_login_popup


def test_opens_top_page_popup(page, actions):
    trigger = page.add(page.get_by_role("img", name="ログイン"))

    context = open_login_popup(page, "top-page", ORIGIN + "/", actions)

    assert context == PopupContext.TOP_PAGE
    assert page.gotos == [ORIGIN + "/"]
    assert page.load_states == ["networkidle"]
    assert trigger.clicks == 1


def test_diagnosis_pages_close_header_banner_first(page, actions):
    banner = page.add(page.locator(HEADER_BANNER))
    trigger = page.add(page.get_by_role("button", name="ログイン"))

    open_login_popup(page, PopupContext.FASHION_TYPE_DIAGNOSIS_GUIDE, ORIGIN, actions)

    assert page.gotos == [ORIGIN + "/fashion-type-diagnosis/guide/"]
    assert banner.clicks == 1
    assert trigger.clicks == 1


def test_missing_banner_is_not_an_error(page, actions, caplog):
    trigger = page.add(page.get_by_text("ログイン"))

    with caplog.at_level("INFO", logger="popup_harness.pages"):
        open_login_popup(page, PopupContext.FASHION_TYPE_DIAGNOSIS, ORIGIN, actions)

    assert trigger.clicks == 1
    assert "Header banner not visible" in caplog.text


def test_missing_trigger_raises(page, actions):
    with pytest.raises(ElementNotVisible):
        open_login_popup(page, PopupContext.TOP_PAGE, ORIGIN, actions)


def test_closed_page_fails_fast(page, actions):
    page.close()

    with pytest.raises(SessionClosed):
        open_login_popup(page, PopupContext.TOP_PAGE, ORIGIN, actions)
    assert page.gotos == []


def test_navigation_uses_configured_timeout(page, tmp_path):
    actions = WebActions(page, screenshot_dir=str(tmp_path), timeouts=Timeouts(navigation=12000))
    page.add(page.get_by_role("img", name="ログイン"))

    open_login_popup(page, PopupContext.TOP_PAGE, ORIGIN, actions)

    assert page.goto_timeouts == [12000]


def test_session_lost_during_navigation_raises_session_closed(page, actions):
    def browser_went_away():
        raise PlaywrightError("Page.goto: Target page, context or browser has been closed")

    page.check_open = browser_went_away

    with pytest.raises(SessionClosed):
        open_login_popup(page, PopupContext.TOP_PAGE, ORIGIN, actions)
