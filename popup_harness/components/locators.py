from dataclasses import dataclass, fields
from enum import Enum
from typing import Callable, Dict, List

from playwright.sync_api import Locator, Page

INVALID_EMAIL_MESSAGE = "不正なメールアドレスです。"
LOGIN_FAILED_MESSAGE = "Eメールアドレスが存在しないか、パスワードが誤っているためログインできません。"

TROUBLE_NOTE_TITLE = "ログインに関しての注意事項"
FORGOT_PASSWORD_TEXT = "パスワードをお忘れの方はこちら"
REGISTER_TEXT = "初めてのご利用ですか？無料会員登録はこちら"
LOGIN_WITH_EMAIL_TEXT = "メールでログイン"


class PopupContext(str, Enum):
    """Hosting page the login popup is opened from."""
    TOP_PAGE = "top-page"
    FASHION_TYPE_DIAGNOSIS = "fashion-type-diagnosis"
    FASHION_TYPE_DIAGNOSIS_GUIDE = "fashion-type-diagnosis-guide"


DEFAULT_CONTEXT = PopupContext.TOP_PAGE


@dataclass(frozen=True)
class PopupLocators:
    # Popup UI
    title: Locator
    close_button: Locator
    trouble_dialog: Locator
    close_trouble_button: Locator

    # Form
    email_input: Locator
    password_input: Locator
    submit_button: Locator

    # Links
    trouble_link: Locator
    forgot_password_link: Locator
    register_link: Locator
    login_with_email_button: Locator

    # Errors
    error_message: Locator
    login_fail_message: Locator

    @classmethod
    def names(cls) -> List[str]:
        return [f.name for f in fields(cls)]


def top_page_locators(page: Page) -> PopupLocators:
    return PopupLocators(
        title=page.locator("#loginModal").get_by_text("ログイン", exact=True),
        close_button=page.locator("#closeLoginModal"),
        trouble_dialog=page.get_by_text(TROUBLE_NOTE_TITLE),
        close_trouble_button=page.locator("#closeLoginNotesModal"),
        email_input=page.get_by_role("textbox", name="メールアドレス"),
        password_input=page.get_by_role("textbox", name="パスワード"),
        submit_button=page.get_by_role("button", name=LOGIN_WITH_EMAIL_TEXT),
        trouble_link=page.locator("span").filter(has_text="こちら"),
        forgot_password_link=page.get_by_role("listitem").filter(has_text=FORGOT_PASSWORD_TEXT).get_by_role("link"),
        register_link=page.get_by_role("listitem").filter(has_text=REGISTER_TEXT).get_by_role("link"),
        login_with_email_button=page.get_by_role("button", name=LOGIN_WITH_EMAIL_TEXT),
        error_message=page.get_by_text(INVALID_EMAIL_MESSAGE),
        login_fail_message=page.get_by_text(LOGIN_FAILED_MESSAGE),
    )


def fashion_type_diagnosis_locators(page: Page) -> PopupLocators:
    # The diagnosis page renders the popup as an aria-labelled modal but keeps the
    # top page's form markup.
    modal = page.get_by_label("Modal")
    return PopupLocators(
        title=modal.get_by_text("ログイン", exact=True),
        close_button=modal.get_by_text("×"),
        trouble_dialog=page.get_by_text(TROUBLE_NOTE_TITLE),
        close_trouble_button=page.get_by_text("×"),
        email_input=page.get_by_role("textbox", name="メールアドレス"),
        password_input=page.get_by_role("textbox", name="パスワード"),
        submit_button=page.get_by_role("button", name=LOGIN_WITH_EMAIL_TEXT),
        trouble_link=page.locator("span").filter(has_text="こちら"),
        forgot_password_link=page.locator("li").filter(has_text=FORGOT_PASSWORD_TEXT).locator("a"),
        register_link=page.locator("li").filter(has_text=REGISTER_TEXT).locator("a"),
        login_with_email_button=page.get_by_role("button", name=LOGIN_WITH_EMAIL_TEXT),
        error_message=page.get_by_text(INVALID_EMAIL_MESSAGE),
        login_fail_message=page.get_by_text(LOGIN_FAILED_MESSAGE),
    )


def fashion_type_diagnosis_guide_locators(page: Page) -> PopupLocators:
    return PopupLocators(
        title=page.get_by_label("Modal").get_by_text("ログイン", exact=True),
        close_button=page.get_by_text("×"),
        trouble_dialog=page.get_by_text(TROUBLE_NOTE_TITLE),
        close_trouble_button=page.get_by_text("×"),
        email_input=page.get_by_placeholder("メールアドレス"),
        password_input=page.get_by_placeholder("パスワード"),
        submit_button=page.get_by_role("button", name=LOGIN_WITH_EMAIL_TEXT),
        trouble_link=page.locator("span").filter(has_text="こちら"),
        forgot_password_link=page.locator("li").filter(has_text=FORGOT_PASSWORD_TEXT).locator("a"),
        register_link=page.locator("li").filter(has_text=REGISTER_TEXT).locator("a"),
        login_with_email_button=page.get_by_text(LOGIN_WITH_EMAIL_TEXT),
        error_message=page.get_by_text(INVALID_EMAIL_MESSAGE),
        login_fail_message=page.get_by_text(LOGIN_FAILED_MESSAGE),
    )


LOCATOR_BUILDERS: Dict[PopupContext, Callable[[Page], PopupLocators]] = {
    PopupContext.TOP_PAGE: top_page_locators,
    PopupContext.FASHION_TYPE_DIAGNOSIS: fashion_type_diagnosis_locators,
    PopupContext.FASHION_TYPE_DIAGNOSIS_GUIDE: fashion_type_diagnosis_guide_locators,
}
