import argparse
import logging
from typing import Callable, Dict, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from popup_harness.actions.web_actions import WebActions
from popup_harness.assertions.login_popup import LANDING_PATHS, LoginPopupAssertions
from popup_harness.components.facade import LoginPopup
from popup_harness.components.locators import DEFAULT_CONTEXT, PopupContext
from popup_harness.config import (
    ACCOUNT_API_URL,
    BASE_URL,
    HARNESS_CONFIG,
    HEADLESS,
    SCREENSHOT_DIR,
    check_base_url,
    load_timeouts,
)
from popup_harness.errors import HarnessError
from popup_harness.models.results import ScenarioResult
from popup_harness.pages.entry import ENTRY_PATHS, open_login_popup
from popup_harness.providers.api import APIAccountProvider
from popup_harness.providers.base import AccountProvider
from popup_harness.providers.env import EnvAccountProvider
from popup_harness.resolver.resolver import PATH_ROUTES

LOGGER = logging.getLogger("popup_harness")

SUITES: Dict[str, Callable[[LoginPopupAssertions], ScenarioResult]] = {
    "display": lambda checks: checks.verify_popup_is_displayed(),
    "basic": lambda checks: checks.run_basic_assertions(),
    "navigation": lambda checks: checks.run_navigation_assertions(),
    "comprehensive": lambda checks: checks.run_comprehensive_assertions(),
}


def account_provider(api_url: Optional[str]) -> AccountProvider:
    if api_url:
        return APIAccountProvider(api_url)
    return EnvAccountProvider()


def run_suite(args) -> int:
    base_url = (args.base_url or BASE_URL).rstrip("/")
    check_base_url(base_url)
    timeouts = load_timeouts(args.config)

    email = None
    if args.account_status:
        email = account_provider(args.account_api_url).get_account_email(args.account_status)

    results = []
    with sync_playwright() as p:
        browser = p.chromium.launch(headless=args.headless)
        context = browser.new_context(locale="ja-JP", ignore_https_errors=args.ignore_https_errors)
        page = context.new_page()
        try:
            actions = WebActions(page, screenshot_dir=args.screenshot_dir, timeouts=timeouts)
            popup_context = open_login_popup(page, args.context, base_url, actions)

            def reopen():
                open_login_popup(page, popup_context, base_url, actions)

            popup = LoginPopup(page, popup_context, actions)
            checks = LoginPopupAssertions(popup, timeouts=timeouts, reopen=reopen)

            results.append(SUITES[args.suite](checks))
            if email:
                reopen()
                results.append(checks.verify_login_with_valid_user(args.account_status, email))
            elif args.account_status:
                LOGGER.warning("Skipping valid-login check: no %s account available", args.account_status)
        except (HarnessError, PlaywrightError) as e:
            LOGGER.error("Run aborted: %s", e)
            return 2
        finally:
            browser.close()

    for result in results:
        print(result.summary())
    return 0 if all(result.passed for result in results) else 1


def list_contexts(args) -> int:
    routes = {context: fragment for fragment, context in PATH_ROUTES}
    for context in PopupContext:
        marker = " (default)" if context == DEFAULT_CONTEXT else ""
        detected = routes.get(context, "*")
        print(f"{context.value}{marker}\n  entry: {ENTRY_PATHS[context]}\n  detected on: {detected}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Login popup UI harness")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More log output")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parser_run = subparsers.add_parser("run", help="Open the login popup and run a scenario suite")
    parser_run.add_argument("--context", default=DEFAULT_CONTEXT.value,
                            help="Hosting page: " + ", ".join(c.value for c in PopupContext))
    parser_run.add_argument("--suite", choices=sorted(SUITES), default="basic", help="Scenario suite to run")
    parser_run.add_argument("--base-url", help="Application base URL (defaults to BASE_URL)")
    parser_run.add_argument("--account-status", type=str.upper,
                            help="Also log in with a real account of this membership status ("
                                 + ", ".join(sorted(LANDING_PATHS)) + "; others only log a warning)")
    parser_run.add_argument("--account-api-url", default=ACCOUNT_API_URL,
                            help="Account lookup endpoint (defaults to ACCOUNT_EMAIL_<STATUS> env vars)")
    parser_run.add_argument("--screenshot-dir", default=SCREENSHOT_DIR, help="Failure screenshot directory")
    parser_run.add_argument("--config", default=HARNESS_CONFIG, help="YAML file with timeout overrides")
    parser_run.add_argument("--headless", action=argparse.BooleanOptionalAction, default=HEADLESS,
                            help="Run Chromium headless")
    parser_run.add_argument("--ignore-https-errors", action="store_true", help="Ignore HTTPS certificate errors")

    subparsers.add_parser("contexts", help="List known hosting contexts")

    args = parser.parse_args(argv)

    log_level = logging.WARNING
    if args.verbose >= 2:
        log_level = logging.DEBUG
    elif args.verbose >= 1:
        log_level = logging.INFO
    logging.basicConfig(level=log_level, format="%(levelname)s %(name)s %(message)s")

    try:
        if args.command == "run":
            return run_suite(args)
        if args.command == "contexts":
            return list_contexts(args)
    except KeyboardInterrupt:
        LOGGER.warning("Interrupted by user.")
        return 130

    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
