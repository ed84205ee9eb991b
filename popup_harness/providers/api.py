import json
import logging
import urllib.parse
import urllib.request
from typing import Optional
from urllib.error import HTTPError, URLError

from popup_harness.providers.base import AccountProvider

LOGGER = logging.getLogger("popup_harness.providers")


class APIAccountProvider(AccountProvider):
    """
    Looks accounts up from a JSON endpoint: GET {api_url}?status=MONTHLY
    answering either {"email": "..."} or a list of such objects.
    """

    def __init__(self, api_url: str, timeout: float = 10):
        self.api_url = api_url
        self.timeout = timeout

    def get_account_email(self, status: str) -> Optional[str]:
        url = f"{self.api_url}?{urllib.parse.urlencode({'status': status})}"
        try:
            LOGGER.info("Fetching %s account from %s", status, url)
            with urllib.request.urlopen(url, timeout=self.timeout) as response:
                if response.status != 200:
                    LOGGER.warning("Account lookup returned HTTP %s", response.status)
                    return None
                data = json.loads(response.read().decode("utf-8"))
        except (HTTPError, URLError, ValueError) as e:
            LOGGER.warning("Account lookup failed for %s: %s", status, e)
            return None

        if isinstance(data, list):
            data = data[0] if data else {}
        email = data.get("email") if isinstance(data, dict) else None
        if not email:
            LOGGER.warning("No %s account found. Valid-login checks will be skipped.", status)
        return email or None
