import logging
import os
from typing import Optional

from popup_harness.providers.base import AccountProvider

LOGGER = logging.getLogger("popup_harness.providers")


class EnvAccountProvider(AccountProvider):
    """Reads ACCOUNT_EMAIL_<STATUS> (e.g. ACCOUNT_EMAIL_MONTHLY) from the environment."""

    def __init__(self, prefix: str = "ACCOUNT_EMAIL_"):
        self.prefix = prefix

    def get_account_email(self, status: str) -> Optional[str]:
        key = f"{self.prefix}{status.upper()}"
        email = os.getenv(key)
        if not email:
            LOGGER.warning("%s is not set. Valid-login checks will be skipped.", key)
            return None
        return email
