from abc import ABC, abstractmethod
from typing import Optional


class AccountProvider(ABC):
    @abstractmethod
    def get_account_email(self, status: str) -> Optional[str]:
        """
        Returns the email of a real, active account with the given membership
        status (e.g. 'MONTHLY', 'FREE'), or None if no such account is known.
        """
        pass
