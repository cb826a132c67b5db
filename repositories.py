from abc import ABC, abstractmethod
from typing import Dict
import threading
from collections import defaultdict

from account import Account


class AccountRepository(ABC):
    @abstractmethod
    def get_or_create(self, client_id: int) -> Account:
        """Get the account for a client, creating an empty one on first reference."""
        pass

    @abstractmethod
    def get_accounts(self) -> Dict[int, Account]:
        """Get the mapping client_id -> Account. Iteration order is not meaningful."""
        pass

    @abstractmethod
    def get_accounts_count(self) -> int:
        """Get total number of accounts."""
        pass


class InMemoryAccountRepository(AccountRepository):
    def __init__(self):
        self.accounts: Dict[int, Account] = {}
        self.locks: Dict[int, threading.Lock] = defaultdict(threading.Lock)
        self._registry_lock = threading.Lock()

    def get_or_create(self, client_id: int) -> Account:
        account = self.accounts.get(client_id)
        if account is not None:
            return account
        with self._registry_lock:
            if client_id not in self.accounts:
                self.accounts[client_id] = Account(client_id)
            return self.accounts[client_id]

    def get_accounts(self) -> Dict[int, Account]:
        return dict(self.accounts)

    def get_accounts_count(self) -> int:
        return len(self.accounts)

    def get_lock(self, client_id: int) -> threading.Lock:
        """Get lock for specific account."""
        with self._registry_lock:
            return self.locks[client_id]


# Default instance for callers that do not bring their own repository
_account_repo = InMemoryAccountRepository()


def get_account_repository() -> AccountRepository:
    return _account_repo


# For tests
def reset_repositories():
    """Reset the default repository to an empty state (for testing only)."""
    global _account_repo
    _account_repo = InMemoryAccountRepository()
