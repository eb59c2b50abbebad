from abc import ABC, abstractmethod
from typing import Dict, Iterator, Optional, Tuple

from accounts import Account, ClientId, Transaction


class AccountRepository(ABC):
    @abstractmethod
    def apply_transaction(self, client_id: ClientId, transaction: Transaction) -> Account:
        """Apply a transaction to the client's account, creating the account if needed."""
        pass

    @abstractmethod
    def get(self, client_id: ClientId) -> Optional[Account]:
        """Get an account. Returns None if the client was never seen."""
        pass

    @abstractmethod
    def iterate(self) -> Iterator[Tuple[ClientId, Account]]:
        """Iterate over all accounts in no particular order."""
        pass

    @abstractmethod
    def get_accounts_count(self) -> int:
        """Get total number of accounts."""
        pass

    def __iter__(self) -> Iterator[Tuple[ClientId, Account]]:
        return self.iterate()


class InMemoryAccountRepository(AccountRepository):
    def __init__(self):
        self.accounts: Dict[ClientId, Account] = {}

    def get_or_create(self, client_id: ClientId) -> Account:
        account = self.accounts.get(client_id)
        if account is None:
            account = self.accounts[client_id] = Account(client_id)
        return account

    def apply_transaction(self, client_id: ClientId, transaction: Transaction) -> Account:
        account = self.get_or_create(client_id)
        account.apply(transaction)
        return account

    def get(self, client_id: ClientId) -> Optional[Account]:
        return self.accounts.get(client_id)

    def iterate(self) -> Iterator[Tuple[ClientId, Account]]:
        for client_id, account in self.accounts.items():
            yield client_id, account

    def get_accounts_count(self) -> int:
        return len(self.accounts)
