import pytest

from accounts import Chargeback, ClientId, Deposit, Dispute, Tx, Withdrawal
from amount import Amount
from errors import InsufficientFundsError

from conftest import amt


class TestAccountStore:
    """Lazy account creation and iteration."""

    def test_creates_account_on_first_transaction(self, store):
        assert store.get(ClientId(1)) is None
        store.apply_transaction(ClientId(1), Deposit(Tx(1), amt(1.0)))
        account = store.get(ClientId(1))
        assert account.owner == ClientId(1)
        assert account.available == amt(1.0)
        assert store.get_accounts_count() == 1

    def test_routes_by_client(self, store):
        store.apply_transaction(ClientId(1), Deposit(Tx(1), amt(1.0)))
        store.apply_transaction(ClientId(2), Deposit(Tx(2), amt(2.0)))
        store.apply_transaction(ClientId(1), Deposit(Tx(3), amt(4.0)))
        assert store.get(ClientId(1)).available == amt(5.0)
        assert store.get(ClientId(2)).available == amt(2.0)

    def test_dispute_only_sees_own_deposits(self, store):
        store.apply_transaction(ClientId(1), Deposit(Tx(1), amt(1.0)))
        store.apply_transaction(ClientId(2), Dispute(Tx(1)))
        assert store.get(ClientId(1)).held == Amount.zero()
        assert store.get(ClientId(2)).held == Amount.zero()

    def test_failed_transaction_still_creates_account(self, store):
        with pytest.raises(InsufficientFundsError):
            store.apply_transaction(ClientId(9), Withdrawal(Tx(1), amt(1.0)))
        assert store.get(ClientId(9)).available == Amount.zero()

    def test_errors_propagate_unchanged(self, store):
        store.apply_transaction(ClientId(1), Deposit(Tx(1), amt(1.0)))
        with pytest.raises(InsufficientFundsError):
            store.apply_transaction(ClientId(1), Withdrawal(Tx(2), amt(2.0)))
        assert store.get(ClientId(1)).available == amt(1.0)

    def test_iterate_yields_every_account(self, store):
        for client in (3, 1, 2):
            store.apply_transaction(ClientId(client), Deposit(Tx(client), amt(1.0)))
        seen = {client_id: account for client_id, account in store.iterate()}
        assert set(seen) == {ClientId(1), ClientId(2), ClientId(3)}
        assert all(account.owner == client_id for client_id, account in seen.items())

    def test_iteration_is_restartable(self, store):
        store.apply_transaction(ClientId(1), Deposit(Tx(1), amt(1.0)))
        assert len(list(store)) == 1
        store.apply_transaction(ClientId(2), Deposit(Tx(2), amt(1.0)))
        assert len(list(store)) == 2

    def test_iteration_reflects_current_state(self, store):
        store.apply_transaction(ClientId(1), Deposit(Tx(1), amt(1.0)))
        store.apply_transaction(ClientId(1), Withdrawal(Tx(2), amt(1.0)))
        [(_, account)] = list(store.iterate())
        assert account.available == Amount.zero()


class TestScenarios:
    """Whole runs against the store."""

    def test_dispute_then_chargeback(self, store):
        client = ClientId(1)
        store.apply_transaction(client, Deposit(Tx(1), amt(1.0)))
        store.apply_transaction(client, Deposit(Tx(2), amt(2.0)))
        store.apply_transaction(client, Dispute(Tx(1)))

        account = store.get(client)
        assert account.available == amt(2.0)
        assert account.held == amt(1.0)
        assert account.locked is False

        store.apply_transaction(client, Chargeback(Tx(1)))
        assert account.available == amt(2.0)
        assert account.held == Amount.zero()
        assert account.locked is True

    def test_second_withdrawal_rejected(self, store):
        client = ClientId(2)
        store.apply_transaction(client, Deposit(Tx(3), amt(5.0)))
        store.apply_transaction(client, Withdrawal(Tx(4), amt(3.0)))
        assert store.get(client).available == amt(2.0)

        with pytest.raises(InsufficientFundsError):
            store.apply_transaction(client, Withdrawal(Tx(5), amt(3.0)))
        assert store.get(client).available == amt(2.0)
