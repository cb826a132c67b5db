from decimal import Decimal
from typing import Dict

from models import Outcome


class Account:
    """Balance state of a single client.

    Keeps the signed amount each deposit (+) or withdrawal (-) moved the
    available funds by, so that a later dispute can reverse it. This is
    transaction memory for disputes, not a history of everything applied:
    an entry leaves ``open_entries`` as soon as it is disputed and leaves
    ``disputed_entries`` once resolved or charged back, so each of
    dispute, resolve and chargeback fires at most once per transaction.
    """

    def __init__(self, client_id: int):
        self._client_id = client_id
        self._available = Decimal("0")
        self._held = Decimal("0")
        self._locked = False
        self.open_entries: Dict[int, Decimal] = {}
        self.disputed_entries: Dict[int, Decimal] = {}

    @property
    def client_id(self) -> int:
        return self._client_id

    @property
    def available(self) -> Decimal:
        return self._available

    @property
    def held(self) -> Decimal:
        return self._held

    @property
    def total(self) -> Decimal:
        """Total funds are available + held."""
        return self._available + self._held

    @property
    def locked(self) -> bool:
        return self._locked

    def deposit(self, transaction_id: int, amount: Decimal) -> Outcome:
        self._available += amount
        return self._remember(transaction_id, amount)

    def withdraw(self, transaction_id: int, amount: Decimal) -> Outcome:
        """Does nothing if there are not enough available funds."""
        if self._available < amount:
            return Outcome.insufficient_funds

        self._available -= amount
        # Disputing a withdrawal reverses it, so the recorded amount is the
        # negative change to available funds. Held may go negative then.
        return self._remember(transaction_id, -amount)

    def _remember(self, transaction_id: int, amount: Decimal) -> Outcome:
        # A reused id under dispute keeps its dispute; the new entry is not
        # remembered so an id never sits in both maps.
        if transaction_id in self.disputed_entries:
            return Outcome.duplicate_transaction

        duplicate = transaction_id in self.open_entries
        self.open_entries[transaction_id] = amount
        return Outcome.duplicate_transaction if duplicate else Outcome.applied

    def dispute(self, transaction_id: int) -> Outcome:
        amount = self.open_entries.pop(transaction_id, None)
        if amount is None:
            return Outcome.unknown_transaction

        self.disputed_entries[transaction_id] = amount
        self._available -= amount
        self._held += amount
        return Outcome.applied

    def resolve(self, transaction_id: int) -> Outcome:
        amount = self.disputed_entries.pop(transaction_id, None)
        if amount is None:
            return Outcome.not_disputed

        self._held -= amount
        self._available += amount
        return Outcome.applied

    def chargeback(self, transaction_id: int) -> Outcome:
        amount = self.disputed_entries.pop(transaction_id, None)
        if amount is None:
            return Outcome.not_disputed

        # available was already reduced when the dispute was opened
        self._held -= amount
        self._locked = True
        return Outcome.applied

    def __repr__(self) -> str:
        return (
            f"Account(client={self._client_id}, available={self._available}, "
            f"held={self._held}, locked={self._locked})"
        )
