import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from contextlib import nullcontext
from typing import Dict, Iterable, List, Optional

import structlog

from account import Account
from models import Outcome, Transaction, TransactionType
from repositories import AccountRepository, InMemoryAccountRepository

# Configure structured logging
logger = structlog.get_logger()


class ProcessingStats:
    """Thread-safe per-outcome counters for executed transactions."""

    def __init__(self):
        self._lock = threading.Lock()
        self._counts: Counter = Counter()

    def record(self, outcome: Outcome) -> None:
        with self._lock:
            self._counts[outcome] += 1

    @property
    def processed(self) -> int:
        return sum(self._counts.values())

    @property
    def applied(self) -> int:
        return sum(n for outcome, n in self._counts.items() if outcome.is_applied)

    @property
    def rejected(self) -> int:
        return self.processed - self.applied

    def as_dict(self) -> Dict[str, int]:
        with self._lock:
            return {outcome.value: n for outcome, n in self._counts.items()}


class LedgerEngine:
    def __init__(self, account_repo: Optional[AccountRepository] = None):
        self.account_repo = account_repo if account_repo is not None else InMemoryAccountRepository()
        self.stats = ProcessingStats()

    def execute(self, transaction: Transaction) -> Outcome:
        """Apply one transaction to the owning account.

        The account is created on first reference. Rejected transactions
        leave the account untouched; the returned outcome says why, and
        callers are free to ignore it.
        """
        account = self.account_repo.get_or_create(transaction.client_id)

        if hasattr(self.account_repo, 'get_lock'):
            lock = self.account_repo.get_lock(transaction.client_id)
        else:
            lock = nullcontext()

        with lock:
            outcome = self._dispatch(account, transaction)

        self.stats.record(outcome)
        if outcome is Outcome.missing_amount:
            logger.warning(
                "Dropping transaction without amount",
                client_id=transaction.client_id,
                transaction_id=transaction.transaction_id,
                type=transaction.kind.value
            )
        elif outcome is not Outcome.applied:
            logger.debug(
                "Transaction not applied cleanly",
                client_id=transaction.client_id,
                transaction_id=transaction.transaction_id,
                type=transaction.kind.value,
                amount=str(transaction.amount) if transaction.amount is not None else None,
                outcome=outcome.value
            )
        return outcome

    def _dispatch(self, account: Account, transaction: Transaction) -> Outcome:
        kind = transaction.kind
        tx_id = transaction.transaction_id

        if kind in (TransactionType.deposit, TransactionType.withdrawal):
            if transaction.amount is None:
                return Outcome.missing_amount
            if kind == TransactionType.deposit:
                return account.deposit(tx_id, transaction.amount)
            return account.withdraw(tx_id, transaction.amount)

        if kind == TransactionType.dispute:
            return account.dispute(tx_id)
        if kind == TransactionType.resolve:
            return account.resolve(tx_id)
        return account.chargeback(tx_id)

    def replay(self, transactions: Iterable[Transaction], workers: int = 1) -> None:
        """Apply a sequence of transactions in order.

        With more than one worker, transactions are sharded by client id so
        every client's transactions are applied by a single worker in their
        original relative order.
        """
        if workers <= 1:
            for transaction in transactions:
                self.execute(transaction)
            return

        shards: List[List[Transaction]] = [[] for _ in range(workers)]
        for transaction in transactions:
            shards[transaction.client_id % workers].append(transaction)

        logger.debug(
            "Replaying in parallel",
            workers=workers,
            shard_sizes=[len(shard) for shard in shards]
        )

        with ThreadPoolExecutor(max_workers=workers) as executor:
            # list() re-raises the first worker exception, if any
            list(executor.map(self._replay_shard, shards))

    def _replay_shard(self, shard: List[Transaction]) -> None:
        for transaction in shard:
            self.execute(transaction)

    def accounts(self) -> Dict[int, Account]:
        return self.account_repo.get_accounts()


# Factory function for dependency injection
def get_ledger_engine(account_repo: Optional[AccountRepository] = None) -> LedgerEngine:
    return LedgerEngine(account_repo)
