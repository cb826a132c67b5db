import pytest
from decimal import Decimal
from hypothesis import HealthCheck, settings

from account import Account
from models import Transaction, TransactionType
from repositories import reset_repositories, get_account_repository
from services import LedgerEngine

# reset_state is autouse; property tests build their own repositories
settings.register_profile("ledger", suppress_health_check=[HealthCheck.function_scoped_fixture])
settings.load_profile("ledger")


@pytest.fixture(autouse=True)
def reset_state():
    """Reset repositories before each test."""
    reset_repositories()


@pytest.fixture
def account():
    return Account(client_id=1)


@pytest.fixture
def engine():
    return LedgerEngine(get_account_repository())


def make_tx(kind, tx, amount=None, client=1):
    """Build a transaction the way a decoded CSV row would look."""
    return Transaction(
        type=TransactionType(kind),
        client=client,
        tx=tx,
        amount=Decimal(str(amount)) if amount is not None else None,
    )
