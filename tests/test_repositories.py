import threading

from repositories import InMemoryAccountRepository, get_account_repository, reset_repositories


class TestInMemoryAccountRepository:
    """Test account storage and per-client locking."""

    def test_get_or_create_returns_same_account(self):
        """Test that an account is created once per client."""
        repo = InMemoryAccountRepository()

        first = repo.get_or_create(1)
        assert repo.get_or_create(1) is first
        assert repo.get_accounts_count() == 1

    def test_get_accounts_is_a_copy(self):
        """Test that the returned mapping does not alias repository state."""
        repo = InMemoryAccountRepository()
        repo.get_or_create(1)

        accounts = repo.get_accounts()
        accounts.clear()

        assert repo.get_accounts_count() == 1

    def test_one_lock_per_client(self):
        """Test that each client gets its own lock."""
        repo = InMemoryAccountRepository()

        assert repo.get_lock(1) is repo.get_lock(1)
        assert repo.get_lock(1) is not repo.get_lock(2)

    def test_concurrent_creation_yields_single_account(self):
        """Test that concurrent first references create a single account."""
        repo = InMemoryAccountRepository()
        created = []

        def worker():
            created.append(repo.get_or_create(7))

        threads = [threading.Thread(target=worker) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert all(account is created[0] for account in created)
        assert repo.get_accounts_count() == 1


def test_reset_replaces_default_repository():
    """Test that resetting gives a fresh default repository."""
    repo = get_account_repository()
    repo.get_or_create(1)

    reset_repositories()

    assert get_account_repository() is not repo
    assert get_account_repository().get_accounts_count() == 0
