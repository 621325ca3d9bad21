"""Tests for the in-memory refresh token store."""

import threading

import pytest

from tokenkeeper.services.refresh_tokens import (
    InMemoryRefreshTokenStore,
    RefreshTokenInvalidError,
)


class TestIssue:
    def test_token_is_256_bit_hex(self, refresh_store):
        token = refresh_store.issue("u1")

        assert len(token) == 64
        int(token, 16)  # hex

    def test_tokens_are_unique(self, refresh_store):
        tokens = {refresh_store.issue("u1") for _ in range(100)}
        assert len(tokens) == 100
        assert len(refresh_store) == 100


class TestConsume:
    def test_returns_user_id(self, refresh_store):
        token = refresh_store.issue("u1")
        assert refresh_store.consume(token) == "u1"

    def test_second_consume_fails(self, refresh_store):
        """A refresh token can be used at most once."""
        token = refresh_store.issue("u1")
        refresh_store.consume(token)

        with pytest.raises(RefreshTokenInvalidError):
            refresh_store.consume(token)

    def test_unknown_token_fails(self, refresh_store):
        with pytest.raises(RefreshTokenInvalidError):
            refresh_store.consume("does-not-exist")

    def test_expired_token_fails_and_is_removed(self, refresh_store, clock):
        token = refresh_store.issue("u1")
        clock.advance(days=8)

        with pytest.raises(RefreshTokenInvalidError):
            refresh_store.consume(token)
        assert len(refresh_store) == 0

    def test_token_valid_until_expiry(self, refresh_store, clock):
        token = refresh_store.issue("u1")
        clock.advance(days=6, hours=23)

        assert refresh_store.consume(token) == "u1"

    def test_concurrent_consume_succeeds_once(self):
        store = InMemoryRefreshTokenStore(3600)
        token = store.issue("u1")
        results: list[str] = []
        failures: list[Exception] = []
        barrier = threading.Barrier(10)

        def consume():
            barrier.wait()
            try:
                results.append(store.consume(token))
            except RefreshTokenInvalidError as e:
                failures.append(e)

        threads = [threading.Thread(target=consume) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results == ["u1"]
        assert len(failures) == 9


class TestRevokeAndSweep:
    def test_revoke_all_for_user_only_touches_that_user(self, refresh_store):
        a1 = refresh_store.issue("alice")
        refresh_store.issue("alice")
        b1 = refresh_store.issue("bob")

        assert refresh_store.revoke_all_for_user("alice") == 2

        with pytest.raises(RefreshTokenInvalidError):
            refresh_store.consume(a1)
        assert refresh_store.consume(b1) == "bob"

    def test_revoke_all_for_unknown_user(self, refresh_store):
        assert refresh_store.revoke_all_for_user("nobody") == 0

    def test_sweep_expired_removes_only_expired(self, refresh_store, clock):
        refresh_store.issue("u1")
        clock.advance(days=3)
        fresh = refresh_store.issue("u2")
        clock.advance(days=5)

        assert refresh_store.sweep_expired() == 1
        assert refresh_store.consume(fresh) == "u2"

    def test_sweep_is_idempotent(self, refresh_store, clock):
        refresh_store.issue("u1")
        clock.advance(days=8)

        assert refresh_store.sweep_expired() == 1
        assert refresh_store.sweep_expired() == 0
