# tests/unit/infra/test_revocation_store.py
from __future__ import annotations

import threading

import pytest

from authcore.services._shared.ports import InMemoryRevocationStore, token_fingerprint
from authcore.services._shared.ports.revocation_store import SWEEP_EVERY


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> InMemoryRevocationStore:
    return InMemoryRevocationStore(clock=clock)


def test_revoked_token_is_reported_until_expiry(store, clock):
    store.revoke("tok-a", 60)
    assert store.is_revoked("tok-a") is True
    assert store.is_revoked("tok-b") is False

    clock.advance(59)
    assert store.is_revoked("tok-a") is True


def test_expired_entry_is_not_revoked_and_is_evicted(store, clock):
    store.revoke("tok-a", 10)
    clock.advance(10)

    assert store.is_revoked("tok-a") is False
    # evicted on lookup, nothing left to purge
    assert store.purge_expired() == 0
    assert store.size() == 0


def test_revoke_is_idempotent_and_last_writer_wins(store, clock):
    store.revoke("tok-a", 10)
    store.revoke("tok-a", 100)
    assert store.size() == 1

    clock.advance(50)
    assert store.is_revoked("tok-a") is True


def test_non_positive_ttl_never_reports_revoked(store):
    store.revoke("tok-a", 0)
    assert store.is_revoked("tok-a") is False


def test_purge_expired_counts_removed(store, clock):
    store.revoke("short-1", 5)
    store.revoke("short-2", 5)
    store.revoke("long", 500)
    clock.advance(6)

    assert store.purge_expired() == 2
    assert store.size() == 1


def test_inserts_sweep_expired_entries(store, clock):
    for i in range(SWEEP_EVERY - 1):
        store.revoke(f"old-{i}", 1)
    clock.advance(2)

    store.revoke("fresh", 60)  # the SWEEP_EVERY-th insert

    assert len(store._entries) == 1
    assert token_fingerprint("fresh") in store._entries


def test_entries_are_keyed_by_digest_not_raw_token(store):
    store.revoke("very-secret-token", 60)
    assert "very-secret-token" not in store._entries
    assert token_fingerprint("very-secret-token") in store._entries
    assert len(token_fingerprint("x")) == 64


def test_clear_removes_everything(store):
    store.revoke("a", 60)
    store.revoke("b", 60)
    store.clear()
    assert store.size() == 0


def test_instances_do_not_share_state(clock):
    first = InMemoryRevocationStore(clock=clock)
    second = InMemoryRevocationStore(clock=clock)
    first.revoke("tok", 60)
    assert second.is_revoked("tok") is False


def test_concurrent_revoke_and_lookup():
    store = InMemoryRevocationStore()
    tokens = [f"tok-{i}" for i in range(400)]
    errors: list[BaseException] = []

    def writer(chunk):
        try:
            for token in chunk:
                store.revoke(token, 300)
                assert store.is_revoked(token)
        except BaseException as exc:  # pragma: no cover - surfaced below
            errors.append(exc)

    threads = [threading.Thread(target=writer, args=(tokens[i::8],)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert store.size() == len(tokens)
    assert all(store.is_revoked(t) for t in tokens)
