"""Tests for the pending login store: single use, lazy expiry, capacity sweep."""
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from social_login.errors import DuplicateKey, EntryExpired, EntryNotFound
from social_login.flow_store import ExpiringStateStore

TTL = timedelta(minutes=15)


def test_take_returns_nonce_once(state_store):
    state_store.put("state-1", "nonce-1", TTL)
    assert state_store.take_if_valid("state-1") == "nonce-1"
    with pytest.raises(EntryNotFound):
        state_store.take_if_valid("state-1")


def test_unknown_state_not_found(state_store):
    with pytest.raises(EntryNotFound):
        state_store.take_if_valid("never-issued")


def test_valid_just_before_expiry(state_store, clock):
    state_store.put("s", "n", TTL)
    clock.advance(minutes=14, seconds=59)
    assert state_store.take_if_valid("s") == "n"


def test_expired_at_ttl_and_removed(state_store, clock):
    state_store.put("s", "n", TTL)
    clock.advance(minutes=15)
    with pytest.raises(EntryExpired):
        state_store.take_if_valid("s")
    assert "s" not in state_store
    with pytest.raises(EntryNotFound):
        state_store.take_if_valid("s")


def test_duplicate_state_rejected(state_store):
    state_store.put("s", "n1", TTL)
    with pytest.raises(DuplicateKey):
        state_store.put("s", "n2", TTL)
    assert state_store.take_if_valid("s") == "n1"


def test_purge_expired_keeps_live_entries(state_store, clock):
    state_store.put("old", "n", TTL)
    clock.advance(minutes=10)
    state_store.put("new", "n", TTL)
    clock.advance(minutes=6)
    assert state_store.purge_expired() == 1
    assert "old" not in state_store
    assert "new" in state_store


def test_put_at_capacity_sweeps_expired(clock):
    store = ExpiringStateStore(clock=clock, max_entries=2)
    store.put("a", "n", TTL)
    store.put("b", "n", TTL)
    clock.advance(minutes=16)
    store.put("c", "n", TTL)
    assert len(store) == 1
    assert store.take_if_valid("c") == "n"


def test_concurrent_take_single_winner(state_store):
    state_store.put("contended", "n", TTL)
    barrier = threading.Barrier(8)

    def take():
        barrier.wait()
        try:
            return state_store.take_if_valid("contended")
        except EntryNotFound:
            return None

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: take(), range(8)))
    assert results.count("n") == 1
    assert results.count(None) == 7
