"""Favour Store — cache, de-duplicated fetches, optimistic patches and removal.

Invariants:
    - Concurrent fetches for one id issue exactly one remote read
    - invalidate_with patches without a round trip and notifies subscribers
    - invalidate_with refuses to rewrite identity fields or clear recorded evidence
    - remove drops the entry and notifies with None
    - Failed fetches propagate to every waiter, leave the cache alone, and can be retried
    - One waiter's cancellation never cancels the shared request

Design Decisions:
    - The late-fetch-overwrites-patch test pins down the documented last-writer-wins
      behaviour so a future change to it is deliberate
"""

import asyncio

import pytest

from favours.core.domain_types import Phase
from favours.core.errors import InvalidFavourError, ResourceNotFoundError, TransportError
from favours.core.lifecycle import phase_of
from favours.services.favour_store import FavourStore

from tests.services.fakes import CLAIMED_PATH, FakeFavourApi, favour_record


async def test_fetch_loads_and_caches(store, api):
    favour = await store.fetch("f1", "token-u1")
    again = await store.fetch("f1", "token-u1")

    assert favour.id == "f1"
    assert again is favour
    assert api.calls.names() == ["get_favour"]
    assert store.get("f1") is favour


async def test_concurrent_fetches_share_one_request():
    api = FakeFavourApi([favour_record("f1")], delay=0.01)
    store = FavourStore(api)

    results = await asyncio.gather(*(store.fetch("f1", "t") for _ in range(3)))

    assert api.calls.names() == ["get_favour"]
    assert results[0] is results[1] is results[2]
    assert not store.is_loading("f1")


async def test_revalidate_reads_remote_again(store, api):
    await store.fetch("f1", "t")
    api.records["f1"]["evidence"] = CLAIMED_PATH

    refreshed = await store.revalidate("f1", "t")

    assert refreshed.evidence == CLAIMED_PATH
    assert store.get("f1").evidence == CLAIMED_PATH
    assert api.calls.names() == ["get_favour", "get_favour"]


async def test_invalidate_with_patches_without_round_trip(store, api):
    await store.fetch("f1", "t")
    seen = []
    store.subscribe("f1", lambda fid, favour: seen.append(favour))

    patched = store.invalidate_with("f1", {"evidence": CLAIMED_PATH})

    assert patched.evidence == CLAIMED_PATH
    assert store.get("f1") is patched
    assert seen == [patched]
    assert api.calls.names() == ["get_favour"]


@pytest.mark.parametrize("cleared", [None, "", "   "])
async def test_invalidate_with_cannot_clear_recorded_evidence(store, cleared):
    await store.fetch("f1", "t")
    claimed = store.invalidate_with("f1", {"evidence": CLAIMED_PATH})

    with pytest.raises(InvalidFavourError):
        store.invalidate_with("f1", {"evidence": cleared})

    assert store.get("f1") is claimed
    assert phase_of(store.get("f1")) == Phase.CLAIMED


@pytest.mark.parametrize("patch", [
    {"_id": "other"},
    {"id": "other"},
    {"debtor": {"_id": "zz"}},
    {"recipient": {"_id": "zz"}},
    {"initialEvidence": "favours/other.png"},
    {"evidence": CLAIMED_PATH, "_id": "other"},
])
async def test_invalidate_with_rejects_identity_changes(store, patch):
    original = await store.fetch("f1", "t")
    seen = []
    store.subscribe("f1", lambda fid, favour: seen.append(favour))

    with pytest.raises(InvalidFavourError):
        store.invalidate_with("f1", patch)

    assert store.get("f1") is original
    assert store.get("f1").id == "f1"
    assert store.get("f1").debtor.id == "u1"
    assert seen == []


def test_invalidate_with_uncached_favour_is_a_no_op(store):
    assert store.invalidate_with("f1", {"evidence": CLAIMED_PATH}) is None
    assert store.get("f1") is None


async def test_remove_drops_entry_and_notifies(store):
    await store.fetch("f1", "t")
    seen = []
    store.subscribe("f1", lambda fid, favour: seen.append((fid, favour)))

    store.remove("f1")

    assert store.get("f1") is None
    assert seen == [("f1", None)]


async def test_fetch_after_remove_goes_back_to_remote(store, api):
    await store.fetch("f1", "t")
    store.remove("f1")
    await store.fetch("f1", "t")
    assert api.calls.names() == ["get_favour", "get_favour"]


async def test_unsubscribe_stops_notifications(store):
    await store.fetch("f1", "t")
    seen = []
    unsubscribe = store.subscribe("f1", lambda fid, favour: seen.append(favour))
    unsubscribe()
    unsubscribe()

    store.invalidate_with("f1", {"evidence": CLAIMED_PATH})

    assert seen == []


async def test_failing_subscriber_does_not_block_cache_write(store):
    await store.fetch("f1", "t")
    seen = []

    def broken(fid, favour):
        raise RuntimeError("render crashed")

    store.subscribe("f1", broken)
    store.subscribe("f1", lambda fid, favour: seen.append(favour))

    patched = store.invalidate_with("f1", {"evidence": CLAIMED_PATH})

    assert store.get("f1") is patched
    assert seen == [patched]


async def test_fetch_failure_propagates_and_leaves_cache_empty(store, api):
    api.fail_next("get_favour", TransportError("connection reset", "fetch"))

    with pytest.raises(TransportError):
        await store.fetch("f1", "t")

    assert store.get("f1") is None
    assert not store.is_loading("f1")
    favour = await store.fetch("f1", "t")
    assert favour.id == "f1"


async def test_not_found_propagates(store):
    with pytest.raises(ResourceNotFoundError):
        await store.fetch("missing", "t")


async def test_cancelled_waiter_does_not_cancel_shared_request():
    api = FakeFavourApi([favour_record("f1")], delay=0.02)
    store = FavourStore(api)

    leaving = asyncio.create_task(store.fetch("f1", "t"))
    staying = asyncio.create_task(store.fetch("f1", "t"))
    await asyncio.sleep(0)
    leaving.cancel()

    favour = await staying
    with pytest.raises(asyncio.CancelledError):
        await leaving

    assert favour.id == "f1"
    assert store.get("f1") is favour
    assert api.calls.names() == ["get_favour"]


async def test_late_fetch_overwrites_optimistic_patch():
    api = FakeFavourApi([favour_record("f1")], delay=0.01)
    store = FavourStore(api)
    await store.fetch("f1", "t")

    in_flight = asyncio.create_task(store.revalidate("f1", "t"))
    await asyncio.sleep(0)
    store.invalidate_with("f1", {"evidence": CLAIMED_PATH})
    assert store.get("f1").evidence == CLAIMED_PATH

    await in_flight

    assert store.get("f1").evidence is None
