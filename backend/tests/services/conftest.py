"""Service test fixtures — fake collaborators wired into a real FavourStore.

Invariants:
    - Every test gets fresh fakes with one shared call log
    - The remote holds favour f1 (debtor u1, recipient u2, pending) unless a test adds more
    - Clock ticks 1ms per call, so consecutive evidence paths always differ

Design Decisions:
    - Real FavourStore over a fake API: cache behaviour is part of what the
      workflow tests assert
"""

from datetime import datetime, timezone

import pytest

from favours.services.favour_store import FavourStore

from tests.services.fakes import (
    CallLog,
    FakeBlobStore,
    FakeFavourApi,
    TickingClock,
    favour_record,
)


@pytest.fixture
def call_log():
    return CallLog()


@pytest.fixture
def api(call_log):
    return FakeFavourApi([favour_record("f1")], log=call_log)


@pytest.fixture
def blob_store(call_log):
    return FakeBlobStore(log=call_log)


@pytest.fixture
def store(api):
    return FavourStore(api)


@pytest.fixture
def clock():
    return TickingClock(datetime(2020, 10, 17, 9, 30, tzinfo=timezone.utc))
