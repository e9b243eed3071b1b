"""
Tests for the EventTailer polling loop.
"""
import threading
import time

import pytest
from hypothesis import given, settings, strategies as st

from crowdfund_sdk.events import EventTailer, parse_donation
from crowdfund_sdk.ledger import LedgerConnectionError
from crowdfund_sdk.models import RawEvent

from tests.test_helpers import FakeLedger, TEST_CONTRACT, donate_event

IDLE_INTERVAL = 3600


@pytest.fixture
def tailer(fake_ledger):
    tailer = EventTailer(fake_ledger, TEST_CONTRACT, interval=IDLE_INTERVAL)
    yield tailer
    tailer.stop()


def test_first_poll_starts_behind_head(tailer, fake_ledger):
    tailer.poll_once()

    assert fake_ledger.calls_to("get_events") == [(900, TEST_CONTRACT, 20)]


def test_start_initializes_cursor_and_stop_resets(tailer, fake_ledger):
    tailer.start(lambda event: None)

    assert tailer.listening
    assert tailer.cursor == 900

    tailer.stop()

    assert not tailer.listening
    assert tailer.cursor is None


def test_start_keeps_existing_cursor(tailer, fake_ledger):
    tailer.cursor = 950
    tailer.start()

    assert tailer.cursor == 950
    assert fake_ledger.calls_to("get_latest_ledger") == []


def test_stop_while_idle_is_noop(tailer):
    tailer.stop()
    assert not tailer.listening


def test_delivers_donations_newest_first(tailer, fake_ledger):
    received = []
    tailer.start(received.append)
    fake_ledger.event_batches = [[
        donate_event("e1", 901, donor="GA", amount=5),
        donate_event("e2", 902, donor="GB", amount=7),
    ]]

    delivered = tailer.poll_once()

    assert [e.tx_hash for e in delivered] == ["e1", "e2"]
    assert [e.tx_hash for e in received] == ["e1", "e2"]
    assert [e.tx_hash for e in tailer.events] == ["e2", "e1"]
    assert received[0].donor == "GA"
    assert received[0].amount == 5
    assert tailer.cursor == 902


def test_non_donation_events_advance_cursor_only(tailer, fake_ledger):
    received = []
    tailer.start(received.append)
    fake_ledger.event_batches = [[
        RawEvent(id="init", ledger=905, topics=("init",), value=["GOWNER", 100, 1700000000]),
        RawEvent(id="claim", ledger=910, topics=("crowdfund", "claim"), value=["GOWNER", 100]),
        donate_event("nov", 911, value=None),
    ]]

    tailer.poll_once()

    assert received == []
    assert tailer.cursor == 911


def test_cursor_never_regresses_within_poll(tailer, fake_ledger):
    tailer.start()
    fake_ledger.event_batches = [[
        donate_event("e1", 950),
        donate_event("e2", 920),
        donate_event("e3", 940),
    ]]

    tailer.poll_once()

    assert tailer.cursor == 950


def test_next_poll_starts_at_cursor(tailer, fake_ledger):
    tailer.start()
    fake_ledger.event_batches = [[donate_event("e1", 930)], []]

    tailer.poll_once()
    tailer.poll_once()

    starts = [args[0] for args in fake_ledger.calls_to("get_events")]
    assert starts == [900, 930]


def test_overlapping_polls_can_redeliver(tailer, fake_ledger):
    """Dedup is cursor-based only; an event in the cursor's ledger comes back"""
    received = []
    tailer.start(received.append)
    fake_ledger.event_batches = [[donate_event("e1", 930)], [donate_event("e1", 930)]]

    tailer.poll_once()
    tailer.poll_once()

    assert [e.tx_hash for e in received] == ["e1", "e1"]


def test_polling_fault_is_swallowed(tailer, fake_ledger, caplog):
    tailer.start()
    fake_ledger.errors["get_events"] = LedgerConnectionError("503 Service Unavailable")

    assert tailer.poll_once() == []
    assert "Event polling error" in caplog.text
    assert tailer.cursor == 900

    del fake_ledger.errors["get_events"]
    fake_ledger.event_batches = [[donate_event("e1", 901)]]
    assert len(tailer.poll_once()) == 1


def test_subscriber_failure_is_swallowed(tailer, fake_ledger):
    def explode(event):
        raise RuntimeError("subscriber bug")

    tailer.start(explode)
    fake_ledger.event_batches = [[donate_event("e1", 901)]]

    tailer.poll_once()

    assert tailer.listening


def test_latest_ledger_failure_retries_on_tick(fake_ledger):
    fake_ledger.errors["get_latest_ledger"] = LedgerConnectionError("down")
    tailer = EventTailer(fake_ledger, TEST_CONTRACT, interval=IDLE_INTERVAL)
    tailer.start()
    try:
        assert tailer.cursor is None
        assert tailer.poll_once() == []

        del fake_ledger.errors["get_latest_ledger"]
        tailer.poll_once()
        assert fake_ledger.calls_to("get_events") == [(900, TEST_CONTRACT, 20)]
    finally:
        tailer.stop()


def test_stale_tick_is_discarded(tailer, fake_ledger):
    received = []
    tailer.start(received.append)
    stale_generation = tailer._generation
    tailer.stop()
    fake_ledger.event_batches = [[donate_event("e1", 901)]]

    assert tailer._tick(stale_generation) == []
    assert received == []
    assert fake_ledger.calls_to("get_events") == []


def test_stop_during_tick_discards_rest_of_batch(tailer, fake_ledger):
    received = []

    def on_event(event):
        received.append(event)
        tailer.stop()

    tailer.start(on_event)
    fake_ledger.event_batches = [[donate_event("e1", 901), donate_event("e2", 902)]]

    tailer.poll_once()

    assert [e.tx_hash for e in received] == ["e1"]
    assert tailer.cursor is None


def test_start_twice_runs_one_loop(fake_ledger):
    contract = "CSTARTTWICE"
    delivered = threading.Event()
    received = []

    def on_event(event):
        received.append(event)
        delivered.set()

    fake_ledger.event_batches = [[donate_event("e1", 901)]]
    tailer = EventTailer(fake_ledger, contract, interval=0.01)
    tailer.start(on_event)
    first_thread = tailer._thread
    tailer.start(on_event)
    try:
        assert tailer._thread is first_thread
        assert delivered.wait(5)
        threads = [t for t in threading.enumerate() if t is first_thread]
        assert len(threads) == 1
    finally:
        tailer.stop()

    assert [e.tx_hash for e in received] == ["e1"]


def test_timestamp_is_wall_clock(fake_ledger, monkeypatch):
    monkeypatch.setattr(time, "time", lambda: 1700000000.5)
    event = parse_donation(fake_ledger, donate_event("e1", 901))
    assert event.timestamp == 1700000000500


def test_parse_tuple_payload(fake_ledger):
    event = parse_donation(fake_ledger, donate_event("e1", 901, value=["GDONOR", 25, 125]))
    assert event.donor == "GDONOR"
    assert event.amount == 25


def test_parse_missing_fields(fake_ledger):
    event = parse_donation(fake_ledger, donate_event("e1", 901, value={}))
    assert event.donor == "Unknown"
    assert event.amount == 0


ledgers = st.lists(st.integers(min_value=0, max_value=2000), max_size=20)


@settings(max_examples=50, deadline=None)
@given(batches=st.lists(ledgers, max_size=6))
def test_cursor_is_monotonic(batches):
    ledger = FakeLedger()
    ledger.event_batches = [
        [donate_event(f"e{i}-{j}", seq) for j, seq in enumerate(batch)]
        for i, batch in enumerate(batches)
    ]
    tailer = EventTailer(ledger, TEST_CONTRACT, interval=IDLE_INTERVAL)

    seen = []
    for _ in batches:
        tailer.poll_once()
        seen.append(tailer.cursor)

    assert seen == sorted(seen)
    assert all(cursor >= 900 for cursor in seen)


@settings(max_examples=30, deadline=None)
@given(batch_sizes=st.lists(st.integers(min_value=0, max_value=20), max_size=8))
def test_retained_buffer_is_bounded_and_newest_first(batch_sizes):
    ledger = FakeLedger()
    counter = 0
    batches = []
    for size in batch_sizes:
        batch = []
        for _ in range(size):
            counter += 1
            batch.append(donate_event(f"e{counter:04d}", 900 + counter))
        batches.append(batch)
    ledger.event_batches = batches
    tailer = EventTailer(ledger, TEST_CONTRACT, interval=IDLE_INTERVAL)

    for _ in batch_sizes:
        tailer.poll_once()

    events = tailer.events
    assert len(events) == min(50, counter)
    ids = [e.tx_hash for e in events]
    assert ids == sorted(ids, reverse=True)
