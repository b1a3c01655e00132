"""
Tests for the polling contract watcher.
"""
import threading

import pytest
from unittest.mock import MagicMock
from hypothesis import given, settings, strategies as st

from dav_sdk import ContractEvent, ContractType, ContractWatcher, WatcherCursor
from dav_sdk.chain import ChainClient


def make_event(block, tx_index, log_index=0, name="Create"):
    return ContractEvent(
        event=name,
        args={"id": "0x" + "00" * 32},
        blockNumber=block,
        transactionIndex=tx_index,
        logIndex=log_index,
        transactionHash="0x" + f"{block:032x}{tx_index:032x}",
    )


class FakeChain:
    """Serves a growing event history, honouring from_block like a node"""

    def __init__(self, batches):
        self.batches = list(batches)
        self.from_blocks = []

    def get_past_events(self, handle, from_block=0):
        self.from_blocks.append(from_block)
        events = self.batches.pop(0) if len(self.batches) > 1 else self.batches[0]
        return [e for e in events if e.block_number >= from_block]


@pytest.fixture
def handle():
    handle = MagicMock()
    handle.contract_type = ContractType.BASIC_MISSION
    return handle


STREAM = [make_event(1, 0), make_event(2, 0), make_event(2, 1), make_event(3, 0)]


def test_emits_each_event_once_in_order(handle):
    """Blocks [1,2,2,3] / tx [0,0,1,0] are emitted exactly once"""
    watcher = ContractWatcher(FakeChain([STREAM]), handle)

    first = watcher.poll()
    second = watcher.poll()

    assert [e.position for e in first] == [(1, 0), (2, 0), (2, 1), (3, 0)]
    assert second == []
    assert watcher.cursor == WatcherCursor(3, 0)


def test_tick_with_seen_events_emits_nothing(handle):
    """A tick fetching only already-seen events emits zero events"""
    chain = FakeChain([STREAM, STREAM[:2]])
    watcher = ContractWatcher(chain, handle)

    watcher.poll()
    assert watcher.poll() == []
    assert watcher.cursor == WatcherCursor(3, 0)


def test_new_events_after_cursor(handle):
    chain = FakeChain([STREAM[:2], STREAM])
    watcher = ContractWatcher(chain, handle)

    assert [e.position for e in watcher.poll()] == [(1, 0), (2, 0)]
    assert [e.position for e in watcher.poll()] == [(2, 1), (3, 0)]


def test_from_block_follows_cursor(handle):
    """Fetches are filtered server-side from the cursor's block"""
    chain = FakeChain([STREAM])
    watcher = ContractWatcher(chain, handle)

    watcher.poll()
    watcher.poll()

    assert chain.from_blocks == [0, 3]


def test_events_in_one_transaction_emitted_together(handle):
    """Several logs from one transaction share a cursor position"""
    events = [make_event(5, 2, 0), make_event(5, 2, 1, name="Signed")]
    watcher = ContractWatcher(FakeChain([events]), handle)

    emitted = watcher.poll()

    assert [e.event for e in emitted] == ["Create", "Signed"]
    assert watcher.poll() == []


def test_cursor_never_moves_backwards(handle):
    """Events at or before the cursor are never re-emitted"""
    chain = FakeChain([[make_event(4, 1)], [make_event(4, 0), make_event(4, 1), make_event(4, 2)]])
    watcher = ContractWatcher(chain, handle)

    watcher.poll()
    emitted = watcher.poll()

    assert [e.position for e in emitted] == [(4, 2)]
    assert watcher.cursor == WatcherCursor(4, 2)


def test_reset_restarts_from_scratch(handle):
    watcher = ContractWatcher(FakeChain([STREAM]), handle)
    watcher.poll()

    watcher.reset()

    assert watcher.cursor is None
    assert len(watcher.poll()) == 4


def test_iteration_until_stopped(handle):
    """Iterating yields new events across ticks until stop() is called"""
    chain = FakeChain([STREAM[:1], STREAM[:3], STREAM])
    watcher = ContractWatcher(chain, handle, interval=0.01)

    received = []
    for event in watcher:
        received.append(event.position)
        if len(received) == 4:
            watcher.stop()

    assert received == [(1, 0), (2, 0), (2, 1), (3, 0)]
    assert watcher.stopped


def test_stop_from_another_thread(handle):
    """stop() interrupts the wait between ticks"""
    watcher = ContractWatcher(FakeChain([[]]), handle, interval=60)
    timer = threading.Timer(0.05, watcher.stop)
    timer.start()

    try:
        assert list(watcher) == []
    finally:
        timer.cancel()


def test_fetch_errors_propagate(handle):
    chain = MagicMock(spec=ChainClient)
    chain.get_past_events.side_effect = ValueError("node unavailable")
    watcher = ContractWatcher(chain, handle)

    with pytest.raises(ValueError, match="node unavailable"):
        next(iter(watcher))


def test_invalid_interval(handle):
    with pytest.raises(ValueError):
        ContractWatcher(FakeChain([[]]), handle, interval=0)


@settings(max_examples=50)
@given(
    positions=st.lists(
        st.tuples(st.integers(0, 50), st.integers(0, 5)),
        unique=True,
        max_size=30
    ),
    cuts=st.lists(st.integers(0, 30), max_size=6)
)
def test_every_event_emitted_once(positions, cuts):
    """However the history grows between ticks, each event is emitted once, in order"""
    history = [make_event(block, tx) for block, tx in sorted(positions)]
    # Each tick sees a longer prefix of the history
    prefixes = sorted(min(cut, len(history)) for cut in cuts) + [len(history)]
    handle = MagicMock()
    handle.contract_type = ContractType.BASIC_MISSION
    watcher = ContractWatcher(FakeChain([history[:n] for n in prefixes]), handle)

    emitted = []
    for _ in prefixes:
        emitted.extend(e.position for e in watcher.poll())

    assert emitted == sorted(positions)
