"""
Polling contract event watcher.

A ContractWatcher fetches a contract's events on a fixed interval and
yields only the events it has not emitted before, using a
(block number, transaction index) cursor.
"""
import logging
import threading
from typing import Iterator, List, NamedTuple, Optional

from .chain import ChainClient
from .models import ContractEvent
from .registry import ContractHandle

DEFAULT_POLL_INTERVAL = 2.0


class WatcherCursor(NamedTuple):
    """High-water mark of emitted events, ordered lexicographically."""
    block: int
    transaction_index: int

    def is_before(self, event: ContractEvent) -> bool:
        return self < event.position


class ContractWatcher:
    """
    Watch a contract for new events.

    Iterating a watcher polls forever, sleeping `interval` seconds between
    ticks, until stop() is called or the iterator is closed. Ticks run one
    at a time in the iterating thread.

    Example:
        watcher = client.watch_contract(dav_id, ContractType.BASIC_MISSION)
        for event in watcher:
            handle(event)
    """

    def __init__(
        self,
        chain: ChainClient,
        handle: ContractHandle,
        interval: float = DEFAULT_POLL_INTERVAL,
        logger: Optional[logging.Logger] = None
    ):
        if interval <= 0:
            raise ValueError(f"Poll interval must be positive, got {interval}")
        self.chain = chain
        self.handle = handle
        self.interval = interval
        self.logger = logger or logging.getLogger(__name__)
        self.cursor: Optional[WatcherCursor] = None
        self._stopped = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def reset(self) -> None:
        """Forget the cursor and allow iteration again."""
        self.cursor = None
        self._stopped.clear()

    def stop(self) -> None:
        """Stop polling; safe to call from another thread."""
        self._stopped.set()

    def poll(self) -> List[ContractEvent]:
        """
        Run one tick: fetch events and return those after the cursor.

        Returns:
            New events in (block, transaction index, log index) order
        """
        cursor = self.cursor
        from_block = cursor.block if cursor is not None else 0
        events = self.chain.get_past_events(self.handle, from_block=from_block)

        # Compare against the cursor at tick start so every event of one
        # transaction is emitted together
        new_events = [event for event in events if cursor is None or cursor.is_before(event)]
        if new_events:
            last = new_events[-1]
            self.cursor = WatcherCursor(last.block_number, last.transaction_index)
            self.logger.debug(
                f"{len(new_events)} new {self.handle.contract_type.value} events, "
                f"cursor at {self.cursor}"
            )
        return new_events

    def __iter__(self) -> Iterator[ContractEvent]:
        while not self._stopped.is_set():
            for event in self.poll():
                yield event
                if self._stopped.is_set():
                    return
            # Returns early when stop() is called
            self._stopped.wait(self.interval)
