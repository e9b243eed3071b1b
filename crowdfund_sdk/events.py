"""
Event tailer - incrementally follows the contract's event stream.

The tailer keeps a ledger cursor, polls ``getEvents`` on a fixed interval,
turns ``donate`` events into ``DonationEvent`` objects and hands them to a
subscriber callback. Deduplication is only as good as the cursor: when a
poll starts at a ledger that was already scanned, the same event can be
delivered again.
"""
import logging
import threading
import time
from collections import deque
from typing import Any, Callable, Deque, List, Optional

from ._rate_limited_log import rate_limited_log
from .ledger import LedgerClient
from .models import DonationEvent, RawEvent

EventCallback = Callable[[DonationEvent], None]

DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_EVENT_LIMIT = 20
DEFAULT_LOOKBACK = 100
DEFAULT_MAX_RETAINED = 50

DONATE_TOPIC = "donate"


def parse_donation(ledger: LedgerClient, event: RawEvent) -> Optional[DonationEvent]:
    """
    Decode ``event`` into a DonationEvent, or None if it is not a donation.

    A donation carries at least two topics, the second decoding to "donate".
    The payload may be a map with ``donor``/``amount`` keys or the
    ``(donor, amount, total)`` tuple the contract publishes.
    """
    if len(event.topics) < 2:
        return None
    if ledger.decode(event.topics[1]) != DONATE_TOPIC or event.value is None:
        return None

    payload = ledger.decode(event.value)
    donor: Any = None
    amount: Any = None
    if isinstance(payload, dict):
        donor, amount = payload.get("donor"), payload.get("amount")
    elif isinstance(payload, (list, tuple)) and len(payload) >= 2:
        donor, amount = payload[0], payload[1]

    return DonationEvent(
        donor=str(donor) if donor else "Unknown",
        amount=int(amount or 0),
        timestamp=int(time.time() * 1000),
        tx_hash=event.id,
    )


class EventTailer:
    """
    Polls the ledger for donation events while listening.

    State machine: idle -> listening -> idle. ``start`` while listening and
    ``stop`` while idle are no-ops. The single-loop check is a plain state
    check, so ``start``/``stop`` must be driven from one controlling thread.

    Args:
        ledger: Remote ledger client
        contract_id: Contract whose events are followed
        interval: Seconds between polls
        limit: Maximum events fetched per poll
        lookback: Ledgers behind the head to begin from on a fresh start
        max_retained: Size of the newest-first buffer exposed as ``events``
        logger: Optional logger instance
    """

    def __init__(
        self,
        ledger: LedgerClient,
        contract_id: str,
        interval: float = DEFAULT_POLL_INTERVAL,
        limit: int = DEFAULT_EVENT_LIMIT,
        lookback: int = DEFAULT_LOOKBACK,
        max_retained: int = DEFAULT_MAX_RETAINED,
        logger: Optional[logging.Logger] = None
    ):
        self.ledger = ledger
        self.contract_id = contract_id
        self.interval = interval
        self.limit = limit
        self.lookback = lookback
        self.logger = logger or logging.getLogger(__name__)

        self.cursor: Optional[int] = None
        self._recent: Deque[DonationEvent] = deque(maxlen=max_retained)
        self._on_event: Optional[EventCallback] = None
        self._lock = threading.RLock()
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        # Bumped on every start/stop so a tick from a previous session can
        # tell that its results are stale
        self._generation = 0

    @property
    def listening(self) -> bool:
        return self._thread is not None

    @property
    def events(self) -> List[DonationEvent]:
        """Retained donations, newest first"""
        with self._lock:
            return list(self._recent)

    def start(self, on_event: Optional[EventCallback] = None) -> None:
        """
        Begin polling in a background thread.

        Args:
            on_event: Subscriber called once per delivered donation
        """
        with self._lock:
            if self._thread is not None:
                return
            if on_event is not None:
                self._on_event = on_event
            self._generation += 1
            generation = self._generation
            self._stop_event = threading.Event()
            self._init_cursor()

            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event, generation),
                name="crowdfund-event-tailer",
                daemon=True,
            )
            self._thread.start()
        self.logger.debug(f"Listening for events on {self.contract_id} from ledger {self.cursor}")

    def stop(self) -> None:
        """Stop polling and reset the cursor; a tick already running is discarded"""
        with self._lock:
            if self._thread is None:
                return
            self._stop_event.set()
            self._thread = None
            self._stop_event = None
            self._generation += 1
            self.cursor = None
        self.logger.debug("Stopped listening for events")

    def poll_once(self) -> List[DonationEvent]:
        """
        Run a single polling tick in the calling thread.

        Returns:
            Donations delivered during this tick, in delivery order
        """
        return self._tick(self._generation)

    def _run(self, stop_event: threading.Event, generation: int) -> None:
        while not stop_event.wait(self.interval):
            self._tick(generation)

    def _init_cursor(self) -> None:
        if self.cursor is not None:
            return
        try:
            self.cursor = self.ledger.get_latest_ledger() - self.lookback
        except Exception as e:
            rate_limited_log(f"Event polling error: {e}", level="warning", logger_instance=self.logger)

    def _tick(self, generation: int) -> List[DonationEvent]:
        delivered: List[DonationEvent] = []
        try:
            with self._lock:
                if generation != self._generation:
                    return delivered
                self._init_cursor()
                start_ledger = self.cursor
            if start_ledger is None:
                return delivered

            raw_events = self.ledger.get_events(start_ledger, self.contract_id, self.limit)

            for event in raw_events:
                donation = parse_donation(self.ledger, event)
                with self._lock:
                    if generation != self._generation:
                        return delivered
                    if donation is not None:
                        self._recent.appendleft(donation)
                        delivered.append(donation)
                        if self._on_event is not None:
                            self._on_event(donation)
                        # The subscriber may have stopped the tailer
                        if generation != self._generation:
                            return delivered
                    if self.cursor is None or event.ledger > self.cursor:
                        self.cursor = event.ledger
        except Exception as e:
            rate_limited_log(f"Event polling error: {e}", level="warning", logger_instance=self.logger)
        return delivered
