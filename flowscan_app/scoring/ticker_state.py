"""
Per-ticker memory shared across scoring calls.

One SignalMemory owns every TickerState. Tests construct a fresh memory
instead of clearing module-level caches.
"""

import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Optional

import structlog

from ..utils.time import now_ms

logger = structlog.get_logger(__name__)


@dataclass
class TickerState:
    """Rolling signal history and alert cooldown for one ticker."""
    ticker: str
    signal_times_ms: deque = field(default_factory=deque)
    last_alert_ms: Optional[int] = None

    def prune(self, cutoff_ms: int) -> None:
        while self.signal_times_ms and self.signal_times_ms[0] < cutoff_ms:
            self.signal_times_ms.popleft()


class SignalMemory:
    """Recent signal counts and alert cooldowns keyed by ticker."""

    def __init__(self, repeat_window_minutes: int = 60, alert_cooldown_seconds: int = 300):
        self.repeat_window_ms = repeat_window_minutes * 60 * 1000
        self.alert_cooldown_ms = alert_cooldown_seconds * 1000
        self._states: dict[str, TickerState] = {}
        self._lock = threading.Lock()

    def _state(self, ticker: str) -> TickerState:
        state = self._states.get(ticker)
        if state is None:
            state = TickerState(ticker=ticker)
            self._states[ticker] = state
        return state

    def record_signal(self, ticker: str, timestamp_ms: Optional[int] = None) -> int:
        """Record one detection and return the count inside the window."""
        ts = timestamp_ms if timestamp_ms is not None else now_ms()
        with self._lock:
            state = self._state(ticker)
            # Out-of-order timestamps are placed so pruning from the left stays valid
            if state.signal_times_ms and ts < state.signal_times_ms[-1]:
                times = sorted([*state.signal_times_ms, ts])
                state.signal_times_ms = deque(times)
            else:
                state.signal_times_ms.append(ts)
            state.prune(ts - self.repeat_window_ms)
            return len(state.signal_times_ms)

    def count_recent(self, ticker: str, as_of_ms: Optional[int] = None) -> int:
        """Signals recorded for the ticker within the repeat window ending at as_of_ms."""
        as_of = as_of_ms if as_of_ms is not None else now_ms()
        cutoff = as_of - self.repeat_window_ms
        with self._lock:
            state = self._states.get(ticker)
            if state is None:
                return 0
            return sum(1 for ts in state.signal_times_ms if cutoff <= ts <= as_of)

    def in_cooldown(self, ticker: str, as_of_ms: Optional[int] = None) -> bool:
        """True while the last alert for the ticker is younger than the cooldown."""
        as_of = as_of_ms if as_of_ms is not None else now_ms()
        with self._lock:
            state = self._states.get(ticker)
            if state is None or state.last_alert_ms is None:
                return False
            return as_of - state.last_alert_ms < self.alert_cooldown_ms

    def mark_alerted(self, ticker: str, timestamp_ms: Optional[int] = None) -> None:
        ts = timestamp_ms if timestamp_ms is not None else now_ms()
        with self._lock:
            self._state(ticker).last_alert_ms = ts

    def get(self, ticker: str) -> Optional[TickerState]:
        with self._lock:
            return self._states.get(ticker)

    def tickers(self) -> list[str]:
        with self._lock:
            return list(self._states)

    def reset(self) -> None:
        """Forget all tickers; called at the daily reset."""
        with self._lock:
            count = len(self._states)
            self._states.clear()
        logger.debug("Signal memory cleared", tickers=count)
