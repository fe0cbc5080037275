"""Countdown timer with pause/resume and reload-safe persistence."""
from __future__ import annotations

import enum
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Protocol

from quizcore.utils.time_utils import now_ms

if TYPE_CHECKING:
    from quizcore.storage import Storage

log = logging.getLogger(__name__)

TickCallback = Callable[[int], None]
CompleteCallback = Callable[[], None]


class TickHandle(Protocol):
    def cancel(self) -> None: ...


class TickSource(Protocol):
    """Something that can call ``callback`` every ``interval`` seconds."""

    def schedule(self, interval: float, callback: Callable[[], None]) -> TickHandle: ...


class _ThreadTick:
    def __init__(self, interval: float, callback: Callable[[], None], wake: threading.Event):
        self.interval = interval
        self.callback = callback
        self.due = time.monotonic() + interval
        self.cancelled = False
        self._wake = wake

    def cancel(self) -> None:
        self.cancelled = True
        self._wake.set()


class ThreadTickSource:
    """
    One daemon worker per source runs every schedule made on it, one
    callback at a time. The worker exits once nothing is scheduled.
    """

    def __init__(self, name: str = "quiz_tick"):
        self.name = name
        self._handles: list[_ThreadTick] = []
        self._lock = threading.Lock()
        self._wake = threading.Event()
        self._thread: threading.Thread | None = None

    def schedule(self, interval: float, callback: Callable[[], None]) -> _ThreadTick:
        handle = _ThreadTick(interval, callback, self._wake)
        with self._lock:
            self._handles.append(handle)
            if self._thread is None:
                self._thread = threading.Thread(
                    target=self._worker, name=self.name, daemon=True
                )
                self._thread.start()
        self._wake.set()
        return handle

    def _worker(self) -> None:
        while True:
            self._wake.clear()
            with self._lock:
                self._handles = [h for h in self._handles if not h.cancelled]
                if not self._handles:
                    self._thread = None
                    return
                now = time.monotonic()
                due = [h for h in self._handles if h.due <= now]
                next_due = min(h.due for h in self._handles)
            if not due:
                self._wake.wait(next_due - now)
                continue
            for handle in due:
                if handle.cancelled:
                    continue
                handle.due += handle.interval
                try:
                    handle.callback()
                except Exception:
                    log.exception("Tick callback failed")


class _ManualTick:
    def __init__(self, interval: float, callback: Callable[[], None]):
        self.interval = interval
        self.callback = callback
        self.elapsed = 0.0
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTickSource:
    """Tick source driven by the caller, for hosts with their own loop and tests."""

    def __init__(self) -> None:
        self._handles: list[_ManualTick] = []

    def schedule(self, interval: float, callback: Callable[[], None]) -> _ManualTick:
        handle = _ManualTick(interval, callback)
        self._handles.append(handle)
        return handle

    @property
    def active(self) -> int:
        return sum(1 for handle in self._handles if not handle.cancelled)

    def advance(self, seconds: int = 1) -> None:
        """Let ``seconds`` seconds pass, one second at a time."""
        for _ in range(seconds):
            self._handles = [h for h in self._handles if not h.cancelled]
            for handle in list(self._handles):
                if handle.cancelled:
                    continue
                handle.elapsed += 1
                while handle.elapsed >= handle.interval and not handle.cancelled:
                    handle.elapsed -= handle.interval
                    handle.callback()


class TimerState(str, enum.Enum):
    """Lifecycle of a countdown."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


class CountdownTimer:
    """
    Counts down one second per tick of its tick source.

    ``on_tick`` receives the new time left after every change; ``on_complete``
    fires once each time the countdown reaches zero.
    """

    def __init__(
        self,
        initial_time: int,
        on_tick: TickCallback | None = None,
        on_complete: CompleteCallback | None = None,
        tick_source: TickSource | None = None,
    ):
        self.initial_time = max(0, int(initial_time))
        self.time_left = self.initial_time
        self.on_tick = on_tick
        self.on_complete = on_complete
        self.tick_source = tick_source or ThreadTickSource("countdown_timer")
        self.state = TimerState.IDLE
        self._handle: TickHandle | None = None

    @property
    def is_running(self) -> bool:
        return self.state in (TimerState.RUNNING, TimerState.PAUSED)

    @property
    def is_active(self) -> bool:
        return self.state is TimerState.RUNNING

    def start(self) -> None:
        if self.is_running:
            log.warning("Timer is already running")
            return
        self.state = TimerState.RUNNING
        if self.time_left <= 0:
            self._complete()
            return
        self._handle = self.tick_source.schedule(1.0, self._tick)

    def pause(self) -> None:
        if self.state is not TimerState.RUNNING:
            log.warning("Timer is not running")
            return
        self.state = TimerState.PAUSED

    def resume(self) -> None:
        if self.state is not TimerState.PAUSED:
            log.warning("Timer is not paused")
            return
        self.state = TimerState.RUNNING

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self.state = TimerState.STOPPED

    def reset(self) -> None:
        self.stop()
        self.state = TimerState.IDLE
        self.time_left = self.initial_time
        self._notify_tick()

    def set_time_left(self, seconds: int) -> None:
        self.time_left = max(0, int(seconds))
        self._notify_tick()

    def add_time(self, seconds: int) -> None:
        if seconds < 0:
            self.subtract_time(-seconds)
            return
        self.time_left += int(seconds)
        self._notify_tick()

    def subtract_time(self, seconds: int) -> None:
        if seconds < 0:
            self.add_time(-seconds)
            return
        self.time_left = max(0, self.time_left - int(seconds))
        self._notify_tick()
        if self.time_left == 0 and self.is_running:
            self._complete()

    def _tick(self) -> None:
        if self.state is not TimerState.RUNNING:
            return
        self.time_left -= 1
        self._notify_tick()
        if self.time_left <= 0:
            self.time_left = 0
            self._complete()

    def _notify_tick(self) -> None:
        if self.on_tick:
            self.on_tick(self.time_left)

    def _complete(self) -> None:
        self.stop()
        if self.on_complete:
            self.on_complete()

    def save_state(self, storage: "Storage", key: str, timestamp: int | None = None) -> bool:
        return save_timer_state(storage, key, self.time_left, timestamp)

    def restore_state(self, storage: "Storage", key: str, now: int | None = None) -> bool:
        """Apply a saved time left, minus the wall-clock time since it was saved."""
        snapshot = load_timer_state(storage, key, now)
        if snapshot is None:
            return False
        self.set_time_left(snapshot.time_left)
        return True


@dataclass(frozen=True)
class TimerSnapshot:
    time_left: int
    timestamp: int  # epoch milliseconds of the save


def save_timer_state(
    storage: "Storage", key: str, time_left: int, timestamp: int | None = None
) -> bool:
    state = {
        "timeLeft": int(time_left),
        "timestamp": now_ms() if timestamp is None else int(timestamp),
    }
    return storage.save(key, state)


def load_timer_state(
    storage: "Storage", key: str, now: int | None = None
) -> TimerSnapshot | None:
    """Load a saved timer, catching up on the seconds elapsed since it was saved."""
    state = storage.load(key, None)
    if state is None:
        return None
    try:
        saved_left = int(state["timeLeft"])
        saved_at = int(state["timestamp"])
    except (KeyError, TypeError, ValueError) as exc:
        log.error("Error loading timer state: %s", exc)
        return None
    current = now_ms() if now is None else now
    elapsed = math.floor((current - saved_at) / 1000)
    return TimerSnapshot(time_left=max(0, saved_left - elapsed), timestamp=saved_at)


def clear_timer_state(storage: "Storage", key: str) -> bool:
    return storage.remove(key)


def format_time(seconds: int) -> str:
    """Seconds as MM:SS; negative input shows as 00:00."""
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    return f"{minutes:02d}:{secs:02d}"


def format_time_long(seconds: int) -> str:
    """Seconds as HH:MM:SS; negative input shows as 00:00:00."""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def parse_time(value: str) -> int:
    """Parse MM:SS into seconds; malformed input gives 0."""
    parts = value.split(":")
    if len(parts) != 2:
        log.error("Invalid time format %r. Expected MM:SS", value)
        return 0
    try:
        minutes, seconds = int(parts[0]), int(parts[1])
    except ValueError:
        log.error("Invalid time values in %r", value)
        return 0
    return minutes * 60 + seconds


def should_warn(time_left: int, threshold: int = 300) -> bool:
    return 0 < time_left <= threshold


def time_percentage(time_left: int, total_time: int) -> float:
    if total_time <= 0:
        return 0.0
    return max(0.0, min(100.0, time_left / total_time * 100))


def time_description(seconds: int) -> str:
    if seconds <= 0:
        return "Time is up"
    if seconds < 60:
        return f"{seconds} seconds left"
    if seconds < 3600:
        return f"{seconds // 60} minutes left"
    hours, rest = divmod(seconds, 3600)
    return f"{hours} hours {rest // 60} minutes left"
