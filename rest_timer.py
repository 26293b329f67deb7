from __future__ import annotations
import threading
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Callable, Optional

from loguru import logger

from localization import translator


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    EXPIRED = "expired"


class TimerSound(str, Enum):
    CLASSIC = "classic"
    ZEN = "zen"
    COACH = "coach"
    FUTURE = "future"

    @property
    def sound_id(self) -> int:
        return {
            TimerSound.CLASSIC: 1005,
            TimerSound.ZEN: 1000,
            TimerSound.COACH: 1016,
            TimerSound.FUTURE: 1103,
        }[self]

    @property
    def label(self) -> str:
        return translator.gettext(self.value.capitalize())


@dataclass(frozen=True)
class TimerSnapshot:
    state: TimerState
    remaining: int
    total_duration: int
    progress: float

    def to_dict(self) -> dict:
        data = asdict(self)
        data["state"] = self.state.value
        return data


def format_time(total_seconds: int) -> str:
    """Return ``total_seconds`` as ``MM:SS``."""
    minutes, seconds = divmod(max(int(total_seconds), 0), 60)
    return f"{minutes:02d}:{seconds:02d}"


class Notifier:
    """Fire-and-forget sound, vibration and notification emission."""

    VIBRATE_SOUND_ID = 4095

    def __init__(self, enable_sound: bool = True, enable_haptics: bool = True) -> None:
        self.enable_sound = enable_sound
        self.enable_haptics = enable_haptics

    def play_sound(self, sound: TimerSound) -> None:
        logger.info("Playing system sound {} ({})", sound.sound_id, sound.value)

    def vibrate(self) -> None:
        logger.info("Vibrating (system sound {})", self.VIBRATE_SOUND_ID)

    def notify(self, title: str, body: str) -> None:
        logger.info("Notification: {} - {}", title, body)

    def completion(self, sound: TimerSound) -> None:
        if self.enable_sound:
            self.play_sound(sound)
        if self.enable_haptics:
            self.vibrate()


class AlertScheduler:
    """One pending rest-finished alert, delivered by a ``threading.Timer``."""

    def __init__(self, notifier: Notifier) -> None:
        self.notifier = notifier
        self._pending: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    def schedule(self, seconds: float, title: str, body: str) -> None:
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
            timer = threading.Timer(seconds, self.notifier.notify, args=(title, body))
            timer.daemon = True
            timer.start()
            self._pending = timer

    def cancel(self) -> None:
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None


class Ticker(threading.Thread):
    """Background thread invoking ``callback`` once per ``interval`` seconds."""

    def __init__(self, callback: Callable[[], None], interval: float = 1.0) -> None:
        super().__init__(daemon=True)
        self.callback = callback
        self.interval = interval
        self._stop_event = threading.Event()

    def run(self) -> None:
        while not self._stop_event.wait(self.interval):
            self.callback()

    def cancel(self) -> None:
        self._stop_event.set()


class RestTimer:
    """Countdown state machine for the rest period between sets.

    The timer itself never sleeps. Something has to call :meth:`tick` once per
    second: a :class:`Ticker` created through ``ticker_factory`` in the app, or
    the test directly. Every run gets a generation number and ticks delivered
    for an older generation are dropped, so a ticker that fires right after
    :meth:`stop` or a new :meth:`start` cannot touch the new run.
    """

    def __init__(
        self,
        default_duration: int = 90,
        sound: TimerSound = TimerSound.CLASSIC,
        notifier: Notifier | None = None,
        scheduler: AlertScheduler | None = None,
        ticker_factory: Callable[[Callable[[], None]], Ticker] | None = None,
    ) -> None:
        self.default_duration = default_duration
        self.sound = sound
        self.notifier = notifier or Notifier()
        self.scheduler = scheduler
        self.ticker_factory = ticker_factory
        self._state = TimerState.IDLE
        self._remaining = 0
        self._total = 0
        self._generation = 0
        self._ticker: Ticker | None = None
        self._observers: list[Callable[[TimerSnapshot], None]] = []
        self._lock = threading.RLock()

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def total_duration(self) -> int:
        return self._total

    @property
    def progress(self) -> float:
        if self._total <= 0:
            return 0.0
        return self._remaining / self._total

    def snapshot(self) -> TimerSnapshot:
        with self._lock:
            return TimerSnapshot(self._state, self._remaining, self._total, self.progress)

    def subscribe(self, observer: Callable[[TimerSnapshot], None]) -> Callable[[], None]:
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def start(self, duration: int | None = None) -> None:
        target = self.default_duration if duration is None else duration
        if target <= 0:
            raise ValueError("duration must be positive")
        with self._lock:
            self._halt()
            self._generation += 1
            self._remaining = target
            self._total = target
            self._state = TimerState.RUNNING
            self._schedule_alert()
            if self.ticker_factory is not None:
                generation = self._generation
                self._ticker = self.ticker_factory(lambda: self._tick_run(generation))
                self._ticker.start()
            logger.debug("Rest timer started for {}s", target)
            self._emit()

    def tick(self) -> None:
        with self._lock:
            if self._state is not TimerState.RUNNING:
                return
            self._remaining = max(self._remaining - 1, 0)
            if self._remaining == 0:
                self._expire()
                return
            self._emit()

    def extend(self, seconds: int) -> None:
        if seconds < 0:
            raise ValueError("seconds must be non-negative")
        with self._lock:
            if self._state is not TimerState.RUNNING:
                return
            self._remaining += seconds
            self._total += seconds
            self._schedule_alert()
            self._emit()

    def reduce(self, seconds: int) -> None:
        if seconds < 0:
            raise ValueError("seconds must be non-negative")
        with self._lock:
            if self._state is not TimerState.RUNNING:
                return
            if self._remaining > seconds:
                self._remaining -= seconds
                self._total = max(self._total - seconds, self._remaining)
                self._schedule_alert()
                self._emit()
            else:
                self.stop()

    def stop(self) -> None:
        with self._lock:
            self._halt()
            self._generation += 1
            self._state = TimerState.IDLE
            self._remaining = 0
            self._total = 0
            self._emit()

    def _tick_run(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self.tick()

    def _expire(self) -> None:
        self._halt()
        self._state = TimerState.EXPIRED
        logger.info("Rest timer finished after {}s", self._total)
        self.notifier.completion(self.sound)
        self._emit()

    def _halt(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        self._cancel_alert()

    def _schedule_alert(self) -> None:
        if self.scheduler is None:
            return
        self._cancel_alert()
        if self._remaining <= 0:
            return
        try:
            self.scheduler.schedule(
                self._remaining,
                translator.gettext("Rest finished!"),
                translator.gettext("Time for the next set."),
            )
        except Exception as e:
            logger.warning("Could not schedule rest alert: {}", e)

    def _cancel_alert(self) -> None:
        if self.scheduler is None:
            return
        try:
            self.scheduler.cancel()
        except Exception as e:
            logger.warning("Could not cancel rest alert: {}", e)

    def _emit(self) -> None:
        snap = TimerSnapshot(self._state, self._remaining, self._total, self.progress)
        for observer in list(self._observers):
            observer(snap)
