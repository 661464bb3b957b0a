# Schedules the next simulation step as a one-shot timer.
# Each step schedules the following one, so a new speed applies from the next step on.
import logging
import threading
from typing import Callable, Optional


class TimingDriver:
    """
    Owns at most one pending timer.

    Every schedule() or cancel() bumps a generation counter. A timer whose captured
    generation is stale does not run its callback, even if it fires after cancel().
    """

    def __init__(self, timer_factory: Callable = threading.Timer):
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._generation = 0
        self._timer = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def schedule(self, delay_ms: float, callback: Callable[[], None]):
        with self._lock:
            self._cancel_timer()
            self._generation += 1
            generation = self._generation

            def fire():
                with self._lock:
                    if generation != self._generation:
                        logging.debug(f"Dropping stale timer (generation {generation}).")
                        return
                    self._timer = None
                callback()

            timer = self._timer_factory(max(float(delay_ms), 0.0) / 1000.0, fire)
            timer.daemon = True
            self._timer = timer
            timer.start()

    def cancel(self):
        with self._lock:
            self._cancel_timer()
            self._generation += 1

    def _cancel_timer(self):
        timer: Optional[threading.Timer] = self._timer
        self._timer = None
        if timer is not None:
            timer.cancel()
