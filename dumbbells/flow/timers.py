"""Background one-second ticker used for the workout and rest timers."""

import logging
import threading
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)

TICK_INTERVAL_SECONDS = 1.0


class Ticker(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...


TickerFactory = Callable[[Callable[[], None]], Ticker]


class SecondTicker:
    """Call ``on_tick`` once per elapsed interval on a daemon thread.

    The callback runs on the ticker thread, so it should only hand the tick
    over to the owner (e.g. put it on a queue).
    """

    def __init__(self, on_tick: Callable[[], None], interval: float = TICK_INTERVAL_SECONDS):
        self.on_tick = on_tick
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self.on_tick()
            except Exception as e:
                logger.error(f"Ticker callback failed: {e}", exc_info=True)
                break
