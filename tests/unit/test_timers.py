import threading
import time

from dumbbells.flow.timers import SecondTicker


def test_ticker_fires_until_stopped():
    # Arrange
    fired = threading.Event()
    calls = []

    def on_tick():
        calls.append(1)
        if len(calls) >= 3:
            fired.set()

    ticker = SecondTicker(on_tick, interval=0.01)

    # Act
    ticker.start()
    assert fired.wait(timeout=2.0)
    ticker.stop()
    count_after_stop = len(calls)

    # Assert
    assert ticker.is_running is False
    time.sleep(0.05)
    assert len(calls) == count_after_stop


def test_stop_before_start_is_safe():
    ticker = SecondTicker(lambda: None, interval=0.01)

    ticker.stop()

    assert ticker.is_running is False


def test_failing_callback_stops_ticker():
    done = threading.Event()

    def on_tick():
        done.set()
        raise RuntimeError("boom")

    ticker = SecondTicker(on_tick, interval=0.01)
    ticker.start()

    assert done.wait(timeout=2.0)
    ticker._thread.join(timeout=2.0)
    assert ticker.is_running is False
