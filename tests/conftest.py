from datetime import datetime, timedelta

import pytest

from dumbbells.flow.controller import WorkoutFlowController
from dumbbells.memory.history_store import InMemoryHistoryStore
from dumbbells.models.workout_set import InputField


class FakeClock:
    def __init__(self, start=datetime(2025, 8, 3, 18, 0, 0)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


class FakeTicker:
    def __init__(self, on_tick):
        self.on_tick = on_tick
        self.started = False
        self.stopped = False

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True

    def fire(self):
        self.on_tick()


class FakeTickerFactory:
    def __init__(self):
        self.tickers = []

    def __call__(self, on_tick):
        ticker = FakeTicker(on_tick)
        self.tickers.append(ticker)
        return ticker

    @property
    def latest(self):
        return self.tickers[-1]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tickers():
    return FakeTickerFactory()


@pytest.fixture
def history_store():
    return InMemoryHistoryStore()


@pytest.fixture
def controller(history_store, clock, tickers):
    flow = WorkoutFlowController(
        history_store=history_store,
        exercise_name="Bench Press (Dumbbell)",
        clock=clock,
        ticker_factory=tickers,
    )
    yield flow
    flow.dispose()


def fill_set(flow, set_number, weight, reps):
    """Type weight and reps for a set through the keyboard, then close it."""
    flow.tap_field(set_number, InputField.WEIGHT)
    for key in weight:
        flow.press_key(key)
    flow.tap_field(set_number, InputField.REPS)
    for key in reps:
        flow.press_key(key)
    flow.dismiss_keyboard()


@pytest.fixture
def fill():
    return fill_set
