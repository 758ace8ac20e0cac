"""Pill state machine driving a single-exercise workout session."""

import logging
import queue
import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional, Union

from dumbbells.config import DEFAULT_EXERCISE_NAME
from dumbbells.flow.intents import Intent, IntentKind, TimerKind
from dumbbells.flow.timers import SecondTicker, Ticker, TickerFactory
from dumbbells.memory.history_store import InMemoryHistoryStore, WorkoutHistoryStore
from dumbbells.models.flow_state import TRANSIENT_MODES, FlowState, PillMode
from dumbbells.models.workout_log import CompletedSet
from dumbbells.models.workout_set import (
    DEFAULT_TOTAL_SETS,
    FieldSelection,
    InputField,
    SetLedger,
    SetRecord,
)
from dumbbells.utils.formatters import format_duration, format_previous_set
from dumbbells.utils.storage_helpers import create_history_entry

logger = logging.getLogger(__name__)

REST_OPTIONS = (30, 60, 120, 180)


class WorkoutFlowController:
    """Own the set ledger, timers and pill mode of one workout session.

    Every user action and timer tick is an ``Intent``. Intents are queued and
    handled one at a time by ``pump``, so timer threads never touch the state
    directly; they only ``post`` ticks. Each tick carries the generation of
    the timer that produced it, and stopping a timer bumps the generation, so
    ticks already queued by a stopped timer are dropped.

    Usage::

        controller = WorkoutFlowController(history_store=store)
        controller.tap_field(1, InputField.WEIGHT)
        controller.press_key("4")
        ...
        controller.dispose()
    """

    def __init__(
        self,
        history_store: Optional[WorkoutHistoryStore] = None,
        exercise_name: str = DEFAULT_EXERCISE_NAME,
        total_sets: int = DEFAULT_TOTAL_SETS,
        clock: Callable[[], datetime] = datetime.now,
        ticker_factory: TickerFactory = SecondTicker,
    ) -> None:
        self.history_store = history_store if history_store is not None else InMemoryHistoryStore()
        self.exercise_name = exercise_name
        self.total_sets = total_sets
        self.clock = clock
        self.ticker_factory = ticker_factory

        self.ledger = SetLedger.fresh(total_sets)
        self.state = FlowState()
        self.previous_workout: List[CompletedSet] = []

        self._tickers: Dict[TimerKind, Optional[Ticker]] = {kind: None for kind in TimerKind}
        self._generations: Dict[TimerKind, int] = {kind: 0 for kind in TimerKind}
        self._intents: "queue.Queue[Intent]" = queue.Queue()
        self._dispatch_lock = threading.Lock()
        self._disposed = False

        self._handlers: Dict[IntentKind, Callable[[Intent], None]] = {
            IntentKind.START: self._on_start,
            IntentKind.FINISH: self._on_finish,
            IntentKind.TAP_TIMER_ICON: self._on_tap_timer_icon,
            IntentKind.TAP_FIELD: self._on_tap_field,
            IntentKind.KEY: self._on_key,
            IntentKind.BACKSPACE: self._on_backspace,
            IntentKind.NEXT_FIELD: self._on_next_field,
            IntentKind.DISMISS_KEYBOARD: self._on_dismiss_keyboard,
            IntentKind.PICK_REST: self._on_pick_rest,
            IntentKind.DISMISS_REST_PICKER: self._on_dismiss_rest_picker,
            IntentKind.SKIP_REST: self._on_skip_rest,
            IntentKind.TICK: self._on_tick,
            IntentKind.START_NEW_WORKOUT: self._on_start_new_workout,
            IntentKind.DESELECT_FIELD: self._on_deselect_field,
        }

        self._load_previous_workout()

    # Intent delivery

    def post(self, intent: Intent) -> None:
        """Queue an intent. Safe to call from any thread."""
        self._intents.put(intent)

    def pump(self) -> FlowState:
        """Handle every queued intent in arrival order."""
        with self._dispatch_lock:
            while True:
                try:
                    intent = self._intents.get_nowait()
                except queue.Empty:
                    break
                self._dispatch(intent)
        return self.state

    def handle_intent(self, intent: Intent) -> FlowState:
        """Queue ``intent`` behind any pending ticks and process the queue."""
        self.post(intent)
        return self.pump()

    def dispose(self) -> None:
        """Stop both timers. Later intents are ignored."""
        with self._dispatch_lock:
            self._stop_ticker(TimerKind.WORKOUT)
            self._stop_ticker(TimerKind.REST)
            self._disposed = True
            while not self._intents.empty():
                self._intents.get_nowait()
        logger.info("Workout flow controller disposed")

    def _dispatch(self, intent: Intent) -> None:
        if self._disposed:
            logger.debug(f"Controller disposed, ignoring {intent.kind.value}")
            return

        handler = self._handlers.get(intent.kind)
        if handler is None:
            raise ValueError(f"Unsupported intent: {intent.kind}")
        handler(intent)

    def _ignore(self, intent: Intent, reason: str) -> None:
        logger.debug(f"Ignoring {intent.kind.value} in {self.state.mode.value}: {reason}")

    # Public intents

    def start(self) -> FlowState:
        return self.handle_intent(Intent(kind=IntentKind.START))

    def finish(self) -> FlowState:
        return self.handle_intent(Intent(kind=IntentKind.FINISH))

    def tap_timer_icon(self) -> FlowState:
        return self.handle_intent(Intent(kind=IntentKind.TAP_TIMER_ICON))

    def tap_field(self, set_number: int, field: Union[InputField, str]) -> FlowState:
        return self.handle_intent(
            Intent(kind=IntentKind.TAP_FIELD, set_number=set_number, field=InputField(field))
        )

    def press_key(self, key: str) -> FlowState:
        return self.handle_intent(Intent(kind=IntentKind.KEY, key=key))

    def backspace(self) -> FlowState:
        return self.handle_intent(Intent(kind=IntentKind.BACKSPACE))

    def next_field(self) -> FlowState:
        return self.handle_intent(Intent(kind=IntentKind.NEXT_FIELD))

    def dismiss_keyboard(self) -> FlowState:
        return self.handle_intent(Intent(kind=IntentKind.DISMISS_KEYBOARD))

    def pick_rest(self, duration: int) -> FlowState:
        return self.handle_intent(Intent(kind=IntentKind.PICK_REST, duration=duration))

    def dismiss_rest_picker(self) -> FlowState:
        return self.handle_intent(Intent(kind=IntentKind.DISMISS_REST_PICKER))

    def skip_rest(self) -> FlowState:
        return self.handle_intent(Intent(kind=IntentKind.SKIP_REST))

    def tick(self, timer: TimerKind) -> FlowState:
        """Deliver a tick as if the running ``timer`` had fired."""
        return self.handle_intent(Intent.tick(timer, self._generations[timer]))

    def start_new_workout(self) -> FlowState:
        return self.handle_intent(Intent(kind=IntentKind.START_NEW_WORKOUT))

    def deselect_field(self) -> FlowState:
        return self.handle_intent(Intent(kind=IntentKind.DESELECT_FIELD))

    # Read access for the presentation layer

    @property
    def mode(self) -> PillMode:
        return self.state.mode

    @property
    def previous_mode(self) -> PillMode:
        return self.state.previous_mode

    @property
    def selected_field(self) -> Optional[FieldSelection]:
        return self.state.selected_field

    @property
    def sets(self) -> List[SetRecord]:
        return self.ledger.sets

    @property
    def current_set_index(self) -> int:
        return self.ledger.current_set_index

    @property
    def can_start(self) -> bool:
        return self.ledger.can_start()

    @property
    def workout_started(self) -> bool:
        return self.state.workout_started

    @property
    def show_summary(self) -> bool:
        return self.state.show_summary

    @property
    def elapsed_seconds(self) -> int:
        return self.state.elapsed_seconds

    @property
    def formatted_elapsed_time(self) -> str:
        return format_duration(self.state.elapsed_seconds)

    @property
    def rest_remaining_seconds(self) -> int:
        return self.state.rest_remaining_seconds

    @property
    def rest_duration_seconds(self) -> int:
        return self.state.rest_duration_seconds

    @property
    def is_rest_active(self) -> bool:
        return self.state.is_rest_active

    @property
    def formatted_rest_remaining(self) -> str:
        return format_duration(self.state.rest_remaining_seconds)

    @property
    def rest_progress(self) -> float:
        """Remaining share of the rest, never below 0.01 while resting."""
        if not self.state.is_rest_active or self.state.rest_duration_seconds <= 0:
            return 0.0
        return max(0.01, self.state.rest_remaining_seconds / self.state.rest_duration_seconds)

    @property
    def start_button_label(self) -> str:
        if not self.can_start:
            record = self.ledger.current_record
            if record is not None:
                if not record.weight or not record.reps:
                    return "Enter Kg & Reps"
                if record.is_completed:
                    return "Set Complete"
            return "Start"

        if self.ledger.current_set_index == 0:
            return "Start"
        return f"Start Set {self.ledger.current_set_index + 1}"

    def value_for(self, set_number: int, field: Union[InputField, str]) -> str:
        return self.ledger.value_for(set_number, field)

    def previous_value_for(self, set_number: int) -> str:
        previous = next(
            (completed for completed in self.previous_workout if completed.set_number == set_number),
            None,
        )
        return format_previous_set(previous)

    def completed_sets(self) -> List[CompletedSet]:
        return self.ledger.completed_sets()

    # Timers

    def _start_ticker(self, kind: TimerKind) -> None:
        self._stop_ticker(kind)
        generation = self._generations[kind]

        def on_tick() -> None:
            self.post(Intent.tick(kind, generation))

        ticker = self.ticker_factory(on_tick)
        self._tickers[kind] = ticker
        ticker.start()

    def _stop_ticker(self, kind: TimerKind) -> None:
        ticker = self._tickers[kind]
        self._tickers[kind] = None
        # Invalidate ticks the old timer already queued
        self._generations[kind] += 1
        if ticker is not None:
            ticker.stop()

    def _stop_rest_timer(self) -> None:
        self._stop_ticker(TimerKind.REST)
        self.state.clear_rest()

    # Handlers

    def _on_start(self, intent: Intent) -> None:
        if self.state.mode != PillMode.START:
            self._ignore(intent, "not in start mode")
            return
        if not self.ledger.can_start():
            self._ignore(intent, f"set {self.ledger.current_set_index + 1} cannot start")
            return

        self.state.selected_field = None
        self.state.workout_started = True
        self.state.workout_start_timestamp = self.clock()
        self.state.elapsed_seconds = 0
        self.state.mode = PillMode.ACTIVE_TIMER
        self._start_ticker(TimerKind.WORKOUT)
        logger.info(f"Started set {self.ledger.current_set_index + 1} of {self.exercise_name}")

    def _on_finish(self, intent: Intent) -> None:
        if self.state.mode != PillMode.ACTIVE_TIMER:
            self._ignore(intent, "no active set")
            return

        self._stop_ticker(TimerKind.WORKOUT)
        if self.state.is_rest_active:
            self._stop_rest_timer()

        completion_time = self.formatted_elapsed_time
        set_number = self.ledger.current_set_index + 1

        if self.ledger.is_last_actionable_set():
            self._complete_current_set(completion_time)
            self._save_workout()
            self.state.show_summary = True
            self.state.reset_workout()
            logger.info(f"Workout finished after set {set_number}")
        elif self.ledger.has_next_incomplete():
            self._complete_current_set(completion_time)
            self.ledger.current_set_index += 1
            self.state.reset_workout()
            logger.info(f"Set {set_number} finished, moving to set {set_number + 1}")
        else:
            self._complete_current_set(completion_time)
            self.state.reset_workout()
            logger.info(f"Set {set_number} finished, no further set ready")

    def _complete_current_set(self, completion_time: str) -> None:
        record = self.ledger.current_record
        if record is not None:
            record.complete(completion_time)

    def _on_tap_timer_icon(self, intent: Intent) -> None:
        if self.state.mode not in (PillMode.ACTIVE_TIMER, PillMode.KEYBOARD):
            self._ignore(intent, "timer icon not shown")
            return
        self.state.previous_mode = self.state.mode
        self.state.mode = PillMode.REST_PICKER

    def _on_tap_field(self, intent: Intent) -> None:
        record = self.ledger.record_for(intent.set_number) if intent.set_number is not None else None
        if record is None or intent.field is None:
            self._ignore(intent, f"no field for set {intent.set_number}")
            return
        if record.is_completed:
            self._ignore(intent, f"set {record.set_number} is completed")
            return
        if self.state.show_summary:
            self._ignore(intent, "summary shown")
            return

        self.state.selected_field = FieldSelection(set_number=record.set_number, field=intent.field)
        if self.state.mode != PillMode.KEYBOARD:
            # previous_mode never holds the rest picker; a tap over it keeps
            # the mode the picker was opened from.
            if self.state.mode not in TRANSIENT_MODES:
                self.state.previous_mode = self.state.mode
            elif self.state.previous_mode in TRANSIENT_MODES:
                self.state.previous_mode = self.state.running_mode
            self.state.mode = PillMode.KEYBOARD

    def _on_key(self, intent: Intent) -> None:
        selection = self.state.selected_field
        if self.state.mode != PillMode.KEYBOARD or selection is None or intent.key is None:
            self._ignore(intent, "no field selected")
            return
        self.ledger.update(selection.set_number, selection.field, intent.key)

    def _on_backspace(self, intent: Intent) -> None:
        selection = self.state.selected_field
        if self.state.mode != PillMode.KEYBOARD or selection is None:
            self._ignore(intent, "no field selected")
            return
        self.ledger.delete_last(selection.set_number, selection.field)

    def _on_next_field(self, intent: Intent) -> None:
        if self.state.mode != PillMode.KEYBOARD:
            self._ignore(intent, "keyboard not shown")
            return

        total_fields = self.ledger.total_sets * 2
        selection = self.state.selected_field
        if selection is None:
            flat_index = -1
        else:
            column = 0 if selection.field == InputField.WEIGHT else 1
            flat_index = (selection.set_number - 1) * 2 + column

        next_index = (flat_index + 1) % total_fields
        self.state.selected_field = FieldSelection(
            set_number=next_index // 2 + 1,
            field=InputField.WEIGHT if next_index % 2 == 0 else InputField.REPS,
        )

    def _on_dismiss_keyboard(self, intent: Intent) -> None:
        if self.state.mode != PillMode.KEYBOARD:
            self._ignore(intent, "keyboard not shown")
            return

        self.state.selected_field = None
        if self.state.previous_mode != PillMode.KEYBOARD:
            self.state.mode = self.state.previous_mode
        else:
            self.state.mode = self.state.running_mode
        if self.state.mode == PillMode.COUNTDOWN:
            # The countdown hands back to the running pill when it ends.
            self.state.previous_mode = self.state.running_mode

    def _on_pick_rest(self, intent: Intent) -> None:
        if self.state.mode != PillMode.REST_PICKER:
            self._ignore(intent, "rest picker not shown")
            return
        if intent.duration is None or intent.duration < 0:
            self._ignore(intent, f"invalid rest duration {intent.duration}")
            return

        self.state.rest_duration_seconds = intent.duration
        self.state.rest_remaining_seconds = intent.duration
        self.state.is_rest_active = True
        self.state.mode = PillMode.COUNTDOWN
        self._start_ticker(TimerKind.REST)
        logger.info(f"Rest started for {format_duration(intent.duration)}")

    def _on_dismiss_rest_picker(self, intent: Intent) -> None:
        if self.state.mode != PillMode.REST_PICKER:
            self._ignore(intent, "rest picker not shown")
            return
        self.state.mode = self.state.previous_mode

    def _on_skip_rest(self, intent: Intent) -> None:
        if self.state.mode != PillMode.COUNTDOWN:
            self._ignore(intent, "no countdown shown")
            return
        self._stop_rest_timer()
        self.state.mode = self.state.previous_mode

    def _on_tick(self, intent: Intent) -> None:
        timer = intent.timer
        if timer is None or self._tickers[timer] is None or intent.generation != self._generations[timer]:
            logger.debug(f"Dropping stale {timer.value if timer else 'unknown'} tick")
            return

        if timer == TimerKind.WORKOUT:
            self._update_elapsed()
        else:
            self._count_down_rest()

    def _update_elapsed(self) -> None:
        start = self.state.workout_start_timestamp
        if start is None:
            return
        self.state.elapsed_seconds = max(0, int((self.clock() - start).total_seconds()))

    def _count_down_rest(self) -> None:
        if self.state.rest_remaining_seconds > 0:
            self.state.rest_remaining_seconds -= 1
            return

        self._stop_rest_timer()
        if self.state.mode == PillMode.COUNTDOWN:
            self.state.mode = self.state.previous_mode
        elif self.state.previous_mode == PillMode.COUNTDOWN:
            # Rest ended while the keyboard was open over the countdown
            self.state.previous_mode = self.state.running_mode
        logger.info("Rest finished")

    def _on_start_new_workout(self, intent: Intent) -> None:
        self._stop_ticker(TimerKind.WORKOUT)
        self._stop_ticker(TimerKind.REST)
        self.ledger = SetLedger.fresh(self.total_sets)
        self.state = FlowState()
        self._load_previous_workout()
        logger.info(f"New {self.exercise_name} workout ready")

    def _on_deselect_field(self, intent: Intent) -> None:
        self.state.selected_field = None

    # History

    def _load_previous_workout(self) -> None:
        self.previous_workout = self.history_store.load_previous(self.exercise_name)

    def _save_workout(self) -> None:
        entry = create_history_entry(self.exercise_name, self.ledger, date=self.clock())
        self.history_store.save(entry)
